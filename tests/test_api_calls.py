from unittest.mock import MagicMock, patch

import pytest
import requests

from luxtronik_planner.retrievers import api_calls


@pytest.fixture
def service_account(tmp_path, monkeypatch):
    (tmp_path / "token").write_text("secret-token\n", encoding="utf-8")
    (tmp_path / "namespace").write_text("home\n", encoding="utf-8")
    monkeypatch.setattr(api_calls, "SERVICE_ACCOUNT_PATH", str(tmp_path))
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
    monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "443")
    return tmp_path


def test_get_current_namespace(service_account):
    assert api_calls.get_current_namespace() == "home"


@patch("luxtronik_planner.retrievers.api_calls.requests.get")
def test_get_config_map(mock_get, service_account):
    mock_get.return_value = MagicMock(json=MagicMock(return_value={"data": {}}))

    assert api_calls.get_config_map("home", "luxtronik-planner") == {"data": {}}

    args, kwargs = mock_get.call_args
    assert args[0] == "https://10.0.0.1:443/api/v1/namespaces/home/configmaps/luxtronik-planner"
    assert kwargs["headers"] == {"Authorization": "Bearer secret-token"}
    assert kwargs["verify"] is True


@patch("luxtronik_planner.retrievers.api_calls.requests.put")
def test_replace_config_map_raises_on_error(mock_put, service_account):
    (service_account / "ca.crt").write_text("cert", encoding="utf-8")
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("409 Conflict")
    mock_put.return_value = response

    with pytest.raises(requests.exceptions.HTTPError):
        api_calls.replace_config_map("home", "luxtronik-planner", {"data": {}})

    assert mock_put.call_args.kwargs["verify"] == str(service_account / "ca.crt")
    assert mock_put.call_args.kwargs["json"] == {"data": {}}
