from unittest.mock import MagicMock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger

from luxtronik_planner import app
from luxtronik_planner.exceptions import NoResponse


@patch("luxtronik_planner.app.run_once")
def test_main_runs_once_without_schedule(run_once, monkeypatch):
    monkeypatch.delenv("PLANNER_SCHEDULE", raising=False)

    app.main()

    run_once.assert_called_once_with()


@patch("luxtronik_planner.app.run_once", side_effect=NoResponse("No response received for LOGIN"))
def test_main_exits_non_zero_on_failure(run_once, monkeypatch):
    monkeypatch.delenv("PLANNER_SCHEDULE", raising=False)

    with pytest.raises(SystemExit) as exit_info:
        app.main()

    assert exit_info.value.code == 1


@patch("luxtronik_planner.app.create_scheduler")
def test_main_runs_on_schedule(create_scheduler, monkeypatch):
    monkeypatch.setenv("PLANNER_SCHEDULE", "5 * * * *")

    app.main()

    create_scheduler.assert_called_once_with("5 * * * *")
    create_scheduler.return_value.start.assert_called_once_with()


def test_create_scheduler_never_overlaps_runs():
    scheduler = app.create_scheduler("5 * * * *")

    job = scheduler.get_job("planner")
    assert job.max_instances == 1
    assert job.coalesce
    assert isinstance(job.trigger, CronTrigger)


@patch("luxtronik_planner.app.PlannerService")
@patch("luxtronik_planner.app.StateClient")
@patch("luxtronik_planner.app.SpotPricesStateClient")
@patch("luxtronik_planner.app.DeviceConnectionConfig")
@patch("luxtronik_planner.app.load_config")
def test_run_once_wires_service(
    load_config, connection_config, spot_prices_client, state_client, planner_service
):
    app.run_once()

    planner_service.assert_called_once_with(
        load_config.return_value,
        connection_config.from_env.return_value,
        spot_prices_client.return_value,
        state_client.from_env.return_value,
    )
    planner_service.return_value.run.assert_called_once_with()


def test_job_finished_listener_logs_failure():
    event = MagicMock(job_id="planner", exception=NoResponse("timeout"), traceback=None)

    with patch.object(app.logger, "error") as error:
        app.job_finished_listener(event)

    error.assert_called_once()
