"""This module provides functions for reading and replacing ConfigMaps through the Kubernetes API.

The planner runs as a CronJob whose state file is mounted from a ConfigMap.
Mounted ConfigMaps are read-only, so the new state is written back by replacing
the ConfigMap through the in-cluster API, authenticated with the pod's service
account token. The next run then finds the updated state file mounted.
"""

import os
from typing import Any, Dict, Union

import requests

from luxtronik_planner.util.logging import LoggingUtil

# Configure and start the logger
logger = LoggingUtil.get_logger(__name__)

SERVICE_ACCOUNT_PATH = "/var/run/secrets/kubernetes.io/serviceaccount"
REQUEST_TIMEOUT_SECONDS = 30


def _api_url(namespace: str, name: str) -> str:
    host = os.getenv("KUBERNETES_SERVICE_HOST", "kubernetes.default.svc")
    port = os.getenv("KUBERNETES_SERVICE_PORT", "443")
    return f"https://{host}:{port}/api/v1/namespaces/{namespace}/configmaps/{name}"


def _headers() -> Dict[str, str]:
    with open(f"{SERVICE_ACCOUNT_PATH}/token", "r", encoding="utf-8") as token_file:
        token = token_file.read().strip()
    return {"Authorization": f"Bearer {token}"}


def _ca_bundle() -> Union[str, bool]:
    ca_path = f"{SERVICE_ACCOUNT_PATH}/ca.crt"
    return ca_path if os.path.exists(ca_path) else True


def get_current_namespace() -> str:
    """Returns the namespace the pod runs in, as mounted with the service account."""
    with open(f"{SERVICE_ACCOUNT_PATH}/namespace", "r", encoding="utf-8") as namespace_file:
        return namespace_file.read().strip()


def get_config_map(namespace: str, name: str) -> Dict[str, Any]:
    """Retrieves a ConfigMap from the Kubernetes API.

    Args:
        namespace: The namespace holding the ConfigMap.
        name: The name of the ConfigMap.

    Returns:
        The ConfigMap resource as a dictionary.

    Raises:
        requests.exceptions.HTTPError: If the API call fails (e.g., 4xx or 5xx status code).
    """
    response = requests.get(
        _api_url(namespace, name),
        headers=_headers(),
        verify=_ca_bundle(),
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    config_map = response.json()
    logger.debug("ConfigMap %s/%s retrieved from API", namespace, name)
    return config_map


def replace_config_map(namespace: str, name: str, config_map: Dict[str, Any]) -> None:
    """Replaces a ConfigMap through the Kubernetes API.

    Args:
        namespace: The namespace holding the ConfigMap.
        name: The name of the ConfigMap.
        config_map: The complete ConfigMap resource, including its metadata.

    Raises:
        requests.exceptions.HTTPError: If the API call fails.
    """
    response = requests.put(
        _api_url(namespace, name),
        headers=_headers(),
        json=config_map,
        verify=_ca_bundle(),
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()  # Raise an error for bad responses (4xx, 5xx)
