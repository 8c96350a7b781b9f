"""This module persists the planner's state between runs.

The state remembers whether the heat pump was left in disinfection mode, when
the last disinfection cycle finished and which window was planned last. It is
stored as a small YAML file. Outside of Kubernetes the file is written directly;
inside a cluster the file is a read-only ConfigMap mount and the ConfigMap is
replaced through the API instead.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from luxtronik_planner.planning.spot_prices import (
    SpotPrice,
    format_timestamp,
    parse_timestamp,
)
from luxtronik_planner.retrievers.api_calls import (
    SERVICE_ACCOUNT_PATH,
    get_config_map,
    get_current_namespace,
    replace_config_map,
)
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

DEFAULT_STATE_FILE_PATH = "/configs/last-state.yaml"
DEFAULT_STATE_FILE_CONFIG_MAP_NAME = "luxtronik-planner"
DAYS_SINCE_DISINFECTION_ON_FIRST_RUN = 7


@dataclass
class RunState:
    disinfection_enabled: bool = False
    disinfection_finished_at: Optional[datetime] = None
    planned_spot_prices: Optional[List[SpotPrice]] = field(default=None)

    @classmethod
    def initial(cls, now: datetime) -> "RunState":
        """The state assumed on the very first run."""
        return cls(
            disinfection_enabled=False,
            disinfection_finished_at=now - timedelta(days=DAYS_SINCE_DISINFECTION_ON_FIRST_RUN),
            planned_spot_prices=None,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunState":
        finished_at = data.get("disinfectionFinishedAt")
        planned = data.get("plannedSpotPrices")
        enabled = data.get("disinfectionEnabled", False)
        if not isinstance(enabled, bool):
            raise TypeError(f"disinfectionEnabled must be a boolean, got {enabled!r}")
        return cls(
            disinfection_enabled=enabled,
            disinfection_finished_at=parse_timestamp(finished_at) if finished_at else None,
            planned_spot_prices=(
                [SpotPrice.from_dict(entry) for entry in planned] if planned is not None else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "disinfectionEnabled": self.disinfection_enabled,
            "disinfectionFinishedAt": (
                format_timestamp(self.disinfection_finished_at)
                if self.disinfection_finished_at is not None
                else None
            ),
            "plannedSpotPrices": (
                [spot_price.to_dict() for spot_price in self.planned_spot_prices]
                if self.planned_spot_prices is not None
                else None
            ),
        }


class StateClient:
    """Stores the state as a local YAML file."""

    def __init__(self, state_file_path: Optional[str] = None) -> None:
        self.state_file_path = state_file_path or os.getenv(
            "STATE_FILE_PATH", DEFAULT_STATE_FILE_PATH
        )

    @classmethod
    def from_env(cls) -> "StateClient":
        """Returns a ConfigMap backed client when running inside Kubernetes."""
        if os.path.exists(f"{SERVICE_ACCOUNT_PATH}/namespace"):
            return ConfigMapStateClient()
        return cls()

    def read_state(self) -> Optional[RunState]:
        """Reads the last stored state.

        Returns:
            The stored state, or None if there is no state file or it cannot be parsed.
        """
        try:
            with open(self.state_file_path, "r", encoding="utf-8") as state_file:
                data = yaml.safe_load(state_file)
        except OSError:
            logger.info("No previous state found at %s", self.state_file_path)
            return None
        except yaml.YAMLError as ex:
            logger.warning("Ignoring unparseable state file %s: %s", self.state_file_path, ex)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s without a mapping", self.state_file_path)
            return None

        try:
            state = RunState.from_dict(data)
        except (KeyError, TypeError, ValueError) as ex:
            logger.warning("Ignoring invalid state in %s: %s", self.state_file_path, ex)
            return None

        logger.info("Read previous state from state file at %s", self.state_file_path)
        return state

    def store_state(self, state: RunState) -> None:
        with open(self.state_file_path, "w", encoding="utf-8") as state_file:
            state_file.write(self.serialize(state))
        logger.info("Stored state in %s", self.state_file_path)

    @staticmethod
    def serialize(state: RunState) -> str:
        return yaml.safe_dump(state.to_dict(), sort_keys=False)


class ConfigMapStateClient(StateClient):
    """Reads the state from its ConfigMap mount and writes it back through the Kubernetes API."""

    def __init__(
        self,
        state_file_path: Optional[str] = None,
        config_map_name: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> None:
        super().__init__(state_file_path)
        self.config_map_name = config_map_name or os.getenv(
            "STATE_FILE_CONFIG_MAP_NAME", DEFAULT_STATE_FILE_CONFIG_MAP_NAME
        )
        self.namespace = namespace or get_current_namespace()

    def store_state(self, state: RunState) -> None:
        config_map = get_config_map(self.namespace, self.config_map_name)

        # the key matches the file name of the mount
        data = config_map.get("data") or {}
        data[Path(self.state_file_path).name] = self.serialize(state)
        config_map["data"] = data

        replace_config_map(self.namespace, self.config_map_name, config_map)
        logger.info("Stored last state in configmap %s", self.config_map_name)
