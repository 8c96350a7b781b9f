"""This module loads the planner configuration.

The planning configuration lives in a YAML file (mounted from a ConfigMap in a
Kubernetes deployment) with camelCase keys:

    localTimeZone: Europe/Amsterdam
    heatpumpTimeZone: UTC
    desiredTapWaterTemperature: 50.0
    desinfectionTapWaterTemperature: 60.0
    minHoursSinceLastDesinfection: 96
    maxHoursSinceLastDesinfection: 240
    maximumHoursToPlanAhead: 12
    jitterMaxMinutes: 15
    enableBlockingWorstHeatingTimes: true
    loadProfile:
      sections:
        - durationSeconds: 7200
          powerDrawWatt: 2000
    desinfectionLoadProfile:
      sections:
        - durationSeconds: 10800
          powerDrawWatt: 3000
    plannableLocalTimeSlots:
      Mon:
        - from: 0:00:00
          till: 7:00:00
    desinfectionLocalTimeSlots:
      Sat:
        - from: 7:00:00
          till: 19:00:00
          ifPriceBelow: 0.1

The time slots are read in `localTimeZone`; leaving them out allows planning at
any time.

The connection to the heat pump is configured through environment variables,
so the login code can be provided as a secret.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from luxtronik_planner.exceptions import InvalidConfig
from luxtronik_planner.planning.spot_prices import LoadProfile, LoadProfileSection
from luxtronik_planner.planning.time_slots import WeeklyTimeSlots, weekly_time_slots_from_dict
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

DEFAULT_CONFIG_PATH = "/configs/config.yaml"


def _default_heating_load_profile() -> LoadProfile:
    return LoadProfile(
        sections=[
            LoadProfileSection(duration_seconds=3600, power_draw_watt=2000.0),
            LoadProfileSection(duration_seconds=3600, power_draw_watt=2000.0),
        ]
    )


@dataclass(frozen=True)
class Config:
    local_time_zone: str
    heatpump_time_zone: str
    desired_tap_water_temperature: float
    min_hours_since_last_disinfection: float
    max_hours_since_last_disinfection: float
    load_profile: LoadProfile
    disinfection_load_profile: LoadProfile
    disinfection_tap_water_temperature: float = 60.0
    heating_load_profile: LoadProfile = field(default_factory=_default_heating_load_profile)
    maximum_hours_to_plan_ahead: float = 12.0
    jitter_max_minutes: int = 0
    enable_blocking_worst_heating_times: bool = False
    plannable_local_time_slots: WeeklyTimeSlots = field(default_factory=dict)
    disinfection_local_time_slots: WeeklyTimeSlots = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_hours_since_last_disinfection <= self.min_hours_since_last_disinfection:
            raise InvalidConfig(
                "maxHoursSinceLastDesinfection must be larger than minHoursSinceLastDesinfection"
            )
        if self.jitter_max_minutes < 0:
            raise InvalidConfig("jitterMaxMinutes cannot be negative")
        if self.maximum_hours_to_plan_ahead <= 0:
            raise InvalidConfig("maximumHoursToPlanAhead must be positive")

        # fail at startup rather than halfway through a device session
        self.get_local_time_zone()
        self.get_heatpump_time_zone()

    def get_local_time_zone(self) -> ZoneInfo:
        return self._zone(self.local_time_zone)

    def get_heatpump_time_zone(self) -> ZoneInfo:
        return self._zone(self.heatpump_time_zone)

    @staticmethod
    def _zone(name: str) -> ZoneInfo:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as ex:
            raise InvalidConfig(f"Unknown time zone {name}") from ex

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Maps the camelCase YAML document onto the configuration.

        Raises:
            InvalidConfig: If a required key is missing or a value has the wrong type.
        """
        try:
            kwargs: Dict[str, Any] = {
                "local_time_zone": str(data["localTimeZone"]),
                "heatpump_time_zone": str(data["heatpumpTimeZone"]),
                "desired_tap_water_temperature": float(data["desiredTapWaterTemperature"]),
                "min_hours_since_last_disinfection": float(data["minHoursSinceLastDesinfection"]),
                "max_hours_since_last_disinfection": float(data["maxHoursSinceLastDesinfection"]),
                "load_profile": LoadProfile.from_dict(data["loadProfile"]),
                "disinfection_load_profile": LoadProfile.from_dict(data["desinfectionLoadProfile"]),
            }
            if "desinfectionTapWaterTemperature" in data:
                kwargs["disinfection_tap_water_temperature"] = float(
                    data["desinfectionTapWaterTemperature"]
                )
            if "heatingLoadProfile" in data:
                kwargs["heating_load_profile"] = LoadProfile.from_dict(data["heatingLoadProfile"])
            if "maximumHoursToPlanAhead" in data:
                kwargs["maximum_hours_to_plan_ahead"] = float(data["maximumHoursToPlanAhead"])
            if "jitterMaxMinutes" in data:
                kwargs["jitter_max_minutes"] = int(data["jitterMaxMinutes"])
            if "enableBlockingWorstHeatingTimes" in data:
                kwargs["enable_blocking_worst_heating_times"] = bool(
                    data["enableBlockingWorstHeatingTimes"]
                )
            if "plannableLocalTimeSlots" in data:
                kwargs["plannable_local_time_slots"] = weekly_time_slots_from_dict(
                    data["plannableLocalTimeSlots"]
                )
            if "desinfectionLocalTimeSlots" in data:
                kwargs["disinfection_local_time_slots"] = weekly_time_slots_from_dict(
                    data["desinfectionLocalTimeSlots"]
                )
        except KeyError as ex:
            raise InvalidConfig(f"Missing configuration key {ex}") from ex
        except (TypeError, ValueError) as ex:
            raise InvalidConfig(f"Invalid configuration value: {ex}") from ex

        return cls(**kwargs)


def load_config(config_path: Optional[str] = None) -> Config:
    """Reads the configuration file.

    Args:
        config_path: Path of the YAML file; defaults to the CONFIG_PATH environment
                     variable or /configs/config.yaml.

    Raises:
        InvalidConfig: If the file is missing, unreadable or inconsistent.
    """
    config_path = config_path or os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    try:
        with open(config_path, "r", encoding="utf-8") as config_file:
            data = yaml.safe_load(config_file)
    except OSError as ex:
        raise InvalidConfig(f"Cannot read configuration file {config_path}: {ex}") from ex
    except yaml.YAMLError as ex:
        raise InvalidConfig(f"Configuration file {config_path} is not valid YAML: {ex}") from ex

    if not isinstance(data, dict):
        raise InvalidConfig(f"Configuration file {config_path} does not hold a mapping")

    config = Config.from_dict(data)
    logger.info("Loaded configuration from %s", config_path)
    logger.debug("Configuration: %s", config)

    return config


@dataclass(frozen=True)
class DeviceConnectionConfig:
    host_address: str
    host_port: int
    login_code: str
    timeout_seconds: Optional[float] = 30.0

    def __repr__(self) -> str:
        return (
            f"DeviceConnectionConfig(host_address={self.host_address!r}, "
            f"host_port={self.host_port}, timeout_seconds={self.timeout_seconds})"
        )

    @classmethod
    def from_env(cls) -> "DeviceConnectionConfig":
        """Reads the connection settings from WEBSOCKET_* environment variables.

        Raises:
            InvalidConfig: If the login code is missing or a number does not parse.
        """
        login_code = os.getenv("WEBSOCKET_LOGIN_CODE")
        if not login_code:
            raise InvalidConfig("WEBSOCKET_LOGIN_CODE is not set")

        try:
            host_port = int(os.getenv("WEBSOCKET_HOST_PORT", "8214"))
            timeout_seconds = float(os.getenv("WEBSOCKET_TIMEOUT_SECONDS", "30"))
        except ValueError as ex:
            raise InvalidConfig(f"Invalid websocket setting: {ex}") from ex

        config = cls(
            host_address=os.getenv("WEBSOCKET_HOST_IP", "127.0.0.1"),
            host_port=host_port,
            login_code=login_code,
            timeout_seconds=timeout_seconds if timeout_seconds > 0 else None,
        )
        logger.info("%s", config)

        return config
