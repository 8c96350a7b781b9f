"""Reads the spot prices published by the spot price exporter.

The exporter keeps its state in a YAML file (a ConfigMap mounted into the
planner's pod) holding the upcoming prices under `futureSpotPrices`.
"""

import os
from datetime import datetime
from typing import List, Optional

import yaml

from luxtronik_planner.exceptions import InvalidConfig
from luxtronik_planner.planning.spot_prices import SpotPrice
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

DEFAULT_SPOT_PRICES_STATE_FILE_PATH = "/state/spot-prices-state.yaml"


class SpotPricesStateClient:
    def __init__(self, state_file_path: Optional[str] = None) -> None:
        self._state_file_path = state_file_path or os.getenv(
            "SPOT_PRICES_STATE_FILE_PATH", DEFAULT_SPOT_PRICES_STATE_FILE_PATH
        )

    def read_future_spot_prices(self, now: Optional[datetime] = None) -> List[SpotPrice]:
        """Returns the known spot prices that have not ended yet, in chronological order.

        A missing state file yields no prices; a file that cannot be parsed is an error,
        since planning without prices would silently leave the heat pump unmanaged.

        Raises:
            InvalidConfig: If the state file is not valid YAML or holds invalid entries.
        """
        try:
            with open(self._state_file_path, "r", encoding="utf-8") as state_file:
                state = yaml.safe_load(state_file) or {}
        except FileNotFoundError:
            logger.warning("No spot prices state found at %s", self._state_file_path)
            return []
        except yaml.YAMLError as ex:
            raise InvalidConfig(f"Spot prices state {self._state_file_path} is invalid: {ex}") from ex

        try:
            spot_prices = [SpotPrice.from_dict(entry) for entry in state.get("futureSpotPrices") or []]
        except (KeyError, TypeError, ValueError, AttributeError) as ex:
            raise InvalidConfig(f"Spot prices state {self._state_file_path} is invalid: {ex}") from ex

        if now is not None:
            spot_prices = [spot_price for spot_price in spot_prices if spot_price.till_time > now]

        spot_prices.sort(key=lambda spot_price: spot_price.from_time)
        logger.info("Read %d future spot prices from %s", len(spot_prices), self._state_file_path)

        return spot_prices
