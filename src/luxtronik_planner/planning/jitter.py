"""This module spreads planned windows of identical planners over time.

Every installation of this planner reads the same published spot prices and
would therefore switch its heat pump on at exactly the same second. A random
shift, drawn once per run and applied to the whole window, keeps the window's
shape while spreading the load of many installations.
"""

from datetime import timedelta
from typing import Optional

import numpy as np

from luxtronik_planner.planning.spot_prices import PriceWindow
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


class JitterSpreader:
    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        """Initializes the spreader.

        Args:
            rng: Source of randomness; a freshly seeded generator if omitted.
        """
        self._rng = rng if rng is not None else np.random.default_rng()

    def apply(self, spot_prices: PriceWindow, jitter_max_minutes: int) -> PriceWindow:
        """Shifts all entries of the window by one random number of minutes.

        The shift is drawn uniformly from [-jitter_max_minutes, jitter_max_minutes).

        Returns:
            The shifted window; the input itself if there is nothing to shift.
        """
        if jitter_max_minutes <= 0 or not spot_prices:
            return spot_prices

        shift_minutes = int(self._rng.integers(-jitter_max_minutes, jitter_max_minutes))
        logger.info("Applying jitter of %d minutes", shift_minutes)

        offset = timedelta(minutes=shift_minutes)
        return [spot_price.shifted(offset) for spot_price in spot_prices]
