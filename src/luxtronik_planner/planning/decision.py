"""This module decides what the next planned window is used for.

Tap water must periodically be heated far above its normal temperature to kill
legionella. A disinfection cycle draws considerably more energy than regular
heating, so it is scheduled opportunistically: never before
`min_hours` have passed since the last one, always once `max_hours` have passed,
and in between only when the cheapest disinfection window is cheap enough
compared to the costliest one. The required price advantage shrinks
quadratically while the deadline approaches. A window with a net price at or
below zero always triggers disinfection, because then the energy is free.

All functions here are pure; the price windows are planned beforehand.
"""

from datetime import datetime, timedelta
from typing import Tuple

from luxtronik_planner.exceptions import InvalidConfig
from luxtronik_planner.planning.spot_prices import PriceWindow, total_price
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

DISINFECTION_LOOKAHEAD = timedelta(hours=12)
BLOCKING_LOOKAHEAD = timedelta(hours=12)


def select_window_for_run(
    now: datetime,
    disinfection_finished_at: datetime,
    heating_window: PriceWindow,
    disinfection_window: PriceWindow,
    highest_price_disinfection_window: PriceWindow,
    min_hours: float,
    max_hours: float,
) -> Tuple[PriceWindow, bool]:
    """Chooses between regular tap-water heating and a disinfection cycle.

    Disinfection is only considered when its cheapest window starts within the
    next 12 hours; otherwise it is deferred to a later run.

    Args:
        now: The current time.
        disinfection_finished_at: When the last disinfection cycle ended.
        heating_window: Cheapest window for regular tap-water heating.
        disinfection_window: Cheapest window for a disinfection cycle.
        highest_price_disinfection_window: Costliest window for a disinfection cycle.
        min_hours: Minimum hours between disinfection cycles.
        max_hours: Maximum hours between disinfection cycles.

    Returns:
        The window to program and whether it is a disinfection cycle.
    """
    if not disinfection_window or disinfection_window[0].from_time > now + DISINFECTION_LOOKAHEAD:
        logger.info("Cheapest disinfection window is not within reach, deferring disinfection")
        return heating_window, False

    if is_disinfection_desired(
        min_hours,
        max_hours,
        disinfection_finished_at,
        disinfection_window,
        highest_price_disinfection_window,
    ):
        return disinfection_window, True

    return heating_window, False


def is_disinfection_desired(
    min_hours: float,
    max_hours: float,
    last_finished_at: datetime,
    lowest_window: PriceWindow,
    highest_window: PriceWindow,
) -> bool:
    """Decides whether the cheapest disinfection window should be used.

    Raises:
        InvalidConfig: If `max_hours` does not exceed `min_hours`.
    """
    if max_hours <= min_hours:
        raise InvalidConfig(
            f"Maximum hours between disinfections ({max_hours}) must exceed the minimum ({min_hours})"
        )

    if not lowest_window:
        return False

    elapsed = (lowest_window[-1].till_time - last_finished_at).total_seconds() / 3600

    lowest_total = total_price(lowest_window)
    if lowest_total <= 0:
        logger.info("Disinfection window has a net price of %.4f, disinfecting", lowest_total)
        return True

    if elapsed < min_hours:
        logger.info("Only %.1f hours since last disinfection, minimum is %s", elapsed, min_hours)
        return False

    if elapsed > max_hours:
        logger.info("%.1f hours since last disinfection exceeds maximum of %s", elapsed, max_hours)
        return True

    ramp = (elapsed - min_hours) / (max_hours - min_hours)
    threshold_fraction = ramp**2

    lowest_market_price = total_price(
        lowest_window,
        include_market_price_tax=False,
        include_sourcing_markup_price=False,
        include_energy_tax_price=False,
    )
    highest_market_price = total_price(
        highest_window,
        include_market_price_tax=False,
        include_sourcing_markup_price=False,
        include_energy_tax_price=False,
    )

    desired = lowest_market_price < threshold_fraction * highest_market_price
    logger.info(
        "%.1f hours since last disinfection, lowest market price %.4f vs %.2f of highest %.4f: %s",
        elapsed,
        lowest_market_price,
        threshold_fraction,
        highest_market_price,
        "disinfecting" if desired else "not disinfecting",
    )

    return desired


def select_window_for_blocking(
    now: datetime, highest_price_heating_window: PriceWindow
) -> PriceWindow:
    """Returns the costliest heating window if it starts within the blocking lookahead."""
    if not highest_price_heating_window:
        return []

    if highest_price_heating_window[0].from_time > now + BLOCKING_LOOKAHEAD:
        logger.info("Costliest heating window is beyond the blocking lookahead")
        return []

    return highest_price_heating_window
