"""This module finds the cheapest or costliest moment to run a load.

Given the published spot prices and the load profile of a heating cycle, the
`PricePlanner` evaluates every candidate start time (the start of the planning
horizon and every price boundary after it) and computes what running the full
load profile from there would cost. Only starts for which the whole load fits
inside the horizon and is covered by known prices are considered. When weekly
local time slots are given, the load must also run entirely within one of them,
and slot starts become candidate start times too.

The result is the window of spot prices the load would run through, clipped to
the exact start and end of the load, together with its cost.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import List, Optional

import numpy as np

from luxtronik_planner.planning.spot_prices import LoadProfile, SpotPrice
from luxtronik_planner.planning.time_slots import SlotPeriod, WeeklyTimeSlots, slot_periods
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

SECONDS_PER_HOUR = 3600.0
WATT_PER_KILOWATT = 1000.0


class PlanningStrategy(Enum):
    LOWEST_PRICE = "LowestPrice"
    HIGHEST_PRICE = "HighestPrice"


@dataclass(frozen=True)
class SpotPricesPlan:
    spot_prices: List[SpotPrice] = field(default_factory=list)
    total_cost: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.spot_prices


class PricePlanner:
    """Plans a load profile against a series of spot prices."""

    def get_optimal_window(
        self,
        spot_prices: List[SpotPrice],
        load_profile: LoadProfile,
        strategy: PlanningStrategy,
        after: datetime,
        before: datetime,
        time_slots: Optional[WeeklyTimeSlots] = None,
        time_zone: tzinfo = timezone.utc,
    ) -> SpotPricesPlan:
        """Finds the optimal window to run a load profile.

        Args:
            spot_prices: Known spot prices, in any order.
            load_profile: The power draw of the load over time.
            strategy: Whether to look for the cheapest or the costliest window.
            after: Earliest moment the load may start.
            before: Moment by which the load must have finished.
            time_slots: Weekly local times the load must run within; None or empty
                        allows any time.
            time_zone: The time zone the time slots are written in.

        Returns:
            The optimal plan, or an empty plan if the load fits nowhere.
        """
        duration = load_profile.total_duration.total_seconds()
        prices = sorted(
            (spot_price for spot_price in spot_prices if spot_price.till_time > after),
            key=lambda spot_price: spot_price.from_time,
        )
        if not prices or duration <= 0:
            logger.info("Nothing to plan: %d spot prices, load of %ds", len(prices), duration)
            return SpotPricesPlan()

        from_seconds = np.array([p.from_time.timestamp() for p in prices])
        till_seconds = np.array([p.till_time.timestamp() for p in prices])
        price_per_kwh = np.array([p.total_price() for p in prices])
        market_price = np.array([p.market_price for p in prices])

        after_seconds = after.timestamp()
        starts = [np.array([after_seconds]), from_seconds[from_seconds > after_seconds]]

        periods: Optional[List[SlotPeriod]] = None
        if time_slots:
            periods = slot_periods(time_slots, time_zone, after, before)
            if not periods:
                logger.info("No time slot between %s and %s allows the load", after, before)
                return SpotPricesPlan()
            slot_starts = np.array([period.start.timestamp() for period in periods])
            starts.append(slot_starts[slot_starts > after_seconds])

        candidates = np.unique(np.concatenate(starts))

        best_start: Optional[float] = None
        best_cost = 0.0
        for start in candidates:
            if start + duration > before.timestamp():
                break

            if periods is not None and not self._fits_time_slots(
                periods, float(start), duration, from_seconds, till_seconds, market_price
            ):
                continue

            cost = self._cost(load_profile, start, from_seconds, till_seconds, price_per_kwh)
            if cost is None:
                continue

            if (
                best_start is None
                or (strategy is PlanningStrategy.LOWEST_PRICE and cost < best_cost)
                or (strategy is PlanningStrategy.HIGHEST_PRICE and cost > best_cost)
            ):
                best_start = float(start)
                best_cost = cost

        if best_start is None:
            logger.info("No window between %s and %s fits the load profile", after, before)
            return SpotPricesPlan()

        start_time = datetime.fromtimestamp(best_start, tz=timezone.utc)
        end_time = start_time + load_profile.total_duration
        window = [
            replace(
                p,
                from_time=max(p.from_time, start_time),
                till_time=min(p.till_time, end_time),
            )
            for p in prices
            if p.from_time < end_time and p.till_time > start_time
        ]

        logger.info(
            "Planned %s window %s - %s costing %.4f",
            strategy.value,
            start_time.isoformat(),
            end_time.isoformat(),
            best_cost,
        )

        return SpotPricesPlan(spot_prices=window, total_cost=best_cost)

    @staticmethod
    def _cost(
        load_profile: LoadProfile,
        start: float,
        from_seconds: np.ndarray,
        till_seconds: np.ndarray,
        price_per_kwh: np.ndarray,
    ) -> Optional[float]:
        """Returns the cost of running the load from start, or None if prices are missing."""
        cost = 0.0
        section_start = start
        for section in load_profile.sections:
            section_end = section_start + section.duration_seconds
            overlap = np.clip(
                np.minimum(section_end, till_seconds) - np.maximum(section_start, from_seconds),
                0.0,
                None,
            )
            if not np.isclose(overlap.sum(), section.duration_seconds):
                return None

            energy_kwh = section.power_draw_watt / WATT_PER_KILOWATT * overlap / SECONDS_PER_HOUR
            cost += float(np.dot(energy_kwh, price_per_kwh))
            section_start = section_end

        return cost

    @staticmethod
    def _fits_time_slots(
        periods: List[SlotPeriod],
        start: float,
        duration: float,
        from_seconds: np.ndarray,
        till_seconds: np.ndarray,
        market_price: np.ndarray,
    ) -> bool:
        """Tells whether the load lies within one period and below its price limit."""
        start_time = datetime.fromtimestamp(start, tz=timezone.utc)
        end_time = start_time + timedelta(seconds=duration)
        for period in periods:
            if not period.contains(start_time, end_time):
                continue
            if period.if_price_below is None:
                return True

            running = (from_seconds < start + duration) & (till_seconds > start)
            if np.all(market_price[running] < period.if_price_below):
                return True

        return False
