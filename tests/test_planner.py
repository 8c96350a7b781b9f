from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from luxtronik_planner.planning.planner import PlanningStrategy, PricePlanner
from luxtronik_planner.planning.spot_prices import LoadProfile, LoadProfileSection, SpotPrice
from luxtronik_planner.planning.time_slots import TimeSlot

# a Monday
START = datetime(2024, 1, 15, 0, tzinfo=timezone.utc)
PRICES = [0.30, 0.28, 0.25, 0.05, 0.04, 0.20, 0.35, 0.40, 0.38, 0.30, 0.22, 0.21]


def hourly_prices(prices=PRICES, start=START):
    return [
        SpotPrice(
            start + timedelta(hours=hour),
            start + timedelta(hours=hour + 1),
            price,
            energy_tax_price=0.1,
        )
        for hour, price in enumerate(prices)
    ]


def two_hour_load(power: float = 2000.0) -> LoadProfile:
    return LoadProfile(sections=[LoadProfileSection(duration_seconds=7200, power_draw_watt=power)])


@pytest.fixture
def planner() -> PricePlanner:
    return PricePlanner()


def test_lowest_price_window(planner):
    plan = planner.get_optimal_window(
        hourly_prices(), two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=12)
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=3)
    assert plan.spot_prices[-1].till_time == START + timedelta(hours=5)
    # 2 kW for one hour at each of 0.15 and 0.14
    assert plan.total_cost == pytest.approx(2 * 0.15 + 2 * 0.14)


def test_highest_price_window(planner):
    plan = planner.get_optimal_window(
        hourly_prices(), two_hour_load(), PlanningStrategy.HIGHEST_PRICE, START, START + timedelta(hours=12)
    )

    assert [p.market_price for p in plan.spot_prices] == [0.40, 0.38]


def test_window_must_end_before_horizon(planner):
    plan = planner.get_optimal_window(
        hourly_prices(), two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=4)
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=2)
    assert plan.spot_prices[-1].till_time == START + timedelta(hours=4)


def test_window_starts_after_now_and_is_clipped(planner):
    after = START + timedelta(hours=3, minutes=30)

    plan = planner.get_optimal_window(
        hourly_prices(), two_hour_load(), PlanningStrategy.LOWEST_PRICE, after, START + timedelta(hours=12)
    )

    assert plan.spot_prices[0].from_time == after
    assert plan.spot_prices[-1].till_time == after + timedelta(hours=2)
    assert [p.market_price for p in plan.spot_prices] == [0.05, 0.04, 0.20]


def test_ties_go_to_the_earliest_window(planner):
    plan = planner.get_optimal_window(
        hourly_prices([0.1] * 6), two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=6)
    )

    assert plan.spot_prices[0].from_time == START


def test_load_profile_sections_are_weighted(planner):
    # a heavy first hour prefers the cheapest hour first
    load = LoadProfile(
        sections=[
            LoadProfileSection(duration_seconds=3600, power_draw_watt=5000),
            LoadProfileSection(duration_seconds=3600, power_draw_watt=100),
        ]
    )

    plan = planner.get_optimal_window(
        hourly_prices([0.3, 0.1, 0.01, 0.3]), load, PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=4)
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=2)


def test_gaps_in_prices_are_not_planned_over(planner):
    prices = hourly_prices([0.3, 0.01]) + hourly_prices([0.01, 0.3], start=START + timedelta(hours=3))

    plan = planner.get_optimal_window(
        prices, two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=5)
    )

    assert plan.spot_prices[0].from_time in (START, START + timedelta(hours=3))
    assert plan.total_cost == pytest.approx(2 * 0.4 + 2 * 0.11)


def test_no_window_when_load_does_not_fit(planner):
    plan = planner.get_optimal_window(
        hourly_prices([0.1]), two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=12)
    )

    assert plan.is_empty
    assert plan.total_cost == 0.0


def test_no_window_without_prices(planner):
    assert planner.get_optimal_window(
        [], two_hour_load(), PlanningStrategy.LOWEST_PRICE, START, START + timedelta(hours=12)
    ).is_empty


def test_window_stays_within_local_time_slot(planner):
    # 07:00 - 13:00 in Amsterdam is 06:00 - 12:00 UTC in winter
    slots = {"Mon": [TimeSlot(time(7), time(13))]}

    plan = planner.get_optimal_window(
        hourly_prices(),
        two_hour_load(),
        PlanningStrategy.LOWEST_PRICE,
        START,
        START + timedelta(hours=12),
        time_slots=slots,
        time_zone=ZoneInfo("Europe/Amsterdam"),
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=10)
    assert [p.market_price for p in plan.spot_prices] == [0.22, 0.21]


def test_slot_start_is_a_candidate(planner):
    slots = {"Mon": [TimeSlot(time(1, 30), time(3, 30))]}

    plan = planner.get_optimal_window(
        hourly_prices(),
        two_hour_load(),
        PlanningStrategy.LOWEST_PRICE,
        START,
        START + timedelta(hours=12),
        time_slots=slots,
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=1, minutes=30)
    assert plan.spot_prices[-1].till_time == START + timedelta(hours=3, minutes=30)


def test_window_may_span_touching_slots_across_midnight(planner):
    prices = hourly_prices([0.5, 0.01, 0.01, 0.5, 0.5, 0.5], start=START - timedelta(hours=2))
    slots = {"Sun": [TimeSlot(time(23), time(0))], "Mon": [TimeSlot(time(0), time(7))]}

    plan = planner.get_optimal_window(
        prices,
        two_hour_load(),
        PlanningStrategy.LOWEST_PRICE,
        START - timedelta(hours=2),
        START + timedelta(hours=4),
        time_slots=slots,
    )

    assert plan.spot_prices[0].from_time == START - timedelta(hours=1)
    assert plan.spot_prices[-1].till_time == START + timedelta(hours=1)


def test_slot_price_limit_applies_to_market_price(planner):
    def plan_below(limit):
        return planner.get_optimal_window(
            hourly_prices(),
            two_hour_load(),
            PlanningStrategy.LOWEST_PRICE,
            START,
            START + timedelta(hours=12),
            time_slots={"Mon": [TimeSlot(time(0), time(0), if_price_below=limit)]},
        )

    # 0.05 at 03:00 is not below 0.05
    assert plan_below(0.05).is_empty
    assert plan_below(0.06).spot_prices[0].from_time == START + timedelta(hours=3)


def test_no_window_on_days_without_slots(planner):
    plan = planner.get_optimal_window(
        hourly_prices(),
        two_hour_load(),
        PlanningStrategy.LOWEST_PRICE,
        START,
        START + timedelta(hours=12),
        time_slots={"Tue": [TimeSlot(time(0), time(7))]},
    )

    assert plan.is_empty


def test_empty_time_slots_allow_any_time(planner):
    plan = planner.get_optimal_window(
        hourly_prices(),
        two_hour_load(),
        PlanningStrategy.LOWEST_PRICE,
        START,
        START + timedelta(hours=12),
        time_slots={},
    )

    assert plan.spot_prices[0].from_time == START + timedelta(hours=3)
