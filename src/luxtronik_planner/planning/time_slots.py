"""This module restricts planning to configured local times of the week.

A weekly table of time slots, keyed by weekday (`Mon` .. `Sun`), tells the
planner when a load may run, for example only at night on working days:

    plannableLocalTimeSlots:
      Mon:
        - from: 0:00:00
          till: 7:00:00
        - from: 23:00:00
          till: 0:00:00
      Sat:
        - from: 0:00:00
          till: 0:00:00

A slot whose `till` is not after its `from` ends on the next day, so
`0:00:00 - 0:00:00` spans the whole day. A slot may carry `ifPriceBelow`: the
load may then only run in it while every market price it runs through is below
that value. Weekdays missing from a non-empty table allow nothing.
"""

from dataclasses import dataclass, replace
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional

from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
SECONDS_PER_DAY = 24 * 3600


def parse_local_time(value: Any) -> time:
    """Parses a time of day written as H:MM or H:MM:SS.

    YAML 1.1 reads an unquoted `7:00:00` as the base-60 integer 25200, so an
    integer is taken as seconds since midnight.

    Raises:
        TypeError: If the value is neither a string nor an integer.
        ValueError: If the value is not a valid time of day.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Invalid time of day {value!r}")
    if isinstance(value, int):
        if not 0 <= value < SECONDS_PER_DAY:
            raise ValueError(f"Time of day {value}s is outside of a day")
        hours, remainder = divmod(value, 3600)
        return time(hours, *divmod(remainder, 60))
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"Invalid time of day {value!r}, expected H:MM:SS")
        return time(*(int(part) for part in parts))

    raise TypeError(f"Invalid time of day {value!r}")


@dataclass(frozen=True)
class TimeSlot:
    from_time: time
    till_time: time
    if_price_below: Optional[float] = None

    @property
    def crosses_midnight(self) -> bool:
        return self.till_time <= self.from_time

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSlot":
        if_price_below = data.get("ifPriceBelow")
        return cls(
            from_time=parse_local_time(data["from"]),
            till_time=parse_local_time(data["till"]),
            if_price_below=float(if_price_below) if if_price_below is not None else None,
        )

    def __str__(self) -> str:
        text = f"{self.from_time.strftime('%H:%M')}-{self.till_time.strftime('%H:%M')}"
        if self.if_price_below is not None:
            text += f" below {self.if_price_below}"
        return text


WeeklyTimeSlots = Dict[str, List[TimeSlot]]


def weekly_time_slots_from_dict(data: Any) -> WeeklyTimeSlots:
    """Maps a `{weekday: [slot, ...]}` document onto time slots.

    Raises:
        TypeError: If the document or a day's entry has the wrong shape.
        ValueError: If a weekday is unknown or a time does not parse.
    """
    if not isinstance(data, dict):
        raise TypeError(f"Time slots must be a mapping of weekdays, got {data!r}")

    unknown = sorted(str(day) for day in data if day not in WEEKDAYS)
    if unknown:
        raise ValueError(f"Unknown weekdays {', '.join(unknown)}, expected one of {', '.join(WEEKDAYS)}")

    return {day: [TimeSlot.from_dict(entry) for entry in entries or []] for day, entries in data.items()}


@dataclass(frozen=True)
class SlotPeriod:
    """One concrete occurrence of a time slot, in UTC."""

    start: datetime
    end: datetime
    if_price_below: Optional[float] = None

    def contains(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end


def slot_periods(
    weekly_slots: WeeklyTimeSlots,
    time_zone: tzinfo,
    after: datetime,
    before: datetime,
) -> List[SlotPeriod]:
    """Lists the periods of the weekly slots that overlap `after` - `before`.

    Periods that touch and share the same price limit are merged, so a load may
    run from `23:00 - 0:00` on one day into `0:00 - 7:00` on the next.

    Args:
        weekly_slots: Slots per weekday in local time.
        time_zone: The local time zone the slots are written in.
        after: Start of the range of interest.
        before: End of the range of interest.

    Returns:
        The periods in UTC, ordered by start.
    """
    periods: List[SlotPeriod] = []

    # the day before may hold a slot that runs past midnight
    day = after.astimezone(time_zone).date() - timedelta(days=1)
    last_day = before.astimezone(time_zone).date()
    while day <= last_day:
        for slot in weekly_slots.get(WEEKDAYS[day.weekday()], []):
            till_day = day + timedelta(days=1) if slot.crosses_midnight else day
            start = datetime.combine(day, slot.from_time, tzinfo=time_zone).astimezone(timezone.utc)
            end = datetime.combine(till_day, slot.till_time, tzinfo=time_zone).astimezone(timezone.utc)
            if end > after and start < before:
                periods.append(SlotPeriod(start, end, slot.if_price_below))
        day += timedelta(days=1)

    merged: List[SlotPeriod] = []
    for period in sorted(periods, key=lambda period: period.start):
        if merged and merged[-1].if_price_below == period.if_price_below and period.start <= merged[-1].end:
            merged[-1] = replace(merged[-1], end=max(merged[-1].end, period.end))
        else:
            merged.append(period)

    logger.debug(
        "%d plannable periods between %s and %s", len(merged), after.isoformat(), before.isoformat()
    )
    return merged
