"""This module rewrites the heat pump's weekly timer schedules.

A Luxtronik weekly schedule ("Klokprogramma > ... > Week") consists of five timer
slots. Each slot holds one blocking period of the day, packed into a single
integer as `start_minute + 65536 * end_minute`, where an end of 0 stands for the
midnight that closes the day. The device shows the slot as "HH:MM - HH:MM".

The tap-water schedule is written from the interval in which heating is
*allowed*, so the slots block its complement: the first slot blocks from
midnight until the interval starts and the last slot blocks from the end of the
interval until midnight. An interval crossing midnight leaves a single gap during
the day, which fits in the first slot. The heating schedule is written from the
interval that must be *blocked*, which is packed directly.

Every run resets all slots before writing, so the resulting device state depends
only on the interval and the time zone of the heat pump's clock.
"""

from datetime import datetime, tzinfo
from typing import Callable, List, Tuple

from luxtronik_planner.device.markup import ScheduleSlot, parse_schedule_slots
from luxtronik_planner.device.session import DeviceSession
from luxtronik_planner.exceptions import ProtocolViolation
from luxtronik_planner.planning.spot_prices import SpotPrice
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

TAP_WATER_WEEK_PATH = "Klokprogramma > Warmwater > Week"
HEATING_WEEK_PATH = "Klokprogramma > Verwarmen > Week"

BOUNDARY_FACTOR = 65536
MINUTES_PER_DAY = 24 * 60
INACTIVE = 0


def pack(start_minutes: int, end_minutes: int) -> int:
    """Packs one blocking period into the raw slot encoding."""
    for minutes in (start_minutes, end_minutes):
        if not 0 <= minutes < MINUTES_PER_DAY:
            raise ValueError(f"{minutes} is not a minute of the day")

    return start_minutes + BOUNDARY_FACTOR * end_minutes


def unpack(raw: int) -> Tuple[int, int]:
    """Returns the (start, end) minutes of a raw slot value."""
    end_minutes, start_minutes = divmod(raw, BOUNDARY_FACTOR)
    return start_minutes, end_minutes


def minutes_since_midnight(moment: datetime, time_zone: tzinfo) -> int:
    local = moment.astimezone(time_zone)
    return local.hour * 60 + local.minute


def allowed_interval_values(from_minutes: int, till_minutes: int) -> Tuple[int, int]:
    """Returns the (first slot, last slot) values allowing heating in [from, till).

    A value of 0 leaves the slot inactive.
    """
    if from_minutes == till_minutes:
        # a whole day
        return INACTIVE, INACTIVE

    if from_minutes <= till_minutes:
        first = pack(0, from_minutes) if from_minutes > 0 else INACTIVE
        last = pack(till_minutes, 0) if till_minutes > 0 else INACTIVE
        return first, last

    # heating wraps around midnight, block the gap in between
    return pack(till_minutes, from_minutes), INACTIVE


def blocked_interval_values(from_minutes: int, till_minutes: int) -> Tuple[int, int]:
    """Returns the (first slot, last slot) values blocking [from, till)."""
    if from_minutes == till_minutes:
        return INACTIVE, INACTIVE

    if from_minutes < till_minutes or till_minutes == 0:
        return pack(from_minutes, till_minutes), INACTIVE

    return pack(from_minutes, 0), pack(0, till_minutes)


class ScheduleCodec:
    """Writes desired intervals into a weekly timer schedule."""

    def __init__(self, session: DeviceSession, time_zone: tzinfo) -> None:
        """Initializes the codec.

        Args:
            session: A logged-in device session.
            time_zone: The time zone the heat pump's clock runs in.
        """
        self._session = session
        self._time_zone = time_zone

    def read_slots(self, week_path: str) -> List[ScheduleSlot]:
        response = self._session.navigate_to(week_path)
        slots = parse_schedule_slots(response)
        logger.debug(
            "Schedule %s holds %s",
            week_path,
            ", ".join(f"{slot.name} {slot.value}" for slot in slots),
        )
        return slots

    def write_allowed_interval(self, week_path: str, spot_prices: List[SpotPrice]) -> None:
        """Rewrites a schedule so that the device may only run during the window.

        Args:
            week_path: Menu path of the weekly schedule screen.
            spot_prices: The window; empty resets the schedule to no blocking at all.
        """
        self._write(week_path, spot_prices, allowed_interval_values)

    def write_blocked_interval(self, week_path: str, spot_prices: List[SpotPrice]) -> None:
        """Rewrites a schedule so that the device is blocked during the window."""
        self._write(week_path, spot_prices, blocked_interval_values)

    def _write(
        self,
        week_path: str,
        spot_prices: List[SpotPrice],
        encode: Callable[[int, int], Tuple[int, int]],
    ) -> None:
        slots = self.read_slots(week_path)
        if not slots:
            raise ProtocolViolation(f"No timer slots found at {week_path}")

        for slot in slots:
            self._session.set_item(slot.id, INACTIVE)

        if spot_prices and len(slots) >= 2:
            from_minutes = minutes_since_midnight(spot_prices[0].from_time, self._time_zone)
            till_minutes = minutes_since_midnight(spot_prices[-1].till_time, self._time_zone)
            first, last = encode(from_minutes, till_minutes)

            logger.info(
                "Writing %02d:%02d - %02d:%02d to %s (first slot %d, last slot %d)",
                *divmod(from_minutes, 60),
                *divmod(till_minutes, 60),
                week_path,
                first,
                last,
            )
            if first != INACTIVE:
                self._session.set_item(slots[0].id, first)
            if last != INACTIVE:
                self._session.set_item(slots[-1].id, last)
        else:
            logger.info("Clearing all slots of %s", week_path)

        self._session.save()
