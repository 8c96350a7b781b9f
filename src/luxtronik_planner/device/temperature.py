"""Adjusts the tap-water setpoint by stepping the setpoint control."""

import math

from luxtronik_planner.device.gestures import (
    ENTER_TAP_WATER_SETPOINT,
    LEAVE_TAP_WATER_SETPOINT,
    run_script,
)
from luxtronik_planner.device.session import DeviceSession
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

TEMPERATURES_PATH = "Informatie > Temperaturen"
TAP_WATER_SETPOINT_ITEM = "Tapwater ingesteld"
STEP_SIZE = 0.5


def steps_between(current: float, target: float) -> int:
    """Returns the number of 0.5 degree pulses needed to reach the target."""
    return math.ceil(round(abs(target - current) / STEP_SIZE, 6))


class TemperatureAdjuster:
    def __init__(self, session: DeviceSession) -> None:
        self._session = session

    def get_temperature(self) -> float:
        response = self._session.navigate_to(TEMPERATURES_PATH)
        return self._session.read_value(TAP_WATER_SETPOINT_ITEM, response)

    def set_temperature(self, target: float) -> None:
        """Moves the tap-water setpoint to the target, unless it is already there.

        Args:
            target: The desired setpoint in degrees Celsius.
        """
        current = self.get_temperature()
        if current == target:
            logger.info("Tap water setpoint is already %.1f°C", current)
            return

        steps = steps_between(current, target)
        logger.info(
            "Changing tap water setpoint from %.1f°C to %.1f°C in %d steps",
            current,
            target,
            steps,
        )

        run_script(self._session, ENTER_TAP_WATER_SETPOINT)
        for _ in range(steps):
            if target > current:
                self._session.move_right()
            else:
                self._session.move_left()
        self._session.click()
        run_script(self._session, LEAVE_TAP_WATER_SETPOINT)
