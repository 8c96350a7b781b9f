"""This module holds the fixed remote-control macros as data.

Some settings cannot be addressed by a `SET` command: they are only reachable by
opening a screen and stepping the cursor to the right row, exactly as an operator
would with the knob on the front panel. The number of hops depends on the menu
layout of the firmware, so each macro is a named `GestureScript` tagged with the
firmware it was recorded on. When a firmware update moves a row, only the table
below changes.

The scripts are recorded on a Luxtronik 2.x controller (software V3.88) with the
Dutch menu language.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from luxtronik_planner.device.session import DeviceSession
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

FIRMWARE = "V3.88"


class GestureKind(Enum):
    NAVIGATE = "navigate"
    MOVE_RIGHT = "move_right"
    CLICK = "click"


@dataclass(frozen=True)
class Gesture:
    kind: GestureKind
    repeat: int = 1
    path: Optional[str] = None


@dataclass(frozen=True)
class GestureScript:
    name: str
    firmware: str
    steps: Tuple[Gesture, ...]


def navigate(path: str) -> Gesture:
    return Gesture(GestureKind.NAVIGATE, path=path)


def right(repeat: int = 1) -> Gesture:
    return Gesture(GestureKind.MOVE_RIGHT, repeat=repeat)


def click(repeat: int = 1) -> Gesture:
    return Gesture(GestureKind.CLICK, repeat=repeat)


# Warmwater > Thermische desinfectie: the "Continu" checkbox is the seventh row
TOGGLE_CONTINUOUS_DISINFECTION = GestureScript(
    name="toggle_continuous_disinfection",
    firmware=FIRMWARE,
    steps=(
        navigate("Instelling > Systeeminstelling"),
        right(6),
        click(),
        right(7),
        click(),
        right(1),
        click(),
    ),
)

# Opens the "Warmwater gewenst" setpoint in edit mode; the cursor then steps 0.5 degrees
ENTER_TAP_WATER_SETPOINT = GestureScript(
    name="enter_tap_water_setpoint",
    firmware=FIRMWARE,
    steps=(
        navigate("Instelling > Temperaturen"),
        right(3),
        click(),
    ),
)

# Moves to "Toepassen", applies and backs out to the home screen
LEAVE_TAP_WATER_SETPOINT = GestureScript(
    name="leave_tap_water_setpoint",
    firmware=FIRMWARE,
    steps=(
        right(1),
        click(),
        click(),
    ),
)


def run_script(session: DeviceSession, script: GestureScript) -> str:
    """Replays a gesture script on a logged-in session.

    Returns:
        The screen content after the last gesture.
    """
    logger.info("Running gesture script %s (firmware %s)", script.name, script.firmware)

    response = ""
    for gesture in script.steps:
        if gesture.kind is GestureKind.NAVIGATE:
            response = session.navigate_to(gesture.path)
            continue

        for _ in range(gesture.repeat):
            if gesture.kind is GestureKind.MOVE_RIGHT:
                response = session.move_right()
            else:
                response = session.click()

    return response


def toggle_continuous_disinfection(session: DeviceSession) -> None:
    run_script(session, TOGGLE_CONTINUOUS_DISINFECTION)
