from luxtronik_planner.device.gestures import (
    ENTER_TAP_WATER_SETPOINT,
    FIRMWARE,
    LEAVE_TAP_WATER_SETPOINT,
    TOGGLE_CONTINUOUS_DISINFECTION,
    GestureKind,
    run_script,
    toggle_continuous_disinfection,
)
from tests.conftest import SETPOINT_SETTINGS_ID, SYSTEM_SETTINGS_ID


def test_scripts_are_tied_to_firmware():
    assert TOGGLE_CONTINUOUS_DISINFECTION.firmware == FIRMWARE
    assert TOGGLE_CONTINUOUS_DISINFECTION.steps[0].kind is GestureKind.NAVIGATE
    assert TOGGLE_CONTINUOUS_DISINFECTION.steps[0].path == "Instelling > Systeeminstelling"


def test_every_gesture_kind_is_used_by_a_script():
    scripts = [TOGGLE_CONTINUOUS_DISINFECTION, ENTER_TAP_WATER_SETPOINT, LEAVE_TAP_WATER_SETPOINT]

    assert {step.kind for script in scripts for step in script.steps} == set(GestureKind)


def test_toggle_continuous_disinfection(logged_in_session, heat_pump):
    toggle_continuous_disinfection(logged_in_session)

    right = ["MOVE;0", "MOVE;6"]
    click = ["MOVE;2", "MOVE;6"]
    assert heat_pump.sent[1:] == (
        [f"GET;{SYSTEM_SETTINGS_ID}"]
        + right * 6
        + click
        + right * 7
        + click
        + right
        + click
    )


def test_run_script_returns_last_screen(logged_in_session, heat_pump):
    response = run_script(logged_in_session, ENTER_TAP_WATER_SETPOINT)

    assert heat_pump.sent[1] == f"GET;{SETPOINT_SETTINGS_ID}"
    assert heat_pump.sent[-2:] == ["MOVE;2", "MOVE;6"]
    assert response == "<Content></Content>"
