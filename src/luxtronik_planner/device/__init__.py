"""This package talks to the heat pump by simulating its remote control.

The key modules within this package include:
- `markup.py`: Parses the `<Content>` screen listings into field values and
  timer slots, handling unit suffixes and the `---` sentinel.
- `navigation.py`: Defines the `NavigationTree` built from the login response,
  resolving menu paths like "Informatie > Temperaturen" to device item ids.
- `session.py`: Defines `DeviceSession`, the websocket state machine offering
  login, raw exchanges and the remote-control gestures (move, click, navigate).
- `gestures.py`: Holds the firmware-specific gesture macros as data and the
  interpreter that replays them.
- `schedule_codec.py`: Encodes planned windows into the packed weekly timer
  slots and rewrites a schedule in one reset-then-set pass.
- `temperature.py`: Defines `TemperatureAdjuster`, which steps the tap-water
  setpoint in 0.5 degree pulses.
"""
