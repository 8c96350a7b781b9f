"""
The `luxtronik_planner` package shifts the tap-water heating of a Luxtronik heat
pump to the cheapest hours of the day, based on published dynamic electricity
(spot) prices.

The heat pump offers no API for its schedules. The only way in is the websocket
used by its own web remote control, which mirrors the physical menu on the
device. This package therefore logs in over that websocket, navigates the menu
by name and replays the button presses a person would make to program the
weekly timers and the tap-water setpoint.

A run goes as follows:
1.  **Planning:** The cheapest window to heat tap water within the planning
    horizon is computed from the spot prices and the load profile of a heating
    cycle. The cheapest and costliest windows for a (longer, hotter)
    disinfection cycle are computed as well.
2.  **Deciding:** Depending on the hours since the last disinfection and how
    favourable the cheapest disinfection window is, the run programs either
    regular heating or a disinfection cycle. A small random shift keeps many
    installations from switching on at the same moment.
3.  **Programming:** The window is written to the tap-water timer, continuous
    disinfection is toggled if needed and the setpoint is adjusted. Optionally,
    the costliest heating window is blocked in the heating timer.

Sub-packages:
-------------
- `device`:
  Everything that talks to the heat pump: the websocket session, the menu tree,
  the screen parser, gesture macros, the timer slot codec and the setpoint
  adjuster.

- `planning`:
  The spot price model, the price planner, the disinfection decision, the
  jitter and the `PlannerService` orchestrating a run.

- `retrievers`:
  Loading of the configuration and the published spot prices, and persistence
  of the state between runs in a file or a Kubernetes ConfigMap.

- `util`:
  A centralized logging utility for consistent, configurable logging across
  all modules.
"""
