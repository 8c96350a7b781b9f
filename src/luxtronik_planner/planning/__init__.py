"""This package decides when the heat pump should heat tap water.

The key modules within this package include:
- `spot_prices.py`: Defines `SpotPrice` and the `LoadProfile` of a heating cycle.
- `planner.py`: Defines `PricePlanner`, which finds the cheapest or costliest
  window to run a load profile.
- `time_slots.py`: Defines `TimeSlot` and expands the weekly local time slots a
  load may run in.
- `decision.py`: Chooses between regular heating and a disinfection cycle and
  selects the heating window to block.
- `jitter.py`: Defines `JitterSpreader`, which shifts a window by a random offset.
- `orchestrator.py`: Defines `PlannerService`, which runs one complete planning
  and programming cycle against the heat pump.
"""
