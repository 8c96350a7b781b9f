"""
The `util` package holds utilities shared by all parts of the planner.

- `logging.py`: Defines `LoggingUtil`, which hands out console loggers with one
  format, a level taken from the `LOGLEVEL` environment variable and quiet
  third-party library loggers.
"""
