"""This module configures the loggers of the planner.

Every module obtains its logger through `LoggingUtil.get_logger(__name__)`, so a
single `LOGLEVEL` environment variable controls the verbosity of the device
protocol trace, the planning decisions and the state store. The websocket,
HTTP and scheduler libraries stay at WARNING unless `LOGLEVEL` is DEBUG, since
their INFO output would otherwise drown the planner's own messages.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - [%(name)s][%(levelname)s] %(message)s"
LIBRARY_LOGGERS = ("websocket", "urllib3", "apscheduler")


class LoggingUtil:
    """Hands out loggers sharing one console format and level."""

    _libraries_configured = False

    @staticmethod
    def get_log_level() -> str:
        """Returns the level name from `LOGLEVEL`, falling back to INFO if unset or unknown."""
        log_level = os.getenv("LOGLEVEL", "INFO").upper()
        if log_level not in logging._nameToLevel.keys():
            return "INFO"
        return log_level

    @staticmethod
    def get_logger(logger_name: str) -> logging.Logger:
        """Retrieves a configured logger instance.

        Args:
            logger_name: The name of the logger to retrieve (typically `__name__`
                         of the calling module).

        Returns:
            A `logging.Logger` writing to the console in the planner's format.
        """
        log_level = LoggingUtil.get_log_level()
        LoggingUtil._configure_libraries(log_level)

        logger = logging.getLogger(logger_name)
        logger.setLevel(log_level)
        logger.propagate = False

        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(console_handler)

        return logger

    @staticmethod
    def _configure_libraries(log_level: str) -> None:
        if LoggingUtil._libraries_configured:
            return

        library_level = log_level if log_level == "DEBUG" else "WARNING"
        for library in LIBRARY_LOGGERS:
            logging.getLogger(library).setLevel(library_level)
        LoggingUtil._libraries_configured = True
