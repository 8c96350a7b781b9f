"""Exceptions raised by the planner.

Every failure is fatal for the current run. Nothing is retried internally;
the next scheduled run recomputes price windows and elapsed hours from scratch.
"""


class PlannerError(Exception):
    """Base class for all planner errors."""


class ConnectionFailure(PlannerError):
    """The websocket to the heat pump could not be opened or maintained."""


class ProtocolViolation(PlannerError):
    """The heat pump sent a malformed response or none at all."""


class NoResponse(ProtocolViolation):
    """The connection closed or timed out before a text frame arrived."""


class NotLoggedIn(ProtocolViolation):
    """A protocol operation was attempted outside of a logged-in session."""


class PathNotFound(PlannerError):
    """A segment of a menu path does not exist in the navigation tree."""

    def __init__(self, segment: str) -> None:
        super().__init__(f"Item {segment} does not exist")
        self.segment = segment


class FieldNotFound(PlannerError):
    """A named field is absent from (or not numeric in) a screen listing."""

    def __init__(self, field: str) -> None:
        super().__init__(f"No match for item {field}")
        self.field = field


class InvalidConfig(PlannerError):
    """The configuration is inconsistent and cannot be used."""
