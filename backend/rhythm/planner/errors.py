"""Error taxonomy for the rhythm planning engine."""
from __future__ import annotations

from dataclasses import dataclass


class RhythmError(Exception):
    """Base class for request-fatal planning errors."""


class TimeRangeError(RhythmError, ValueError):
    """Raised for an invalid or missing time range on a block."""


class MissingDurationError(RhythmError, TypeError):
    """Raised when an unplanned block has no explicit duration."""


class ValidationError(RhythmError):
    """Raised when a planner pre- or postcondition does not hold."""


class ConstraintAssertionError(RhythmError):
    """Raised when a block does not carry the constraint a view requires."""


class PlannerError(RhythmError):
    """Raised (or returned) when no schedule could be produced."""


class StrategyResolutionError(PlannerError):
    """No flow generator is registered for a complexity level."""


class FlowStateError(RuntimeError):
    """A solver stage was invoked out of order."""


@dataclass(frozen=True)
class GenericServiceError:
    """Boundary-level failure carrying the name and message of the cause."""

    name: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "GenericServiceError":
        return cls(name=type(exc).__name__, message=str(exc))


def require(condition: bool, message: str) -> None:
    if not condition:
        raise ValidationError(f"Validation failed: {message}")
