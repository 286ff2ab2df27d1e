"""Session model: observations, the ordered store, and the session aggregate."""

from .types import (
    MAX_FLOOR,
    MIN_FLOOR,
    NOT_AVAILABLE,
    CaptureType,
    Condition,
    LocationSnapshot,
    Observation,
    parse_floor,
)
from .store import ObservationStore
from .state import SessionState, SessionView

__all__ = [
    "MAX_FLOOR",
    "MIN_FLOOR",
    "NOT_AVAILABLE",
    "CaptureType",
    "Condition",
    "LocationSnapshot",
    "Observation",
    "parse_floor",
    "ObservationStore",
    "SessionState",
    "SessionView",
]
