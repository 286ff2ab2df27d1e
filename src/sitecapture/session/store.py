"""Ordered, mutable collection of observations for the active session."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator
from typing import Any, Callable

from sitecapture.errors import IndexOutOfRange, UnknownField

from .types import CaptureType, Condition, Observation, parse_floor

logger = logging.getLogger(__name__)

# Updatable fields -> coercion. imageBitmap and the identity strings are read-only.
_UPDATABLE: dict[str, Callable[[Any], Any]] = {
    "capture_type": CaptureType.parse,
    "condition": Condition.parse,
    "floor_number": parse_floor,
}

_ALIASES = {
    "captureType": "capture_type",
    "floorNumber": "floor_number",
    "type": "capture_type",
    "floor": "floor_number",
}


class ObservationStore:
    """Insertion-ordered observations. Identity is the position in the sequence."""

    def __init__(self) -> None:
        self._items: list[Observation] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Observation]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> Observation:
        self._check_index(index)
        return self._items[index]

    def add(self, observation: Observation) -> int:
        """Append and return the new observation's index."""
        self._items.append(observation)
        logger.debug("Observation added at %d (%s)", len(self._items) - 1, observation.capture_type)
        return len(self._items) - 1

    def remove_at(self, index: int) -> Observation:
        """Remove the observation at index; later entries shift down by one."""
        self._check_index(index)
        removed = self._items.pop(index)
        logger.debug("Observation removed at %d, %d remaining", index, len(self._items))
        return removed

    def update_field(self, index: int, field: str, value: Any) -> Observation:
        """Replace exactly one updatable field of the observation at index."""
        self._check_index(index)
        name = _ALIASES.get(field, field)
        coerce = _UPDATABLE.get(name)
        if coerce is None:
            raise UnknownField(field)
        updated = dataclasses.replace(self._items[index], **{name: coerce(value)})
        self._items[index] = updated
        return updated

    def snapshot(self) -> tuple[Observation, ...]:
        """Immutable ordered copy for composition."""
        return tuple(self._items)

    def clear(self) -> None:
        self._items.clear()

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._items):
            raise IndexOutOfRange(index, len(self._items))
