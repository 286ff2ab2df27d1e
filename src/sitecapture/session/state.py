"""SessionState: the owned working set for one reporting pass."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator

from sitecapture.config import SessionConfig
from sitecapture.errors import ExportInProgress

from .store import ObservationStore
from .types import CaptureType, Condition, LocationSnapshot, Observation, parse_floor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot handed to the presentation layer."""

    generation: int
    facility_name: str
    reporter_name: str
    observations: tuple[Observation, ...]
    location: LocationSnapshot | None
    export_in_flight: bool


class SessionState:
    """
    Aggregate of everything a session owns: observations, identity fields and the
    cached location. Mutated only through the methods below.

    Every reset bumps ``generation``; an export that started under an older
    generation is stale and its result is discarded by the caller.
    """

    def __init__(self, config: SessionConfig | None = None, *, facility_name: str = "", reporter_name: str = "") -> None:
        self.config = config or SessionConfig()
        self.store = ObservationStore()
        self.facility_name = facility_name
        self.reporter_name = reporter_name
        self._location: LocationSnapshot | None = None
        self._export_in_flight = False
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def location(self) -> LocationSnapshot | None:
        return self._location

    @property
    def export_in_flight(self) -> bool:
        return self._export_in_flight

    def set_identity(self, *, facility_name: str | None = None, reporter_name: str | None = None) -> None:
        if facility_name is not None:
            self.facility_name = facility_name
        if reporter_name is not None:
            self.reporter_name = reporter_name

    def set_location(self, snapshot: LocationSnapshot) -> bool:
        """Cache the session location. First resolution wins; later writes return False."""
        if self._location is not None:
            logger.debug("Location already resolved for this session; ignoring new value")
            return False
        self._location = snapshot
        return True

    def record_capture(
        self,
        image_bitmap: bytes,
        capture_type: CaptureType | str,
        condition: Condition | str,
        floor_number: int | str,
        *,
        captured_at: datetime | None = None,
    ) -> int:
        """Build an Observation from a captured payload and the current identity; returns its index."""
        observation = Observation(
            image_bitmap=bytes(image_bitmap),
            capture_type=CaptureType.parse(capture_type),
            condition=Condition.parse(condition),
            floor_number=parse_floor(floor_number),
            reporter_name=self.reporter_name,
            facility_name=self.facility_name,
            captured_at=captured_at or datetime.now(),
        )
        return self.store.add(observation)

    def update_observation(self, index: int, field: str, value: Any) -> Observation:
        return self.store.update_field(index, field, value)

    def remove_observation(self, index: int) -> Observation:
        return self.store.remove_at(index)

    def view(self) -> SessionView:
        return SessionView(
            generation=self._generation,
            facility_name=self.facility_name,
            reporter_name=self.reporter_name,
            observations=self.store.snapshot(),
            location=self._location,
            export_in_flight=self._export_in_flight,
        )

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    @contextmanager
    def export_guard(self) -> Iterator[int]:
        """Hold the single export slot; yields the generation the export belongs to."""
        if self._export_in_flight:
            raise ExportInProgress("an export is already running for this session")
        self._export_in_flight = True
        generation = self._generation
        try:
            yield generation
        finally:
            # A reset during the export already released the slot for the new generation
            if self._generation == generation:
                self._export_in_flight = False

    def reset(self) -> None:
        """Clear every session field back to its initial state."""
        self.store = ObservationStore()
        self.facility_name = ""
        self.reporter_name = ""
        self._location = None
        self._export_in_flight = False
        self._generation += 1
        logger.info("Session reset (generation %d)", self._generation)
