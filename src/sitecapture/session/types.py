"""Session record types: observations, capture enums, location snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sitecapture.errors import InvalidFieldValue

NOT_AVAILABLE = "Not available"

MIN_FLOOR = 1
MAX_FLOOR = 50


class _LabelEnum(str, Enum):
    """String enum whose value is the canonical label."""

    @classmethod
    def parse(cls, value: "str | _LabelEnum"):
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        choices = ", ".join(m.value for m in cls)
        raise InvalidFieldValue(f"{value!r} is not a valid {cls.__name__} (expected one of: {choices})")

    def __str__(self) -> str:
        return self.value


class CaptureType(_LabelEnum):
    CLASSROOM = "Classroom"
    FLOOR = "Floor"
    RESTROOM = "Restroom"
    STAIRS = "Stairs"


class Condition(_LabelEnum):
    CLEAN = "Clean"
    DIRTY = "Dirty"


def parse_floor(value: int | str) -> int:
    """Coerce a floor number and enforce MIN_FLOOR..MAX_FLOOR."""
    try:
        floor = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidFieldValue(f"floor number must be an integer, got {value!r}") from e
    if isinstance(value, float) and value != floor:
        raise InvalidFieldValue(f"floor number must be an integer, got {value!r}")
    if not MIN_FLOOR <= floor <= MAX_FLOOR:
        raise InvalidFieldValue(f"floor number {floor} outside {MIN_FLOOR}..{MAX_FLOOR}")
    return floor


@dataclass(frozen=True)
class Observation:
    """One captured photograph plus its structured metadata."""

    image_bitmap: bytes
    capture_type: CaptureType
    condition: Condition
    floor_number: int
    reporter_name: str = ""
    facility_name: str = ""
    captured_at: datetime = field(default_factory=datetime.now)

    def metadata(self) -> dict[str, str]:
        """Label/value pairs for the fields an inspector can edit."""
        return {
            "Type": str(self.capture_type),
            "Condition": str(self.condition),
            "Floor": str(self.floor_number),
        }


@dataclass(frozen=True)
class LocationSnapshot:
    """Resolved session location. Any field may be NOT_AVAILABLE."""

    latitude: float | str = NOT_AVAILABLE
    longitude: float | str = NOT_AVAILABLE
    city: str = NOT_AVAILABLE
    country: str = NOT_AVAILABLE
    street: str = NOT_AVAILABLE
    house_number: str = NOT_AVAILABLE
    zipcode: str = NOT_AVAILABLE
    landmark: str = NOT_AVAILABLE
    timestamp: str = NOT_AVAILABLE

    @classmethod
    def unavailable(
        cls,
        latitude: float | str = NOT_AVAILABLE,
        longitude: float | str = NOT_AVAILABLE,
        timestamp: str = NOT_AVAILABLE,
    ) -> LocationSnapshot:
        """Snapshot with every address field set to the sentinel."""
        return cls(latitude=latitude, longitude=longitude, timestamp=timestamp)

    def address_line(self) -> str:
        """Street, number, zipcode, city and country joined; sentinel parts dropped."""

        def _join(*parts: str, sep: str = " ") -> str:
            return sep.join(p for p in parts if p and p != NOT_AVAILABLE)

        return _join(
            _join(self.street, self.house_number),
            _join(self.zipcode, self.city),
            self.country,
            sep=", ",
        )
