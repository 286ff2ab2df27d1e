"""Failure taxonomy for capture, composition and export."""

from __future__ import annotations


class SiteCaptureError(Exception):
    """Base class for every failure surfaced by sitecapture."""


class CaptureFailure(SiteCaptureError):
    """No frame was available from the camera collaborator."""


class DecodeFailure(SiteCaptureError):
    """An image payload could not be decoded or processed."""


class EnrichmentFailure(SiteCaptureError):
    """Reverse geocoding failed or returned no match. Absorbed by LocationEnricher."""


class AuthFailure(SiteCaptureError):
    """Bearer credential missing or expired."""


class CompositionFailure(SiteCaptureError):
    """Layout aborted because an observation's bitmap failed to decode."""

    def __init__(self, caused_by: DecodeFailure, at_index: int) -> None:
        super().__init__(f"composition failed at observation {at_index}: {caused_by}")
        self.caused_by = caused_by
        self.at_index = at_index


class DispatchFailure(SiteCaptureError):
    """Transport or I/O error while shipping to a sink."""


class EmptyExport(SiteCaptureError):
    """Export attempted with zero observations."""


class ExportInProgress(SiteCaptureError):
    """A second export was triggered while one is in flight for the same session."""


class IndexOutOfRange(SiteCaptureError, IndexError):
    """Store index outside [0, count)."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"index {index} out of range for store of size {count}")
        self.index = index
        self.count = count


class UnknownField(SiteCaptureError, KeyError):
    """Field name is not one of the updatable observation fields."""

    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"unknown or read-only observation field: {self.field!r}"


class InvalidFieldValue(SiteCaptureError, ValueError):
    """Value cannot be coerced into the field's type or range."""
