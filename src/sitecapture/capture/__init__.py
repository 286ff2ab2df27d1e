"""Adapters for the capture-side collaborators: camera frames and reverse geocoding."""

from .camera import FrameSource, ImageFileFrameSource, WebcamFrameSource, capture_payload
from .geocoding import GeocodingClient, LocationEnricher, resolve_landmark, snapshot_from_results

__all__ = [
    "FrameSource",
    "ImageFileFrameSource",
    "WebcamFrameSource",
    "capture_payload",
    "GeocodingClient",
    "LocationEnricher",
    "resolve_landmark",
    "snapshot_from_results",
]
