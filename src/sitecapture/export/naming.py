"""Export filenames: sanitized identity fields plus a sortable local timestamp."""

from __future__ import annotations

import re
from datetime import datetime

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9_-]")

EMPTY_NAME = "unnamed"


def sanitize(text: str) -> str:
    """Collapse whitespace runs to '_', then drop every character outside [A-Za-z0-9_-]."""
    collapsed = _WHITESPACE.sub("_", (text or "").strip())
    cleaned = _DISALLOWED.sub("", collapsed)
    return cleaned or EMPTY_NAME


def timestamp_slug(moment: datetime | None = None) -> str:
    """Local date-time as YYYY-MM-DD_HH-MM (':' replaced by '-')."""
    return (moment or datetime.now()).strftime("%Y-%m-%d_%H:%M").replace(":", "-")


def archive_filename(reporter_name: str, facility_name: str, moment: datetime | None = None) -> str:
    return f"{sanitize(reporter_name)}_{sanitize(facility_name)}_{timestamp_slug(moment)}.zip"


def document_filename(facility_name: str, moment: datetime | None = None) -> str:
    return f"{sanitize(facility_name)}_{timestamp_slug(moment)}.pdf"


def image_extension(payload: bytes) -> str:
    """Guess a file extension from the payload's magic bytes."""
    if payload.startswith(b"\xff\xd8\xff"):
        return "jpg"
    if payload.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "webp"
    if payload[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if payload[:2] == b"BM":
        return "bmp"
    return "bin"
