"""Session configuration - dataclass, env vars, and CLI overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


# Load .env from the working directory and the project root so SITECAPTURE_ACCESS_TOKEN etc. are set
def _load_dotenv() -> None:
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    # config.py lives in src/sitecapture/ -> 3 levels up = project root
    base = Path(__file__).resolve().parent.parent.parent
    load_dotenv(Path.cwd() / ".env")
    load_dotenv(base / ".env")


_load_dotenv()

GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


def _env(key: str, default: str) -> str:
    """Read env var with default."""
    return os.environ.get(key, default)


def _split(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip())


def load_config(
    *,
    output_dir: str | None = None,
    message_api_url: str | None = None,
    mail_to: str | list[str] | tuple[str, ...] | None = None,
    mail_cc: str | list[str] | tuple[str, ...] | None = None,
    mail_subject: str | None = None,
    mail_body: str | None = None,
    attachment_name: str | None = None,
    access_token: str | None = None,
    token_expires_at: float | None = None,
    geocoding_url: str | None = None,
    geocoding_api_key: str | None = None,
    request_timeout: float | None = None,
    brightness: float | None = None,
    on_decode_failure: str | None = None,
    page_width: int | None = None,
    page_height: int | None = None,
    page_dpi: int | None = None,
    logo_path: str | None = None,
    cover_image_path: str | None = None,
    log_level: str | None = None,
) -> SessionConfig:
    """Load config. CLI/args override env vars."""
    def _str(k: str, d: str, override: str | None) -> str:
        return override if override is not None else _env(k, d)

    def _int(k: str, d: int, override: int | None) -> int:
        if override is not None:
            return override
        return int(_env(k, str(d)))

    def _float(k: str, d: float, override: float | None) -> float:
        if override is not None:
            return override
        return float(_env(k, str(d)))

    def _list(k: str, override: str | list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
        if override is None:
            return _split(_env(k, ""))
        if isinstance(override, str):
            return _split(override)
        return tuple(override)

    expires_raw = _env("SITECAPTURE_TOKEN_EXPIRES_AT", "")
    expires_at = token_expires_at if token_expires_at is not None else (float(expires_raw) if expires_raw else None)

    policy = _str("SITECAPTURE_ON_DECODE_FAILURE", "abort", on_decode_failure).strip().lower()
    if policy not in ("abort", "skip"):
        raise ValueError(f"on_decode_failure must be 'abort' or 'skip', got {policy!r}")

    return SessionConfig(
        output_dir=_str("SITECAPTURE_OUTPUT_DIR", "exports", output_dir),
        message_api_url=_str("SITECAPTURE_MESSAGE_API_URL", GMAIL_SEND_URL, message_api_url),
        mail_to=_list("SITECAPTURE_MAIL_TO", mail_to),
        mail_cc=_list("SITECAPTURE_MAIL_CC", mail_cc),
        mail_subject=_str("SITECAPTURE_MAIL_SUBJECT", "Captured Image and Details", mail_subject),
        mail_body=_str("SITECAPTURE_MAIL_BODY", "Here is the captured image and details.", mail_body),
        attachment_name=_str("SITECAPTURE_ATTACHMENT_NAME", "inspection-report.pdf", attachment_name),
        access_token=_str("SITECAPTURE_ACCESS_TOKEN", "", access_token),
        token_expires_at=expires_at,
        geocoding_url=_str("SITECAPTURE_GEOCODING_URL", GEOCODE_URL, geocoding_url),
        geocoding_api_key=_str("SITECAPTURE_GEOCODING_API_KEY", "", geocoding_api_key),
        request_timeout=_float("SITECAPTURE_REQUEST_TIMEOUT", 10.0, request_timeout),
        brightness=_float("SITECAPTURE_BRIGHTNESS", 1.0, brightness),
        on_decode_failure=policy,
        page_width=_int("SITECAPTURE_PAGE_WIDTH", 1240, page_width),
        page_height=_int("SITECAPTURE_PAGE_HEIGHT", 1754, page_height),
        page_dpi=_int("SITECAPTURE_PAGE_DPI", 150, page_dpi),
        logo_path=_str("SITECAPTURE_LOGO_PATH", "", logo_path),
        cover_image_path=_str("SITECAPTURE_COVER_IMAGE_PATH", "", cover_image_path),
        log_level=_str("SITECAPTURE_LOG_LEVEL", "INFO", log_level),
    )


@dataclass(frozen=True)
class SessionConfig:
    """Configuration passed in at session start."""

    # Directory for archive and file exports
    output_dir: str = "exports"

    # Message API endpoint (Gmail users.messages.send compatible) and envelope
    message_api_url: str = GMAIL_SEND_URL
    mail_to: tuple[str, ...] = ()
    mail_cc: tuple[str, ...] = ()
    mail_subject: str = "Captured Image and Details"
    mail_body: str = "Here is the captured image and details."
    attachment_name: str = "inspection-report.pdf"

    # Bearer token obtained out-of-band (empty = not authorized); expiry as unix time
    access_token: str = ""
    token_expires_at: float | None = None

    # Reverse geocoding endpoint (Google Geocoding compatible) and key
    geocoding_url: str = GEOCODE_URL
    geocoding_api_key: str = ""

    # HTTP timeout in seconds for geocoding and message dispatch
    request_timeout: float = 10.0

    # Brightness factor applied to every photo at composition time (1.0 = unchanged)
    brightness: float = 1.0

    # What to do when a photo fails to decode: abort the whole report, or skip that page
    on_decode_failure: str = "abort"

    # Page canvas in pixels and the resolution written into the PDF
    page_width: int = 1240
    page_height: int = 1754
    page_dpi: int = 150

    # Optional artwork; empty = built-in placeholder artwork
    logo_path: str = ""
    cover_image_path: str = ""

    # Log level
    log_level: str = "INFO"
