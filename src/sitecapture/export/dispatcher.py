"""
Export dispatcher: ship a finished Document (or the raw photos) to one sink.

Sinks: message (multipart mail with the PDF attached, via the Message API),
archive (zip of the unprocessed photos) and file (the PDF on disk). Blocking
work runs in worker threads so the event loop stays responsive; a failed export
leaves the session exactly as it was so the caller can retry.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Sequence

from sitecapture.config import SessionConfig
from sitecapture.errors import DispatchFailure, EmptyExport, SiteCaptureError
from sitecapture.reporting.assets import ReportAssets, load_assets
from sitecapture.reporting.composer import compose, layout_from_config
from sitecapture.reporting.document import Document
from sitecapture.reporting.renderer import serialize_document
from sitecapture.session.state import SessionState, SessionView
from sitecapture.session.types import Observation

from .auth import CredentialProvider, StaticCredentialProvider, require_token
from .mail import MessageClient, build_message, encode_raw
from .naming import archive_filename, document_filename, image_extension, sanitize

logger = logging.getLogger(__name__)


class Sink(str, Enum):
    MESSAGE = "message"
    ARCHIVE = "archive"
    FILE = "file"


@dataclass
class ExportResult:
    sink: Sink
    filename: str
    size_bytes: int
    path: Path | None = None
    response: dict[str, Any] = field(default_factory=dict)


def archive_entry_name(index: int, observation: Observation) -> str:
    return (
        f"{index + 1:03d}_{sanitize(observation.capture_type.value)}_"
        f"{sanitize(observation.condition.value)}_floor{observation.floor_number}."
        f"{image_extension(observation.image_bitmap)}"
    )


def build_archive(observations: Sequence[Observation]) -> bytes:
    """Zip the raw (unprocessed) photos plus a manifest.json describing each entry."""
    if not observations:
        raise EmptyExport("no observations to archive")
    manifest = []
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for i, obs in enumerate(observations):
            name = archive_entry_name(i, obs)
            zf.writestr(name, obs.image_bitmap)
            manifest.append({
                "file": name,
                "capture_type": obs.capture_type.value,
                "condition": obs.condition.value,
                "floor_number": obs.floor_number,
                "reporter_name": obs.reporter_name,
                "facility_name": obs.facility_name,
                "captured_at": obs.captured_at.isoformat(timespec="seconds"),
            })
        zf.writestr("manifest.json", json.dumps(manifest, indent=2, ensure_ascii=False))
    return buf.getvalue()


def _write(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        path.unlink(missing_ok=True)
        raise DispatchFailure(f"cannot write {path}: {e}") from e


class ExportDispatcher:
    """Serializes documents and photo sets into the configured sinks."""

    def __init__(
        self,
        config: SessionConfig,
        *,
        credentials: CredentialProvider | None = None,
        message_client: MessageClient | None = None,
        assets: ReportAssets | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._credentials = credentials or StaticCredentialProvider.from_config(config)
        self._message_client = message_client or MessageClient.from_config(config)
        self._assets = assets
        self._clock = clock

    @property
    def output_dir(self) -> Path:
        return Path(self._config.output_dir)

    @property
    def assets(self) -> ReportAssets:
        if self._assets is None:
            self._assets = load_assets(self._config.logo_path, self._config.cover_image_path)
        return self._assets

    async def send_message(self, document: Document) -> ExportResult:
        """Mail the PDF. AuthFailure before any network call; DispatchFailure on transport errors."""
        if not document.observation_pages:
            raise EmptyExport("no observations to send")
        token = require_token(self._credentials)
        pdf = await asyncio.to_thread(serialize_document, document)
        message = build_message(
            to=self._config.mail_to,
            cc=self._config.mail_cc,
            subject=self._config.mail_subject,
            body=self._config.mail_body,
            attachment=pdf,
            attachment_name=self._config.attachment_name,
        )
        raw = encode_raw(message)
        response = await asyncio.to_thread(self._message_client.send, raw, token)
        logger.info("Report for %r sent as %s (%d bytes)", document.facility_name, self._config.attachment_name, len(pdf))
        return ExportResult(Sink.MESSAGE, self._config.attachment_name, len(pdf), response=response)

    async def export_archive(
        self, observations: Sequence[Observation], reporter_name: str, facility_name: str
    ) -> ExportResult:
        """Zip the unprocessed photos into the output directory."""
        data = build_archive(observations)
        filename = archive_filename(reporter_name, facility_name, self._clock())
        path = self.output_dir / filename
        await asyncio.to_thread(_write, path, data)
        logger.info("Archive written: %s (%d photos, %d bytes)", path, len(observations), len(data))
        return ExportResult(Sink.ARCHIVE, filename, len(data), path=path)

    async def export_file(self, document: Document) -> ExportResult:
        """Write the PDF into the output directory (manual hand-off channel)."""
        if not document.observation_pages:
            raise EmptyExport("no observations to export")
        pdf = await asyncio.to_thread(serialize_document, document)
        filename = document_filename(document.facility_name, self._clock())
        path = self.output_dir / filename
        await asyncio.to_thread(_write, path, pdf)
        logger.info("Report written: %s (%d pages)", path, document.total_pages)
        return ExportResult(Sink.FILE, filename, len(pdf), path=path)

    async def export(self, session: SessionState, sink: Sink | str) -> ExportResult | None:
        """
        Run one export for the session: snapshot, compose (unless archiving), dispatch.

        Raises ExportInProgress if another export holds the session. Returns None
        when the session was reset while the export was in flight; that outcome is
        stale, success or failure, and nothing about it is reported back.
        """
        sink = Sink(sink)
        with session.export_guard() as generation:
            view = session.view()
            if not view.observations:
                raise EmptyExport("no observations captured")
            try:
                result = await self._dispatch(view, sink)
            except SiteCaptureError as e:
                if session.is_current(generation):
                    raise
                logger.info("Session reset during %s export; discarding failure: %s", sink.value, e)
                return None
            if not session.is_current(generation):
                logger.info("Session reset during %s export; discarding result", sink.value)
                return None
            return result

    async def _dispatch(self, view: SessionView, sink: Sink) -> ExportResult:
        if sink is Sink.ARCHIVE:
            return await self.export_archive(view.observations, view.reporter_name, view.facility_name)
        if sink is Sink.MESSAGE:
            require_token(self._credentials)
        document = await compose(
            view.observations,
            view.location,
            view.facility_name,
            view.reporter_name,
            layout=layout_from_config(self._config),
            brightness=self._config.brightness,
            on_decode_failure=self._config.on_decode_failure,
            assets=self.assets,
        )
        if sink is Sink.MESSAGE:
            return await self.send_message(document)
        return await self.export_file(document)
