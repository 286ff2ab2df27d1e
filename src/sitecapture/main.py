"""
Entrypoint: build an inspection report from a manifest of captured photos and export it.

Usage:
    sitecapture observations.json --sink file
    sitecapture observations.json --sink archive --out exports/
    sitecapture observations.json --sink message --lat 52.37 --lon 4.89

Manifest format:
    {
      "facility": "Tower A",
      "reporter": "Jane",
      "location": {"latitude": 52.37, "longitude": 4.89},
      "observations": [
        {"image": "photos/hall.jpg", "type": "Floor", "condition": "Dirty", "floor": 3}
      ]
    }
Image paths are relative to the manifest's folder.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from sitecapture.capture.camera import ImageFileFrameSource, capture_payload
from sitecapture.capture.geocoding import GeocodingClient, LocationEnricher
from sitecapture.config import SessionConfig, load_config
from sitecapture.errors import SiteCaptureError
from sitecapture.export.dispatcher import ExportDispatcher, Sink
from sitecapture.session.state import SessionState
from sitecapture.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    p = argparse.ArgumentParser(
        description="Compose a paginated inspection report from captured photos and export it.",
    )
    p.add_argument("manifest", type=str, help="JSON manifest listing the captured observations")
    p.add_argument(
        "--sink",
        choices=[s.value for s in Sink],
        default=Sink.FILE.value,
        help="Where to send the result: file (PDF), archive (zip of raw photos), message (mail). Default: file",
    )
    p.add_argument("--facility", type=str, default=None, help="Facility name (overrides manifest)")
    p.add_argument("--reporter", type=str, default=None, help="Reporter name (overrides manifest)")
    p.add_argument("--lat", type=float, default=None, help="Latitude for address lookup (overrides manifest)")
    p.add_argument("--lon", type=float, default=None, help="Longitude for address lookup (overrides manifest)")
    p.add_argument("--out", type=str, default=None, help="Output directory for file/archive exports")
    p.add_argument("--brightness", type=float, default=None, help="Brightness factor for photos (1.0 = unchanged)")
    p.add_argument(
        "--on-decode-failure",
        choices=["abort", "skip"],
        default=None,
        help="abort: fail the report if a photo cannot be decoded; skip: leave that page out",
    )
    p.add_argument("--to", type=str, default=None, help="Comma-separated recipients (message sink)")
    p.add_argument("--cc", type=str, default=None, help="Comma-separated Cc recipients (message sink)")
    p.add_argument("--log-level", type=str, default=None, help="Log level")
    p.add_argument("--log-file", type=str, default=None, help="Also append log output to this file")
    return p.parse_args(argv)


def load_manifest(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not isinstance(data.get("observations", []), list):
        raise ValueError(f"{path}: expected an object with an 'observations' list")
    base = path.parent
    for i, item in enumerate(data.get("observations", [])):
        if not isinstance(item, dict) or not isinstance(item.get("image"), str) or not item["image"]:
            raise ValueError(f"{path}: observation {i} needs an 'image' path")
        image = Path(item["image"])
        item["image"] = str(image if image.is_absolute() else (base / image).resolve())
    return data


def build_session(manifest: dict[str, Any], config: SessionConfig, args: argparse.Namespace) -> SessionState:
    """Replay the manifest's captures into a fresh session."""
    session = SessionState(
        config,
        facility_name=args.facility if args.facility is not None else manifest.get("facility", ""),
        reporter_name=args.reporter if args.reporter is not None else manifest.get("reporter", ""),
    )
    items = manifest.get("observations", [])
    with ImageFileFrameSource(item["image"] for item in items) as source:
        for item in items:
            payload = capture_payload(source)
            session.record_capture(
                payload,
                item.get("type", "Classroom"),
                item.get("condition", "Clean"),
                item.get("floor", 1),
            )
    return session


async def run(args: argparse.Namespace, config: SessionConfig) -> int:
    manifest = load_manifest(args.manifest)
    session = build_session(manifest, config, args)
    logger.info("Session: %d observations for %r", len(session.store), session.facility_name)

    loc = manifest.get("location") or {}
    lat = args.lat if args.lat is not None else loc.get("latitude")
    lon = args.lon if args.lon is not None else loc.get("longitude")
    if lat is not None and lon is not None:
        enricher = LocationEnricher(GeocodingClient.from_config(config))
        session.set_location(await enricher.resolve_async(float(lat), float(lon)))

    dispatcher = ExportDispatcher(config)
    result = await dispatcher.export(session, args.sink)
    if result is None:
        return 1
    target = result.path or result.filename
    print(f"{result.sink.value}: {target} ({result.size_bytes} bytes)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run one export. Returns 0 on success, 1 on a reported failure."""
    args = parse_args(argv)
    config = load_config(
        output_dir=args.out,
        brightness=args.brightness,
        on_decode_failure=args.on_decode_failure,
        mail_to=args.to,
        mail_cc=args.cc,
        log_level=args.log_level,
    )
    setup_logging(config.log_level, args.log_file)
    try:
        return asyncio.run(run(args, config))
    except SiteCaptureError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Invalid input: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
