"""Shared fixtures: small encoded photos and ready-made observations."""

from __future__ import annotations

from datetime import datetime

import cv2
import numpy as np
import pytest

from sitecapture.reporting.assets import ReportAssets, default_cover, default_logo
from sitecapture.session.types import CaptureType, Condition, Observation


def make_png(width: int = 64, height: int = 48, seed: int = 0) -> bytes:
    rng = np.random.default_rng(seed)
    img = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def assets() -> ReportAssets:
    return ReportAssets(logo=default_logo(60), cover=default_cover(200, 140))


def make_observation(
    capture_type: CaptureType = CaptureType.CLASSROOM,
    condition: Condition = Condition.CLEAN,
    floor: int = 1,
    *,
    seed: int = 0,
    bitmap: bytes | None = None,
) -> Observation:
    return Observation(
        image_bitmap=bitmap if bitmap is not None else make_png(seed=seed),
        capture_type=capture_type,
        condition=condition,
        floor_number=floor,
        reporter_name="Jane",
        facility_name="Tower A",
        captured_at=datetime(2026, 3, 14, 9, 30),
    )
