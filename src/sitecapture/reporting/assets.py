"""Report artwork: header logo and cover illustration, from files or built-in placeholders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from .image_processor import decode_image, to_bgr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportAssets:
    logo: np.ndarray
    cover: np.ndarray


def default_logo(size: int = 180) -> np.ndarray:
    """Square emblem: filled disc with a check mark."""
    img = np.full((size, size, 3), 255, dtype=np.uint8)
    c = size // 2
    cv2.circle(img, (c, c), int(size * 0.46), (140, 90, 30), -1, cv2.LINE_AA)
    pts = np.array([[0.28, 0.52], [0.44, 0.68], [0.74, 0.34]]) * size
    cv2.polylines(img, [pts.astype(np.int32)], False, (255, 255, 255), max(2, size // 14), cv2.LINE_AA)
    return img


def default_cover(width: int = 800, height: int = 560) -> np.ndarray:
    """Simple building illustration for the cover page."""
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    ground = int(height * 0.88)
    cv2.line(img, (0, ground), (width, ground), (90, 90, 90), 4, cv2.LINE_AA)
    bx1, bx2 = int(width * 0.25), int(width * 0.75)
    by1 = int(height * 0.18)
    cv2.rectangle(img, (bx1, by1), (bx2, ground), (140, 90, 30), -1)
    cols, rows = 4, 5
    cell_w = (bx2 - bx1) / cols
    cell_h = (ground - by1) / (rows + 1)
    for r in range(rows):
        for c in range(cols):
            x = int(bx1 + c * cell_w + cell_w * 0.25)
            y = int(by1 + r * cell_h + cell_h * 0.3)
            cv2.rectangle(img, (x, y), (int(x + cell_w * 0.5), int(y + cell_h * 0.5)), (230, 220, 200), -1)
    door_w = int(cell_w * 0.7)
    cx = (bx1 + bx2) // 2
    cv2.rectangle(img, (cx - door_w // 2, ground - int(cell_h * 0.9)), (cx + door_w // 2, ground), (60, 40, 20), -1)
    return img


def _load(path: str, fallback: np.ndarray, what: str) -> np.ndarray:
    if not path:
        return fallback
    p = Path(path)
    if not p.exists():
        logger.warning("%s not found at %s; using built-in artwork", what, p)
        return fallback
    return to_bgr(decode_image(p.read_bytes()))


def load_assets(logo_path: str = "", cover_image_path: str = "") -> ReportAssets:
    """Load artwork from disk; empty or missing paths fall back to the placeholders."""
    return ReportAssets(
        logo=_load(logo_path, default_logo(), "Logo"),
        cover=_load(cover_image_path, default_cover(), "Cover image"),
    )
