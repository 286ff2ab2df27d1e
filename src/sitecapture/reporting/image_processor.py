"""Image processor: decode captured payloads and normalize brightness before layout."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from sitecapture.errors import DecodeFailure

logger = logging.getLogger(__name__)


def decode_image(payload: bytes) -> np.ndarray:
    """Decode an encoded image (JPEG/PNG/...) to a BGR or BGRA array. Raises DecodeFailure."""
    if not payload:
        raise DecodeFailure("empty image payload")
    buf = np.frombuffer(payload, dtype=np.uint8)
    try:
        image = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeFailure(f"image decode error: {e}") from e
    if image is None or image.size == 0:
        raise DecodeFailure(f"payload of {len(payload)} bytes is not a decodable image")
    if image.dtype != np.uint8:
        # 16-bit PNG/TIFF: bring down to 8 bits per channel
        image = (image / 257).astype(np.uint8)
    return image


def encode_image(image: np.ndarray, ext: str = ".png", jpeg_quality: int = 90) -> bytes:
    """Encode an array to bytes in the given container format."""
    params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality] if ext.lower() in (".jpg", ".jpeg") else []
    ok, buf = cv2.imencode(ext, image, params)
    if not ok:
        raise DecodeFailure(f"could not encode image as {ext}")
    return buf.tobytes()


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel BGR copy of a gray, BGR or BGRA image (alpha composited on white)."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if channels == 4:
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        color = image[:, :, :3].astype(np.float32)
        return (color * alpha + 255.0 * (1.0 - alpha)).round().astype(np.uint8)
    return image.copy()


def scale_brightness(image: np.ndarray, factor: float) -> np.ndarray:
    """Scale every colour channel by factor, clip to [0, 255]; alpha untouched. Returns a new array."""
    if factor < 0:
        raise ValueError(f"brightness factor must be >= 0, got {factor}")
    out = image.copy()
    if out.ndim == 2:
        color = out
    else:
        color = out[:, :, :3]
    scaled = np.clip(color.astype(np.float32) * np.float32(factor), 0, 255)
    # round-half-even keeps integer inputs exact at factor 1.0
    color[...] = np.rint(scaled).astype(np.uint8)
    return out


def adjust_brightness(bitmap: bytes, factor: float) -> np.ndarray:
    """
    Decode a captured bitmap and scale its luminance by factor.

    factor == 1.0 reproduces the decoded input exactly. The result never aliases
    the input payload. Decode errors propagate as DecodeFailure.
    """
    image = decode_image(bitmap)
    out = scale_brightness(image, factor)
    logger.debug("adjust_brightness: %dx%d factor=%.2f", out.shape[1], out.shape[0], factor)
    return out
