"""Frame sources for the camera collaborator - webcam, image files."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

import cv2

from sitecapture.errors import CaptureFailure

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Abstract camera collaborator. Subclasses: WebcamFrameSource, ImageFileFrameSource."""

    @abstractmethod
    def read_payload(self) -> bytes | None:
        """Return the next frame as encoded image bytes, or None when no frame is available."""
        ...

    def release(self) -> None:
        """Release resources."""

    def __enter__(self) -> FrameSource:
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class WebcamFrameSource(FrameSource):
    """Frames from a webcam by index, JPEG-encoded."""

    def __init__(self, index: int = 0, jpeg_quality: int = 92) -> None:
        self._index = index
        self._jpeg_quality = jpeg_quality
        self._cap: cv2.VideoCapture | None = cv2.VideoCapture(index)
        if not self._cap.isOpened():
            logger.error("WebcamFrameSource: failed to open webcam index=%s", index)
            self._cap = None
        else:
            logger.info("WebcamFrameSource: opened index=%s", index)

    def read_payload(self) -> bytes | None:
        if self._cap is None:
            return None
        ret, frame = self._cap.read()
        if not ret:
            logger.debug("WebcamFrameSource: read failed or end of stream")
            return None
        ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self._jpeg_quality])
        if not ok:
            return None
        return buf.tobytes()

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("WebcamFrameSource: released")


class ImageFileFrameSource(FrameSource):
    """Replays image files in order; each read returns the file's raw bytes."""

    def __init__(self, paths: Iterable[str | Path]) -> None:
        self._paths = [Path(p) for p in paths]
        self._pos = 0

    def read_payload(self) -> bytes | None:
        if self._pos >= len(self._paths):
            return None
        path = self._paths[self._pos]
        self._pos += 1
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("ImageFileFrameSource: cannot read %s: %s", path, e)
            return None


def capture_payload(source: FrameSource) -> bytes:
    """Grab one frame from the source. Raises CaptureFailure if none is available."""
    payload = source.read_payload()
    if not payload:
        raise CaptureFailure("no frame available from camera")
    return payload
