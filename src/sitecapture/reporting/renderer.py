"""Page renderer: draw laid-out elements onto canvases; serialize a Document to PDF bytes."""

from __future__ import annotations

import io
import logging
import unicodedata
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from .document import (
    WHITE,
    CoverPage,
    Document,
    ImageElement,
    ObservationPage,
    PageLayout,
    PanelElement,
    RuleElement,
    TextElement,
)

logger = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _ascii(text: str) -> str:
    """Hershey fonts only cover ASCII: strip accents, replace anything else with '?'."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.encode("ascii", "replace").decode("ascii")


def _font_metrics(el: TextElement) -> tuple[str, float, int, int]:
    """Return (text, scale, thickness, width) with the text shrunk to max_width if needed."""
    text = _ascii(el.text)
    thickness = 2 if el.bold else 1
    scale = cv2.getFontScaleFromHeight(FONT, max(1, el.size), thickness)
    (w, _), _ = cv2.getTextSize(text, FONT, scale, thickness)
    if el.max_width and w > el.max_width > 0:
        scale *= el.max_width / w
        (w, _), _ = cv2.getTextSize(text, FONT, scale, thickness)
    return text, scale, thickness, w


def draw_text(canvas: np.ndarray, el: TextElement) -> None:
    if not el.text:
        return
    text, scale, thickness, w = _font_metrics(el)
    x = el.x
    if el.anchor == "center":
        x = el.x - w // 2
    elif el.anchor == "right":
        x = el.x - w
    cv2.putText(canvas, text, (int(x), int(el.y)), FONT, scale, el.color, thickness, cv2.LINE_AA)


def crop_to_aspect(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Center-crop image to the width:height ratio; off by less than a pixel is left alone."""
    h, w = image.shape[:2]
    target_w = max(1, round(h * width / height))
    if abs(target_w - w) <= 1:
        return image
    if target_w < w:
        x0 = (w - target_w) // 2
        return image[:, x0 : x0 + target_w]
    target_h = max(1, round(w * height / width))
    y0 = (h - target_h) // 2
    return image[y0 : y0 + target_h]


def draw_image(canvas: np.ndarray, el: ImageElement, image: np.ndarray) -> None:
    """Resize image into the element box and paste it, clipped to the canvas."""
    h_canvas, w_canvas = canvas.shape[:2]
    fitted = crop_to_aspect(image, el.width, el.height)
    resized = cv2.resize(fitted, (el.width, el.height), interpolation=cv2.INTER_AREA)
    x1, y1 = max(0, el.x), max(0, el.y)
    x2, y2 = min(w_canvas, el.x + el.width), min(h_canvas, el.y + el.height)
    if x2 <= x1 or y2 <= y1:
        return
    canvas[y1:y2, x1:x2] = resized[y1 - el.y : y2 - el.y, x1 - el.x : x2 - el.x]


def draw_panel(canvas: np.ndarray, el: PanelElement) -> None:
    """Filled rounded rectangle: two overlapping rectangles plus four corner discs."""
    x1, y1 = el.x, el.y
    x2, y2 = el.x + el.width, el.y + el.height
    r = max(0, min(el.radius, el.width // 2, el.height // 2))
    cv2.rectangle(canvas, (x1 + r, y1), (x2 - r, y2), el.fill, -1)
    cv2.rectangle(canvas, (x1, y1 + r), (x2, y2 - r), el.fill, -1)
    if r:
        for cx, cy in ((x1 + r, y1 + r), (x2 - r, y1 + r), (x1 + r, y2 - r), (x2 - r, y2 - r)):
            cv2.circle(canvas, (cx, cy), r, el.fill, -1, cv2.LINE_AA)


def draw_rule(canvas: np.ndarray, el: RuleElement) -> None:
    cv2.line(canvas, (el.x1, el.y), (el.x2, el.y), el.color, el.thickness)


def render_page(page: CoverPage | ObservationPage, layout: PageLayout) -> np.ndarray:
    """Draw one page's elements, in order, onto a white BGR canvas."""
    canvas = np.full((layout.height, layout.width, 3), WHITE, dtype=np.uint8)
    for el in page.elements:
        if isinstance(el, ImageElement):
            image = page.images.get(el.image)
            if image is None:
                logger.debug("Page %d: no image for %r", page.page_index, el.image)
                continue
            draw_image(canvas, el, image)
        elif isinstance(el, PanelElement):
            draw_panel(canvas, el)
        elif isinstance(el, RuleElement):
            draw_rule(canvas, el)
        elif isinstance(el, TextElement):
            draw_text(canvas, el)
    return canvas


def render_document(document: Document) -> list[np.ndarray]:
    return [render_page(p, document.layout) for p in document.pages]


def serialize_document(document: Document) -> bytes:
    """Render every page and assemble a multi-page PDF."""
    pages = [Image.fromarray(cv2.cvtColor(c, cv2.COLOR_BGR2RGB)) for c in render_document(document)]
    buf = io.BytesIO()
    first, rest = pages[0], pages[1:]
    first.save(
        buf,
        format="PDF",
        save_all=True,
        append_images=rest,
        resolution=float(document.layout.dpi),
        title=f"Inspection report - {document.facility_name}",
        author=document.reporter_name,
    )
    data = buf.getvalue()
    logger.debug("serialize_document: %d pages, %d bytes", len(pages), len(data))
    return data


def save_document(document: Document, path: str | Path) -> Path:
    """Write the PDF to path (parent folders created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize_document(document))
    return path
