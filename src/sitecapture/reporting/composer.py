"""
Report composer: observations + location + identity -> paginated Document.

Page 1 is the cover; page i+1 shows observation i. Every coordinate is derived
from the PageLayout (canvas size plus named margins/offsets), so the relative
layout is the same whatever the page count. Photos are brightness-adjusted in
worker threads and reassembled in observation order before pages are built.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

import numpy as np

from sitecapture.config import SessionConfig
from sitecapture.errors import CompositionFailure, DecodeFailure
from sitecapture.session.types import NOT_AVAILABLE, LocationSnapshot, Observation

from .assets import ReportAssets, load_assets
from .document import (
    PANEL_FILL,
    PANEL_TEXT,
    CoverPage,
    Document,
    Element,
    ImageElement,
    ObservationPage,
    PageLayout,
    PanelElement,
    RuleElement,
    TextElement,
    page_label,
)
from .image_processor import adjust_brightness, to_bgr

logger = logging.getLogger(__name__)

DECODE_POLICIES = ("abort", "skip")


def layout_from_config(config: SessionConfig) -> PageLayout:
    return PageLayout(width=config.page_width, height=config.page_height, dpi=config.page_dpi)


def fit_box(src_w: int, src_h: int, max_w: int, max_h: int) -> tuple[int, int]:
    """Largest (w, h) with the source aspect ratio that fits in max_w x max_h."""
    if src_w <= 0 or src_h <= 0:
        return max(1, max_w), max(1, max_h)
    scale = min(max_w / src_w, max_h / src_h)
    return max(1, int(src_w * scale)), max(1, int(src_h * scale))


def _coord(value: float | str) -> str:
    if isinstance(value, (int, float)):
        return f"{value:.6f}"
    return str(value)


def _value(text: str) -> str:
    return text if text else NOT_AVAILABLE


def panel_lines(observation: Observation, location: LocationSnapshot) -> list[str]:
    """Metadata panel content for one observation: its own type, condition and floor plus the location."""
    return [
        f"Latitude: {_coord(location.latitude)}",
        f"Longitude: {_coord(location.longitude)}",
        f"Timestamp: {_value(location.timestamp)}",
        f"Floor: {observation.floor_number}",
        f"Type: {observation.capture_type}",
        f"Condition: {observation.condition}",
        f"Street: {_value(location.street)}, Zip: {_value(location.zipcode)}, No.: {_value(location.house_number)}",
        f"City: {_value(location.city)}, Country: {_value(location.country)}",
        f"Landmark: {_value(location.landmark)}",
    ]


def description_lines(observation: Observation) -> list[str]:
    return [
        f"{observation.capture_type} - {observation.condition}",
        f"Floor: {observation.floor_number}",
        f"Captured: {observation.captured_at:%Y-%m-%d %H:%M}",
    ]


def _page_number(layout: PageLayout, index: int, total: int) -> TextElement:
    return TextElement(
        text=page_label(index, total),
        x=layout.width - layout.margin,
        y=layout.bottom,
        size=layout.footer_text_size,
        role="page_label",
        anchor="right",
    )


def layout_cover(
    facility_name: str,
    reporter_name: str,
    total_pages: int,
    cover_size: tuple[int, int],
    layout: PageLayout,
) -> list[Element]:
    """Title top-left, illustration centered in the middle band, reporter centered near the bottom."""
    band_top = int(layout.height * layout.cover_band_top)
    band_h = int(layout.height * layout.cover_band_bottom) - band_top
    w, h = fit_box(cover_size[0], cover_size[1], layout.content_width, band_h)
    return [
        TextElement(
            text=facility_name,
            x=layout.margin,
            y=layout.margin + layout.title_size,
            size=layout.title_size,
            role="title",
            bold=True,
            max_width=layout.content_width,
        ),
        ImageElement(
            image="cover",
            x=(layout.width - w) // 2,
            y=band_top + (band_h - h) // 2,
            width=w,
            height=h,
            role="cover_image",
        ),
        TextElement(
            text=reporter_name,
            x=layout.width // 2,
            y=layout.bottom - layout.cover_reporter_offset,
            size=layout.header_text_size,
            role="reporter",
            anchor="center",
            max_width=layout.content_width,
        ),
        _page_number(layout, 1, total_pages),
    ]


def layout_observation(
    observation: Observation,
    location: LocationSnapshot,
    facility_name: str,
    page_index: int,
    total_pages: int,
    photo_size: tuple[int, int],
    layout: PageLayout,
) -> list[Element]:
    """Header band, photo with metadata panel, description column, footer."""
    L = layout
    elements: list[Element] = []

    # Header band: logo + facility name, then the header rule
    elements.append(ImageElement("logo", L.margin, L.margin, L.logo_size, L.logo_size, role="logo"))
    header_x = L.margin + L.logo_size + L.header_text_gap
    elements.append(
        TextElement(
            text=facility_name,
            x=header_x,
            y=L.margin + (L.logo_size + L.header_text_size) // 2,
            size=L.header_text_size,
            role="header",
            bold=True,
            max_width=L.width - L.margin - header_x,
        )
    )
    rule_y = L.margin + L.logo_size + L.header_rule_gap
    elements.append(RuleElement(L.margin, L.width - L.margin, rule_y, role="header_rule"))

    # Body: photo at the left margin below the gutter, description column to its right
    footer_rule_y = L.bottom - L.footer_rule_offset
    body_top = rule_y + L.body_gutter
    max_w = L.content_width - L.column_gap - L.side_column_width
    max_h = footer_rule_y - body_top - L.column_gap
    lines = panel_lines(observation, location)
    bw, bh = fit_box(photo_size[0], photo_size[1], max_w, max_h)
    # Wide, short photos get a taller box (center-cropped when drawn) so the panel keeps its line pitch
    min_h = 2 * L.panel_inset + 2 * L.panel_padding + len(lines) * L.panel_min_line_height
    bh = max(bh, min(min_h, max_h))
    bx, by = L.margin, body_top
    elements.append(ImageElement("photo", bx, by, bw, bh, role="photo"))

    # Metadata panel: top-right corner, clamped inside the photo
    usable_h = bh - 2 * L.panel_inset - 2 * L.panel_padding
    line_h = max(L.panel_min_line_height, min(L.panel_line_height, usable_h // len(lines)))
    text_size = max(6, min(line_h, L.panel_text_size * line_h // L.panel_line_height))
    panel_w = max(1, min(int(bw * L.panel_width_ratio), bw - 2 * L.panel_inset))
    panel_h = max(1, min(2 * L.panel_padding + line_h * len(lines), bh - 2 * L.panel_inset))
    px = bx + bw - L.panel_inset - panel_w
    py = by + L.panel_inset
    elements.append(PanelElement(px, py, panel_w, panel_h, L.panel_radius, PANEL_FILL))
    for i, line in enumerate(lines):
        elements.append(
            TextElement(
                text=line,
                x=px + L.panel_padding,
                y=py + L.panel_padding + i * line_h + (line_h + text_size) // 2,
                size=text_size,
                role="panel",
                color=PANEL_TEXT,
                max_width=panel_w - 2 * L.panel_padding,
            )
        )

    col_x = bx + bw + L.column_gap
    for i, line in enumerate(description_lines(observation)):
        elements.append(
            TextElement(
                text=line,
                x=col_x,
                y=by + L.body_text_size + i * L.line_height,
                size=L.body_text_size,
                role="description",
                bold=(i == 0),
                max_width=L.side_column_width,
            )
        )

    # Footer: rule, address line, page number on the same baseline
    elements.append(RuleElement(L.margin, L.width - L.margin, footer_rule_y, role="footer_rule"))
    elements.append(
        TextElement(
            text=location.address_line() or NOT_AVAILABLE,
            x=L.margin,
            y=L.bottom,
            size=L.footer_text_size,
            role="address",
            max_width=L.content_width - L.page_label_width,
        )
    )
    elements.append(_page_number(L, page_index, total_pages))
    return elements


def _process(bitmap: bytes, factor: float) -> np.ndarray:
    return to_bgr(adjust_brightness(bitmap, factor))


async def process_photos(observations: tuple[Observation, ...], brightness: float) -> list[np.ndarray | BaseException]:
    """Adjust every photo concurrently; results come back in observation order."""
    return await asyncio.gather(
        *(asyncio.to_thread(_process, obs.image_bitmap, brightness) for obs in observations),
        return_exceptions=True,
    )


async def compose(
    observations: Iterable[Observation],
    location: LocationSnapshot | None,
    facility_name: str,
    reporter_name: str,
    *,
    layout: PageLayout | None = None,
    brightness: float = 1.0,
    on_decode_failure: str = "abort",
    assets: ReportAssets | None = None,
) -> Document:
    """
    Build the Document for a store snapshot.

    on_decode_failure="abort" (default): the first observation (lowest index)
    whose photo fails to decode raises CompositionFailure and nothing is returned.
    "skip": that observation's page is left out and the rest are laid out.
    """
    if on_decode_failure not in DECODE_POLICIES:
        raise ValueError(f"on_decode_failure must be one of {DECODE_POLICIES}, got {on_decode_failure!r}")
    snapshot = tuple(observations)
    layout = layout or PageLayout()
    location = location or LocationSnapshot.unavailable()
    assets = assets or load_assets()

    results = await process_photos(snapshot, brightness)

    kept: list[tuple[Observation, np.ndarray]] = []
    skipped: tuple[DecodeFailure, int] | None = None
    for index, (obs, result) in enumerate(zip(snapshot, results)):
        if isinstance(result, DecodeFailure):
            if on_decode_failure == "abort":
                raise CompositionFailure(result, index) from result
            logger.warning("Skipping observation %d: %s", index, result)
            skipped = (result, index)
            continue
        if isinstance(result, BaseException):
            raise result
        kept.append((obs, result))
    if snapshot and not kept and skipped is not None:
        # Every photo was skipped; a cover-only report is not a result
        raise CompositionFailure(*skipped) from skipped[0]

    total = len(kept) + 1
    cover_h, cover_w = assets.cover.shape[:2]
    pages: list[CoverPage | ObservationPage] = [
        CoverPage(
            facility_name=facility_name,
            reporter_name=reporter_name,
            total_pages=total,
            elements=layout_cover(facility_name, reporter_name, total, (cover_w, cover_h), layout),
            images={"cover": assets.cover},
        )
    ]
    for offset, (obs, photo) in enumerate(kept):
        page_index = offset + 2
        h, w = photo.shape[:2]
        pages.append(
            ObservationPage(
                observation=obs,
                location=location,
                page_index=page_index,
                total_pages=total,
                processed_image=photo,
                elements=layout_observation(
                    obs, location, obs.facility_name or facility_name, page_index, total, (w, h), layout
                ),
                images={"logo": assets.logo, "photo": photo},
            )
        )
        logger.debug("Laid out page %d/%d (%s, floor %d)", page_index, total, obs.capture_type, obs.floor_number)

    logger.info("Composed report for %r: %d pages", facility_name, total)
    return Document(pages=tuple(pages), facility_name=facility_name, reporter_name=reporter_name, layout=layout)


def compose_sync(*args, **kwargs) -> Document:
    """Run compose() to completion from synchronous code."""
    return asyncio.run(compose(*args, **kwargs))
