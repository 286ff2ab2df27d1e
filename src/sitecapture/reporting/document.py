"""Document types: pages, positioned drawing elements, and page geometry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from sitecapture.session.types import LocationSnapshot, Observation

# BGR colours
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
GREY = (120, 120, 120)
PANEL_FILL = (48, 40, 32)
PANEL_TEXT = (255, 255, 255)


@dataclass(frozen=True)
class PageLayout:
    """Page canvas (W x H, origin top-left) and the named margins/offsets every position derives from."""

    width: int = 1240
    height: int = 1754
    dpi: int = 150
    margin: int = 70
    # Header band (observation pages)
    logo_size: int = 90
    header_text_gap: int = 24
    header_rule_gap: int = 18
    # Wide gutter between the header rule and the photo
    body_gutter: int = 90
    # Description column beside the photo
    column_gap: int = 30
    side_column_width: int = 300
    # Metadata panel overlaid on the photo's top-right corner
    panel_width_ratio: float = 0.62
    panel_inset: int = 16
    panel_padding: int = 14
    panel_radius: int = 14
    panel_line_height: int = 30
    panel_text_size: int = 17
    # Floor for the line pitch; a short photo box is grown to fit it
    panel_min_line_height: int = 16
    # Footer
    footer_rule_offset: int = 50
    page_label_width: int = 260
    # Text sizes (cap height in pixels)
    title_size: int = 44
    header_text_size: int = 30
    body_text_size: int = 20
    footer_text_size: int = 18
    line_height: int = 34
    # Cover page
    cover_band_top: float = 0.30
    cover_band_bottom: float = 0.70
    cover_reporter_offset: int = 90

    @property
    def content_width(self) -> int:
        return self.width - 2 * self.margin

    @property
    def bottom(self) -> int:
        return self.height - self.margin


@dataclass(frozen=True)
class TextElement:
    """Text line. (x, y) is the baseline anchor; anchor is left | center | right."""

    text: str
    x: int
    y: int
    size: int
    role: str
    anchor: str = "left"
    color: tuple[int, int, int] = BLACK
    bold: bool = False
    # Renderer shrinks the text to fit when set
    max_width: int | None = None


@dataclass(frozen=True)
class ImageElement:
    """Image scaled into the box (x, y, width, height). ``image`` is a key into the page's image table."""

    image: str
    x: int
    y: int
    width: int
    height: int
    role: str


@dataclass(frozen=True)
class PanelElement:
    """Filled rounded rectangle."""

    x: int
    y: int
    width: int
    height: int
    radius: int
    fill: tuple[int, int, int]
    role: str = "metadata_panel"


@dataclass(frozen=True)
class RuleElement:
    """Horizontal rule from x1 to x2 at y."""

    x1: int
    x2: int
    y: int
    thickness: int = 2
    color: tuple[int, int, int] = GREY
    role: str = "rule"


Element = Union[TextElement, ImageElement, PanelElement, RuleElement]


@dataclass
class CoverPage:
    facility_name: str
    reporter_name: str
    total_pages: int
    page_index: int = 1
    elements: list[Element] = field(default_factory=list)
    images: dict[str, Any] = field(default_factory=dict)

    def texts(self, role: str | None = None) -> list[str]:
        return _texts(self.elements, role)


@dataclass
class ObservationPage:
    observation: Observation
    location: LocationSnapshot
    page_index: int
    total_pages: int
    processed_image: Any = None
    elements: list[Element] = field(default_factory=list)
    images: dict[str, Any] = field(default_factory=dict)

    def texts(self, role: str | None = None) -> list[str]:
        return _texts(self.elements, role)


Page = Union[CoverPage, ObservationPage]


@dataclass(frozen=True)
class Document:
    """Composed, paginated report ready for export."""

    pages: tuple[Page, ...]
    facility_name: str
    reporter_name: str
    layout: PageLayout = PageLayout()
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    @property
    def cover(self) -> CoverPage:
        return self.pages[0]  # type: ignore[return-value]

    @property
    def observation_pages(self) -> tuple[ObservationPage, ...]:
        return tuple(p for p in self.pages if isinstance(p, ObservationPage))


def page_label(index: int, total: int) -> str:
    return f"Page {index} of {total}"


def _texts(elements: list[Element], role: str | None) -> list[str]:
    return [e.text for e in elements if isinstance(e, TextElement) and (role is None or e.role == role)]
