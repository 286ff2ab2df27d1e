"""Report pipeline: image processing, layout, Document model, PDF rendering."""

from .image_processor import adjust_brightness, decode_image, encode_image, scale_brightness, to_bgr
from .document import (
    CoverPage,
    Document,
    ImageElement,
    ObservationPage,
    PageLayout,
    PanelElement,
    RuleElement,
    TextElement,
    page_label,
)
from .assets import ReportAssets, default_cover, default_logo, load_assets
from .composer import compose, compose_sync, layout_from_config, panel_lines
from .renderer import crop_to_aspect, render_document, render_page, save_document, serialize_document

__all__ = [
    "adjust_brightness",
    "decode_image",
    "encode_image",
    "scale_brightness",
    "to_bgr",
    "CoverPage",
    "Document",
    "ImageElement",
    "ObservationPage",
    "PageLayout",
    "PanelElement",
    "RuleElement",
    "TextElement",
    "page_label",
    "ReportAssets",
    "default_cover",
    "default_logo",
    "load_assets",
    "compose",
    "compose_sync",
    "layout_from_config",
    "panel_lines",
    "crop_to_aspect",
    "render_document",
    "render_page",
    "save_document",
    "serialize_document",
]
