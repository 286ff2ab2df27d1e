"""Tests for report composition: pagination, layout contract, metadata isolation, failures."""

from __future__ import annotations

import asyncio
import re

import numpy as np
import pytest

from conftest import make_observation, make_png
from sitecapture.errors import CompositionFailure, DecodeFailure
from sitecapture.reporting import (
    CoverPage,
    ImageElement,
    PageLayout,
    PanelElement,
    RuleElement,
    TextElement,
    compose,
    crop_to_aspect,
    decode_image,
    render_page,
    serialize_document,
)
from sitecapture.reporting.document import PANEL_FILL
from sitecapture.session import CaptureType, Condition, LocationSnapshot, ObservationStore

LOCATION = LocationSnapshot(
    latitude=52.0116,
    longitude=4.3571,
    city="Delft",
    country="Netherlands",
    street="Mekelweg",
    house_number="5",
    zipcode="2628 CC",
    landmark="Aula",
    timestamp="2026-03-14 09:30:00",
)


def _compose(observations, location=LOCATION, facility="Tower A", reporter="Jane", **kwargs):
    return asyncio.run(compose(observations, location, facility, reporter, **kwargs))


def _element(page, role, kind=TextElement):
    matches = [e for e in page.elements if isinstance(e, kind) and e.role == role]
    assert matches, f"no {kind.__name__} with role {role!r}"
    return matches[0]


class TestPagination:

    @pytest.mark.parametrize("n", [0, 1, 2, 5])
    def test_page_count_is_observations_plus_cover(self, n, assets):
        observations = [make_observation(floor=i + 1, seed=i) for i in range(n)]
        doc = _compose(observations, assets=assets)
        assert doc.total_pages == n + 1
        assert isinstance(doc.pages[0], CoverPage)
        assert [p.page_index for p in doc.pages] == list(range(1, n + 2))
        assert all(p.total_pages == n + 1 for p in doc.pages)
        assert [p.observation for p in doc.observation_pages] == observations

    def test_remove_before_compose_drops_exactly_one_page(self, assets):
        store = ObservationStore()
        for i in range(4):
            store.add(make_observation(CaptureType.STAIRS, Condition.DIRTY, floor=i + 1, seed=i))
        before = store.snapshot()
        store.remove_at(2)
        doc_before = _compose(before, assets=assets)
        doc_after = _compose(store.snapshot(), assets=assets)
        assert len(doc_after.observation_pages) == len(doc_before.observation_pages) - 1
        survivors = [p.observation for p in doc_after.observation_pages]
        assert survivors == [before[0], before[1], before[3]]

    def test_pages_keep_observation_order(self, assets):
        observations = [make_observation(seed=i, bitmap=make_png(16 + 8 * i, 12, seed=i)) for i in range(6)]
        doc = _compose(observations, assets=assets)
        for obs, page in zip(observations, doc.observation_pages):
            assert np.array_equal(page.processed_image, decode_image(obs.image_bitmap))


class TestScenario:

    def test_two_observation_report(self, assets):
        observations = [
            make_observation(CaptureType.FLOOR, Condition.DIRTY, floor=3, seed=1),
            make_observation(CaptureType.RESTROOM, Condition.CLEAN, floor=1, seed=2),
        ]
        doc = _compose(observations, facility="Tower A", reporter="Jane", assets=assets)
        assert doc.total_pages == 3

        cover = doc.pages[0]
        assert cover.texts("page_label") == ["Page 1 of 3"]
        assert cover.texts("title") == ["Tower A"]
        assert cover.texts("reporter") == ["Jane"]

        page2, page3 = doc.pages[1], doc.pages[2]
        panel2 = page2.texts("panel")
        assert "Type: Floor" in panel2
        assert "Condition: Dirty" in panel2
        assert "Floor: 3" in panel2
        panel3 = page3.texts("panel")
        assert "Type: Restroom" in panel3
        assert "Condition: Clean" in panel3
        assert "Floor: 1" in panel3
        assert page2.texts("page_label") == ["Page 2 of 3"]
        assert page3.texts("page_label") == ["Page 3 of 3"]

    def test_metadata_is_never_shared_between_pages(self, assets):
        a = make_observation(CaptureType.CLASSROOM, Condition.CLEAN, floor=12, seed=1)
        b = make_observation(CaptureType.STAIRS, Condition.DIRTY, floor=40, seed=2)
        doc = _compose([a, b], assets=assets)
        first, second = doc.observation_pages
        first_text = " | ".join(first.texts("panel") + first.texts("description"))
        second_text = " | ".join(second.texts("panel") + second.texts("description"))
        assert "Classroom" in first_text and "Stairs" not in first_text
        assert "Clean" in first_text and "Dirty" not in first_text
        assert "Floor: 12" in first_text and "Floor: 40" not in first_text
        assert "Stairs" in second_text and "Classroom" not in second_text
        assert "Dirty" in second_text and "Clean" not in second_text
        assert "Floor: 40" in second_text and "Floor: 12" not in second_text

    def test_location_fields_on_panel_and_footer(self, assets):
        doc = _compose([make_observation()], assets=assets)
        page = doc.observation_pages[0]
        panel = page.texts("panel")
        assert "Latitude: 52.011600" in panel
        assert "Timestamp: 2026-03-14 09:30:00" in panel
        assert "City: Delft, Country: Netherlands" in panel
        assert "Landmark: Aula" in panel
        assert page.texts("address") == ["Mekelweg 5, 2628 CC Delft, Netherlands"]

    def test_missing_location_renders_sentinels(self, assets):
        doc = _compose([make_observation()], location=None, assets=assets)
        panel = doc.observation_pages[0].texts("panel")
        assert "Latitude: Not available" in panel
        assert doc.observation_pages[0].texts("address") == ["Not available"]


class TestLayout:

    def test_cover_layout(self, assets):
        layout = PageLayout()
        cover = _compose([], layout=layout, assets=assets).pages[0]
        title = _element(cover, "title")
        assert (title.x, title.anchor) == (layout.margin, "left")
        assert title.y < layout.height * layout.cover_band_top
        image = _element(cover, "cover_image", ImageElement)
        assert abs((image.x + image.width / 2) - layout.width / 2) <= 1
        assert image.y >= int(layout.height * layout.cover_band_top)
        assert image.y + image.height <= int(layout.height * layout.cover_band_bottom)
        reporter = _element(cover, "reporter")
        assert (reporter.x, reporter.anchor) == (layout.width // 2, "center")
        label = _element(cover, "page_label")
        assert (label.x, label.y, label.anchor) == (layout.width - layout.margin, layout.bottom, "right")

    def test_observation_layout(self, assets):
        layout = PageLayout()
        page = _compose([make_observation()], layout=layout, assets=assets).pages[1]
        logo = _element(page, "logo", ImageElement)
        assert (logo.x, logo.y, logo.width, logo.height) == (layout.margin, layout.margin, layout.logo_size, layout.logo_size)
        header = _element(page, "header")
        assert header.text == "Tower A"
        assert header.x > logo.x + logo.width
        rule = _element(page, "header_rule", RuleElement)
        assert rule.y > logo.y + logo.height

        photo = _element(page, "photo", ImageElement)
        assert photo.x == layout.margin
        assert photo.y - rule.y == layout.body_gutter

        panel = _element(page, "metadata_panel", PanelElement)
        assert panel.x >= photo.x and panel.y >= photo.y
        assert panel.x + panel.width <= photo.x + photo.width
        assert panel.y + panel.height <= photo.y + photo.height
        # top-right corner
        assert panel.x + panel.width == photo.x + photo.width - layout.panel_inset
        assert panel.y == photo.y + layout.panel_inset
        for text in (e for e in page.elements if isinstance(e, TextElement) and e.role == "panel"):
            assert panel.x <= text.x <= panel.x + panel.width
            assert panel.y <= text.y <= panel.y + panel.height

        description = _element(page, "description")
        assert description.x >= photo.x + photo.width

        footer = _element(page, "footer_rule", RuleElement)
        address = _element(page, "address")
        label = _element(page, "page_label")
        assert footer.y < address.y
        assert address.y == label.y == layout.bottom
        assert (label.x, label.anchor) == (layout.width - layout.margin, "right")

    def test_relative_layout_independent_of_page_count(self, assets):
        obs = make_observation(seed=3)

        def geometry(doc):
            page = doc.observation_pages[0]
            return [(type(e).__name__, e.role, getattr(e, "x", None), getattr(e, "y", None))
                    for e in page.elements]

        one = _compose([obs], assets=assets)
        many = _compose([obs] + [make_observation(seed=i) for i in range(5)], assets=assets)
        assert geometry(one) == geometry(many)

    def test_panel_stays_inside_small_photo(self, assets):
        tiny = make_observation(bitmap=make_png(400, 40))
        page = _compose([tiny], assets=assets).pages[1]
        photo = _element(page, "photo", ImageElement)
        panel = _element(page, "metadata_panel", PanelElement)
        assert panel.y + panel.height <= photo.y + photo.height
        assert panel.x + panel.width <= photo.x + photo.width

    def test_panel_lines_keep_their_pitch_on_wide_photo(self, assets):
        wide = make_observation(bitmap=make_png(400, 40))
        page = _compose([wide], assets=assets).pages[1]
        lines = [e for e in page.elements if isinstance(e, TextElement) and e.role == "panel"]
        baselines = [e.y for e in lines]
        assert len(set(baselines)) == len(lines)
        for upper, lower in zip(lines, lines[1:]):
            assert lower.y - upper.y >= lower.size
        photo = _element(page, "photo", ImageElement)
        assert lines[-1].y <= photo.y + photo.height

    def test_wide_photo_is_cropped_not_squashed(self):
        image = np.zeros((40, 400, 3), dtype=np.uint8)
        assert crop_to_aspect(image, 100, 40).shape[:2] == (40, 100)
        assert crop_to_aspect(image, 400, 40) is image

    def test_description_lists_each_field_once(self, assets):
        obs = make_observation(CaptureType.STAIRS, Condition.DIRTY, floor=9)
        text = _compose([obs], assets=assets).pages[1].texts("description")
        assert sum("Stairs" in line for line in text) == 1
        assert sum("Dirty" in line for line in text) == 1
        assert "Floor: 9" in text


class TestFailures:

    def test_decode_failure_aborts_whole_composition(self, assets):
        observations = [
            make_observation(seed=1),
            make_observation(bitmap=b"not an image"),
            make_observation(bitmap=b"also broken"),
        ]
        with pytest.raises(CompositionFailure) as exc:
            _compose(observations, assets=assets)
        assert exc.value.at_index == 1
        assert isinstance(exc.value.caused_by, DecodeFailure)

    def test_skip_policy_drops_failing_page(self, assets):
        good_a = make_observation(CaptureType.FLOOR, seed=1)
        good_b = make_observation(CaptureType.STAIRS, seed=2)
        doc = _compose([good_a, make_observation(bitmap=b""), good_b], on_decode_failure="skip", assets=assets)
        assert doc.total_pages == 3
        assert [p.observation for p in doc.observation_pages] == [good_a, good_b]
        assert doc.pages[2].texts("page_label") == ["Page 3 of 3"]

    def test_skip_policy_with_every_photo_broken_fails(self, assets):
        broken = [make_observation(bitmap=b""), make_observation(bitmap=b"junk")]
        with pytest.raises(CompositionFailure) as exc:
            _compose(broken, on_decode_failure="skip", assets=assets)
        assert exc.value.at_index == 1

    def test_unknown_policy_rejected(self, assets):
        with pytest.raises(ValueError):
            _compose([make_observation()], on_decode_failure="ignore", assets=assets)


class TestRendering:

    def test_render_page_draws_panel_fill(self, assets):
        page = _compose([make_observation(bitmap=make_png(300, 200))], assets=assets).pages[1]
        layout = PageLayout()
        canvas = render_page(page, layout)
        assert canvas.shape == (layout.height, layout.width, 3)
        panel = _element(page, "metadata_panel", PanelElement)
        x = panel.x + panel.width - 3
        y = panel.y + panel.height // 2
        assert tuple(int(v) for v in canvas[y, x]) == PANEL_FILL

    def test_serialize_document_is_multipage_pdf(self, assets):
        doc = _compose([make_observation(seed=1), make_observation(seed=2)], assets=assets)
        pdf = serialize_document(doc)
        assert pdf.startswith(b"%PDF")
        assert len(re.findall(rb"/Type\s*/Page\b", pdf)) == 3
