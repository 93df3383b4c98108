"""Tests for cairo rendering and export."""

import pytest

cairo = pytest.importorskip("cairo")

from journeymap.render import JourneyRenderer  # noqa: E402


class TestHitTesting:
    def test_finds_node(self, forked_journey):
        renderer = JourneyRenderer(forked_journey)
        assert renderer.find_node_at(102, 148).id == 2

    def test_misses_empty_canvas(self, forked_journey):
        assert JourneyRenderer(forked_journey).find_node_at(450, 60) is None


class TestExport:
    def test_png(self, forked_journey, tmp_path):
        path = tmp_path / "journey.png"
        assert JourneyRenderer(forked_journey).export_png(path, scale=1.0)
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_svg(self, forked_journey, tmp_path):
        path = tmp_path / "journey.svg"
        assert JourneyRenderer(forked_journey).export_svg(path)
        assert b"<svg" in path.read_bytes()

    def test_empty_journey(self, journey, tmp_path):
        renderer = JourneyRenderer(journey)
        assert not renderer.export_png(tmp_path / "empty.png")
        assert not (tmp_path / "empty.png").exists()

    def test_draw_mid_transition(self, forked_journey, scheduler):
        forked_journey.select(3)
        scheduler.advance(300)
        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 520, 500)
        JourneyRenderer(forked_journey).draw(cairo.Context(surface), 520, 500)

    def test_draw_with_corrupt_chain(self, forked_journey):
        forked_journey.graph.get_node(1).parent_id = 4
        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 520, 500)
        JourneyRenderer(forked_journey).draw(cairo.Context(surface), 520, 500)
