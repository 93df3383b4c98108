"""Tests for info popup placement."""

import pytest

from journeymap.popup import PopupAnchor, Rect, Viewport, place_popup

VIEWPORT = Viewport(520, 500)


def _rect(left, top, size=20):
    return Rect.from_xywh(left, top, size, size)


class TestAnchor:
    def test_near_top_goes_below(self):
        assert place_popup(_rect(250, 120), VIEWPORT).anchor is PopupAnchor.BELOW

    def test_lower_down_goes_above(self):
        assert place_popup(_rect(250, 350), VIEWPORT).anchor is PopupAnchor.ABOVE

    def test_threshold_is_exclusive(self):
        assert place_popup(_rect(250, 300), VIEWPORT).anchor is PopupAnchor.ABOVE


class TestHorizontalShift:
    def test_centered_node_is_not_shifted(self):
        assert place_popup(_rect(250, 200), VIEWPORT).offset_x == 0.0

    def test_left_edge_shifts_right(self):
        placement = place_popup(_rect(40, 200), VIEWPORT)
        assert placement.offset_x == pytest.approx(100 - 40 + 16)

    def test_right_edge_shifts_left(self):
        # right edge at 480 leaves 40px of room
        placement = place_popup(_rect(460, 200), VIEWPORT)
        assert placement.offset_x == pytest.approx(-(100 - 40 + 16))

    def test_narrow_viewport_prefers_left_shift(self):
        placement = place_popup(_rect(50, 200), Viewport(150, 500))
        assert placement.offset_x > 0

    def test_custom_width_and_margin(self):
        placement = place_popup(_rect(10, 10), VIEWPORT, popup_width=100, margin=4)
        assert placement.offset_x == pytest.approx(50 - 10 + 4)


class TestRect:
    def test_from_xywh(self):
        r = Rect.from_xywh(10, 20, 30, 40)
        assert (r.left, r.top, r.right, r.bottom) == (10, 20, 40, 60)
        assert r.width == 30
        assert r.height == 40
        assert r.center_x == 25
