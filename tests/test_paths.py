"""Tests for edge and composite path synthesis."""

import pytest

from journeymap.graph import Node
from journeymap.paths import (
    FLAT_EDGE_NUDGE, CompositePath, generate_composite_path, generate_edge,
)


def _node(node_id, x, y, parent_id=None):
    return Node(id=node_id, x=x, y=y, parent_id=parent_id)


class TestGenerateEdge:
    @pytest.mark.parametrize("child", [
        (300, 400), (300, 20), (100, 50), (40, 55),
    ])
    def test_endpoints_match_nodes(self, child):
        parent = _node(1, 100, 50)
        seg = generate_edge(parent, _node(2, *child, parent_id=1))
        assert seg.start == (100, 50)
        assert seg.end == child

    def test_controls_on_vertical_midpoint(self):
        seg = generate_edge(_node(1, 100, 100), _node(2, 300, 300))
        assert seg.ctrl1 == (100, 200)
        assert seg.ctrl2 == (300, 200)

    def test_flat_edge_is_nudged(self):
        seg = generate_edge(_node(1, 100, 100), _node(2, 300, 105))
        assert seg.ctrl1 == (100, 100 + FLAT_EDGE_NUDGE)
        assert seg.ctrl2 == (300, 100 + FLAT_EDGE_NUDGE)

    def test_upward_edge(self):
        seg = generate_edge(_node(1, 100, 400), _node(2, 200, 100))
        assert seg.ctrl1[1] == seg.ctrl2[1] == 250


class TestCompositePath:
    def test_needs_two_nodes(self):
        assert generate_composite_path([]) is None
        assert generate_composite_path([_node(1, 100, 100)]) is None

    def test_one_segment_per_pair(self, forked_graph):
        path = generate_composite_path(forked_graph.backtrack_path(3))
        assert isinstance(path, CompositePath)
        assert path.node_ids == (1, 2, 3)
        assert len(path.segments) == 2
        assert path.start == (100, 50)
        assert path.end == (100, 250)

    def test_straight_chain_length(self, forked_graph):
        path = generate_composite_path(forked_graph.backtrack_path(3))
        assert path.length == pytest.approx(200.0)
        assert path.segment_lengths == pytest.approx([100.0, 100.0])

    def test_point_at_percent(self, forked_graph):
        path = generate_composite_path(forked_graph.backtrack_path(3))
        assert path.point_at_percent(0) == (100, 50)
        assert path.point_at_percent(100) == (100, 250)
        x, y = path.point_at_percent(50)
        assert x == pytest.approx(100.0)
        assert y == pytest.approx(150.0, abs=0.5)

    def test_percent_is_clamped(self, forked_graph):
        path = generate_composite_path(forked_graph.backtrack_path(4))
        assert path.point_at_percent(-20) == path.start
        assert path.point_at_percent(250) == path.end

    def test_prefix_shares_geometry(self, forked_graph):
        short = generate_composite_path(forked_graph.backtrack_path(2))
        long = generate_composite_path(forked_graph.backtrack_path(3))
        assert long.segments[0] == short.segments[0]

    def test_svg_data(self, forked_graph):
        path = generate_composite_path(forked_graph.backtrack_path(2))
        assert path.to_svg() == "M 100 50 C 100 100 100 100 100 150"
