"""cairo rendering of a journey: edges, active path, checkpoints and marker."""

import logging
import math
from pathlib import Path
from typing import Optional, Set, Tuple

import cairo

from journeymap.errors import IntegrityError
from journeymap.graph import Node
from journeymap.journey import Journey
from journeymap.paths import generate_edge

logger = logging.getLogger(__name__)


class JourneyRenderer:
    """Draws a journey onto any cairo context."""

    COLORS = {
        'bg_primary': (0.949, 0.910, 0.812),     # #f2e8cf
        'edge': (0.231, 0.184, 0.184),           # #3b2f2f
        'active_path': (0.863, 0.149, 0.149),    # #dc2626
        'node': (0.612, 0.639, 0.686),           # #9ca3af
        'node_active': (0.937, 0.267, 0.267),    # #ef4444
        'node_branch': (0.231, 0.510, 0.965),    # #3b82f6
        'text_primary': (0.216, 0.255, 0.318),   # #374151
        'marker': (0.863, 0.149, 0.149),         # #dc2626
    }

    NODE_RADIUS = 9
    SELECTED_SCALE = 1.25
    MARKER_RADIUS = 7
    LABEL_OFFSET = 18

    def __init__(self, journey: Journey):
        self.journey = journey

    def node_bounds(self, node: Node) -> Tuple[float, float, float, float]:
        """Canvas-space (x, y, w, h) of a node's hit area."""
        r = self.NODE_RADIUS * self.SELECTED_SCALE
        return node.x - r, node.y - r, 2 * r, 2 * r

    def find_node_at(self, x: float, y: float) -> Optional[Node]:
        # Check in reverse order (top-most first)
        for node in reversed(self.journey.graph.to_list()):
            bx, by, bw, bh = self.node_bounds(node)
            if bx <= x <= bx + bw and by <= y <= by + bh:
                return node
        return None

    def draw(self, cr, width: float, height: float, background: bool = True):
        cr.save()
        if background:
            cr.set_source_rgb(*self.COLORS['bg_primary'])
            cr.paint()

        self._draw_edges(cr)
        self._draw_active_path(cr)

        active_ids = self._active_ids()
        for node in self.journey.graph:
            self._draw_node(cr, node, node.id in active_ids)

        self._draw_marker(cr)
        cr.restore()

    def _active_ids(self) -> Set[int]:
        try:
            return {n.id for n in self.journey.active_path()}
        except IntegrityError as exc:
            # Draw the nodes anyway, with no chain highlighted
            logger.error("Cannot highlight active path: %s", exc)
            return set()

    def _draw_edges(self, cr):
        """Dashed curves for every parent/child pair."""
        graph = self.journey.graph
        cr.save()
        cr.set_source_rgba(*self.COLORS['edge'], 0.6)
        cr.set_line_width(2.5)
        cr.set_line_cap(cairo.LINE_CAP_ROUND)
        cr.set_dash([8, 4])
        for node in graph:
            parent = graph.get_node(node.parent_id)
            if parent is None:
                continue
            seg = generate_edge(parent, node)
            cr.move_to(*seg.start)
            cr.curve_to(*seg.ctrl1, *seg.ctrl2, *seg.end)
            cr.stroke()
        cr.restore()

    def _draw_active_path(self, cr):
        path = self.journey.animator.rendered_path
        if path is None:
            return
        cr.save()
        cr.set_source_rgba(*self.COLORS['active_path'], 0.8)
        cr.set_line_width(3)
        cr.set_line_cap(cairo.LINE_CAP_ROUND)
        path.append_to(cr)
        cr.stroke()
        cr.restore()

    def _draw_node(self, cr, node: Node, is_active: bool):
        is_selected = node.id == self.journey.selected_id
        is_branch_source = node.id == self.journey.branch_from_id

        radius = self.NODE_RADIUS * (self.SELECTED_SCALE if is_selected else 1.0)
        cr.save()
        cr.arc(node.x, node.y, radius, 0, 2 * math.pi)
        if is_branch_source:
            cr.set_source_rgb(*self.COLORS['node_branch'])
        elif is_active:
            cr.set_source_rgb(*self.COLORS['node_active'])
        else:
            cr.set_source_rgb(*self.COLORS['node'])
        cr.fill()

        if node.label:
            cr.set_source_rgb(*self.COLORS['text_primary'])
            cr.select_font_face("Sans", cairo.FONT_SLANT_NORMAL,
                                cairo.FONT_WEIGHT_BOLD if is_selected else cairo.FONT_WEIGHT_NORMAL)
            cr.set_font_size(12)
            extents = cr.text_extents(node.label)
            cr.move_to(node.x - extents.width / 2 - extents.x_bearing,
                       node.y - self.LABEL_OFFSET)
            cr.show_text(node.label)
        cr.restore()

    def _draw_marker(self, cr):
        pos = self.journey.animator.marker_position()
        if pos is None:
            return
        cr.save()
        cr.arc(pos[0], pos[1], self.MARKER_RADIUS, 0, 2 * math.pi)
        cr.set_source_rgb(*self.COLORS['marker'])
        cr.fill_preserve()
        cr.set_source_rgb(1, 1, 1)
        cr.set_line_width(2)
        cr.stroke()
        cr.restore()

    # ==================== Export ====================

    def export_png(self, filepath: Path, scale: float = 2.0) -> bool:
        """Export the canvas to a PNG image."""
        if self.journey.graph.is_empty:
            return False
        s = self.journey.settings
        width = int(s.canvas_width * scale)
        height = int(s.canvas_height * scale)

        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
        cr = cairo.Context(surface)
        cr.scale(scale, scale)
        self.draw(cr, s.canvas_width, s.canvas_height)
        surface.write_to_png(str(filepath))
        return True

    def export_svg(self, filepath: Path) -> bool:
        """Export the canvas to an SVG document."""
        if self.journey.graph.is_empty:
            return False
        s = self.journey.settings
        surface = cairo.SVGSurface(str(filepath), s.canvas_width, s.canvas_height)
        cr = cairo.Context(surface)
        self.draw(cr, s.canvas_width, s.canvas_height)
        surface.finish()
        return True
