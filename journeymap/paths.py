"""Smooth curve synthesis between checkpoint nodes."""

import bisect
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from journeymap.graph import Node

Point = Tuple[float, float]

# Below this vertical distance an edge is treated as horizontal
FLAT_EDGE_THRESHOLD = 10.0
FLAT_EDGE_NUDGE = 20.0

SAMPLES_PER_SEGMENT = 64


@dataclass(frozen=True)
class CubicSegment:
    """A cubic bezier segment."""
    start: Point
    ctrl1: Point
    ctrl2: Point
    end: Point

    def point_at(self, t: float) -> Point:
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        x = a * self.start[0] + b * self.ctrl1[0] + c * self.ctrl2[0] + d * self.end[0]
        y = a * self.start[1] + b * self.ctrl1[1] + c * self.ctrl2[1] + d * self.end[1]
        return x, y

    def sample_lengths(self, samples: int = SAMPLES_PER_SEGMENT) -> List[float]:
        """Cumulative chord lengths at t = i / samples, starting at 0."""
        cumulative = [0.0]
        prev = self.start
        for i in range(1, samples + 1):
            pt = self.point_at(i / samples)
            cumulative.append(cumulative[-1] + math.hypot(pt[0] - prev[0], pt[1] - prev[1]))
            prev = pt
        return cumulative


def generate_edge(parent: Node, child: Node) -> CubicSegment:
    """Build the S-curve from ``parent`` to ``child``.

    Both control points sit on the vertical midpoint, each at its own
    endpoint's x. Near-horizontal pairs use parent.y + 20 instead.
    """
    if abs(child.y - parent.y) < FLAT_EDGE_THRESHOLD:
        mid_y = parent.y + FLAT_EDGE_NUDGE
    else:
        mid_y = (parent.y + child.y) / 2
    return CubicSegment(
        start=(parent.x, parent.y),
        ctrl1=(parent.x, mid_y),
        ctrl2=(child.x, mid_y),
        end=(child.x, child.y),
    )


@dataclass
class CompositePath:
    """A move-to followed by one cubic per consecutive node pair."""
    node_ids: Tuple[int, ...]
    segments: List[CubicSegment]
    _tables: List[List[float]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._tables = [seg.sample_lengths() for seg in self.segments]
        self._offsets = [0.0]
        for table in self._tables:
            self._offsets.append(self._offsets[-1] + table[-1])

    @property
    def start(self) -> Point:
        return self.segments[0].start

    @property
    def end(self) -> Point:
        return self.segments[-1].end

    @property
    def length(self) -> float:
        return self._offsets[-1]

    @property
    def segment_lengths(self) -> List[float]:
        return [t[-1] for t in self._tables]

    def point_at_length(self, distance: float) -> Point:
        """Point at an arc-length distance from the start, clamped."""
        if distance <= 0:
            return self.start
        if distance >= self.length:
            return self.end

        index = bisect.bisect_right(self._offsets, distance) - 1
        index = min(index, len(self.segments) - 1)
        local = distance - self._offsets[index]
        table = self._tables[index]
        samples = len(table) - 1

        i = bisect.bisect_left(table, local)
        if i == 0:
            return self.segments[index].start
        span = table[i] - table[i - 1]
        frac = (local - table[i - 1]) / span if span > 0 else 0.0
        return self.segments[index].point_at((i - 1 + frac) / samples)

    def point_at_percent(self, percent: float) -> Point:
        return self.point_at_length(self.length * max(0.0, min(100.0, percent)) / 100.0)

    def to_svg(self) -> str:
        """SVG path data: ``M x y C ...``."""
        parts = [f"M {_fmt(self.start[0])} {_fmt(self.start[1])}"]
        for seg in self.segments:
            coords = " ".join(_fmt(v) for pt in (seg.ctrl1, seg.ctrl2, seg.end) for v in pt)
            parts.append(f"C {coords}")
        return " ".join(parts)

    def append_to(self, cr) -> None:
        """Replay the path onto a cairo context."""
        cr.move_to(*self.start)
        for seg in self.segments:
            cr.curve_to(*seg.ctrl1, *seg.ctrl2, *seg.end)


def generate_composite_path(chain: Sequence[Node]) -> Optional[CompositePath]:
    """Concatenate edges along a root..selected chain.

    Chains shorter than two nodes have no drawable path.
    """
    if len(chain) < 2:
        return None
    segments = [generate_edge(a, b) for a, b in zip(chain, chain[1:])]
    return CompositePath(node_ids=tuple(n.id for n in chain), segments=segments)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text if text != "-0" else "0"
