"""Viewport-aware placement of the checkpoint info popup."""

from dataclasses import dataclass
from enum import Enum


class PopupAnchor(Enum):
    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True)
class Rect:
    """An on-screen rectangle in viewport coordinates."""
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "Rect":
        return cls(left=x, top=y, right=x + w, bottom=y + h)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class PopupPlacement:
    anchor: PopupAnchor
    offset_x: float = 0.0


def place_popup(rect: Rect, viewport: Viewport, popup_width: float = 200.0,
                threshold: float = 300.0, margin: float = 16.0) -> PopupPlacement:
    """Choose the popup side and horizontal shift for a node rectangle.

    Nodes near the top get the popup below them. A popup that would spill
    past the left or right viewport edge is shifted back inside; at most
    one of the two shifts applies.
    """
    anchor = PopupAnchor.BELOW if rect.top < threshold else PopupAnchor.ABOVE

    half = popup_width / 2
    offset_x = 0.0
    if rect.left < half:
        offset_x = half - rect.left + margin
    elif (viewport.width - rect.right) < half:
        offset_x = -(half - (viewport.width - rect.right) + margin)

    return PopupPlacement(anchor=anchor, offset_x=offset_x)
