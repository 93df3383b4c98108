"""Marker animation along the active composite path."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from journeymap.graph import Node
from journeymap.paths import CompositePath, Point, generate_composite_path

logger = logging.getLogger(__name__)


class TransitionKind(Enum):
    """Animator phase."""
    IDLE = "idle"
    EXTENDING = "extending"
    RETRACTING = "retracting"
    JUMPING = "jumping"


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    f = 2 * t - 2
    return 0.5 * f * f * f + 1


@dataclass
class TransitionToken:
    """Handle for one in-flight transition.

    A cancelled token's frame callback never writes an offset.
    """
    kind: TransitionKind
    start_offset: float
    end_offset: float
    started_ms: float
    source_id: Optional[int] = None
    cancelled: bool = False
    # Retraction swaps to this path once the tween completes
    pending_path: Optional[CompositePath] = None


class MarkerAnimator:
    """Keeps a marker glued to the active path and animates path changes.

    ``scheduler`` must provide ``now_ms()``, ``every(interval_ms, callback)``
    returning a source id (the callback returns True to keep running), and
    ``cancel(source_id)``.
    """

    def __init__(self, scheduler, duration_ms: int = 1000, frame_interval_ms: int = 16):
        self.scheduler = scheduler
        self.duration_ms = duration_ms
        self.frame_interval_ms = frame_interval_ms

        self.rendered_path: Optional[CompositePath] = None
        self.offset_percent: float = 0.0
        self.phase = TransitionKind.IDLE
        self._token: Optional[TransitionToken] = None

        # Callbacks
        self.on_frame: Optional[Callable[[], None]] = None
        self.on_transition_finished: Optional[Callable[[TransitionKind], None]] = None

    @property
    def is_transitioning(self) -> bool:
        return self.phase is not TransitionKind.IDLE

    @property
    def rendered_chain(self) -> Tuple[int, ...]:
        return self.rendered_path.node_ids if self.rendered_path else ()

    @property
    def target_chain(self) -> Tuple[int, ...]:
        """Chain the marker is heading to (differs from rendered while retracting)."""
        if self._token and self._token.pending_path:
            return self._token.pending_path.node_ids
        return self.rendered_chain

    def marker_position(self) -> Optional[Point]:
        if self.rendered_path is None:
            return None
        return self.rendered_path.point_at_percent(self.offset_percent)

    # ==================== Transitions ====================

    def set_active_chain(self, chain: Sequence[Node]):
        """React to a new active path, classified against what is rendered now."""
        self.cancel()

        new_path = generate_composite_path(chain)
        if new_path is None:
            self.clear()
            return

        old_path = self.rendered_path
        old_ids = self.rendered_chain
        new_ids = new_path.node_ids

        if old_path is None:
            self._jump(new_path)
        elif new_ids == old_ids:
            if self.offset_percent < 100.0:
                self._begin(TransitionKind.EXTENDING, self.offset_percent, 100.0)
        elif _is_strict_prefix(old_ids, new_ids):
            # Keep the marker where it is on screen
            travelled = old_path.length * self.offset_percent / 100.0
            self.rendered_path = new_path
            start = travelled / new_path.length * 100.0 if new_path.length > 0 else 100.0
            self.offset_percent = start
            self._begin(TransitionKind.EXTENDING, start, 100.0)
        elif _is_strict_prefix(new_ids, old_ids):
            end = new_path.length / old_path.length * 100.0 if old_path.length > 0 else 100.0
            self._begin(TransitionKind.RETRACTING, self.offset_percent, end,
                        pending_path=new_path)
        else:
            self._jump(new_path)

    def _jump(self, new_path: CompositePath):
        self.rendered_path = new_path
        self.offset_percent = 0.0
        self._begin(TransitionKind.JUMPING, 0.0, 100.0)

    def _begin(self, kind: TransitionKind, start: float, end: float,
               pending_path: Optional[CompositePath] = None):
        token = TransitionToken(
            kind=kind,
            start_offset=start,
            end_offset=end,
            started_ms=self.scheduler.now_ms(),
            pending_path=pending_path,
        )
        self._token = token
        self.phase = kind
        logger.debug("Transition %s %.1f%% -> %.1f%%", kind.value, start, end)

        if self.duration_ms <= 0:
            self._finish(token)
            return

        token.source_id = self.scheduler.every(
            self.frame_interval_ms, lambda: self._tick(token)
        )
        self._notify_frame()

    def _tick(self, token: TransitionToken) -> bool:
        if token.cancelled or token is not self._token:
            return False

        elapsed = self.scheduler.now_ms() - token.started_ms
        t = min(1.0, max(0.0, elapsed / self.duration_ms))
        if t >= 1.0:
            self._finish(token)
            return False

        eased = ease_in_out_cubic(t)
        self.offset_percent = token.start_offset + (token.end_offset - token.start_offset) * eased
        self._notify_frame()
        return not token.cancelled

    def _finish(self, token: TransitionToken):
        # The scheduler drops the source once the callback returns False
        token.source_id = None
        self._token = None
        self.phase = TransitionKind.IDLE

        if token.pending_path is not None:
            # Same point on both curves, so the swap is invisible
            self.rendered_path = token.pending_path
            self.offset_percent = 100.0
        else:
            self.offset_percent = token.end_offset

        self._notify_frame()
        if self.on_transition_finished:
            self.on_transition_finished(token.kind)

    def cancel(self):
        """Cancel the in-flight transition, leaving the marker where it is."""
        token = self._token
        if token is None:
            return
        token.cancelled = True
        if token.source_id is not None:
            self.scheduler.cancel(token.source_id)
            token.source_id = None
        self._token = None
        self.phase = TransitionKind.IDLE
        logger.debug("Cancelled %s transition at %.1f%%", token.kind.value, self.offset_percent)

    def clear(self):
        """Drop the rendered path; no marker is drawn."""
        self.cancel()
        self.rendered_path = None
        self.offset_percent = 0.0
        self._notify_frame()

    def on_node_removed(self, node_id: int):
        """Stop animating along a path that contains a deleted node."""
        if node_id in self.rendered_chain or node_id in self.target_chain:
            self.clear()

    def _notify_frame(self):
        if self.on_frame:
            self.on_frame()


def _is_strict_prefix(short: Tuple[int, ...], long: Tuple[int, ...]) -> bool:
    return len(short) < len(long) and long[:len(short)] == short
