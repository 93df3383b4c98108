"""Checkpoint node graph for Journeymap."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from journeymap.config import JourneySettings
from journeymap.errors import IntegrityError, ParseError, ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Add a memory"


@dataclass
class Slide:
    """A single photo + caption in a node's gallery."""
    text: str = ""
    image_ref: str = ""

    @classmethod
    def placeholder(cls) -> "Slide":
        return cls(text=PLACEHOLDER_TEXT, image_ref="")

    @property
    def is_placeholder(self) -> bool:
        return self.text == PLACEHOLDER_TEXT and not self.image_ref


@dataclass
class Node:
    """A checkpoint placed on the canvas."""
    id: int = 0
    x: float = 0.0
    y: float = 0.0
    parent_id: Optional[int] = None
    label: str = ""
    slides: List[Slide] = field(default_factory=lambda: [Slide.placeholder()])

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class PlacementMode(Enum):
    """How a newly placed node picks its parent."""
    FIRST = "first"
    SEQUENTIAL = "sequential"
    BRANCH = "branch"


class NodeGraph:
    """Arena of nodes keyed by id; children are derived from parent_id."""

    def __init__(self, settings: Optional[JourneySettings] = None):
        self.settings = settings or JourneySettings()
        self._nodes: Dict[int, Node] = {}
        # Creation order, used by sequential placement
        self._order: List[int] = []
        # Highest id ever handed out; ids are never reused
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return (self._nodes[i] for i in self._order)

    @property
    def is_empty(self) -> bool:
        return not self._nodes

    @property
    def last_created(self) -> Optional[Node]:
        """Most recently created node that still exists."""
        if not self._order:
            return None
        return self._nodes[self._order[-1]]

    def get_node(self, node_id: Optional[int]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def _next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def in_bounds(self, x: float, y: float) -> bool:
        """Check a position against the canvas bounds and edge margin."""
        s = self.settings
        return (s.edge_margin <= x <= s.canvas_width - s.edge_margin and
                s.edge_margin <= y <= s.canvas_height - s.edge_margin)

    def placement_mode(self, branch_parent_id: Optional[int] = None) -> PlacementMode:
        """Pick the placement mode for the next node."""
        if self.is_empty:
            return PlacementMode.FIRST
        if branch_parent_id is not None:
            return PlacementMode.BRANCH
        return PlacementMode.SEQUENTIAL

    def add_node(self, position: Tuple[float, float], mode: PlacementMode,
                 explicit_parent_id: Optional[int] = None,
                 label: str = "") -> Node:
        """Place a new node and return it.

        Raises ValidationError if the position is outside the canvas (or
        inside the edge margin), or if a branch parent does not exist.
        """
        x, y = float(position[0]), float(position[1])
        if not self.in_bounds(x, y):
            raise ValidationError(
                f"Position ({x:.0f}, {y:.0f}) is outside the canvas or too close to an edge"
            )

        if mode is PlacementMode.FIRST:
            parent_id = None
        elif mode is PlacementMode.SEQUENTIAL:
            last = self.last_created
            parent_id = last.id if last else None
        elif mode is PlacementMode.BRANCH:
            if explicit_parent_id not in self._nodes:
                raise ValidationError(f"Branch parent {explicit_parent_id} does not exist")
            parent_id = explicit_parent_id
        else:
            raise ValidationError(f"Unknown placement mode {mode!r}")

        node = Node(id=self._next_id(), x=x, y=y, parent_id=parent_id, label=label)
        self._nodes[node.id] = node
        self._order.append(node.id)
        logger.debug("Placed node %d at (%.1f, %.1f) parent=%s mode=%s",
                     node.id, x, y, parent_id, mode.value)
        return node

    def remove_node(self, node_id: int) -> Optional[Node]:
        """Delete a node; its children become roots. Unknown ids are ignored."""
        node = self._nodes.pop(node_id, None)
        if node is None:
            return None
        self._order.remove(node_id)

        for other in self._nodes.values():
            if other.parent_id == node_id:
                other.parent_id = None
        logger.debug("Removed node %d", node_id)
        return node

    def update_label(self, node_id: int, text: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.label = text
        return True

    def children(self, node_id: int) -> List[Node]:
        """Child nodes in creation order."""
        return [n for n in self if n.parent_id == node_id]

    def roots(self) -> List[Node]:
        return [n for n in self if n.parent_id is None]

    def backtrack_path(self, node_id: int) -> List[Node]:
        """Return the chain from a root down to ``node_id``.

        The walk is capped at the node count; a longer walk (a cycle) or a
        parent id that does not exist raises IntegrityError.
        """
        current = self._nodes.get(node_id)
        if current is None:
            return []

        path: List[Node] = []
        steps = 0
        while current is not None:
            steps += 1
            if steps > len(self._nodes):
                logger.error("Cycle detected while backtracking from node %d", node_id)
                raise IntegrityError(f"Cycle detected in parent chain of node {node_id}")
            path.insert(0, current)
            if current.parent_id is None:
                break
            parent = self._nodes.get(current.parent_id)
            if parent is None:
                logger.error("Node %d references missing parent %d",
                             current.id, current.parent_id)
                raise IntegrityError(
                    f"Node {current.id} references missing parent {current.parent_id}"
                )
            current = parent
        return path

    # ==================== Persistence ====================

    def to_list(self) -> List[Node]:
        return list(self)

    @classmethod
    def from_nodes(cls, nodes: Iterable[Node],
                   settings: Optional[JourneySettings] = None) -> "NodeGraph":
        """Build a graph from loaded nodes, rejecting inconsistent data."""
        graph = cls(settings)
        for node in nodes:
            if node.id in graph._nodes:
                raise ParseError(f"Duplicate node id {node.id}")
            if not node.slides:
                node.slides = [Slide.placeholder()]
            graph._nodes[node.id] = node
            graph._order.append(node.id)
        graph._last_id = max(graph._nodes, default=0)

        for node in graph._nodes.values():
            if node.parent_id is not None and node.parent_id not in graph._nodes:
                raise ParseError(f"Node {node.id} references missing parent {node.parent_id}")

        for node in graph._nodes.values():
            try:
                graph.backtrack_path(node.id)
            except IntegrityError as exc:
                raise ParseError(str(exc)) from exc
        return graph
