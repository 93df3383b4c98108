"""Journey session: graph, selection, marker and galleries in one place."""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from journeymap.animator import MarkerAnimator
from journeymap.config import JourneySettings
from journeymap.errors import ResourceLimitError, ValidationError
from journeymap.gallery import Gallery, MediaUpload
from journeymap.graph import Node, NodeGraph, Slide
from journeymap.popup import PopupPlacement, Rect, Viewport, place_popup
from journeymap.storage import JourneyDocument, load_document, save_document

logger = logging.getLogger(__name__)

# confirm(message, on_confirmed): call on_confirmed only if the user agrees
ConfirmHandler = Callable[[str, Callable[[], None]], None]


class Journey:
    """Owns the node graph and everything derived from the selection."""

    def __init__(self, scheduler, confirm: ConfirmHandler,
                 settings: Optional[JourneySettings] = None):
        self.settings = settings or JourneySettings()
        self.graph = NodeGraph(self.settings)
        self.music: str = ""
        self.animator = MarkerAnimator(
            scheduler,
            duration_ms=self.settings.transition_ms,
            frame_interval_ms=self.settings.frame_interval_ms,
        )
        self.confirm = confirm

        self.selected_id: Optional[int] = None
        self.branch_from_id: Optional[int] = None
        self._galleries: Dict[int, Gallery] = {}

        # Callbacks
        self.on_selection_changed: Optional[Callable[[Optional[Node]], None]] = None
        self.on_structure_changed: Optional[Callable[[], None]] = None

    @property
    def selected_node(self) -> Optional[Node]:
        return self.graph.get_node(self.selected_id)

    # ==================== Placement ====================

    def place_node(self, x: float, y: float, label: str = "") -> Node:
        """Place a node using the current mode and select it."""
        mode = self.graph.placement_mode(self.branch_from_id)
        node = self.graph.add_node((x, y), mode, explicit_parent_id=self.branch_from_id,
                                   label=label)
        self.branch_from_id = None
        self._notify_structure()
        self.select(node.id)
        return node

    def start_branch(self, node_id: Optional[int] = None):
        """Make the next placement a child of ``node_id`` (default: the selection)."""
        if node_id is None:
            node_id = self.selected_id
        if node_id not in self.graph:
            raise ValidationError(f"Cannot branch from unknown node {node_id}")
        self.branch_from_id = node_id

    def cancel_branch(self):
        self.branch_from_id = None

    @property
    def is_branching(self) -> bool:
        return self.branch_from_id is not None

    # ==================== Selection ====================

    def select(self, node_id: Optional[int]):
        """Select a node and retarget the marker at its active path."""
        if node_id not in self.graph:
            node_id = None
        # Raises IntegrityError before anything changes
        path = self.graph.backtrack_path(node_id) if node_id is not None else []
        self.selected_id = node_id
        self.animator.set_active_chain(path)
        if self.on_selection_changed:
            self.on_selection_changed(self.selected_node)

    def active_path(self) -> List[Node]:
        if self.selected_id is None:
            return []
        return self.graph.backtrack_path(self.selected_id)

    # ==================== Node edits ====================

    def rename_node(self, node_id: int, text: str) -> bool:
        changed = self.graph.update_label(node_id, text.strip())
        if changed:
            self._notify_structure()
        return changed

    def request_delete_node(self, node_id: int):
        """Ask for confirmation, then delete the node."""
        node = self.graph.get_node(node_id)
        if node is None:
            return
        name = node.label or f"checkpoint {node.id}"
        self.confirm(
            f"Delete \"{name}\"? Its children become separate journeys.",
            lambda: self._delete_node(node_id),
        )

    def _delete_node(self, node_id: int):
        removed = self.graph.remove_node(node_id)
        if removed is None:
            return
        self.animator.on_node_removed(node_id)
        self._galleries.pop(node_id, None)
        if self.branch_from_id == node_id:
            self.branch_from_id = None
        logger.info("Deleted node %d", node_id)

        self._notify_structure()
        # The selection's chain may have lost an ancestor
        self.select(None if self.selected_id == node_id else self.selected_id)

    # ==================== Gallery ====================

    def gallery(self, node_id: int) -> Gallery:
        node = self.graph.get_node(node_id)
        if node is None:
            raise KeyError(node_id)
        gallery = self._galleries.get(node_id)
        if gallery is None or gallery.node is not node:
            gallery = Gallery(node)
            self._galleries[node_id] = gallery
        return gallery

    def add_slides(self, node_id: int, uploads: Iterable[MediaUpload]) -> List[ResourceLimitError]:
        return self.gallery(node_id).add_uploads(uploads, self.settings.max_upload_bytes)

    def edit_caption(self, node_id: int, index: int, text: str):
        self.gallery(node_id).edit_caption(index, text)

    def request_delete_slide(self, node_id: int, index: int):
        """Ask for confirmation, then delete one slide."""
        gallery = self.gallery(node_id)
        if not 0 <= index < len(gallery):
            return
        slide = gallery.slides[index]
        self.confirm(
            f"Delete slide {index + 1} of {len(gallery)}?",
            lambda: self._delete_slide(node_id, slide),
        )

    def _delete_slide(self, node_id: int, slide: Slide):
        # The gallery may have changed while the confirmation was open
        if node_id not in self.graph:
            return
        gallery = self.gallery(node_id)
        for i, candidate in enumerate(gallery.slides):
            if candidate is slide:
                gallery.delete(i)
                return
        logger.info("Slide already gone from node %d", node_id)

    # ==================== Popup ====================

    def popup_placement(self, rect: Rect, viewport: Viewport) -> PopupPlacement:
        s = self.settings
        return place_popup(rect, viewport, popup_width=s.popup_width,
                           threshold=s.popup_threshold, margin=s.popup_margin)

    # ==================== Persistence ====================

    def load(self, filepath: Path):
        """Replace the session with a document; on ParseError nothing changes."""
        document = load_document(filepath, self.settings)
        self.replace_document(document)
        logger.info("Loaded %d nodes from %s", len(self.graph), filepath)

    def replace_document(self, document: JourneyDocument):
        self.animator.clear()
        self.graph = document.graph
        self.graph.settings = self.settings
        self.music = document.music
        self._galleries.clear()
        self.branch_from_id = None
        self.selected_id = None
        self._notify_structure()
        if self.on_selection_changed:
            self.on_selection_changed(None)

    def save(self, filepath: Path) -> Path:
        return save_document(self.graph, filepath, music=self.music)

    def _notify_structure(self):
        if self.on_structure_changed:
            self.on_structure_changed()
