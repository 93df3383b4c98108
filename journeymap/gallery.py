"""Per-node slide gallery."""

import logging
from dataclasses import dataclass
from typing import Iterable, List

from journeymap.errors import ResourceLimitError
from journeymap.graph import Node, Slide

logger = logging.getLogger(__name__)


@dataclass
class MediaUpload:
    """An already-encoded media item handed over by the upload collaborator."""
    name: str
    image_ref: str
    size: int
    text: str = ""


def check_upload_size(upload: MediaUpload, max_bytes: int):
    if upload.size > max_bytes:
        raise ResourceLimitError(upload.name, upload.size, max_bytes)


class Gallery:
    """Ordered slides of one node with a current index.

    The slide list is the node's own list, so edits are visible on the node.
    """

    def __init__(self, node: Node):
        self.node = node
        if not node.slides:
            node.slides.append(Slide.placeholder())
        self.index = 0

    @property
    def slides(self) -> List[Slide]:
        return self.node.slides

    def __len__(self) -> int:
        return len(self.node.slides)

    @property
    def current(self) -> Slide:
        self._clamp()
        return self.node.slides[self.index]

    def _clamp(self):
        self.index = max(0, min(self.index, len(self.node.slides) - 1))

    def select(self, index: int) -> Slide:
        self.index = index
        return self.current

    def next(self) -> Slide:
        return self.select(self.index + 1)

    def previous(self) -> Slide:
        return self.select(self.index - 1)

    def append(self, slides: Iterable[Slide]) -> int:
        """Append slides and jump to the first new one. Returns how many were added."""
        new = list(slides)
        if not new:
            return 0
        # A lone placeholder gives way to real content
        if len(self.node.slides) == 1 and self.node.slides[0].is_placeholder:
            self.node.slides.clear()
        first_new = len(self.node.slides)
        self.node.slides.extend(new)
        self.index = first_new
        return len(new)

    def add_uploads(self, uploads: Iterable[MediaUpload],
                    max_bytes: int) -> List[ResourceLimitError]:
        """Append every upload within ``max_bytes``; oversized ones are skipped."""
        accepted: List[Slide] = []
        errors: List[ResourceLimitError] = []
        for upload in uploads:
            try:
                check_upload_size(upload, max_bytes)
            except ResourceLimitError as exc:
                logger.warning("Skipping upload: %s", exc)
                errors.append(exc)
                continue
            accepted.append(Slide(text=upload.text, image_ref=upload.image_ref))
        self.append(accepted)
        return errors

    def edit_caption(self, index: int, text: str):
        """Replace the caption of the slide at ``index``."""
        if not 0 <= index < len(self.node.slides):
            raise IndexError(f"Slide index {index} out of range")
        self.node.slides[index].text = text

    def delete(self, index: int) -> Slide:
        """Remove a slide; the list never ends up empty."""
        if not 0 <= index < len(self.node.slides):
            raise IndexError(f"Slide index {index} out of range")
        removed = self.node.slides.pop(index)
        if not self.node.slides:
            self.node.slides.append(Slide.placeholder())
        if index < self.index:
            self.index -= 1
        self._clamp()
        return removed
