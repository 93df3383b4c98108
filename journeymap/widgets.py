"""Custom widgets for the Journeymap application."""

import logging
from pathlib import Path
from typing import Callable, List, Optional

import gi

gi.require_version("Gtk", "4.0")
from gi.repository import Gtk, GLib, Gio, Pango

from journeymap.errors import ResourceLimitError
from journeymap.gallery import MediaUpload
from journeymap.graph import Node
from journeymap.journey import Journey

logger = logging.getLogger(__name__)


class GalleryPanel(Gtk.Box):
    """Right sidebar for browsing and captioning a checkpoint's slides."""

    def __init__(self, journey: Journey):
        super().__init__(orientation=Gtk.Orientation.VERTICAL)
        self.journey = journey
        self.current_node: Optional[Node] = None

        self.add_css_class("gallery-panel")
        self.set_size_request(350, -1)

        # Callbacks
        self.on_gallery_changed: Optional[Callable[[Node], None]] = None
        self.on_upload_errors: Optional[Callable[[List[ResourceLimitError]], None]] = None

        # Header
        header = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=8)
        header.set_margin_start(16)
        header.set_margin_end(16)
        header.set_margin_top(12)
        header.set_margin_bottom(12)

        title = Gtk.Label(label="MEMORIES")
        title.set_hexpand(True)
        title.set_halign(Gtk.Align.START)
        title.add_css_class("sidebar-title")
        header.append(title)

        self.add_btn = Gtk.Button.new_from_icon_name("list-add-symbolic")
        self.add_btn.set_tooltip_text("Add photos")
        self.add_btn.connect("clicked", self._on_add_clicked)
        header.append(self.add_btn)

        self.delete_btn = Gtk.Button.new_from_icon_name("user-trash-symbolic")
        self.delete_btn.set_tooltip_text("Delete this slide")
        self.delete_btn.connect("clicked", self._on_delete_clicked)
        header.append(self.delete_btn)

        self.append(header)

        self.node_info = Gtk.Label(label="")
        self.node_info.set_halign(Gtk.Align.START)
        self.node_info.set_margin_start(16)
        self.node_info.set_margin_bottom(8)
        self.node_info.set_ellipsize(Pango.EllipsizeMode.END)
        self.node_info.add_css_class("dim-label")
        self.append(self.node_info)

        self.picture = Gtk.Picture()
        self.picture.set_vexpand(True)
        self.picture.set_can_shrink(True)
        self.append(self.picture)

        # Caption editor
        self.caption_entry = Gtk.Entry()
        self.caption_entry.set_placeholder_text("Caption")
        self.caption_entry.set_margin_start(16)
        self.caption_entry.set_margin_end(16)
        self.caption_entry.set_margin_top(8)
        self._caption_handler = self.caption_entry.connect("changed", self._on_caption_changed)
        self.append(self.caption_entry)

        # Slide navigation
        nav = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=8)
        nav.set_margin_start(16)
        nav.set_margin_end(16)
        nav.set_margin_top(8)
        nav.set_margin_bottom(8)

        self.prev_btn = Gtk.Button.new_from_icon_name("go-previous-symbolic")
        self.prev_btn.connect("clicked", lambda b: self._step(-1))
        nav.append(self.prev_btn)

        self.counter = Gtk.Label(label="")
        self.counter.set_hexpand(True)
        self.counter.add_css_class("dim-label")
        nav.append(self.counter)

        self.next_btn = Gtk.Button.new_from_icon_name("go-next-symbolic")
        self.next_btn.connect("clicked", lambda b: self._step(1))
        nav.append(self.next_btn)

        self.append(nav)

        # Caption save is debounced
        self._save_timeout_id: Optional[int] = None
        self._pending_caption: Optional[str] = None

        self.show_empty_state()

    def show_empty_state(self):
        """No checkpoint selected."""
        self.save_if_pending()
        self.current_node = None
        self.node_info.set_label("Select a checkpoint to see its memories")
        self.picture.set_paintable(None)
        self._set_caption_text("")
        self.counter.set_label("")
        for widget in (self.caption_entry, self.prev_btn, self.next_btn,
                       self.add_btn, self.delete_btn):
            widget.set_sensitive(False)

    def show_gallery_for_node(self, node: Node):
        """Show the current slide of ``node``."""
        if self.current_node is not node:
            self.save_if_pending()
        self.current_node = node
        for widget in (self.caption_entry, self.prev_btn, self.next_btn,
                       self.add_btn, self.delete_btn):
            widget.set_sensitive(True)
        self.refresh()

    def refresh(self):
        if self.current_node is None or self.current_node.id not in self.journey.graph:
            self.show_empty_state()
            return

        gallery = self.journey.gallery(self.current_node.id)
        slide = gallery.current
        self.node_info.set_label(self.current_node.label or f"Checkpoint {self.current_node.id}")
        self.counter.set_label(f"Slide {gallery.index + 1} of {len(gallery)}")
        self._set_caption_text(slide.text)

        image_path = Path(slide.image_ref) if slide.image_ref else None
        if image_path and image_path.is_file():
            self.picture.set_filename(str(image_path))
        else:
            self.picture.set_paintable(None)

        self.prev_btn.set_sensitive(gallery.index > 0)
        self.next_btn.set_sensitive(gallery.index < len(gallery) - 1)

    def _set_caption_text(self, text: str):
        # Block handler while setting text
        self.caption_entry.handler_block(self._caption_handler)
        self.caption_entry.set_text(text)
        self.caption_entry.handler_unblock(self._caption_handler)

    def _step(self, delta: int):
        if self.current_node is None:
            return
        self.save_if_pending()
        gallery = self.journey.gallery(self.current_node.id)
        gallery.select(gallery.index + delta)
        self.refresh()

    # ==================== Captions ====================

    def _on_caption_changed(self, entry):
        """Schedule a caption save."""
        if self.current_node is None:
            return
        self._pending_caption = entry.get_text()

        if self._save_timeout_id:
            GLib.source_remove(self._save_timeout_id)
        self._save_timeout_id = GLib.timeout_add(600, self._do_save)

    def _do_save(self) -> bool:
        self._save_timeout_id = None
        if self.current_node is None or self._pending_caption is None:
            return False
        if self.current_node.id not in self.journey.graph:
            self._pending_caption = None
            return False

        gallery = self.journey.gallery(self.current_node.id)
        self.journey.edit_caption(self.current_node.id, gallery.index, self._pending_caption)
        self._pending_caption = None

        if self.on_gallery_changed:
            self.on_gallery_changed(self.current_node)
        return False

    def save_if_pending(self):
        """Force save if there are pending changes."""
        if self._save_timeout_id:
            GLib.source_remove(self._save_timeout_id)
            self._save_timeout_id = None
        if self._pending_caption is not None:
            self._do_save()

    # ==================== Slides ====================

    def _on_delete_clicked(self, button):
        if self.current_node is None:
            return
        self.save_if_pending()
        node = self.current_node
        gallery = self.journey.gallery(node.id)
        self.journey.request_delete_slide(node.id, gallery.index)

    def _on_add_clicked(self, button):
        dialog = Gtk.FileDialog()
        dialog.set_title("Add Photos")

        filter_img = Gtk.FileFilter()
        filter_img.set_name("Images")
        filter_img.add_mime_type("image/*")

        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(filter_img)
        dialog.set_filters(filters)

        dialog.open_multiple(self.get_root(), None, self._on_add_response)

    def _on_add_response(self, dialog, result):
        try:
            files = dialog.open_multiple_finish(result)
        except GLib.Error:
            return  # User cancelled
        if files is None or self.current_node is None:
            return

        uploads = []
        for i in range(files.get_n_items()):
            path = files.get_item(i).get_path()
            if not path:
                continue
            try:
                size = Path(path).stat().st_size
            except OSError as exc:
                logger.warning("Cannot read %s: %s", path, exc)
                continue
            uploads.append(MediaUpload(name=Path(path).name, image_ref=path, size=size))

        errors = self.journey.add_slides(self.current_node.id, uploads)
        if errors and self.on_upload_errors:
            self.on_upload_errors(errors)
        self.refresh()
        if self.on_gallery_changed:
            self.on_gallery_changed(self.current_node)
