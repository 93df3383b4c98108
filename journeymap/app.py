"""Main Journeymap application."""

import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gio, GLib, Adw

from journeymap import __version__, __app_id__
from journeymap.config import (
    JourneySettings, get_data_dir, get_document_path, load_settings,
)
from journeymap.canvas import JourneyCanvas
from journeymap.errors import ParseError
from journeymap.graph import Node
from journeymap.journey import Journey
from journeymap.render import JourneyRenderer
from journeymap.scheduler import GLibScheduler
from journeymap.storage import create_backup
from journeymap.widgets import GalleryPanel

logger = logging.getLogger(__name__)


class JourneyWindow(Adw.ApplicationWindow):
    """Main application window."""

    def __init__(self, app: Adw.Application, settings: JourneySettings):
        super().__init__(application=app)
        self.settings = settings
        self.document_path: Path = get_document_path()
        self._dirty = False

        self.journey = Journey(GLibScheduler(), self._confirm_destructive, settings)
        self.journey.on_selection_changed = self._on_node_selected
        self.journey.on_structure_changed = self._on_structure_changed

        self.set_title("Journeymap")
        self.set_default_size(1100, 720)

        self._build_ui()
        self._setup_shortcuts()

        self._autosave_timeout_id: Optional[int] = None
        self._setup_autosave()

        if self.document_path.exists():
            self._open_document(self.document_path)

    def _build_ui(self):
        """Build the main UI layout."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        main_box.append(self._build_header())

        paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        paned.set_vexpand(True)

        self.canvas = JourneyCanvas(self.journey)
        self.canvas.on_error = self._show_toast
        self.canvas.on_rename_requested = self._on_rename_node

        canvas_frame = Gtk.Frame()
        canvas_frame.set_child(self.canvas)
        paned.set_start_child(canvas_frame)
        paned.set_shrink_start_child(False)

        self.gallery_panel = GalleryPanel(self.journey)
        self.gallery_panel.on_gallery_changed = self._on_gallery_changed
        self.gallery_panel.on_upload_errors = self._on_upload_errors
        paned.set_end_child(self.gallery_panel)
        paned.set_shrink_end_child(False)
        paned.set_resize_end_child(False)

        # Wrap in toast overlay for in-app notifications
        self.toast_overlay = Adw.ToastOverlay()
        self.toast_overlay.set_child(paned)
        main_box.append(self.toast_overlay)

        self.set_content(main_box)

    def _build_header(self) -> Adw.HeaderBar:
        header = Adw.HeaderBar()
        header.add_css_class("flat")

        menu_btn = Gtk.MenuButton()
        menu_btn.set_icon_name("open-menu-symbolic")
        menu_btn.set_tooltip_text("Menu")

        menu = Gio.Menu()

        file_section = Gio.Menu()
        file_section.append("Open Journey...", "win.open")
        file_section.append("Save", "win.save")
        menu.append_section(None, file_section)

        export_section = Gio.Menu()
        export_menu = Gio.Menu()
        export_menu.append("Export as PNG...", "win.export-png")
        export_menu.append("Export as SVG...", "win.export-svg")
        export_section.append_submenu("Export", export_menu)
        menu.append_section(None, export_section)

        help_section = Gio.Menu()
        help_section.append("About Journeymap", "win.show-about")
        menu.append_section(None, help_section)

        popover = Gtk.PopoverMenu()
        popover.set_menu_model(menu)
        menu_btn.set_popover(popover)
        header.pack_start(menu_btn)

        self.mode_label = Gtk.Label(label="")
        self.mode_label.add_css_class("dim-label")
        header.set_title_widget(self.mode_label)
        self._update_mode_label()
        return header

    def _setup_shortcuts(self):
        """Setup keyboard shortcuts."""
        actions = [
            ("open", self._on_open, "<Control>o"),
            ("save", self._on_save, "<Control>s"),
            ("export-png", lambda: self._export("png"), None),
            ("export-svg", lambda: self._export("svg"), None),
            ("show-about", self._show_about, None),
            ("quit", lambda: self.close(), "<Control>q"),
        ]

        for name, callback, accel in actions:
            action = Gio.SimpleAction.new(name, None)
            action.connect("activate", lambda a, p, cb=callback: cb())
            self.add_action(action)

            if accel:
                self.get_application().set_accels_for_action(f"win.{name}", [accel])

    def _setup_autosave(self):
        """Setup auto-save timer."""
        interval = self.settings.autosave_interval

        if self._autosave_timeout_id:
            GLib.source_remove(self._autosave_timeout_id)
            self._autosave_timeout_id = None

        if interval > 0:
            self._autosave_timeout_id = GLib.timeout_add_seconds(
                interval, self._do_autosave
            )

    def _do_autosave(self) -> bool:
        if self._dirty:
            self.gallery_panel.save_if_pending()
            self._write_document()
        return True  # Continue timer

    # ==================== Confirmation ====================

    def _confirm_destructive(self, message: str, on_confirmed: Callable[[], None]):
        """Ask before deleting anything."""
        dialog = Adw.MessageDialog(
            transient_for=self,
            heading="Delete?",
            body=f"{message} This cannot be undone."
        )
        dialog.add_response("cancel", "Cancel")
        dialog.add_response("delete", "Delete")
        dialog.set_response_appearance("delete", Adw.ResponseAppearance.DESTRUCTIVE)
        dialog.set_default_response("cancel")
        dialog.connect("response", lambda d, r: self._on_confirm_response(r, on_confirmed))
        dialog.present()

    def _on_confirm_response(self, response: str, on_confirmed: Callable[[], None]):
        if response == "delete":
            on_confirmed()
            self._dirty = True
            self.gallery_panel.refresh()
            self.canvas.refresh()

    def _on_rename_node(self, node: Node):
        dialog = Adw.MessageDialog(
            transient_for=self,
            heading="Rename Checkpoint",
            body="Enter a new label for the checkpoint:"
        )

        entry = Gtk.Entry()
        entry.set_text(node.label)
        entry.set_margin_start(16)
        entry.set_margin_end(16)
        dialog.set_extra_child(entry)

        dialog.add_response("cancel", "Cancel")
        dialog.add_response("rename", "Rename")
        dialog.set_default_response("rename")
        dialog.connect("response", lambda d, r: self._confirm_rename(r, node, entry.get_text()))
        dialog.present()
        entry.grab_focus()

    def _confirm_rename(self, response: str, node: Node, new_label: str):
        if response == "rename" and self.journey.rename_node(node.id, new_label):
            self.canvas.refresh()
            self.gallery_panel.refresh()

    # ==================== Event Handlers ====================

    def _on_node_selected(self, node: Optional[Node]):
        if node:
            self.gallery_panel.show_gallery_for_node(node)
        else:
            self.gallery_panel.show_empty_state()
        self._update_mode_label()

    def _on_structure_changed(self):
        self._dirty = True
        self._update_mode_label()

    def _on_gallery_changed(self, node: Node):
        self._dirty = True
        self.canvas.refresh()

    def _on_upload_errors(self, errors):
        for error in errors:
            self._show_toast(f"Skipped {error.name}: too large")

    def _update_mode_label(self):
        if self.journey.graph.is_empty:
            text = "Click to place the first checkpoint"
        elif self.journey.is_branching:
            text = f"Branching from checkpoint {self.journey.branch_from_id} (Esc to cancel)"
        else:
            text = "Click to continue the journey, B to branch"
        self.mode_label.set_label(text)

    # ==================== Files ====================

    def _open_document(self, path: Path):
        try:
            self.journey.load(path)
        except ParseError as exc:
            logger.warning("Load failed: %s", exc)
            self._show_toast("Could not open journey: file is damaged or not a journey")
            return
        self.document_path = path
        self._dirty = False
        self.canvas.refresh()

    def _on_open(self):
        dialog = Gtk.FileDialog()
        dialog.set_title("Open Journey")

        filter_json = Gtk.FileFilter()
        filter_json.set_name("Journey Files")
        filter_json.add_pattern("*.json")

        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(filter_json)
        dialog.set_filters(filters)

        dialog.open(self, None, self._on_open_response)

    def _on_open_response(self, dialog, result):
        try:
            file = dialog.open_finish(result)
        except GLib.Error:
            return  # User cancelled
        if file and file.get_path():
            self._open_document(Path(file.get_path()))

    def _write_document(self) -> bool:
        try:
            self.journey.save(self.document_path)
        except OSError as exc:
            logger.error("Save failed: %s", exc)
            self._show_toast(f"Save failed: {exc}")
            return False
        self._dirty = False
        return True

    def _on_save(self):
        """Manual save, with a backup of the written file."""
        self.gallery_panel.save_if_pending()
        if self._write_document():
            create_backup(self.document_path, get_data_dir() / "backups",
                          keep=self.settings.backup_count)
            self._show_toast(f"Saved to {self.document_path}")

    def _export(self, fmt: str):
        if self.journey.graph.is_empty:
            self._show_toast("Nothing to export yet")
            return

        dialog = Gtk.FileDialog()
        dialog.set_title(f"Export as {fmt.upper()}")
        dialog.set_initial_name(f"journey.{fmt}")
        dialog.set_initial_folder(Gio.File.new_for_path(str(get_data_dir() / "exports")))
        dialog.save(self, None, lambda d, r: self._on_export_response(d, r, fmt))

    def _on_export_response(self, dialog, result, fmt: str):
        try:
            file = dialog.save_finish(result)
        except GLib.Error:
            return  # User cancelled
        filepath = file.get_path() if file else None
        if not filepath:
            self._show_toast("Export failed: selected location is not a local file")
            return

        renderer = JourneyRenderer(self.journey)
        ok = renderer.export_png(filepath) if fmt == "png" else renderer.export_svg(filepath)
        self._show_toast(f"Exported to {filepath}" if ok else "Export failed")

    def _show_about(self):
        about = Adw.AboutWindow(
            transient_for=self,
            application_name="Journeymap",
            application_icon="image-x-generic",
            version=__version__,
            license_type=Gtk.License.MIT_X11,
            comments="Branching journey timelines with photo memories",
        )
        about.present()

    def _show_toast(self, message: str):
        toast = Adw.Toast(title=message)
        toast.set_timeout(3)
        self.toast_overlay.add_toast(toast)

    def flush(self):
        """Write pending edits before shutdown."""
        self.gallery_panel.save_if_pending()
        if self._dirty:
            self._write_document()


class JourneyApp(Adw.Application):
    """Main application class."""

    def __init__(self):
        super().__init__(
            application_id=__app_id__,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS
        )
        self.settings: Optional[JourneySettings] = None
        self.window: Optional[JourneyWindow] = None

    def do_startup(self):
        Adw.Application.do_startup(self)
        self.settings = load_settings()

    def do_activate(self):
        if not self.window:
            self.window = JourneyWindow(self, self.settings)
        self.window.present()

    def do_shutdown(self):
        if self.window:
            self.window.flush()
        Adw.Application.do_shutdown(self)


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = JourneyApp()
    return app.run(sys.argv if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
