"""Canvas widget for placing checkpoints and showing the journey marker."""

import logging
from typing import Callable, Optional

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk, Pango

from journeymap.errors import IntegrityError, ValidationError
from journeymap.graph import Node
from journeymap.journey import Journey
from journeymap.popup import PopupAnchor, Rect, Viewport
from journeymap.render import JourneyRenderer

logger = logging.getLogger(__name__)


class JourneyCanvas(Gtk.DrawingArea):
    """Drawing area that turns clicks and keys into journey operations."""

    def __init__(self, journey: Journey):
        super().__init__()

        self.journey = journey
        self.renderer = JourneyRenderer(journey)
        self.hovered_node: Optional[Node] = None

        # Callbacks
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_rename_requested: Optional[Callable[[Node], None]] = None

        # Setup widget
        self.set_draw_func(self._on_draw)
        self.set_focusable(True)
        self.set_can_focus(True)
        self.set_content_width(int(journey.settings.canvas_width))
        self.set_content_height(int(journey.settings.canvas_height))
        self.set_hexpand(True)
        self.set_vexpand(True)

        self._setup_event_controllers()
        self._build_popup()
        self.connect("resize", self._on_resize)

        journey.animator.on_frame = self.queue_draw

    def _setup_event_controllers(self):
        """Setup mouse and keyboard event controllers."""
        click_ctrl = Gtk.GestureClick()
        click_ctrl.set_button(1)
        click_ctrl.connect("pressed", self._on_click)
        self.add_controller(click_ctrl)

        motion_ctrl = Gtk.EventControllerMotion()
        motion_ctrl.connect("motion", self._on_motion)
        motion_ctrl.connect("leave", self._on_leave)
        self.add_controller(motion_ctrl)

        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_ctrl)

    def _build_popup(self):
        """Info popup anchored at the selected checkpoint."""
        self.popup = Gtk.Popover()
        self.popup.set_autohide(False)
        self.popup.set_has_arrow(True)
        self.popup.add_css_class("journey-popup")

        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=4)
        box.set_size_request(int(self.journey.settings.popup_width), -1)
        box.set_margin_start(8)
        box.set_margin_end(8)
        box.set_margin_top(8)
        box.set_margin_bottom(8)

        self.popup_title = Gtk.Label()
        self.popup_title.set_halign(Gtk.Align.START)
        self.popup_title.add_css_class("heading")
        box.append(self.popup_title)

        self.popup_body = Gtk.Label()
        self.popup_body.set_halign(Gtk.Align.START)
        self.popup_body.set_wrap(True)
        self.popup_body.set_wrap_mode(Pango.WrapMode.WORD_CHAR)
        box.append(self.popup_body)

        self.popup.set_child(box)
        self.popup.set_parent(self)

    # ==================== Drawing ====================

    def _on_draw(self, area, cr, width, height):
        self.renderer.draw(cr, width, height)

    def _on_resize(self, area, width, height):
        self.update_popup()

    def update_popup(self):
        """Reposition and refill the info popup for the current selection."""
        node = self.journey.selected_node
        if node is None:
            self.popup.popdown()
            return

        x, y, w, h = self.renderer.node_bounds(node)
        placement = self.journey.popup_placement(
            Rect.from_xywh(x, y, w, h),
            Viewport(self.get_width(), self.get_height()),
        )

        rect = Gdk.Rectangle()
        rect.x, rect.y, rect.width, rect.height = int(x), int(y), int(w), int(h)
        self.popup.set_pointing_to(rect)
        self.popup.set_position(
            Gtk.PositionType.BOTTOM if placement.anchor is PopupAnchor.BELOW
            else Gtk.PositionType.TOP
        )
        self.popup.set_offset(int(placement.offset_x), 0)

        gallery = self.journey.gallery(node.id)
        self.popup_title.set_label(node.label or f"Checkpoint {node.id}")
        self.popup_body.set_label(gallery.current.text)
        self.popup.popup()

    # ==================== Input ====================

    def _on_click(self, gesture, n_press, x, y):
        self.grab_focus()
        clicked = self.renderer.find_node_at(x, y)

        if clicked and n_press == 2:
            if self.on_rename_requested:
                self.on_rename_requested(clicked)
        elif clicked:
            self._select(clicked.id)
        elif n_press == 1:
            self._place(x, y)

    def _place(self, x: float, y: float):
        try:
            self.journey.place_node(x, y)
        except ValidationError as exc:
            self._report(str(exc))
        except IntegrityError as exc:
            self._report(f"Journey data is corrupted: {exc}")
        self.update_popup()
        self.queue_draw()

    def _select(self, node_id: Optional[int]):
        try:
            self.journey.select(node_id)
        except IntegrityError as exc:
            self._report(f"Journey data is corrupted: {exc}")
        self.update_popup()
        self.queue_draw()

    def _on_motion(self, controller, x, y):
        new_hover = self.renderer.find_node_at(x, y)
        if new_hover is not self.hovered_node:
            self.hovered_node = new_hover
            self.set_cursor_from_name("pointer" if new_hover else "crosshair")

    def _on_leave(self, controller):
        self.hovered_node = None

    def _on_key_pressed(self, controller, keyval, keycode, state):
        """Handle keyboard input."""
        selected = self.journey.selected_node

        if keyval in (Gdk.KEY_Delete, Gdk.KEY_BackSpace):
            if selected:
                self.journey.request_delete_node(selected.id)
            return True

        elif keyval == Gdk.KEY_b:
            # Next placement forks from the selected checkpoint
            if selected:
                self.journey.start_branch(selected.id)
                self.queue_draw()
            return True

        elif keyval == Gdk.KEY_F2:
            if selected and self.on_rename_requested:
                self.on_rename_requested(selected)
            return True

        elif keyval == Gdk.KEY_Escape:
            if self.journey.is_branching:
                self.journey.cancel_branch()
            else:
                self._select(None)
            self.queue_draw()
            return True

        return False

    def refresh(self):
        """Redraw after an external change to the journey."""
        self.update_popup()
        self.queue_draw()

    def _report(self, message: str):
        logger.warning(message)
        if self.on_error:
            self.on_error(message)
