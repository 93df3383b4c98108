"""Tests for the Journey session: placement, selection, deletion, loading."""

import json

import pytest

from journeymap.animator import TransitionKind
from journeymap.config import JourneySettings
from journeymap.errors import IntegrityError, ParseError, ValidationError
from journeymap.gallery import MediaUpload
from journeymap.journey import Journey
from journeymap.popup import PopupAnchor, Rect, Viewport


class TestPlacement:
    def test_place_selects_new_node(self, journey):
        node = journey.place_node(100, 100, "Start")
        assert journey.selected_id == node.id
        assert node.label == "Start"

    def test_sequential_chain(self, journey):
        journey.place_node(100, 100)
        journey.place_node(100, 200)
        third = journey.place_node(100, 300)
        assert [n.id for n in journey.active_path()] == [1, 2, 3]
        assert third.parent_id == 2

    def test_branch_is_consumed(self, forked_journey):
        assert not forked_journey.is_branching
        node = forked_journey.place_node(400, 400)
        assert node.parent_id == 4

    def test_branch_defaults_to_selection(self, forked_journey):
        forked_journey.select(1)
        forked_journey.start_branch()
        node = forked_journey.place_node(300, 100)
        assert node.parent_id == 1

    def test_branch_from_unknown(self, forked_journey):
        with pytest.raises(ValidationError):
            forked_journey.start_branch(42)

    def test_cancel_branch(self, forked_journey):
        forked_journey.start_branch(1)
        forked_journey.cancel_branch()
        node = forked_journey.place_node(300, 100)
        assert node.parent_id == 4

    def test_rejected_placement_changes_nothing(self, forked_journey):
        forked_journey.start_branch(1)
        with pytest.raises(ValidationError):
            forked_journey.place_node(2, 2)
        assert len(forked_journey.graph) == 4
        assert forked_journey.branch_from_id == 1
        assert forked_journey.selected_id == 4

    def test_structure_callback(self, journey):
        calls = []
        journey.on_structure_changed = lambda: calls.append(True)
        journey.place_node(100, 100)
        assert calls


class TestSelection:
    def test_paths_for_fork(self, forked_journey):
        forked_journey.select(3)
        assert [n.id for n in forked_journey.active_path()] == [1, 2, 3]
        forked_journey.select(4)
        assert [n.id for n in forked_journey.active_path()] == [1, 2, 4]

    def test_switching_siblings_jumps(self, forked_journey, scheduler):
        forked_journey.select(3)
        scheduler.advance(1100)
        forked_journey.select(4)
        assert forked_journey.animator.phase is TransitionKind.JUMPING

    def test_single_node_has_no_marker(self, journey, scheduler):
        journey.place_node(100, 100)
        scheduler.advance(1100)
        assert len(journey.active_path()) == 1
        assert journey.animator.marker_position() is None

    def test_unknown_id_deselects(self, forked_journey):
        seen = []
        forked_journey.on_selection_changed = seen.append
        forked_journey.select(99)
        assert forked_journey.selected_id is None
        assert forked_journey.active_path() == []
        assert seen == [None]
        assert forked_journey.animator.rendered_path is None

    def test_corrupt_chain_keeps_selection(self, forked_journey, scheduler):
        forked_journey.select(3)
        scheduler.advance(1100)
        forked_journey.graph.get_node(1).parent_id = 4

        with pytest.raises(IntegrityError):
            forked_journey.select(4)
        assert forked_journey.selected_id == 3
        assert forked_journey.animator.rendered_chain == (1, 2, 3)

    def test_placement_extends_marker_path(self, journey, scheduler):
        journey.place_node(100, 100)
        journey.place_node(100, 200)
        scheduler.advance(1100)
        journey.place_node(100, 300)
        assert journey.animator.phase is TransitionKind.EXTENDING
        assert journey.animator.offset_percent > 0


class TestDeleteNode:
    def test_requires_confirmation(self, forked_journey, confirm):
        confirm.accept = False
        forked_journey.request_delete_node(2)
        assert 2 in forked_journey.graph
        assert len(confirm.messages) == 1

    def test_confirmed_delete_reparents(self, forked_journey, confirm):
        forked_journey.request_delete_node(2)
        graph = forked_journey.graph
        assert 2 not in graph
        assert graph.get_node(3).parent_id is None
        assert graph.get_node(4).parent_id is None
        assert graph.get_node(1).parent_id is None

    def test_deleting_selected_deselects(self, forked_journey):
        forked_journey.select(3)
        forked_journey.request_delete_node(3)
        assert forked_journey.selected_id is None
        assert forked_journey.animator.marker_position() is None

    def test_deleting_ancestor_shortens_active_path(self, forked_journey):
        forked_journey.select(3)
        forked_journey.request_delete_node(2)
        assert forked_journey.selected_id == 3
        assert [n.id for n in forked_journey.active_path()] == [3]
        assert forked_journey.animator.rendered_path is None

    def test_deleting_branch_source_cancels_branch(self, forked_journey):
        forked_journey.start_branch(1)
        forked_journey.request_delete_node(1)
        assert not forked_journey.is_branching

    def test_unknown_node_is_not_confirmed(self, forked_journey, confirm):
        forked_journey.request_delete_node(99)
        assert confirm.messages == []


class TestGalleryOps:
    def test_add_slides_respects_limit(self, forked_journey, settings):
        too_big = settings.max_upload_bytes + 1
        errors = forked_journey.add_slides(2, [
            MediaUpload("ok.jpg", "ok.jpg", 10),
            MediaUpload("big.jpg", "big.jpg", too_big),
        ])
        assert [e.name for e in errors] == ["big.jpg"]
        assert [s.image_ref for s in forked_journey.graph.get_node(2).slides] == ["ok.jpg"]

    def test_delete_slide_requires_confirmation(self, forked_journey, confirm):
        forked_journey.add_slides(2, [MediaUpload("a", "a.jpg", 1)])
        confirm.accept = False
        forked_journey.request_delete_slide(2, 0)
        assert len(forked_journey.gallery(2)) == 1
        assert not forked_journey.gallery(2).current.is_placeholder

    def test_delete_last_slide(self, forked_journey):
        forked_journey.add_slides(2, [MediaUpload("a", "a.jpg", 1)])
        forked_journey.request_delete_slide(2, 0)
        slides = forked_journey.graph.get_node(2).slides
        assert len(slides) == 1
        assert slides[0].is_placeholder

    def test_confirmed_slide_is_deleted_even_after_reorder(self, forked_journey, confirm):
        forked_journey.add_slides(2, [MediaUpload(n, f"{n}.jpg", 1) for n in "abc"])
        confirm.accept = False
        forked_journey.request_delete_slide(2, 1)
        forked_journey.gallery(2).delete(0)

        confirm.pending[0]()
        slides = forked_journey.graph.get_node(2).slides
        assert [s.image_ref for s in slides] == ["c.jpg"]

    def test_confirmed_slide_already_gone(self, forked_journey, confirm):
        forked_journey.add_slides(2, [MediaUpload(n, f"{n}.jpg", 1) for n in "ab"])
        confirm.accept = False
        forked_journey.request_delete_slide(2, 0)
        forked_journey.gallery(2).delete(0)

        confirm.pending[0]()
        slides = forked_journey.graph.get_node(2).slides
        assert [s.image_ref for s in slides] == ["b.jpg"]

    def test_out_of_range_slide_is_ignored(self, forked_journey, confirm):
        forked_journey.request_delete_slide(2, 5)
        assert confirm.messages == []

    def test_gallery_of_deleted_node(self, forked_journey):
        forked_journey.request_delete_node(3)
        with pytest.raises(KeyError):
            forked_journey.gallery(3)

    def test_edit_caption(self, forked_journey):
        forked_journey.edit_caption(1, 0, "Trailhead")
        assert forked_journey.gallery(1).current.text == "Trailhead"


class TestMisc:
    def test_rename_strips(self, forked_journey):
        assert forked_journey.rename_node(1, "  Base  ")
        assert forked_journey.graph.get_node(1).label == "Base"

    def test_popup_uses_settings(self, forked_journey):
        placement = forked_journey.popup_placement(Rect.from_xywh(30, 40, 20, 20),
                                                   Viewport(520, 500))
        assert placement.anchor is PopupAnchor.BELOW
        assert placement.offset_x == pytest.approx(100 - 30 + 16)


class TestPersistence:
    def test_save_and_load(self, forked_journey, scheduler, confirm, settings, tmp_path):
        forked_journey.music = "walk.mp3"
        path = forked_journey.save(tmp_path / "journey.json")

        journey = Journey(scheduler, confirm, settings)
        journey.load(path)
        assert [n.id for n in journey.graph] == [1, 2, 3, 4]
        assert journey.music == "walk.mp3"
        assert journey.selected_id is None
        assert journey.graph.settings is journey.settings

    def test_failed_load_keeps_state(self, forked_journey, tmp_path, scheduler):
        forked_journey.select(3)
        scheduler.advance(1100)
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"nodes": [{"id": 1, "parentId": 5}]}), encoding="utf-8")

        with pytest.raises(ParseError):
            forked_journey.load(path)
        assert len(forked_journey.graph) == 4
        assert forked_journey.selected_id == 3
        assert forked_journey.animator.rendered_chain == (1, 2, 3)

    def test_foreign_json_keeps_state(self, forked_journey, tmp_path):
        forked_journey.select(3)
        path = tmp_path / "settings.json"
        path.write_text(JourneySettings().to_json(), encoding="utf-8")

        with pytest.raises(ParseError):
            forked_journey.load(path)
        assert len(forked_journey.graph) == 4
        assert forked_journey.selected_id == 3

    def test_load_resets_marker(self, forked_journey, tmp_path, scheduler):
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps([{"id": 1, "x": 50, "y": 50}, {"id": 2, "x": 60, "y": 90}]),
                        encoding="utf-8")
        forked_journey.select(3)
        forked_journey.load(path)
        assert forked_journey.animator.rendered_path is None
        assert scheduler.active == 0
        assert forked_journey.graph.get_node(2).parent_id == 1
