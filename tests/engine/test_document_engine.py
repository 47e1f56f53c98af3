"""
Tests for DocumentEngine: structural edits keep sequences valid, history is
bounded and reversible, no-op requests leave the document reference alone.
"""

import math
import random

import pytest

from codec.default_codec import ExportOnlyCodec
from engine.document_engine import DocumentEngine, ensure_history_limit
from models.animation import AnimationMeta
from models.enums import EditOperation
from models.events import EventType
from models.frame import SpriteFrame
from utils.errors import CodecCapabilityError


def assert_consistent(doc):
    count = len(doc.frames)
    for sequence in doc.animations.values():
        assert all(0 <= entry < count for entry in sequence)
    ids = set(doc.frame_ids())
    assert set(doc.selected) <= ids
    assert set(doc.animations_meta) <= set(doc.animations)


class TestInsertFrame:
    """add_frame shifts every entry at or after the insertion point"""

    def test_insert_in_middle_shifts_entries(self, engine):
        frame = engine.add_frame({"x": 99, "y": 0, "w": 16, "h": 16}, index=1)

        doc = engine.document
        assert doc.frames[1] is frame
        assert doc.animations["walk"] == (0, 2, 3, 4)
        assert doc.animations["idle"] == (0, 2)
        assert doc.selected == (frame.id,)
        assert_consistent(doc)

    def test_append_generates_id_and_keeps_entries(self, engine):
        frame = engine.add_frame({"x": 1, "y": 2, "w": 3, "h": 4})

        assert frame.id
        assert engine.document.frames[-1].id == frame.id
        assert engine.document.animations["walk"] == (0, 1, 2, 3)

    def test_keeps_supplied_id(self, engine):
        frame = engine.add_frame(SpriteFrame(id="custom", x=5))
        assert frame.id == "custom"
        assert engine.document.get_frame("custom") is not None

    @pytest.mark.parametrize("missing", ["", None])
    def test_frame_without_id_gets_one(self, engine, missing):
        frame = engine.add_frame(SpriteFrame(id=missing, x=5))

        assert frame.id
        assert frame.x == 5
        assert engine.document.get_frame(frame.id) is frame
        assert engine.document.selected == (frame.id,)

    @pytest.mark.parametrize("index,expected_position", [(99, 4), (-5, 0)])
    def test_index_is_clamped(self, engine, index, expected_position):
        frame = engine.add_frame({"x": 7}, index=index)
        assert engine.document.index_of(frame.id) == expected_position
        assert_consistent(engine.document)

    def test_records_history(self, engine):
        assert not engine.can_undo
        engine.add_frame({"x": 1})
        assert engine.can_undo


class TestUpdateFrame:
    def test_merges_fields(self, engine):
        updated = engine.update_frame("f1", x=100, duration=40)

        assert updated.id == "f1"
        assert updated.x == 100
        assert updated.duration == 40
        assert engine.document.frames[1] == updated
        assert engine.document.animations["walk"] == (0, 1, 2, 3)

    def test_patch_mapping_cannot_change_id(self, engine):
        updated = engine.update_frame("f2", {"id": "other", "w": 3})
        assert updated.id == "f2"
        assert updated.w == 3

    def test_missing_frame_is_noop(self, engine):
        before = engine.document
        assert engine.update_frame("nope", x=1) is None
        assert engine.document is before
        assert not engine.can_undo

    def test_identical_values_do_not_record_history(self, engine):
        before = engine.document
        engine.update_frame("f1", x=16)
        assert engine.document is before
        assert not engine.can_undo

    def test_image_uri_key_maps_to_image_ref(self, engine):
        updated = engine.update_frame("f1", {"imageUri": "file://x.png"})

        assert updated.image_ref == "file://x.png"
        assert engine.document.frames[1].image_ref == "file://x.png"
        assert engine.can_undo

    def test_unknown_keys_are_ignored(self, engine):
        before = engine.document
        updated = engine.update_frame("f1", {"label": "x"})

        assert updated is before.frames[1]
        assert engine.document is before
        assert not engine.can_undo

    def test_unknown_keys_do_not_block_known_ones(self, engine):
        updated = engine.update_frame("f1", {"label": "x", "h": 32})
        assert updated.h == 32


class TestRemoveFrames:
    """Removing index k strips k and decrements entries > k"""

    def test_remove_single_frame(self, engine):
        engine.remove_frame("f1")

        doc = engine.document
        assert doc.frame_ids() == ("f0", "f2", "f3")
        assert doc.animations["walk"] == (0, 1, 2)
        assert doc.animations["idle"] == (0,)

    def test_emptied_sequence_is_kept(self, engine):
        engine.set_animations_meta({"idle": {"fps": 8}, "walk": {"fps": 10}})
        engine.remove_frames(["f0", "f1"])

        doc = engine.document
        assert doc.animations["idle"] == ()
        assert "idle" in doc.animations_meta
        assert doc.animations["walk"] == (0, 1)
        assert_consistent(doc)

    def test_removes_every_occurrence(self, engine):
        engine.set_animations({"loop": [2, 0, 2, 3, 2]})
        engine.remove_frame("f2")
        assert engine.document.animations["loop"] == (0, 2)

    def test_nonexistent_ids_are_noop(self, engine):
        before = engine.document
        engine.remove_frames(["x", "y"])
        engine.remove_frames([])
        assert engine.document is before
        assert not engine.can_undo

    def test_selection_filtered(self, engine):
        engine.set_selection(["f1", "f2"])
        engine.remove_frame("f1")
        assert engine.document.selected == ("f2",)


class TestReorderFrames:
    def test_moves_frame_without_touching_sequences(self, engine):
        engine.reorder_frames(0, 2)

        doc = engine.document
        assert doc.frame_ids() == ("f1", "f2", "f0", "f3")
        # positions now point at the new occupants
        assert doc.animations["walk"] == (0, 1, 2, 3)
        assert doc.animations["idle"] == (0, 1)

    def test_target_is_clamped(self, engine):
        engine.reorder_frames(0, 99)
        assert engine.document.frame_ids() == ("f1", "f2", "f3", "f0")

    @pytest.mark.parametrize("src,dst", [(1, 1), (-1, 2), (4, 0)])
    def test_invalid_requests_are_noop(self, engine, src, dst):
        before = engine.document
        engine.reorder_frames(src, dst)
        assert engine.document is before


class TestSelection:
    def test_set_selection_sanitizes_and_dedupes(self, engine):
        engine.set_selection(["f1", "zzz", "f1", "f3"])
        assert engine.document.selected == ("f1", "f3")

    def test_append(self, engine):
        engine.set_selection(["f0"])
        engine.set_selection(["f2"], append=True)
        assert engine.document.selected == ("f0", "f2")

    def test_select_frame_modes(self, engine):
        engine.select_frame("f1")
        assert engine.document.selected == ("f1",)
        engine.select_frame("f2", additive=True)
        assert engine.document.selected == ("f1", "f2")
        engine.select_frame("f1", toggle=True)
        assert engine.document.selected == ("f2",)
        engine.select_frame("f3")
        assert engine.document.selected == ("f3",)

    def test_select_all_and_clear(self, engine):
        engine.select_all()
        assert engine.document.selected == ("f0", "f1", "f2", "f3")
        engine.clear_selection()
        assert engine.document.selected == ()

    def test_not_tracked_in_history_by_default(self, engine):
        engine.select_all()
        assert not engine.can_undo

    def test_tracked_when_enabled(self, document):
        engine = DocumentEngine(initial=document, track_selection_in_history=True)
        engine.select_all()
        assert engine.can_undo
        engine.undo()
        assert engine.document.selected == ()


class TestClipboard:
    def test_copy_does_not_record_history(self, engine):
        engine.select_frame("f1")
        engine.copy_selected()

        assert [f.id for f in engine.document.clipboard] == ["f1"]
        assert not engine.can_undo

    def test_paste_after_last_selected(self, engine):
        engine.select_frame("f1")
        engine.copy_selected()
        pasted = engine.paste_clipboard()

        doc = engine.document
        assert len(pasted) == 1
        assert pasted[0].id != "f1"
        assert doc.index_of(pasted[0].id) == 2
        assert doc.frames[2].x == 16
        assert doc.animations["walk"] == (0, 1, 3, 4)
        assert doc.animations["idle"] == (0, 1)
        assert doc.selected == (pasted[0].id,)

    def test_paste_without_selection_appends(self, engine):
        engine.select_frame("f0")
        engine.copy_selected()
        engine.clear_selection()
        pasted = engine.paste_clipboard()
        assert engine.document.index_of(pasted[0].id) == 4

    def test_paste_explicit_index_is_clamped(self, engine):
        engine.select_frame("f3")
        engine.copy_selected()
        pasted = engine.paste_clipboard(index=-3)
        assert engine.document.index_of(pasted[0].id) == 0
        assert engine.document.animations["idle"] == (1, 2)

    def test_repeated_paste_never_aliases_ids(self, engine):
        engine.select_all()
        engine.copy_selected()
        first = engine.paste_clipboard()
        second = engine.paste_clipboard()

        ids = engine.document.frame_ids()
        assert len(ids) == len(set(ids)) == 12
        assert not {f.id for f in first} & {f.id for f in second}
        assert not {f.id for f in first} & {"f0", "f1", "f2", "f3"}

    def test_cut_then_paste(self, engine):
        engine.select_frame("f0")
        engine.cut_selected()

        assert engine.document.frame_ids() == ("f1", "f2", "f3")
        assert engine.document.clipboard[0].id == "f0"

        pasted = engine.paste_clipboard()
        assert pasted[0].id != "f0"
        assert pasted[0].x == 0

    def test_empty_clipboard_is_noop(self, engine):
        before = engine.document
        assert engine.paste_clipboard() == []
        engine.copy_selected()
        assert engine.document is before


class TestHistory:
    def test_undo_restores_previous_value(self, engine):
        before = engine.document
        engine.add_frame({"x": 1}, index=0)
        engine.undo()
        assert engine.document == before

    def test_redo_reapplies(self, engine):
        engine.remove_frame("f2")
        after = engine.document
        engine.undo()
        engine.redo()
        assert engine.document == after
        assert not engine.can_redo

    def test_new_edit_clears_future(self, engine):
        engine.remove_frame("f2")
        engine.undo()
        assert engine.can_redo
        engine.update_meta({"title": "x"})
        assert not engine.can_redo

    def test_history_is_bounded(self, document):
        engine = DocumentEngine(initial=document, history_limit=2)
        for i in range(5):
            engine.update_meta({"step": i})
        assert engine.history_size == 2
        assert engine.undo() and engine.undo()
        assert not engine.undo()
        assert engine.document.meta == {"step": 2}

    def test_undo_keeps_clipboard(self, engine):
        engine.select_frame("f1")
        engine.copy_selected()
        engine.remove_frame("f3")
        engine.undo()
        assert [f.id for f in engine.document.clipboard] == ["f1"]

    def test_empty_stacks(self, engine):
        before = engine.document
        assert not engine.undo()
        assert not engine.redo()
        assert engine.document is before

    @pytest.mark.parametrize("value", [0, -1, float("nan"), math.inf, "10", True, None])
    def test_invalid_history_limit_falls_back(self, value):
        assert ensure_history_limit(value) == 50

    def test_fractional_history_limit_is_floored(self):
        assert ensure_history_limit(3.7) == 3


class TestImportExport:
    def test_export_strips_ids(self, engine):
        data = engine.export_json()
        assert all("id" not in frame for frame in data["frames"])
        assert data["animations"]["walk"] == [0, 1, 2, 3]

    def test_import_replaces_content_and_resets_history(self, engine, recorder):
        engine.select_frame("f0")
        engine.copy_selected()
        engine.update_meta({"title": "old"})
        engine.event_bus.subscribe(EventType.DOCUMENT_IMPORTED, recorder)

        payload = {
            "frames": [{"x": 0, "y": 0, "w": 8, "h": 8}, {"x": 8, "y": 0, "w": 8, "h": 8}],
            "animations": {"spin": [1, 0]},
            "meta": {"title": "new"},
        }
        assert engine.import_json(payload)

        doc = engine.document
        assert len(doc.frames) == 2
        assert not {"f0", "f1"} & set(doc.frame_ids())
        assert doc.animations == {"spin": (1, 0)}
        assert doc.selected == ()
        assert doc.clipboard == ()
        assert doc.meta == {"title": "new"}
        assert not engine.can_undo and not engine.can_redo
        assert len(recorder.events) == 1

    def test_malformed_payload_is_noop(self, engine):
        before = engine.document
        assert not engine.import_json({"frames": "nope"})
        assert not engine.import_json(None)
        assert engine.document is before

    def test_codec_without_import_raises(self, engine):
        codec = ExportOnlyCodec(lambda doc: {"count": len(doc.frames)}, name="summary")

        assert engine.export_json(codec) == {"count": 4}
        with pytest.raises(CodecCapabilityError, match="summary"):
            engine.import_json({"frames": []}, codec=codec)


class TestAnimationsAndMeta:
    def test_update_meta_merges_and_deletes(self, engine):
        engine.update_meta({"a": 1, "b": 2})
        engine.update_meta({"a": None, "c": 3})
        assert engine.document.meta == {"b": 2, "c": 3}

    def test_set_animations_syncs_meta(self, engine):
        engine.set_animations({"walk": [0, 1]})
        assert engine.document.animations_meta == {"walk": AnimationMeta(fps=10)}

        engine.set_animations({"run": [0]})
        assert engine.document.animations_meta == {}

    def test_set_animations_drops_out_of_range_entries(self, engine):
        engine.set_animations({"bad": [0, 9, -1, 3]})
        assert engine.document.animations["bad"] == (0, 3)

    def test_set_animations_meta_ignores_unknown_names(self, engine):
        engine.set_animations_meta({"idle": {"loop": False}, "ghost": {"fps": 3}})
        assert set(engine.document.animations_meta) == {"idle"}
        assert engine.document.animations_meta["idle"].loop is False

    def test_auto_play_must_name_an_animation(self, engine):
        engine.set_auto_play_animation("idle")
        assert engine.document.auto_play_animation == "idle"
        engine.set_auto_play_animation("ghost")
        assert engine.document.auto_play_animation is None

    def test_reset_clears_history(self, engine):
        engine.update_meta({"x": 1})
        engine.reset({"frames": [{"x": 1}], "selected": ["missing"]})

        assert len(engine.document.frames) == 1
        assert engine.document.selected == ()
        assert not engine.can_undo


class TestEvents:
    def test_change_and_history_events(self, engine, recorder):
        engine.event_bus.subscribe(EventType.DOCUMENT_CHANGED, recorder)
        engine.event_bus.subscribe(EventType.HISTORY_CHANGED, recorder)

        engine.remove_frame("f0")

        changed = recorder.of(EventType.DOCUMENT_CHANGED)
        history = recorder.of(EventType.HISTORY_CHANGED)
        assert changed[0].operation is EditOperation.REMOVE_FRAMES
        assert changed[0].document is engine.document
        assert (history[0].can_undo, history[0].can_redo) == (True, False)

    def test_noop_publishes_nothing(self, engine, recorder):
        engine.event_bus.subscribe(EventType.DOCUMENT_CHANGED, recorder)
        engine.remove_frame("missing")
        engine.reorder_frames(2, 2)
        assert recorder.events == []


def test_random_edit_sequences_keep_invariants(engine):
    """Any mix of operations leaves sequences, selection and meta consistent."""
    rng = random.Random(7)
    for _ in range(300):
        doc = engine.document
        ids = list(doc.frame_ids())
        op = rng.randrange(9)
        if op == 0:
            engine.add_frame({"x": rng.randrange(64)}, index=rng.randrange(-2, len(ids) + 3))
        elif op == 1 and ids:
            engine.remove_frames(rng.sample(ids, rng.randrange(1, min(3, len(ids)) + 1)))
        elif op == 2 and ids:
            engine.set_selection(rng.sample(ids, rng.randrange(len(ids) + 1)))
        elif op == 3:
            engine.copy_selected()
            engine.paste_clipboard()
        elif op == 4:
            engine.undo()
        elif op == 5:
            engine.redo()
        elif op == 6 and ids:
            engine.set_animations({"a": [rng.randrange(len(ids)) for _ in range(5)]})
        elif op == 7:
            engine.reorder_frames(rng.randrange(-1, len(ids) + 1), rng.randrange(len(ids) + 2))
        elif op == 8:
            engine.cut_selected()
        assert_consistent(engine.document)
