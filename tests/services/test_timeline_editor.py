"""
Tests for entry-level timeline editing.
"""

import pytest

from services.timeline_editor import TimelineEditor


@pytest.fixture
def timeline(engine):
    return TimelineEditor(engine)


def walk(engine):
    return engine.document.animations["walk"]


def multipliers(engine, name="walk"):
    return engine.document.animations_meta[name].multipliers


class TestClipboard:
    def test_copy_and_paste_after_selection(self, timeline, engine):
        timeline.select_index(1, "walk")
        assert timeline.copy_selection("walk") == (1,)

        assert timeline.paste("walk")
        assert walk(engine) == (0, 1, 1, 2, 3)
        assert timeline.selected_index == 2

    def test_paste_is_one_undo_step(self, timeline, engine):
        timeline.copy_selection("walk", index=3)
        timeline.paste("walk", index=0)
        assert walk(engine) == (3, 0, 1, 2, 3)

        engine.undo()
        assert walk(engine) == (0, 1, 2, 3)

    def test_paste_without_clipboard(self, timeline, engine):
        assert not timeline.has_clipboard
        assert not timeline.paste("walk")
        assert not engine.can_undo

    def test_copy_out_of_range(self, timeline):
        assert timeline.copy_selection("walk", index=9) is None
        assert timeline.clipboard is None

    def test_paste_keeps_multipliers_absent(self, timeline, engine):
        timeline.copy_selection("walk", index=0)
        timeline.paste("walk")
        assert multipliers(engine) is None

    def test_clear_clipboard(self, timeline):
        timeline.copy_selection("idle", index=0)
        timeline.clear_clipboard()
        assert not timeline.has_clipboard


class TestEntries:
    def test_insert_entry(self, timeline, engine):
        assert timeline.insert_entry("idle", 3)
        assert timeline.insert_entry("idle", 2, position=0)
        assert engine.document.animations["idle"] == (2, 0, 1, 3)

    def test_insert_rejects_unknown_frame(self, timeline, engine):
        assert not timeline.insert_entry("idle", 9)
        assert engine.document.animations["idle"] == (0, 1)

    def test_remove_selected_entry_clamps_selection(self, timeline, engine):
        timeline.select_index(3, "walk")
        assert timeline.remove_entry("walk")
        assert walk(engine) == (0, 1, 2)
        assert timeline.selected_index == 2

    def test_removing_last_entry_clears_selection(self, timeline, engine):
        timeline.select_index(0, "idle")
        timeline.remove_entry("idle")
        timeline.remove_entry("idle", 0)
        assert engine.document.animations["idle"] == ()
        assert timeline.selected_index is None

    def test_move_entry_follows_selection(self, timeline, engine):
        timeline.select_index(3, "walk")
        assert timeline.move_entry("walk", 3, 0)
        assert walk(engine) == (3, 0, 1, 2)
        assert timeline.selected_index == 0

    @pytest.mark.parametrize("src,dst", [(1, 1), (-1, 0), (0, 4)])
    def test_move_entry_noop(self, timeline, engine, src, dst):
        assert not timeline.move_entry("walk", src, dst)
        assert not engine.can_undo

    def test_unknown_animation(self, timeline, engine):
        assert not timeline.insert_entry("run", 0)
        assert "run" not in engine.document.animations

    def test_select_index_ignores_out_of_range(self, timeline):
        timeline.select_index(1, "idle")
        timeline.select_index(5, "idle")
        assert timeline.selected_index == 1
        timeline.select_index(None)
        assert timeline.selected_index is None


class TestMultipliers:
    def test_set_multiplier_creates_full_list(self, timeline, engine):
        assert timeline.set_multiplier("walk", 3, 2.0)
        assert multipliers(engine) == (1.0, 1.0, 1.0, 2.0)
        assert engine.document.animations_meta["walk"].fps == 10
        assert timeline.multiplier_at("walk", 3) == 2.0

    def test_set_multiplier_floor(self, timeline, engine):
        timeline.set_multiplier("walk", 0, 0)
        assert multipliers(engine)[0] == pytest.approx(0.1)

    def test_same_value_is_noop(self, timeline, engine):
        timeline.set_multiplier("walk", 1, 3)
        history = engine.history_size
        assert not timeline.set_multiplier("walk", 1, 3)
        assert engine.history_size == history

    def test_multipliers_travel_with_entries(self, timeline, engine):
        timeline.set_multiplier("walk", 3, 2.0)
        timeline.move_entry("walk", 3, 0)
        assert multipliers(engine) == (2.0, 1.0, 1.0, 1.0)

        timeline.remove_entry("walk", 0)
        assert multipliers(engine) == (1.0, 1.0, 1.0)

        timeline.insert_entry("walk", 3, position=1)
        assert multipliers(engine) == (1.0, 1.0, 1.0, 1.0)
        assert len(walk(engine)) == 4
