"""
Tests for BlockStatus - lifecycle states, transition table, auto-activation.
"""

from datetime import datetime

import pytest

from dayblocks.time_truth import status as status_mod
from dayblocks.time_truth.status import TRANSITIONS, BlockStatus, check_transition, determine_status

START = datetime(2026, 3, 2, 9, 0)
END = datetime(2026, 3, 2, 9, 30)


class TestTransitionTable:
    def test_not_started_can_go_anywhere(self):
        assert BlockStatus.NOT_STARTED.available_transitions == (
            BlockStatus.IN_PROGRESS,
            BlockStatus.COMPLETED,
            BlockStatus.SKIPPED,
        )

    def test_in_progress_can_finish(self):
        assert BlockStatus.IN_PROGRESS.available_transitions == (BlockStatus.COMPLETED, BlockStatus.SKIPPED)

    @pytest.mark.parametrize("terminal", [BlockStatus.COMPLETED, BlockStatus.SKIPPED])
    def test_terminal_states_have_no_exits(self, terminal):
        assert terminal.available_transitions == ()
        assert terminal.can_transition is False
        assert terminal.is_finished is True

    def test_in_progress_cannot_go_back(self):
        assert BlockStatus.NOT_STARTED not in BlockStatus.IN_PROGRESS.available_transitions

    def test_every_member_has_a_row(self):
        assert set(TRANSITIONS) == set(BlockStatus)

    def test_missing_table_entry_fails_the_check(self, monkeypatch):
        partial = dict(status_mod.SORT_PRIORITY)
        del partial[BlockStatus.SKIPPED]
        monkeypatch.setattr(status_mod, "SORT_PRIORITY", partial)

        with pytest.raises(RuntimeError, match="SORT_PRIORITY"):
            status_mod._check_tables_exhaustive()


class TestCheckTransition:
    def test_allowed(self):
        assert check_transition(BlockStatus.NOT_STARTED, BlockStatus.IN_PROGRESS) == (True, "Allowed")

    def test_accepts_raw_values(self):
        ok, _ = check_transition("in_progress", "completed")
        assert ok is True

    def test_final_status_reason(self):
        ok, reason = check_transition(BlockStatus.COMPLETED, BlockStatus.SKIPPED)
        assert ok is False
        assert reason == "Status completed is final"

    def test_disallowed_lists_allowed_targets(self):
        ok, reason = check_transition(BlockStatus.IN_PROGRESS, BlockStatus.NOT_STARTED)
        assert ok is False
        assert "not allowed" in reason
        assert "completed" in reason

    def test_unknown_status(self):
        ok, reason = check_transition("not_started", "paused")
        assert ok is False
        assert reason.startswith("Invalid status")


class TestDetermineStatus:
    def test_inside_window_activates(self):
        now = datetime(2026, 3, 2, 9, 15)
        assert determine_status(START, END, BlockStatus.NOT_STARTED, now) is BlockStatus.IN_PROGRESS

    def test_window_edges_are_inclusive(self):
        assert determine_status(START, END, BlockStatus.NOT_STARTED, START) is BlockStatus.IN_PROGRESS
        assert determine_status(START, END, BlockStatus.NOT_STARTED, END) is BlockStatus.IN_PROGRESS

    def test_before_window_unchanged(self):
        now = datetime(2026, 3, 2, 8, 59)
        assert determine_status(START, END, BlockStatus.NOT_STARTED, now) is BlockStatus.NOT_STARTED

    def test_after_window_never_auto_completes(self):
        now = datetime(2026, 3, 2, 11, 0)
        assert determine_status(START, END, BlockStatus.NOT_STARTED, now) is BlockStatus.NOT_STARTED
        assert determine_status(START, END, BlockStatus.IN_PROGRESS, now) is BlockStatus.IN_PROGRESS

    @pytest.mark.parametrize("terminal", [BlockStatus.COMPLETED, BlockStatus.SKIPPED])
    def test_terminal_untouched(self, terminal):
        now = datetime(2026, 3, 2, 9, 15)
        assert determine_status(START, END, terminal, now) is terminal


class TestDisplay:
    def test_sort_priority_order(self):
        ordered = sorted(BlockStatus, key=lambda s: s.sort_priority, reverse=True)
        assert ordered == [
            BlockStatus.IN_PROGRESS,
            BlockStatus.NOT_STARTED,
            BlockStatus.COMPLETED,
            BlockStatus.SKIPPED,
        ]

    def test_names(self):
        assert BlockStatus.NOT_STARTED.display_name == "Upcoming"
        assert BlockStatus.IN_PROGRESS.short_display_name == "Active"
        assert BlockStatus.COMPLETED.short_display_name == "Done"

    def test_analytics_and_progress_values(self):
        assert BlockStatus.SKIPPED.analytics_category == "abandoned"
        assert BlockStatus.COMPLETED.analytics_category == "success"
        assert BlockStatus.IN_PROGRESS.progress_value == 0.5

    def test_flags(self):
        assert BlockStatus.COMPLETED.is_completed
        assert not BlockStatus.SKIPPED.is_completed
        assert BlockStatus.IN_PROGRESS.is_active

    def test_values_are_strings(self):
        assert BlockStatus("skipped") is BlockStatus.SKIPPED
        assert BlockStatus.COMPLETED == "completed"
