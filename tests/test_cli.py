"""
Tests for the dayblocks CLI commands.

Commands run against the SQLite store under the per-test DAYBLOCKS_HOME.
"""

import logging
import sys
from datetime import date

import pytest

from cli import main as cli
from dayblocks.time_truth import BlockStatus

DAY = "2026-03-02"


@pytest.fixture
def manager():
    return cli.get_manager()


def _add(title, start, minutes="60", day=DAY, *extra):
    cli.cmd_add([title, start, minutes, day, *extra])


class TestAdd:
    def test_add_prints_confirmation(self, capsys, manager):
        _add("Deep work", "09:00", "90", DAY, "focus")
        out = capsys.readouterr().out

        assert "✅ Added: Deep work 9:00-10:30 on 2026-03-02" in out
        blocks = manager.get_all_blocks(date(2026, 3, 2))
        assert [b.category for b in blocks] == ["focus"]

    def test_add_usage(self, capsys):
        cli.cmd_add(["only title"])
        assert "Usage: add" in capsys.readouterr().out


class TestDayViews:
    def test_today_lists_blocks(self, capsys):
        _add("Plan", "08:00")
        _add("Build", "10:00")
        capsys.readouterr()

        cli.cmd_today([DAY])
        out = capsys.readouterr().out

        assert "BLOCKS: 2026-03-02 (Monday)" in out
        assert "Plan" in out and "Build" in out
        assert "0 of 2 completed (0%)" in out

    def test_today_empty(self, capsys):
        cli.cmd_today([DAY])
        assert "No blocks scheduled." in capsys.readouterr().out

    def test_summary_plain(self, capsys):
        _add("Plan", "08:00")
        capsys.readouterr()

        cli.cmd_summary([DAY, "--plain"])
        assert "Monday's Blocks (2026-03-02)" in capsys.readouterr().out

    def test_conflicts_none(self, capsys):
        cli.cmd_conflicts([DAY])
        assert "No conflicts." in capsys.readouterr().out


class TestStatusCommands:
    def test_complete_then_skip(self, capsys, manager):
        _add("Plan", "08:00")
        block = manager.get_all_blocks(date(2026, 3, 2))[0]
        capsys.readouterr()

        cli.cmd_complete([block.id])
        assert capsys.readouterr().out.startswith("✓")

        cli.cmd_skip([block.id])
        assert "✗ Status completed is final" in capsys.readouterr().out
        assert manager.get_block(block.id).status is BlockStatus.COMPLETED

    def test_start_unknown_block(self, capsys):
        cli.cmd_start(["block_missing"])
        assert "✗ Block not found" in capsys.readouterr().out

    def test_status_usage(self, capsys):
        cli.cmd_start([])
        assert "Usage: start <block_id>" in capsys.readouterr().out


class TestDayInputs:
    def test_rate(self, capsys, manager):
        cli.cmd_rate(["4", DAY])
        assert "✓ Rated 2026-03-02 4/5" in capsys.readouterr().out
        assert manager.get_progress(date(2026, 3, 2)).day_rating == 4

    def test_rate_out_of_range(self, capsys):
        cli.cmd_rate(["9", DAY])
        assert "✗ Rating must be between 1 and 5" in capsys.readouterr().out

    def test_note_and_clear(self, capsys, manager):
        cli.cmd_note(["good", "focus"])
        assert "Notes saved" in capsys.readouterr().out
        assert manager.get_progress(date.today()).day_notes == "good focus"

        cli.cmd_note([])
        assert "Notes cleared" in capsys.readouterr().out
        assert manager.get_progress(date.today()).day_notes is None

    def test_viewed(self, capsys, manager):
        cli.cmd_viewed([DAY])
        assert manager.get_progress(date(2026, 3, 2)).summary_viewed is True

    def test_week(self, capsys):
        _add("Plan", "08:00")
        capsys.readouterr()

        cli.cmd_week(["2026-03-04"])
        out = capsys.readouterr().out
        assert "WEEK OF 2026-03-02" in out
        assert "0 of 1 blocks completed" in out

    def test_copy(self, capsys, manager):
        _add("Plan", "08:00")
        capsys.readouterr()

        cli.cmd_copy([DAY, "2026-03-03"])
        assert "Copied 1 block(s)" in capsys.readouterr().out
        assert len(manager.get_all_blocks(date(2026, 3, 3))) == 1


class TestMain:
    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch):
        monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)

    def test_no_args_shows_help(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["dayblocks"])
        cli.main()
        assert "COMMANDS:" in capsys.readouterr().out

    def test_unknown_command(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["dayblocks", "explode"])
        cli.main()
        assert "Unknown command: explode" in capsys.readouterr().out

    def test_conflict_exits_non_zero(self, capsys, monkeypatch):
        _add("Plan", "08:00")
        capsys.readouterr()

        monkeypatch.setattr(sys, "argv", ["dayblocks", "add", "Overlap", "08:30", "30", DAY])
        with pytest.raises(SystemExit) as exc:
            cli.main()

        assert exc.value.code == 1
        assert "❌ Time block conflicts with existing blocks: Plan" in capsys.readouterr().out

    def test_bad_date_exits_with_usage_code(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["dayblocks", "today", "not-a-date"])
        with pytest.raises(SystemExit) as exc:
            cli.main()

        assert exc.value.code == 2
        assert "Invalid argument" in capsys.readouterr().out

    def test_alias_dispatch(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["dayblocks", "h"])
        cli.main()
        assert "USAGE: dayblocks" in capsys.readouterr().out

    def test_alias_logs_full_command_name(self, caplog, monkeypatch):
        caplog.set_level(logging.DEBUG, logger="cli.main")
        # Keep the capture handler on the root logger
        monkeypatch.setattr(cli, "configure_logging", lambda *a, **kw: None)
        monkeypatch.setattr(sys, "argv", ["dayblocks", "h"])
        cli.main()
        assert "Running help with 0 argument(s)" in caplog.messages
