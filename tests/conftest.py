"""
Test configuration - ensures repo root is in sys.path + isolation guards.

This allows tests to import from top-level packages (dayblocks, cli).
Every test runs with DAYBLOCKS_HOME pointed at a temp directory, and any
sqlite3.connect() against the real ~/.dayblocks database fails loudly.
"""

import sqlite3
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import dayblocks.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dayblocks.time_truth import BlockManager, BlockStatus, MemoryStore, SqliteStore, TimeBlock  # noqa: E402

# =============================================================================
# ISOLATION GUARD: Block live database access
# =============================================================================

HOME_DB_DIR = str(Path.home() / ".dayblocks")

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Refuse connections to the user's real schedule database."""
    if str(database).startswith(HOME_DB_DIR):
        raise RuntimeError(
            f"ISOLATION VIOLATION: live DB opened during tests: {database}\n"
            "Use the sqlite_store fixture or DAYBLOCKS_HOME from isolated_home."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point DAYBLOCKS_HOME at a per-test temp dir and guard the live DB."""
    home = tmp_path / "dayblocks_home"
    monkeypatch.setenv("DAYBLOCKS_HOME", str(home))
    monkeypatch.delenv("DAYBLOCKS_DB", raising=False)
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    return home


# =============================================================================
# TIME & BLOCK FIXTURES
# =============================================================================

# Monday
DAY = date(2026, 3, 2)


@pytest.fixture
def day() -> date:
    return DAY


@pytest.fixture
def now() -> datetime:
    """Pinned evaluation moment: 09:15 on DAY."""
    return datetime(2026, 3, 2, 9, 15)


def build_block(
    title: str = "Focus",
    start: str = "09:00",
    minutes: int = 60,
    on: date = DAY,
    status: BlockStatus = BlockStatus.NOT_STARTED,
    **kwargs,
) -> TimeBlock:
    """TimeBlock starting at HH:MM on *on*, lasting *minutes*."""
    hour, minute = (int(part) for part in start.split(":"))
    start_time = datetime(on.year, on.month, on.day, hour, minute)
    return TimeBlock(
        title=title,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=minutes),
        status=status,
        **kwargs,
    )


@pytest.fixture
def make_block():
    return build_block


# =============================================================================
# STORES
# =============================================================================


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteStore:
    return SqliteStore(tmp_path / "schedule_test.db")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation in turn."""
    if request.param == "memory":
        return MemoryStore()
    return SqliteStore(tmp_path / "schedule_param.db")


@pytest.fixture
def manager(memory_store) -> BlockManager:
    return BlockManager(memory_store)
