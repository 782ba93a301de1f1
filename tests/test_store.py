"""
Tests for the ScheduleStore implementations (memory and SQLite).
"""

import sqlite3
from datetime import datetime, timedelta

from dayblocks import db, schema
from dayblocks.time_truth.progress import DailyProgress
from dayblocks.time_truth.status import BlockStatus
from dayblocks.time_truth.store import SqliteStore


class TestBlocks:
    def test_put_and_get_round_trip(self, store, make_block, now):
        block = make_block(notes="bring laptop", category="work", icon="💻", color_id="blue")
        block.attach_calendar("evt-1", "primary", last_modified=now)
        store.put_block(block)

        loaded = store.get_block(block.id)
        assert loaded == block
        assert loaded.title == block.title
        assert loaded.start_time == block.start_time
        assert loaded.end_time == block.end_time
        assert loaded.status is BlockStatus.NOT_STARTED
        assert loaded.notes == "bring laptop"
        assert loaded.calendar_last_modified == now

    def test_returned_blocks_are_copies(self, store, make_block):
        block = make_block()
        store.put_block(block)

        loaded = store.get_block(block.id)
        loaded.title = "changed locally"
        assert store.get_block(block.id).title == block.title

    def test_get_missing(self, store):
        assert store.get_block("block_missing") is None

    def test_delete(self, store, make_block):
        block = make_block()
        store.put_block(block)
        assert store.delete_block(block.id) is True
        assert store.delete_block(block.id) is False
        assert store.get_block(block.id) is None

    def test_blocks_for_date(self, store, make_block, day):
        store.put_block(make_block("Late", start="15:00"))
        store.put_block(make_block("Early", start="08:00"))
        store.put_block(make_block("Tomorrow", on=day + timedelta(days=1)))

        assert [b.title for b in store.blocks_for_date(day)] == ["Early", "Late"]

    def test_moving_a_block_updates_date_index(self, store, make_block, day):
        block = make_block()
        store.put_block(block)
        moved = make_block(on=day + timedelta(days=1), id=block.id)
        store.put_block(moved)

        assert store.blocks_for_date(day) == []
        assert [b.id for b in store.blocks_for_date(day + timedelta(days=1))] == [block.id]

    def test_memory_index_drops_empty_days(self, memory_store, make_block, day):
        block = make_block()
        memory_store.put_block(block)
        memory_store.put_block(make_block(on=day + timedelta(days=1), id=block.id))
        assert day not in memory_store._by_date

        memory_store.delete_block(block.id)
        assert memory_store._by_date == {}

    def test_blocks_between_is_inclusive(self, store, make_block):
        a = make_block("A", start="09:00")
        b = make_block("B", start="12:00")
        store.put_block(a)
        store.put_block(b)

        found = store.blocks_between(a.start_time, b.start_time)
        assert [x.title for x in found] == ["A", "B"]

    def test_blocks_with_status(self, store, make_block):
        store.put_block(make_block("A", status=BlockStatus.COMPLETED))
        store.put_block(make_block("B", start="11:00"))
        assert [b.title for b in store.blocks_with_status(BlockStatus.COMPLETED)] == ["A"]


class TestCompareAndSet:
    def test_succeeds_when_expected_matches(self, store, make_block, now):
        block = make_block()
        store.put_block(block)

        assert store.compare_and_set_status(block.id, BlockStatus.NOT_STARTED, BlockStatus.IN_PROGRESS, now)
        loaded = store.get_block(block.id)
        assert loaded.status is BlockStatus.IN_PROGRESS
        assert loaded.updated_at == now

    def test_fails_when_status_moved_on(self, store, make_block, now):
        block = make_block(status=BlockStatus.COMPLETED)
        store.put_block(block)

        assert not store.compare_and_set_status(block.id, BlockStatus.NOT_STARTED, BlockStatus.SKIPPED, now)
        assert store.get_block(block.id).status is BlockStatus.COMPLETED

    def test_fails_for_missing_block(self, store, now):
        assert not store.compare_and_set_status("block_nope", BlockStatus.NOT_STARTED, BlockStatus.SKIPPED, now)

    def test_accepts_raw_status_values(self, store, make_block, now):
        block = make_block()
        store.put_block(block)

        assert store.compare_and_set_status(block.id, "not_started", "completed", now)
        assert store.get_block(block.id).status is BlockStatus.COMPLETED
        assert [b.id for b in store.blocks_with_status("completed")] == [block.id]


class TestProgress:
    def test_put_and_get(self, store, day, now):
        record = DailyProgress(
            date=day,
            total_blocks=3,
            completed_blocks=1,
            day_rating=4,
            day_notes="ok",
            summary_viewed=True,
            created_at=now,
            updated_at=now,
        )
        store.put_progress(record)

        loaded = store.get_progress(day)
        assert loaded.id == record.id
        assert loaded.total_blocks == 3
        assert loaded.day_rating == 4
        assert loaded.summary_viewed is True
        assert loaded.created_at == now

    def test_one_record_per_date(self, store, day):
        store.put_progress(DailyProgress(date=day, total_blocks=1))
        replacement = DailyProgress(date=day, total_blocks=2)
        store.put_progress(replacement)

        assert store.get_progress(day).id == replacement.id
        assert len(store.progress_between(day, day)) == 1

    def test_range_and_delete(self, store, day):
        for offset in range(3):
            store.put_progress(DailyProgress(date=day + timedelta(days=offset)))

        in_range = store.progress_between(day, day + timedelta(days=1))
        assert [p.date for p in in_range] == [day, day + timedelta(days=1)]

        assert store.delete_progress(day) is True
        assert store.delete_progress(day) is False
        assert store.get_progress(day) is None


class TestSqliteSchema:
    def test_schema_converged_on_open(self, tmp_path):
        path = tmp_path / "fresh.db"
        SqliteStore(path)

        with db.get_connection(path) as conn:
            tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
            version = db.get_schema_version(conn)

        assert {"time_blocks", "daily_progress"} <= tables
        assert version == schema.SCHEMA_VERSION

    def test_missing_column_is_added(self, tmp_path):
        path = tmp_path / "old.db"
        conn = sqlite3.connect(str(path))
        conn.execute(
            "CREATE TABLE time_blocks (id TEXT PRIMARY KEY, title TEXT NOT NULL, start_time TEXT NOT NULL, "
            "end_time TEXT NOT NULL, day TEXT NOT NULL, status TEXT NOT NULL DEFAULT 'not_started', "
            "created_at TEXT NOT NULL, updated_at TEXT NOT NULL)"
        )
        conn.commit()
        conn.close()

        results = db.ensure_schema(path)
        assert "time_blocks.category" in results["columns_added"]

    def test_default_path_follows_home(self, isolated_home):
        store = SqliteStore()
        assert str(store.db_path).startswith(str(isolated_home.resolve()))

    def test_naive_timestamps_round_trip(self, sqlite_store, make_block):
        block = make_block()
        block.created_at = datetime(2026, 3, 1, 7, 30, 15, 123456)
        sqlite_store.put_block(block)
        assert sqlite_store.get_block(block.id).created_at == block.created_at
