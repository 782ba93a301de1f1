"""
Schedule Store - persistence boundary for time blocks and daily progress.

Two implementations share one interface:
- MemoryStore: dict arena keyed by id plus a per-date index
- SqliteStore: tables converged from dayblocks/schema.py

Stores hand out copies. Mutating a returned block does nothing until it is
written back with put_block(). Status changes go through
compare_and_set_status() so two writers can never both apply a transition
from the same starting status.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from pathlib import Path

from dayblocks import db, safe_sql
from dayblocks.time_truth.block import TimeBlock
from dayblocks.time_truth.progress import DailyProgress
from dayblocks.time_truth.status import BlockStatus

logger = logging.getLogger(__name__)


class ScheduleStore(ABC):
    """Keyed store for blocks and per-day progress records."""

    # ---- blocks ----

    @abstractmethod
    def put_block(self, block: TimeBlock) -> None:
        """Insert or replace a block by id."""

    @abstractmethod
    def get_block(self, block_id: str) -> TimeBlock | None: ...

    @abstractmethod
    def delete_block(self, block_id: str) -> bool:
        """Returns whether a block was removed."""

    @abstractmethod
    def blocks_between(self, start: datetime, end: datetime) -> list[TimeBlock]:
        """Blocks with start <= start_time <= end, ordered by start_time."""

    @abstractmethod
    def blocks_with_status(self, status: BlockStatus) -> list[TimeBlock]: ...

    @abstractmethod
    def compare_and_set_status(
        self,
        block_id: str,
        expected: BlockStatus,
        new: BlockStatus,
        updated_at: datetime,
    ) -> bool:
        """Atomically set status to *new* only if it is still *expected*."""

    def blocks_for_date(self, day: date) -> list[TimeBlock]:
        """Blocks whose start_time falls on *day*."""
        start = datetime.combine(day, time.min)
        return [b for b in self.blocks_between(start, start + timedelta(days=1)) if b.scheduled_date == day]

    # ---- progress ----

    @abstractmethod
    def get_progress(self, day: date) -> DailyProgress | None: ...

    @abstractmethod
    def put_progress(self, progress: DailyProgress) -> None:
        """Insert or replace the record for progress.date."""

    @abstractmethod
    def progress_between(self, start: date, end: date) -> list[DailyProgress]:
        """Records with start <= date <= end, ordered by date."""

    @abstractmethod
    def delete_progress(self, day: date) -> bool: ...


# ============================================================
# In-memory
# ============================================================


class MemoryStore(ScheduleStore):
    """Process-local store. Used by tests and embedding callers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._blocks: dict[str, TimeBlock] = {}
        self._by_date: dict[date, set[str]] = defaultdict(set)
        self._progress: dict[date, DailyProgress] = {}

    def _unindex(self, block: TimeBlock) -> None:
        ids = self._by_date.get(block.scheduled_date)
        if ids is None:
            return
        ids.discard(block.id)
        if not ids:
            del self._by_date[block.scheduled_date]

    def put_block(self, block: TimeBlock) -> None:
        with self._lock:
            old = self._blocks.get(block.id)
            if old is not None:
                self._unindex(old)
            self._blocks[block.id] = replace(block)
            self._by_date[block.scheduled_date].add(block.id)

    def get_block(self, block_id: str) -> TimeBlock | None:
        with self._lock:
            block = self._blocks.get(block_id)
            return replace(block) if block else None

    def delete_block(self, block_id: str) -> bool:
        with self._lock:
            block = self._blocks.pop(block_id, None)
            if block is None:
                return False
            self._unindex(block)
            return True

    def blocks_between(self, start: datetime, end: datetime) -> list[TimeBlock]:
        with self._lock:
            found = [replace(b) for b in self._blocks.values() if start <= b.start_time <= end]
        return sorted(found, key=lambda b: b.start_time)

    def blocks_for_date(self, day: date) -> list[TimeBlock]:
        with self._lock:
            found = [replace(self._blocks[block_id]) for block_id in self._by_date.get(day, ())]
        return sorted(found, key=lambda b: b.start_time)

    def blocks_with_status(self, status: BlockStatus) -> list[TimeBlock]:
        status = BlockStatus(status)
        with self._lock:
            found = [replace(b) for b in self._blocks.values() if b.status is status]
        return sorted(found, key=lambda b: b.start_time)

    def compare_and_set_status(
        self,
        block_id: str,
        expected: BlockStatus,
        new: BlockStatus,
        updated_at: datetime,
    ) -> bool:
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None or block.status is not BlockStatus(expected):
                return False
            block.status = BlockStatus(new)
            block.updated_at = updated_at
            return True

    def get_progress(self, day: date) -> DailyProgress | None:
        with self._lock:
            progress = self._progress.get(day)
            return replace(progress) if progress else None

    def put_progress(self, progress: DailyProgress) -> None:
        with self._lock:
            self._progress[progress.date] = replace(progress)

    def progress_between(self, start: date, end: date) -> list[DailyProgress]:
        with self._lock:
            found = [replace(p) for d, p in self._progress.items() if start <= d <= end]
        return sorted(found, key=lambda p: p.date)

    def delete_progress(self, day: date) -> bool:
        with self._lock:
            return self._progress.pop(day, None) is not None


# ============================================================
# SQLite
# ============================================================

BLOCK_COLUMNS = [
    "id",
    "title",
    "start_time",
    "end_time",
    "day",
    "status",
    "notes",
    "icon",
    "category",
    "color_id",
    "calendar_event_id",
    "calendar_id",
    "calendar_last_modified",
    "created_at",
    "updated_at",
]

PROGRESS_COLUMNS = [
    "id",
    "date",
    "total_blocks",
    "completed_blocks",
    "skipped_blocks",
    "in_progress_blocks",
    "total_planned_minutes",
    "completed_minutes",
    "day_rating",
    "day_notes",
    "summary_viewed",
    "created_at",
    "updated_at",
]


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _block_to_row(block: TimeBlock) -> list:
    return [
        block.id,
        block.title,
        block.start_time.isoformat(),
        block.end_time.isoformat(),
        block.scheduled_date.isoformat(),
        block.status.value,
        block.notes,
        block.icon,
        block.category,
        block.color_id,
        block.calendar_event_id,
        block.calendar_id,
        block.calendar_last_modified.isoformat() if block.calendar_last_modified else None,
        block.created_at.isoformat(),
        block.updated_at.isoformat(),
    ]


def _row_to_block(row) -> TimeBlock:
    return TimeBlock(
        id=row["id"],
        title=row["title"],
        start_time=datetime.fromisoformat(row["start_time"]),
        end_time=datetime.fromisoformat(row["end_time"]),
        status=BlockStatus(row["status"]),
        notes=row["notes"],
        icon=row["icon"],
        category=row["category"],
        color_id=row["color_id"],
        calendar_event_id=row["calendar_event_id"],
        calendar_id=row["calendar_id"],
        calendar_last_modified=_dt(row["calendar_last_modified"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _progress_to_row(progress: DailyProgress) -> list:
    return [
        progress.id,
        progress.date.isoformat(),
        progress.total_blocks,
        progress.completed_blocks,
        progress.skipped_blocks,
        progress.in_progress_blocks,
        progress.total_planned_minutes,
        progress.completed_minutes,
        progress.day_rating,
        progress.day_notes,
        int(progress.summary_viewed),
        progress.created_at.isoformat(),
        progress.updated_at.isoformat(),
    ]


def _row_to_progress(row) -> DailyProgress:
    return DailyProgress(
        id=row["id"],
        date=date.fromisoformat(row["date"]),
        total_blocks=row["total_blocks"],
        completed_blocks=row["completed_blocks"],
        skipped_blocks=row["skipped_blocks"],
        in_progress_blocks=row["in_progress_blocks"],
        total_planned_minutes=row["total_planned_minutes"],
        completed_minutes=row["completed_minutes"],
        day_rating=row["day_rating"],
        day_notes=row["day_notes"],
        summary_viewed=bool(row["summary_viewed"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SqliteStore(ScheduleStore):
    """
    SQLite-backed store. One short-lived connection per call.

    Timestamps are stored as ISO-8601 text; range queries rely on every
    block in one database using the same timezone convention.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else db.get_db_path()
        db.ensure_schema(self.db_path)
        logger.debug("SqliteStore ready, DB path: %s", self.db_path)

    # ---- blocks ----

    def put_block(self, block: TimeBlock) -> None:
        with db.get_connection(self.db_path) as conn:
            conn.execute(safe_sql.insert_or_replace("time_blocks", BLOCK_COLUMNS), _block_to_row(block))

    def get_block(self, block_id: str) -> TimeBlock | None:
        with db.get_connection(self.db_path) as conn:
            row = conn.execute(safe_sql.select("time_blocks", where="id = ?"), [block_id]).fetchone()
        return _row_to_block(row) if row else None

    def delete_block(self, block_id: str) -> bool:
        with db.get_connection(self.db_path) as conn:
            cursor = conn.execute(safe_sql.delete("time_blocks"), [block_id])
            return cursor.rowcount > 0

    def blocks_between(self, start: datetime, end: datetime) -> list[TimeBlock]:
        sql = safe_sql.select("time_blocks", where="start_time >= ? AND start_time <= ?", order_by="start_time")
        with db.get_connection(self.db_path) as conn:
            rows = conn.execute(sql, [start.isoformat(), end.isoformat()]).fetchall()
        return [_row_to_block(row) for row in rows]

    def blocks_for_date(self, day: date) -> list[TimeBlock]:
        sql = safe_sql.select("time_blocks", where="day = ?", order_by="start_time")
        with db.get_connection(self.db_path) as conn:
            rows = conn.execute(sql, [day.isoformat()]).fetchall()
        return [_row_to_block(row) for row in rows]

    def blocks_with_status(self, status: BlockStatus) -> list[TimeBlock]:
        sql = safe_sql.select("time_blocks", where="status = ?", order_by="start_time")
        with db.get_connection(self.db_path) as conn:
            rows = conn.execute(sql, [BlockStatus(status).value]).fetchall()
        return [_row_to_block(row) for row in rows]

    def compare_and_set_status(
        self,
        block_id: str,
        expected: BlockStatus,
        new: BlockStatus,
        updated_at: datetime,
    ) -> bool:
        sql = safe_sql.update("time_blocks", ["status", "updated_at"], where="id = ? AND status = ?")
        with db.get_connection(self.db_path) as conn:
            cursor = conn.execute(
                sql,
                [BlockStatus(new).value, updated_at.isoformat(), block_id, BlockStatus(expected).value],
            )
            return cursor.rowcount == 1

    # ---- progress ----

    def get_progress(self, day: date) -> DailyProgress | None:
        with db.get_connection(self.db_path) as conn:
            row = conn.execute(safe_sql.select("daily_progress", where="date = ?"), [day.isoformat()]).fetchone()
        return _row_to_progress(row) if row else None

    def put_progress(self, progress: DailyProgress) -> None:
        with db.get_connection(self.db_path) as conn:
            conn.execute(safe_sql.upsert("daily_progress", PROGRESS_COLUMNS, "date"), _progress_to_row(progress))

    def progress_between(self, start: date, end: date) -> list[DailyProgress]:
        sql = safe_sql.select("daily_progress", where="date >= ? AND date <= ?", order_by="date")
        with db.get_connection(self.db_path) as conn:
            rows = conn.execute(sql, [start.isoformat(), end.isoformat()]).fetchall()
        return [_row_to_progress(row) for row in rows]

    def delete_progress(self, day: date) -> bool:
        with db.get_connection(self.db_path) as conn:
            cursor = conn.execute(safe_sql.delete("daily_progress", where="date = ?"), [day.isoformat()])
            return cursor.rowcount > 0
