"""
Block Manager - schedule operations over a ScheduleStore.

Owns every persisted mutation of blocks and daily progress.
Enforces invariants:
- No saved block has validation errors
- No two saved blocks on the same day overlap
- Status changes follow the transition table, one writer per block
- A day's progress is rebuilt by one writer at a time
"""

import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date, datetime, time, timedelta
from pathlib import Path

from dayblocks.errors import BlockNotFound, ConflictDetected, DuplicateBlock, ValidationFailure
from dayblocks.time_truth import progress as progress_mod
from dayblocks.time_truth import rules
from dayblocks.time_truth.block import TimeBlock, schedule_order
from dayblocks.time_truth.progress import CompletionStatistics, DailyProgress, WeeklyStats, aggregate
from dayblocks.time_truth.status import BlockStatus, check_transition, determine_status
from dayblocks.time_truth.store import ScheduleStore, SqliteStore

logger = logging.getLogger(__name__)


class _KeyedLocks:
    """
    One lock per key, created on first use.

    An entry is dropped as soon as no thread holds or waits on it, so keys
    for deleted blocks and finished days do not accumulate.
    """

    def __init__(self, factory):
        self._factory = factory
        self._guard = threading.Lock()
        self._entries: dict = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = [self._factory(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


class BlockManager:
    """
    Manages time blocks and the progress records derived from them.

    Responsibilities:
    - Validate and conflict-check blocks before saving
    - Apply status transitions atomically
    - Re-aggregate a day's progress after anything on that day changes
    - Answer schedule queries (current, next, conflicts, statistics)
    """

    def __init__(self, store: ScheduleStore | None = None, db_path: str | Path | None = None):
        self.store = store or SqliteStore(db_path)
        self._block_locks = _KeyedLocks(threading.Lock)
        # Reentrant: refresh_progress runs while callers already hold the day
        self._date_locks = _KeyedLocks(threading.RLock)

    # ==================== Locks ====================

    def _block_lock(self, block_id: str):
        return self._block_locks.hold(block_id)

    def _date_lock(self, day: date):
        return self._date_locks.hold(day)

    # ==================== Block CRUD ====================

    def _check_saveable(self, block: TimeBlock) -> None:
        errors = block.validation_errors()
        if errors:
            raise ValidationFailure(errors)

        conflicts = block.conflicting_blocks(self.store.blocks_for_date(block.scheduled_date))
        if conflicts:
            raise ConflictDetected(conflicts)

    def add_block(self, block: TimeBlock, now: datetime | None = None) -> TimeBlock:
        """
        Save a new block.

        New blocks start NOT_STARTED; later statuses are reached through
        update_status(). Existing blocks are saved with update_block().

        Raises:
            ValidationFailure: the block has validation errors or a non-initial status
            DuplicateBlock: a block with this id is already stored
            ConflictDetected: the block overlaps a saved block on its day
        """
        if block.status is not BlockStatus.NOT_STARTED:
            raise ValidationFailure(
                [f"New blocks must start as {BlockStatus.NOT_STARTED.value}, not {block.status.value}"]
            )

        with self._date_lock(block.scheduled_date):
            with self._block_lock(block.id):
                if self.store.get_block(block.id) is not None:
                    raise DuplicateBlock(block.id)
                self._check_saveable(block)
                self.store.put_block(block)
            logger.info("Block added: %s %s on %s", block.id, block.title, block.scheduled_date)
            self.refresh_progress(block.scheduled_date, now)
        return block

    def update_block(self, block: TimeBlock, now: datetime | None = None) -> TimeBlock:
        """
        Save field edits to an existing block.

        The stored status is kept; status only changes through update_status().
        Both the old and the new day are locked and refreshed; if another
        writer moves the block before the locks are held, the update retries.
        Raises BlockNotFound, ValidationFailure or ConflictDetected.
        """
        while True:
            stored = self.store.get_block(block.id)
            if stored is None:
                raise BlockNotFound(block.id)

            # Sorted so two writers always take day locks in the same order
            days = sorted({stored.scheduled_date, block.scheduled_date})
            with ExitStack() as stack:
                for d in days:
                    stack.enter_context(self._date_lock(d))

                with self._block_lock(block.id):
                    current = self.store.get_block(block.id)
                    if current is None:
                        raise BlockNotFound(block.id)
                    if current.scheduled_date not in days:
                        logger.debug(
                            "Block %s moved to %s during update, retrying", block.id, current.scheduled_date
                        )
                        continue
                    if block.status is not current.status:
                        logger.debug(
                            "Ignoring status %s on update of %s; kept %s", block.status, block.id, current.status
                        )
                        block.status = current.status

                    self._check_saveable(block)
                    block.touch(now)
                    self.store.put_block(block)

                logger.info("Block updated: %s %s", block.id, block.title)
                for d in days:
                    self.refresh_progress(d, now)
            return block

    def edit_block(self, block_id: str, now: datetime | None = None, **changes) -> TimeBlock:
        """Apply field edits by id and save. See TimeBlock.edit for allowed fields."""
        block = self.store.get_block(block_id)
        if block is None:
            raise BlockNotFound(block_id)
        block.edit(now, **changes)
        return self.update_block(block, now)

    def delete_block(self, block_id: str, now: datetime | None = None) -> None:
        while True:
            block = self.store.get_block(block_id)
            if block is None:
                raise BlockNotFound(block_id)

            day = block.scheduled_date
            with self._date_lock(day):
                with self._block_lock(block_id):
                    current = self.store.get_block(block_id)
                    if current is None:
                        raise BlockNotFound(block_id)
                    if current.scheduled_date != day:
                        continue
                    self.store.delete_block(block_id)
                logger.info("Block deleted: %s %s", block_id, block.title)
                self.refresh_progress(day, now)
            return

    def delete_all_blocks(self, day: date, now: datetime | None = None) -> int:
        """Delete every block on *day*. Returns how many were removed."""
        with self._date_lock(day):
            removed = 0
            for block in self.store.blocks_for_date(day):
                with self._block_lock(block.id):
                    if self.store.delete_block(block.id):
                        removed += 1
            logger.info("Deleted %d blocks on %s", removed, day)
            self.refresh_progress(day, now)
        return removed

    # ==================== Queries ====================

    def get_block(self, block_id: str) -> TimeBlock | None:
        return self.store.get_block(block_id)

    def get_all_blocks(self, day: date) -> list[TimeBlock]:
        """All blocks on *day* in schedule order."""
        return sorted(self.store.blocks_for_date(day), key=schedule_order)

    def get_blocks_between(self, start: date, end: date) -> list[TimeBlock]:
        """Blocks starting on any day from *start* through *end*."""
        start_dt = datetime.combine(start, time.min)
        end_dt = datetime.combine(end, time.max)
        return self.store.blocks_between(start_dt, end_dt)

    def get_blocks_with_status(self, status: BlockStatus) -> list[TimeBlock]:
        return self.store.blocks_with_status(BlockStatus(status))

    def get_current_block(self, now: datetime | None = None) -> TimeBlock | None:
        """First block today that is in its window or marked in progress."""
        now = now or datetime.now()
        for block in self.get_all_blocks(now.date()):
            if block.is_currently_active(now) or block.status is BlockStatus.IN_PROGRESS:
                return block
        return None

    def get_next_block(self, now: datetime | None = None) -> TimeBlock | None:
        """First not-started block today that begins after *now*."""
        now = now or datetime.now()
        for block in self.get_all_blocks(now.date()):
            if block.start_time > now and block.status is BlockStatus.NOT_STARTED:
                return block
        return None

    def get_conflicts(self, day: date) -> list[rules.Conflict]:
        """
        Detect overlapping blocks (should never happen if invariants hold).

        Returns list of conflicts found.
        """
        return rules.find_conflicts(self.store.blocks_for_date(day))

    # ==================== Status ====================

    def _apply_status(
        self, block_id: str, new_status: BlockStatus, now: datetime
    ) -> tuple[bool, str, TimeBlock | None]:
        with self._block_lock(block_id):
            block = self.store.get_block(block_id)
            if block is None:
                return False, "Block not found", None

            allowed, reason = check_transition(block.status, new_status)
            if not allowed:
                logger.debug("Status change refused for %s: %s", block_id, reason)
                return False, reason, block

            if not self.store.compare_and_set_status(block_id, block.status, BlockStatus(new_status), now):
                logger.warning("Lost status race on %s (%s → %s)", block_id, block.status, new_status)
                return False, "Block status changed concurrently", block

            logger.info("Block %s: %s → %s", block_id, block.status, new_status)
            return True, f"Block {block.title} is now {BlockStatus(new_status).display_name}", block

    def update_status(
        self,
        block_id: str,
        new_status: BlockStatus,
        now: datetime | None = None,
    ) -> tuple[bool, str]:
        """
        Move a block to *new_status* and refresh its day's progress.

        Returns:
            (success, message)
        """
        now = now or datetime.now()
        ok, message, block = self._apply_status(block_id, new_status, now)
        if ok:
            self.refresh_progress(block.scheduled_date, now)
        return ok, message

    def mark_completed(self, block_id: str, now: datetime | None = None) -> tuple[bool, str]:
        return self.update_status(block_id, BlockStatus.COMPLETED, now)

    def mark_skipped(self, block_id: str, now: datetime | None = None) -> tuple[bool, str]:
        return self.update_status(block_id, BlockStatus.SKIPPED, now)

    def start_block(self, block_id: str, now: datetime | None = None) -> tuple[bool, str]:
        return self.update_status(block_id, BlockStatus.IN_PROGRESS, now)

    def refresh_statuses(self, day: date | None = None, now: datetime | None = None) -> list[str]:
        """
        Auto-activate blocks whose window contains *now*.

        One-shot; callers decide how often to run it. Returns the ids of
        blocks that changed.
        """
        now = now or datetime.now()
        day = day or now.date()

        changed = []
        for block in self.store.blocks_for_date(day):
            target = determine_status(block.start_time, block.end_time, block.status, now)
            if target is block.status:
                continue
            ok, _, _ = self._apply_status(block.id, target, now)
            if ok:
                changed.append(block.id)

        if changed:
            self.refresh_progress(day, now)
        return changed

    def reset_statuses(self, day: date, now: datetime | None = None) -> int:
        """
        Put every block on *day* back to NOT_STARTED.

        Data-management operation: bypasses the transition table.
        """
        now = now or datetime.now()
        count = 0
        with self._date_lock(day):
            for block in self.store.blocks_for_date(day):
                with self._block_lock(block.id):
                    current = self.store.get_block(block.id)
                    if current is None or current.status is BlockStatus.NOT_STARTED:
                        continue
                    logger.info("Resetting block %s from %s to %s", current.id, current.status, BlockStatus.NOT_STARTED)
                    current.status = BlockStatus.NOT_STARTED
                    current.touch(now)
                    self.store.put_block(current)
                    count += 1
            self.refresh_progress(day, now)
        return count

    def copy_blocks(self, source_day: date, target_day: date, now: datetime | None = None) -> list[TimeBlock]:
        """
        Copy every block on *source_day* to *target_day*.

        All copies are checked before any is saved, so a conflict leaves the
        target day untouched.
        """
        now = now or datetime.now()
        copies = [b.copy_to_date(target_day, now) for b in self.get_all_blocks(source_day)]

        with self._date_lock(target_day):
            existing = self.store.blocks_for_date(target_day)
            for i, copy in enumerate(copies):
                errors = copy.validation_errors()
                if errors:
                    raise ValidationFailure(errors)
                conflicts = copy.conflicting_blocks(existing + copies[:i])
                if conflicts:
                    raise ConflictDetected(conflicts)

            for copy in copies:
                self.store.put_block(copy)
            logger.info("Copied %d blocks from %s to %s", len(copies), source_day, target_day)
            self.refresh_progress(target_day, now)
        return copies

    # ==================== Progress ====================

    def refresh_progress(self, day: date, now: datetime | None = None) -> DailyProgress:
        """Rebuild and persist *day*'s progress from its current blocks."""
        now = now or datetime.now()
        with self._date_lock(day):
            previous = self.store.get_progress(day)
            progress = aggregate(day, self.store.blocks_for_date(day), now=now, previous=previous)
            self.store.put_progress(progress)
        logger.info(
            "Progress refreshed for %s: %s",
            day,
            progress.completion_summary,
            extra={"day": day.isoformat(), "completion": round(progress.completion_percentage, 4)},
        )
        return progress

    def get_progress(self, day: date) -> DailyProgress | None:
        return self.store.get_progress(day)

    def load_or_create_progress(self, day: date, now: datetime | None = None) -> DailyProgress:
        with self._date_lock(day):
            existing = self.store.get_progress(day)
            if existing is not None:
                return existing
            return self.refresh_progress(day, now)

    def get_progress_range(self, start: date, end: date) -> list[DailyProgress]:
        return self.store.progress_between(start, end)

    def clear_progress(self, day: date) -> bool:
        with self._date_lock(day):
            removed = self.store.delete_progress(day)
        if removed:
            logger.info("Daily progress cleared for %s", day)
        return removed

    def set_day_rating(self, day: date, rating: int, now: datetime | None = None) -> tuple[bool, str]:
        with self._date_lock(day):
            progress = self.load_or_create_progress(day, now)
            if not progress.set_day_rating(rating, now):
                return False, f"Rating must be between {progress_mod.RATING_MIN} and {progress_mod.RATING_MAX}"
            self.store.put_progress(progress)
        logger.info("Day rating for %s set to %d", day, rating)
        return True, f"Rated {day} {rating}/5"

    def set_day_notes(self, day: date, notes: str, now: datetime | None = None) -> DailyProgress:
        with self._date_lock(day):
            progress = self.load_or_create_progress(day, now)
            progress.set_day_notes(notes, now)
            self.store.put_progress(progress)
        return progress

    def mark_summary_viewed(self, day: date, now: datetime | None = None) -> DailyProgress:
        with self._date_lock(day):
            progress = self.load_or_create_progress(day, now)
            progress.mark_summary_viewed(now)
            self.store.put_progress(progress)
        return progress

    # ==================== Statistics ====================

    def weekly_statistics(self, day: date) -> WeeklyStats:
        """Statistics over the Monday-to-Sunday week containing *day*."""
        week_start = day - timedelta(days=day.weekday())
        week_end = week_start + timedelta(days=6)
        return progress_mod.weekly_statistics(self.store.progress_between(week_start, week_end))

    def completion_statistics(self, start: date, end: date) -> CompletionStatistics:
        return progress_mod.completion_statistics(self.get_blocks_between(start, end), start, end)
