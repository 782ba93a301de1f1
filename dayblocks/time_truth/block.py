"""
Time Block - the scheduled interval a user works through during a day.

A block owns its status. Status changes only go through the transition
table in status.py; field edits and status changes both bump updated_at.
The calendar day a block belongs to is derived from start_time and never
stored on its own.

Every time-dependent accessor takes an explicit `now` (defaulting to the
wall clock) so callers and tests can pin the moment they evaluate at.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, time, timedelta

from dayblocks.errors import InvalidTransition
from dayblocks.time_truth import rules
from dayblocks.time_truth.status import BlockStatus, check_transition, determine_status

logger = logging.getLogger(__name__)

# Fields edit() refuses: identity, status (transition table only), timestamps
_NOT_EDITABLE = frozenset(("id", "status", "created_at", "updated_at"))


def new_block_id() -> str:
    return f"block_{uuid.uuid4().hex[:12]}"


@dataclass(eq=False)
class TimeBlock:
    title: str
    start_time: datetime
    end_time: datetime
    status: BlockStatus = BlockStatus.NOT_STARTED
    notes: str | None = None
    icon: str | None = None
    category: str | None = None
    color_id: str | None = None
    calendar_event_id: str | None = None
    calendar_id: str | None = None
    calendar_last_modified: datetime | None = None
    id: str = field(default_factory=new_block_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Raw values ("completed") become members; an unknown value raises ValueError
        self.status = BlockStatus(self.status)

    @classmethod
    def for_day(
        cls,
        title: str,
        day: date,
        start_hour: int,
        start_minute: int = 0,
        duration_minutes: int = 60,
        **kwargs,
    ) -> "TimeBlock":
        """Create a block on *day* from wall-clock components."""
        start = datetime.combine(day, time(start_hour, start_minute))
        return cls(
            title=title,
            start_time=start,
            end_time=start + timedelta(minutes=duration_minutes),
            **kwargs,
        )

    # Identity: two block objects are the same block iff their ids match
    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeBlock):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    # ==================== Derived properties ====================

    @property
    def scheduled_date(self) -> date:
        return self.start_time.date()

    @property
    def duration_minutes(self) -> int:
        """Block duration in whole minutes."""
        return rules.duration_minutes(self.start_time, self.end_time)

    @property
    def duration_hours(self) -> float:
        return round(self.duration_minutes / 60, 1)

    @property
    def formatted_duration(self) -> str:
        """'1h 30m', '2h' or '45m'."""
        hours, minutes = divmod(self.duration_minutes, 60)
        if hours and minutes:
            return f"{hours}h {minutes}m"
        if hours:
            return f"{hours}h"
        return f"{minutes}m"

    @property
    def time_range_label(self) -> str:
        """Short range such as '9:00-10:30'."""
        return (
            f"{self.start_time.hour}:{self.start_time.minute:02d}"
            f"-{self.end_time.hour}:{self.end_time.minute:02d}"
        )

    @property
    def is_linked_to_calendar(self) -> bool:
        return self.calendar_event_id is not None

    def is_currently_active(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return self.start_time <= now <= self.end_time

    def is_past(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return now > self.end_time

    def is_future(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return now < self.start_time

    def current_progress(self, now: datetime | None = None) -> float:
        """Fraction of the window elapsed (0.0-1.0) while active, else 0.0."""
        now = now or datetime.now()
        if not self.is_currently_active(now):
            return 0.0
        total = (self.end_time - self.start_time).total_seconds()
        if total <= 0:
            return 0.0
        elapsed = (now - self.start_time).total_seconds()
        return min(max(elapsed / total, 0.0), 1.0)

    def remaining_minutes(self, now: datetime | None = None) -> int | None:
        """Whole minutes left while active, else None."""
        now = now or datetime.now()
        if not self.is_currently_active(now):
            return None
        return max(0, int((self.end_time - now).total_seconds() / 60))

    # ==================== Status management ====================

    def can_transition_to(self, new_status: BlockStatus) -> tuple[bool, str]:
        return check_transition(self.status, new_status)

    def update_status(self, new_status: BlockStatus, now: datetime | None = None) -> bool:
        """
        Move to *new_status* if the transition table allows it.

        An illegal transition is a silent no-op. Returns whether the status
        changed.
        """
        allowed, reason = self.can_transition_to(new_status)
        if not allowed:
            logger.debug("Ignored status change on %s: %s", self.id, reason)
            return False

        self.status = BlockStatus(new_status)
        self.updated_at = now or datetime.now()
        return True

    def transition_to(self, new_status: BlockStatus, now: datetime | None = None) -> None:
        """Strict update_status: raises InvalidTransition instead of ignoring."""
        allowed, reason = self.can_transition_to(new_status)
        if not allowed:
            raise InvalidTransition(self.status, new_status, reason)
        self.update_status(new_status, now)

    def mark_completed(self, now: datetime | None = None) -> bool:
        return self.update_status(BlockStatus.COMPLETED, now)

    def mark_skipped(self, now: datetime | None = None) -> bool:
        return self.update_status(BlockStatus.SKIPPED, now)

    def start(self, now: datetime | None = None) -> bool:
        return self.update_status(BlockStatus.IN_PROGRESS, now)

    def update_status_based_on_time(self, now: datetime | None = None) -> bool:
        """Auto-activate when *now* falls inside the window. Returns whether it changed."""
        now = now or datetime.now()
        new_status = determine_status(self.start_time, self.end_time, self.status, now)
        if new_status is self.status:
            return False
        return self.update_status(new_status, now)

    # ==================== Validation & conflicts ====================

    def validation_errors(self) -> list[str]:
        return rules.validation_errors(self)

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors()

    def conflicts_with(self, other: "TimeBlock") -> bool:
        return rules.blocks_conflict(self, other)

    def conflicting_blocks(self, others: Iterable["TimeBlock"]) -> list["TimeBlock"]:
        return [other for other in others if self.conflicts_with(other)]

    # ==================== Edits ====================

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or datetime.now()

    def edit(self, now: datetime | None = None, **changes) -> None:
        """
        Apply field edits and bump updated_at.

        Raises TypeError for unknown or non-editable fields. The result is
        not validated here; call validation_errors() before saving.
        """
        known = {f.name for f in fields(self)}
        for name in changes:
            if name not in known or name in _NOT_EDITABLE:
                raise TypeError(f"TimeBlock field {name!r} cannot be edited")
        for name, value in changes.items():
            setattr(self, name, value)
        self.touch(now)

    def attach_calendar(
        self,
        event_id: str,
        calendar_id: str,
        last_modified: datetime | None = None,
        now: datetime | None = None,
    ) -> None:
        self.calendar_event_id = event_id
        self.calendar_id = calendar_id
        self.calendar_last_modified = last_modified
        self.touch(now)

    def detach_calendar(self, now: datetime | None = None) -> None:
        self.calendar_event_id = None
        self.calendar_id = None
        self.calendar_last_modified = None
        self.touch(now)

    def copy_to_date(self, day: date, now: datetime | None = None) -> "TimeBlock":
        """
        A fresh NOT_STARTED block at the same wall-clock times on *day*.

        Blocks crossing midnight keep their length. Calendar links are not
        copied.
        """
        now = now or datetime.now()
        start = datetime.combine(day, self.start_time.timetz())
        return replace(
            self,
            start_time=start,
            end_time=start + (self.end_time - self.start_time),
            status=BlockStatus.NOT_STARTED,
            calendar_event_id=None,
            calendar_id=None,
            calendar_last_modified=None,
            id=new_block_id(),
            created_at=now,
            updated_at=now,
        )


def schedule_order(block: TimeBlock) -> tuple:
    """Sort key: start time, then active-first status priority, then title."""
    return (block.start_time, -block.status.sort_priority, block.title)
