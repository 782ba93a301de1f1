"""
Daily Progress - per-day aggregate of time block outcomes.

aggregate() is pure: it always builds a fresh record from the blocks of
one calendar day. Only identity (id, created_at) and the user-owned side
channel (day_rating, day_notes, summary_viewed) carry over from the
previous record for that day; every count and minute total is recomputed
from scratch.

In-progress blocks that are active at `now` contribute their elapsed share
of minutes to completed_minutes, so the same blocks aggregated at two
different moments can legitimately produce different records.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import BaseModel, Field

from dayblocks.time_truth.block import TimeBlock
from dayblocks.time_truth.status import BlockStatus

RATING_MIN = 1
RATING_MAX = 5


def new_progress_id() -> str:
    return f"progress_{uuid.uuid4().hex[:12]}"


def _ratio(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole


def _format_minutes(total: int) -> str:
    hours, minutes = divmod(total, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class ProgressSummary(BaseModel):
    """Validated analytics snapshot of one day's progress."""

    date: date
    total_blocks: int = Field(ge=0)
    completed_blocks: int = Field(ge=0)
    skipped_blocks: int = Field(ge=0)
    in_progress_blocks: int = Field(ge=0)
    completion_percentage: float = Field(ge=0.0, le=1.0)
    skip_rate: float = Field(ge=0.0, le=1.0)
    total_planned_minutes: int = Field(ge=0)
    completed_minutes: int = Field(ge=0)
    time_completion_percentage: float = Field(ge=0.0, le=1.0)
    performance_score: float = Field(ge=0.0, le=1.0)
    performance_level: str
    is_day_complete: bool
    day_rating: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)


@dataclass(eq=False)
class DailyProgress:
    date: date
    total_blocks: int = 0
    completed_blocks: int = 0
    skipped_blocks: int = 0
    in_progress_blocks: int = 0
    total_planned_minutes: int = 0
    completed_minutes: int = 0
    day_rating: int | None = None
    day_notes: str | None = None
    summary_viewed: bool = False
    id: str = field(default_factory=new_progress_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DailyProgress):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    # ==================== Derived counts & ratios ====================

    @property
    def not_started_blocks(self) -> int:
        return self.total_blocks - self.completed_blocks - self.skipped_blocks - self.in_progress_blocks

    @property
    def completion_percentage(self) -> float:
        return _ratio(self.completed_blocks, self.total_blocks)

    @property
    def success_rate(self) -> float:
        """Completed plus in-progress share of all blocks."""
        return _ratio(self.completed_blocks + self.in_progress_blocks, self.total_blocks)

    @property
    def skip_rate(self) -> float:
        return _ratio(self.skipped_blocks, self.total_blocks)

    @property
    def time_completion_percentage(self) -> float:
        return _ratio(self.completed_minutes, self.total_planned_minutes)

    @property
    def has_scheduled_blocks(self) -> bool:
        return self.total_blocks > 0

    @property
    def is_day_complete(self) -> bool:
        """Every block is finished (completed or skipped)."""
        return self.total_blocks > 0 and self.completed_blocks + self.skipped_blocks == self.total_blocks

    @property
    def performance_score(self) -> float:
        """
        Completion rate plus a consistency bonus, capped at 1.0.

        consistency bonus = (1 - skip_rate) * 0.2; a further 0.1 when every
        block was completed with no skips.
        """
        if self.total_blocks == 0:
            return 0.0

        score = self.completion_percentage
        score += (1.0 - self.skip_rate) * 0.2
        if self.is_day_complete and self.skip_rate == 0.0:
            score += 0.1
        return min(score, 1.0)

    @property
    def formatted_completion_percentage(self) -> str:
        return f"{self.completion_percentage * 100:.0f}%"

    @property
    def completion_summary(self) -> str:
        return f"{self.completed_blocks} of {self.total_blocks} completed"

    @property
    def time_summary(self) -> str:
        return f"{_format_minutes(self.completed_minutes)} of {_format_minutes(self.total_planned_minutes)} planned"

    # ==================== Side channel ====================

    def set_day_rating(self, rating: int, now: datetime | None = None) -> bool:
        """Store a 1-5 rating. Out-of-range values are ignored."""
        if not RATING_MIN <= rating <= RATING_MAX:
            return False
        self.day_rating = rating
        self.updated_at = now or datetime.now()
        return True

    def set_day_notes(self, notes: str, now: datetime | None = None) -> None:
        self.day_notes = notes or None
        self.updated_at = now or datetime.now()

    def mark_summary_viewed(self, now: datetime | None = None) -> None:
        self.summary_viewed = True
        self.updated_at = now or datetime.now()

    # ==================== Validation ====================

    def validation_errors(self) -> list[str]:
        errors = []

        if self.total_blocks < 0:
            errors.append("Total blocks cannot be negative")
        if self.completed_blocks < 0:
            errors.append("Completed blocks cannot be negative")
        if self.skipped_blocks < 0:
            errors.append("Skipped blocks cannot be negative")
        if self.in_progress_blocks < 0:
            errors.append("In-progress blocks cannot be negative")
        if self.completed_blocks + self.skipped_blocks + self.in_progress_blocks > self.total_blocks:
            errors.append("Sum of block statuses cannot exceed total blocks")
        if self.total_planned_minutes < 0:
            errors.append("Total planned minutes cannot be negative")
        if self.completed_minutes < 0:
            errors.append("Completed minutes cannot be negative")
        if self.completed_minutes > self.total_planned_minutes:
            errors.append("Completed minutes cannot exceed planned minutes")
        if self.day_rating is not None and not RATING_MIN <= self.day_rating <= RATING_MAX:
            errors.append("Day rating must be between 1 and 5")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors()

    def statistics_summary(self) -> ProgressSummary:
        # Imported here: performance imports this module
        from dayblocks.time_truth.performance import classify

        return ProgressSummary(
            date=self.date,
            total_blocks=self.total_blocks,
            completed_blocks=self.completed_blocks,
            skipped_blocks=self.skipped_blocks,
            in_progress_blocks=self.in_progress_blocks,
            completion_percentage=self.completion_percentage,
            skip_rate=self.skip_rate,
            total_planned_minutes=self.total_planned_minutes,
            completed_minutes=self.completed_minutes,
            time_completion_percentage=self.time_completion_percentage,
            performance_score=self.performance_score,
            performance_level=classify(self.completion_percentage).value,
            is_day_complete=self.is_day_complete,
            day_rating=self.day_rating,
        )


def aggregate(
    day: date,
    blocks: Iterable[TimeBlock],
    now: datetime | None = None,
    previous: DailyProgress | None = None,
) -> DailyProgress:
    """
    Build the progress record for *day* from *blocks*.

    Blocks scheduled on other days are ignored. *previous*, if given, must
    be the stored record for the same day.
    """
    now = now or datetime.now()
    if previous is not None and previous.date != day:
        raise ValueError(f"previous progress is for {previous.date}, not {day}")

    progress = DailyProgress(date=day, created_at=now, updated_at=now)
    if previous is not None:
        progress.id = previous.id
        progress.created_at = previous.created_at
        progress.day_rating = previous.day_rating
        progress.day_notes = previous.day_notes
        progress.summary_viewed = previous.summary_viewed

    for block in blocks:
        if block.scheduled_date != day:
            continue

        duration = block.duration_minutes
        progress.total_blocks += 1
        progress.total_planned_minutes += duration

        if block.status is BlockStatus.COMPLETED:
            progress.completed_blocks += 1
            progress.completed_minutes += duration
        elif block.status is BlockStatus.SKIPPED:
            progress.skipped_blocks += 1
        elif block.status is BlockStatus.IN_PROGRESS:
            progress.in_progress_blocks += 1
            if block.is_currently_active(now):
                progress.completed_minutes += int(block.current_progress(now) * duration)

    return progress


# ==================== Range statistics ====================


@dataclass(frozen=True)
class WeeklyStats:
    total_days: int
    completed_days: int
    average_completion: float
    total_blocks: int
    total_completed: int

    @property
    def formatted_average_completion(self) -> str:
        return f"{self.average_completion * 100:.0f}%"

    @property
    def completion_summary(self) -> str:
        return f"{self.total_completed} of {self.total_blocks} blocks completed"


def weekly_statistics(records: Iterable[DailyProgress]) -> WeeklyStats:
    """Roll a set of daily records up into one summary."""
    records = list(records)
    total_days = len(records)
    return WeeklyStats(
        total_days=total_days,
        completed_days=sum(1 for r in records if r.is_day_complete),
        average_completion=sum(r.completion_percentage for r in records) / max(total_days, 1),
        total_blocks=sum(r.total_blocks for r in records),
        total_completed=sum(r.completed_blocks for r in records),
    )


@dataclass(frozen=True)
class CompletionStatistics:
    total_blocks: int
    completed_blocks: int
    skipped_blocks: int
    in_progress_blocks: int
    start_date: date
    end_date: date

    @property
    def completion_percentage(self) -> float:
        return _ratio(self.completed_blocks, self.total_blocks)

    @property
    def skip_percentage(self) -> float:
        return _ratio(self.skipped_blocks, self.total_blocks)

    @property
    def formatted_completion_percentage(self) -> str:
        return f"{self.completion_percentage * 100:.0f}%"


def completion_statistics(blocks: Iterable[TimeBlock], start: date, end: date) -> CompletionStatistics:
    """Status counts for blocks scheduled between *start* and *end* inclusive."""
    in_range = [b for b in blocks if start <= b.scheduled_date <= end]
    return CompletionStatistics(
        total_blocks=len(in_range),
        completed_blocks=sum(1 for b in in_range if b.status is BlockStatus.COMPLETED),
        skipped_blocks=sum(1 for b in in_range if b.status is BlockStatus.SKIPPED),
        in_progress_blocks=sum(1 for b in in_range if b.status is BlockStatus.IN_PROGRESS),
        start_date=start,
        end_date=end,
    )
