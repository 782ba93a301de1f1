"""
Block Rules - validation and conflict predicates over time blocks.

Pure functions. Nothing here raises on bad data; problems come back as
values so editing flows can show every issue at once:
- validation_errors() lists every violated field invariant
- find_conflicts() lists every overlapping pair on the same calendar day
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dayblocks.time_truth.block import TimeBlock

TITLE_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 500
CATEGORY_MAX_LENGTH = 50
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 24 * 60


@dataclass(frozen=True)
class Conflict:
    block_a_id: str
    block_b_id: str
    overlap_start: datetime
    overlap_end: datetime

    @property
    def overlap_minutes(self) -> int:
        return int((self.overlap_end - self.overlap_start).total_seconds() // 60)


def duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero."""
    return int((end_time - start_time).total_seconds() / 60)


def validation_errors(block: TimeBlock) -> list[str]:
    """Every field invariant *block* violates, in a stable order."""
    errors: list[str] = []

    if not block.title.strip():
        errors.append("Title cannot be empty")

    if len(block.title) > TITLE_MAX_LENGTH:
        errors.append(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")

    if block.start_time >= block.end_time:
        errors.append("Start time must be before end time")

    minutes = duration_minutes(block.start_time, block.end_time)
    if minutes < MIN_DURATION_MINUTES:
        errors.append("Duration must be at least 1 minute")

    if minutes > MAX_DURATION_MINUTES:
        errors.append("Duration cannot exceed 24 hours")

    if block.notes is not None and len(block.notes) > NOTES_MAX_LENGTH:
        errors.append(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")

    if block.category is not None and len(block.category) > CATEGORY_MAX_LENGTH:
        errors.append(f"Category cannot exceed {CATEGORY_MAX_LENGTH} characters")

    return errors


def same_day(a: TimeBlock, b: TimeBlock) -> bool:
    """Calendar-day equality of start times, not a rolling 24h window."""
    return a.start_time.date() == b.start_time.date()


def intervals_overlap(a: TimeBlock, b: TimeBlock) -> bool:
    """Half-open overlap: touching edges (09:00-10:00, 10:00-11:00) do not overlap."""
    return a.start_time < b.end_time and a.end_time > b.start_time


def blocks_conflict(a: TimeBlock, b: TimeBlock) -> bool:
    """Symmetric; a block never conflicts with itself."""
    if a.id == b.id:
        return False
    return same_day(a, b) and intervals_overlap(a, b)


def find_conflicts(blocks: Iterable[TimeBlock]) -> list[Conflict]:
    """
    Detect overlapping blocks.

    Returns each conflicting pair once, ordered by the earlier block's start.
    """
    ordered = sorted(blocks, key=lambda b: (b.start_time, b.id))
    conflicts = []

    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            if b.start_time >= a.end_time:
                break
            if blocks_conflict(a, b):
                conflicts.append(
                    Conflict(
                        block_a_id=a.id,
                        block_b_id=b.id,
                        overlap_start=max(a.start_time, b.start_time),
                        overlap_end=min(a.end_time, b.end_time),
                    )
                )

    return conflicts


def is_day_valid(blocks: Iterable[TimeBlock]) -> bool:
    """True when every block is valid and no two blocks conflict."""
    blocks = list(blocks)
    if any(validation_errors(block) for block in blocks):
        return False
    return not find_conflicts(blocks)
