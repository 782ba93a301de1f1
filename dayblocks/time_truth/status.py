"""
Block Status - lifecycle states of a time block and the rules between them.

Implements the block status model:
- Canonical statuses
- Transition table (terminal states have no exits)
- Time-based auto-activation
- Sort priority for list ordering

Every lookup table below is keyed by every BlockStatus member; the module
refuses to import if a status is added without its table entries.
"""

from datetime import datetime
from enum import StrEnum


class BlockStatus(StrEnum):
    """Lifecycle status of a time block."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self][0]

    @property
    def short_display_name(self) -> str:
        return DISPLAY_NAMES[self][1]

    @property
    def is_completed(self) -> bool:
        """Counts as success in progress calculations."""
        return self is BlockStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        return self is BlockStatus.IN_PROGRESS

    @property
    def is_finished(self) -> bool:
        """Terminal: no further transitions."""
        return not TRANSITIONS[self]

    @property
    def can_transition(self) -> bool:
        return bool(TRANSITIONS[self])

    @property
    def available_transitions(self) -> tuple["BlockStatus", ...]:
        return TRANSITIONS[self]

    @property
    def sort_priority(self) -> int:
        """Higher sorts first when start times tie."""
        return SORT_PRIORITY[self]

    @property
    def analytics_category(self) -> str:
        return ANALYTICS_CATEGORY[self]

    @property
    def progress_value(self) -> float:
        """Rough numeric factor for progress visuals."""
        return PROGRESS_VALUE[self]


# Allowed transitions per status, in menu order
TRANSITIONS: dict[BlockStatus, tuple[BlockStatus, ...]] = {
    BlockStatus.NOT_STARTED: (
        BlockStatus.IN_PROGRESS,
        BlockStatus.COMPLETED,
        BlockStatus.SKIPPED,
    ),
    BlockStatus.IN_PROGRESS: (BlockStatus.COMPLETED, BlockStatus.SKIPPED),
    BlockStatus.COMPLETED: (),
    BlockStatus.SKIPPED: (),
}

SORT_PRIORITY: dict[BlockStatus, int] = {
    BlockStatus.IN_PROGRESS: 3,
    BlockStatus.NOT_STARTED: 2,
    BlockStatus.COMPLETED: 1,
    BlockStatus.SKIPPED: 0,
}

# (long, short)
DISPLAY_NAMES: dict[BlockStatus, tuple[str, str]] = {
    BlockStatus.NOT_STARTED: ("Upcoming", "Upcoming"),
    BlockStatus.IN_PROGRESS: ("In Progress", "Active"),
    BlockStatus.COMPLETED: ("Completed", "Done"),
    BlockStatus.SKIPPED: ("Skipped", "Skipped"),
}

ANALYTICS_CATEGORY: dict[BlockStatus, str] = {
    BlockStatus.NOT_STARTED: "pending",
    BlockStatus.IN_PROGRESS: "active",
    BlockStatus.COMPLETED: "success",
    BlockStatus.SKIPPED: "abandoned",
}

PROGRESS_VALUE: dict[BlockStatus, float] = {
    BlockStatus.NOT_STARTED: 0.0,
    BlockStatus.IN_PROGRESS: 0.5,
    BlockStatus.COMPLETED: 1.0,
    BlockStatus.SKIPPED: 0.0,
}


def _check_tables_exhaustive() -> None:
    members = set(BlockStatus)
    for name, table in (
        ("TRANSITIONS", TRANSITIONS),
        ("SORT_PRIORITY", SORT_PRIORITY),
        ("DISPLAY_NAMES", DISPLAY_NAMES),
        ("ANALYTICS_CATEGORY", ANALYTICS_CATEGORY),
        ("PROGRESS_VALUE", PROGRESS_VALUE),
    ):
        missing = members - set(table)
        if missing:
            raise RuntimeError(f"{name} has no entry for {sorted(missing)}")


_check_tables_exhaustive()


def check_transition(from_status: str, to_status: str) -> tuple[bool, str]:
    """
    Check if a transition is allowed.

    Returns: (allowed, reason)
    """
    try:
        from_s = BlockStatus(from_status)
        to_s = BlockStatus(to_status)
    except ValueError as e:
        return False, f"Invalid status: {e}"

    if not from_s.can_transition:
        return False, f"Status {from_s.value} is final"

    if to_s not in from_s.available_transitions:
        allowed = [s.value for s in from_s.available_transitions]
        return False, f"Transition {from_s.value} → {to_s.value} not allowed. Allowed: {allowed}"

    return True, "Allowed"


def determine_status(
    start_time: datetime,
    end_time: datetime,
    current: BlockStatus,
    now: datetime,
) -> BlockStatus:
    """
    Status a block should have at *now*, without side effects.

    Only ever auto-activates a NOT_STARTED block inside its window. Finished
    blocks are never touched, and a block past its end stays as it is:
    completing or skipping is always the user's call.
    """
    if current.is_finished:
        return current

    if current is BlockStatus.NOT_STARTED and start_time <= now <= end_time:
        return BlockStatus.IN_PROGRESS

    return current
