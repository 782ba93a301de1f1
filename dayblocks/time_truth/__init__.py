"""
Time Truth Module

The scheduling core: a day split into user-authored time blocks.

Objects:
- TimeBlock (a titled interval with a lifecycle status)
- DailyProgress (per-day aggregate of block outcomes)
- PerformanceLevel (tier derived from completion)

Invariants:
- Status changes follow the transition table; completed and skipped are final
- Saved blocks on the same day never overlap
- Progress is rebuilt from blocks, never incremented
- Day rating, notes and summary-viewed survive every rebuild
"""

from .block import TimeBlock, schedule_order
from .block_manager import BlockManager
from .brief import generate_day_brief
from .performance import PerformanceAdvisor, PerformanceLevel, PerformanceReport, classify, evaluate
from .progress import CompletionStatistics, DailyProgress, ProgressSummary, WeeklyStats, aggregate
from .rules import Conflict, find_conflicts
from .status import BlockStatus, check_transition, determine_status
from .store import MemoryStore, ScheduleStore, SqliteStore

__all__ = [
    "BlockStatus",
    "check_transition",
    "determine_status",
    "TimeBlock",
    "schedule_order",
    "Conflict",
    "find_conflicts",
    "DailyProgress",
    "ProgressSummary",
    "WeeklyStats",
    "CompletionStatistics",
    "aggregate",
    "PerformanceLevel",
    "PerformanceReport",
    "PerformanceAdvisor",
    "classify",
    "evaluate",
    "ScheduleStore",
    "MemoryStore",
    "SqliteStore",
    "BlockManager",
    "generate_day_brief",
]
