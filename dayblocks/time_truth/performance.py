"""
Performance - tier classification and advisory copy for a day's progress.

Tier boundaries are fixed. Copy and suggestion thresholds are loaded from
config/performance.yaml by PerformanceAdvisor; the module-level helpers use
the built-in defaults and never touch the filesystem.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import yaml

from dayblocks import config, paths
from dayblocks.time_truth.progress import DailyProgress

logger = logging.getLogger(__name__)


class PerformanceLevel(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NONE = "none"

    @property
    def display_name(self) -> str:
        return _DISPLAY[self][0]

    @property
    def emoji(self) -> str:
        return _DISPLAY[self][1]


_DISPLAY: dict[PerformanceLevel, tuple[str, str]] = {
    PerformanceLevel.EXCELLENT: ("Excellent", "🏆"),
    PerformanceLevel.GOOD: ("Good", "👍"),
    PerformanceLevel.FAIR: ("Fair", "📈"),
    PerformanceLevel.POOR: ("Poor", "🌱"),
    PerformanceLevel.NONE: ("Not Started", "⚪"),
}

# Lower bound of each tier, highest first. Anything below the last is NONE.
TIER_FLOORS: tuple[tuple[float, PerformanceLevel], ...] = (
    (0.9, PerformanceLevel.EXCELLENT),
    (0.7, PerformanceLevel.GOOD),
    (0.5, PerformanceLevel.FAIR),
    (0.2, PerformanceLevel.POOR),
)

DEFAULT_MESSAGES: dict[PerformanceLevel, str] = {
    PerformanceLevel.EXCELLENT: "Outstanding work! You crushed your goals today! 🎉",
    PerformanceLevel.GOOD: "Great job! You're building strong habits! 💪",
    PerformanceLevel.FAIR: "Good progress! Tomorrow is another opportunity to improve! 📈",
    PerformanceLevel.POOR: "Every step counts! Small progress is still progress! 🌱",
    PerformanceLevel.NONE: "Ready to start building your routine? You've got this! ✨",
}

DEFAULT_SUGGESTIONS: dict[str, str] = {
    "high_skip_rate": "Consider shortening time blocks to make them more manageable",
    "overscheduled": "Try scheduling fewer blocks to build consistency",
    "unmarked_completion": "Remember to mark completed tasks to track your progress",
    "encouragement": "Keep up the great work with your routine!",
}

DEFAULT_THRESHOLDS: dict[str, float] = {
    "skip_rate_above": 0.3,
    "completion_below": 0.5,
    "total_blocks_above": 6,
}


def classify(completion_percentage: float) -> PerformanceLevel:
    """
    Map a completion ratio to a tier.

    Values above 1.0 or below 0.0 fall through to NONE.
    """
    if completion_percentage > 1.0:
        return PerformanceLevel.NONE
    for floor, level in TIER_FLOORS:
        if completion_percentage >= floor:
            return level
    return PerformanceLevel.NONE


@dataclass(frozen=True)
class PerformanceReport:
    level: PerformanceLevel
    score: float
    message: str
    suggestions: tuple[str, ...]

    @property
    def headline(self) -> str:
        return f"{self.level.emoji} {self.level.display_name}"


class PerformanceAdvisor:
    """
    Advisory copy for a day's performance.

    Loads config/performance.yaml (or DAYBLOCKS_ADVISOR_CONFIG). Missing
    keys, a missing file or an unreadable file fall back to the built-in
    defaults.
    """

    def __init__(self, config_path: Path | None = None):
        if config_path is None:
            if config.ADVISOR_CONFIG:
                config_path = Path(config.ADVISOR_CONFIG)
            else:
                config_path = paths.project_root() / "config" / "performance.yaml"

        self._config = self._load_config(config_path)

        messages = self._config.get("messages") or {}
        self.messages: dict[PerformanceLevel, str] = {
            level: messages.get(level.value, DEFAULT_MESSAGES[level]) for level in PerformanceLevel
        }

        suggestions = self._config.get("suggestions") or {}
        self.suggestion_copy: dict[str, str] = {
            key: suggestions.get(key, default) for key, default in DEFAULT_SUGGESTIONS.items()
        }

        thresholds = self._config.get("thresholds") or {}
        self.skip_rate_above = float(thresholds.get("skip_rate_above", DEFAULT_THRESHOLDS["skip_rate_above"]))
        self.completion_below = float(thresholds.get("completion_below", DEFAULT_THRESHOLDS["completion_below"]))
        self.total_blocks_above = int(thresholds.get("total_blocks_above", DEFAULT_THRESHOLDS["total_blocks_above"]))

    @staticmethod
    def _load_config(config_path: Path) -> dict:
        """Load YAML config, return empty dict on failure."""
        if not config_path.exists():
            logger.warning("Performance config not found at %s, using defaults", config_path)
            return {}
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as exc:
            logger.error("Failed to load performance config: %s", exc)
            return {}
        if not isinstance(loaded, dict):
            logger.warning("Performance config at %s is not a mapping, using defaults", config_path)
            return {}
        return loaded

    def motivational_message(self, level: PerformanceLevel) -> str:
        return self.messages[level]

    def suggestions(self, progress: DailyProgress) -> list[str]:
        """Every matching suggestion, or the encouragement line when none match."""
        result = []

        if progress.skip_rate > self.skip_rate_above:
            result.append(self.suggestion_copy["high_skip_rate"])

        if progress.completion_percentage < self.completion_below and progress.total_blocks > self.total_blocks_above:
            result.append(self.suggestion_copy["overscheduled"])

        # Never true for aggregated records: a complete day has no in-progress blocks
        if progress.in_progress_blocks > progress.completed_blocks and progress.is_day_complete:
            result.append(self.suggestion_copy["unmarked_completion"])

        if not result:
            result.append(self.suggestion_copy["encouragement"])

        return result

    def evaluate(self, progress: DailyProgress) -> PerformanceReport:
        level = classify(progress.completion_percentage)
        return PerformanceReport(
            level=level,
            score=progress.performance_score,
            message=self.motivational_message(level),
            suggestions=tuple(self.suggestions(progress)),
        )


class _BuiltinAdvisor(PerformanceAdvisor):
    """Advisor with the built-in copy; never reads a file."""

    def __init__(self):
        self._config = {}
        self.messages = dict(DEFAULT_MESSAGES)
        self.suggestion_copy = dict(DEFAULT_SUGGESTIONS)
        self.skip_rate_above = DEFAULT_THRESHOLDS["skip_rate_above"]
        self.completion_below = DEFAULT_THRESHOLDS["completion_below"]
        self.total_blocks_above = int(DEFAULT_THRESHOLDS["total_blocks_above"])


_BUILTIN = _BuiltinAdvisor()


def motivational_message(level: PerformanceLevel) -> str:
    return _BUILTIN.motivational_message(level)


def suggestions(progress: DailyProgress) -> list[str]:
    return _BUILTIN.suggestions(progress)


def evaluate(progress: DailyProgress) -> PerformanceReport:
    return _BUILTIN.evaluate(progress)
