"""
Tests for performance tiers, advisory copy and the YAML-backed advisor.
"""

from datetime import date

import pytest

from dayblocks.time_truth import performance
from dayblocks.time_truth.performance import (
    DEFAULT_MESSAGES,
    PerformanceAdvisor,
    PerformanceLevel,
    classify,
    evaluate,
    motivational_message,
    suggestions,
)
from dayblocks.time_truth.progress import DailyProgress

DAY = date(2026, 3, 2)


def progress(total=0, completed=0, skipped=0, in_progress=0) -> DailyProgress:
    return DailyProgress(
        date=DAY,
        total_blocks=total,
        completed_blocks=completed,
        skipped_blocks=skipped,
        in_progress_blocks=in_progress,
    )


class TestClassify:
    @pytest.mark.parametrize(
        "value,level",
        [
            (1.0, PerformanceLevel.EXCELLENT),
            (0.95, PerformanceLevel.EXCELLENT),
            (0.9, PerformanceLevel.EXCELLENT),
            (0.89999, PerformanceLevel.GOOD),
            (0.7, PerformanceLevel.GOOD),
            (0.69, PerformanceLevel.FAIR),
            (0.5, PerformanceLevel.FAIR),
            (0.49, PerformanceLevel.POOR),
            (0.2, PerformanceLevel.POOR),
            (0.15, PerformanceLevel.NONE),
            (0.0, PerformanceLevel.NONE),
        ],
    )
    def test_tiers(self, value, level):
        assert classify(value) is level

    @pytest.mark.parametrize("value", [-0.1, 1.01])
    def test_out_of_range_is_none(self, value):
        assert classify(value) is PerformanceLevel.NONE

    def test_display(self):
        assert PerformanceLevel.NONE.display_name == "Not Started"
        assert PerformanceLevel.EXCELLENT.emoji == "🏆"


class TestBuiltinCopy:
    def test_messages(self):
        assert motivational_message(PerformanceLevel.EXCELLENT).startswith("Outstanding work!")
        assert motivational_message(PerformanceLevel.NONE).startswith("Ready to start")

    def test_high_skip_rate(self):
        assert suggestions(progress(total=10, completed=6, skipped=4)) == [
            "Consider shortening time blocks to make them more manageable"
        ]

    def test_overscheduled_and_skippy(self):
        result = suggestions(progress(total=10, completed=2, skipped=4))
        assert result == [
            "Consider shortening time blocks to make them more manageable",
            "Try scheduling fewer blocks to build consistency",
        ]

    def test_overscheduled_needs_more_than_six_blocks(self):
        assert suggestions(progress(total=6, completed=1)) == ["Keep up the great work with your routine!"]

    def test_encouragement_when_nothing_matches(self):
        assert suggestions(progress(total=4, completed=4)) == ["Keep up the great work with your routine!"]

    def test_evaluate(self):
        report = evaluate(progress(total=4, completed=4))
        assert report.level is PerformanceLevel.EXCELLENT
        assert report.score == 1.0
        assert report.message == DEFAULT_MESSAGES[PerformanceLevel.EXCELLENT]
        assert report.headline == "🏆 Excellent"
        assert report.suggestions == ("Keep up the great work with your routine!",)


class TestAdvisorConfig:
    def test_loads_project_config(self):
        advisor = PerformanceAdvisor()
        assert advisor.skip_rate_above == 0.3
        assert advisor.total_blocks_above == 6
        assert advisor.motivational_message(PerformanceLevel.GOOD) == DEFAULT_MESSAGES[PerformanceLevel.GOOD]

    def test_custom_file_overrides_and_falls_back(self, tmp_path):
        path = tmp_path / "performance.yaml"
        path.write_text(
            "messages:\n"
            "  good: Nice.\n"
            "thresholds:\n"
            "  skip_rate_above: 0.1\n"
            "suggestions:\n"
            "  high_skip_rate: Skip less.\n",
            encoding="utf-8",
        )
        advisor = PerformanceAdvisor(path)

        assert advisor.motivational_message(PerformanceLevel.GOOD) == "Nice."
        assert advisor.motivational_message(PerformanceLevel.FAIR) == DEFAULT_MESSAGES[PerformanceLevel.FAIR]
        assert advisor.suggestions(progress(total=10, completed=8, skipped=2)) == ["Skip less."]

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level("WARNING", logger=performance.__name__):
            advisor = PerformanceAdvisor(tmp_path / "absent.yaml")

        assert advisor.skip_rate_above == 0.3
        assert "not found" in caplog.text

    def test_unparseable_file_uses_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("messages: [unclosed\n", encoding="utf-8")
        advisor = PerformanceAdvisor(path)
        assert advisor.messages == DEFAULT_MESSAGES

    def test_non_mapping_file_uses_defaults(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert PerformanceAdvisor(path).completion_below == 0.5
