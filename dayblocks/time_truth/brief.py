"""
Day Brief Generator - text summary of one day's schedule and progress.

This produces the end-of-day (or any-time) brief:
- Progress overview and performance tier
- The day's blocks in schedule order
- Current and next block
- Conflicts, if any slipped in
- Suggestions
"""

import logging
from datetime import date, datetime

from dayblocks.time_truth.block import TimeBlock
from dayblocks.time_truth.block_manager import BlockManager
from dayblocks.time_truth.performance import PerformanceAdvisor, PerformanceReport
from dayblocks.time_truth.progress import DailyProgress
from dayblocks.time_truth.status import BlockStatus

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    BlockStatus.NOT_STARTED: "⏳",
    BlockStatus.IN_PROGRESS: "▶️",
    BlockStatus.COMPLETED: "✅",
    BlockStatus.SKIPPED: "⏭️",
}


def generate_day_brief(
    manager: BlockManager,
    target_date: date | None = None,
    now: datetime | None = None,
    format: str = "markdown",
    advisor: PerformanceAdvisor | None = None,
) -> str:
    """
    Generate the brief for *target_date*.

    Args:
        manager: BlockManager to read from
        target_date: Day to summarize (defaults to now's date)
        now: Moment progress is evaluated at
        format: Output format ('markdown' or 'plain')
        advisor: Copy source for the performance section

    Returns:
        Formatted brief string
    """
    now = now or datetime.now()
    target_date = target_date or now.date()
    advisor = advisor or PerformanceAdvisor()

    blocks = manager.get_all_blocks(target_date)
    progress = manager.refresh_progress(target_date, now)
    report = advisor.evaluate(progress)
    conflicts = manager.get_conflicts(target_date)

    current = nxt = None
    if target_date == now.date():
        current = manager.get_current_block(now)
        nxt = manager.get_next_block(now)

    if format == "markdown":
        return _format_markdown(target_date, blocks, progress, report, conflicts, current, nxt)
    return _format_plain(target_date, blocks, progress, report, conflicts, current, nxt)


def _format_markdown(
    target_date: date,
    blocks: list[TimeBlock],
    progress: DailyProgress,
    report: PerformanceReport,
    conflicts: list,
    current: TimeBlock | None,
    nxt: TimeBlock | None,
) -> str:
    """Format brief as markdown."""
    lines = []

    lines.append(f"*🎯 {target_date.strftime('%A')}'s Blocks*")
    lines.append("")

    lines.append(f"📊 *Progress* {report.headline}")
    lines.append(f"• {progress.completion_summary} ({progress.formatted_completion_percentage})")
    lines.append(f"• {progress.time_summary}")
    lines.append(f"• Skipped: {progress.skipped_blocks}")
    lines.append(f"• Score: {report.score:.2f}")
    if progress.day_rating is not None:
        lines.append(f"• Rating: {'★' * progress.day_rating}{'☆' * (5 - progress.day_rating)}")
    lines.append("")

    if current or nxt:
        if current:
            lines.append(f"*▶️ Now:* {current.title} ({current.time_range_label})")
        if nxt:
            lines.append(f"*⏭️ Next:* {nxt.title} at {nxt.start_time.strftime('%H:%M')}")
        lines.append("")

    if blocks:
        lines.append("*📅 Schedule*")
        for block in blocks:
            icon = STATUS_ICONS[block.status]
            category = f" [{block.category}]" if block.category else ""
            lines.append(f"• {block.start_time.strftime('%H:%M')} {icon} {block.title[:40]}{category} ({block.formatted_duration})")
        lines.append("")
    else:
        lines.append("_No blocks scheduled._")
        lines.append("")

    if conflicts:
        lines.append(f"*⚠️ {len(conflicts)} Conflicts*")
        for conflict in conflicts[:3]:
            lines.append(
                f"• {conflict.block_a_id} / {conflict.block_b_id}: "
                f"{conflict.overlap_start.strftime('%H:%M')}-{conflict.overlap_end.strftime('%H:%M')}"
            )
        if len(conflicts) > 3:
            lines.append(f"  _...and {len(conflicts) - 3} more_")
        lines.append("")

    lines.append(f"_{report.message}_")
    for suggestion in report.suggestions:
        lines.append(f"💡 {suggestion}")

    return "\n".join(lines)


def _format_plain(
    target_date: date,
    blocks: list[TimeBlock],
    progress: DailyProgress,
    report: PerformanceReport,
    conflicts: list,
    current: TimeBlock | None,
    nxt: TimeBlock | None,
) -> str:
    """Format brief as plain text."""
    lines = []

    lines.append(f"{target_date.strftime('%A')}'s Blocks ({target_date.isoformat()})")
    lines.append("=" * 40)
    lines.append("")

    lines.append(f"PROGRESS: {report.level.display_name.upper()}")
    lines.append(f"  {progress.completion_summary} ({progress.formatted_completion_percentage})")
    lines.append(f"  {progress.time_summary}")
    lines.append(f"  Skipped: {progress.skipped_blocks}")
    lines.append(f"  Score: {report.score:.2f}")
    lines.append("")

    if current:
        lines.append(f"NOW: {current.title} ({current.time_range_label})")
    if nxt:
        lines.append(f"NEXT: {nxt.title} at {nxt.start_time.strftime('%H:%M')}")
    if current or nxt:
        lines.append("")

    if blocks:
        lines.append("SCHEDULE")
        for block in blocks:
            lines.append(f"  {block.start_time.strftime('%H:%M')} [{block.status.short_display_name}] {block.title[:40]}")
        lines.append("")

    if conflicts:
        lines.append(f"CONFLICTS ({len(conflicts)})")
        for conflict in conflicts:
            lines.append(f"  - {conflict.block_a_id} / {conflict.block_b_id} ({conflict.overlap_minutes} min)")
        lines.append("")

    lines.append(report.message)
    for suggestion in report.suggestions:
        lines.append(f"  - {suggestion}")

    return "\n".join(lines)
