#!/usr/bin/env python3
"""
dayblocks CLI - Direct user interface.
Plan the day in blocks, work through them, review the result.
"""

import logging
import sys
from datetime import date, datetime, timedelta

from dayblocks import config
from dayblocks.errors import ScheduleError
from dayblocks.observability import OperationContext, configure_log_rotation, configure_logging
from dayblocks.time_truth import BlockManager, TimeBlock, generate_day_brief

logger = logging.getLogger(__name__)


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def get_manager() -> BlockManager:
    """Manager over the SQLite store at paths.db_path()."""
    return BlockManager()


def _parse_day(value: str | None) -> date:
    return date.fromisoformat(value) if value else date.today()


def cmd_today(args):
    """Show a day's blocks and progress."""
    day = _parse_day(args[0] if args else None)
    manager = get_manager()

    now = datetime.now()
    if day == now.date():
        manager.refresh_statuses(day, now)

    blocks = manager.get_all_blocks(day)
    progress = manager.refresh_progress(day, now)

    print_header(f"BLOCKS: {day.isoformat()} ({day.strftime('%A')})")

    if not blocks:
        print("No blocks scheduled.")
        return

    rows = [
        [b.start_time.strftime("%H:%M"), b.formatted_duration, b.status.short_display_name, b.title[:35], b.id]
        for b in blocks
    ]
    print_table(["Start", "Length", "Status", "Title", "ID"], rows)

    print(f"\n📊 {progress.completion_summary} ({progress.formatted_completion_percentage})")
    print(f"⏰ {progress.time_summary}")


def cmd_add(args):
    """Add a block: add <title> <HH:MM> <minutes> [YYYY-MM-DD] [category]"""
    if len(args) < 3:
        print("Usage: add <title> <HH:MM> <minutes> [YYYY-MM-DD] [category]")
        return

    title, start_str, minutes_str = args[0], args[1], args[2]
    day = _parse_day(args[3] if len(args) > 3 else None)
    category = args[4] if len(args) > 4 else None

    start = datetime.strptime(start_str, "%H:%M")
    block = TimeBlock.for_day(
        title,
        day,
        start.hour,
        start.minute,
        duration_minutes=int(minutes_str),
        category=category,
    )

    get_manager().add_block(block)
    print(f"✅ Added: {block.title} {block.time_range_label} on {day.isoformat()} ({block.id})")


def _status_command(args, usage: str, action: str):
    if not args:
        print(f"Usage: {usage} <block_id>")
        return

    manager = get_manager()
    ok, message = getattr(manager, action)(args[0])
    print(f"{'✓' if ok else '✗'} {message}")


def cmd_start(args):
    """Mark a block in progress."""
    _status_command(args, "start", "start_block")


def cmd_complete(args):
    """Mark a block completed."""
    _status_command(args, "complete", "mark_completed")


def cmd_skip(args):
    """Mark a block skipped."""
    _status_command(args, "skip", "mark_skipped")


def cmd_refresh(args):
    """Auto-activate blocks whose window has started."""
    changed = get_manager().refresh_statuses()
    print(f"Refreshed: {len(changed)} block(s) started")


def cmd_summary(args):
    """Print the day brief: summary [YYYY-MM-DD] [--plain]"""
    fmt = "plain" if "--plain" in args else "markdown"
    positional = [a for a in args if not a.startswith("--")]
    day = _parse_day(positional[0] if positional else None)

    print(generate_day_brief(get_manager(), day, format=fmt))


def cmd_rate(args):
    """Rate a day 1-5: rate <1-5> [YYYY-MM-DD]"""
    if not args:
        print("Usage: rate <1-5> [YYYY-MM-DD]")
        return

    day = _parse_day(args[1] if len(args) > 1 else None)
    ok, message = get_manager().set_day_rating(day, int(args[0]))
    print(f"{'✓' if ok else '✗'} {message}")


def cmd_note(args):
    """Set today's notes: note <text...> (empty text clears)"""
    progress = get_manager().set_day_notes(date.today(), " ".join(args))
    if progress.day_notes:
        print(f"📝 Notes saved for {progress.date.isoformat()}")
    else:
        print(f"📝 Notes cleared for {progress.date.isoformat()}")


def cmd_viewed(args):
    """Mark a day's summary as viewed."""
    day = _parse_day(args[0] if args else None)
    get_manager().mark_summary_viewed(day)
    print(f"✓ Summary viewed for {day.isoformat()}")


def cmd_week(args):
    """Show statistics for the week containing a day."""
    day = _parse_day(args[0] if args else None)
    manager = get_manager()
    stats = manager.weekly_statistics(day)

    week_start = day - timedelta(days=day.weekday())
    print_header(f"WEEK OF {week_start.isoformat()}")
    print(f"  Days tracked:      {stats.total_days}")
    print(f"  Days complete:     {stats.completed_days}")
    print(f"  Avg completion:    {stats.formatted_average_completion}")
    print(f"  Blocks:            {stats.completion_summary}")


def cmd_copy(args):
    """Copy a day's blocks: copy <from YYYY-MM-DD> <to YYYY-MM-DD>"""
    if len(args) < 2:
        print("Usage: copy <from YYYY-MM-DD> <to YYYY-MM-DD>")
        return

    source, target = date.fromisoformat(args[0]), date.fromisoformat(args[1])
    copies = get_manager().copy_blocks(source, target)
    print(f"✅ Copied {len(copies)} block(s) from {source.isoformat()} to {target.isoformat()}")


def cmd_conflicts(args):
    """List overlapping blocks on a day."""
    day = _parse_day(args[0] if args else None)
    conflicts = get_manager().get_conflicts(day)

    print_header(f"CONFLICTS: {day.isoformat()}")
    if not conflicts:
        print("No conflicts.")
        return

    rows = [
        [
            c.block_a_id,
            c.block_b_id,
            f"{c.overlap_start.strftime('%H:%M')}-{c.overlap_end.strftime('%H:%M')}",
            c.overlap_minutes,
        ]
        for c in conflicts
    ]
    print_table(["Block A", "Block B", "Overlap", "Min"], rows)


def cmd_help(args):
    """Show help."""
    print("""
dayblocks - Plan your day in blocks

USAGE: dayblocks <command> [args]

COMMANDS:
  today [date]                 Show a day's blocks and progress
  add <title> <HH:MM> <min> [date] [category]
                               Add a block
  start <id>                   Mark a block in progress
  complete <id>                Mark a block completed
  skip <id>                    Mark a block skipped
  refresh                      Auto-start blocks whose time has come
  summary [date] [--plain]     Day brief with performance and tips
  rate <1-5> [date]            Rate a day
  note <text>                  Set today's notes (no text clears)
  viewed [date]                Mark a day's summary as viewed
  week [date]                  Weekly statistics
  copy <from> <to>             Copy one day's blocks to another
  conflicts [date]             List overlapping blocks
  help                         Show this help

Dates are YYYY-MM-DD and default to today.
""")


COMMANDS = {
    "today": cmd_today,
    "t": cmd_today,
    "add": cmd_add,
    "a": cmd_add,
    "start": cmd_start,
    "complete": cmd_complete,
    "c": cmd_complete,
    "skip": cmd_skip,
    "refresh": cmd_refresh,
    "r": cmd_refresh,
    "summary": cmd_summary,
    "s": cmd_summary,
    "rate": cmd_rate,
    "note": cmd_note,
    "viewed": cmd_viewed,
    "week": cmd_week,
    "w": cmd_week,
    "copy": cmd_copy,
    "conflicts": cmd_conflicts,
    "help": cmd_help,
    "h": cmd_help,
}


def main():
    """Main entry point."""
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    configure_log_rotation(config.LOG_FILE)

    if len(sys.argv) < 2:
        cmd_help([])
        return

    cmd = sys.argv[1]
    args = sys.argv[2:]

    if cmd not in COMMANDS:
        print(f"Unknown command: {cmd}")
        print("Run 'help' for available commands.")
        return

    handler = COMMANDS[cmd]
    # Aliases log under the full command name
    with OperationContext(name=handler.__name__.removeprefix("cmd_")) as ctx:
        logger.debug("Running %s with %d argument(s)", ctx.operation.name, len(args))
        try:
            handler(args)
        except ScheduleError as e:
            logger.info("Command refused: %s", e)
            print(f"❌ {e}")
            sys.exit(1)
        except ValueError as e:
            logger.debug("Bad arguments: %s", e)
            print(f"❌ Invalid argument: {e}")
            sys.exit(2)
        logger.debug("Finished in %dms", ctx.elapsed_ms)


if __name__ == "__main__":
    main()
