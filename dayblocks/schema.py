"""
Declarative Schema Definition for the SQLite schedule store.

Every table and index dayblocks persists lives here. The schema_engine reads
this and converges any database to match.

Adding a column = add one line here. The engine handles the rest.

Column definitions use CREATE TABLE syntax. The schema_engine knows how to
derive ALTER TABLE ADD COLUMN DDL (strips PK, UNIQUE, adjusts NOT NULL).
"""

from collections import OrderedDict

# =============================================================================
# Schema version - bump when you change this file
# =============================================================================
SCHEMA_VERSION = 2

# Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...], "unique": [...]}
TABLES: dict[str, dict] = OrderedDict()

# ---------------------------------------------------------------------------
# time_blocks - one row per user-authored block. The calendar day is derived
# from start_time; `day` is a denormalized index column, rewritten on save.
# ---------------------------------------------------------------------------
TABLES["time_blocks"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("title", "TEXT NOT NULL"),
        ("start_time", "TEXT NOT NULL"),
        ("end_time", "TEXT NOT NULL"),
        ("day", "TEXT NOT NULL"),
        ("status", "TEXT NOT NULL DEFAULT 'not_started'"),
        ("notes", "TEXT"),
        ("icon", "TEXT"),
        ("category", "TEXT"),
        ("color_id", "TEXT"),
        # External calendar link
        ("calendar_event_id", "TEXT"),
        ("calendar_id", "TEXT"),
        ("calendar_last_modified", "TEXT"),
        # Timestamps
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ],
}

# ---------------------------------------------------------------------------
# daily_progress - one aggregated record per calendar day
# ---------------------------------------------------------------------------
TABLES["daily_progress"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("date", "TEXT NOT NULL"),
        ("total_blocks", "INTEGER NOT NULL DEFAULT 0"),
        ("completed_blocks", "INTEGER NOT NULL DEFAULT 0"),
        ("skipped_blocks", "INTEGER NOT NULL DEFAULT 0"),
        ("in_progress_blocks", "INTEGER NOT NULL DEFAULT 0"),
        ("total_planned_minutes", "INTEGER NOT NULL DEFAULT 0"),
        ("completed_minutes", "INTEGER NOT NULL DEFAULT 0"),
        # Side-channel user input, untouched by aggregation
        ("day_rating", "INTEGER"),
        ("day_notes", "TEXT"),
        ("summary_viewed", "INTEGER NOT NULL DEFAULT 0"),
        # Timestamps
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ],
    "unique": [("date",)],
}

# =============================================================================
# Indexes: (name, table, columns, where)
# =============================================================================
INDEXES: list[tuple[str, str, str, str | None]] = [
    ("idx_time_blocks_day", "time_blocks", "day", None),
    ("idx_time_blocks_start", "time_blocks", "start_time", None),
    ("idx_time_blocks_status", "time_blocks", "status", None),
    ("idx_daily_progress_date", "daily_progress", "date", None),
]
