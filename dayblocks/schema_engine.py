"""
Schema Convergence Engine - introspect, diff, apply.

Reads the declarative schema from dayblocks/schema and converges any SQLite
database to match. Two entry points:

  converge(conn)     - For existing DBs: adds missing tables/columns/indexes.
  create_fresh(conn) - For new/test DBs: drops everything and creates clean.

The engine never drops tables or columns on an existing DB.
"""

import logging
import re
import sqlite3

from dayblocks import safe_sql, schema

logger = logging.getLogger(__name__)


# Clauses that are valid in CREATE TABLE but not in ALTER TABLE ADD COLUMN
_STRIP_PATTERNS = [
    re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE),
    re.compile(r"\bUNIQUE\b", re.IGNORECASE),
    re.compile(r"\bREFERENCES\s+\w+\s*\([^)]*\)", re.IGNORECASE),
    re.compile(r"\bCHECK\s*\([^)]*\)", re.IGNORECASE),
]


def make_alter_safe(col_def: str) -> str:
    """
    Transform a CREATE TABLE column definition into one safe for
    ALTER TABLE ADD COLUMN.

    SQLite cannot add a PRIMARY KEY, UNIQUE, REFERENCES or CHECK column, and
    NOT NULL requires a DEFAULT.
    """
    safe = col_def
    for pattern in _STRIP_PATTERNS:
        safe = pattern.sub("", safe)

    safe = re.sub(r"\s{2,}", " ", safe).strip()

    has_not_null = re.search(r"\bNOT\s+NULL\b", safe, re.IGNORECASE)
    has_default = re.search(r"\bDEFAULT\b", safe, re.IGNORECASE)
    if has_not_null and not has_default:
        safe = safe + " DEFAULT ''"

    return safe


def _get_existing_tables(conn: sqlite3.Connection) -> set[str]:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0] for row in cursor.fetchall()}


def _get_existing_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    try:
        cursor = conn.execute(safe_sql.pragma_table_info(table))
        return {row[1] for row in cursor.fetchall()}
    except sqlite3.OperationalError:
        return set()


def _get_existing_indexes(conn: sqlite3.Connection) -> set[str]:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name NOT LIKE 'sqlite_%'"
    )
    return {row[0] for row in cursor.fetchall()}


def _build_create_sql(table_name: str, table_def: dict) -> str:
    """Build a CREATE TABLE IF NOT EXISTS statement from schema declaration."""
    parts = [f"    {col_name} {col_ddl}" for col_name, col_ddl in table_def["columns"]]
    for unique_cols in table_def.get("unique", []):
        parts.append(f"    UNIQUE({', '.join(unique_cols)})")
    body = ",\n".join(parts)
    return f"CREATE TABLE IF NOT EXISTS [{table_name}] (\n{body}\n)"


def converge(conn: sqlite3.Connection) -> dict:
    """
    Converge an existing database to match schema.TABLES.

    Algorithm:
      1. Create missing tables; add missing columns to existing ones.
      2. Create missing indexes.
      3. Set PRAGMA user_version.

    Returns a results dict for logging.
    """
    results = {
        "tables_created": [],
        "columns_added": [],
        "indexes_created": [],
        "errors": [],
    }

    existing_tables = _get_existing_tables(conn)
    existing_indexes = _get_existing_indexes(conn)

    for table_name, table_def in schema.TABLES.items():
        if table_name not in existing_tables:
            try:
                conn.execute(_build_create_sql(table_name, table_def))
                results["tables_created"].append(table_name)
                logger.info("schema_engine: created table %s", table_name)
            except sqlite3.OperationalError as e:
                err = f"CREATE TABLE {table_name}: {e}"
                results["errors"].append(err)
                logger.warning("schema_engine: %s", err)
            continue

        existing_cols = _get_existing_columns(conn, table_name)
        for col_name, col_ddl in table_def["columns"]:
            if col_name in existing_cols:
                continue
            try:
                conn.execute(
                    safe_sql.alter_add_column(table_name, col_name, make_alter_safe(col_ddl))
                )
                col_ref = f"{table_name}.{col_name}"
                results["columns_added"].append(col_ref)
                logger.info("schema_engine: added column %s", col_ref)
            except sqlite3.OperationalError as e:
                err = f"ADD COLUMN {table_name}.{col_name}: {e}"
                results["errors"].append(err)
                logger.warning("schema_engine: %s", err)

    for idx_name, idx_table, idx_cols, idx_where in schema.INDEXES:
        if idx_name in existing_indexes:
            continue
        try:
            conn.execute(safe_sql.create_index(idx_name, idx_table, idx_cols, idx_where))
            results["indexes_created"].append(idx_name)
        except sqlite3.OperationalError as e:
            err = f"CREATE INDEX {idx_name}: {e}"
            results["errors"].append(err)
            logger.warning("schema_engine: %s", err)

    conn.execute(safe_sql.pragma_user_version_set(schema.SCHEMA_VERSION))

    results["schema_version"] = schema.SCHEMA_VERSION
    return results


def create_fresh(conn: sqlite3.Connection) -> dict:
    """
    Create all tables from scratch.

    Drops the declared tables first. Use only for brand-new databases and
    test fixtures.
    """
    for table_name in reversed(list(schema.TABLES)):
        conn.execute(safe_sql.drop_table(table_name))
    return converge(conn)
