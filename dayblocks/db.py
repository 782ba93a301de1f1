"""
Centralized Database Access for dayblocks.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema convergence (delegated to schema_engine)

The SQLite store goes through this module for every connection.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from dayblocks import paths, schema, schema_engine

logger = logging.getLogger(__name__)

# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path.

    Resolution order:
    1. DAYBLOCKS_DB env var (explicit override)
    2. ~/.dayblocks/data/dayblocks.db (default via paths.db_path())
    """
    return paths.db_path()


# ============================================================
# CONNECTION FACTORY
# ============================================================


@contextmanager
def get_connection(db_path: str | Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Commits on clean exit, always closes.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    return conn.execute("PRAGMA user_version").fetchone()[0]


# ============================================================
# SCHEMA CONVERGENCE
# ============================================================

_converged: set[str] = set()


def ensure_schema(db_path: str | Path | None = None) -> dict:
    """
    Converge the schema of *db_path* once per process. Safe to call repeatedly.
    """
    path = Path(db_path) if db_path else get_db_path()
    key = str(path)
    if key in _converged:
        return {"status": "skipped", "version": schema.SCHEMA_VERSION}

    with get_connection(path) as conn:
        version_before = get_schema_version(conn)
        results = schema_engine.converge(conn)
        results["previous_version"] = version_before

    if results.get("tables_created"):
        logger.info("Tables created in %s: %s", path, results["tables_created"])
    if results.get("columns_added"):
        logger.info("Columns added in %s: %s", path, results["columns_added"])
    if results.get("errors"):
        logger.warning("Convergence errors in %s: %s", path, results["errors"])

    _converged.add(key)
    return results
