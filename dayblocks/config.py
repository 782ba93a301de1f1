"""
Centralized configuration for dayblocks.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("DAYBLOCKS_LOG_LEVEL", "INFO")
"""Root log level for the CLI and any embedding application."""

_log_json = os.environ.get("DAYBLOCKS_LOG_JSON", "").strip().lower()
LOG_JSON: bool | None = None if not _log_json else _log_json in ("1", "true", "yes")
"""Force JSON (true) or human (false) log lines. Unset = auto-detect from TTY."""

LOG_FILE: str | None = os.environ.get("DAYBLOCKS_LOG_FILE") or None
"""Optional rotating log file path."""

# ============================================================
# Performance advice
# ============================================================

ADVISOR_CONFIG: str | None = os.environ.get("DAYBLOCKS_ADVISOR_CONFIG") or None
"""Path to an alternative performance.yaml (advisory copy and thresholds)."""
