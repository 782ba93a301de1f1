from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "DAYBLOCKS_HOME"
APP_ENV_DB = "DAYBLOCKS_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains dayblocks/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for dayblocks.
    Override with DAYBLOCKS_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".dayblocks").resolve()


def config_dir() -> Path:
    d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical schedule DB path.

    Resolution order:
    1. DAYBLOCKS_DB env var (explicit override)
    2. ~/.dayblocks/data/dayblocks.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "dayblocks.db"


def log_dir() -> Path:
    """Directory for rotated log files."""
    d = app_home() / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d
