from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CSV = Path("data") / "master.csv"
DEFAULT_PROGRESS = Path(".exercise_catalog") / "progress.json"


def catalog_csv_path() -> Path:
    """
    CSV read at startup.
    Relative to the working directory unless EXERCISE_CATALOG_CSV is set.
    """
    override = os.getenv("EXERCISE_CATALOG_CSV")
    return Path(override) if override else Path.cwd() / DEFAULT_CSV


def progress_store_path() -> Path:
    """Local key-value file backing the progress log."""
    override = os.getenv("EXERCISE_CATALOG_PROGRESS")
    return Path(override) if override else Path.cwd() / DEFAULT_PROGRESS
