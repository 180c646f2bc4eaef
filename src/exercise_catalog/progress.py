from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import ProgressEntry
from .utils import read_json, write_json

PROGRESS_KEY = "bp_exercise_progress_v1"


class ProgressStoreError(RuntimeError):
    """Raised when a write would overwrite a progress file that could not be parsed."""


class ProgressStore:
    """
    Append-only session log kept under a fixed key in a local JSON file.

    The file holds {PROGRESS_KEY: [entry, ...]}; other keys are preserved.
    An unreadable file or malformed entries read as missing and are reported
    in `warnings` instead of failing the caller. `add` refuses to write over
    a file it could not parse.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.warnings: list[str] = []

    def _load_store(self, strict: bool = False) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            obj = read_json(self.path)
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Progress store {self.path} is unreadable ({e})"
            if strict:
                raise ProgressStoreError(f"{msg}; not overwriting it.") from e
            self.warnings.append(f"{msg}; starting empty.")
            return {}
        if not isinstance(obj, dict):
            msg = f"Progress store {self.path} is not a JSON object"
            if strict:
                raise ProgressStoreError(f"{msg}; not overwriting it.")
            self.warnings.append(f"{msg}; starting empty.")
            return {}
        if strict and not isinstance(obj.get(PROGRESS_KEY, []), list):
            raise ProgressStoreError(f"'{PROGRESS_KEY}' in {self.path} is not a list; not overwriting it.")
        return obj

    def entries(self) -> list[ProgressEntry]:
        raw = self._load_store().get(PROGRESS_KEY) or []
        if not isinstance(raw, list):
            self.warnings.append(f"'{PROGRESS_KEY}' is not a list; ignoring it.")
            return []
        out: list[ProgressEntry] = []
        for i, item in enumerate(raw):
            try:
                out.append(ProgressEntry.model_validate(item))
            except ValidationError as e:
                self.warnings.append(f"Skipped progress entry {i}: {e.error_count()} validation error(s).")
        return out

    def add(self, entry: ProgressEntry) -> list[ProgressEntry]:
        """Append one entry and return the full log. Raises ProgressStoreError on an unparseable file."""
        store = self._load_store(strict=True)
        raw = store.get(PROGRESS_KEY) or []
        raw.append(entry.model_dump())
        store[PROGRESS_KEY] = raw
        write_json(self.path, store)
        return self.entries()

    def clear(self, confirmed: bool = False) -> None:
        """Remove every entry. Requires explicit confirmation."""
        if not confirmed:
            raise ValueError("Clearing all progress entries requires confirmation.")
        store = self._load_store()
        store[PROGRESS_KEY] = []
        write_json(self.path, store)
