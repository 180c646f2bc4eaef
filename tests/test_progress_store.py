from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from exercise_catalog.models import ProgressEntry
from exercise_catalog.progress import PROGRESS_KEY, ProgressStore, ProgressStoreError


def test_add_appends_multiple_entries_per_day(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "progress.json")
    store.add(ProgressEntry(date="2026-10-01", type="aerobic", duration=30, rpe=5))
    entries = store.add(ProgressEntry(date="2026-10-01", type="resistance", duration=20, rpe=6, hrv="48"))

    assert [e.type for e in entries] == ["aerobic", "resistance"]
    assert entries[1].hrv == 48.0
    raw = json.loads((tmp_path / "progress.json").read_text(encoding="utf-8"))
    assert len(raw[PROGRESS_KEY]) == 2


def test_clear_requires_confirmation(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "progress.json")
    store.add(ProgressEntry(type="aerobic", duration=10, rpe=3))

    with pytest.raises(ValueError):
        store.clear()
    assert len(store.entries()) == 1

    store.clear(confirmed=True)
    assert store.entries() == []


def test_other_keys_are_preserved(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({"other": 1}), encoding="utf-8")
    ProgressStore(path).add(ProgressEntry(type="aerobic"))
    assert json.loads(path.read_text(encoding="utf-8"))["other"] == 1


def test_unreadable_store_reads_empty_with_warning(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    path.write_text("{not json", encoding="utf-8")
    store = ProgressStore(path)
    assert store.entries() == []
    assert store.warnings and "unreadable" in store.warnings[0]


def test_invalid_entries_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({PROGRESS_KEY: [{"type": "aerobic", "rpe": 42}, {"type": "walk", "rpe": 4}]}), encoding="utf-8")
    store = ProgressStore(path)
    assert [e.type for e in store.entries()] == ["walk"]
    assert len(store.warnings) == 1


def test_entry_validation() -> None:
    assert ProgressEntry(date="").date  # defaults to today
    with pytest.raises(ValidationError):
        ProgressEntry(duration=-1)
    with pytest.raises(ValidationError):
        ProgressEntry(date="10/01/2026")


def test_add_refuses_to_overwrite_unparseable_store(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    original = '{"' + PROGRESS_KEY + '": [{"type": "old"}], oops'
    path.write_text(original, encoding="utf-8")

    with pytest.raises(ProgressStoreError):
        ProgressStore(path).add(ProgressEntry(type="new"))
    assert path.read_text(encoding="utf-8") == original


def test_add_refuses_when_entries_key_is_not_a_list(tmp_path: Path) -> None:
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({PROGRESS_KEY: {"type": "old"}}), encoding="utf-8")

    with pytest.raises(ProgressStoreError):
        ProgressStore(path).add(ProgressEntry(type="new"))
    assert json.loads(path.read_text(encoding="utf-8")) == {PROGRESS_KEY: {"type": "old"}}


def test_entry_rejects_non_finite_numbers() -> None:
    assert ProgressEntry(hrv="nan").hrv is None
    with pytest.raises(ValidationError):
        ProgressEntry(duration=float("inf"))
