from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from exercise_catalog.cli import app

FIXTURE = Path(__file__).parent / "fixtures" / "master_small.csv"

runner = CliRunner()


def test_inspect_prints_schema_and_writes_json(tmp_path: Path) -> None:
    out = tmp_path / "inspect.json"
    result = runner.invoke(app, ["inspect", "--data", str(FIXTURE), "--out", str(out)])
    assert result.exit_code == 0, result.output
    summary = json.loads(result.stdout)
    assert summary["row_count"] == 4
    assert json.loads(out.read_text(encoding="utf-8")) == summary


def test_options_lists_categories_and_goals() -> None:
    result = runner.invoke(app, ["options", "--data", str(FIXTURE)])
    assert result.exit_code == 0, result.output
    assert "  Resistance" in result.output
    assert "  sleep_goal" in result.output


def test_filter_by_goal() -> None:
    result = runner.invoke(app, ["filter", "--data", str(FIXTURE), "--goal", "muscle_mass"])
    assert result.exit_code == 0, result.output
    assert "Full-Body Resistance" in result.output
    assert "Zone 2 Walking" not in result.output


def test_filter_with_no_results() -> None:
    result = runner.invoke(app, ["filter", "--data", str(FIXTURE), "--category", "yoga"])
    assert result.exit_code == 0
    assert "No items match the filters." in result.output


def test_missing_csv_exits_with_code_2(tmp_path: Path) -> None:
    result = runner.invoke(app, ["options", "--data", str(tmp_path / "missing.csv")])
    assert result.exit_code == 2
    assert "ERROR:" in result.output


def test_bad_schema_exits_with_code_1(tmp_path: Path) -> None:
    bad = tmp_path / "bad.csv"
    bad.write_text("foo,bar\n1,2\n", encoding="utf-8")
    result = runner.invoke(app, ["options", "--data", str(bad)])
    assert result.exit_code == 1
    assert "title or category" in result.output


def test_plan_with_gates_and_none_policy() -> None:
    result = runner.invoke(app, ["plan", "--data", str(FIXTURE), "--choice", "second", "--exclude-none", "--sbp", "170"])
    assert result.exit_code == 0, result.output
    assert "Safety gates (CAUTION):" in result.output
    assert "Full-Body Resistance" in result.output
    assert "Tai Chi Flow" not in result.output

    result = runner.invoke(app, ["plan", "--data", str(FIXTURE), "--choice", "second", "--include-none"])
    assert "Tai Chi Flow" in result.output


def test_coach_uses_rules_based_fallback_without_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AI_INTEGRATIONS_OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["coach", "--data", str(FIXTURE), "--title", "Zone 2 Walking"])
    assert result.exit_code == 0, result.output
    assert "Keep breathing steady." in result.output


def test_ask_works_without_catalog(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AI_INTEGRATIONS_OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["ask", "--data", str(tmp_path / "missing.csv"), "--question", "How much cardio?"])
    assert result.exit_code == 0
    assert "unavailable" in result.output


def test_progress_add_list_clear(tmp_path: Path) -> None:
    store = tmp_path / "progress.json"
    r = runner.invoke(app, ["progress", "add", "--store", str(store), "--type", "aerobic", "--duration", "30", "--rpe", "5", "--date", "2026-10-01"])
    assert r.exit_code == 0, r.output

    r = runner.invoke(app, ["progress", "list", "--store", str(store)])
    assert "2026-10-01\taerobic\t30\t5" in r.output

    r = runner.invoke(app, ["progress", "clear", "--store", str(store)], input="n\n")
    assert r.exit_code == 1
    r = runner.invoke(app, ["progress", "list", "--store", str(store)])
    assert "aerobic" in r.output

    r = runner.invoke(app, ["progress", "clear", "--store", str(store), "--yes"])
    assert r.exit_code == 0
    r = runner.invoke(app, ["progress", "list", "--store", str(store)])
    assert "No progress entries." in r.output


def test_progress_add_keeps_corrupt_store_intact(tmp_path: Path) -> None:
    store = tmp_path / "progress.json"
    original = '{"bp_exercise_progress_v1": [{"type": "old"}], oops'
    store.write_text(original, encoding="utf-8")

    r = runner.invoke(app, ["progress", "add", "--store", str(store), "--type", "new"])
    assert r.exit_code == 1
    assert "ERROR:" in r.output
    assert "Logged" not in r.output
    assert store.read_text(encoding="utf-8") == original

    r = runner.invoke(app, ["progress", "list", "--store", str(store)])
    assert "WARNING:" in r.output


def test_progress_add_reports_skipped_entries(tmp_path: Path) -> None:
    store = tmp_path / "progress.json"
    store.write_text(json.dumps({"bp_exercise_progress_v1": [{"type": "aerobic", "rpe": 42}]}), encoding="utf-8")

    r = runner.invoke(app, ["progress", "add", "--store", str(store), "--type", "walk", "--date", "2026-10-02"])
    assert r.exit_code == 0, r.output
    assert "WARNING: Skipped progress entry 0" in r.output
    assert "Logged walk on 2026-10-02 (1 entry)." in r.output
