from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

from .catalog import Catalog, catalog_frame, try_load_catalog
from .coach import ask_coach, coach_row
from .config import FilterPolicy, GoalMatch, ModalityChoice, policy_from_env
from .filtering import category_options, filter_rows, goal_labels, goal_options
from .models import Biomarkers, ProgressEntry
from .paths import catalog_csv_path, progress_store_path
from .plan import build_plan
from .progress import ProgressStore, ProgressStoreError
from .utils import write_json

app = typer.Typer(add_completion=False, help="Exercise protocol catalog (CSV-driven CLI)")

# ---- Progress commands ----
progress_app = typer.Typer(help="Local training progress log.")
app.add_typer(progress_app, name="progress")

DATA_HELP = "Catalog CSV (default: $EXERCISE_CATALOG_CSV or ./data/master.csv)"


def _load(data: Optional[Path]) -> Catalog:
    """Load the catalog or exit with a single error line (2 = not readable, 1 = bad schema)."""
    outcome = try_load_catalog(data or catalog_csv_path())
    if not outcome.ok or outcome.catalog is None:
        typer.echo(f"ERROR: {outcome.error}", err=True)
        raise typer.Exit(code=2 if outcome.error_kind == "LoadError" else 1)
    for w in outcome.warnings:
        typer.echo(f"WARNING: {w}", err=True)
    return outcome.catalog


def _policy(include_none: Optional[bool], match: Optional[GoalMatch] = None) -> FilterPolicy:
    try:
        pol = policy_from_env()
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)
    if include_none is not None:
        pol = replace(pol, include_none=include_none)
    if match is not None:
        pol = replace(pol, goal_match=match)
    return pol


def _echo_rows(catalog: Catalog, rows: list, empty_msg: str) -> None:
    if not rows:
        typer.echo(empty_msg)
        return
    for r in rows:
        goals = ", ".join(sorted(goal_labels(r, catalog.schema))) or "-"
        category = catalog.value(r, "category").strip() or "n/a"
        typer.echo(f"- {catalog.title_of(r)} [{category}] goals: {goals}")


@app.command()
def inspect(
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
    out: Optional[Path] = typer.Option(None, "--out", help="Also write the summary as JSON to this path"),
) -> None:
    """
    Show the resolved schema, goal columns and parse warnings as JSON.
    """
    catalog = _load(data)
    summary = catalog.describe()
    typer.echo(json.dumps(summary, indent=2, sort_keys=True))
    if out is not None:
        write_json(out, summary)


@app.command()
def options(
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
    labels: bool = typer.Option(False, "--labels", help="Include free-text goal labels in the goal list"),
) -> None:
    """
    List selectable categories and goals.
    """
    catalog = _load(data)
    cats = category_options(catalog)
    goals = goal_options(catalog, include_labels=labels)
    typer.echo("Categories:")
    for c in cats or ["(none in CSV)"]:
        typer.echo(f"  {c}")
    typer.echo("Goals:")
    for g in goals or ["(none in CSV)"]:
        typer.echo(f"  {g}")


@app.command("filter")
def filter_cmd(
    category: list[str] = typer.Option([], "--category", help="Category to include (repeatable)"),
    goal: list[str] = typer.Option([], "--goal", help="Goal column or label (repeatable)"),
    match: Optional[GoalMatch] = typer.Option(None, "--match", help="any|all across selected goals", case_sensitive=False),
    table: bool = typer.Option(False, "--table", help="Print matching rows as a table"),
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
) -> None:
    """
    Browse the library: rows matching the selected categories AND goals.
    """
    catalog = _load(data)
    pol = _policy(None, match)
    rows = filter_rows(catalog, category, goal, goal_match=pol.goal_match)
    if table and rows:
        typer.echo(catalog_frame(catalog, rows).to_string(index=False))
        return
    _echo_rows(catalog, rows, "No items match the filters.")


@app.command()
def plan(
    choice: ModalityChoice = typer.Option(ModalityChoice.BOTH, "--choice", help="first|second|both", case_sensitive=False),
    include_none: Optional[bool] = typer.Option(None, "--include-none/--exclude-none", help="Whether 'none' modality rows match every choice"),
    limit: int = typer.Option(3, "--limit", min=1, help="Number of protocols to pick"),
    sbp: Optional[float] = typer.Option(None, "--sbp"),
    dbp: Optional[float] = typer.Option(None, "--dbp"),
    cgm_tir: Optional[float] = typer.Option(None, "--cgm-tir"),
    hscrp: Optional[float] = typer.Option(None, "--hscrp"),
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
) -> None:
    """
    Generate a rule-based plan: safety gates plus a few protocols.
    """
    catalog = _load(data)
    pol = _policy(include_none)
    markers = Biomarkers(sbp=sbp, dbp=dbp, cgm_tir=cgm_tir, hscrp=hscrp)
    result = build_plan(catalog, choice, markers, policy=pol, limit=limit)

    label = "CAUTION" if result.cautionary else "OK"
    typer.echo(f"Safety gates ({label}):")
    for n in result.gate_notes:
        typer.echo(f"  - {n}")
    typer.echo("Protocols:")
    if result.empty:
        typer.echo("  No items available (check the CSV modality column).")
        return
    for r in result.picks:
        typer.echo(f"  - {catalog.title_of(r)}")
        start = catalog.value(r, "protocol_start").strip()
        prog = catalog.value(r, "progression_rule").strip()
        if start:
            typer.echo(f"      start: {start}")
        if prog:
            typer.echo(f"      progression: {prog}")


@app.command()
def coach(
    title: str = typer.Option(..., "--title", help="Title (or category) of the protocol row"),
    mode: str = typer.Option("library", "--mode", help="library|plan"),
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
) -> None:
    """
    Coaching text for one protocol (AI when configured, rules-based otherwise).
    """
    catalog = _load(data)
    matches = [r for r in catalog.rows if catalog.title_of(r) == title.strip()]
    if not matches:
        typer.echo(f"ERROR: No protocol titled '{title}'.", err=True)
        raise typer.Exit(code=1)
    if mode not in ("library", "plan"):
        typer.echo(f"ERROR: Unknown mode '{mode}' (expected library|plan).", err=True)
        raise typer.Exit(code=1)
    reply = coach_row(matches[0], catalog.schema, mode=mode)
    typer.echo(reply.text)
    if reply.error:
        typer.echo(f"(rules-based: {reply.error})", err=True)


@app.command()
def ask(
    question: str = typer.Option(..., "--question", help="A free-text question for the coach"),
    data: Optional[Path] = typer.Option(None, "--data", help=DATA_HELP),
) -> None:
    """
    Ask the coach a general question.

    Works without a catalog; when one loads, a few protocols are sent as context.
    """
    outcome = try_load_catalog(data or catalog_csv_path())
    if not outcome.ok:
        typer.echo(f"WARNING: {outcome.error} Answering without catalog context.", err=True)
    reply = ask_coach(question, outcome.catalog)
    typer.echo(reply.text)
    if reply.error:
        typer.echo(f"(rules-based: {reply.error})", err=True)


@progress_app.command("add")
def progress_add(
    type_: str = typer.Option(..., "--type", help="Session type, e.g. aerobic"),
    duration: float = typer.Option(0, "--duration", help="Minutes"),
    rpe: float = typer.Option(0, "--rpe", help="Rate of perceived exertion (0-10)"),
    hrv: Optional[float] = typer.Option(None, "--hrv"),
    date: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)"),
    store: Optional[Path] = typer.Option(None, "--store", help="Progress file (default: $EXERCISE_CATALOG_PROGRESS)"),
) -> None:
    """
    Append one session to the progress log.
    """
    try:
        entry = ProgressEntry(date=date, type=type_, duration=duration, rpe=rpe, hrv=hrv)
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)
    ps = ProgressStore(store or progress_store_path())
    try:
        entries = ps.add(entry)
    except ProgressStoreError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        for w in ps.warnings:
            typer.echo(f"WARNING: {w}", err=True)
    typer.echo(f"Logged {entry.type or 'session'} on {entry.date} ({len(entries)} entr{'y' if len(entries) == 1 else 'ies'}).")


@progress_app.command("list")
def progress_list(
    store: Optional[Path] = typer.Option(None, "--store", help="Progress file (default: $EXERCISE_CATALOG_PROGRESS)"),
) -> None:
    """
    Show every logged session.
    """
    ps = ProgressStore(store or progress_store_path())
    entries = ps.entries()
    for w in ps.warnings:
        typer.echo(f"WARNING: {w}", err=True)
    if not entries:
        typer.echo("No progress entries.")
        return
    for e in entries:
        hrv = "" if e.hrv is None else f"{e.hrv:g}"
        typer.echo(f"{e.date}\t{e.type}\t{e.duration:g}\t{e.rpe:g}\t{hrv}")


@progress_app.command("clear")
def progress_clear(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
    store: Optional[Path] = typer.Option(None, "--store", help="Progress file (default: $EXERCISE_CATALOG_PROGRESS)"),
) -> None:
    """
    Delete ALL progress entries (asks for confirmation).
    """
    confirmed = yes or typer.confirm("Clear ALL progress entries?")
    if not confirmed:
        typer.echo("Aborted.")
        raise typer.Exit(code=1)
    ProgressStore(store or progress_store_path()).clear(confirmed=True)
    typer.echo("Cleared all progress entries.")
