from __future__ import annotations

from typing import Iterable, Mapping

from .catalog import Catalog, Row, flag_is_set
from .config import FilterPolicy, GoalMatch, ModalityChoice
from .schema import Schema


def _normalize(value: str) -> str:
    return (value or "").strip()


def category_options(catalog: Catalog) -> list[str]:
    """Distinct trimmed category values, code-point sorted. Empty values are skipped."""
    values = {_normalize(catalog.value(r, "category")) for r in catalog.rows}
    values.discard("")
    return sorted(values)


def _split_labels(raw: str) -> list[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


def goal_labels(row: Mapping[str, str], schema: Schema) -> frozenset[str]:
    """
    Goals a row is tagged with.

    Union of the goal columns whose flag is set and the comma-separated
    free-text labels of the goal_label column (when the catalog has one).
    """
    labels = {col for col in schema.goal_columns if flag_is_set(row, col)}
    labels.update(_split_labels(schema.value(row, "goal_label")))
    return frozenset(labels)


def goal_options(catalog: Catalog, include_labels: bool = False) -> list[str]:
    """
    Selectable goals: the goal columns, sorted.

    include_labels=True also offers every free-text label found in the
    goal_label column across the catalog.
    """
    options = set(catalog.schema.goal_columns)
    if include_labels and catalog.schema.has("goal_label"):
        for r in catalog.rows:
            options.update(_split_labels(catalog.value(r, "goal_label")))
    return sorted(options)


def _goals_match(row_goals: frozenset[str], wanted: frozenset[str], goal_match: GoalMatch) -> bool:
    if not wanted:
        return True
    if goal_match == GoalMatch.ALL:
        return wanted <= row_goals
    return not wanted.isdisjoint(row_goals)


def filter_rows(
    catalog: Catalog,
    categories: Iterable[str] = (),
    goals: Iterable[str] = (),
    goal_match: GoalMatch = GoalMatch.ANY,
) -> list[Row]:
    """
    Rows matching the category selection AND the goal selection.

    - empty categories: no category constraint; otherwise the trimmed category must be selected
    - empty goals: no goal constraint; otherwise ANY (default) or ALL selected goals must be set
    - order is the catalog order; an empty list is a normal "no results" outcome
    """
    wanted_cats = frozenset(_normalize(c) for c in categories) - {""}
    wanted_goals = frozenset(g for g in goals if g)
    schema = catalog.schema

    out: list[Row] = []
    for r in catalog.rows:
        if wanted_cats and _normalize(schema.value(r, "category")) not in wanted_cats:
            continue
        if wanted_goals and not _goals_match(goal_labels(r, schema), wanted_goals, goal_match):
            continue
        out.append(r)
    return out


# ---- Tri-state modality ------------------------------------------------------


def modality_of(row: Mapping[str, str], schema: Schema) -> str:
    return _normalize(schema.value(row, "modality")).lower()


def modality_matches(value: str, choice: ModalityChoice, policy: FilterPolicy) -> bool:
    """
    Whether a (normalized) modality value satisfies a tri-state choice.

    FIRST / SECOND match their configured value; BOTH matches either.
    With policy.include_none, the none value matches every choice.
    """
    value = _normalize(value).lower()
    if policy.include_none and value == policy.none_value.lower():
        return True
    first = policy.first.lower()
    second = policy.second.lower()
    if choice == ModalityChoice.FIRST:
        return value == first
    if choice == ModalityChoice.SECOND:
        return value == second
    return value in (first, second)


def filter_by_modality(
    catalog: Catalog,
    choice: ModalityChoice = ModalityChoice.BOTH,
    goals: Iterable[str] = (),
    policy: FilterPolicy | None = None,
) -> list[Row]:
    """Rows for a tri-state modality choice, combined (AND) with the goal selection."""
    pol = policy or FilterPolicy()
    wanted_goals = frozenset(g for g in goals if g)
    schema = catalog.schema

    out: list[Row] = []
    for r in catalog.rows:
        if not modality_matches(modality_of(r, schema), choice, pol):
            continue
        if wanted_goals and not _goals_match(goal_labels(r, schema), wanted_goals, pol.goal_match):
            continue
        out.append(r)
    return out
