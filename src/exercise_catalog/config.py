from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class GoalMatch(str, Enum):
    """
    How a multi-goal selection is combined per row.

    - ANY: row matches if at least one selected goal is set (default)
    - ALL: row matches only if every selected goal is set
    """
    ANY = "any"
    ALL = "all"


class ModalityChoice(str, Enum):
    """Tri-state modality choice offered by the plan builder."""
    FIRST = "first"
    SECOND = "second"
    BOTH = "both"


# Role -> ordered accepted header spellings. First spelling present wins.
DEFAULT_SYNONYMS: dict[str, tuple[str, ...]] = {
    "title": ("title", "Title", "name", "Name", "exercise_name"),
    "category": ("Exercise Type", "exercise_type", "modality", "type", "category"),
    "modality": ("modality", "exercise_modality", "exercise_type", "Exercise Type", "type"),
    "protocol_start": ("protocol_start", "Protocol Start", "protocol"),
    "progression_rule": ("progression_rule", "Progression Rule", "progression"),
    "contraindications": ("contraindications_flags", "contraindications", "Contraindications"),
    "coach_script": ("coach_script_non_api", "coach_script", "Coach Script"),
    "coach_prompt": ("coach_prompt_api", "coach_prompt", "ai_prompt"),
    "goal_label": ("goal_label", "goal_labels", "goals", "Goal"),
    "direct_benefits": ("direct_cognitive_benefits",),
    "indirect_benefits": ("indirect_cognitive_benefits",),
    "mechanisms": ("mechanisms_brain_body",),
    "mechanism_tags": ("mechanism_tags",),
    "cognitive_targets": ("cognitive_targets",),
    "safety_notes": ("safety_notes",),
    "home_equipment": ("home_equipment",),
}

# Flag columns used by early catalogs before the `_goal` suffix convention.
KNOWN_GOAL_COLUMNS: tuple[str, ...] = (
    "cv_fitness",
    "body_composition",
    "lipids",
    "glycemic_control",
    "blood_pressure",
    "muscle_mass",
)

AFFIRMATIVE_VALUES: frozenset[str] = frozenset(
    {"1", "true", "True", "TRUE", "y", "Y", "yes", "Yes", "YES"}
)


@dataclass(frozen=True)
class CatalogConfig:
    """
    Schema inference settings, resolved once per load.

    synonyms: role -> ordered header spellings (exact, case-sensitive match)
    goal_suffix: headers ending with this are goal flag columns
    known_goal_columns: additional flag columns recognised by exact name
    affirmative_values: cell values coerced to a set flag
    """
    synonyms: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))
    goal_suffix: str = "_goal"
    known_goal_columns: tuple[str, ...] = KNOWN_GOAL_COLUMNS
    affirmative_values: frozenset[str] = AFFIRMATIVE_VALUES


@dataclass(frozen=True)
class FilterPolicy:
    """
    Filtering decisions that older catalog revisions disagreed on.

    first / second: modality values behind ModalityChoice.FIRST / SECOND
    none_value: modality value for protocols that suit either modality
    include_none: rows carrying none_value match every modality choice
    goal_match: ANY (OR) or ALL (AND) across selected goals
    """
    first: str = "aerobic"
    second: str = "resistance"
    none_value: str = "none"
    include_none: bool = True
    goal_match: GoalMatch = GoalMatch.ANY


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def policy_from_env() -> FilterPolicy:
    """Build a FilterPolicy honouring EXERCISE_CATALOG_* overrides."""
    goal_raw = (os.getenv("EXERCISE_CATALOG_GOAL_MATCH") or GoalMatch.ANY.value).strip().lower()
    try:
        goal_match = GoalMatch(goal_raw)
    except ValueError as exc:
        raise ValueError(
            f"EXERCISE_CATALOG_GOAL_MATCH must be one of {[g.value for g in GoalMatch]}, got '{goal_raw}'."
        ) from exc
    return FilterPolicy(
        include_none=_env_flag("EXERCISE_CATALOG_INCLUDE_NONE", True),
        goal_match=goal_match,
    )
