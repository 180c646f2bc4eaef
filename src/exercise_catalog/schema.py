from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from .config import CatalogConfig
from .errors import SchemaError


# ---- Resolved schema ---------------------------------------------------------


@dataclass(frozen=True)
class Schema:
    """
    Catalog interpretation of the header row (column roles).

    roles: role -> actual header name, or None when no accepted spelling is present
    goal_columns: flag columns, sorted by code point
    """
    roles: Mapping[str, Optional[str]]
    goal_columns: tuple[str, ...]

    def __post_init__(self) -> None:
        # read-only copies so a frozen Catalog cannot be re-pointed through its schema
        object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))
        object.__setattr__(self, "goal_columns", tuple(self.goal_columns))

    def column(self, role: str) -> Optional[str]:
        return self.roles.get(role)

    def has(self, role: str) -> bool:
        return self.roles.get(role) is not None

    def value(self, row: Mapping[str, str], role: str) -> str:
        """Cell for `role` in `row`; "" when the role is absent."""
        col = self.roles.get(role)
        if col is None:
            return ""
        return row.get(col, "") or ""

    def describe(self) -> dict[str, object]:
        return {
            "roles": {k: v for k, v in sorted(self.roles.items())},
            "missing_roles": sorted(k for k, v in self.roles.items() if v is None),
            "goal_columns": list(self.goal_columns),
        }


# ---- Detection ---------------------------------------------------------------


def _find_col(candidates: Sequence[str], present: set[str]) -> Optional[str]:
    for cand in candidates:
        if cand in present:
            return cand
    return None


def detect_goal_columns(headers: Sequence[str], config: CatalogConfig | None = None) -> tuple[str, ...]:
    cfg = config or CatalogConfig()
    known = set(cfg.known_goal_columns)
    found = {h for h in headers if h and (h.endswith(cfg.goal_suffix) or h in known)}
    return tuple(sorted(found))


def detect_schema(headers: Sequence[str], config: CatalogConfig | None = None) -> Schema:
    """
    Resolve every role in the synonym table against the literal header set.

    Matching is exact and case-sensitive; for each role the first accepted
    spelling present in the header wins. Raises SchemaError when neither a
    title nor a category column exists.
    """
    cfg = config or CatalogConfig()
    present = set(headers)

    roles: dict[str, Optional[str]] = {
        role: _find_col(candidates, present) for role, candidates in cfg.synonyms.items()
    }
    roles.setdefault("title", None)
    roles.setdefault("category", None)

    if roles["title"] is None and roles["category"] is None:
        accepted = list(cfg.synonyms.get("title", ())) + list(cfg.synonyms.get("category", ()))
        raise SchemaError(
            "Catalog is missing a title or category column. "
            f"Expected one of: {', '.join(accepted) or 'none configured'}. "
            f"Found: {', '.join(headers) or 'no columns'}.",
            missing=["title|category"],
        )

    return Schema(roles=roles, goal_columns=detect_goal_columns(headers, cfg))
