from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import pandas as pd

from .config import AFFIRMATIVE_VALUES, CatalogConfig
from .errors import CatalogError, LoadError, ParseWarning
from .schema import Schema, detect_schema
from .tokenizer import rows_to_records, tokenize

Row = Mapping[str, str]

FLAG_SET = "1"
FLAG_UNSET = "0"


def coerce_flag(value: Optional[str], affirmative: frozenset[str] = AFFIRMATIVE_VALUES) -> str:
    """
    Normalize a goal cell to "1" or "0".

    Exact membership in `affirmative` only; "1" stays "1", so re-coercing is a no-op.
    """
    return FLAG_SET if value in affirmative else FLAG_UNSET


def flag_is_set(row: Row, column: str) -> bool:
    return row.get(column, "") == FLAG_SET


@dataclass(frozen=True)
class Catalog:
    """
    Immutable result of loading one CSV dataset.

    headers: literal header row
    schema: resolved column roles and goal columns
    rows: read-only row mappings in file order, goal cells coerced to "1"/"0"
    warnings: soft parse problems (padding is silent; truncation and duplicates are reported)
    source: where the text came from, for display only
    """
    headers: tuple[str, ...]
    schema: Schema
    rows: tuple[Row, ...]
    warnings: tuple[ParseWarning, ...] = ()
    source: Optional[str] = None

    def __len__(self) -> int:
        return len(self.rows)

    def value(self, row: Row, role: str) -> str:
        return self.schema.value(row, role)

    def title_of(self, row: Row) -> str:
        return self.value(row, "title").strip() or self.value(row, "category").strip() or "Protocol"

    def describe(self) -> dict[str, Any]:
        """JSON-safe load summary (the `inspect` artifact)."""
        return {
            "_status": "ok",
            "source": self.source,
            "row_count": len(self.rows),
            "column_count": len(self.headers),
            "headers": list(self.headers),
            "schema": self.schema.describe(),
            "warnings": [str(w) for w in self.warnings],
        }


def catalog_from_text(
    text: str,
    config: CatalogConfig | None = None,
    source: Optional[str] = None,
) -> Catalog:
    """
    Build a Catalog from CSV text.

    Raises SchemaError when the header cannot satisfy the required roles
    (an empty document has no header and fails the same way).
    """
    cfg = config or CatalogConfig()
    table = tokenize(text)
    header = table[0] if table else []

    schema = detect_schema(header, cfg)
    records, warnings = rows_to_records(header, table[1:])

    rows: list[Row] = []
    for rec in records:
        for col in schema.goal_columns:
            rec[col] = coerce_flag(rec.get(col), cfg.affirmative_values)
        rows.append(MappingProxyType(rec))

    return Catalog(
        headers=tuple(header),
        schema=schema,
        rows=tuple(rows),
        warnings=tuple(warnings),
        source=source,
    )


def load_catalog(path: Path, config: CatalogConfig | None = None) -> Catalog:
    """
    Read a UTF-8 CSV file and build a Catalog.

    Raises LoadError if the file is missing, unreadable or not valid UTF-8.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LoadError(f"Catalog CSV not found: {path}") from e
    except UnicodeDecodeError as e:
        raise LoadError(f"Catalog CSV is not valid UTF-8: {path} ({e.reason})") from e
    except OSError as e:
        raise LoadError(f"Catalog CSV could not be read: {path} ({e})") from e
    return catalog_from_text(text, config=config, source=str(path))


@dataclass(frozen=True)
class LoadOutcome:
    """Value-returned result of the load boundary."""

    ok: bool
    catalog: Optional[Catalog] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None  # "LoadError" | "SchemaError"
    warnings: tuple[str, ...] = field(default_factory=tuple)


def try_load_catalog(path: Path, config: CatalogConfig | None = None) -> LoadOutcome:
    """
    Load a catalog without raising.

    Presentation layers render `error` as a single banner and keep the
    features that do not need data (progress log, ask) available.
    """
    try:
        catalog = load_catalog(path, config=config)
    except CatalogError as e:
        return LoadOutcome(ok=False, error=str(e), error_kind=type(e).__name__)
    return LoadOutcome(ok=True, catalog=catalog, warnings=tuple(str(w) for w in catalog.warnings))


def catalog_frame(catalog: Catalog, rows: Optional[list[Row]] = None) -> pd.DataFrame:
    """Tabular view of `rows` (default: all rows) with the header column order."""
    selected = catalog.rows if rows is None else rows
    return pd.DataFrame([dict(r) for r in selected], columns=list(dict.fromkeys(catalog.headers)))
