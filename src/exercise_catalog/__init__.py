"""CSV-driven exercise protocol catalog.

The engine is a set of pure functions over an immutable Catalog value:
tokenize -> detect_schema -> Catalog -> options / filters.
"""

from .catalog import Catalog, LoadOutcome, catalog_from_text, load_catalog, try_load_catalog
from .config import CatalogConfig, FilterPolicy, GoalMatch, ModalityChoice
from .errors import CatalogError, LoadError, ParseWarning, SchemaError
from .filtering import category_options, filter_by_modality, filter_rows, goal_labels, goal_options
from .schema import Schema, detect_schema
from .tokenizer import rows_to_records, tokenize

__all__ = [
    "Catalog",
    "CatalogConfig",
    "CatalogError",
    "FilterPolicy",
    "GoalMatch",
    "LoadError",
    "LoadOutcome",
    "ModalityChoice",
    "ParseWarning",
    "Schema",
    "SchemaError",
    "catalog_from_text",
    "category_options",
    "detect_schema",
    "filter_by_modality",
    "filter_rows",
    "goal_labels",
    "goal_options",
    "load_catalog",
    "rows_to_records",
    "tokenize",
    "try_load_catalog",
]
