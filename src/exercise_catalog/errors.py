from __future__ import annotations

from dataclasses import dataclass


class CatalogError(Exception):
    """Base class for failures that prevent a catalog from being built."""


class LoadError(CatalogError):
    """Raised when the CSV resource cannot be read or decoded."""


class SchemaError(CatalogError):
    """Raised when the header row cannot satisfy the required roles.

    `missing` lists the requirement(s) that could not be resolved, e.g.
    ["title|category"].
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing: list[str] = list(missing or [])


@dataclass(frozen=True)
class ParseWarning:
    """Soft problem found while projecting tokenized rows onto the header.

    row_number is 1-based and counts the header as row 1.
    """

    row_number: int
    message: str

    def __str__(self) -> str:
        return f"row {self.row_number}: {self.message}"
