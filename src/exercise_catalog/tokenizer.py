from __future__ import annotations

from typing import Sequence

from .errors import ParseWarning

_QUOTE = '"'
_DELIM = ","
_NEWLINE = "\n"


def _is_blank(row: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in row)


def tokenize(text: str) -> list[list[str]]:
    """
    Split CSV text into rows of raw field strings.

    Dialect:
    - comma delimiter, double-quote enclosure, "" inside quotes is a literal quote
    - \\r\\n is read as \\n; a leading UTF-8 BOM is dropped
    - the last row is kept even without a trailing newline
    - trailing blank rows are discarded; interior rows are kept in file order
    - an unterminated quote runs to the end of input (no exception)
    """
    if not text:
        return []

    text = text.replace("\r\n", _NEWLINE)
    if text.startswith("\ufeff"):
        text = text[1:]

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    at_field_start = True

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if in_quotes:
            if ch == _QUOTE:
                if i + 1 < n and text[i + 1] == _QUOTE:
                    field.append(_QUOTE)
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(ch)
            i += 1
            continue

        if ch == _QUOTE and at_field_start:
            in_quotes = True
            at_field_start = False
        elif ch == _DELIM:
            row.append("".join(field))
            field = []
            at_field_start = True
        elif ch == _NEWLINE:
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
            at_field_start = True
        else:
            # Text after a closing quote is kept as-is up to the next delimiter.
            field.append(ch)
            at_field_start = False
        i += 1

    if row or field or not at_field_start:
        row.append("".join(field))
        rows.append(row)

    while rows and _is_blank(rows[-1]):
        rows.pop()

    return rows


def rows_to_records(
    header: Sequence[str],
    data_rows: Sequence[Sequence[str]],
) -> tuple[list[dict[str, str]], list[ParseWarning]]:
    """
    Project tokenized data rows onto the header.

    Rules:
    - short rows are padded with "" for the missing trailing columns
    - cells beyond the header width are dropped and reported as a ParseWarning
    - a repeated header name keeps its first column; later ones are ignored

    Returns:
      (records in input order, warnings)
    """
    warnings: list[ParseWarning] = []

    keep: list[tuple[int, str]] = []
    seen: set[str] = set()
    for idx, name in enumerate(header):
        if name in seen:
            warnings.append(
                ParseWarning(row_number=1, message=f"Duplicate column '{name}' at position {idx + 1} ignored.")
            )
            continue
        seen.add(name)
        keep.append((idx, name))

    width = len(header)
    records: list[dict[str, str]] = []
    for offset, cells in enumerate(data_rows):
        row_number = offset + 2
        if len(cells) > width:
            warnings.append(
                ParseWarning(
                    row_number=row_number,
                    message=f"{len(cells)} fields for {width} columns; dropped {len(cells) - width} extra field(s).",
                )
            )
        records.append({name: (cells[idx] if idx < len(cells) else "") for idx, name in keep})

    return records, warnings
