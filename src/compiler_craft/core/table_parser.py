"""Parser for markdown pipe tables produced by the model.

The lexical-analysis phase asks the model for its token stream as a
markdown table. The parser accepts the common shape::

    | Token | Type       |
    |-------|------------|
    | int   | Keyword    |
    | main  | Identifier |

and reports anything else as a ``ParseFailure``.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from compiler_craft.core.results import ParseFailure

log = structlog.get_logger()

SEPARATOR_MARKER = "---"


@dataclass(frozen=True)
class ParsedTable:
    """A successfully parsed table; every non-empty row matches the header width."""

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def column_count(self) -> int:
        """Number of columns in the header."""
        return len(self.header)

    def as_dicts(self) -> list[dict[str, str]]:
        """Body rows keyed by header cell, skipping empty rows."""
        return [dict(zip(self.header, row, strict=True)) for row in self.rows if row]


def split_row(line: str) -> tuple[str, ...]:
    """Split one table line into trimmed cells.

    The text before the first ``|`` and after the last ``|`` is dropped, so a
    line without pipes yields no cells.
    """
    return tuple(cell.strip() for cell in line.split("|")[1:-1])


def parse_table(text: str) -> ParsedTable | ParseFailure:
    """Parse a markdown pipe table.

    Args:
        text: Model output expected to hold a markdown table

    Returns:
        ParsedTable on success, ParseFailure otherwise. Never raises.
    """
    if not isinstance(text, str):
        return ParseFailure(reason="not text", raw_text=repr(text))

    lines = [line for line in text.strip().split("\n") if line.strip()]
    if len(lines) < 2:
        return ParseFailure(reason="not enough lines for a table", raw_text=text)

    header = split_row(lines[0])
    if SEPARATOR_MARKER not in lines[1]:
        return ParseFailure(reason="invalid markdown table separator", raw_text=text)

    rows = tuple(split_row(line) for line in lines[2:])
    if not header:
        return ParseFailure(reason="empty table header", raw_text=text)

    for row in rows:
        if row and len(row) != len(header):
            log.debug(
                "table_column_mismatch",
                expected=len(header),
                actual=len(row),
            )
            return ParseFailure(reason="mismatched column count in table body", raw_text=text)

    return ParsedTable(header=header, rows=rows)
