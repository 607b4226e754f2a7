"""Row filtering for the active sheet — free-text search plus ``column:value``."""

from __future__ import annotations

from dataclasses import dataclass, field

from sheet_ai import DISPLAY_ROW_LIMIT
from sheet_ai.models import Cell, Row, Sheet
from sheet_ai.utils import cell_to_text


@dataclass
class FilteredRows:
    """Matching rows plus their positions in the sheet's raw row list."""

    indices: list[int] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    total: int = 0

    @property
    def truncated(self) -> bool:
        return self.total > len(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


def _cell_at(row: Row, index: int) -> Cell:
    return row[index] if index < len(row) else None


def parse_column_filter(column_filter: str) -> tuple[str, str | None]:
    """Split ``"column:value"`` on the first colon.

    Without a colon the whole text is the column and the value is ``None``.
    """
    column, sep, value = column_filter.partition(":")
    return column, (value if sep else None)


def filter_rows(
    sheet: Sheet | None,
    query: str = "",
    column_filter: str = "",
    limit: int | None = DISPLAY_ROW_LIMIT,
) -> FilteredRows:
    """Return the rows of *sheet* matching both filters, capped at *limit*.

    An unknown column in *column_filter* is ignored rather than treated as
    an error. The sheet itself is never modified.
    """
    if sheet is None:
        return FilteredRows()

    matches = list(enumerate(sheet.rows))
    if query:
        needle = query.lower()
        matches = [
            (i, r) for i, r in matches if any(needle in cell_to_text(c).lower() for c in r)
        ]
    if column_filter:
        column, value = parse_column_filter(column_filter)
        if column in sheet.headers:
            col_idx = sheet.headers.index(column)
            matches = [
                (i, r)
                for i, r in matches
                if value is not None and cell_to_text(_cell_at(r, col_idx)) == value
            ]

    shown = matches if limit is None else matches[:limit]
    return FilteredRows(
        indices=[i for i, _ in shown],
        rows=[r for _, r in shown],
        total=len(matches),
    )
