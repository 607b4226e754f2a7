"""Document transformations — pure functions, no side effects.

Every function takes a Document and returns a new one; the input is never
modified. Sheet, row and column indices are bounds-checked and raise
``IndexError`` when out of range. On an empty document the sheet-scoped
operations return an unchanged copy.
"""

from __future__ import annotations

import copy

from sheet_ai.models import EMPTY_CELL, Cell, Document, Sheet, check_cell
from sheet_ai.utils import sanitize_name

# ── Helpers ──────────────────────────────────────────────────────


def _clamp(n: int, low: int, high: int) -> int:
    return max(low, min(high, n))


def _check_index(index: int, size: int, what: str) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"{what} index must be an integer")
    if not 0 <= index < size:
        raise IndexError(f"{what} index {index} out of range (size {size})")
    return index


def snapshot(doc: Document) -> Document:
    """Return a deep, independent copy of *doc*."""
    return copy.deepcopy(doc)


def _edit_sheet(doc: Document, sheet_index: int) -> tuple[Document, Sheet]:
    out = snapshot(doc)
    _check_index(sheet_index, len(out.sheets), "sheet")
    return out, out.sheets[sheet_index]


# ── Cell / row / column edits ────────────────────────────────────


def set_cell(
    doc: Document, sheet_index: int, row_index: int, col_index: int, value: Cell
) -> Document:
    """Replace one cell.

    The column may address any position below the wider of the header row
    and the edited row; a short row is padded with empty cells first.
    """
    if not doc.sheets:
        return snapshot(doc)
    check_cell(value, "value")
    out, sheet = _edit_sheet(doc, sheet_index)
    _check_index(row_index, len(sheet.rows), "row")
    row = sheet.rows[row_index]
    _check_index(col_index, max(len(sheet.headers), len(row)), "column")
    if col_index >= len(row):
        row.extend([EMPTY_CELL] * (col_index + 1 - len(row)))
    row[col_index] = value
    return out


def add_row(doc: Document, sheet_index: int) -> Document:
    """Append an empty row as wide as the headers (or the first row, or 1)."""
    if not doc.sheets:
        return snapshot(doc)
    out, sheet = _edit_sheet(doc, sheet_index)
    first_len = len(sheet.rows[0]) if sheet.rows else 1
    width = max(1, len(sheet.headers) or first_len or 1)
    sheet.rows.append([EMPTY_CELL] * width)
    return out


def add_column(doc: Document, sheet_index: int) -> Document:
    """Append a ``Column N`` header and one empty cell to every row."""
    if not doc.sheets:
        return snapshot(doc)
    out, sheet = _edit_sheet(doc, sheet_index)
    sheet.headers.append(f"Column {len(sheet.headers) + 1}")
    for row in sheet.rows:
        row.append(EMPTY_CELL)
    return out


def delete_row(doc: Document, sheet_index: int, row_index: int) -> Document:
    if not doc.sheets:
        return snapshot(doc)
    out, sheet = _edit_sheet(doc, sheet_index)
    _check_index(row_index, len(sheet.rows), "row")
    del sheet.rows[row_index]
    return out


def delete_column(doc: Document, sheet_index: int, col_index: int) -> Document:
    """Remove a header and the cell at the same position in every row.

    Rows too short to have that position are left as they are.
    """
    if not doc.sheets:
        return snapshot(doc)
    out, sheet = _edit_sheet(doc, sheet_index)
    _check_index(col_index, sheet.width, "column")
    if col_index < len(sheet.headers):
        del sheet.headers[col_index]
    for row in sheet.rows:
        if col_index < len(row):
            del row[col_index]
    return out


# ── Sheet-level edits ────────────────────────────────────────────


def duplicate_sheet(doc: Document, sheet_index: int) -> Document:
    """Insert a ``(copy)`` of a sheet right after it and make it active."""
    if not doc.sheets:
        return snapshot(doc)
    out, sheet = _edit_sheet(doc, sheet_index)
    clone = copy.deepcopy(sheet)
    clone.name = sanitize_name(f"{sheet.name} (copy)")
    out.sheets.insert(sheet_index + 1, clone)
    out.active = sheet_index + 1
    return out


def delete_sheet(doc: Document, sheet_index: int) -> Document:
    """Remove a sheet; the one before it (or the first) becomes active."""
    if not doc.sheets:
        return snapshot(doc)
    out, _sheet = _edit_sheet(doc, sheet_index)
    del out.sheets[sheet_index]
    out.active = _clamp(sheet_index - 1, 0, max(0, len(out.sheets) - 1))
    return out


def append_sheet(doc: Document, sheet: Sheet) -> Document:
    """Append *sheet* (copied) and make it active."""
    out = snapshot(doc)
    out.sheets.append(copy.deepcopy(sheet))
    out.active = len(out.sheets) - 1
    return out


def replace_sheets(doc: Document, sheets: list[Sheet]) -> Document:
    """Return a document holding copies of *sheets*, first one active."""
    return Document(sheets=copy.deepcopy(list(sheets)), active=0)


def select_sheet(doc: Document, sheet_index: int) -> Document:
    out = snapshot(doc)
    _check_index(sheet_index, len(out.sheets), "sheet")
    out.active = sheet_index
    return out
