"""Export surfaces — workbook, single-sheet CSV and timestamped file names."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sheet_ai import MAX_SHEET_NAME_LENGTH
from sheet_ai.models import Cell, Document, Sheet
from sheet_ai.utils import cell_to_text, sanitize_name

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="000000", end_color="000000", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def sheet_to_rows(sheet: Sheet) -> list[list[Cell]]:
    """Headers (when present) followed by the data rows."""
    rows: list[list[Cell]] = []
    if sheet.headers:
        rows.append(list(sheet.headers))
    rows.extend(list(r) for r in sheet.rows)
    return rows


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 30)


def _excel_value(val: Any) -> Any:
    if isinstance(val, str):
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"
    return val


def _unique_title(name: str, used: set[str]) -> str:
    title = sanitize_name(name)
    if title.lower() not in used:
        return title
    suffix = 2
    while True:
        suffix_str = f" ({suffix})"
        candidate = f"{title[: MAX_SHEET_NAME_LENGTH - len(suffix_str)]}{suffix_str}"
        if candidate.lower() not in used:
            return candidate
        suffix += 1


def _sheet_to_worksheet(wb: Workbook, sheet: Sheet, title: str) -> None:
    ws = wb.create_sheet(title=title)
    for r_idx, row_vals in enumerate(sheet_to_rows(sheet), 1):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    if sheet.headers:
        _style_header(ws, len(sheet.headers))
        ws.freeze_panes = "A2"
    _auto_width(ws)


# ── Public API ───────────────────────────────────────────────────


def export_filename(prefix: str = "sheet-ai", ext: str = "xlsx") -> str:
    """Return ``{prefix}-YYYY-MM-DD-HH-MM-SS.{ext}`` for the current UTC time."""
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S")
    return f"{prefix}-{stamp}.{ext}"


def sheet_to_csv(sheet: Sheet) -> str:
    """Render *sheet* as CSV text.

    Cells use their display text; short rows are padded with empty fields.
    """
    rows = [
        [None if cell is None else cell_to_text(cell) for cell in row]
        for row in sheet_to_rows(sheet)
    ]
    if not rows:
        return ""
    frame = pd.DataFrame(rows, dtype=object)
    return frame.to_csv(index=False, header=False, lineterminator="\n")


def write_workbook(path: Path, document: Document) -> Path:
    """Write every sheet of *document* to an ``.xlsx`` file and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    default_sheet = wb.active
    if default_sheet is not None:
        wb.remove(default_sheet)

    used: set[str] = set()
    for sheet in document.sheets:
        title = _unique_title(sheet.name, used)
        used.add(title.lower())
        _sheet_to_worksheet(wb, sheet, title)
    if not document.sheets:
        wb.create_sheet(title=sanitize_name(None))

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
