"""Chart projection — infer a name/value series from an arbitrary sheet."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

import pandas as pd

from sheet_ai.models import Sheet
from sheet_ai.utils import cell_to_text, coerce_number, is_number

_VALUE_HEADER_RE = re.compile(r"valor|value|quant|qtd|total", re.IGNORECASE)

NAME_INDEX = 0


@dataclass(frozen=True)
class SeriesPoint:
    name: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


def value_column(sheet: Sheet) -> int:
    """Pick the value column: keyword header, else first numeric cell of row 0, else 1."""
    for idx, header in enumerate(sheet.headers):
        if _VALUE_HEADER_RE.search(header):
            return idx
    first_row = sheet.rows[0] if sheet.rows else []
    for idx, cell in enumerate(first_row):
        if is_number(cell):
            return idx
    return 1


def infer_series(sheet: Sheet | None) -> list[SeriesPoint]:
    """Project *sheet* onto ``(name, value)`` points.

    Needs at least two headers. The name comes from column 0; rows with an
    empty name are skipped. Values that do not coerce to a finite number
    are recorded as 0.
    """
    if sheet is None or len(sheet.headers) < 2:
        return []

    value_idx = value_column(sheet)
    points: list[SeriesPoint] = []
    for row in sheet.rows:
        name = cell_to_text(row[NAME_INDEX]) if row else ""
        if not name:
            continue
        raw = row[value_idx] if value_idx < len(row) else None
        value = raw if is_number(raw) else coerce_number(raw)
        points.append(SeriesPoint(name=name, value=value if math.isfinite(value) else 0))
    return points


def series_frame(points: list[SeriesPoint]) -> pd.DataFrame:
    """Return the series as a two-column ``name``/``value`` DataFrame."""
    return pd.DataFrame([p.to_dict() for p in points], columns=["name", "value"])
