"""Data models used across the package: cells, sheets, documents, history."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Union

from sheet_ai.errors import ValidationError
from sheet_ai.utils import sanitize_name

Cell = Union[str, int, float, bool, None]
Row = list[Cell]

EMPTY_CELL: Cell = ""

_CELL_TYPES = (str, int, float, bool, type(None))


def check_cell(value: Any, field_name: str = "cell") -> Cell:
    if not isinstance(value, _CELL_TYPES):
        raise TypeError(
            f"{field_name} must be text, number, boolean or null, not {type(value).__name__}"
        )
    return value


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _at_least_one(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    return max(1, int(value))


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_rows(values: Sequence[Any] | None, field_name: str) -> list[Row]:
    if values is None:
        return []
    if isinstance(values, (str, bytes)):
        raise TypeError(f"{field_name} must be a sequence of rows")
    rows: list[Row] = []
    for r_idx, row in enumerate(values):
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise TypeError(f"{field_name}[{r_idx}] must be a sequence of cells")
        rows.append([check_cell(cell, f"{field_name}[{r_idx}][{c_idx}]") for c_idx, cell in enumerate(row)])
    return rows


@dataclass
class Sheet:
    """One named table.

    ``name`` is sanitized on construction. Rows are not forced to match the
    header width; short rows read as empty past their end.
    """

    name: str
    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError("name must be a string")
        self.name = sanitize_name(self.name)
        self.headers = _to_string_list(self.headers, "headers")
        self.rows = _to_rows(self.rows, "rows")

    @property
    def width(self) -> int:
        return max([len(self.headers), *(len(r) for r in self.rows)], default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "headers": list(self.headers),
            "rows": [list(r) for r in self.rows],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Sheet:
        """Build a Sheet from its JSON shape, raising ValidationError on bad input."""
        if not isinstance(data, dict):
            raise ValidationError("sheet must be an object")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValidationError("sheet name must be a non-empty string")
        try:
            return cls(name=name, headers=data.get("headers"), rows=data.get("rows"))
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"sheet {name!r}: {exc}") from exc


@dataclass
class Document:
    """Ordered sheets plus the index of the active one.

    ``0 <= active < len(sheets)`` when non-empty,
    ``active == 0`` otherwise.
    """

    sheets: list[Sheet] = field(default_factory=list)
    active: int = 0

    def __post_init__(self) -> None:
        self.sheets = list(self.sheets)
        for sheet in self.sheets:
            if not isinstance(sheet, Sheet):
                raise TypeError("sheets items must be Sheet instances")
        self.active = _to_non_negative_int(self.active, "active")
        if self.sheets and self.active >= len(self.sheets):
            raise ValueError("active must index an existing sheet")
        if not self.sheets and self.active != 0:
            raise ValueError("active must be 0 for an empty document")

    def __len__(self) -> int:
        return len(self.sheets)

    @property
    def active_sheet(self) -> Sheet | None:
        if not self.sheets:
            return None
        return self.sheets[self.active]

    def to_dict(self, *, include_active: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"sheets": [s.to_dict() for s in self.sheets]}
        if include_active:
            payload["active"] = self.active
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> Document:
        sheets = parse_sheets_payload(data)
        active = data.get("active", 0)
        if isinstance(active, bool) or not isinstance(active, int):
            active = 0
        active = max(0, min(active, len(sheets) - 1)) if sheets else 0
        return cls(sheets=sheets, active=active)


@dataclass(frozen=True)
class HistoryEntry:
    """One accepted generation. Never mutated once created."""

    id: str
    timestamp: str
    prompt: str
    document: Document

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.timestamp,
            "prompt": self.prompt,
            "sheets": self.document.to_dict()["sheets"],
        }

    @classmethod
    def from_dict(cls, data: Any) -> HistoryEntry:
        if not isinstance(data, dict):
            raise ValidationError("history entry must be an object")
        entry_id, timestamp, prompt = data.get("id"), data.get("date"), data.get("prompt")
        for key, value in (("id", entry_id), ("date", timestamp), ("prompt", prompt)):
            if not isinstance(value, str):
                raise ValidationError(f"history entry {key} must be a string")
        return cls(
            id=entry_id,
            timestamp=timestamp,
            prompt=prompt,
            document=Document(sheets=parse_sheets_payload(data)),
        )


@dataclass
class GenerationOptions:
    """Knobs forwarded to the generation service."""

    rows: int = 20
    cols: int = 6
    headers: bool = True
    sheets: list[str] = field(default_factory=lambda: ["Main"])

    def __post_init__(self) -> None:
        self.rows = _at_least_one(self.rows, "rows")
        self.cols = _at_least_one(self.cols, "cols")
        if not isinstance(self.headers, bool):
            raise TypeError("headers must be a boolean")
        self.sheets = [s.strip() for s in _to_string_list(self.sheets, "sheets") if s.strip()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "headers": self.headers,
            "sheets": list(self.sheets),
        }


def parse_sheets_payload(payload: Any) -> list[Sheet]:
    """Validate a ``{"sheets": [...]}`` payload and return its sanitized sheets.

    Raises
    ------
    ValidationError
        If the payload or any sheet in it does not match the schema. Nothing
        is partially accepted.
    """
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object with a 'sheets' array")
    raw_sheets = payload.get("sheets")
    if not isinstance(raw_sheets, list):
        raise ValidationError("payload 'sheets' must be an array")
    sheets: list[Sheet] = []
    for idx, raw in enumerate(raw_sheets):
        try:
            sheets.append(Sheet.from_dict(raw))
        except ValidationError as exc:
            raise ValidationError(f"sheets[{idx}]: {exc}") from exc
    return sheets
