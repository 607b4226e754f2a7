"""Format importer — normalize CSV, workbook and JSON payloads into sheets.

Only the first worksheet of a workbook is read. CSV lines are split on bare
commas with no quoting support, so a quoted comma splits its field.
"""

from __future__ import annotations

import io
import json
import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Any, cast

import pandas as pd

from sheet_ai.errors import FormatError, ValidationError
from sheet_ai.models import Cell, Row, Sheet, parse_sheets_payload
from sheet_ai.utils import cell_to_text, sanitize_name

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r?\n")
_WORKBOOK_ENGINES: dict[str, str] = {".xlsx": "openpyxl", ".xls": "xlrd"}


@dataclass
class ImportResult:
    """Outcome of one import.

    ``replaces_document`` is set for ``{"sheets": [...]}`` JSON, in which case
    ``sheets`` is the whole new document; otherwise ``sheets`` holds the one
    sheet to append.
    """

    sheets: list[Sheet] = field(default_factory=list)
    replaces_document: bool = False


def sheet_name_from_filename(filename: str) -> str:
    return sanitize_name(PurePath(filename).stem or filename)


# ── Cell conversion ──────────────────────────────────────────────


def _native_cell(value: Any) -> Cell:
    """Turn a decoded workbook value into a plain Cell."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else float(value)
    try:
        if pd.isna(cast(Any, value)):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    item = getattr(value, "item", None)
    if callable(item):
        return _native_cell(item())
    return str(value)


def _trim_trailing_empty(row: list[Cell]) -> list[Cell]:
    end = len(row)
    while end and row[end - 1] is None:
        end -= 1
    return row[:end]


def _json_cell(value: Any) -> Cell:
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    return json.dumps(value, ensure_ascii=False)


# ── Per-format readers ───────────────────────────────────────────


def _read_workbook(name: str, data: bytes, suffix: str) -> Sheet:
    engine = _WORKBOOK_ENGINES[suffix]
    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    try:
        frame = read_excel(
            io.BytesIO(data), sheet_name=0, header=None, dtype=object, engine=engine
        )
    except ImportError as exc:
        raise FormatError(
            f"Unsupported {suffix} input unless '{engine}' is installed. "
            f"Either convert to .xlsx or add dependency: pip install {engine}"
        ) from exc
    except Exception as exc:
        logger.warning("Could not decode workbook %r, importing an empty sheet: %s", name, exc)
        return Sheet(name=name)

    aoa: list[Row] = [
        _trim_trailing_empty([_native_cell(v) for v in values])
        for values in frame.itertuples(index=False, name=None)
    ]
    # Interior blank rows stay as [] and keep their positions.
    while aoa and not aoa[-1]:
        aoa.pop()
    while aoa and not aoa[0]:
        aoa.pop(0)
    if not aoa:
        return Sheet(name=name)
    headers = [cell_to_text(h) for h in aoa[0]]
    return Sheet(name=name, headers=headers, rows=aoa[1:])


def _decode_text(data: bytes) -> str:
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as exc:
            last_exc = exc
    raise FormatError("Could not decode text input") from last_exc


def csv_to_arrays(text: str) -> list[list[str]]:
    """Split *text* into lines and each line on commas, dropping empty lines."""
    return [line.split(",") for line in _LINE_BREAK_RE.split(text) if line]


def _read_csv(name: str, data: bytes) -> Sheet:
    arrays = csv_to_arrays(_decode_text(data))
    if not arrays:
        return Sheet(name=name)
    return Sheet(name=name, headers=arrays[0], rows=arrays[1:])


def records_to_sheet(name: str, records: list[Any]) -> Sheet:
    """Tabulate key/value records; headers follow first-seen key order."""
    headers: list[str] = []
    seen: set[str] = set()
    for record in records:
        if not isinstance(record, dict):
            continue
        for key in record:
            if key not in seen:
                seen.add(key)
                headers.append(key)
    rows: list[Row] = []
    for record in records:
        lookup = record if isinstance(record, dict) else {}
        rows.append([_json_cell(lookup.get(h)) for h in headers])
    return Sheet(name=name, headers=headers, rows=rows)


def _read_json(name: str, data: bytes) -> ImportResult:
    try:
        payload = json.loads(_decode_text(data))
    except json.JSONDecodeError as exc:
        raise FormatError(f"Invalid JSON in {name!r}: {exc}") from exc

    if isinstance(payload, dict) and isinstance(payload.get("sheets"), list):
        try:
            sheets = parse_sheets_payload(payload)
        except ValidationError as exc:
            raise FormatError(f"Invalid document in {name!r}: {exc}") from exc
        return ImportResult(sheets=sheets, replaces_document=True)
    if isinstance(payload, list):
        return ImportResult(sheets=[records_to_sheet(name, payload)])
    logger.warning("Unrecognized JSON shape in %r, importing an empty sheet", name)
    return ImportResult(sheets=[Sheet(name=name)])


# ── Public API ───────────────────────────────────────────────────


def import_raw(filename: str, data: bytes) -> ImportResult:
    """Convert raw file content into canonical sheets, dispatching on extension.

    Raises
    ------
    FormatError
        If JSON content cannot be parsed, a ``{"sheets": ...}`` document is
        invalid, or the reader for a legacy workbook is not installed.
    """
    suffix = PurePath(filename).suffix.lower()
    name = sheet_name_from_filename(filename)

    if suffix in _WORKBOOK_ENGINES:
        return ImportResult(sheets=[_read_workbook(name, data, suffix)])
    if suffix == ".csv":
        return ImportResult(sheets=[_read_csv(name, data)])
    if suffix == ".json":
        return _read_json(name, data)

    logger.warning("Unsupported file type %r for %r, importing an empty sheet", suffix, filename)
    return ImportResult(sheets=[Sheet(name=name)])
