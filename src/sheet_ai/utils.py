"""Shared helpers — name sanitizing, cell stringification, timestamps."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any

from sheet_ai import DEFAULT_SHEET_NAME, MAX_SHEET_NAME_LENGTH

_FORBIDDEN_NAME_CHARS_RE = re.compile(r"[\\/?*:\[\]]")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")


def sanitize_name(raw: str | None) -> str:
    """Return *raw* as a safe sheet name.

    Each of ``\\ / ? * : [ ]`` becomes a single space and the result is cut
    to 31 characters. Only an empty result falls back to ``"Sheet"``;
    whitespace is kept as is.
    """
    cleaned = _FORBIDDEN_NAME_CHARS_RE.sub(" ", raw or "")[:MAX_SHEET_NAME_LENGTH]
    if not cleaned:
        return DEFAULT_SHEET_NAME
    return cleaned


def is_number(value: Any) -> bool:
    """True for ints and floats; booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def cell_to_text(value: Any) -> str:
    """Stringify a cell the way it is displayed and searched."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def coerce_number(value: Any) -> float:
    """Numeric coercion for loosely typed cells.

    Numbers pass through, empty values and blank strings are 0, booleans are
    1/0, decimal or hex strings are parsed; anything else is NaN.
    """
    if is_number(value):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    token = str(value).strip()
    if not token:
        return 0.0
    if _DECIMAL_RE.fullmatch(token):
        return float(token)
    if _HEX_RE.fullmatch(token):
        return float(int(token, 16))
    if token in {"Infinity", "+Infinity"}:
        return math.inf
    if token == "-Infinity":
        return -math.inf
    return math.nan


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
