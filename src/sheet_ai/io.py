"""I/O helpers — read/write JSON artifacts and working documents."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sheet_ai.errors import ValidationError
from sheet_ai.models import Document

# ── Reading ──────────────────────────────────────────────────────


def read_json(path: Path) -> Any:
    """Parse the JSON file at *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is a directory or the content is not valid JSON.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.is_dir():
        raise ValueError(f"Path is a directory, not a file: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def load_document(path: Path) -> Document:
    """Load a working document; a missing file is an empty document."""
    path = Path(path)
    if not path.exists():
        return Document()
    try:
        data = read_json(path)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return Document.from_dict(data)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path


def document_to_json(document: Document) -> str:
    """Serialize the whole document as ``{"sheets": [...]}``."""
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"


def save_document(path: Path, document: Document) -> Path:
    """Write a working document, including its active sheet index."""
    return write_json(path, document.to_dict(include_active=True))
