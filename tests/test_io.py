from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from sheet_ai.errors import ValidationError
from sheet_ai.io import document_to_json, load_document, read_json, save_document, write_json
from sheet_ai.models import Document, Sheet


def _document() -> Document:
    return Document(
        sheets=[
            Sheet(name="One", headers=["a", "b"], rows=[[1, "x"], [2.5, None]]),
            Sheet(name="Two", headers=["flag"], rows=[[True]]),
        ],
        active=1,
    )


def test_write_json_is_deterministic_and_atomic(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "out.json"

    write_json(path, {"b": 1, "a": [1, 2]})

    assert path.read_text(encoding="utf-8") == '{\n  "a": [\n    1,\n    2\n  ],\n  "b": 1\n}\n'
    assert not (tmp_path / "nested" / "out.json.tmp").exists()


def test_write_json_serializes_paths_dates_and_numpy_scalars(tmp_path: Path) -> None:
    path = tmp_path / "out.json"

    write_json(
        path,
        {
            "path": Path("a/b.csv"),
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "count": pd.Series([3]).iloc[0],
        },
    )

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {"path": "a/b.csv", "when": "2024-01-02T03:04:05", "count": 3}


def test_write_json_rejects_unknown_types(tmp_path: Path) -> None:
    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "out.json", {"x": object()})


def test_read_json_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_json(tmp_path / "missing.json")
    with pytest.raises(ValueError, match="directory"):
        read_json(tmp_path)
    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        read_json(bad)


def test_read_json_accepts_bom(tmp_path: Path) -> None:
    path = tmp_path / "bom.json"
    path.write_bytes(b"\xef\xbb\xbf" + b'{"k": 1}')

    assert read_json(path) == {"k": 1}


def test_save_then_load_document_keeps_sheets_and_active(tmp_path: Path) -> None:
    path = tmp_path / "doc.json"

    save_document(path, _document())
    loaded = load_document(path)

    assert loaded == _document()
    assert loaded.active == 1


def test_load_missing_document_is_empty(tmp_path: Path) -> None:
    doc = load_document(tmp_path / "nope.json")

    assert doc.sheets == []
    assert doc.active == 0


def test_load_document_rejects_bad_content(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")
    wrong = tmp_path / "wrong.json"
    wrong.write_text('{"sheets": [{"name": 3}]}', encoding="utf-8")

    with pytest.raises(ValidationError):
        load_document(broken)
    with pytest.raises(ValidationError, match=r"sheets\[0\]"):
        load_document(wrong)


def test_load_document_clamps_active(tmp_path: Path) -> None:
    path = tmp_path / "doc.json"
    path.write_text('{"sheets": [{"name": "A"}], "active": 7}', encoding="utf-8")

    assert load_document(path).active == 0


def test_document_to_json_omits_active() -> None:
    payload = json.loads(document_to_json(_document()))

    assert set(payload) == {"sheets"}
    assert payload["sheets"][1] == {"name": "Two", "headers": ["flag"], "rows": [[True]]}
