from __future__ import annotations

import json
from pathlib import Path

import pytest

from sheet_ai.errors import PersistenceError
from sheet_ai.history import HistoryLog, HistoryStore, new_entry
from sheet_ai.models import Document, Sheet


def _entry(prompt: str = "p"):  # type: ignore[no-untyped-def]
    return new_entry(prompt, Document(sheets=[Sheet(name="S", headers=["a"], rows=[[1]])]))


def test_new_entry_snapshots_document_with_first_sheet_active() -> None:
    doc = Document(sheets=[Sheet(name="A"), Sheet(name="B")], active=1)

    entry = new_entry("prompt", doc)
    doc.sheets[0].rows.append(["late edit"])

    assert entry.document.active == 0
    assert entry.document.sheets[0].rows == []
    assert len(entry.id) == 32
    assert entry.timestamp.endswith("+00:00")


def test_history_log_prepends_and_evicts_oldest() -> None:
    log = HistoryLog(limit=3)
    entries = [_entry(str(i)) for i in range(4)]

    for entry in entries:
        log.prepend(entry)

    assert [e.prompt for e in log] == ["3", "2", "1"]
    assert len(log) == 3


def test_history_log_get_by_id() -> None:
    entry = _entry()
    log = HistoryLog([entry])

    assert log.get(entry.id) is entry
    with pytest.raises(KeyError):
        log.get("nope")


def test_history_log_rejects_zero_limit() -> None:
    with pytest.raises(ValueError, match="limit"):
        HistoryLog(limit=0)


def test_store_round_trips_entries(tmp_path: Path) -> None:
    store = HistoryStore(tmp_path / "nested" / "history.json")
    log = HistoryLog([_entry("newest"), _entry("older")])

    store.save(log)
    loaded = store.load()

    assert [e.prompt for e in loaded] == ["newest", "older"]
    assert list(loaded)[0].document.sheets[0].rows == [[1]]


def test_store_missing_file_is_empty(tmp_path: Path) -> None:
    assert len(HistoryStore(tmp_path / "absent.json").load()) == 0


def test_store_corrupt_file_is_logged_and_ignored(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "history.json"
    path.write_text("{broken", encoding="utf-8")

    with caplog.at_level("WARNING", logger="sheet_ai.history"):
        log = HistoryStore(path).load()

    assert len(log) == 0
    assert "unreadable history" in caplog.text


def test_store_skips_invalid_entries(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    good = _entry("good").to_dict()
    path.write_text(json.dumps([{"id": 1}, good, "junk"]), encoding="utf-8")

    log = HistoryStore(path).load()

    assert [e.prompt for e in log] == ["good"]


def test_store_truncates_oversized_files(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text(json.dumps([_entry(str(i)).to_dict() for i in range(60)]), encoding="utf-8")

    log = HistoryStore(path).load()

    assert len(log) == 50
    assert [e.prompt for e in log][0] == "0"


def test_store_save_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = HistoryStore(blocker / "history.json")

    with pytest.raises(PersistenceError, match="Could not write history"):
        store.save(HistoryLog([_entry()]))
