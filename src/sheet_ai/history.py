"""Generation history — bounded most-recent-first log and its JSON store."""

from __future__ import annotations

import copy
import logging
import uuid
from collections import deque
from collections.abc import Iterator
from pathlib import Path

from sheet_ai import HISTORY_LIMIT
from sheet_ai.errors import PersistenceError, ValidationError
from sheet_ai.io import read_json, write_json
from sheet_ai.models import Document, HistoryEntry
from sheet_ai.utils import utcnow_iso

logger = logging.getLogger(__name__)


def new_entry(prompt: str, document: Document) -> HistoryEntry:
    """Capture *document* (deep-copied, first sheet active) under *prompt*."""
    snapshot = Document(sheets=copy.deepcopy(document.sheets))
    return HistoryEntry(
        id=uuid.uuid4().hex,
        timestamp=utcnow_iso(),
        prompt=prompt,
        document=snapshot,
    )


class HistoryLog:
    """Most-recent-first log capped at *limit* entries.

    Prepending to a full log evicts the oldest entry.
    """

    def __init__(self, entries: list[HistoryEntry] | None = None, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)
        for entry in (entries or [])[:limit]:
            self._entries.append(entry)

    @property
    def limit(self) -> int:
        return self._entries.maxlen or HISTORY_LIMIT

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def prepend(self, entry: HistoryEntry) -> None:
        self._entries.appendleft(entry)

    def get(self, entry_id: str) -> HistoryEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(f"No history entry with id {entry_id!r}")

    def to_list(self) -> list[dict]:
        return [entry.to_dict() for entry in self._entries]


class HistoryStore:
    """Reads the history file once and rewrites it in full on every save."""

    def __init__(self, path: Path, limit: int = HISTORY_LIMIT):
        self.path = Path(path)
        self.limit = limit

    def load(self) -> HistoryLog:
        """Return the stored log; unreadable files yield an empty log."""
        if not self.path.exists():
            return HistoryLog(limit=self.limit)
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable history file %s: %s", self.path, exc)
            return HistoryLog(limit=self.limit)
        if not isinstance(data, list):
            logger.warning("Ignoring history file %s: expected a JSON array", self.path)
            return HistoryLog(limit=self.limit)

        entries: list[HistoryEntry] = []
        for idx, raw in enumerate(data):
            try:
                entries.append(HistoryEntry.from_dict(raw))
            except ValidationError as exc:
                logger.warning("Skipping history entry %d in %s: %s", idx, self.path, exc)
        return HistoryLog(entries, limit=self.limit)

    def save(self, log: HistoryLog) -> Path:
        try:
            return write_json(self.path, log.to_list())
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not write history to {self.path}: {exc}") from exc
