"""Mutation engine — applies document edits with linear undo/redo.

Every mutation pushes a deep copy of the pre-mutation document onto the undo
stack and clears the redo stack, so redo is only available right after one
or more undos. Snapshots are whole documents, which costs O(document size)
per mutation; documents here are small.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from functools import partial

from sheet_ai import document as ops
from sheet_ai.errors import PersistenceError
from sheet_ai.history import HistoryLog, HistoryStore, new_entry
from sheet_ai.importer import ImportResult, import_raw
from sheet_ai.models import Cell, Document, HistoryEntry, Sheet

logger = logging.getLogger(__name__)

Operation = Callable[[Document], Document]


class DocumentEditor:
    """Owns the current document, the undo/redo stacks and the history log."""

    def __init__(
        self,
        document: Document | None = None,
        history: HistoryLog | None = None,
        store: HistoryStore | None = None,
    ):
        self._current = copy.deepcopy(document) if document is not None else Document()
        self._undo: list[Document] = []
        self._redo: list[Document] = []
        self.store = store
        if history is None:
            history = store.load() if store is not None else HistoryLog()
        self.history = history

    # ── State ────────────────────────────────────────────────────

    @property
    def document(self) -> Document:
        return self._current

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def _sheet_index(self, sheet_index: int | None) -> int:
        return self._current.active if sheet_index is None else sheet_index

    # ── Core discipline ──────────────────────────────────────────

    def apply(self, op: Operation) -> Document:
        """Run *op* on the current document and record the previous state.

        If *op* raises, nothing changes.
        """
        updated = op(self._current)
        self._undo.append(copy.deepcopy(self._current))
        self._redo.clear()
        self._current = updated
        logger.debug("Applied mutation (undo depth %d)", len(self._undo))
        return self._current

    def undo(self) -> bool:
        if not self._undo:
            return False
        prev = self._undo.pop()
        self._redo.append(copy.deepcopy(self._current))
        self._current = copy.deepcopy(prev)
        self._current.active = 0
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        nxt = self._redo.pop()
        self._undo.append(copy.deepcopy(self._current))
        self._current = copy.deepcopy(nxt)
        self._current.active = 0
        return True

    def select(self, sheet_index: int) -> None:
        """Switch the active sheet; not recorded in undo history."""
        self._current = ops.select_sheet(self._current, sheet_index)

    # ── Edits on a sheet (active by default) ─────────────────────

    def _sheet_op(self, op: Operation) -> Document:
        if not self._current.sheets:
            return self._current
        return self.apply(op)

    def set_cell(self, row: int, col: int, value: Cell, sheet_index: int | None = None) -> Document:
        return self._sheet_op(
            partial(
                ops.set_cell,
                sheet_index=self._sheet_index(sheet_index),
                row_index=row,
                col_index=col,
                value=value,
            )
        )

    def add_row(self, sheet_index: int | None = None) -> Document:
        return self._sheet_op(partial(ops.add_row, sheet_index=self._sheet_index(sheet_index)))

    def add_column(self, sheet_index: int | None = None) -> Document:
        return self._sheet_op(partial(ops.add_column, sheet_index=self._sheet_index(sheet_index)))

    def delete_row(self, row: int, sheet_index: int | None = None) -> Document:
        return self._sheet_op(
            partial(ops.delete_row, sheet_index=self._sheet_index(sheet_index), row_index=row)
        )

    def delete_column(self, col: int, sheet_index: int | None = None) -> Document:
        return self._sheet_op(
            partial(ops.delete_column, sheet_index=self._sheet_index(sheet_index), col_index=col)
        )

    def duplicate_sheet(self, sheet_index: int | None = None) -> Document:
        return self._sheet_op(
            partial(ops.duplicate_sheet, sheet_index=self._sheet_index(sheet_index))
        )

    def delete_sheet(self, sheet_index: int | None = None) -> Document:
        return self._sheet_op(partial(ops.delete_sheet, sheet_index=self._sheet_index(sheet_index)))

    # ── Whole-document changes ───────────────────────────────────

    def import_file(self, filename: str, data: bytes) -> ImportResult:
        """Import *data*; append its sheet, or replace the document for ``{"sheets"}`` JSON."""
        result = import_raw(filename, data)
        if result.replaces_document:
            self.apply(partial(ops.replace_sheets, sheets=result.sheets))
        else:
            self.apply(partial(ops.append_sheet, sheet=result.sheets[0]))
        return result

    def accept_generation(self, prompt: str, sheets: list[Sheet]) -> HistoryEntry:
        """Install generated *sheets* and record them in the history log.

        Raises
        ------
        PersistenceError
            If the log could not be saved. The new document and the in-memory
            log entry are kept regardless.
        """
        self.apply(partial(ops.replace_sheets, sheets=sheets))
        entry = new_entry(prompt, self._current)
        self.history.prepend(entry)
        self._persist_history()
        return entry

    def restore(self, entry: HistoryEntry | str) -> Document:
        """Make a history entry's document current (undoable)."""
        if isinstance(entry, str):
            entry = self.history.get(entry)
        return self.apply(partial(ops.replace_sheets, sheets=entry.document.sheets))

    def _persist_history(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.history)
        except PersistenceError as exc:
            logger.warning("History not persisted: %s", exc)
            raise
