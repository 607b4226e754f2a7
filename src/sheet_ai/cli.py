"""CLI entry point for sheet-ai."""

from __future__ import annotations

import copy
import logging
import shlex
from collections.abc import Callable
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table as RichTable

from sheet_ai import DISPLAY_ROW_LIMIT, __version__
from sheet_ai.chart import infer_series
from sheet_ai.engine import DocumentEditor
from sheet_ai.errors import PersistenceError, SheetAIError
from sheet_ai.export import export_filename, sheet_to_csv, write_workbook
from sheet_ai.generation import DEFAULT_TIMEOUT, TEMPLATES, GenerationClient, split_sheet_names
from sheet_ai.history import HistoryStore
from sheet_ai.io import document_to_json, load_document, save_document
from sheet_ai.models import Document, GenerationOptions, Sheet
from sheet_ai.query import filter_rows
from sheet_ai.utils import cell_to_text, sanitize_name

app = typer.Typer(
    name="sheetai",
    help="sheet-ai — Edit, import and chart small multi-sheet tabular documents.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

DEFAULT_DOC = Path("sheet-ai.json")
DEFAULT_HISTORY = Path.home() / ".sheet_ai" / "history_v2.json"


class ExportFormat(str, Enum):
    xlsx = "xlsx"
    csv = "csv"
    json = "json"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sheet-ai v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )


def _load_editor(doc_path: Path, history_path: Path | None = None) -> DocumentEditor:
    try:
        document = load_document(doc_path)
    except SheetAIError as exc:
        _err(f"Cannot load {doc_path}: {exc}")
        raise typer.Exit(code=2)
    store = HistoryStore(history_path) if history_path is not None else None
    return DocumentEditor(document, store=store)


def _pick_sheet(document: Document, sheet_index: int | None) -> Sheet:
    if not document.sheets:
        _err("Document has no sheets.")
        raise typer.Exit(code=2)
    index = document.active if sheet_index is None else sheet_index
    if not 0 <= index < len(document.sheets):
        _err(f"Sheet index {index} out of range (0..{len(document.sheets) - 1}).")
        raise typer.Exit(code=2)
    return document.sheets[index]


def _save(doc_path: Path, editor: DocumentEditor, echo: Callable[..., None]) -> None:
    path = save_document(doc_path, editor.document)
    echo(f"  Document -> {path} ({len(editor.document)} sheet(s))")


def _mutate(
    doc_path: Path, action: Callable[[DocumentEditor], object], quiet: bool
) -> DocumentEditor:
    echo = _printer(quiet)
    editor = _load_editor(doc_path)
    if not editor.document.sheets:
        echo("[yellow]![/yellow] Document has no sheets; nothing to edit.")
        return editor
    try:
        action(editor)
    except (IndexError, TypeError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)
    _save(doc_path, editor, echo)
    return editor


def _render_sheet(sheet: Sheet, search: str, column_filter: str, limit: int) -> None:
    result = filter_rows(sheet, search, column_filter, limit=limit)
    width = max([len(sheet.headers), *(len(r) for r in result.rows)], default=0)
    tbl = RichTable(title=sheet.name, show_lines=False)
    tbl.add_column("#", style="dim", justify="right")
    for c in range(width):
        tbl.add_column(sheet.headers[c] if c < len(sheet.headers) else "")
    for raw_idx, row in zip(result.indices, result.rows):
        cells = [cell_to_text(row[c]) if c < len(row) else "" for c in range(width)]
        tbl.add_row(str(raw_idx), *cells)
    console.print(tbl)
    if result.truncated:
        console.print(f"  [yellow]![/yellow] Showing {len(result)} of {result.total} matching rows")


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
) -> None:
    """sheet-ai CLI."""
    _configure_logging(verbose)


# ── import / export ──────────────────────────────────────────────


@app.command("import")
def import_(
    files: list[Path] = typer.Argument(
        ..., help="CSV, XLSX, XLS or JSON files to import.", exists=True, readable=True,
    ),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Append imported sheets to the document (``{"sheets"}`` JSON replaces it)."""
    echo = _printer(quiet)
    editor = _load_editor(doc)
    for path in files:
        if path.is_dir():
            _err(f"Input is a directory, not a file: {path}")
            raise typer.Exit(code=2)
        try:
            result = editor.import_file(path.name, path.read_bytes())
        except (SheetAIError, OSError) as exc:
            _err(f"Import of {path.name} failed: {exc}")
            raise typer.Exit(code=2)
        except Exception as exc:
            _err(f"Unexpected internal error while importing {path.name}: {exc}")
            raise typer.Exit(code=1)
        verb = "Replaced document with" if result.replaces_document else "Appended"
        names = ", ".join(s.name for s in result.sheets) or "no sheets"
        echo(f"[blue]>[/blue] {verb} {names} from {path.name}")
    _save(doc, editor, echo)


@app.command()
def export(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    fmt: ExportFormat = typer.Option(ExportFormat.xlsx, "--format", "-f", help="xlsx, csv or json."),
    out: Path | None = typer.Option(None, "--out", "-o", help="Output path (default: timestamped)."),
    sheet_index: int | None = typer.Option(
        None, "--sheet", "-s", help="Sheet index for CSV (default: active)."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Export the document without changing it."""
    echo = _printer(quiet)
    document = _load_editor(doc).document
    if not document.sheets:
        _err("Document has no sheets; nothing to export.")
        raise typer.Exit(code=2)

    if fmt is ExportFormat.xlsx:
        path = write_workbook(out or Path(export_filename(ext="xlsx")), document)
    elif fmt is ExportFormat.csv:
        sheet = _pick_sheet(document, sheet_index)
        path = out or Path(f"{sanitize_name(sheet.name)}.csv")
        path.write_text(sheet_to_csv(sheet), encoding="utf-8")
    else:
        path = out or Path(export_filename(ext="json"))
        path.write_text(document_to_json(document), encoding="utf-8")
    echo(f"  Export -> {path}")


# ── Read-side views ──────────────────────────────────────────────


@app.command()
def show(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    search: str = typer.Option("", "--search", help="Case-insensitive text to look for in any cell."),
    column_filter: str = typer.Option(
        "", "--filter", help="Exact column match, e.g. Category:Food."
    ),
    limit: int = typer.Option(DISPLAY_ROW_LIMIT, "--limit", help="Maximum rows to display."),
) -> None:
    """Print a sheet as a table, optionally filtered."""
    document = _load_editor(doc).document
    _render_sheet(_pick_sheet(document, sheet_index), search, column_filter, limit)


@app.command()
def chart(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
) -> None:
    """Print the name/value series inferred from a sheet."""
    document = _load_editor(doc).document
    sheet = _pick_sheet(document, sheet_index)
    points = infer_series(sheet)
    if not points:
        console.print("[yellow]![/yellow] No chartable series (need 2+ headers and named rows).")
        return
    tbl = RichTable(title=f"{sheet.name} — series")
    tbl.add_column("Name", style="bold")
    tbl.add_column("Value", justify="right")
    for point in points:
        tbl.add_row(point.name, cell_to_text(point.value))
    console.print(tbl)


@app.command()
def sheets(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
) -> None:
    """List the sheets of the document."""
    document = _load_editor(doc).document
    tbl = RichTable(title=str(doc))
    tbl.add_column("#", justify="right")
    tbl.add_column("Name", style="bold")
    tbl.add_column("Columns", justify="right")
    tbl.add_column("Rows", justify="right")
    for idx, sheet in enumerate(document.sheets):
        marker = "*" if idx == document.active else ""
        tbl.add_row(f"{idx}{marker}", sheet.name, str(len(sheet.headers)), str(len(sheet.rows)))
    console.print(tbl)


# ── Edits ────────────────────────────────────────────────────────


@app.command("set")
def set_cell(
    row: int = typer.Argument(..., help="Row index (0-based, data rows only)."),
    col: int = typer.Argument(..., help="Column index (0-based)."),
    value: str = typer.Argument(..., help="New cell text."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Replace one cell."""
    _mutate(doc, lambda e: e.set_cell(row, col, value, sheet_index=sheet_index), quiet)


@app.command("add-row")
def add_row(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Append an empty row."""
    _mutate(doc, lambda e: e.add_row(sheet_index), quiet)


@app.command("add-column")
def add_column(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Append an empty column."""
    _mutate(doc, lambda e: e.add_column(sheet_index), quiet)


@app.command("delete-row")
def delete_row(
    row: int = typer.Argument(..., help="Row index (0-based)."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Remove a row."""
    _mutate(doc, lambda e: e.delete_row(row, sheet_index), quiet)


@app.command("delete-column")
def delete_column(
    col: int = typer.Argument(..., help="Column index (0-based)."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Remove a column and its header."""
    _mutate(doc, lambda e: e.delete_column(col, sheet_index), quiet)


@app.command("duplicate-sheet")
def duplicate_sheet(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Copy a sheet next to itself."""
    _mutate(doc, lambda e: e.duplicate_sheet(sheet_index), quiet)


@app.command("delete-sheet")
def delete_sheet(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    sheet_index: int | None = typer.Option(None, "--sheet", "-s", help="Sheet index (default: active)."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Remove a sheet."""
    _mutate(doc, lambda e: e.delete_sheet(sheet_index), quiet)


@app.command()
def select(
    sheet_index: int = typer.Argument(..., help="Sheet index to make active."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Make a sheet the active one."""
    _mutate(doc, lambda e: e.select(sheet_index), quiet)


# ── Interactive session ──────────────────────────────────────────

_SESSION_HELP = (
    "Commands: set ROW COL VALUE, add-row, add-column, delete-row ROW, "
    "delete-column COL, duplicate, delete-sheet, select IDX, undo, redo, "
    "show, sheets, save, quit"
)


def _int_arg(args: list[str], usage: str) -> int:
    if len(args) != 1:
        raise ValueError(f"usage: {usage}")
    return int(args[0])


def _session_step(editor: DocumentEditor, command: str, args: list[str]) -> None:
    """Apply one session command to *editor*; bad input raises ValueError."""
    if command == "set":
        if len(args) < 3:
            raise ValueError("usage: set ROW COL VALUE")
        editor.set_cell(int(args[0]), int(args[1]), " ".join(args[2:]))
    elif command == "add-row":
        editor.add_row()
    elif command == "add-column":
        editor.add_column()
    elif command == "delete-row":
        editor.delete_row(_int_arg(args, "delete-row ROW"))
    elif command == "delete-column":
        editor.delete_column(_int_arg(args, "delete-column COL"))
    elif command == "duplicate":
        editor.duplicate_sheet()
    elif command == "delete-sheet":
        editor.delete_sheet()
    elif command == "select":
        editor.select(_int_arg(args, "select IDX"))
    elif command == "undo":
        if not editor.undo():
            console.print("Nothing to undo.")
    elif command == "redo":
        if not editor.redo():
            console.print("Nothing to redo.")
    elif command == "show":
        sheet = editor.document.active_sheet
        if sheet is None:
            console.print("Document has no sheets.")
        else:
            _render_sheet(sheet, "", "", DISPLAY_ROW_LIMIT)
    elif command == "sheets":
        for idx, sheet in enumerate(editor.document.sheets):
            marker = "*" if idx == editor.document.active else " "
            console.print(f"{marker}{idx} {sheet.name}")
    else:
        raise ValueError(f"Unknown command {command!r}. {_SESSION_HELP}")


def _ask_line() -> str:
    try:
        return Prompt.ask("[bold]sheet-ai[/bold]", console=console)
    except EOFError:
        return "quit"


def _ask_save() -> bool:
    try:
        return Confirm.ask("Save changes before quitting?", console=console, default=True)
    except EOFError:
        return True


@app.command()
def edit(
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Edit the document interactively, with undo and redo for the session."""
    echo = _printer(quiet)
    editor = _load_editor(doc)
    saved = copy.deepcopy(editor.document)
    echo(f"Editing {doc} ({len(editor.document)} sheet(s)). Type 'help' for commands.")

    while True:
        try:
            words = shlex.split(_ask_line())
        except ValueError as exc:
            _err(str(exc))
            continue
        if not words:
            continue
        command, args = words[0].lower(), words[1:]
        if command in ("quit", "exit"):
            break
        if command == "help":
            console.print(_SESSION_HELP)
        elif command == "save":
            _save(doc, editor, echo)
            saved = copy.deepcopy(editor.document)
        else:
            try:
                _session_step(editor, command, args)
            except (ValueError, IndexError, TypeError) as exc:
                _err(str(exc))

    if editor.document != saved:
        if _ask_save():
            _save(doc, editor, echo)
        else:
            echo("[yellow]![/yellow] Unsaved changes discarded.")


# ── Generation + history ─────────────────────────────────────────


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="What the sheet should contain."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    endpoint: str = typer.Option(
        ..., "--endpoint", envvar="SHEETAI_ENDPOINT", help="Generation service URL.",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", envvar="SHEETAI_TIMEOUT", help="Request timeout in seconds.",
    ),
    rows: int = typer.Option(20, "--rows", help="Approximate row count (>= 1)."),
    cols: int = typer.Option(6, "--cols", help="Approximate column count (>= 1)."),
    sheet_names: str = typer.Option("Main", "--sheets", help="Comma-separated sheet names."),
    headers: bool = typer.Option(True, "--headers/--no-headers", help="Include a header row."),
    history_path: Path = typer.Option(
        DEFAULT_HISTORY, "--history", envvar="SHEETAI_HISTORY", help="History log file.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Generate a document from a prompt and record it in the history."""
    echo = _printer(quiet)
    editor = _load_editor(doc, history_path)
    options = GenerationOptions(
        rows=rows, cols=cols, headers=headers, sheets=split_sheet_names(sheet_names)
    )
    if not quiet:
        console.print(Panel(
            f"[bold]sheet-ai[/bold] v{__version__}\nEndpoint: {endpoint}\nPrompt: {prompt.strip()}",
            title="Generate", border_style="blue",
        ))

    try:
        generated = GenerationClient(endpoint, timeout=timeout).generate(prompt, options)
    except SheetAIError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    try:
        entry = editor.accept_generation(prompt, generated)
    except PersistenceError as exc:
        console.print(f"[yellow]![/yellow] {exc}")
    else:
        echo(f"  History entry {entry.id}")
    _save(doc, editor, echo)


@app.command()
def history(
    history_path: Path = typer.Option(
        DEFAULT_HISTORY, "--history", envvar="SHEETAI_HISTORY", help="History log file.",
    ),
) -> None:
    """List recorded generations, most recent first."""
    log = HistoryStore(history_path).load()
    if not len(log):
        console.print("No history yet.")
        return
    tbl = RichTable(title="History")
    tbl.add_column("ID", style="dim")
    tbl.add_column("Date")
    tbl.add_column("Sheets", justify="right")
    tbl.add_column("Prompt", overflow="ellipsis")
    for entry in log:
        tbl.add_row(entry.id, entry.timestamp, str(len(entry.document)), entry.prompt)
    console.print(tbl)


@app.command()
def restore(
    entry_id: str = typer.Argument(..., help="History entry id."),
    doc: Path = typer.Option(DEFAULT_DOC, "--doc", "-d", help="Working document file."),
    history_path: Path = typer.Option(
        DEFAULT_HISTORY, "--history", envvar="SHEETAI_HISTORY", help="History log file.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Replace the document with a recorded generation."""
    echo = _printer(quiet)
    editor = _load_editor(doc, history_path)
    try:
        editor.restore(entry_id)
    except KeyError as exc:
        _err(str(exc.args[0]) if exc.args else "Unknown history entry")
        raise typer.Exit(code=2)
    _save(doc, editor, echo)


@app.command()
def templates() -> None:
    """Print the built-in prompt templates."""
    for idx, template in enumerate(TEMPLATES, 1):
        console.print(f"{idx}. {template}")
