"""sheet-ai — Edit, import and chart small multi-sheet tabular documents."""

__version__ = "0.2.0"

DEFAULT_SHEET_NAME: str = "Sheet"
MAX_SHEET_NAME_LENGTH: int = 31
HISTORY_LIMIT: int = 50
DISPLAY_ROW_LIMIT: int = 500
