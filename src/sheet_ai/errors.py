"""Exception hierarchy shared by the core and the CLI."""

from __future__ import annotations


class SheetAIError(Exception):
    """Base class for recoverable sheet-ai errors."""


class ValidationError(SheetAIError):
    """A document payload does not match the canonical sheet schema."""


class FormatError(SheetAIError):
    """Import content could not be decoded for its declared format."""


class PersistenceError(SheetAIError):
    """The generation history could not be read or written."""


class GenerationError(SheetAIError):
    """The remote generation service could not be reached or refused the request."""
