"""Error types raised by the merge and size-reduction stages."""

from __future__ import annotations

from typing import Optional


class PdfProcessingError(Exception):
    """Base class for failures the HTTP layer reports to the caller."""


class ParseError(PdfProcessingError):
    """A buffer is not a well-formed PDF document.

    ``index`` is the 0-based position of the offending upload during the
    merge stage and ``None`` when the merged buffer itself is unreadable.
    """

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


class ReduceError(PdfProcessingError):
    """Fatal failure inside the size-reduction loop."""


class UnreadableSourceError(ParseError, ReduceError):
    """The document handed to the reducer could not be parsed."""
