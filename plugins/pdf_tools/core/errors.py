"""Errors raised by the PDF tool operations."""

from __future__ import annotations

from typing import Iterable

from .page_ranges import IgnoredToken


class PdfToolError(ValueError):
    """Base class for rejected PDF operations."""


class UnreadablePdfError(PdfToolError):
    """Raised when an upload cannot be opened as a PDF."""


class EmptySelectionError(PdfToolError):
    """Raised when a page selection resolves to no pages."""

    def __init__(self, message: str, *, ignored: Iterable[IgnoredToken] = ()):
        super().__init__(message)
        self.ignored = list(ignored)


class PageSequenceError(PdfToolError):
    """Raised when a page order cannot be followed exactly."""


class PdfPasswordError(PdfToolError):
    """Raised when a password does not open an encrypted PDF."""


class PdfNotEncryptedError(PdfToolError):
    """Raised when unlocking a PDF that has no password."""


__all__ = [
    "EmptySelectionError",
    "PageSequenceError",
    "PdfNotEncryptedError",
    "PdfPasswordError",
    "PdfToolError",
    "UnreadablePdfError",
]
