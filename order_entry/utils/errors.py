"""
Custom Exception Classes
========================

Errors raised at the decoding and transport boundary. The catalog and
order core itself resolves bad data to defaults and never raises these.
"""

from typing import Any


class OrderEntryError(Exception):
    """Base exception for the order-entry service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SpreadsheetError(OrderEntryError):
    """Raised when a spreadsheet cannot be decoded or encoded."""

    pass


class UnsupportedFileError(OrderEntryError):
    """Raised when an uploaded file has an extension we cannot read."""

    pass


class FileSizeError(OrderEntryError):
    """Raised when a file exceeds the maximum allowed size."""

    pass


class EmptyCatalogError(OrderEntryError):
    """Raised when an uploaded catalog decodes to zero rows."""

    pass


class CatalogUnavailableError(OrderEntryError):
    """
    Raised when the remote catalog cannot be reached.

    Callers treat this as "catalog unavailable" and degrade to a
    local catalog.
    """

    pass


class CatalogUploadError(OrderEntryError):
    """Raised when the remote catalog rejects an upload."""

    pass


class EmptyOrderError(OrderEntryError):
    """Raised when an export request has no line with both a code and a name."""

    pass
