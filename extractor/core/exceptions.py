"""Exception hierarchy for the extractor.

Hierarchy::

    ExtractorError
    ├── EntryFileError           (entry_id, suffix)
    ├── ConfigurationError
    └── IndexFormatError

Remote API failures are not represented here: they are classified from
httpx exceptions and status codes inside the enrichment task and never
leave it.
"""

from __future__ import annotations

from typing import Any


class ExtractorError(Exception):
    """Base exception for all extractor errors."""

    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class EntryFileError(ExtractorError):
    """Raised when an entry artifact cannot be read or written.

    Local storage failures are terminal for the affected entry only and are
    never attributed to the health of the remote API.

    Args:
        message: Human-readable description of the failure.
        entry_id: Identifier of the affected entry.
        suffix: Artifact suffix that was accessed.
        original_error: The underlying exception that caused this error.
    """

    default_message = "Entry file operation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        entry_id: str | None = None,
        suffix: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if entry_id:
            details["entry_id"] = entry_id
        if suffix:
            details["suffix"] = suffix
        super().__init__(message, details=details)
        self.entry_id = entry_id
        self.suffix = suffix
        self.original_error = original_error


class ConfigurationError(ExtractorError):
    default_message = "Invalid configuration"


class IndexFormatError(ExtractorError):
    """Raised when a file index cannot be parsed or has an unknown type."""

    default_message = "Invalid file index"
