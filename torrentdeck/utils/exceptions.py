"""Exception hierarchy for torrentdeck.

Every failure that reaches the interaction loop is a TorrentDeckError, so the
reducer can funnel it into the error dialog without knowing where it came from.
"""

from __future__ import annotations

from typing import Any


class TorrentDeckError(Exception):
    """Base exception for all torrentdeck errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize torrentdeck error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the user-facing message."""
        return self.message


class ValidationError(TorrentDeckError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class InputValidationError(ValidationError):
    """Malformed or missing input in the add-torrent wizard."""


class DuplicateTorrentError(TorrentDeckError):
    """The torrent or its destination is already tracked."""


class EngineError(TorrentDeckError):
    """A call to the torrent engine failed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        operation: str | None = None,
    ):
        """Initialize engine error.

        Args:
            message: Human readable description
            details: Extra context (HTTP status, response body...)
            operation: The engine operation that was attempted

        """
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message, details)
        self.operation = operation


class EngineUnavailableError(EngineError):
    """The engine could not be reached at all."""


class FileSystemError(TorrentDeckError):
    """File system operation errors."""


class DestinationError(FileSystemError):
    """The download destination could not be prepared."""


class SelectionMismatchError(TorrentDeckError):
    """The engine did not honor the requested file selection."""
