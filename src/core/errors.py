"""
Error types shared across flashdeck-cli.
"""

from __future__ import annotations


class FlashdeckError(Exception):
    """Base class for all errors surfaced to the user."""


class ApiError(FlashdeckError):
    """A call to the flashcard API failed.

    ``status`` is the HTTP status code, or ``None`` when the server could
    not be reached at all.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"
