"""
Learn-session error taxonomy.
"""

from __future__ import annotations

from src.core.errors import FlashdeckError


class LearnSessionError(FlashdeckError):
    """Base class for learn-session failures."""


class FetchFailure(LearnSessionError):
    """The card batch could not be loaded; the session cannot start."""


class SubmitFailure(LearnSessionError):
    """Score submission failed; results are still held locally."""


class PreconditionViolation(LearnSessionError):
    """The engine was driven out of sequence (a caller bug)."""
