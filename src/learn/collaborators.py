"""
Remote collaborators of a learn session.

The engine only knows the two protocols below. The Api* adapters bind
them to FlashdeckClient and translate ApiError into the learn-session
error types.
"""

from __future__ import annotations

from typing import Protocol

from src.core.errors import ApiError
from src.core.models import FlashCard, ScoreUpdate
from src.core.platform_client import FlashdeckClient

from .errors import FetchFailure, SubmitFailure


class CardSource(Protocol):
    """Supplies the batch of cards for a session."""

    async def fetch_batch(self, collection_id: int, count: int) -> list[FlashCard]:
        """Raises FetchFailure when the batch cannot be loaded."""
        ...


class ScoreSink(Protocol):
    """Receives the per-card results when a session ends."""

    async def submit(self, updates: list[ScoreUpdate]) -> None:
        """Raises SubmitFailure when the results were not accepted."""
        ...


class ApiCardSource:
    """CardSource backed by the learn-session endpoint."""

    def __init__(self, client: FlashdeckClient):
        self.client = client

    async def fetch_batch(self, collection_id: int, count: int) -> list[FlashCard]:
        try:
            return await self.client.get_learn_session(collection_id, count)
        except ApiError as e:
            raise FetchFailure(e.message) from e


class ApiScoreSink:
    """ScoreSink backed by the score-update endpoint."""

    def __init__(self, client: FlashdeckClient):
        self.client = client

    async def submit(self, updates: list[ScoreUpdate]) -> None:
        try:
            await self.client.update_scores(updates)
        except ApiError as e:
            raise SubmitFailure(e.message) from e
