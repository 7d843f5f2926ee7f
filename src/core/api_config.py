"""
API configuration for the flashcard REST backend.

Endpoint paths are kept here so a deployment with a different routing
prefix only needs a config change.
"""

from __future__ import annotations

from pydantic import BaseModel


class ApiConfig(BaseModel):
    """Connection settings and endpoint paths for the flashcard API."""

    base_url: str = "http://localhost:5000/api"
    token: str | None = None
    timeout_seconds: float = 30.0

    # Endpoints
    auth_endpoint: str = "/auth"
    collections_endpoint: str = "/FlashCardCollection"
    flashcards_endpoint: str = "/FlashCard"
    learn_session_endpoint: str = "/FlashCard/LearnSession"
    scores_endpoint: str = "/FlashCard/UpdateScores"
    mindmaps_endpoint: str = "/mindmap"
    analytics_endpoint: str = "/analytics"
