"""
Core Module - API models, client and shared errors.

Components:
- api_config: Endpoint and timeout configuration
- models: Wire models for users, collections, cards and mind maps
- platform_client: Async HTTP client for the flashcard API
- errors: Base error types
"""

from src.core.api_config import ApiConfig
from src.core.errors import ApiError, FlashdeckError
from src.core.models import (
    AuthResponse,
    FlashCard,
    FlashCardCollection,
    FlashCardPage,
    FullMindMap,
    MindMap,
    MindMapNode,
    MindMapNodeWithFlashCard,
    ScoreUpdate,
    User,
)
from src.core.platform_client import FlashdeckClient

__all__ = [
    # Config
    "ApiConfig",
    # Errors
    "FlashdeckError",
    "ApiError",
    # Models
    "User",
    "AuthResponse",
    "FlashCardCollection",
    "FlashCard",
    "FlashCardPage",
    "ScoreUpdate",
    "MindMap",
    "FullMindMap",
    "MindMapNode",
    "MindMapNodeWithFlashCard",
    # Client
    "FlashdeckClient",
]
