"""
Flashcard Platform Client

HTTP client for the flashcard REST API. Every remote concern of the CLI
(auth, collections, cards, learn sessions, mind maps, analytics) goes
through this one class.

Usage:
    async with FlashdeckClient(settings.get_api_config()) as client:
        collections = await client.get_collections(user_id)
        cards = await client.get_learn_session(collection_id, 10)
        await client.update_scores(updates)

Failures raise ApiError; nothing is retried automatically.
"""

from __future__ import annotations

import asyncio
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from .api_config import ApiConfig
from .errors import ApiError
from .models import (
    AuthResponse,
    BulkFlashCardUpdate,
    CollectionCreate,
    CollectionUpdate,
    FlashCard,
    FlashCardCollection,
    FlashCardPage,
    FullMindMap,
    MindMap,
    MindMapCreate,
    MindMapNode,
    MindMapNodeCreate,
    MindMapNodeUpdate,
    MindMapNodeWithFlashCard,
    MindMapUpdate,
    ScoreUpdate,
    User,
)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull the server's message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or body.get("title") or fallback
    return fallback


M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], data: Any) -> M:
    """Validate a response body; malformed payloads surface as ApiError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Malformed {model.__name__} payload: {e.error_count()} validation errors")
        raise ApiError(f"Unexpected {model.__name__} data from server") from e


def _parse_list(model: type[M], data: Any) -> list[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ApiError(f"Expected a list of {model.__name__} from server")
    return [_parse(model, item) for item in data]


class FlashdeckClient:
    """
    HTTP client for the flashcard API.

    Supports:
    - Bearer token authentication
    - Collection and card CRUD
    - Learn session fetch and score submission
    - Mind map and node CRUD
    - Analytics queries
    """

    def __init__(self, config: ApiConfig):
        self.config = config
        self._client: httpx.AsyncClient | None = None
        self._token: str | None = config.token

    async def __aenter__(self) -> "FlashdeckClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        **kwargs: Any,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Args:
            method: HTTP verb
            path: Path relative to the configured base URL
            fallback: Message used when the server gives no explanation

        Returns:
            Decoded JSON, or None for empty responses

        Raises:
            ApiError: On transport failure or non-2xx status
        """
        client = await self._ensure_client()
        logger.debug(f"{method} {path}")

        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, fallback)
            logger.warning(f"{method} {path} failed: {e.response.status_code} {message}")
            raise ApiError(message, status=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"Connection error on {method} {path}: {e}")
            raise ApiError(f"{fallback}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} returned a non-JSON body")
            raise ApiError(
                f"{fallback}: server returned an invalid response", status=response.status_code
            ) from e

    def _set_token(self, token: str) -> None:
        self._token = token
        if self._client is not None:
            self._client.headers["Authorization"] = f"Bearer {token}"

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, username: str, password: str) -> AuthResponse:
        """Exchange credentials for a token and use it for later calls."""
        data = await self._request(
            "POST",
            f"{self.config.auth_endpoint}/login",
            json={"username": username, "password": password},
            fallback="Login failed",
        )
        auth = _parse(AuthResponse, data)
        self._set_token(auth.token)
        logger.info(f"Authenticated as {auth.username} (user {auth.user_id})")
        return auth

    async def register(self, username: str, email: str, password: str) -> AuthResponse:
        data = await self._request(
            "POST",
            f"{self.config.auth_endpoint}/register",
            json={"username": username, "email": email, "password": password},
            fallback="Registration failed",
        )
        auth = _parse(AuthResponse, data)
        self._set_token(auth.token)
        return auth

    async def get_current_user(self) -> User:
        data = await self._request(
            "GET", f"{self.config.auth_endpoint}/me", fallback="Failed to fetch current user"
        )
        return _parse(User, data)

    async def refresh_token(self) -> AuthResponse:
        data = await self._request(
            "POST", f"{self.config.auth_endpoint}/refresh", fallback="Failed to refresh token"
        )
        auth = _parse(AuthResponse, data)
        self._set_token(auth.token)
        return auth

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    # =========================================================================
    # Collections
    # =========================================================================

    async def get_collections(self, user_id: int) -> list[FlashCardCollection]:
        """Fetch every collection owned by a user (flat list, all levels)."""
        data = await self._request(
            "GET",
            f"{self.config.collections_endpoint}/user/{user_id}",
            fallback="Failed to fetch collections",
        )
        collections = _parse_list(FlashCardCollection, data)
        logger.debug(f"Fetched {len(collections)} collections for user {user_id}")
        return collections

    async def get_collection(self, collection_id: int) -> FlashCardCollection:
        data = await self._request(
            "GET",
            f"{self.config.collections_endpoint}/{collection_id}",
            fallback="Failed to fetch collection",
        )
        return _parse(FlashCardCollection, data)

    async def create_collection(self, dto: CollectionCreate) -> FlashCardCollection:
        data = await self._request(
            "POST",
            self.config.collections_endpoint,
            json=dto.to_payload(),
            fallback="Failed to create collection",
        )
        return _parse(FlashCardCollection, data)

    async def update_collection(
        self, collection_id: int, dto: CollectionUpdate
    ) -> FlashCardCollection:
        data = await self._request(
            "PUT",
            f"{self.config.collections_endpoint}/{collection_id}",
            json=dto.to_payload(),
            fallback="Failed to update collection",
        )
        return _parse(FlashCardCollection, data)

    async def delete_collection(self, collection_id: int) -> None:
        await self._request(
            "DELETE",
            f"{self.config.collections_endpoint}/{collection_id}",
            fallback="Failed to delete collection",
        )

    # =========================================================================
    # Flashcards
    # =========================================================================

    async def get_flashcards(
        self,
        collection_id: int,
        page_number: int = 1,
        page_size: int = 10,
        search_text: str | None = None,
    ) -> FlashCardPage:
        """Fetch one page of a collection's cards, optionally filtered."""
        params: dict[str, Any] = {"pageNumber": page_number, "pageSize": page_size}
        if search_text:
            params["searchText"] = search_text

        data = await self._request(
            "GET",
            f"{self.config.flashcards_endpoint}/collection/{collection_id}",
            params=params,
            fallback="Failed to fetch flashcards",
        )
        return _parse(FlashCardPage, data)

    async def bulk_update_flashcards(self, collection_id: int, cards: list[FlashCard]) -> None:
        """Create (id 0) or update cards in one request."""
        dto = BulkFlashCardUpdate(flash_card_collection_id=collection_id, flash_cards=cards)
        await self._request(
            "POST",
            f"{self.config.flashcards_endpoint}/Bulk",
            json=dto.model_dump(by_alias=True),
            fallback="Failed to save flashcards",
        )
        logger.info(f"Saved {len(cards)} flashcards to collection {collection_id}")

    async def bulk_delete_flashcards(self, card_ids: list[int]) -> None:
        await self._request(
            "DELETE",
            f"{self.config.flashcards_endpoint}/Bulk",
            json={"flashCardIds": card_ids},
            fallback="Failed to delete flashcards",
        )
        logger.info(f"Deleted {len(card_ids)} flashcards")

    async def get_learn_session(self, collection_id: int, count: int) -> list[FlashCard]:
        """Fetch the batch of cards for one learn session."""
        data = await self._request(
            "GET",
            f"{self.config.learn_session_endpoint}/{collection_id}",
            params={"count": count},
            fallback="Failed to fetch learn session",
        )
        raw_cards = data.get("flashCards") if isinstance(data, dict) else data
        cards = _parse_list(FlashCard, raw_cards)
        logger.debug(f"Fetched {len(cards)} cards for learn session on {collection_id}")
        return cards

    async def update_scores(self, updates: list[ScoreUpdate]) -> None:
        """Submit accumulated learn-session results."""
        await self._request(
            "POST",
            self.config.scores_endpoint,
            json={"scoreUpdates": [u.to_payload() for u in updates]},
            fallback="Failed to update scores",
        )
        logger.info(f"Submitted score updates for {len(updates)} cards")

    # =========================================================================
    # Mind maps
    # =========================================================================

    async def get_mindmaps(self, user_id: int) -> list[MindMap]:
        data = await self._request(
            "GET",
            self.config.mindmaps_endpoint,
            params={"userId": user_id},
            fallback="Failed to fetch mindmaps",
        )
        return _parse_list(MindMap, data)

    async def get_mindmap(self, mindmap_id: int) -> MindMap:
        data = await self._request(
            "GET", f"{self.config.mindmaps_endpoint}/{mindmap_id}", fallback="Failed to load mindmap"
        )
        return _parse(MindMap, data)

    async def get_full_mindmap(self, mindmap_id: int) -> FullMindMap:
        """Fetch a mind map with all of its nodes and their cards."""
        data = await self._request(
            "GET",
            f"{self.config.mindmaps_endpoint}/{mindmap_id}/full",
            fallback="Failed to load mindmap",
        )
        return _parse(FullMindMap, data)

    async def create_mindmap(self, dto: MindMapCreate) -> MindMap:
        data = await self._request(
            "POST",
            self.config.mindmaps_endpoint,
            json=dto.to_payload(),
            fallback="Failed to create mindmap",
        )
        return _parse(MindMap, data)

    async def update_mindmap(self, mindmap_id: int, dto: MindMapUpdate) -> MindMap:
        data = await self._request(
            "PUT",
            f"{self.config.mindmaps_endpoint}/{mindmap_id}",
            json=dto.to_payload(),
            fallback="Failed to update mindmap",
        )
        return _parse(MindMap, data)

    async def delete_mindmap(self, mindmap_id: int) -> None:
        await self._request(
            "DELETE",
            f"{self.config.mindmaps_endpoint}/{mindmap_id}",
            fallback="Failed to delete mindmap",
        )

    async def get_node(self, node_id: int) -> MindMapNodeWithFlashCard:
        data = await self._request(
            "GET",
            f"{self.config.mindmaps_endpoint}/nodes/{node_id}",
            fallback="Failed to load node",
        )
        return _parse(MindMapNodeWithFlashCard, data)

    async def create_node(self, mindmap_id: int, dto: MindMapNodeCreate) -> MindMapNode:
        data = await self._request(
            "POST",
            f"{self.config.mindmaps_endpoint}/{mindmap_id}/nodes",
            json=dto.model_dump(by_alias=True),
            fallback="Failed to add node",
        )
        return _parse(MindMapNode, data)

    async def update_node(self, node_id: int, dto: MindMapNodeUpdate) -> MindMapNode:
        data = await self._request(
            "PUT",
            f"{self.config.mindmaps_endpoint}/nodes/{node_id}",
            json=dto.to_payload(),
            fallback="Failed to update node",
        )
        return _parse(MindMapNode, data)

    async def delete_node(self, node_id: int) -> None:
        """Delete a node; the server re-roots its children."""
        await self._request(
            "DELETE",
            f"{self.config.mindmaps_endpoint}/nodes/{node_id}",
            fallback="Failed to delete node",
        )

    async def batch_update_nodes(
        self, updates: list[tuple[int, MindMapNodeUpdate]]
    ) -> list[MindMapNode]:
        """Apply several node updates concurrently (e.g. saving positions)."""
        return await asyncio.gather(
            *(self.update_node(node_id, dto) for node_id, dto in updates)
        )

    # =========================================================================
    # Analytics
    # =========================================================================

    async def get_user_analytics(self, user_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self.config.analytics_endpoint}/{user_id}",
            fallback="Failed to fetch analytics",
        ) or {}

    async def get_collection_analytics(self, user_id: int, collection_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self.config.analytics_endpoint}/{user_id}/collection/{collection_id}",
            fallback="Failed to fetch collection analytics",
        ) or {}

    async def get_overview_stats(self, user_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self.config.analytics_endpoint}/{user_id}/overview",
            fallback="Failed to fetch overview",
        ) or {}

    async def get_learning_progress(self, user_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self.config.analytics_endpoint}/{user_id}/progress",
            fallback="Failed to fetch learning progress",
        ) or {}

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> bool:
        """Check if the API is reachable."""
        try:
            client = await self._ensure_client()
            response = await client.get("/health", timeout=5.0)
            return response.status_code == 200
        except (httpx.RequestError, asyncio.TimeoutError):
            return False
