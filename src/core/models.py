"""
Wire models for the flashcard REST API.

The API speaks camelCase JSON; the models expose snake_case attributes and
serialize back with aliases. Use ``to_payload()`` when sending a model.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for all API payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize with API field names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ========================================
# Auth
# ========================================


class User(ApiModel):
    id: int | None = None
    username: str
    email: str = ""
    role: str = "User"


class AuthResponse(ApiModel):
    token: str
    user_id: int
    username: str
    email: str = ""
    role: str = "User"

    def to_user(self) -> User:
        return User(id=self.user_id, username=self.username, email=self.email, role=self.role)


# ========================================
# Collections
# ========================================


class FlashCardCollection(ApiModel):
    """A node in the user's collection hierarchy."""

    id: int
    user_id: int | None = None
    parent_id: int | None = None
    title: str
    description: str = ""
    flash_card_count: int = 0
    children_count: int = 0


class CollectionCreate(ApiModel):
    user_id: int
    # The API expects 0 for a root collection
    parent_id: int = 0
    title: str
    description: str = ""


class CollectionUpdate(ApiModel):
    title: str | None = None
    description: str | None = None
    parent_id: int | None = None


# ========================================
# Flashcards
# ========================================


class FlashCard(ApiModel):
    id: int
    term: str
    definition: str
    score: int = 0
    flash_card_collection_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "flashCardCollectionId", "collectionId", "flash_card_collection_id"
        ),
        serialization_alias="flashCardCollectionId",
    )


class FlashCardPage(ApiModel):
    flash_cards: list[FlashCard] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 1
    page_number: int = 1
    page_size: int = 10


class BulkFlashCardUpdate(ApiModel):
    flash_card_collection_id: int
    flash_cards: list[FlashCard]


class ScoreUpdate(ApiModel):
    """Accumulated result for one card at the end of a learn session."""

    flash_card_id: int
    score_modification: int
    # The backend DTO uses PascalCase for this one field
    times_learned: int = Field(alias="TimesLearned")


# ========================================
# Mind maps
# ========================================


class MindMap(ApiModel):
    id: int
    user_id: int | None = None
    title: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    node_count: int = 0


class MindMapCreate(ApiModel):
    user_id: int
    title: str
    description: str | None = None


class MindMapUpdate(ApiModel):
    title: str | None = None
    description: str | None = None


class MindMapNode(ApiModel):
    id: int
    mind_map_id: int | None = None
    flash_card_id: int | None = None
    parent_node_id: int | None = None
    position_x: float = 0.0
    position_y: float = 0.0
    color: str = "#3B82F6"
    hide_children: bool = False


class MindMapNodeWithFlashCard(MindMapNode):
    flash_card: FlashCard | None = None

    @property
    def label(self) -> str:
        if self.flash_card is None:
            return f"node {self.id}"
        return self.flash_card.term


class FullMindMap(MindMap):
    nodes: list[MindMapNodeWithFlashCard] = Field(default_factory=list)


class MindMapNodeCreate(ApiModel):
    flash_card_id: int
    parent_node_id: int | None = None
    position_x: float
    position_y: float
    color: str


class MindMapNodeUpdate(ApiModel):
    parent_node_id: int | None = None
    position_x: float | None = None
    position_y: float | None = None
    color: str | None = None
    hide_children: bool | None = None
