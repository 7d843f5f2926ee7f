"""
Card edit buffer.

Holds a working copy of one page of cards so several edits can be made
and then saved with a single bulk request. New cards get temporary
negative ids until saved; the API creates any card sent with id 0.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.models import FlashCard


@dataclass
class CardDraft:
    """Editable copy of a card."""

    id: int
    term: str
    definition: str
    score: int = 0
    collection_id: int | None = None
    is_new: bool = False
    is_modified: bool = False

    @classmethod
    def from_flashcard(cls, card: FlashCard) -> CardDraft:
        return cls(
            id=card.id,
            term=card.term,
            definition=card.definition,
            score=card.score,
            collection_id=card.flash_card_collection_id,
        )

    def to_flashcard(self) -> FlashCard:
        return FlashCard(
            id=0 if self.is_new else self.id,
            term=self.term,
            definition=self.definition,
            score=self.score,
            flash_card_collection_id=self.collection_id,
        )


class CardEditBuffer:
    """Tracks edits against the page as originally loaded."""

    def __init__(self, collection_id: int, cards: list[FlashCard]):
        self.collection_id = collection_id
        self._original = {card.id: card.model_copy() for card in cards}
        self.drafts = [CardDraft.from_flashcard(card) for card in cards]
        self._next_temp_id = -1

    def _find(self, card_id: int) -> CardDraft:
        for draft in self.drafts:
            if draft.id == card_id:
                return draft
        raise KeyError(f"Card {card_id} is not on this page")

    def add(self, term: str = "", definition: str = "") -> CardDraft:
        draft = CardDraft(
            id=self._next_temp_id,
            term=term,
            definition=definition,
            collection_id=self.collection_id,
            is_new=True,
            is_modified=True,
        )
        self._next_temp_id -= 1
        self.drafts.append(draft)
        return draft

    def update(
        self,
        card_id: int,
        term: str | None = None,
        definition: str | None = None,
        score: int | None = None,
    ) -> CardDraft:
        draft = self._find(card_id)
        if term is not None:
            draft.term = term
        if definition is not None:
            draft.definition = definition
        if score is not None:
            draft.score = score
        draft.is_modified = True
        return draft

    def remove(self, card_id: int) -> None:
        """Drop an unsaved card. Saved cards are deleted through the API instead."""
        draft = self._find(card_id)
        if not draft.is_new:
            raise ValueError(f"Card {card_id} is already saved; delete it instead")
        self.drafts.remove(draft)

    def flip(self, card_id: int) -> CardDraft:
        """Swap term and definition of one card."""
        draft = self._find(card_id)
        draft.term, draft.definition = draft.definition, draft.term
        draft.is_modified = True
        return draft

    def flip_all(self) -> None:
        for draft in self.drafts:
            draft.term, draft.definition = draft.definition, draft.term
            draft.is_modified = True

    def changed(self) -> list[FlashCard]:
        """Cards to send: every new card, and modified cards that differ from the original."""
        result = []
        for draft in self.drafts:
            if draft.is_new:
                result.append(draft.to_flashcard())
                continue
            if not draft.is_modified:
                continue
            original = self._original.get(draft.id)
            if (
                original is None
                or draft.term != original.term
                or draft.definition != original.definition
                or draft.score != original.score
            ):
                result.append(draft.to_flashcard())
        return result

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self.changed())
