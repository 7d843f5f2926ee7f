"""
Learn Session Engine

Runs one learn session over a fixed batch of cards:

1. Load the batch once from a CardSource
2. Present the unremembered cards in shuffled rounds
3. Record a signed score per presentation
4. Retire a card once its last two scores are both positive
5. When a round ends, reshuffle whatever is still unremembered
6. When nothing is left, hand over to review, then submit to a ScoreSink

Phases:
    LOADING -> PRESENTING <-> REVIEWING -> SUBMITTING -> CLOSED
    LOADING / SUBMITTING -> ERROR on remote failure
    any phase -> CLOSED via exit() (nothing submitted)

Cards are owned in a single dict keyed by card id; a round is just an
ordered list of ids into that dict.
"""

from __future__ import annotations

import random
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from loguru import logger

from src.core.models import FlashCard, ScoreUpdate

from .collaborators import CardSource, ScoreSink
from .errors import FetchFailure, LearnSessionError, PreconditionViolation, SubmitFailure

T = TypeVar("T")

DEFAULT_SCORE_RANGE = 5
DEFAULT_CARDS_PER_SESSION = 10

# Number of consecutive positive scores needed to retire a card
RETIRE_STREAK = 2


class Phase(str, Enum):
    """Lifecycle phase of a learn session."""

    LOADING = "loading"
    PRESENTING = "presenting"
    REVIEWING = "reviewing"
    SUBMITTING = "submitting"
    ERROR = "error"
    CLOSED = "closed"


class ScoreOutcome(str, Enum):
    """What happened after a score was recorded."""

    NEXT_CARD = "next_card"  # Same round, next card
    NEW_ROUND = "new_round"  # Round finished, unremembered cards reshuffled
    REVIEW = "review"  # Every card remembered
    IGNORED = "ignored"  # Arrived inside the transition cooldown


@dataclass
class CardState:
    """A card plus its bookkeeping for the current session."""

    id: int
    term: str
    definition: str
    score: int = 0
    collection_id: int | None = None

    total_score_modification: int = 0
    last_two_scores: deque[int] = field(default_factory=lambda: deque(maxlen=RETIRE_STREAK))
    is_remembered: bool = False
    times_learned: int = 0

    @classmethod
    def from_flashcard(cls, card: FlashCard) -> CardState:
        return cls(
            id=card.id,
            term=card.term,
            definition=card.definition,
            score=card.score,
            collection_id=card.flash_card_collection_id,
        )

    def record(self, delta: int) -> None:
        """Apply one scoring event."""
        self.total_score_modification += delta
        self.last_two_scores.append(delta)
        self.times_learned += 1
        if len(self.last_two_scores) == RETIRE_STREAK and all(s > 0 for s in self.last_two_scores):
            self.is_remembered = True


def shuffle(items: Iterable[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly random permutation of ``items`` as a new list."""
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled


class LearnSessionEngine:
    """
    State machine for one learn session.

    The engine is driven by a single presenter, one command at a time.
    ``load`` and ``end_session`` are the only awaitable steps.

    Args:
        collection_id: Collection the batch is drawn from
        count: Number of cards to request
        score_range: Largest accepted score magnitude
        cooldown: Seconds after a score during which further scores are
            ignored (0 disables)
        rng: Random source for shuffling
        clock: Monotonic clock, used for the cooldown
    """

    def __init__(
        self,
        collection_id: int,
        count: int = DEFAULT_CARDS_PER_SESSION,
        score_range: int = DEFAULT_SCORE_RANGE,
        cooldown: float = 0.0,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.collection_id = collection_id
        self.count = count
        self.score_range = score_range
        self.cooldown = cooldown
        self._rng = rng or random.Random()
        self._clock = clock

        self.phase = Phase.LOADING
        self.error: LearnSessionError | None = None
        self._failed_in: Phase | None = None

        self._cards: dict[int, CardState] = {}
        self._batch: list[int] = []
        self._index = 0
        self._round = 0
        self._last_score_at: float | None = None

    # =========================================================================
    # Read model
    # =========================================================================

    @property
    def cards(self) -> list[CardState]:
        """All session cards in load order (the review list)."""
        return list(self._cards.values())

    @property
    def total(self) -> int:
        return len(self._cards)

    @property
    def remembered_count(self) -> int:
        return sum(1 for c in self._cards.values() if c.is_remembered)

    @property
    def pending_cards(self) -> list[CardState]:
        return [c for c in self._cards.values() if not c.is_remembered]

    @property
    def can_continue(self) -> bool:
        return self.phase is Phase.REVIEWING and bool(self.pending_cards)

    @property
    def current_card(self) -> CardState | None:
        if self.phase is not Phase.PRESENTING:
            return None
        return self._cards[self._batch[self._index]]

    @property
    def current_batch(self) -> list[int]:
        """Card ids of the current round, in presentation order."""
        return list(self._batch)

    @property
    def round_position(self) -> int:
        """1-based position within the current round."""
        return self._index + 1 if self._batch else 0

    @property
    def round_size(self) -> int:
        return len(self._batch)

    @property
    def round_number(self) -> int:
        return self._round

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error else None

    def get_card(self, card_id: int) -> CardState:
        try:
            return self._cards[card_id]
        except KeyError:
            raise PreconditionViolation(f"Card {card_id} is not part of this session") from None

    def changed_summary(self) -> list[ScoreUpdate]:
        """Per-card results to submit; cards with a zero total are left out."""
        return [
            ScoreUpdate(
                flash_card_id=card.id,
                score_modification=card.total_score_modification,
                times_learned=card.times_learned,
            )
            for card in self._cards.values()
            if card.total_score_modification != 0
        ]

    # =========================================================================
    # Commands
    # =========================================================================

    async def load(self, source: CardSource) -> None:
        """
        Fetch the batch and start the first round.

        Can be called again after a fetch failure.

        Raises:
            FetchFailure: The source could not supply the batch
        """
        if not (self.phase is Phase.LOADING or self._failed_in is Phase.LOADING):
            raise PreconditionViolation(f"Cannot load a session in phase {self.phase.value}")

        self.phase = Phase.LOADING
        self._clear_error()
        try:
            batch = await source.fetch_batch(self.collection_id, self.count)
        except FetchFailure as e:
            self._fail(e, Phase.LOADING)
            raise

        cards: dict[int, CardState] = {}
        for card in batch:
            if card.id not in cards:
                cards[card.id] = CardState.from_flashcard(card)
        self._cards = cards
        logger.info(f"Learn session loaded {len(cards)} cards from collection {self.collection_id}")

        self._start_round()

    def score(self, card_id: int, delta: int) -> ScoreOutcome:
        """
        Record a score for the card being presented and advance.

        Args:
            card_id: Must be the current card
            delta: Nonzero score, at most ``score_range`` in magnitude

        Returns:
            What the session did next
        """
        self._require(Phase.PRESENTING, "score")
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise PreconditionViolation(f"Score must be an integer, got {delta!r}")
        if delta == 0 or abs(delta) > self.score_range:
            raise PreconditionViolation(
                f"Score must be between -{self.score_range} and {self.score_range}, excluding 0"
            )

        card = self._cards[self._batch[self._index]]
        if card_id != card.id:
            raise PreconditionViolation(f"Card {card_id} is not the current card ({card.id})")

        now = self._clock()
        if (
            self.cooldown > 0
            and self._last_score_at is not None
            and now - self._last_score_at < self.cooldown
        ):
            logger.debug(f"Score {delta:+d} ignored during transition cooldown")
            return ScoreOutcome.IGNORED

        self._last_score_at = now
        card.record(delta)
        logger.debug(
            f"Card {card.id} scored {delta:+d}: total={card.total_score_modification} "
            f"window={list(card.last_two_scores)} remembered={card.is_remembered}"
        )

        if self._index < len(self._batch) - 1:
            self._index += 1
            return ScoreOutcome.NEXT_CARD

        self._start_round()
        return ScoreOutcome.REVIEW if self.phase is Phase.REVIEWING else ScoreOutcome.NEW_ROUND

    def score_current(self, delta: int) -> ScoreOutcome:
        """Score whichever card is being presented."""
        card = self.current_card
        if card is None:
            raise PreconditionViolation(f"No card is being presented in phase {self.phase.value}")
        return self.score(card.id, delta)

    def toggle_remembered(self, card_id: int) -> bool:
        """Flip a card's remembered flag during review; scores are untouched."""
        self._require(Phase.REVIEWING, "toggle a card")
        card = self.get_card(card_id)
        card.is_remembered = not card.is_remembered
        return card.is_remembered

    def continue_learning(self) -> None:
        """Start a new round with every card currently marked unremembered."""
        self._require(Phase.REVIEWING, "continue learning")
        if not self.pending_cards:
            raise PreconditionViolation("Every card is remembered; nothing to continue with")
        self._start_round()

    def resume_review(self) -> None:
        """Return to the review screen after a failed submission."""
        if self._failed_in is not Phase.SUBMITTING:
            raise PreconditionViolation("Review can only be resumed after a failed submission")
        self._clear_error()
        self.phase = Phase.REVIEWING

    async def end_session(self, sink: ScoreSink) -> list[ScoreUpdate]:
        """
        Submit the changed summary and close the session.

        Nothing is sent when no card changed. After a failure the session
        stays in ERROR with all results intact, so this can be retried.

        Returns:
            The submitted updates

        Raises:
            SubmitFailure: The sink rejected the submission
        """
        if not (self.phase is Phase.REVIEWING or self._failed_in is Phase.SUBMITTING):
            raise PreconditionViolation(f"Cannot end the session in phase {self.phase.value}")

        updates = self.changed_summary()
        self._clear_error()
        if not updates:
            logger.info("Learn session ended with no score changes")
            self.phase = Phase.CLOSED
            return updates

        self.phase = Phase.SUBMITTING
        try:
            await sink.submit(updates)
        except SubmitFailure as e:
            if self.phase is Phase.CLOSED:
                logger.debug(f"Submission failed after exit, ignoring: {e}")
                return updates
            self._fail(e, Phase.SUBMITTING)
            raise

        if self.phase is not Phase.CLOSED:
            self.phase = Phase.CLOSED
        logger.info(f"Learn session submitted {len(updates)} score updates")
        return updates

    def exit(self) -> None:
        """Abandon the session; accumulated results are discarded."""
        if self.phase is not Phase.CLOSED:
            logger.info(f"Learn session exited from phase {self.phase.value}")
        self._clear_error()
        self.phase = Phase.CLOSED

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_round(self) -> None:
        """Reshuffle the unremembered cards of the whole session, or go to review."""
        pending = [card_id for card_id, card in self._cards.items() if not card.is_remembered]
        self._index = 0
        if not pending:
            self._batch = []
            self.phase = Phase.REVIEWING
            logger.debug("All cards remembered, entering review")
            return

        self._batch = shuffle(pending, self._rng)
        self._round += 1
        self.phase = Phase.PRESENTING
        logger.debug(f"Round {self._round} started with {len(self._batch)} cards")

    def _require(self, phase: Phase, action: str) -> None:
        if self.phase is not phase:
            raise PreconditionViolation(f"Cannot {action} in phase {self.phase.value}")

    def _fail(self, error: LearnSessionError, during: Phase) -> None:
        logger.warning(f"Learn session failed while {during.value}: {error}")
        self.error = error
        self._failed_in = during
        self.phase = Phase.ERROR

    def _clear_error(self) -> None:
        self.error = None
        self._failed_in = None
