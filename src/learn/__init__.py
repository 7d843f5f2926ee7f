"""
Learn sessions: shuffled rounds over a card batch until every card has
been answered correctly twice in a row.
"""

from .collaborators import ApiCardSource, ApiScoreSink, CardSource, ScoreSink
from .engine import CardState, LearnSessionEngine, Phase, ScoreOutcome, shuffle
from .errors import FetchFailure, LearnSessionError, PreconditionViolation, SubmitFailure

__all__ = [
    # Engine
    "LearnSessionEngine",
    "CardState",
    "Phase",
    "ScoreOutcome",
    "shuffle",
    # Collaborators
    "CardSource",
    "ScoreSink",
    "ApiCardSource",
    "ApiScoreSink",
    # Errors
    "LearnSessionError",
    "FetchFailure",
    "SubmitFailure",
    "PreconditionViolation",
]
