"""
Votes & Preferences

Vote ledger, online preference learner and community Flare Score aggregator.
Import the components from their modules (``ledger``, ``learner``,
``flare_score``); this package only re-exports the shared models.
"""

from .models import (
    FlareScore,
    InteractionSignal,
    SignalType,
    UserPreferences,
    UserVoteStats,
    VoteEvent,
    VoteValue,
)

__all__ = [
    "FlareScore",
    "InteractionSignal",
    "SignalType",
    "UserPreferences",
    "UserVoteStats",
    "VoteEvent",
    "VoteValue",
]
