"""
Vote & Preference Models

Explicit types for vote values, vote events, learned preferences and
community Flare Scores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class VoteValue(IntEnum):
    """A user's vote on one item. NEUTRAL means no vote."""
    DOWN = -1
    NEUTRAL = 0
    UP = 1

    @classmethod
    def parse(cls, value: Any) -> "VoteValue":
        """Coerce an int-like value, raising ValueError when out of range."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Vote must be -1, 0 or 1, got {value!r}")
        return cls(value)

    @property
    def activity_type(self) -> str:
        if self is VoteValue.UP:
            return "upvote"
        if self is VoteValue.DOWN:
            return "downvote"
        return "unvote"


@dataclass(frozen=True)
class VoteEvent:
    """Emitted by the ledger after a vote is recorded."""
    user_id: str
    item_id: str
    value: VoteValue
    previous_value: VoteValue
    platform: Optional[str] = None
    category: Optional[str] = None

    @property
    def upvote_delta(self) -> int:
        return int(self.value == VoteValue.UP) - int(self.previous_value == VoteValue.UP)

    @property
    def downvote_delta(self) -> int:
        return int(self.value == VoteValue.DOWN) - int(self.previous_value == VoteValue.DOWN)


DEFAULT_RECENCY_WEIGHT = 0.5
DEFAULT_VIRALITY_WEIGHT = 0.5
DEFAULT_EXPLORATION_PERCENTAGE = 20


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass
class UserPreferences:
    """
    Learned affinities and feed settings for one user.

    Scores are kept inside [-1, 1]; every mutation goes through
    ``adjust_platform``/``adjust_category`` which clamp.
    """
    platform_scores: Dict[str, float] = field(default_factory=dict)
    category_scores: Dict[str, float] = field(default_factory=dict)
    recency_weight: float = DEFAULT_RECENCY_WEIGHT
    virality_weight: float = DEFAULT_VIRALITY_WEIGHT
    exploration_enabled: bool = True
    exploration_percentage: int = DEFAULT_EXPLORATION_PERCENTAGE
    total_interactions: int = 0

    def __post_init__(self):
        self.platform_scores = {k: clamp(float(v)) for k, v in self.platform_scores.items()}
        self.category_scores = {k: clamp(float(v)) for k, v in self.category_scores.items()}
        self.total_interactions = max(0, int(self.total_interactions))

    def adjust_platform(self, platform: str, delta: float) -> float:
        score = clamp(self.platform_scores.get(platform, 0.0) + delta)
        self.platform_scores[platform] = score
        return score

    def adjust_category(self, category: str, delta: float) -> float:
        score = clamp(self.category_scores.get(category, 0.0) + delta)
        self.category_scores[category] = score
        return score

    def platform_score(self, platform: Optional[str]) -> float:
        if not platform:
            return 0.0
        return self.platform_scores.get(platform, 0.0)

    def category_score(self, category: Optional[str]) -> float:
        if not category:
            return 0.0
        return self.category_scores.get(category, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage/API."""
        return {
            "platformScores": dict(self.platform_scores),
            "categoryScores": dict(self.category_scores),
            "recencyWeight": self.recency_weight,
            "viralityWeight": self.virality_weight,
            "explorationEnabled": self.exploration_enabled,
            "explorationPercentage": self.exploration_percentage,
            "totalInteractions": self.total_interactions,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPreferences":
        """Build from a stored record, tolerating missing keys."""
        exploration_enabled = data.get("explorationEnabled")
        return cls(
            platform_scores=data.get("platformScores") or {},
            category_scores=data.get("categoryScores") or {},
            recency_weight=data.get("recencyWeight", DEFAULT_RECENCY_WEIGHT),
            virality_weight=data.get("viralityWeight", DEFAULT_VIRALITY_WEIGHT),
            exploration_enabled=True if exploration_enabled is None else bool(exploration_enabled),
            exploration_percentage=data.get("explorationPercentage", DEFAULT_EXPLORATION_PERCENTAGE),
            total_interactions=data.get("totalInteractions", 0),
        )


@dataclass(frozen=True)
class FlareScore:
    """Community vote aggregate for one item."""
    upvotes: int = 0
    downvotes: int = 0

    def __post_init__(self):
        if self.upvotes < 0 or self.downvotes < 0:
            raise ValueError(
                f"Vote counts must be non-negative, got +{self.upvotes}/-{self.downvotes}"
            )

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    @property
    def voter_count(self) -> int:
        return self.upvotes + self.downvotes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "score": self.score,
            "voterCount": self.voter_count,
        }


class SignalType(str, Enum):
    """Implicit interaction signals recorded per item."""
    CLICK = "click"
    SAVE = "save"
    HIDE = "hide"
    SHARE = "share"
    TIMESPENT = "timespent"
    SCROLL = "scroll"


# Signals that also produce an activity event
EXPLICIT_SIGNALS = frozenset({SignalType.SAVE, SignalType.HIDE, SignalType.SHARE})


@dataclass(frozen=True)
class InteractionSignal:
    """One implicit signal from the reader."""
    item_id: str
    type: SignalType
    value: Optional[float] = None
    platform: Optional[str] = None
    category: Optional[str] = None

    def to_flags(self) -> Dict[str, Any]:
        """Per-item interaction fields this signal sets."""
        if self.type is SignalType.CLICK:
            return {"isRead": True}
        if self.type is SignalType.SAVE:
            return {"isSaved": True}
        if self.type is SignalType.HIDE:
            return {"isHidden": True}
        if self.type is SignalType.SHARE:
            return {"isShared": True}
        if self.type is SignalType.TIMESPENT:
            return {"timeSpentSec": self.value or 0}
        return {"scrollDepth": self.value or 0}


@dataclass(frozen=True)
class UserVoteStats:
    """Counts of a user's live votes."""
    upvotes: int = 0
    downvotes: int = 0

    @property
    def total_votes(self) -> int:
        return self.upvotes + self.downvotes
