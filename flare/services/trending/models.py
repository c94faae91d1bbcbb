"""
Trending Data Models

Canonical item model shared by every platform adapter, plus heat levels.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Platform(str, Enum):
    """Supported content sources."""
    REDDIT = "reddit"
    TWITTER = "twitter"
    THREADS = "threads"
    GOOGLE = "google"
    HACKERNEWS = "hackernews"
    YOUTUBE = "youtube"
    BLUESKY = "bluesky"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    SUBSTACK = "substack"
    MEDIUM = "medium"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Any) -> Optional["Platform"]:
        """Return the platform for a tag, or None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class HeatLevel(str, Enum):
    """Engagement velocity buckets, coldest first."""
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"
    FIRE = "fire"
    VIRAL = "viral"


@dataclass(frozen=True)
class HeatBadge:
    """Display data for a non-cold heat level."""
    level: HeatLevel
    label: str
    icon: str
    animate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "label": self.label,
            "icon": self.icon,
            "animate": self.animate,
        }


@dataclass(frozen=True)
class ContentItem:
    """A normalized trending item. Immutable once produced."""
    id: str  # Platform-qualified, e.g. "reddit:1abcd"
    platform: Platform
    title: str
    url: str
    timestamp: datetime
    engagement_count: int = 0
    engagement_label: str = ""
    category: Optional[str] = None
    image_url: Optional[str] = None

    # Display extras
    subtitle: Optional[str] = None
    description: Optional[str] = None
    rank: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("id is required")
        if not isinstance(self.platform, Platform):
            raise ValueError(f"Unknown platform: {self.platform!r}")
        if self.timestamp is None:
            raise ValueError("timestamp is required")
        if self.engagement_count < 0:
            raise ValueError(f"engagement_count must be non-negative, got {self.engagement_count}")

    def with_rank(self, rank: int) -> "ContentItem":
        return replace(self, rank=rank)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API output."""
        result: Dict[str, Any] = {
            "id": self.id,
            "platform": self.platform.value,
            "title": self.title,
            "url": self.url,
            "rank": self.rank,
            "engagementCount": self.engagement_count,
            "engagementLabel": self.engagement_label,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.category:
            result["category"] = self.category
        if self.image_url:
            result["imageUrl"] = self.image_url
        if self.subtitle:
            result["subtitle"] = self.subtitle
        if self.description:
            result["description"] = self.description
        return result


# Relative platform quality used by the unified (non-personalized) ordering
PLATFORM_WEIGHTS: Dict[Platform, float] = {
    Platform.HACKERNEWS: 1.8,
    Platform.REDDIT: 1.5,
    Platform.SUBSTACK: 1.4,
    Platform.MEDIUM: 1.3,
    Platform.YOUTUBE: 1.2,
    Platform.TWITTER: 1.1,
    Platform.BLUESKY: 1.1,
    Platform.GOOGLE: 1.0,
    Platform.LINKEDIN: 0.9,
    Platform.THREADS: 0.8,
    Platform.INSTAGRAM: 0.7,
    Platform.FACEBOOK: 0.6,
    Platform.TIKTOK: 0.5,
    Platform.LOCAL: 1.0,
}
