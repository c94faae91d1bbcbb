"""
Trending Aggregation

Fetches trending items from external platforms, normalizes them into one
item model, and scores engagement velocity.
"""

from .models import ContentItem, HeatBadge, HeatLevel, Platform, PLATFORM_WEIGHTS
from .heat import annotate, heat_badge, heat_level, hours_since, velocity
from .normalizer import ItemNormalizer
from .sources import (
    GoogleTrendsSource,
    HackerNewsSource,
    LocalRedditSource,
    PlatformSource,
    RedditSource,
    YouTubeSource,
)
from .service import TrendingService, unified_order, unified_score

__all__ = [
    # Models
    "ContentItem",
    "HeatBadge",
    "HeatLevel",
    "Platform",
    "PLATFORM_WEIGHTS",
    # Heat
    "annotate",
    "heat_badge",
    "heat_level",
    "hours_since",
    "velocity",
    # Normalizer
    "ItemNormalizer",
    # Sources
    "PlatformSource",
    "RedditSource",
    "LocalRedditSource",
    "HackerNewsSource",
    "YouTubeSource",
    "GoogleTrendsSource",
    # Service
    "TrendingService",
    "unified_order",
    "unified_score",
]
