"""
Feed API Endpoints

Trending items, optionally personalized for the current user.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..errors import InvalidArgument
from ..services.engine import FeedEngine
from ..services.trending.heat import annotate
from ..services.trending.models import ContentItem, Platform
from ..services.trending.service import TrendingService
from ..types import FeedResponse, RankRequest
from .deps import engine_dependency, get_current_user, get_trending_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/feed")


@router.get("", response_model=FeedResponse)
async def get_feed(
    personalized: bool = Query(True, description="Apply the user's learned preferences"),
    limit: int = Query(50, ge=1, le=200),
    user_id: Optional[str] = Depends(get_current_user),
    engine: FeedEngine = Depends(engine_dependency),
    trending: TrendingService = Depends(get_trending_service),
):
    """Get the trending feed."""
    items = await trending.get_items()

    is_personalized = False
    if personalized and user_id:
        prefs = await engine.get_preferences(user_id)
        is_personalized = engine.ranker.is_personalized(prefs)
        items = await engine.get_personalized_feed(user_id, items)

    now = datetime.now(timezone.utc)
    annotated = [annotate(item, now) for item in items[:limit]]
    return FeedResponse(items=annotated, count=len(annotated), personalized=is_personalized)


@router.post("/rank", response_model=FeedResponse)
async def rank_items(
    body: RankRequest,
    user_id: Optional[str] = Depends(get_current_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Rank caller-supplied items for the current user."""
    items = []
    for raw in body.items:
        platform = Platform.parse(raw.platform)
        if platform is None:
            raise InvalidArgument(f"Unknown platform {raw.platform!r}", {"itemId": raw.id})
        items.append(ContentItem(
            id=raw.id,
            platform=platform,
            title=raw.title,
            url=raw.url,
            timestamp=raw.timestamp,
            engagement_count=raw.engagement_count,
            engagement_label=raw.engagement_label,
            category=raw.category,
            image_url=raw.image_url,
        ))

    prefs = await engine.get_preferences(user_id)
    ranked = await engine.get_personalized_feed(user_id, items)
    now = datetime.now(timezone.utc)
    return FeedResponse(
        items=[annotate(item, now) for item in ranked],
        count=len(ranked),
        personalized=bool(user_id) and engine.ranker.is_personalized(prefs),
    )
