"""
Preference API Endpoints

Votes, learned preferences, feed settings and implicit signals.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..services.engine import FeedEngine
from ..types import SettingsUpdateRequest, StatsResponse, SuccessResponse, TrackRequest, VoteRequest
from .deps import engine_dependency, get_current_user, require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/preferences")


@router.get("/vote")
async def get_votes(
    user_id: Optional[str] = Depends(get_current_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """All live votes for the current user as {itemId: vote}."""
    votes = await engine.get_user_votes(user_id)
    return {"votes": {item_id: int(vote) for item_id, vote in votes.items()}}


@router.post("/vote", response_model=SuccessResponse)
async def submit_vote(
    body: VoteRequest,
    user_id: str = Depends(require_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Record a vote; preferences and Flare Scores update afterwards."""
    await engine.submit_vote(user_id, body.item_id, body.vote, body.platform, body.category)
    return SuccessResponse()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user_id: str = Depends(require_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Learned preferences and vote counts."""
    stats = await engine.get_stats(user_id)
    prefs = stats.pop("preferences").to_dict()
    prefs.pop("totalInteractions", None)
    return StatsResponse(preferences=prefs, stats=stats)


@router.put("/stats", response_model=SuccessResponse)
async def update_settings(
    body: SettingsUpdateRequest,
    user_id: str = Depends(require_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Update recency/virality weights and exploration settings."""
    await engine.update_settings(
        user_id,
        recency_weight=body.recency_weight,
        virality_weight=body.virality_weight,
        exploration_enabled=body.exploration_enabled,
        exploration_percentage=body.exploration_percentage,
    )
    return SuccessResponse()


@router.delete("/stats", response_model=SuccessResponse)
async def reset_preferences(
    user_id: str = Depends(require_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Forget learned preferences and clear per-item interaction flags."""
    await engine.reset_preferences(user_id)
    return SuccessResponse()


@router.post("/track", response_model=SuccessResponse)
async def track(
    body: TrackRequest,
    user_id: str = Depends(require_user),
    engine: FeedEngine = Depends(engine_dependency),
):
    """Record implicit signals (click, save, hide, share, timespent, scroll)."""
    processed = await engine.track_signals(
        user_id,
        [signal.model_dump(by_alias=True) for signal in body.signals],
    )
    return SuccessResponse(processed=processed)
