from typing import Optional

from fastapi import APIRouter, Depends

from ..services.engine import FeedEngine
from ..services.votes.models import FlareScore
from ..types import BatchScoreRequest, BatchScoreResponse, FlareScoreResponse
from .deps import engine_dependency, get_current_user

router = APIRouter(prefix="/community")


def _to_response(item_id: str, score: FlareScore, user_vote: int = 0) -> FlareScoreResponse:
    return FlareScoreResponse(
        item_id=item_id,
        upvotes=score.upvotes,
        downvotes=score.downvotes,
        score=score.score,
        voter_count=score.voter_count,
        user_vote=user_vote,
    )


@router.get("/flare-score/{item_id:path}", response_model=FlareScoreResponse)
async def get_flare_score(
    item_id: str,
    user_id: Optional[str] = Depends(get_current_user),
    engine: FeedEngine = Depends(engine_dependency),
) -> FlareScoreResponse:
    score = await engine.get_flare_score(item_id)
    votes = await engine.get_user_votes(user_id, [item_id])
    return _to_response(item_id, score, int(votes.get(item_id, 0)))


@router.post("/flare-score/batch", response_model=BatchScoreResponse)
async def get_flare_scores_batch(
    body: BatchScoreRequest,
    user_id: Optional[str] = Depends(get_current_user),
    engine: FeedEngine = Depends(engine_dependency),
) -> BatchScoreResponse:
    if not body.item_ids:
        return BatchScoreResponse()
    scores = await engine.get_flare_scores_batch(body.item_ids)
    votes = await engine.get_user_votes(user_id, list(scores))
    return BatchScoreResponse(scores={
        item_id: _to_response(item_id, score, int(votes.get(item_id, 0)))
        for item_id, score in scores.items()
    })
