from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FlareScoreResponse(BaseModel):
    item_id: str = Field(alias="itemId")
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0
    voter_count: int = Field(default=0, alias="voterCount")
    user_vote: int = Field(default=0, alias="userVote", description="Current user's vote, 0 if none")

    model_config = {"populate_by_name": True}


class BatchScoreResponse(BaseModel):
    scores: Dict[str, FlareScoreResponse] = Field(default_factory=dict)


class FeedResponse(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list, description="Items with heat annotations")
    count: int = 0
    personalized: bool = False


class StatsResponse(BaseModel):
    preferences: Dict[str, Any]
    stats: Dict[str, Any]


class SuccessResponse(BaseModel):
    success: bool = True
    processed: Optional[int] = None
