from .requests import (
    BatchScoreRequest,
    RankItem,
    RankRequest,
    SettingsUpdateRequest,
    TrackRequest,
    TrackSignal,
    VoteRequest,
)
from .responses import (
    BatchScoreResponse,
    FeedResponse,
    FlareScoreResponse,
    StatsResponse,
    SuccessResponse,
)

__all__ = [
    "BatchScoreRequest",
    "RankItem",
    "RankRequest",
    "SettingsUpdateRequest",
    "TrackRequest",
    "TrackSignal",
    "VoteRequest",
    "BatchScoreResponse",
    "FeedResponse",
    "FlareScoreResponse",
    "StatsResponse",
    "SuccessResponse",
]
