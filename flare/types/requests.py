from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    item_id: str = Field(alias="itemId", description="Platform-qualified item id")
    vote: int = Field(description="1 for up, -1 for down, 0 to clear")
    platform: Optional[str] = Field(default=None, description="Platform hint for preference learning")
    category: Optional[str] = Field(default=None, description="Category hint for preference learning")
    title: Optional[str] = Field(default=None, description="Item title, informational")
    url: Optional[str] = Field(default=None, description="Item URL, informational")

    model_config = {"populate_by_name": True}


class SettingsUpdateRequest(BaseModel):
    recency_weight: Optional[float] = Field(default=None, alias="recencyWeight")
    virality_weight: Optional[float] = Field(default=None, alias="viralityWeight")
    exploration_enabled: Optional[bool] = Field(default=None, alias="explorationEnabled")
    exploration_percentage: Optional[int] = Field(default=None, alias="explorationPercentage")

    model_config = {"populate_by_name": True}


class TrackSignal(BaseModel):
    item_id: str = Field(alias="itemId")
    type: str = Field(description="click, save, hide, share, timespent or scroll")
    value: Optional[float] = None
    platform: Optional[str] = None
    category: Optional[str] = None

    model_config = {"populate_by_name": True}


class TrackRequest(BaseModel):
    signals: List[TrackSignal] = Field(description="Signals to record")


class BatchScoreRequest(BaseModel):
    item_ids: List[str] = Field(default_factory=list, alias="itemIds")

    model_config = {"populate_by_name": True}


class RankItem(BaseModel):
    id: str
    platform: str
    title: str
    url: str = ""
    engagement_count: int = Field(default=0, ge=0, alias="engagementCount")
    engagement_label: str = Field(default="", alias="engagementLabel")
    category: Optional[str] = None
    timestamp: datetime
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = {"populate_by_name": True}


class RankRequest(BaseModel):
    items: List[RankItem] = Field(description="Items to rank for the current user")
