from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Storage
    storage_backend: str = Field(
        default="memory",
        description="Storage backend for votes and preferences (memory, convex)",
    )
    convex_url: str = Field(default="", description="Convex deployment URL")
    convex_deploy_key: str = Field(default="", description="Convex deploy key")
    storage_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Max seconds to wait on a storage call before treating it as unavailable",
    )

    # Upstream platforms
    upstream_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Max seconds to wait on a single platform fetch",
    )
    reddit_user_agent: str = Field(default="Flare/1.0", description="User-Agent sent to Reddit")
    youtube_api_key: str = Field(default="", description="YouTube Data API key")
    youtube_region_code: str = Field(default="US", description="Region for YouTube trending chart")
    google_trends_geo: str = Field(default="US", description="Region for Google Trends RSS")
    enabled_platforms: List[str] = Field(
        default_factory=lambda: ["reddit", "hackernews", "youtube", "google"],
        description="Platforms fetched for the trending feed",
    )
    reddit_limit: int = Field(default=25, ge=1, le=100, description="Posts fetched from r/popular")
    hackernews_limit: int = Field(default=25, ge=1, le=100, description="Top stories fetched from HN")
    youtube_limit: int = Field(default=20, ge=1, le=50, description="Videos fetched from YouTube")
    google_trends_limit: int = Field(default=15, ge=1, le=50, description="Searches read from Google Trends")
    local_subreddits: List[str] = Field(
        default_factory=list,
        description="Subreddits merged into the local feed when \"local\" is enabled",
    )

    # Cache Settings
    flare_score_cache_ttl_seconds: int = Field(default=60, ge=1, description="Flare score cache TTL")
    trending_cache_ttl_seconds: int = Field(default=300, ge=10, description="Trending feed cache TTL")
    max_cache_size: int = Field(default=1000, description="Maximum cache size")

    # Ranking
    learning_rate: float = Field(default=0.1, gt=0, le=1, description="Preference learning rate per vote")
    personalization_min_interactions: int = Field(
        default=5,
        ge=0,
        description="Interactions required before the feed is personalized",
    )
    exploration_window: int = Field(
        default=20,
        ge=1,
        description="Size of the feed head that exploration injects into",
    )
    flare_score_batch_limit: int = Field(default=100, ge=1, description="Max item ids per batch score lookup")

    @property
    def has_youtube_key(self) -> bool:
        return bool(self.youtube_api_key)

    @property
    def uses_convex(self) -> bool:
        return self.storage_backend.lower() == "convex"


# Global settings instance
settings = Settings()
