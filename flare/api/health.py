from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..services.engine import FeedEngine
from ..services.trending.service import TrendingService
from .deps import engine_dependency, get_trending_service

router = APIRouter()


@router.get("/healthz")
async def health_check(
    engine: FeedEngine = Depends(engine_dependency),
    trending: TrendingService = Depends(get_trending_service),
) -> Dict[str, Any]:
    """Health check endpoint that verifies storage reachability"""
    storage_ok = await engine.ping()
    return {
        "status": "healthy" if storage_ok else "degraded",
        "storage": "healthy" if storage_ok else "unavailable",
        "trending": trending.stats(),
    }
