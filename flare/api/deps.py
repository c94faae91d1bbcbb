"""
Request dependencies.

Identity comes from the upstream authentication provider, which forwards
the verified user id in the ``X-User-Id`` header.
"""

from typing import Optional

from fastapi import Depends, Header

from ..errors import Unauthenticated
from ..services.engine import FeedEngine, get_engine
from ..services.trending.service import TrendingService

_trending_service: Optional[TrendingService] = None


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> Optional[str]:
    """Current user id, or None for anonymous requests."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


async def require_user(user_id: Optional[str] = Depends(get_current_user)) -> str:
    """Require an identity for mutations."""
    if not user_id:
        raise Unauthenticated()
    return user_id


def engine_dependency() -> FeedEngine:
    return get_engine()


def get_trending_service() -> TrendingService:
    global _trending_service
    if _trending_service is None:
        _trending_service = TrendingService()
    return _trending_service
