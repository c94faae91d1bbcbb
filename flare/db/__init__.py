from typing import Optional

from ..config import settings
from .convex_client import ConvexClient, ConvexError, get_convex_client
from .convex_store import ConvexVoteStore
from .store import InMemoryVoteStore, VoteStore, guarded

_store: Optional[VoteStore] = None


def build_store() -> VoteStore:
    """Create the store selected by settings.storage_backend."""
    if settings.uses_convex:
        return ConvexVoteStore(get_convex_client())
    return InMemoryVoteStore()


def get_store() -> VoteStore:
    """Get the application store instance."""
    global _store
    if _store is None:
        _store = build_store()
    return _store


__all__ = [
    "ConvexClient",
    "ConvexError",
    "ConvexVoteStore",
    "InMemoryVoteStore",
    "VoteStore",
    "build_store",
    "get_convex_client",
    "get_store",
    "guarded",
]
