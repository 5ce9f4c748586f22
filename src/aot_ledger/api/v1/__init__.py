"""Version 1 API endpoints."""

from .endpoints import comments_router, targets_router, votes_router

__all__ = [
    "comments_router",
    "targets_router",
    "votes_router",
]
