"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .targets import router as targets_router
from .votes import router as votes_router

__all__ = [
    "comments_router",
    "targets_router",
    "votes_router",
]
