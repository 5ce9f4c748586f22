"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentListResponse, CommentResponse, CommentUpdate
from .karma import KarmaCreate, KarmaResponse, UserJudgmentResponse
from .target import TargetResponse, VotingHistoryResponse
from .vote import VoteCreate, VoteListResponse, VoteModerationUpdate, VoteResponse, VoteUpdate

__all__ = [
    "CommentCreate", "CommentListResponse", "CommentResponse", "CommentUpdate",
    "KarmaCreate", "KarmaResponse", "UserJudgmentResponse",
    "TargetResponse", "VotingHistoryResponse",
    "VoteCreate", "VoteListResponse", "VoteModerationUpdate", "VoteResponse", "VoteUpdate",
]
