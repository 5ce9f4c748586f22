"""SQLAlchemy models for the AOT Ledger service."""

from .communication import Communication
from .karma import KarmaTransaction
from .moderation import ModerationStatus
from .target import Target, TargetTally, TargetType, VotingHistory
from .user import SubscriptionTier, User, UserRole, UserType
from .vote import Vote

__all__ = [
    "Communication",
    "KarmaTransaction",
    "ModerationStatus",
    "Target", "TargetTally", "TargetType", "VotingHistory",
    "SubscriptionTier", "User", "UserRole", "UserType",
    "Vote",
]
