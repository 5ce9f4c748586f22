# src/aot_ledger/models/user.py
"""SQLAlchemy model for voters, authors and their running counters."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from aot_ledger.db.session import Base
from aot_ledger.db.time import utcnow

from .types import enum_type


class UserType(StrEnum):
    """Voter class; drives the master/auth aggregate segments."""

    ANONYMOUS = "anonymous"
    REGISTERED = "registered"
    AUTHENTICATED = "authenticated"


class SubscriptionTier(StrEnum):
    """Paid plan, T1 being the free plan."""

    T1 = "T1"
    T2 = "T2"
    T3 = "T3"
    T4 = "T4"
    T5 = "T5"


class UserRole(StrEnum):
    """Site role; moderators and admins may act on other users' content."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(Base):
    """Account record with the counters maintained by the ledgers."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_type: Mapped[UserType] = mapped_column(
        enum_type(UserType), nullable=False, default=UserType.ANONYMOUS
    )
    subscription_tier: Mapped[SubscriptionTier] = mapped_column(
        enum_type(SubscriptionTier), nullable=False, default=SubscriptionTier.T1
    )
    role: Mapped[UserRole] = mapped_column(enum_type(UserRole), nullable=False, default=UserRole.USER)

    # Accumulator of karma received as an author; mutated alongside each karma transaction.
    karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_privileged(self) -> bool:
        """Return True for roles allowed to remove other users' content."""
        return self.role in (UserRole.MODERATOR, UserRole.ADMIN)
