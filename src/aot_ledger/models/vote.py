# src/aot_ledger/models/vote.py
"""Models capturing score votes on targets."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aot_ledger.db.session import Base
from aot_ledger.db.time import utcnow

from .moderation import ModerationStatus
from .types import enum_type
from .user import User, UserType


class Vote(Base):
    """One user's Accomplishments/Offenses judgment of a target."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("user_id", "target_id", name="uq_votes_user_target"),
        CheckConstraint("total = accomplishments - offenses", name="ck_votes_total"),
        Index("ix_votes_target_id", "target_id"),
        Index("ix_votes_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    target_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("targets.id", ondelete="CASCADE"),
        nullable=False,
    )

    accomplishments: Mapped[int] = mapped_column(Integer, nullable=False)
    offenses: Mapped[int] = mapped_column(Integer, nullable=False)
    # Stored for query efficiency; always accomplishments - offenses.
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    # Voter class the vote is currently tallied under; resynced by every recompute.
    voter_type: Mapped[UserType] = mapped_column(
        enum_type(UserType), nullable=False, default=UserType.ANONYMOUS
    )

    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    character_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Owned by the karma ledger.
    thumbs_up: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    thumbs_down: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    moderation_status: Mapped[ModerationStatus] = mapped_column(
        enum_type(ModerationStatus), nullable=False, default=ModerationStatus.APPROVED
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship("User")

    @property
    def author_id(self) -> int:
        """Return the id of the user who receives karma for this vote."""
        return self.user_id
