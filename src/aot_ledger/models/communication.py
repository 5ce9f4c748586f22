# src/aot_ledger/models/communication.py
"""SQLAlchemy model for threaded comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aot_ledger.db.session import Base
from aot_ledger.db.time import utcnow

from .moderation import ModerationStatus
from .types import enum_type
from .user import User


class Communication(Base):
    """Comment attached to a vote or a target.

    Replies point at their parent through ``parent_id`` and always share the
    parent's anchor.
    """

    __tablename__ = "communications"
    __table_args__ = (
        CheckConstraint(
            "(vote_id IS NULL) <> (target_id IS NULL)",
            name="ck_communications_single_anchor",
        ),
        Index("ix_communications_vote_id", "vote_id"),
        Index("ix_communications_target_id", "target_id"),
        Index("ix_communications_parent_id", "parent_id"),
        Index("ix_communications_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("communications.id"),
        nullable=True,
    )
    vote_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("votes.id", ondelete="CASCADE"),
        nullable=True,
    )
    target_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("targets.id"),
        nullable=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    character_count: Mapped[int] = mapped_column(Integer, nullable=False)

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
        """Return the id of the user who receives karma for this comment."""
        return self.user_id
