# src/aot_ledger/models/karma.py
"""Ledger rows for up/down judgments on votes and comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from aot_ledger.db.session import Base
from aot_ledger.db.time import utcnow


class KarmaTransaction(Base):
    """One user's current judgment of one votable item.

    Exactly one of ``vote_id`` and ``communication_id`` is set; the unique
    constraints keep one row per judge and item.
    """

    __tablename__ = "karma_transactions"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_karma_value"),
        CheckConstraint(
            "(vote_id IS NULL) <> (communication_id IS NULL)",
            name="ck_karma_single_item",
        ),
        UniqueConstraint("from_user_id", "vote_id", name="uq_karma_from_vote"),
        UniqueConstraint("from_user_id", "communication_id", name="uq_karma_from_communication"),
        Index("ix_karma_from_user_id", "from_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    to_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    vote_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("votes.id", ondelete="CASCADE"),
        nullable=True,
    )
    communication_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("communications.id", ondelete="CASCADE"),
        nullable=True,
    )

    # 1 = thumbs up, -1 = thumbs down.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
