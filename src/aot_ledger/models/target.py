# src/aot_ledger/models/target.py
"""Models for scored subjects and their denormalized aggregates."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from aot_ledger.db.session import Base
from aot_ledger.db.time import utcnow

from .types import enum_type
from .user import UserType


class TargetType(StrEnum):
    """Kind of subject being scored."""

    PERSON = "person"
    COUNTRY = "country"
    IDEA = "idea"
    OTHER = "other"


class Target(Base):
    """A scored subject.

    Every column below ``target_type`` is owned by the aggregation engine and
    must equal a pure function of the target's approved votes.
    """

    __tablename__ = "targets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    target_type: Mapped[TargetType] = mapped_column(
        enum_type(TargetType), nullable=False, default=TargetType.PERSON
    )
    short_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Mean over all approved votes; zero when there are none.
    avg_accomplishments: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False, default=0)
    avg_offenses: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False, default=0)
    avg_total: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)

    # Registered + authenticated voters; null when that segment is empty.
    master_accomplishments: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    master_offenses: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    master_total: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    # Authenticated voters only; null when that segment is empty.
    auth_accomplishments: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    auth_offenses: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    auth_total: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    anonymous_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registered_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    authenticated_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class TargetTally(Base):
    """Running sums of approved votes for one voter class on one target."""

    __tablename__ = "target_tally"

    target_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("targets.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_type: Mapped[UserType] = mapped_column(enum_type(UserType), primary_key=True)

    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sum_accomplishments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sum_offenses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sum_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class VotingHistory(Base):
    """Daily aggregate snapshot used for charting.

    One row per target and calendar day, overwritten by every recompute that day.
    """

    __tablename__ = "voting_history"
    __table_args__ = (
        UniqueConstraint("target_id", "snapshot_date", name="uq_voting_history_target_day"),
        Index("ix_voting_history_target_date", "target_id", "snapshot_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("targets.id", ondelete="CASCADE"),
        nullable=False,
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)

    avg_accomplishments: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False)
    avg_offenses: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False)
    avg_total: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False)
    master_total: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    auth_total: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
