"""initial ledger schema

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e7a9d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(*values: str) -> sa.Enum:
    return sa.Enum(*values, native_enum=False, length=20)


USER_TYPE = ("anonymous", "registered", "authenticated")
MODERATION_STATUS = ("pending", "approved", "rejected", "dumpster")


def upgrade() -> None:
    """Create users, targets, votes, comments, karma and aggregate tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("user_type", _enum(*USER_TYPE), nullable=False),
        sa.Column("subscription_tier", _enum("T1", "T2", "T3", "T4", "T5"), nullable=False),
        sa.Column("role", _enum("user", "moderator", "admin"), nullable=False),
        sa.Column("karma", sa.Integer(), nullable=False),
        sa.Column("total_votes", sa.Integer(), nullable=False),
        sa.Column("total_comments", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "targets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("target_type", _enum("person", "country", "idea", "other"), nullable=False),
        sa.Column("short_description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("avg_accomplishments", sa.Numeric(4, 2), nullable=False),
        sa.Column("avg_offenses", sa.Numeric(4, 2), nullable=False),
        sa.Column("avg_total", sa.Numeric(5, 2), nullable=False),
        sa.Column("master_accomplishments", sa.Numeric(4, 2), nullable=True),
        sa.Column("master_offenses", sa.Numeric(4, 2), nullable=True),
        sa.Column("master_total", sa.Numeric(5, 2), nullable=True),
        sa.Column("auth_accomplishments", sa.Numeric(4, 2), nullable=True),
        sa.Column("auth_offenses", sa.Numeric(4, 2), nullable=True),
        sa.Column("auth_total", sa.Numeric(5, 2), nullable=True),
        sa.Column("total_votes", sa.Integer(), nullable=False),
        sa.Column("anonymous_votes", sa.Integer(), nullable=False),
        sa.Column("registered_votes", sa.Integer(), nullable=False),
        sa.Column("authenticated_votes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "target_tally",
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("user_type", _enum(*USER_TYPE), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("sum_accomplishments", sa.Integer(), nullable=False),
        sa.Column("sum_offenses", sa.Integer(), nullable=False),
        sa.Column("sum_total", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["target_id"], ["targets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("target_id", "user_type"),
    )
    op.create_table(
        "voting_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("avg_accomplishments", sa.Numeric(4, 2), nullable=False),
        sa.Column("avg_offenses", sa.Numeric(4, 2), nullable=False),
        sa.Column("avg_total", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_votes", sa.Integer(), nullable=False),
        sa.Column("master_total", sa.Numeric(5, 2), nullable=True),
        sa.Column("auth_total", sa.Numeric(5, 2), nullable=True),
        sa.ForeignKeyConstraint(["target_id"], ["targets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("target_id", "snapshot_date", name="uq_voting_history_target_day"),
    )
    op.create_index(
        "ix_voting_history_target_date", "voting_history", ["target_id", "snapshot_date"]
    )
    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("accomplishments", sa.Integer(), nullable=False),
        sa.Column("offenses", sa.Integer(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("voter_type", _enum(*USER_TYPE), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("character_count", sa.Integer(), nullable=False),
        sa.Column("thumbs_up", sa.Integer(), nullable=False),
        sa.Column("thumbs_down", sa.Integer(), nullable=False),
        sa.Column("net_karma", sa.Integer(), nullable=False),
        sa.Column("moderation_status", _enum(*MODERATION_STATUS), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total = accomplishments - offenses", name="ck_votes_total"),
        sa.ForeignKeyConstraint(["target_id"], ["targets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "target_id", name="uq_votes_user_target"),
    )
    op.create_index("ix_votes_target_id", "votes", ["target_id"])
    op.create_index("ix_votes_created_at", "votes", ["created_at"])
    op.create_table(
        "communications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("vote_id", sa.Integer(), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("character_count", sa.Integer(), nullable=False),
        sa.Column("thumbs_up", sa.Integer(), nullable=False),
        sa.Column("thumbs_down", sa.Integer(), nullable=False),
        sa.Column("net_karma", sa.Integer(), nullable=False),
        sa.Column("moderation_status", _enum(*MODERATION_STATUS), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(vote_id IS NULL) <> (target_id IS NULL)",
            name="ck_communications_single_anchor",
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["communications.id"]),
        sa.ForeignKeyConstraint(["target_id"], ["targets.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["vote_id"], ["votes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_communications_vote_id", "communications", ["vote_id"])
    op.create_index("ix_communications_target_id", "communications", ["target_id"])
    op.create_index("ix_communications_parent_id", "communications", ["parent_id"])
    op.create_index("ix_communications_user_id", "communications", ["user_id"])
    op.create_table(
        "karma_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_user_id", sa.Integer(), nullable=False),
        sa.Column("to_user_id", sa.Integer(), nullable=False),
        sa.Column("vote_id", sa.Integer(), nullable=True),
        sa.Column("communication_id", sa.Integer(), nullable=True),
        sa.Column("value", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("value IN (1, -1)", name="ck_karma_value"),
        sa.CheckConstraint(
            "(vote_id IS NULL) <> (communication_id IS NULL)",
            name="ck_karma_single_item",
        ),
        sa.ForeignKeyConstraint(["communication_id"], ["communications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["to_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["vote_id"], ["votes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("from_user_id", "vote_id", name="uq_karma_from_vote"),
        sa.UniqueConstraint(
            "from_user_id", "communication_id", name="uq_karma_from_communication"
        ),
    )
    op.create_index("ix_karma_from_user_id", "karma_transactions", ["from_user_id"])


def downgrade() -> None:
    """Drop every ledger table."""
    op.drop_index("ix_karma_from_user_id", table_name="karma_transactions")
    op.drop_table("karma_transactions")
    for index in (
        "ix_communications_user_id",
        "ix_communications_parent_id",
        "ix_communications_target_id",
        "ix_communications_vote_id",
    ):
        op.drop_index(index, table_name="communications")
    op.drop_table("communications")
    op.drop_index("ix_votes_created_at", table_name="votes")
    op.drop_index("ix_votes_target_id", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_voting_history_target_date", table_name="voting_history")
    op.drop_table("voting_history")
    op.drop_table("target_tally")
    op.drop_table("targets")
    op.drop_table("users")
