"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aot_ledger.models import ModerationStatus, UserType


class CommentCreate(BaseModel):
    """Schema for a new comment or reply."""

    content: str = Field(..., min_length=1, description="Comment text; length is capped by the author's tier")
    vote_id: int | None = None
    target_id: int | None = None
    parent_id: int | None = None

    @model_validator(mode="after")
    def _require_single_anchor(self) -> CommentCreate:
        if (self.vote_id is None) == (self.target_id is None):
            raise ValueError("Must provide either vote_id or target_id")
        return self


class CommentUpdate(BaseModel):
    """Schema for editing a comment."""

    content: str = Field(..., min_length=1, description="Comment text; length is capped by the author's tier")


class CommentAuthor(BaseModel):
    """Public author fields shown next to a comment."""

    id: int
    display_name: str | None
    user_type: UserType
    karma: int

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    """A comment with its reply count and any loaded replies."""

    id: int
    content: str
    character_count: int
    thumbs_up: int
    thumbs_down: int
    net_karma: int
    vote_id: int | None
    target_id: int | None
    parent_id: int | None
    moderation_status: ModerationStatus
    created_at: datetime
    updated_at: datetime
    user: CommentAuthor
    reply_count: int = 0
    replies: list[CommentResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(BaseModel):
    """A page of top-level comments (or replies to one parent)."""

    comments: list[CommentResponse]
    total: int
