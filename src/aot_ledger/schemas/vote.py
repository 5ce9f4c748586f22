"""Vote-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from aot_ledger.models import ModerationStatus


class VoteCreate(BaseModel):
    """Schema for a first score on a target.

    Scores are strict integers, so booleans and floats are refused here;
    range checks happen in the ledger so that out-of-range scores surface as
    the ledger's own error.
    """

    target_id: int
    accomplishments: int = Field(..., strict=True, description="Accomplishments score, 0-10")
    offenses: int = Field(..., strict=True, description="Offenses score, 0-10")
    explanation: str | None = Field(None, description="Free-text justification")


class VoteUpdate(BaseModel):
    """Partial update of an existing vote; unset fields are left untouched."""

    accomplishments: int | None = Field(None, strict=True)
    offenses: int | None = Field(None, strict=True)
    explanation: str | None = None


class VoteModerationUpdate(BaseModel):
    """Schema for a privileged moderation status change."""

    moderation_status: ModerationStatus


class VoteResponse(BaseModel):
    """Schema for vote information returned by the API."""

    id: int
    user_id: int
    target_id: int
    accomplishments: int
    offenses: int
    total: int
    explanation: str | None
    character_count: int
    thumbs_up: int
    thumbs_down: int
    net_karma: int
    moderation_status: ModerationStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteListResponse(BaseModel):
    """A page of votes."""

    votes: list[VoteResponse]
    total: int
    limit: int
    offset: int


VoteSortParam = Literal["recent", "highest", "lowest", "karma"]
