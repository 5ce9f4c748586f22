"""Karma judgment schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class KarmaCreate(BaseModel):
    """Schema for a thumbs up/down judgment."""

    value: Literal[-1, 1] = Field(..., description="1 for thumbs up, -1 for thumbs down")


class KarmaResponse(BaseModel):
    """Item counters after a judgment was applied."""

    action: Literal["created", "removed", "switched"]
    value: int | None
    thumbs_up: int
    thumbs_down: int
    net_karma: int


class UserJudgmentResponse(BaseModel):
    """The caller's current judgment on an item."""

    user_vote: int | None
