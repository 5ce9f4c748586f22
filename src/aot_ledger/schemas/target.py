"""Target aggregate and history schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from aot_ledger.models import TargetType


class TargetResponse(BaseModel):
    """A target with its denormalized aggregate fields."""

    id: int
    slug: str
    name: str
    target_type: TargetType
    short_description: str | None
    avg_accomplishments: Decimal
    avg_offenses: Decimal
    avg_total: Decimal
    master_accomplishments: Decimal | None
    master_offenses: Decimal | None
    master_total: Decimal | None
    auth_accomplishments: Decimal | None
    auth_offenses: Decimal | None
    auth_total: Decimal | None
    total_votes: int
    anonymous_votes: int
    registered_votes: int
    authenticated_votes: int

    model_config = ConfigDict(from_attributes=True)


class VotingHistoryResponse(BaseModel):
    """One daily aggregate snapshot."""

    snapshot_date: date
    avg_accomplishments: Decimal
    avg_offenses: Decimal
    avg_total: Decimal
    total_votes: int
    master_total: Decimal | None
    auth_total: Decimal | None

    model_config = ConfigDict(from_attributes=True)
