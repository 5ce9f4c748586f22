# src/aot_ledger/api/v1/endpoints/targets.py
"""Target aggregate endpoints for the AOT Ledger API."""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.orm import Session

from aot_ledger.api.v1.dependencies import (
    AggregationDep,
    PrivilegedUserDep,
    SessionDep,
    VoteLedgerDep,
)
from aot_ledger.models import Target
from aot_ledger.schemas import (
    TargetResponse,
    VoteListResponse,
    VoteResponse,
    VotingHistoryResponse,
)
from aot_ledger.schemas.vote import VoteSortParam

router = APIRouter(prefix="/targets", tags=["targets"])


def _get_target_or_404(db: Session, slug: str) -> Target:
    target = db.query(Target).filter(Target.slug == slug, Target.is_active.is_(True)).first()
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target not found")
    return target


@router.get("/{slug}", response_model=TargetResponse)
async def get_target(slug: str, db: SessionDep) -> Target:
    """Get a target with its aggregate scores."""
    return _get_target_or_404(db, slug)


@router.get("/{slug}/votes", response_model=VoteListResponse)
async def list_target_votes(
    slug: str,
    db: SessionDep,
    ledger: VoteLedgerDep,
    sort: VoteSortParam = Query("recent"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> VoteListResponse:
    """List the votes cast on a target."""
    target = _get_target_or_404(db, slug)
    votes, total = ledger.list_votes(target_id=target.id, sort=sort, limit=limit, offset=offset)
    return VoteListResponse(
        votes=[VoteResponse.model_validate(vote) for vote in votes],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{slug}/history", response_model=list[VotingHistoryResponse])
async def get_target_history(
    slug: str,
    db: SessionDep,
    aggregation: AggregationDep,
    days: int | None = Query(None, ge=1, le=3660, description="Only the latest N daily snapshots"),
) -> list[VotingHistoryResponse]:
    """Return the daily aggregate series for charting."""
    target = _get_target_or_404(db, slug)
    return [
        VotingHistoryResponse.model_validate(snapshot)
        for snapshot in aggregation.history(target.id, limit=days)
    ]


@router.post("/{slug}/recompute", response_model=TargetResponse)
async def recompute_target(
    slug: str,
    db: SessionDep,
    aggregation: AggregationDep,
    moderator: PrivilegedUserDep,
) -> Target:
    """Rebuild a target's aggregates from its votes."""
    target = _get_target_or_404(db, slug)
    aggregation.recompute(target.id)
    db.commit()
    db.refresh(target)
    return target
