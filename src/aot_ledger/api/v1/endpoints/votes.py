# src/aot_ledger/api/v1/endpoints/votes.py
"""Vote-related endpoints for the AOT Ledger API."""

from fastapi import APIRouter, HTTPException, Query, Response, status

from aot_ledger.api.v1.dependencies import (
    CurrentUserDep,
    KarmaLedgerDep,
    PrivilegedUserDep,
    VoteLedgerDep,
)
from aot_ledger.models import Vote
from aot_ledger.schemas import (
    KarmaCreate,
    KarmaResponse,
    UserJudgmentResponse,
    VoteCreate,
    VoteListResponse,
    VoteModerationUpdate,
    VoteResponse,
    VoteUpdate,
)
from aot_ledger.schemas.vote import VoteSortParam
from aot_ledger.services import VotableRef

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def submit_vote(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    ledger: VoteLedgerDep,
) -> Vote:
    """Record the caller's first score on a target."""
    return ledger.submit(
        current_user,
        vote_data.target_id,
        vote_data.accomplishments,
        vote_data.offenses,
        vote_data.explanation,
    )


@router.get("/", response_model=VoteListResponse)
async def list_votes(
    ledger: VoteLedgerDep,
    target_id: int | None = Query(None, description="Only votes on this target"),
    user_id: int | None = Query(None, description="Only votes by this user"),
    sort: VoteSortParam = Query("recent"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> VoteListResponse:
    """List votes by target or by user."""
    if target_id is None and user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Must provide target_id or user_id",
        )
    votes, total = ledger.list_votes(
        target_id=target_id,
        user_id=user_id,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    return VoteListResponse(
        votes=[VoteResponse.model_validate(vote) for vote in votes],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{vote_id}", response_model=VoteResponse)
async def get_vote(vote_id: int, ledger: VoteLedgerDep) -> Vote:
    """Get a specific vote by ID."""
    return ledger.get(vote_id)


@router.patch("/{vote_id}", response_model=VoteResponse)
async def update_vote(
    vote_id: int,
    vote_data: VoteUpdate,
    current_user: CurrentUserDep,
    ledger: VoteLedgerDep,
) -> Vote:
    """Change the caller's own vote; only the supplied fields are touched."""
    return ledger.update(vote_id, current_user, vote_data.model_dump(exclude_unset=True))


@router.delete("/{vote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vote(
    vote_id: int,
    current_user: CurrentUserDep,
    ledger: VoteLedgerDep,
) -> Response:
    """Delete a vote; moderators may delete anyone's."""
    ledger.delete(vote_id, current_user, is_privileged=current_user.is_privileged)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{vote_id}/moderation", response_model=VoteResponse)
async def moderate_vote(
    vote_id: int,
    payload: VoteModerationUpdate,
    moderator: PrivilegedUserDep,
    ledger: VoteLedgerDep,
) -> Vote:
    """Move a vote between moderation states."""
    return ledger.set_moderation_status(vote_id, payload.moderation_status)


@router.post("/{vote_id}/karma", response_model=KarmaResponse)
async def judge_vote(
    vote_id: int,
    karma_data: KarmaCreate,
    current_user: CurrentUserDep,
    karma: KarmaLedgerDep,
) -> KarmaResponse:
    """Thumbs up/down a vote; repeating the same value removes it."""
    result = karma.submit(current_user, VotableRef.vote(vote_id), karma_data.value)
    return KarmaResponse.model_validate(result, from_attributes=True)


@router.get("/{vote_id}/karma", response_model=UserJudgmentResponse)
async def get_my_vote_judgment(
    vote_id: int,
    current_user: CurrentUserDep,
    karma: KarmaLedgerDep,
) -> UserJudgmentResponse:
    """Get the caller's current judgment on a vote."""
    return UserJudgmentResponse(
        user_vote=karma.get_user_judgment(current_user.id, VotableRef.vote(vote_id))
    )
