# src/aot_ledger/api/v1/endpoints/comments.py
"""Comment thread endpoints for the AOT Ledger API."""

from fastapi import APIRouter, HTTPException, Query, Response, status

from aot_ledger.api.v1.dependencies import (
    CommentServiceDep,
    CurrentUserDep,
    KarmaLedgerDep,
)
from aot_ledger.core.settings import settings
from aot_ledger.schemas import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    KarmaCreate,
    KarmaResponse,
    UserJudgmentResponse,
)
from aot_ledger.services import CommentAnchor, VotableRef
from aot_ledger.services.comments import CommentThread

router = APIRouter(prefix="/comments", tags=["comments"])


def _to_response(thread: CommentThread) -> CommentResponse:
    response = CommentResponse.model_validate(thread.comment)
    response.reply_count = thread.reply_count
    response.replies = [_to_response(reply) for reply in thread.replies]
    return response


@router.get("/", response_model=CommentListResponse)
async def list_comments(
    comments: CommentServiceDep,
    vote_id: int | None = Query(None),
    target_id: int | None = Query(None),
    parent_id: int | None = Query(None, description="List replies to this comment"),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    include_replies: bool = Query(True),
    max_depth: int = Query(settings.comment_default_depth, ge=0),
) -> CommentListResponse:
    """List a thread ordered by karma, then recency."""
    if (vote_id is None) == (target_id is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Must provide vote_id or target_id",
        )
    threads, total = comments.list_comments(
        CommentAnchor(vote_id=vote_id, target_id=target_id),
        parent_id=parent_id,
        limit=limit,
        offset=offset,
        include_replies=include_replies,
        max_depth=max_depth,
    )
    return CommentListResponse(comments=[_to_response(thread) for thread in threads], total=total)


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def post_comment(
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> CommentResponse:
    """Post a comment on a vote or target, or a reply to another comment."""
    comment = comments.post(
        current_user,
        comment_data.content,
        CommentAnchor(vote_id=comment_data.vote_id, target_id=comment_data.target_id),
        parent_id=comment_data.parent_id,
    )
    return CommentResponse.model_validate(comment)


@router.patch("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> CommentResponse:
    """Edit the caller's own comment."""
    comment = comments.edit(comment_id, current_user, comment_data.content)
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> Response:
    """Delete a comment and every reply beneath it."""
    comments.delete(comment_id, current_user, is_privileged=current_user.is_privileged)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{comment_id}/karma", response_model=KarmaResponse)
async def judge_comment(
    comment_id: int,
    karma_data: KarmaCreate,
    current_user: CurrentUserDep,
    karma: KarmaLedgerDep,
) -> KarmaResponse:
    """Thumbs up/down a comment; repeating the same value removes it."""
    result = karma.submit(current_user, VotableRef.comment(comment_id), karma_data.value)
    return KarmaResponse.model_validate(result, from_attributes=True)


@router.get("/{comment_id}/karma", response_model=UserJudgmentResponse)
async def get_my_comment_judgment(
    comment_id: int,
    current_user: CurrentUserDep,
    karma: KarmaLedgerDep,
) -> UserJudgmentResponse:
    """Get the caller's current judgment on a comment."""
    return UserJudgmentResponse(
        user_vote=karma.get_user_judgment(current_user.id, VotableRef.comment(comment_id))
    )
