# src/aot_ledger/services/errors.py
"""Error kinds raised by the ledgers and the comment tree.

Every error is recoverable at the caller boundary; none signals corrupted
state. The API layer maps them to HTTP responses through ``status_code``.
"""

from __future__ import annotations

from fastapi import status


class LedgerError(Exception):
    """Base class for domain errors surfaced to callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "ledger_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or self.__class__.__doc__ or self.kind


class InvalidScoreError(LedgerError):
    """Scores must be integers between 0 and 10."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "invalid_score"


class DuplicateVoteError(LedgerError):
    """You have already voted on this target. Use update to change your vote."""

    status_code = status.HTTP_409_CONFLICT
    kind = "duplicate_vote"


class ContentTooLongError(LedgerError):
    """Content exceeds the character limit for your tier."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "content_too_long"

    def __init__(self, limit: int, message: str | None = None) -> None:
        super().__init__(message or f"Content exceeds character limit of {limit} for your tier")
        self.limit = limit


class ExplanationTooLongError(ContentTooLongError):
    """Explanation exceeds the character limit for your tier."""

    kind = "explanation_too_long"

    def __init__(self, limit: int) -> None:
        super().__init__(limit, f"Explanation exceeds character limit of {limit}")


class EmptyContentError(LedgerError):
    """Comment content cannot be empty."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "empty_content"


class NotFoundError(LedgerError):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ForbiddenError(LedgerError):
    """You can only change your own content."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class SelfVoteForbiddenError(LedgerError):
    """You cannot vote on your own content."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "self_vote_forbidden"


class ParentNotFoundError(LedgerError):
    """Parent comment not found."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "parent_not_found"


class CrossThreadReplyError(LedgerError):
    """Reply must be on the same thread as its parent."""

    kind = "cross_thread_reply"


class InvalidAnchorError(LedgerError):
    """Comment must be attached to exactly one of a vote or a target."""

    kind = "invalid_anchor"
