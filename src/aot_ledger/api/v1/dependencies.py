"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from aot_ledger.core.security import decode_subject
from aot_ledger.db.session import get_db
from aot_ledger.models import User
from aot_ledger.services import (
    AggregationEngine,
    CommentTreeService,
    KarmaLedger,
    VoteLedger,
)

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user_id = decode_subject(credentials.credentials)
    except (JWTError, ValueError) as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def require_privileged(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Allow only moderators and admins through."""
    if not user.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator privileges required",
        )
    return user


def get_vote_ledger(db: SessionDep) -> VoteLedger:
    """Return a vote ledger bound to the request session."""
    return VoteLedger(db)


def get_karma_ledger(db: SessionDep) -> KarmaLedger:
    """Return a karma ledger bound to the request session."""
    return KarmaLedger(db)


def get_comment_service(db: SessionDep) -> CommentTreeService:
    """Return a comment tree service bound to the request session."""
    return CommentTreeService(db)


def get_aggregation_engine(db: SessionDep) -> AggregationEngine:
    """Return an aggregation engine bound to the request session."""
    return AggregationEngine(db)


# Type aliases for dependency injection
CurrentUserDep = Annotated[User, Depends(get_current_user)]
PrivilegedUserDep = Annotated[User, Depends(require_privileged)]
VoteLedgerDep = Annotated[VoteLedger, Depends(get_vote_ledger)]
KarmaLedgerDep = Annotated[KarmaLedger, Depends(get_karma_ledger)]
CommentServiceDep = Annotated[CommentTreeService, Depends(get_comment_service)]
AggregationDep = Annotated[AggregationEngine, Depends(get_aggregation_engine)]
