# src/aot_ledger/services/voting.py
"""Vote ledger: one Accomplishments/Offenses score per user and target."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aot_ledger.core.settings import settings
from aot_ledger.models import ModerationStatus, Target, User, Vote
from aot_ledger.services.aggregation import AggregationEngine, VoteContribution
from aot_ledger.services.comments import CommentTreeService
from aot_ledger.services.errors import (
    DuplicateVoteError,
    ExplanationTooLongError,
    ForbiddenError,
    InvalidScoreError,
    NotFoundError,
)
from aot_ledger.services.karma import KarmaLedger
from aot_ledger.services.tiers import exceeds_limit, limit_for_user

logger = logging.getLogger(__name__)

VoteSort = Literal["recent", "highest", "lowest", "karma"]

_UPDATABLE_FIELDS = frozenset({"accomplishments", "offenses", "explanation"})


def validate_score(value: object) -> bool:
    """Return True for integers inside the configured score range."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return settings.score_min <= value <= settings.score_max


def calculate_total(accomplishments: int, offenses: int) -> int:
    """Return T = A - O."""
    return accomplishments - offenses


def _check_explanation(user: User, explanation: str | None) -> None:
    limit = limit_for_user(user, "explanation")
    if exceeds_limit(explanation, limit):
        raise ExplanationTooLongError(limit)  # type: ignore[arg-type]


class VoteLedger:
    """Creates, updates and deletes score votes and keeps aggregates current."""

    def __init__(
        self,
        db: Session,
        aggregation: AggregationEngine | None = None,
        comments: CommentTreeService | None = None,
        karma: KarmaLedger | None = None,
    ) -> None:
        self.db = db
        self.aggregation = aggregation or AggregationEngine(db)
        self.karma = karma or KarmaLedger(db)
        self.comments = comments or CommentTreeService(db, karma=self.karma)

    def submit(
        self,
        user: User,
        target_id: int,
        accomplishments: int,
        offenses: int,
        explanation: str | None = None,
    ) -> Vote:
        """Record a user's first score for a target.

        Raises:
            InvalidScoreError: If either score is outside the allowed range.
            ExplanationTooLongError: If the explanation exceeds the user's tier limit.
            NotFoundError: If the target does not exist.
            DuplicateVoteError: If the user already voted on the target.
        """
        if not validate_score(accomplishments) or not validate_score(offenses):
            raise InvalidScoreError()
        _check_explanation(user, explanation)

        if self.db.get(Target, target_id) is None:
            raise NotFoundError("Target not found")

        existing = self.get_for_target(user.id, target_id)
        if existing is not None:
            raise DuplicateVoteError()

        vote = Vote(
            user_id=user.id,
            target_id=target_id,
            accomplishments=accomplishments,
            offenses=offenses,
            total=calculate_total(accomplishments, offenses),
            voter_type=user.user_type,
            explanation=explanation or None,
            character_count=len(explanation or ""),
            moderation_status=ModerationStatus.APPROVED,
        )
        try:
            with self.db.begin_nested():
                self.db.add(vote)
                self.db.flush()
        except IntegrityError as err:
            # A concurrent submission for the same pair won the unique index.
            raise DuplicateVoteError() from err

        user.total_votes = (user.total_votes or 0) + 1
        self.db.flush()

        self.aggregation.refresh(target_id, None, VoteContribution.of(vote))
        self.db.commit()
        logger.debug("User %s voted on target %s (vote %s)", user.id, target_id, vote.id)
        return vote

    def update(self, vote_id: int, user: User, changes: Mapping[str, Any]) -> Vote:
        """Apply a partial change to the caller's own vote.

        ``changes`` may hold ``accomplishments``, ``offenses`` and
        ``explanation``; other keys are ignored.

        Raises:
            NotFoundError: If the vote does not exist.
            ForbiddenError: If the caller does not own the vote.
            InvalidScoreError: If a supplied score is out of range.
            ExplanationTooLongError: If the explanation exceeds the current tier limit.
        """
        vote = self._get_for_update(vote_id)
        if vote.user_id != user.id:
            raise ForbiddenError("You can only update your own votes")

        changes = {key: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
        for key in ("accomplishments", "offenses"):
            if key in changes and not validate_score(changes[key]):
                raise InvalidScoreError(f"{key.capitalize()} must be an integer between "
                                        f"{settings.score_min} and {settings.score_max}")
        if "explanation" in changes:
            _check_explanation(user, changes["explanation"])

        before = VoteContribution.of(vote)

        vote.voter_type = user.user_type
        vote.accomplishments = changes.get("accomplishments", vote.accomplishments)
        vote.offenses = changes.get("offenses", vote.offenses)
        vote.total = calculate_total(vote.accomplishments, vote.offenses)
        if "explanation" in changes:
            explanation = changes["explanation"] or None
            vote.explanation = explanation
            vote.character_count = len(explanation or "")
        self.db.flush()

        self.aggregation.refresh(vote.target_id, before, VoteContribution.of(vote))
        self.db.commit()
        return vote

    def delete(self, vote_id: int, user: User, is_privileged: bool = False) -> None:
        """Remove a vote with its comment threads and karma.

        Raises:
            NotFoundError: If the vote does not exist.
            ForbiddenError: If the caller neither owns the vote nor is privileged.
        """
        vote = self._get_for_update(vote_id)
        if not is_privileged and vote.user_id != user.id:
            raise ForbiddenError("You can only delete your own votes")

        owner = vote.user
        target_id = vote.target_id
        before = VoteContribution.of(vote)

        self.comments.delete_threads_for_vote(vote.id)
        self.karma.purge_for_vote(vote.id)
        self.db.delete(vote)
        owner.total_votes = max((owner.total_votes or 0) - 1, 0)
        self.db.flush()

        self.aggregation.refresh(target_id, before, None)
        self.db.commit()
        logger.info("Vote %s on target %s deleted by user %s", vote_id, target_id, user.id)

    def set_moderation_status(self, vote_id: int, moderation_status: ModerationStatus) -> Vote:
        """Move a vote between moderation states and refresh the target.

        Raises:
            NotFoundError: If the vote does not exist.
        """
        vote = self._get_for_update(vote_id)
        before = VoteContribution.of(vote)
        vote.moderation_status = moderation_status
        vote.voter_type = vote.user.user_type
        self.db.flush()

        self.aggregation.refresh(vote.target_id, before, VoteContribution.of(vote))
        self.db.commit()
        logger.info("Vote %s moderation status set to %s", vote_id, moderation_status.value)
        return vote

    def get(self, vote_id: int) -> Vote:
        """Return a vote by id.

        Raises:
            NotFoundError: If the vote does not exist.
        """
        vote = self.db.get(Vote, vote_id)
        if vote is None:
            raise NotFoundError("Vote not found")
        return vote

    def get_for_target(self, user_id: int, target_id: int) -> Vote | None:
        """Return the user's vote on a target, if any."""
        return self.db.query(Vote).filter(
            Vote.user_id == user_id,
            Vote.target_id == target_id,
        ).first()

    def list_votes(
        self,
        *,
        target_id: int | None = None,
        user_id: int | None = None,
        sort: VoteSort = "recent",
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Vote], int]:
        """Return a page of votes and the total number of matches."""
        query = self.db.query(Vote)
        if target_id is not None:
            query = query.filter(Vote.target_id == target_id)
        if user_id is not None:
            query = query.filter(Vote.user_id == user_id)

        total = query.with_entities(func.count(Vote.id)).scalar() or 0

        order_by = {
            "highest": desc(Vote.total),
            "lowest": asc(Vote.total),
            "karma": desc(Vote.net_karma),
        }.get(sort, desc(Vote.created_at))
        limit = max(0, min(limit, settings.vote_list_max_limit))
        votes = query.order_by(order_by, desc(Vote.id)).offset(max(offset, 0)).limit(limit).all()
        return votes, total

    def _get_for_update(self, vote_id: int) -> Vote:
        vote = self.db.query(Vote).filter(Vote.id == vote_id).with_for_update().first()
        if vote is None:
            raise NotFoundError("Vote not found")
        return vote
