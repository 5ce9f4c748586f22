# src/aot_ledger/services/karma.py
"""Karma ledger: togglable up/down judgments on votes and comments.

Each (judge, item) pair is a three-state machine. Submitting a value either
creates a judgment, toggles an identical one off, or switches an opposite one
in place. Counter deltas are always derived from the transaction row observed
under lock, never from what the client believes the prior state was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum, StrEnum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aot_ledger.models import Communication, KarmaTransaction, User, Vote
from aot_ledger.services.errors import NotFoundError, SelfVoteForbiddenError

logger = logging.getLogger(__name__)


class VotableKind(StrEnum):
    """Entity kinds that accept karma judgments."""

    VOTE = "vote"
    COMMENT = "comment"


class JudgmentState(IntEnum):
    """Current judgment of one user on one item; the value is its karma weight."""

    NONE = 0
    UP = 1
    DOWN = -1


@dataclass(frozen=True)
class VotableRef:
    """Identifies one votable item."""

    kind: VotableKind
    item_id: int

    @classmethod
    def vote(cls, vote_id: int) -> VotableRef:
        return cls(VotableKind.VOTE, vote_id)

    @classmethod
    def comment(cls, communication_id: int) -> VotableRef:
        return cls(VotableKind.COMMENT, communication_id)


@dataclass(frozen=True)
class Transition:
    """Outcome of submitting a value in a given state."""

    action: str
    new_state: JudgmentState
    thumbs_up: int
    thumbs_down: int


# (observed state, submitted state) -> transition
TRANSITIONS: dict[tuple[JudgmentState, JudgmentState], Transition] = {
    (JudgmentState.NONE, JudgmentState.UP): Transition("created", JudgmentState.UP, 1, 0),
    (JudgmentState.NONE, JudgmentState.DOWN): Transition("created", JudgmentState.DOWN, 0, 1),
    (JudgmentState.UP, JudgmentState.UP): Transition("removed", JudgmentState.NONE, -1, 0),
    (JudgmentState.DOWN, JudgmentState.DOWN): Transition("removed", JudgmentState.NONE, 0, -1),
    (JudgmentState.UP, JudgmentState.DOWN): Transition("switched", JudgmentState.DOWN, -1, 1),
    (JudgmentState.DOWN, JudgmentState.UP): Transition("switched", JudgmentState.UP, 1, -1),
}


@dataclass(frozen=True)
class KarmaResult:
    """Judgment state and item counters after a submission."""

    action: str
    value: int | None
    thumbs_up: int
    thumbs_down: int
    net_karma: int


class KarmaLedger:
    """Applies judgments and keeps item and author counters in step."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def submit(self, user: User, ref: VotableRef, value: int) -> KarmaResult:
        """Submit a +1/-1 judgment on a vote or comment.

        Raises:
            ValueError: If ``value`` is not 1 or -1.
            NotFoundError: If the item does not exist.
            SelfVoteForbiddenError: If the caller authored the item.
        """
        if value not in (1, -1):
            raise ValueError("Value must be 1 (thumbs up) or -1 (thumbs down)")
        submitted = JudgmentState(value)

        item = self._load_item(ref)
        if item.author_id == user.id:
            raise SelfVoteForbiddenError()

        try:
            with self.db.begin_nested():
                transition = self._apply(user, ref, item, submitted)
        except IntegrityError:
            # A concurrent first judgment landed between our read and insert;
            # replay against the row that now exists.
            logger.info("Karma insert race for user %s on %s %s; retrying", user.id, ref.kind, ref.item_id)
            with self.db.begin_nested():
                transition = self._apply(user, ref, item, submitted)

        self.db.commit()
        return KarmaResult(
            action=transition.action,
            value=int(transition.new_state) or None,
            thumbs_up=item.thumbs_up,
            thumbs_down=item.thumbs_down,
            net_karma=item.net_karma,
        )

    def get_user_judgment(self, user_id: int, ref: VotableRef) -> int | None:
        """Return the user's current value on an item, or None."""
        existing = self._find(user_id, ref)
        return existing.value if existing is not None else None

    def purge_for_vote(self, vote_id: int) -> int:
        """Delete every judgment on a vote; returns the number removed."""
        return (
            self.db.query(KarmaTransaction)
            .filter(KarmaTransaction.vote_id == vote_id)
            .delete()
        )

    def purge_for_comments(self, communication_ids: Iterable[int]) -> int:
        """Delete every judgment on the given comments; returns the number removed."""
        ids = list(communication_ids)
        if not ids:
            return 0
        return (
            self.db.query(KarmaTransaction)
            .filter(KarmaTransaction.communication_id.in_(ids))
            .delete()
        )

    def _apply(
        self,
        user: User,
        ref: VotableRef,
        item: Vote | Communication,
        submitted: JudgmentState,
    ) -> Transition:
        existing = self._find(user.id, ref, lock=True)
        observed = JudgmentState(existing.value) if existing is not None else JudgmentState.NONE
        transition = TRANSITIONS[(observed, submitted)]

        if transition.new_state == JudgmentState.NONE:
            self.db.delete(existing)
        elif existing is None:
            self.db.add(self._new_transaction(user, ref, item, transition.new_state))
        else:
            existing.value = int(transition.new_state)

        delta = int(transition.new_state) - int(observed)
        item.thumbs_up = max(item.thumbs_up + transition.thumbs_up, 0)
        item.thumbs_down = max(item.thumbs_down + transition.thumbs_down, 0)
        item.net_karma += delta

        author = self.db.get(User, item.author_id, with_for_update=True)
        if author is not None:
            author.karma += delta
        self.db.flush()
        return transition

    def _new_transaction(
        self,
        user: User,
        ref: VotableRef,
        item: Vote | Communication,
        state: JudgmentState,
    ) -> KarmaTransaction:
        return KarmaTransaction(
            from_user_id=user.id,
            to_user_id=item.author_id,
            vote_id=ref.item_id if ref.kind == VotableKind.VOTE else None,
            communication_id=ref.item_id if ref.kind == VotableKind.COMMENT else None,
            value=int(state),
        )

    def _find(self, user_id: int, ref: VotableRef, lock: bool = False) -> KarmaTransaction | None:
        query = self.db.query(KarmaTransaction).filter(KarmaTransaction.from_user_id == user_id)
        if ref.kind == VotableKind.VOTE:
            query = query.filter(KarmaTransaction.vote_id == ref.item_id)
        else:
            query = query.filter(KarmaTransaction.communication_id == ref.item_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def _load_item(self, ref: VotableRef) -> Vote | Communication:
        model = Vote if ref.kind == VotableKind.VOTE else Communication
        item = self.db.query(model).filter(model.id == ref.item_id).with_for_update().first()
        if item is None:
            label = "Vote" if ref.kind == VotableKind.VOTE else "Comment"
            raise NotFoundError(f"{label} not found")
        return item
