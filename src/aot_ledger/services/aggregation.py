# src/aot_ledger/services/aggregation.py
"""Aggregate maintenance for target scores.

Each target carries three families of means (all voters, master voters and
authenticated voters) plus exact counts per voter class. The summary is a
pure function of the target's approved votes, so it can always be rebuilt by
``recompute``. When ``AGGREGATION_INCREMENTAL`` is enabled the ledger instead
applies one vote's contribution as a delta to per-class running sums and
derives the summary from those sums; ``recompute`` then doubles as the
reconciliation pass that corrects any drift.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aot_ledger.core.settings import settings
from aot_ledger.db.time import utctoday
from aot_ledger.models import (
    ModerationStatus,
    Target,
    TargetTally,
    User,
    UserType,
    Vote,
    VotingHistory,
)
from aot_ledger.services.errors import NotFoundError

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")
MASTER_CLASSES = (UserType.REGISTERED, UserType.AUTHENTICATED)
AUTH_CLASSES = (UserType.AUTHENTICATED,)


@dataclass
class SegmentSums:
    """Running sums for one voter class."""

    count: int = 0
    accomplishments: int = 0
    offenses: int = 0
    total: int = 0

    def apply(self, contribution: VoteContribution, sign: int = 1) -> None:
        self.count += sign
        self.accomplishments += sign * contribution.accomplishments
        self.offenses += sign * contribution.offenses
        self.total += sign * contribution.total


@dataclass(frozen=True)
class VoteContribution:
    """What a single approved vote adds to its voter class's sums."""

    user_type: UserType
    accomplishments: int
    offenses: int
    total: int

    @classmethod
    def of(cls, vote: Vote) -> VoteContribution | None:
        """Return the vote's contribution under its recorded voter class.

        Returns None if the vote does not aggregate.
        """
        if vote.moderation_status != ModerationStatus.APPROVED:
            return None
        return cls(
            user_type=vote.voter_type,
            accomplishments=vote.accomplishments,
            offenses=vote.offenses,
            total=vote.total,
        )


@dataclass(frozen=True)
class SegmentMeans:
    accomplishments: Decimal
    offenses: Decimal
    total: Decimal


@dataclass(frozen=True)
class TargetSummary:
    """Denormalized aggregate values written to a target."""

    overall: SegmentMeans
    master: SegmentMeans | None
    auth: SegmentMeans | None
    counts: Mapping[UserType, int] = field(default_factory=dict)

    @property
    def total_votes(self) -> int:
        return sum(self.counts.values())


def _mean(value: int, count: int) -> Decimal:
    return (Decimal(value) / Decimal(count)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _segment_means(tallies: Mapping[UserType, SegmentSums], classes: tuple[UserType, ...]) -> SegmentMeans | None:
    combined = SegmentSums()
    for user_type in classes:
        sums = tallies.get(user_type)
        if sums is None:
            continue
        combined.count += sums.count
        combined.accomplishments += sums.accomplishments
        combined.offenses += sums.offenses
        combined.total += sums.total
    if combined.count <= 0:
        return None
    return SegmentMeans(
        accomplishments=_mean(combined.accomplishments, combined.count),
        offenses=_mean(combined.offenses, combined.count),
        total=_mean(combined.total, combined.count),
    )


def summarise(tallies: Mapping[UserType, SegmentSums]) -> TargetSummary:
    """Derive the target summary from per-class sums.

    With no approved votes the overall means fall back to zero while the
    master and auth means are None.
    """
    zero = Decimal("0.00")
    overall = _segment_means(tallies, tuple(UserType)) or SegmentMeans(zero, zero, zero)
    counts = {user_type: max(tallies[user_type].count, 0) if user_type in tallies else 0 for user_type in UserType}
    return TargetSummary(
        overall=overall,
        master=_segment_means(tallies, MASTER_CLASSES),
        auth=_segment_means(tallies, AUTH_CLASSES),
        counts=counts,
    )


class AggregationEngine:
    """Keeps a target's aggregate fields and daily snapshot current."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def recompute(self, target_id: int) -> TargetSummary:
        """Rebuild a target's aggregates from every approved vote.

        Votes are classed by their author's current ``user_type``; any vote
        whose recorded ``voter_type`` lags behind is brought up to date so the
        running sums and later deltas agree with this rebuild. Idempotent and
        order-independent; replaying it is always safe.

        Raises:
            NotFoundError: If the target does not exist.
        """
        target = self._lock_target(target_id)

        rows = (
            self.db.query(
                Vote.id,
                Vote.voter_type,
                Vote.accomplishments,
                Vote.offenses,
                Vote.total,
                User.user_type,
            )
            .join(User, User.id == Vote.user_id)
            .filter(
                Vote.target_id == target_id,
                Vote.moderation_status == ModerationStatus.APPROVED,
            )
            .all()
        )

        tallies: dict[UserType, SegmentSums] = {user_type: SegmentSums() for user_type in UserType}
        stale: dict[UserType, list[int]] = defaultdict(list)
        for vote_id, voter_type, accomplishments, offenses, total, user_type in rows:
            tallies[user_type].apply(VoteContribution(user_type, accomplishments, offenses, total))
            if voter_type != user_type:
                stale[user_type].append(vote_id)
        for user_type, vote_ids in stale.items():
            self.db.query(Vote).filter(Vote.id.in_(vote_ids)).update(
                {Vote.voter_type: user_type}, synchronize_session="fetch"
            )

        self._store_tallies(target_id, tallies)
        summary = summarise(tallies)
        self._write(target, summary)
        logger.debug("Recomputed target %s from %d approved votes", target_id, len(rows))
        return summary

    def apply_change(
        self,
        target_id: int,
        before: VoteContribution | None,
        after: VoteContribution | None,
    ) -> TargetSummary:
        """Apply one vote's change to the running sums and re-derive the summary.

        ``before`` is what the vote contributed prior to the mutation and
        ``after`` what it contributes now; either may be None. Falls back to a
        full recompute when the target has no running sums yet.
        """
        target = self._lock_target(target_id)
        rows = {row.user_type: row for row in self._tally_rows(target_id)}
        if not rows:
            return self.recompute(target_id)

        tallies = {
            user_type: SegmentSums(
                count=row.vote_count,
                accomplishments=row.sum_accomplishments,
                offenses=row.sum_offenses,
                total=row.sum_total,
            )
            for user_type, row in rows.items()
        }
        for user_type in UserType:
            tallies.setdefault(user_type, SegmentSums())
        if before is not None:
            tallies[before.user_type].apply(before, sign=-1)
        if after is not None:
            tallies[after.user_type].apply(after)

        self._store_tallies(target_id, tallies)
        summary = summarise(tallies)
        self._write(target, summary)
        return summary

    def refresh(
        self,
        target_id: int,
        before: VoteContribution | None = None,
        after: VoteContribution | None = None,
    ) -> TargetSummary | None:
        """Bring a target's aggregates up to date after a vote mutation.

        Each attempt runs in its own savepoint. Failures are logged and
        retried; once attempts run out the previous aggregate is left in place
        and the next mutation of the target heals it. In incremental mode the
        running sums are dropped as well so that the next change rebuilds them.
        """
        attempts = settings.recompute_max_attempts
        last_error: SQLAlchemyError | None = None
        for attempt in range(1, attempts + 1):
            try:
                with self.db.begin_nested():
                    if settings.aggregation_incremental:
                        return self.apply_change(target_id, before, after)
                    return self.recompute(target_id)
            except SQLAlchemyError as exc:
                last_error = exc
                logger.warning(
                    "Aggregate refresh for target %s failed (attempt %d/%d): %s",
                    target_id,
                    attempt,
                    attempts,
                    exc,
                )
        logger.error(
            "Giving up on aggregate refresh for target %s; previous values kept",
            target_id,
            exc_info=last_error,
        )
        if settings.aggregation_incremental:
            self._discard_tallies(target_id)
        return None

    def history(self, target_id: int, limit: int | None = None) -> list[VotingHistory]:
        """Return daily snapshots oldest first, optionally only the latest ``limit`` days."""
        query = self.db.query(VotingHistory).filter(VotingHistory.target_id == target_id)
        if limit is None:
            return query.order_by(VotingHistory.snapshot_date.asc()).all()
        latest = query.order_by(VotingHistory.snapshot_date.desc()).limit(limit).all()
        return list(reversed(latest))

    def _lock_target(self, target_id: int) -> Target:
        target = (
            self.db.query(Target)
            .filter(Target.id == target_id)
            .with_for_update()
            .first()
        )
        if target is None:
            raise NotFoundError("Target not found")
        return target

    def _tally_rows(self, target_id: int) -> list[TargetTally]:
        return self.db.query(TargetTally).filter(TargetTally.target_id == target_id).all()

    def _discard_tallies(self, target_id: int) -> None:
        try:
            with self.db.begin_nested():
                self.db.query(TargetTally).filter(TargetTally.target_id == target_id).delete()
        except SQLAlchemyError:
            logger.exception("Could not discard running sums for target %s", target_id)

    def _store_tallies(self, target_id: int, tallies: Mapping[UserType, SegmentSums]) -> None:
        rows = {row.user_type: row for row in self._tally_rows(target_id)}
        for user_type, sums in tallies.items():
            row = rows.get(user_type)
            if row is None:
                row = TargetTally(target_id=target_id, user_type=user_type)
                self.db.add(row)
            row.vote_count = sums.count
            row.sum_accomplishments = sums.accomplishments
            row.sum_offenses = sums.offenses
            row.sum_total = sums.total

    def _write(self, target: Target, summary: TargetSummary) -> None:
        target.avg_accomplishments = summary.overall.accomplishments
        target.avg_offenses = summary.overall.offenses
        target.avg_total = summary.overall.total

        master = summary.master
        target.master_accomplishments = master.accomplishments if master else None
        target.master_offenses = master.offenses if master else None
        target.master_total = master.total if master else None

        auth = summary.auth
        target.auth_accomplishments = auth.accomplishments if auth else None
        target.auth_offenses = auth.offenses if auth else None
        target.auth_total = auth.total if auth else None

        target.total_votes = summary.total_votes
        target.anonymous_votes = summary.counts[UserType.ANONYMOUS]
        target.registered_votes = summary.counts[UserType.REGISTERED]
        target.authenticated_votes = summary.counts[UserType.AUTHENTICATED]

        self._upsert_snapshot(target.id, summary)
        self.db.flush()

    def _upsert_snapshot(self, target_id: int, summary: TargetSummary) -> None:
        today = utctoday()
        snapshot = (
            self.db.query(VotingHistory)
            .filter(
                VotingHistory.target_id == target_id,
                VotingHistory.snapshot_date == today,
            )
            .first()
        )
        if snapshot is None:
            snapshot = VotingHistory(target_id=target_id, snapshot_date=today)
            self.db.add(snapshot)

        snapshot.avg_accomplishments = summary.overall.accomplishments
        snapshot.avg_offenses = summary.overall.offenses
        snapshot.avg_total = summary.overall.total
        snapshot.total_votes = summary.total_votes
        snapshot.master_total = summary.master.total if summary.master else None
        snapshot.auth_total = summary.auth.total if summary.auth else None
