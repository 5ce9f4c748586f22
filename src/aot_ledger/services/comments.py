# src/aot_ledger/services/comments.py
"""Threaded comments attached to votes and targets."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session

from aot_ledger.core.settings import settings
from aot_ledger.models import Communication, ModerationStatus, Target, User, Vote
from aot_ledger.services.errors import (
    ContentTooLongError,
    CrossThreadReplyError,
    EmptyContentError,
    ForbiddenError,
    InvalidAnchorError,
    NotFoundError,
    ParentNotFoundError,
)
from aot_ledger.services.karma import KarmaLedger
from aot_ledger.services.tiers import exceeds_limit, limit_for_user

logger = logging.getLogger(__name__)

_THREAD_ORDER = (
    Communication.net_karma.desc(),
    Communication.created_at.desc(),
    Communication.id.desc(),
)


@dataclass(frozen=True)
class CommentAnchor:
    """Thread root: exactly one of a vote or a target."""

    vote_id: int | None = None
    target_id: int | None = None

    def validate(self) -> None:
        if (self.vote_id is None) == (self.target_id is None):
            raise InvalidAnchorError()

    def matches(self, comment: Communication) -> bool:
        return comment.vote_id == self.vote_id and comment.target_id == self.target_id

    def criteria(self):
        if self.vote_id is not None:
            return Communication.vote_id == self.vote_id
        return Communication.target_id == self.target_id


@dataclass
class CommentThread:
    """A comment with its approved reply count and the replies loaded for it."""

    comment: Communication
    reply_count: int = 0
    replies: list[CommentThread] = field(default_factory=list)


def _check_content(user: User, content: str) -> str:
    stripped = content.strip()
    if not stripped:
        raise EmptyContentError()
    limit = limit_for_user(user, "comment")
    if exceeds_limit(stripped, limit):
        raise ContentTooLongError(limit)  # type: ignore[arg-type]
    return stripped


class CommentTreeService:
    """Posts, edits, deletes and lists comment threads."""

    def __init__(self, db: Session, karma: KarmaLedger | None = None) -> None:
        self.db = db
        self.karma = karma or KarmaLedger(db)

    def post(
        self,
        user: User,
        content: str,
        anchor: CommentAnchor,
        parent_id: int | None = None,
    ) -> Communication:
        """Create a comment or a reply.

        Raises:
            InvalidAnchorError: If the anchor names neither or both roots.
            EmptyContentError: If the content is blank.
            ContentTooLongError: If the content exceeds the user's tier limit.
            NotFoundError: If the anchored vote or target does not exist.
            ParentNotFoundError: If ``parent_id`` does not exist.
            CrossThreadReplyError: If the parent belongs to another thread.
        """
        anchor.validate()
        stored = _check_content(user, content)

        if anchor.vote_id is not None and self.db.get(Vote, anchor.vote_id) is None:
            raise NotFoundError("Vote not found")
        if anchor.target_id is not None and self.db.get(Target, anchor.target_id) is None:
            raise NotFoundError("Target not found")

        if parent_id is not None:
            parent = self.db.get(Communication, parent_id)
            if parent is None:
                raise ParentNotFoundError()
            if not anchor.matches(parent):
                raise CrossThreadReplyError()

        comment = Communication(
            user_id=user.id,
            content=stored,
            character_count=len(stored),
            vote_id=anchor.vote_id,
            target_id=anchor.target_id,
            parent_id=parent_id,
            moderation_status=ModerationStatus.APPROVED,
        )
        self.db.add(comment)
        user.total_comments = (user.total_comments or 0) + 1
        self.db.commit()
        return comment

    def edit(self, comment_id: int, user: User, content: str) -> Communication:
        """Replace the content of the caller's own comment.

        The limit checked is the one of the caller's tier *now*; stored
        content is never truncated.

        Raises:
            NotFoundError: If the comment does not exist.
            ForbiddenError: If the caller is not the author.
            EmptyContentError: If the content is blank.
            ContentTooLongError: If the content exceeds the current tier limit.
        """
        comment = self.get(comment_id)
        if comment.user_id != user.id:
            raise ForbiddenError("You can only edit your own comments")
        stored = _check_content(user, content)

        comment.content = stored
        comment.character_count = len(stored)
        self.db.commit()
        return comment

    def delete(self, comment_id: int, user: User, is_privileged: bool = False) -> int:
        """Delete a comment, all of its replies and their karma.

        Returns the number of comments removed.

        Raises:
            NotFoundError: If the comment does not exist.
            ForbiddenError: If the caller neither wrote it nor is privileged.
        """
        comment = self.get(comment_id)
        if not is_privileged and comment.user_id != user.id:
            raise ForbiddenError("You can only delete your own comments")

        removed = self._delete_subtrees([comment.id])
        self.db.commit()
        logger.info("Comment %s deleted by user %s with %d replies", comment_id, user.id, removed - 1)
        return removed

    def delete_threads_for_vote(self, vote_id: int) -> int:
        """Delete every comment thread anchored on a vote without committing."""
        roots = [
            comment_id
            for (comment_id,) in self.db.query(Communication.id).filter(
                Communication.vote_id == vote_id,
                Communication.parent_id.is_(None),
            )
        ]
        return self._delete_subtrees(roots)

    def get(self, comment_id: int) -> Communication:
        """Return a comment by id.

        Raises:
            NotFoundError: If the comment does not exist.
        """
        comment = self.db.get(Communication, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def list_comments(
        self,
        anchor: CommentAnchor,
        parent_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
        include_replies: bool = True,
        max_depth: int | None = None,
    ) -> tuple[list[CommentThread], int]:
        """Return a page of approved comments under ``parent_id`` and the total.

        With ``include_replies`` each node gets up to
        ``COMMENT_REPLY_PAGE_SIZE`` replies per level, for ``max_depth`` levels.
        """
        anchor.validate()
        if max_depth is None:
            max_depth = settings.comment_default_depth
        max_depth = max(0, min(max_depth, settings.comment_max_depth))
        limit = max(0, min(limit, settings.comment_list_max_limit))

        query = self._approved(anchor)
        if parent_id is None:
            query = query.filter(Communication.parent_id.is_(None))
        else:
            query = query.filter(Communication.parent_id == parent_id)

        total = query.with_entities(func.count(Communication.id)).scalar() or 0
        page = query.order_by(*_THREAD_ORDER).offset(max(offset, 0)).limit(limit).all()

        threads = [CommentThread(comment) for comment in page]
        self._attach_replies(anchor, threads, max_depth if include_replies else 0)
        return threads, total

    def _approved(self, anchor: CommentAnchor) -> Query[Communication]:
        return self.db.query(Communication).filter(
            anchor.criteria(),
            Communication.moderation_status == ModerationStatus.APPROVED,
        )

    def _attach_replies(self, anchor: CommentAnchor, level: list[CommentThread], depth: int) -> None:
        # Walks the tree one level per iteration so each level costs two queries.
        while level:
            by_id = {thread.comment.id: thread for thread in level}
            counts = self._reply_counts(anchor, by_id)
            for comment_id, thread in by_id.items():
                thread.reply_count = counts.get(comment_id, 0)
            if depth <= 0:
                return

            parents = [comment_id for comment_id in by_id if counts.get(comment_id)]
            if not parents:
                return

            next_level = []
            for reply in self._first_replies(anchor, parents):
                child = CommentThread(reply)
                by_id[reply.parent_id].replies.append(child)
                next_level.append(child)
            level = next_level
            depth -= 1

    def _reply_counts(self, anchor: CommentAnchor, parent_ids: Iterable[int]) -> dict[int, int]:
        rows = (
            self.db.query(Communication.parent_id, func.count(Communication.id))
            .filter(
                anchor.criteria(),
                Communication.parent_id.in_(list(parent_ids)),
                Communication.moderation_status == ModerationStatus.APPROVED,
            )
            .group_by(Communication.parent_id)
            .all()
        )
        return {parent_id: count for parent_id, count in rows}

    def _first_replies(self, anchor: CommentAnchor, parent_ids: list[int]) -> list[Communication]:
        rank = func.row_number().over(
            partition_by=Communication.parent_id,
            order_by=_THREAD_ORDER,
        ).label("rank")
        ranked = (
            select(Communication.id.label("id"), rank)
            .where(
                anchor.criteria(),
                Communication.parent_id.in_(parent_ids),
                Communication.moderation_status == ModerationStatus.APPROVED,
            )
            .subquery()
        )
        return (
            self.db.query(Communication)
            .join(ranked, ranked.c.id == Communication.id)
            .filter(ranked.c.rank <= settings.comment_reply_page_size)
            .order_by(Communication.parent_id, *_THREAD_ORDER)
            .all()
        )

    def _collect_levels(self, root_ids: list[int]) -> list[list[int]]:
        levels: list[list[int]] = []
        seen = set(root_ids)
        frontier = list(root_ids)
        while frontier:
            levels.append(frontier)
            children = [
                child_id
                for (child_id,) in self.db.query(Communication.id).filter(
                    Communication.parent_id.in_(frontier)
                )
            ]
            frontier = [child_id for child_id in children if child_id not in seen]
            seen.update(frontier)
        return levels

    def _delete_subtrees(self, root_ids: list[int]) -> int:
        if not root_ids:
            return 0
        levels = self._collect_levels(root_ids)
        all_ids = [comment_id for level in levels for comment_id in level]

        authors = Counter(
            user_id
            for (user_id,) in self.db.query(Communication.user_id).filter(Communication.id.in_(all_ids))
        )
        for author in self.db.query(User).filter(User.id.in_(list(authors))).with_for_update():
            author.total_comments = max((author.total_comments or 0) - authors[author.id], 0)
        self.db.flush()

        self.karma.purge_for_comments(all_ids)
        # Leaves first so no reply outlives its parent.
        for level in reversed(levels):
            self.db.query(Communication).filter(Communication.id.in_(level)).delete(
                synchronize_session="fetch"
            )
        return len(all_ids)
