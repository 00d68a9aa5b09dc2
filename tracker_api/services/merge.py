"""
Fold a duplicate request into a canonical one.

Votes are unioned (a member's upvote on both sides stays a single upvote on the
target), comments can follow the source, and the source is marked duplicate
with a permanent ``merged_into_id``. Both requests get an activity row. The
source request and any roadmap card pointing at it are left in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from tracker_api.core.config import settings
from tracker_api.core.errors import NotFoundError, ValidationError
from tracker_api.models.entities import ActivityLogEntry, Comment, Request, RequestStatusEnum, Vote
from tracker_api.services.unit_of_work import lock_requests

logger = logging.getLogger(__name__)

MERGE_ACTION = "merge"
MERGE_RECEIVED_ACTION = "merge_received"


@dataclass(frozen=True)
class MergeOutcome:
    source: Request
    target: Request
    merge_votes: bool
    merge_comments: bool
    votes_transferred: int = 0
    votes_removed: int = 0
    comments_transferred: int = 0


def _transfer_votes(db: Session, source_id: int, target_id: int) -> tuple[int, int]:
    source_votes = db.execute(select(Vote).where(Vote.request_id == source_id)).scalars().all()
    existing = {
        (member_id, vote_type)
        for member_id, vote_type in db.execute(
            select(Vote.member_id, Vote.type).where(Vote.request_id == target_id)
        ).all()
    }

    transferred = 0
    for vote in source_votes:
        key = (vote.member_id, vote.type)
        if key in existing:
            continue
        db.add(Vote(request_id=target_id, member_id=vote.member_id, type=vote.type))
        existing.add(key)
        transferred += 1

    db.execute(delete(Vote).where(Vote.request_id == source_id).execution_options(synchronize_session="fetch"))
    return transferred, len(source_votes)


def _transfer_comments(db: Session, source_id: int, target_id: int) -> int:
    comment_ids = db.execute(select(Comment.id).where(Comment.request_id == source_id)).scalars().all()
    if comment_ids:
        db.execute(
            update(Comment)
            .where(Comment.id.in_(comment_ids))
            .values(request_id=target_id)
            .execution_options(synchronize_session="fetch")
        )
    return len(comment_ids)


def merge_requests(
    db: Session,
    source_id: int,
    target_id: int,
    *,
    merge_votes: bool = True,
    merge_comments: bool = False,
    actor_member_id: int | None = None,
) -> MergeOutcome:
    if source_id == target_id:
        raise ValidationError("cannot merge a request into itself")

    locked = lock_requests(db, [source_id, target_id])
    source = locked.get(source_id)
    target = locked.get(target_id)
    if source is None:
        raise NotFoundError("source request")
    if target is None or target.project_id != source.project_id:
        raise NotFoundError("target request")
    # Checked under the lock so a retried or concurrent merge cannot transfer twice.
    if source.merged_into_id is not None:
        raise ValidationError("source request is already merged")
    if target.merged_into_id is not None and not settings.merge_allow_duplicate_target:
        raise ValidationError("target request is itself merged into another request")

    votes_transferred = votes_removed = comments_transferred = 0
    if merge_votes:
        votes_transferred, votes_removed = _transfer_votes(db, source.id, target.id)
    if merge_comments:
        comments_transferred = _transfer_comments(db, source.id, target.id)

    old_status = source.status
    source.status = RequestStatusEnum.duplicate
    source.merged_into_id = target.id

    db.add_all(
        [
            ActivityLogEntry(
                request_id=source.id,
                member_id=actor_member_id,
                action=MERGE_ACTION,
                old_value=old_status.value,
                new_value=f"merged into #{target.id}",
            ),
            ActivityLogEntry(
                request_id=target.id,
                member_id=actor_member_id,
                action=MERGE_RECEIVED_ACTION,
                old_value=None,
                new_value=f"merged from #{source.id}",
            ),
        ]
    )
    db.flush()

    logger.info(
        "request %s merged into %s (votes +%d/-%d, comments %d)",
        source.id,
        target.id,
        votes_transferred,
        votes_removed,
        comments_transferred,
    )
    return MergeOutcome(
        source=source,
        target=target,
        merge_votes=merge_votes,
        merge_comments=merge_comments,
        votes_transferred=votes_transferred,
        votes_removed=votes_removed,
        comments_transferred=comments_transferred,
    )
