from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracker_api.core.errors import ConflictError, NotFoundError, ValidationError
from tracker_api.models.entities import (
    ActivityLogEntry,
    Comment,
    Request,
    RequestStatusEnum,
    Vote,
    VoteTypeEnum,
)
from tracker_api.services.column_sync import record_status_change
from tracker_api.services.roadmap import find_item_for_request, remove_item
from tracker_api.services.unit_of_work import lock_board, lock_requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestAggregates:
    upvote_count: int = 0
    like_count: int = 0
    comment_count: int = 0


def aggregates_for(db: Session, request_ids: list[int]) -> dict[int, RequestAggregates]:
    if not request_ids:
        return {}
    votes: dict[tuple[int, VoteTypeEnum], int] = {
        (request_id, vote_type): count
        for request_id, vote_type, count in db.execute(
            select(Vote.request_id, Vote.type, func.count(Vote.id))
            .where(Vote.request_id.in_(request_ids))
            .group_by(Vote.request_id, Vote.type)
        ).all()
    }
    comments: dict[int, int] = {
        request_id: count
        for request_id, count in db.execute(
            select(Comment.request_id, func.count(Comment.id))
            .where(Comment.request_id.in_(request_ids))
            .group_by(Comment.request_id)
        ).all()
    }
    return {
        request_id: RequestAggregates(
            upvote_count=votes.get((request_id, VoteTypeEnum.upvote), 0),
            like_count=votes.get((request_id, VoteTypeEnum.like), 0),
            comment_count=comments.get(request_id, 0),
        )
        for request_id in request_ids
    }


def _locked_request(db: Session, request_id: int) -> Request:
    request = lock_requests(db, [request_id]).get(request_id)
    if request is None:
        raise NotFoundError("request")
    return request


def change_status(
    db: Session,
    request_id: int,
    status: RequestStatusEnum,
    actor_member_id: int | None = None,
) -> Request:
    request = _locked_request(db, request_id)
    if request.merged_into_id is not None:
        raise ValidationError("merged requests are terminal")
    if status == RequestStatusEnum.duplicate:
        raise ValidationError("use merge to mark a request as duplicate")
    if request.status != status:
        record_status_change(db, request, status, actor_member_id)
        db.flush()
    return request


def cast_vote(db: Session, request_id: int, member_id: int, vote_type: VoteTypeEnum) -> Vote:
    # Row lock keeps votes from landing on a request that is mid-merge.
    request = _locked_request(db, request_id)
    if request.merged_into_id is not None:
        raise ValidationError("cannot vote on a merged request")
    vote = Vote(request_id=request.id, member_id=member_id, type=vote_type)
    db.add(vote)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("vote already recorded") from exc
    return vote


def withdraw_vote(db: Session, request_id: int, member_id: int, vote_type: VoteTypeEnum) -> None:
    _locked_request(db, request_id)
    vote = db.execute(
        select(Vote).where(Vote.request_id == request_id, Vote.member_id == member_id, Vote.type == vote_type)
    ).scalar_one_or_none()
    if vote is None:
        raise NotFoundError("vote")
    db.delete(vote)
    db.flush()


def add_comment(db: Session, request_id: int, member_id: int, content: str) -> Comment:
    request = _locked_request(db, request_id)
    comment = Comment(request_id=request.id, member_id=member_id, content=content)
    db.add(comment)
    db.flush()
    return comment


def delete_request(db: Session, request_id: int) -> None:
    """
    Hard-delete a request and everything hanging off it.

    Its roadmap card goes first, through the same gap-closing removal as an
    explicit card delete, so the column stays contiguous.
    """
    request = db.get(Request, request_id)
    if request is None:
        raise NotFoundError("request")
    lock_board(db, request.project_id)
    request = _locked_request(db, request_id)

    merged_children = db.execute(select(func.count(Request.id)).where(Request.merged_into_id == request_id)).scalar_one()
    if merged_children:
        raise ConflictError("other requests are merged into this request")

    item = find_item_for_request(db, request_id)
    if item is not None:
        remove_item(db, item)

    db.execute(delete(Vote).where(Vote.request_id == request_id))
    db.execute(delete(Comment).where(Comment.request_id == request_id))
    db.execute(delete(ActivityLogEntry).where(ActivityLogEntry.request_id == request_id))
    db.delete(request)
    db.flush()
    logger.info("request %s deleted (roadmap item removed: %s)", request_id, item is not None)
