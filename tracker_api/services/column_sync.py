"""
Board column <-> request status mapping.

This module is the only place either table lives. Writes go column -> status
(placing a linked card moves its request); the board read model goes
status -> column when projecting un-boarded requests.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tracker_api.models.entities import ActivityLogEntry, BoardColumnEnum, Request, RequestStatusEnum

logger = logging.getLogger(__name__)

COLUMN_TO_STATUS: dict[BoardColumnEnum, RequestStatusEnum] = {
    BoardColumnEnum.backlog: RequestStatusEnum.backlog,
    BoardColumnEnum.in_progress: RequestStatusEnum.in_progress,
    BoardColumnEnum.released: RequestStatusEnum.completed,
}

STATUS_TO_COLUMN: dict[RequestStatusEnum, BoardColumnEnum] = {
    RequestStatusEnum.pending: BoardColumnEnum.backlog,
    RequestStatusEnum.backlog: BoardColumnEnum.backlog,
    RequestStatusEnum.in_progress: BoardColumnEnum.in_progress,
    RequestStatusEnum.completed: BoardColumnEnum.released,
}

# Requests in these states never get a synthetic card.
UNBOARDED_STATUSES = frozenset({RequestStatusEnum.rejected, RequestStatusEnum.duplicate, RequestStatusEnum.archived})

STATUS_CHANGE_ACTION = "status_change"


def status_for_column(column: BoardColumnEnum) -> RequestStatusEnum:
    return COLUMN_TO_STATUS[column]


def column_for_status(status: RequestStatusEnum) -> BoardColumnEnum:
    return STATUS_TO_COLUMN.get(status, BoardColumnEnum.backlog)


def record_status_change(
    db: Session,
    request: Request,
    new_status: RequestStatusEnum,
    actor_member_id: int | None,
) -> ActivityLogEntry:
    entry = ActivityLogEntry(
        request_id=request.id,
        member_id=actor_member_id,
        action=STATUS_CHANGE_ACTION,
        old_value=request.status.value if request.status is not None else None,
        new_value=new_status.value,
    )
    request.status = new_status
    db.add(entry)
    return entry


def sync_request_to_column(
    db: Session,
    request: Request,
    column: BoardColumnEnum,
    actor_member_id: int | None,
) -> ActivityLogEntry | None:
    """Apply the column's status to a linked request and log the transition."""
    if request.merged_into_id is not None:
        # Merged requests stay duplicate; their leftover card moves on its own.
        logger.info("request %s is merged into %s, status left as duplicate", request.id, request.merged_into_id)
        return None
    return record_status_change(db, request, status_for_column(column), actor_member_id)
