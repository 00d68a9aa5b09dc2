from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracker_api.core.errors import ConflictError, NotFoundError, ValidationError
from tracker_api.models.entities import BoardColumnEnum, Request, RoadmapItem
from tracker_api.services.access import require_roadmap_item
from tracker_api.services.column_sync import sync_request_to_column
from tracker_api.services.positions import (
    apply_shifts,
    check_target_position,
    column_count,
    column_positions,
    next_position,
    plan_insert,
    plan_move,
    plan_removal,
)
from tracker_api.services.unit_of_work import lock_board, lock_requests

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "category", "priority", "team", "region", "is_discovery")


def _locked_item(db: Session, item_id: int) -> RoadmapItem:
    project_id = require_roadmap_item(db, item_id).project_id
    lock_board(db, project_id)
    item = db.get(RoadmapItem, item_id, populate_existing=True)
    if item is None:
        raise NotFoundError("roadmap item")
    return item


def lock_linked_request(db: Session, request_id: int, project_id: int) -> Request:
    """Row-lock a request whose status a card placement will set; the board lock is taken first."""
    request = lock_requests(db, [request_id]).get(request_id)
    if request is None or request.project_id != project_id:
        raise NotFoundError("request")
    return request


def find_item_for_request(db: Session, request_id: int) -> RoadmapItem | None:
    return db.execute(select(RoadmapItem).where(RoadmapItem.request_id == request_id)).scalar_one_or_none()


def ensure_request_unlinked(db: Session, request_id: int) -> None:
    if find_item_for_request(db, request_id) is not None:
        raise ConflictError("request is already a roadmap item")


def flush_new_item(db: Session, item: RoadmapItem) -> RoadmapItem:
    db.add(item)
    try:
        db.flush()
    except IntegrityError as exc:
        if item.request_id is not None:
            raise ConflictError("request is already a roadmap item") from exc
        raise
    return item


def open_slot(db: Session, project_id: int, column: BoardColumnEnum, position: int | None) -> int:
    """Reserve ``position`` in ``column`` (appending when ``None``) and return it."""
    if position is None:
        return next_position(column_positions(db, project_id, column))
    check_target_position(position, column_count(db, project_id, column))
    apply_shifts(db, project_id, plan_insert(column, position))
    return position


def create_item(
    db: Session,
    project_id: int,
    *,
    title: str,
    description: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    team: str | None = None,
    region: str | None = None,
    request_id: int | None = None,
    column: BoardColumnEnum = BoardColumnEnum.backlog,
    position: int | None = None,
    is_discovery: bool = False,
    actor_member_id: int | None = None,
) -> RoadmapItem:
    lock_board(db, project_id)

    request: Request | None = None
    if request_id is not None:
        request = lock_linked_request(db, request_id, project_id)
        ensure_request_unlinked(db, request_id)

    slot = open_slot(db, project_id, column, position)
    item = flush_new_item(
        db,
        RoadmapItem(
            project_id=project_id,
            request_id=request_id,
            column=column,
            position=slot,
            title=title,
            description=description,
            category=category,
            priority=priority,
            team=team,
            region=region,
            is_discovery=is_discovery,
            created_by_member_id=actor_member_id,
        ),
    )
    if request is not None:
        sync_request_to_column(db, request, column, actor_member_id)
        db.flush()

    logger.info("roadmap item %s created in project %s at %s/%s", item.id, project_id, column.value, slot)
    return item


def move_item(
    db: Session,
    item_id: int,
    column: BoardColumnEnum,
    position: int,
    actor_member_id: int | None = None,
) -> RoadmapItem:
    item = _locked_item(db, item_id)
    old_column, old_position = item.column, item.position

    slots = column_count(db, item.project_id, column)
    if column == old_column:
        slots -= 1
    check_target_position(position, slots)

    if column == old_column and position == old_position:
        return item

    request: Request | None = None
    if column != old_column and item.request_id is not None:
        request = lock_requests(db, [item.request_id]).get(item.request_id)

    apply_shifts(db, item.project_id, plan_move(old_column, old_position, column, position))
    item.column = column
    item.position = position

    if request is not None:
        sync_request_to_column(db, request, column, actor_member_id)

    db.flush()
    logger.info(
        "roadmap item %s moved %s/%s -> %s/%s",
        item.id,
        old_column.value,
        old_position,
        column.value,
        position,
    )
    return item


def update_item(db: Session, item_id: int, changes: dict[str, Any]) -> RoadmapItem:
    item = require_roadmap_item(db, item_id)
    updates = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    if not updates:
        raise ValidationError("no fields to update")
    if "title" in updates and not updates["title"]:
        raise ValidationError("title cannot be empty")
    if updates.get("is_discovery", False) is None:
        updates["is_discovery"] = False
    for key, value in updates.items():
        setattr(item, key, value)
    db.flush()
    return item


def remove_item(db: Session, item: RoadmapItem) -> None:
    """Delete a card and close its gap; the caller holds the board lock."""
    apply_shifts(db, item.project_id, plan_removal(item.column, item.position))
    db.delete(item)
    db.flush()


def delete_item(db: Session, item_id: int) -> None:
    item = _locked_item(db, item_id)
    column, position = item.column, item.position
    remove_item(db, item)
    logger.info("roadmap item %s deleted from %s/%s", item_id, column.value, position)
