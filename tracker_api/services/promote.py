from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tracker_api.models.entities import BoardColumnEnum, RoadmapItem
from tracker_api.services.column_sync import sync_request_to_column
from tracker_api.services.roadmap import ensure_request_unlinked, flush_new_item, lock_linked_request, open_slot
from tracker_api.services.unit_of_work import lock_board

logger = logging.getLogger(__name__)


def promote_request(
    db: Session,
    project_id: int,
    request_id: int,
    column: BoardColumnEnum = BoardColumnEnum.backlog,
    position: int = 0,
    actor_member_id: int | None = None,
) -> RoadmapItem:
    """
    Turn a request's synthetic board entry into an explicit card.

    The card copies the request's descriptive fields as they are now; later
    edits to the request do not flow back onto the card.
    """
    lock_board(db, project_id)
    request = lock_linked_request(db, request_id, project_id)
    ensure_request_unlinked(db, request_id)

    slot = open_slot(db, project_id, column, position)
    item = flush_new_item(
        db,
        RoadmapItem(
            project_id=project_id,
            request_id=request.id,
            column=column,
            position=slot,
            title=request.title,
            description=request.description,
            category=request.category,
            priority=request.priority,
            team=request.team,
            region=request.region,
            created_by_member_id=actor_member_id,
        ),
    )
    sync_request_to_column(db, request, column, actor_member_id)
    db.flush()

    logger.info("request %s promoted to roadmap item %s at %s/%s", request.id, item.id, column.value, slot)
    return item
