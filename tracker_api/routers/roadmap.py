from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tracker_api.core.auth import AuthContext, get_auth_context, require_roadmap_enabled
from tracker_api.core.db import get_db
from tracker_api.models.entities import RoadmapItem
from tracker_api.schemas.roadmap import (
    BoardResponse,
    ExplicitBoardEntry,
    RoadmapItemCreate,
    RoadmapItemResponse,
    RoadmapItemUpdate,
    RoadmapMove,
    RoadmapPromote,
    SyncedBoardEntry,
)
from tracker_api.services import roadmap as roadmap_service
from tracker_api.services.access import admin_for, member_for, require_project, require_roadmap_item
from tracker_api.services.board import BoardEntry, Explicit, build_board
from tracker_api.services.promote import promote_request
from tracker_api.services.unit_of_work import run_atomic

router = APIRouter(prefix="/v1/roadmap", tags=["roadmap"], dependencies=[Depends(require_roadmap_enabled)])


def _to_response(item: RoadmapItem) -> RoadmapItemResponse:
    return RoadmapItemResponse.model_validate(item, from_attributes=True)


def _to_entry(entry: BoardEntry) -> ExplicitBoardEntry | SyncedBoardEntry:
    if isinstance(entry, Explicit):
        return ExplicitBoardEntry(
            **_to_response(entry.item).model_dump(),
            request_status=entry.request_status,
        )
    request = entry.request
    return SyncedBoardEntry(
        request_id=request.id,
        column=entry.column,
        title=request.title,
        description=request.description,
        category=request.category,
        priority=request.priority,
        team=request.team,
        region=request.region,
        status=request.status.value,
        created_by_name=entry.created_by_name,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


@router.get("", response_model=BoardResponse)
def get_board(
    project_id: int = Query(),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, project_id)
    member_for(db, project_id, ctx)
    board = build_board(db, project_id)
    return BoardResponse(**{column.value: [_to_entry(entry) for entry in entries] for column, entries in board.items()})


@router.post("", response_model=RoadmapItemResponse, status_code=201)
def create_roadmap_item(
    payload: RoadmapItemCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, payload.project_id)
    actor_id = admin_for(db, payload.project_id, ctx)
    item = run_atomic(
        db,
        lambda: roadmap_service.create_item(
            db,
            payload.project_id,
            title=payload.title,
            description=payload.description,
            category=payload.category,
            priority=payload.priority,
            team=payload.team,
            region=payload.region,
            request_id=payload.request_id,
            column=payload.column,
            position=payload.position,
            is_discovery=payload.is_discovery,
            actor_member_id=actor_id,
        ),
        label="roadmap.create",
    )
    db.refresh(item)
    return _to_response(item)


@router.post("/promote", response_model=RoadmapItemResponse, status_code=201)
def promote_roadmap_request(
    payload: RoadmapPromote,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, payload.project_id)
    actor_id = admin_for(db, payload.project_id, ctx)
    item = run_atomic(
        db,
        lambda: promote_request(
            db,
            payload.project_id,
            payload.request_id,
            column=payload.column,
            position=payload.position,
            actor_member_id=actor_id,
        ),
        label="roadmap.promote",
    )
    db.refresh(item)
    return _to_response(item)


@router.patch("/{item_id}", response_model=RoadmapItemResponse)
def update_roadmap_item(
    item_id: int,
    payload: RoadmapItemUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    item = require_roadmap_item(db, item_id)
    admin_for(db, item.project_id, ctx)
    changes = payload.model_dump(exclude_unset=True)
    item = run_atomic(db, lambda: roadmap_service.update_item(db, item_id, changes), label="roadmap.update")
    db.refresh(item)
    return _to_response(item)


@router.patch("/{item_id}/move", response_model=RoadmapItemResponse)
def move_roadmap_item(
    item_id: int,
    payload: RoadmapMove,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    item = require_roadmap_item(db, item_id)
    actor_id = admin_for(db, item.project_id, ctx)
    item = run_atomic(
        db,
        lambda: roadmap_service.move_item(db, item_id, payload.column, payload.position, actor_member_id=actor_id),
        label="roadmap.move",
    )
    db.refresh(item)
    return _to_response(item)


@router.delete("/{item_id}", status_code=204)
def delete_roadmap_item(
    item_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    item = require_roadmap_item(db, item_id)
    admin_for(db, item.project_id, ctx)
    run_atomic(db, lambda: roadmap_service.delete_item(db, item_id), label="roadmap.delete")
