"""
Roadmap board read model.

A board entry is either an explicit ``RoadmapItem`` or a ``Synced`` projection
of a request that has no card yet. Each eligible request shows up exactly
once: as its card when it has one, as a projection otherwise. Projections are
appended after every explicit card of their column.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker_api.models.entities import BoardColumnEnum, ProjectMember, Request, RoadmapItem
from tracker_api.services.column_sync import UNBOARDED_STATUSES, column_for_status


@dataclass(frozen=True)
class Explicit:
    item: RoadmapItem
    request_status: str | None = None


@dataclass(frozen=True)
class Synced:
    request: Request
    column: BoardColumnEnum
    created_by_name: str | None = None


BoardEntry = Explicit | Synced


def _explicit_entries(db: Session, project_id: int) -> list[Explicit]:
    rows = db.execute(
        select(RoadmapItem, Request.status)
        .outerjoin(Request, Request.id == RoadmapItem.request_id)
        .where(RoadmapItem.project_id == project_id)
        .order_by(RoadmapItem.position.asc(), RoadmapItem.id.asc())
    ).all()
    return [Explicit(item=item, request_status=status.value if status is not None else None) for item, status in rows]


def _synced_entries(db: Session, project_id: int, linked_request_ids: set[int]) -> list[Synced]:
    # Linked ids come from the explicit read, so each request lands in exactly one of the two lists.
    rows = db.execute(
        select(Request, ProjectMember.display_name)
        .outerjoin(ProjectMember, ProjectMember.id == Request.created_by_member_id)
        .where(
            Request.project_id == project_id,
            Request.status.not_in(sorted(UNBOARDED_STATUSES)),
            Request.id.not_in(sorted(linked_request_ids)),
        )
        .order_by(Request.created_at.desc(), Request.id.desc())
    ).all()
    return [Synced(request=request, column=column_for_status(request.status), created_by_name=name) for request, name in rows]


def build_board(db: Session, project_id: int) -> dict[BoardColumnEnum, list[BoardEntry]]:
    board: dict[BoardColumnEnum, list[BoardEntry]] = {column: [] for column in BoardColumnEnum}
    explicit = _explicit_entries(db, project_id)
    for entry in explicit:
        board[entry.item.column].append(entry)
    linked_request_ids = {entry.item.request_id for entry in explicit if entry.item.request_id is not None}
    for entry in _synced_entries(db, project_id, linked_request_ids):
        board[entry.column].append(entry)
    return board
