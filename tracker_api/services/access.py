from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker_api.core.auth import AuthContext
from tracker_api.core.errors import ForbiddenError, NotFoundError
from tracker_api.models.entities import Project, ProjectMember, Request, RoadmapItem, RoleEnum


def get_member_by_email(db: Session, project_id: int, email: str) -> ProjectMember | None:
    return db.execute(
        select(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.email == email)
    ).scalar_one_or_none()


def require_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("project")
    return project


def require_request(db: Session, request_id: int, project_id: int | None = None) -> Request:
    request = db.get(Request, request_id)
    if request is None or (project_id is not None and request.project_id != project_id):
        raise NotFoundError("request")
    return request


def require_roadmap_item(db: Session, item_id: int) -> RoadmapItem:
    item = db.get(RoadmapItem, item_id)
    if item is None:
        raise NotFoundError("roadmap item")
    return item


def require_project_member(db: Session, project_id: int, email: str) -> ProjectMember:
    member = get_member_by_email(db, project_id, email)
    if member is None:
        raise ForbiddenError("not a member of this project")
    return member


def require_project_admin(db: Session, project_id: int, email: str) -> ProjectMember:
    member = require_project_member(db, project_id, email)
    if member.role != RoleEnum.admin:
        raise ForbiddenError("admin role required")
    return member


def member_for(db: Session, project_id: int, ctx: AuthContext | None) -> ProjectMember | None:
    """Resolve the caller as a project member; ``None`` when auth is disabled."""
    if ctx is None:
        return None
    return require_project_member(db, project_id, ctx.email)


def admin_for(db: Session, project_id: int, ctx: AuthContext | None) -> int | None:
    """Gate an admin-only mutation and return the acting member id for the activity log."""
    if ctx is None:
        return None
    return require_project_admin(db, project_id, ctx.email).id
