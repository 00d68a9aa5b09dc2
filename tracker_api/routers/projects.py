from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracker_api.core.auth import AuthContext, get_auth_context
from tracker_api.core.db import get_db
from tracker_api.core.errors import ConflictError
from tracker_api.models.entities import Project, ProjectMember, RoleEnum
from tracker_api.schemas.projects import (
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberListResponse,
    ProjectMemberResponse,
    ProjectResponse,
)
from tracker_api.services.access import admin_for, member_for, require_project

router = APIRouter(prefix="/v1/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    project = Project(name=payload.name)
    db.add(project)
    db.flush()
    if ctx is not None:
        # Creator becomes the initial admin member.
        db.add(
            ProjectMember(
                project_id=project.id,
                email=ctx.email,
                display_name=ctx.email,
                role=RoleEnum.admin,
            )
        )
    db.commit()
    db.refresh(project)
    return ProjectResponse.model_validate(project, from_attributes=True)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    project = require_project(db, project_id)
    member_for(db, project_id, ctx)
    return ProjectResponse.model_validate(project, from_attributes=True)


@router.get("/{project_id}/members", response_model=ProjectMemberListResponse)
def list_members(
    project_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, project_id)
    member_for(db, project_id, ctx)
    members = db.execute(
        select(ProjectMember).where(ProjectMember.project_id == project_id).order_by(ProjectMember.id.asc())
    ).scalars().all()
    return ProjectMemberListResponse(
        items=[ProjectMemberResponse.model_validate(item, from_attributes=True) for item in members]
    )


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=201)
def add_member(
    project_id: int,
    payload: ProjectMemberCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, project_id)
    admin_for(db, project_id, ctx)
    member = ProjectMember(
        project_id=project_id,
        email=payload.email.strip().lower(),
        display_name=payload.display_name,
        role=payload.role,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("member already exists in this project") from exc
    db.refresh(member)
    return ProjectMemberResponse.model_validate(member, from_attributes=True)
