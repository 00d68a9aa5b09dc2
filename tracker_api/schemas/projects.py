from datetime import datetime

from pydantic import BaseModel, Field

from tracker_api.models.entities import RoleEnum


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class ProjectResponse(BaseModel):
    id: int
    name: str
    created_at: datetime


class ProjectMemberCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    display_name: str = Field(min_length=1, max_length=255)
    role: RoleEnum = RoleEnum.member


class ProjectMemberResponse(BaseModel):
    id: int
    project_id: int
    email: str
    display_name: str
    role: RoleEnum


class ProjectMemberListResponse(BaseModel):
    items: list[ProjectMemberResponse]
