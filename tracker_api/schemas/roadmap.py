from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from tracker_api.models.entities import BoardColumnEnum


class RoadmapItemCreate(BaseModel):
    project_id: int
    request_id: int | None = Field(default=None, gt=0)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=50)
    priority: str | None = Field(default=None, max_length=50)
    team: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)
    column: BoardColumnEnum = BoardColumnEnum.backlog
    position: int | None = None
    is_discovery: bool = False


class RoadmapItemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=50)
    priority: str | None = Field(default=None, max_length=50)
    team: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)
    is_discovery: bool | None = None


class RoadmapMove(BaseModel):
    column: BoardColumnEnum
    position: int


class RoadmapPromote(BaseModel):
    project_id: int
    request_id: int = Field(gt=0)
    column: BoardColumnEnum = BoardColumnEnum.backlog
    position: int = 0


class RoadmapItemResponse(BaseModel):
    id: int
    project_id: int
    request_id: int | None
    column: BoardColumnEnum
    position: int
    title: str
    description: str | None
    category: str | None
    priority: str | None
    team: str | None
    region: str | None
    is_discovery: bool
    created_by_member_id: int | None
    created_at: datetime
    updated_at: datetime


class ExplicitBoardEntry(RoadmapItemResponse):
    source: Literal["roadmap"] = "roadmap"
    request_status: str | None = None


class SyncedBoardEntry(BaseModel):
    source: Literal["request"] = "request"
    request_id: int
    column: BoardColumnEnum
    position: None = None
    title: str
    description: str | None
    category: str | None
    priority: str | None
    team: str | None
    region: str | None
    status: str
    created_by_name: str | None
    created_at: datetime
    updated_at: datetime


BoardEntryResponse = Annotated[Union[ExplicitBoardEntry, SyncedBoardEntry], Field(discriminator="source")]


class BoardResponse(BaseModel):
    backlog: list[BoardEntryResponse]
    in_progress: list[BoardEntryResponse]
    released: list[BoardEntryResponse]
