from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from tracker_api.models.entities import RequestStatusEnum, VoteTypeEnum


class RequestCreate(BaseModel):
    project_id: int
    created_by_member_id: int | None = None
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=50)
    priority: str | None = Field(default=None, max_length=50)
    team: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)


class RequestStatusUpdate(BaseModel):
    status: RequestStatusEnum


class RequestResponse(BaseModel):
    id: int
    project_id: int
    created_by_member_id: int | None
    title: str
    description: str | None
    category: str | None
    priority: str | None
    team: str | None
    region: str | None
    status: RequestStatusEnum
    merged_into_id: int | None
    upvote_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime


class RequestListResponse(BaseModel):
    items: list[RequestResponse]


class VoteCreate(BaseModel):
    type: VoteTypeEnum
    member_id: int | None = None


class VoteResponse(BaseModel):
    id: int
    request_id: int
    member_id: int
    type: VoteTypeEnum
    created_at: datetime


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    member_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    request_id: int
    member_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class CommentListResponse(BaseModel):
    items: list[CommentResponse]


class ActivityResponse(BaseModel):
    id: int
    request_id: int
    member_id: int | None
    action: str
    old_value: str | None
    new_value: str | None
    created_at: datetime


class ActivityListResponse(BaseModel):
    items: list[ActivityResponse]


class MergeRequest(BaseModel):
    target_id: int = Field(gt=0)
    merge_votes: bool = True
    merge_comments: bool = False


class MergeResponse(BaseModel):
    message: str = "request merged successfully"
    source: RequestResponse
    target_id: int
    merge_votes: bool
    merge_comments: bool
    votes_transferred: int
    votes_removed: int
    comments_transferred: int
