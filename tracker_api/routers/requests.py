from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker_api.core.auth import AuthContext, get_auth_context
from tracker_api.core.db import get_db
from tracker_api.models.entities import ActivityLogEntry, Comment, ProjectMember, Request, VoteTypeEnum
from tracker_api.schemas.requests import (
    ActivityListResponse,
    ActivityResponse,
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    MergeRequest,
    MergeResponse,
    RequestCreate,
    RequestListResponse,
    RequestResponse,
    RequestStatusUpdate,
    VoteCreate,
    VoteResponse,
)
from tracker_api.services import feature_requests
from tracker_api.services.access import admin_for, member_for, require_project, require_request
from tracker_api.services.merge import merge_requests
from tracker_api.services.unit_of_work import run_atomic

router = APIRouter(prefix="/v1/requests", tags=["requests"])


def _to_response(db: Session, request: Request) -> RequestResponse:
    counts = feature_requests.aggregates_for(db, [request.id])[request.id]
    return RequestResponse(
        id=request.id,
        project_id=request.project_id,
        created_by_member_id=request.created_by_member_id,
        title=request.title,
        description=request.description,
        category=request.category,
        priority=request.priority,
        team=request.team,
        region=request.region,
        status=request.status,
        merged_into_id=request.merged_into_id,
        upvote_count=counts.upvote_count,
        like_count=counts.like_count,
        comment_count=counts.comment_count,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def _acting_member_id(db: Session, project_id: int, ctx: AuthContext | None, fallback: int | None) -> int:
    member = member_for(db, project_id, ctx)
    if member is not None:
        return member.id
    if fallback is None:
        raise HTTPException(status_code=400, detail="member_id is required when auth is disabled")
    candidate = db.get(ProjectMember, fallback)
    if candidate is None or candidate.project_id != project_id:
        raise HTTPException(status_code=400, detail="member_id must belong to the request project")
    return candidate.id


@router.get("", response_model=RequestListResponse)
def list_requests(
    project_id: int = Query(),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, project_id)
    member_for(db, project_id, ctx)
    requests = db.execute(
        select(Request).where(Request.project_id == project_id).order_by(Request.created_at.desc(), Request.id.desc())
    ).scalars().all()
    return RequestListResponse(items=[_to_response(db, item) for item in requests])


@router.post("", response_model=RequestResponse, status_code=201)
def create_request(
    payload: RequestCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    require_project(db, payload.project_id)
    created_by_member_id = None
    if ctx is not None or payload.created_by_member_id is not None:
        created_by_member_id = _acting_member_id(db, payload.project_id, ctx, payload.created_by_member_id)
    request = Request(
        project_id=payload.project_id,
        created_by_member_id=created_by_member_id,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        team=payload.team,
        region=payload.region,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return _to_response(db, request)


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    member_for(db, request.project_id, ctx)
    return _to_response(db, request)


@router.delete("/{request_id}", status_code=204)
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    admin_for(db, request.project_id, ctx)
    run_atomic(db, lambda: feature_requests.delete_request(db, request_id), label="requests.delete")


@router.post("/{request_id}/status", response_model=RequestResponse)
def update_request_status(
    request_id: int,
    payload: RequestStatusUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    actor_id = admin_for(db, request.project_id, ctx)
    request = run_atomic(
        db,
        lambda: feature_requests.change_status(db, request_id, payload.status, actor_member_id=actor_id),
        label="requests.status",
    )
    db.refresh(request)
    return _to_response(db, request)


@router.post("/{request_id}/merge", response_model=MergeResponse)
def merge_request(
    request_id: int,
    payload: MergeRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    source = require_request(db, request_id)
    actor_id = admin_for(db, source.project_id, ctx)
    outcome = run_atomic(
        db,
        lambda: merge_requests(
            db,
            request_id,
            payload.target_id,
            merge_votes=payload.merge_votes,
            merge_comments=payload.merge_comments,
            actor_member_id=actor_id,
        ),
        label="requests.merge",
    )
    db.refresh(outcome.source)
    return MergeResponse(
        source=_to_response(db, outcome.source),
        target_id=outcome.target.id,
        merge_votes=outcome.merge_votes,
        merge_comments=outcome.merge_comments,
        votes_transferred=outcome.votes_transferred,
        votes_removed=outcome.votes_removed,
        comments_transferred=outcome.comments_transferred,
    )


@router.post("/{request_id}/votes", response_model=VoteResponse, status_code=201)
def cast_vote(
    request_id: int,
    payload: VoteCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    member_id = _acting_member_id(db, request.project_id, ctx, payload.member_id)
    vote = run_atomic(
        db,
        lambda: feature_requests.cast_vote(db, request_id, member_id, payload.type),
        label="requests.vote",
    )
    db.refresh(vote)
    return VoteResponse.model_validate(vote, from_attributes=True)


@router.delete("/{request_id}/votes/{vote_type}", status_code=204)
def withdraw_vote(
    request_id: int,
    vote_type: VoteTypeEnum,
    member_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    acting_id = _acting_member_id(db, request.project_id, ctx, member_id)
    run_atomic(
        db,
        lambda: feature_requests.withdraw_vote(db, request_id, acting_id, vote_type),
        label="requests.unvote",
    )


@router.get("/{request_id}/comments", response_model=CommentListResponse)
def list_comments(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    member_for(db, request.project_id, ctx)
    comments = db.execute(
        select(Comment).where(Comment.request_id == request_id).order_by(Comment.created_at.asc(), Comment.id.asc())
    ).scalars().all()
    return CommentListResponse(items=[CommentResponse.model_validate(item, from_attributes=True) for item in comments])


@router.post("/{request_id}/comments", response_model=CommentResponse, status_code=201)
def add_comment(
    request_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    member_id = _acting_member_id(db, request.project_id, ctx, payload.member_id)
    comment = run_atomic(
        db,
        lambda: feature_requests.add_comment(db, request_id, member_id, payload.content),
        label="requests.comment",
    )
    db.refresh(comment)
    return CommentResponse.model_validate(comment, from_attributes=True)


@router.get("/{request_id}/activity", response_model=ActivityListResponse)
def list_activity(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext | None = Depends(get_auth_context),
):
    request = require_request(db, request_id)
    member_for(db, request.project_id, ctx)
    entries = db.execute(
        select(ActivityLogEntry)
        .where(ActivityLogEntry.request_id == request_id)
        .order_by(ActivityLogEntry.created_at.asc(), ActivityLogEntry.id.asc())
    ).scalars().all()
    return ActivityListResponse(items=[ActivityResponse.model_validate(item, from_attributes=True) for item in entries])
