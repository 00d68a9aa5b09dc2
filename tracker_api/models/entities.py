from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tracker_api.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoleEnum(str, Enum):
    admin = "admin"
    member = "member"


class RequestStatusEnum(str, Enum):
    pending = "pending"
    backlog = "backlog"
    in_progress = "in_progress"
    completed = "completed"
    rejected = "rejected"
    duplicate = "duplicate"
    archived = "archived"


class BoardColumnEnum(str, Enum):
    backlog = "backlog"
    in_progress = "in_progress"
    released = "released"


class VoteTypeEnum(str, Enum):
    upvote = "upvote"
    like = "like"


request_status_sql_enum = SqlEnum(
    RequestStatusEnum,
    name="requeststatusenum",
    values_callable=lambda enum_cls: [item.value for item in enum_cls],
)
board_column_sql_enum = SqlEnum(
    BoardColumnEnum,
    name="boardcolumnenum",
    values_callable=lambda enum_cls: [item.value for item in enum_cls],
)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class ProjectMember(Base):
    __tablename__ = "project_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[RoleEnum] = mapped_column(SqlEnum(RoleEnum), nullable=False, default=RoleEnum.member)

    __table_args__ = (UniqueConstraint("project_id", "email", name="uq_project_members_project_email"),)


class Request(Base):
    __tablename__ = "requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    created_by_member_id: Mapped[int | None] = mapped_column(ForeignKey("project_members.id"))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(50))
    priority: Mapped[str | None] = mapped_column(String(50))
    team: Mapped[str | None] = mapped_column(String(100))
    region: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[RequestStatusEnum] = mapped_column(request_status_sql_enum, default=RequestStatusEnum.pending)
    merged_into_id: Mapped[int | None] = mapped_column(ForeignKey("requests.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "merged_into_id IS NULL OR status = 'duplicate'",
            name="ck_requests_merged_is_duplicate",
        ),
    )


class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(ForeignKey("requests.id"), nullable=False)
    member_id: Mapped[int] = mapped_column(ForeignKey("project_members.id"), nullable=False)
    type: Mapped[VoteTypeEnum] = mapped_column(SqlEnum(VoteTypeEnum), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (UniqueConstraint("request_id", "member_id", "type", name="uq_votes_request_member_type"),)


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(ForeignKey("requests.id"), nullable=False)
    member_id: Mapped[int] = mapped_column(ForeignKey("project_members.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)


class RoadmapItem(Base):
    __tablename__ = "roadmap_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    # At most one explicit card per request.
    request_id: Mapped[int | None] = mapped_column(ForeignKey("requests.id", ondelete="CASCADE"), unique=True)
    column: Mapped[BoardColumnEnum] = mapped_column(board_column_sql_enum, nullable=False, default=BoardColumnEnum.backlog)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(50))
    priority: Mapped[str | None] = mapped_column(String(50))
    team: Mapped[str | None] = mapped_column(String(100))
    region: Mapped[str | None] = mapped_column(String(100))
    is_discovery: Mapped[bool] = mapped_column(Boolean, default=False)
    created_by_member_id: Mapped[int | None] = mapped_column(ForeignKey("project_members.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (CheckConstraint("position >= 0", name="ck_roadmap_items_position_non_negative"),)


class ActivityLogEntry(Base):
    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(ForeignKey("requests.id"), nullable=False)
    member_id: Mapped[int | None] = mapped_column(ForeignKey("project_members.id"))
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


Index("ix_requests_project_status", Request.project_id, Request.status)
Index("ix_roadmap_items_project_column_position", RoadmapItem.project_id, RoadmapItem.column, RoadmapItem.position)
Index("ix_votes_request", Vote.request_id)
Index("ix_comments_request", Comment.request_id)
Index("ix_activity_log_request", ActivityLogEntry.request_id, ActivityLogEntry.created_at)
