"""initial schema: projects, requests, engagement, roadmap board, activity log

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


request_status = sa.Enum(
    "pending",
    "backlog",
    "in_progress",
    "completed",
    "rejected",
    "duplicate",
    "archived",
    name="requeststatusenum",
)
board_column = sa.Enum("backlog", "in_progress", "released", name="boardcolumnenum")
role = sa.Enum("admin", "member", name="roleenum")
vote_type = sa.Enum("upvote", "like", name="votetypeenum")


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "project_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("role", role, nullable=False),
        sa.UniqueConstraint("project_id", "email", name="uq_project_members_project_email"),
    )

    op.create_table(
        "requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("created_by_member_id", sa.Integer(), sa.ForeignKey("project_members.id"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("priority", sa.String(length=50), nullable=True),
        sa.Column("team", sa.String(length=100), nullable=True),
        sa.Column("region", sa.String(length=100), nullable=True),
        sa.Column("status", request_status, nullable=True),
        sa.Column("merged_into_id", sa.Integer(), sa.ForeignKey("requests.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("merged_into_id IS NULL OR status = 'duplicate'", name="ck_requests_merged_is_duplicate"),
    )
    op.create_index("ix_requests_project_status", "requests", ["project_id", "status"], unique=False)

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("project_members.id"), nullable=False),
        sa.Column("type", vote_type, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("request_id", "member_id", "type", name="uq_votes_request_member_type"),
    )
    op.create_index("ix_votes_request", "votes", ["request_id"], unique=False)

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("project_members.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_comments_request", "comments", ["request_id"], unique=False)

    op.create_table(
        "roadmap_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("requests.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.Column("column", board_column, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("priority", sa.String(length=50), nullable=True),
        sa.Column("team", sa.String(length=100), nullable=True),
        sa.Column("region", sa.String(length=100), nullable=True),
        sa.Column("is_discovery", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("created_by_member_id", sa.Integer(), sa.ForeignKey("project_members.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("position >= 0", name="ck_roadmap_items_position_non_negative"),
    )
    op.create_index(
        "ix_roadmap_items_project_column_position",
        "roadmap_items",
        ["project_id", "column", "position"],
        unique=False,
    )

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("project_members.id"), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_activity_log_request", "activity_log", ["request_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activity_log_request", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_index("ix_roadmap_items_project_column_position", table_name="roadmap_items")
    op.drop_table("roadmap_items")
    op.drop_index("ix_comments_request", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_votes_request", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_requests_project_status", table_name="requests")
    op.drop_table("requests")
    op.drop_table("project_members")
    op.drop_table("projects")

    bind = op.get_bind()
    for enum_type in (vote_type, role, board_column, request_status):
        enum_type.drop(bind, checkfirst=True)
