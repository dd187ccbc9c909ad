"""contentdeck core tables

Revision ID: 20241001_0001
Revises:
Create Date: 2024-10-01

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20241001_0001"
down_revision = None
branch_labels = None
depends_on = None


def _owned_by_user() -> sa.Column:
    return sa.Column("user_id", sa.Integer(), nullable=False)


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "facebook_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _owned_by_user(),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("page_id", sa.String(length=120), nullable=True),
        sa.Column("upload_frequency", sa.Integer(), nullable=False, server_default=sa.text("60")),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_facebook_settings_user"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _owned_by_user(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("filesize", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="pending"),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "scheduled_for", name="uq_videos_user_scheduled_for"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_videos_user_status", "videos", ["user_id", "status"], unique=False)

    op.create_table(
        "captions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _owned_by_user(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_captions_user_created_at", "captions", ["user_id", "created_at"], unique=False)

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _owned_by_user(),
        sa.Column("plan", sa.String(length=32), nullable=False, server_default="trial"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("storage", sa.Integer(), nullable=False),
        sa.Column("tasks", sa.Integer(), nullable=False),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_subscriptions_user"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "usage_metrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _owned_by_user(),
        sa.Column("storage_used", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("tasks_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_usage_metrics_user"),
        sa.CheckConstraint("storage_used >= 0", name="ck_usage_metrics_storage_non_negative"),
        sqlite_autoincrement=True,
    )


def downgrade() -> None:
    op.drop_table("usage_metrics")
    op.drop_table("subscriptions")
    op.drop_index("ix_captions_user_created_at", table_name="captions")
    op.drop_table("captions")
    op.drop_index("ix_videos_user_status", table_name="videos")
    op.drop_table("videos")
    op.drop_table("facebook_settings")
    op.drop_table("users")
