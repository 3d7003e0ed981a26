"""Initial MediaSync schema

Revision ID: 3f1c9a7d2e10
Revises:
Create Date: 2026-10-01 12:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2e10"
down_revision = None
branch_labels = None
depends_on = None

MEDIA_TYPES = (
    "MOVIE",
    "SHOW",
    "ANIME",
    "MANGA",
    "MANHWA",
    "MANHUA",
    "DONGHUA",
    "GAME",
    "BOOK",
    "LIGHT_NOVEL",
    "VISUAL_NOVEL",
    "WEB_SERIES",
    "MISC",
)
MEDIA_STATUSES = (
    "PLANNED",
    "IN_PROGRESS",
    "COMPLETED",
    "ON_HOLD",
    "DROPPED",
    "REWATCHING",
    "ARCHIVED",
)
HISTORY_ACTIONS = (
    "ADDED",
    "UPDATED",
    "STATUS_CHANGE",
    "PROGRESS_UPDATE",
    "FAVORITED",
    "UNFAVORITED",
    "ARCHIVED",
    "UNARCHIVED",
    "DELETED",
)


def upgrade() -> None:
    op.create_table(
        "house_keeping",
        sa.Column("key", sa.String, primary_key=True),
        sa.Column("value", sa.String, nullable=True),
    )

    op.create_table(
        "media",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("normalized_title", sa.String, nullable=False),
        sa.Column("type", sa.Enum(*MEDIA_TYPES, name="mediatype"), nullable=False),
        sa.Column(
            "status", sa.Enum(*MEDIA_STATUSES, name="mediastatus"), nullable=False
        ),
        sa.Column("progress", sa.Integer, nullable=False),
        sa.Column("total_units", sa.Integer, nullable=False),
        sa.Column("completion_percent", sa.Float, nullable=False),
        sa.Column("is_favorite", sa.Boolean, nullable=False),
        sa.Column("is_archived", sa.Boolean, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("user_rating", sa.Float, nullable=True),
        sa.Column("api_rating", sa.Float, nullable=True),
        sa.Column("genres", sa.JSON, nullable=False),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("studios", sa.JSON, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("poster_url", sa.String, nullable=True),
        sa.Column("backdrop_url", sa.String, nullable=True),
        sa.Column("release_year", sa.Integer, nullable=True),
        sa.Column("streaming_platforms", sa.JSON, nullable=False),
        sa.Column("tmdb_id", sa.Integer, nullable=True),
        sa.Column("mal_id", sa.Integer, nullable=True),
        sa.Column("rawg_id", sa.Integer, nullable=True),
        sa.Column("google_books_id", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    for column in (
        "title",
        "normalized_title",
        "type",
        "status",
        "progress",
        "completion_percent",
        "is_favorite",
        "is_archived",
        "user_rating",
        "release_year",
        "created_at",
        "updated_at",
        "completed_at",
    ):
        op.create_index(f"ix_media_{column}", "media", [column], unique=False)

    op.create_table(
        "history",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("media_id", sa.String, nullable=False),
        sa.Column(
            "action_type",
            sa.Enum(*HISTORY_ACTIONS, name="historyaction"),
            nullable=False,
        ),
        sa.Column("value", sa.JSON, nullable=True),
        sa.Column("previous_value", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_history_media_id", "history", ["media_id"], unique=False)
    op.create_index(
        "ix_history_action_type", "history", ["action_type"], unique=False
    )
    op.create_index("ix_history_created_at", "history", ["created_at"], unique=False)

    op.create_table(
        "smart_collections",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("media_ids", sa.JSON, nullable=False),
        sa.Column("filter_criteria", sa.JSON, nullable=True),
        sa.Column("is_auto_generated", sa.Boolean, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_smart_collections_title", "smart_collections", ["title"], unique=False
    )
    op.create_index(
        "ix_smart_collections_updated_at",
        "smart_collections",
        ["updated_at"],
        unique=False,
    )

    op.create_table(
        "sync_queue",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String, nullable=False),
        sa.Column(
            "collection",
            sa.Enum("MEDIA", "SMART_COLLECTIONS", name="synccollection"),
            nullable=False,
        ),
        sa.Column(
            "operation",
            sa.Enum("INSERT", "UPDATE", "DELETE", name="mutationoperation"),
            nullable=False,
        ),
        sa.Column("target_id", sa.String, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("enqueued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "state", sa.Enum("PENDING", "DEAD", name="mutationstate"), nullable=False
        ),
        sa.Column("attempts", sa.Integer, nullable=False),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sync_queue_id", "sync_queue", ["id"], unique=True)
    op.create_index(
        "ix_sync_queue_target_id", "sync_queue", ["target_id"], unique=False
    )
    op.create_index(
        "ix_sync_queue_enqueued_at", "sync_queue", ["enqueued_at"], unique=False
    )
    op.create_index("ix_sync_queue_state", "sync_queue", ["state"], unique=False)
    op.create_index(
        "ix_sync_queue_target",
        "sync_queue",
        ["collection", "target_id", "state"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("sync_queue")
    op.drop_table("smart_collections")
    op.drop_table("history")
    op.drop_table("media")
    op.drop_table("house_keeping")
