"""core_users_and_resources

Revision ID: 5c1e7a2b9d40
Revises:
Create Date: 2026-10-05 10:20:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "5c1e7a2b9d40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

OWNED_RESOURCE_TABLES = ("products", "qr_codes")
GATED_CONTENT_TABLES = ("playlists", "slideshows")


def _owned_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("subscription_tier", sa.String(16), nullable=False, server_default=sa.text("'free'")),
        sa.Column("max_products", sa.Integer(), nullable=True),
        sa.Column("max_audio_files", sa.Integer(), nullable=True),
        sa.Column("max_videos", sa.Integer(), nullable=True),
        sa.Column("max_playlists", sa.Integer(), nullable=True),
        sa.Column("max_qr_codes", sa.Integer(), nullable=True),
        sa.Column("max_slideshows", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("subscription_tier IN ('free','basic','premium')", name="ck_users_subscription_tier"),
        sa.CheckConstraint("status IN ('ACTIVE','SUSPENDED','DELETED')", name="ck_users_status"),
        sa.CheckConstraint(
            "(max_products IS NULL OR max_products >= 0) "
            "AND (max_audio_files IS NULL OR max_audio_files >= 0) "
            "AND (max_videos IS NULL OR max_videos >= 0) "
            "AND (max_playlists IS NULL OR max_playlists >= 0) "
            "AND (max_qr_codes IS NULL OR max_qr_codes >= 0) "
            "AND (max_slideshows IS NULL OR max_slideshows >= 0)",
            name="ck_users_limit_overrides_non_negative",
        ),
        sa.UniqueConstraint("email", name="users_email_key"),
    )
    op.create_index("idx_users_subscription_tier", "users", ["subscription_tier"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    for table_name in OWNED_RESOURCE_TABLES:
        op.create_table(
            table_name,
            *_owned_columns(),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        )
        op.create_index(
            f"idx_{table_name}_owner_live",
            table_name,
            ["owner_id"],
            postgresql_where=sa.text("deleted_at IS NULL"),
        )

    for table_name in GATED_CONTENT_TABLES:
        op.create_table(
            table_name,
            *_owned_columns(),
            sa.Column("requires_activation_code", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        )
        op.create_index(
            f"idx_{table_name}_owner_live",
            table_name,
            ["owner_id"],
            postgresql_where=sa.text("deleted_at IS NULL"),
        )

    op.create_table(
        "media_files",
        *_owned_columns(),
        sa.Column("media_type", sa.String(8), nullable=False),
        sa.CheckConstraint("media_type IN ('audio','video')", name="ck_media_files_media_type"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
    )
    op.create_index(
        "idx_media_files_owner_type_live",
        "media_files",
        ["owner_id", "media_type"],
        postgresql_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("idx_media_files_owner_type_live", table_name="media_files")
    op.drop_table("media_files")
    for table_name in (*GATED_CONTENT_TABLES, *OWNED_RESOURCE_TABLES):
        op.drop_index(f"idx_{table_name}_owner_live", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_subscription_tier", table_name="users")
    op.drop_table("users")
