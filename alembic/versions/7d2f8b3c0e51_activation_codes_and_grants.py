"""activation_codes_and_grants

Revision ID: 7d2f8b3c0e51
Revises: 5c1e7a2b9d40
Create Date: 2026-10-05 11:45:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7d2f8b3c0e51"
down_revision: str | None = "5c1e7a2b9d40"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "activation_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("content_id", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(16), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("uses_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("content_type IN ('playlist','slideshow')", name="ck_activation_codes_content_type"),
        sa.CheckConstraint("max_uses IS NULL OR max_uses > 0", name="ck_activation_codes_max_uses_positive"),
        sa.CheckConstraint("uses_count >= 0", name="ck_activation_codes_uses_count_non_negative"),
        sa.CheckConstraint(
            "max_uses IS NULL OR uses_count <= max_uses",
            name="ck_activation_codes_uses_count_le_max",
        ),
        sa.UniqueConstraint("code", name="activation_codes_code_key"),
    )
    op.create_index("idx_activation_codes_content", "activation_codes", ["content_type", "content_id"])
    op.create_index("idx_activation_codes_created_at", "activation_codes", ["created_at"])

    op.create_table(
        "user_activation_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("code_id", sa.BigInteger(), nullable=False),
        sa.Column("content_id", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(16), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "content_type IN ('playlist','slideshow')",
            name="ck_user_activation_codes_content_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["code_id"], ["activation_codes.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("user_id", "code_id", name="uq_user_activation_codes_user_code"),
    )
    op.create_index("idx_user_activation_codes_user", "user_activation_codes", ["user_id"])
    op.create_index("idx_user_activation_codes_code", "user_activation_codes", ["code_id"])
    op.create_index(
        "idx_user_activation_codes_content",
        "user_activation_codes",
        ["content_type", "content_id", "user_id"],
    )

    op.create_table(
        "redemption_attempts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("code_hash", sa.CHAR(64), nullable=False),
        sa.Column("result", sa.String(16), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.CheckConstraint(
            "result IN ('ACCEPTED','REPLAYED','NOT_FOUND','DISABLED','EXPIRED','EXHAUSTED',"
            "'REVOKED','RATE_LIMITED')",
            name="ck_redemption_attempts_result",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("idx_redemption_attempts_user_attempted", "redemption_attempts", ["user_id", "attempted_at"])
    op.create_index(
        "idx_redemption_attempts_code_hash_attempted",
        "redemption_attempts",
        ["code_hash", "attempted_at"],
    )
    op.create_index("idx_redemption_attempts_attempted_at", "redemption_attempts", ["attempted_at"])


def downgrade() -> None:
    op.drop_index("idx_redemption_attempts_attempted_at", table_name="redemption_attempts")
    op.drop_index("idx_redemption_attempts_code_hash_attempted", table_name="redemption_attempts")
    op.drop_index("idx_redemption_attempts_user_attempted", table_name="redemption_attempts")
    op.drop_table("redemption_attempts")
    op.drop_index("idx_user_activation_codes_content", table_name="user_activation_codes")
    op.drop_index("idx_user_activation_codes_code", table_name="user_activation_codes")
    op.drop_index("idx_user_activation_codes_user", table_name="user_activation_codes")
    op.drop_table("user_activation_codes")
    op.drop_index("idx_activation_codes_created_at", table_name="activation_codes")
    op.drop_index("idx_activation_codes_content", table_name="activation_codes")
    op.drop_table("activation_codes")
