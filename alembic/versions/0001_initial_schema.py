"""Initial schema: users, tokens, field groups and fields

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("create_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("nickname", sa.String(length=20), nullable=True),
        sa.Column("avatar_url", sa.String(length=255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token", sa.String(length=500), nullable=False),
        sa.Column("type", sa.Enum("access", "refresh", name="tokentype", native_enum=False), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tokens_user_id", "tokens", ["user_id"])
    op.create_index("ix_tokens_token", "tokens", ["token"])

    op.create_table(
        "field_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_field_group_user_name"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_field_groups_user_id", "field_groups", ["user_id"])

    op.create_table(
        "fields",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", sa.SmallInteger(), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("field_groups.id"), nullable=True),
        sa.Column("belong_id", sa.Integer(), sa.ForeignKey("fields.id"), nullable=True),
        sa.Column("pos", sa.Integer(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_fields_user_id", "fields", ["user_id"])
    op.create_index("ix_fields_group_id", "fields", ["group_id"])
    op.create_index("ix_fields_belong_id", "fields", ["belong_id"])
    # NULL group, parent and pos compare equal through the -1 stand-in.
    op.create_index(
        "uq_field_slot",
        "fields",
        [
            "user_id",
            "name",
            sa.text("coalesce(group_id, -1)"),
            sa.text("coalesce(belong_id, -1)"),
            sa.text("coalesce(pos, -1)"),
        ],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("uq_field_slot", table_name="fields")
    op.drop_index("ix_fields_belong_id", table_name="fields")
    op.drop_index("ix_fields_group_id", table_name="fields")
    op.drop_index("ix_fields_user_id", table_name="fields")
    op.drop_table("fields")
    op.drop_index("ix_field_groups_user_id", table_name="field_groups")
    op.drop_table("field_groups")
    op.drop_index("ix_tokens_token", table_name="tokens")
    op.drop_index("ix_tokens_user_id", table_name="tokens")
    op.drop_table("tokens")
    op.drop_table("users")
