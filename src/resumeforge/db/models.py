from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from resumeforge.db.base import Base, TimestampMixin
from resumeforge.types import FieldType, TokenType

# Stand-in for NULL inside the field slot index so that NULL matches NULL.
NULL_SLOT = -1


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nickname: Mapped[str | None] = mapped_column(String(20), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Token(TimestampMixin, Base):
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    token: Mapped[str] = mapped_column(String(500), index=True, nullable=False)
    type: Mapped[TokenType] = mapped_column(
        Enum(TokenType, native_enum=False, values_callable=lambda items: [item.value for item in items]),
        default=TokenType.ACCESS,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class FieldGroup(TimestampMixin, Base):
    __tablename__ = "field_groups"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_field_group_user_name"),
        # Deleted ids are never handed out again.
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Field(TimestampMixin, Base):
    __tablename__ = "fields"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[int] = mapped_column(SmallInteger, default=int(FieldType.TEXT), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    group_id: Mapped[int | None] = mapped_column(ForeignKey("field_groups.id"), index=True, nullable=True)
    belong_id: Mapped[int | None] = mapped_column(ForeignKey("fields.id"), index=True, nullable=True)
    pos: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int | None] = mapped_column("order", Integer, nullable=True)


Index(
    "uq_field_slot",
    Field.user_id,
    Field.name,
    func.coalesce(Field.group_id, NULL_SLOT),
    func.coalesce(Field.belong_id, NULL_SLOT),
    func.coalesce(Field.pos, NULL_SLOT),
    unique=True,
)