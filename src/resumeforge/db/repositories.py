from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement

from resumeforge.db.models import Field, FieldGroup, Token, User
from resumeforge.types import TokenType


def _nullable_eq(column, value) -> ColumnElement[bool]:
    # NULL is a value of its own in slot comparisons.
    return column.is_(None) if value is None else column == value


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.session.scalar(select(User).where(User.username == username))

    def create_user(self, *, username: str, password_hash: str) -> User:
        user = User(username=username, password_hash=password_hash)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update_user(self, user: User, values: dict) -> User:
        for key, value in values.items():
            setattr(user, key, value)
        self.session.commit()
        self.session.refresh(user)
        return user


class TokenRepository:
    def __init__(self, session: Session):
        self.session = session

    def save_token(self, *, user_id: int, token: str, token_type: TokenType, expires_at: datetime) -> Token:
        item = Token(user_id=user_id, token=token, type=token_type, expires_at=expires_at)
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def is_revoked(self, token: str) -> bool:
        statement = select(Token.id).where(and_(Token.token == token, Token.is_revoked.is_(True)))
        return self.session.scalar(statement) is not None

    def get_active_token(self, token: str, token_type: TokenType) -> Token | None:
        statement = select(Token).where(
            and_(
                Token.token == token,
                Token.type == token_type,
                Token.is_revoked.is_(False),
            )
        )
        return self.session.scalar(statement)

    def revoke_token(self, token: str) -> int:
        result = self.session.execute(update(Token).where(Token.token == token).values(is_revoked=True))
        self.session.commit()
        return result.rowcount or 0

    def revoke_user_tokens(self, user_id: int) -> int:
        result = self.session.execute(
            update(Token).where(and_(Token.user_id == user_id, Token.is_revoked.is_(False))).values(is_revoked=True)
        )
        self.session.commit()
        return result.rowcount or 0

    def delete_expired(self, now: datetime | None = None) -> int:
        cutoff = now or datetime.now(UTC)
        result = self.session.execute(delete(Token).where(Token.expires_at < cutoff))
        self.session.commit()
        return result.rowcount or 0


class FieldRepository:
    """Queries over field groups and fields.

    Writes only flush; the calling service owns the transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    # field groups

    def get_group(self, group_id: int) -> FieldGroup | None:
        return self.session.get(FieldGroup, group_id)

    def get_user_group(self, group_id: int, user_id: int) -> FieldGroup | None:
        statement = select(FieldGroup).where(and_(FieldGroup.id == group_id, FieldGroup.user_id == user_id))
        return self.session.scalar(statement)

    def count_user_groups(self, user_id: int, group_ids: Iterable[int]) -> int:
        ids = list(set(group_ids))
        if not ids:
            return 0
        statement = select(func.count(FieldGroup.id)).where(
            and_(FieldGroup.user_id == user_id, FieldGroup.id.in_(ids))
        )
        return self.session.scalar(statement) or 0

    def group_name_exists(self, user_id: int, name: str, exclude_id: int | None = None) -> bool:
        statement = select(FieldGroup.id).where(and_(FieldGroup.user_id == user_id, FieldGroup.name == name))
        if exclude_id is not None:
            statement = statement.where(FieldGroup.id != exclude_id)
        return self.session.scalar(statement.limit(1)) is not None

    def add_group(self, *, user_id: int, name: str) -> FieldGroup:
        group = FieldGroup(user_id=user_id, name=name)
        self.session.add(group)
        self.session.flush()
        return group

    def delete_group(self, group: FieldGroup) -> None:
        self.session.delete(group)
        self.session.flush()

    # fields

    def get_field(self, field_id: int) -> Field | None:
        return self.session.get(Field, field_id)

    def get_user_field(self, field_id: int, user_id: int) -> Field | None:
        statement = select(Field).where(and_(Field.id == field_id, Field.user_id == user_id))
        return self.session.scalar(statement)

    def list_user_fields(self, user_id: int, group_id: int | None = None) -> list[Field]:
        statement = select(Field).where(Field.user_id == user_id)
        if group_id is not None:
            statement = statement.where(Field.group_id == group_id)
        statement = statement.order_by(
            Field.sort_order.is_(None),
            Field.sort_order.asc(),
            Field.create_time.desc(),
            Field.id.desc(),
        )
        return list(self.session.scalars(statement).all())

    def field_name_exists(
        self,
        *,
        user_id: int,
        name: str,
        group_id: int | None,
        belong_id: int | None,
        pos: int | None,
        exclude_id: int | None = None,
    ) -> bool:
        statement = select(Field.id).where(
            and_(
                Field.user_id == user_id,
                Field.name == name,
                _nullable_eq(Field.group_id, group_id),
                _nullable_eq(Field.belong_id, belong_id),
                _nullable_eq(Field.pos, pos),
            )
        )
        if exclude_id is not None:
            statement = statement.where(Field.id != exclude_id)
        return self.session.scalar(statement.limit(1)) is not None

    def find_slot_occupant(self, user_id: int, belong_id: int, pos: int) -> Field | None:
        statement = select(Field).where(
            and_(Field.user_id == user_id, Field.belong_id == belong_id, Field.pos == pos)
        )
        return self.session.scalar(statement.order_by(Field.id.asc()).limit(1))

    def list_group_fields(self, user_id: int, group_id: int) -> list[Field]:
        statement = (
            select(Field)
            .where(and_(Field.user_id == user_id, Field.group_id == group_id))
            .order_by(Field.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def list_child_ids(self, user_id: int, parent_ids: list[int]) -> list[int]:
        if not parent_ids:
            return []
        statement = (
            select(Field.id)
            .where(and_(Field.user_id == user_id, Field.belong_id.in_(parent_ids)))
            .order_by(Field.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def list_siblings_between(
        self,
        *,
        user_id: int,
        group_id: int | None,
        belong_id: int,
        low: int,
        high: int,
        exclude_id: int,
    ) -> list[Field]:
        statement = (
            select(Field)
            .where(
                and_(
                    Field.user_id == user_id,
                    _nullable_eq(Field.group_id, group_id),
                    Field.belong_id == belong_id,
                    Field.pos.between(low, high),
                    Field.id != exclude_id,
                )
            )
            .order_by(Field.pos.asc(), Field.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def add_field(self, **values) -> Field:
        field = Field(**values)
        self.session.add(field)
        self.session.flush()
        return field

    def delete_field(self, field: Field) -> None:
        self.session.delete(field)
        self.session.flush()
