"""Generic filter/sort/paginate helper for listing endpoints."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import DateTime, Select, and_, func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement

from resumeforge.errors import BadRequestError
from resumeforge.types import ConditionItem, QueryOperator, QueryOptions

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


_DATETIME = TypeAdapter(datetime)


def _parse_datetime(key: str, raw: Any) -> datetime:
    try:
        value = _DATETIME.validate_python(raw)
    except ValidationError as exc:
        raise BadRequestError(f"'{key}' expects a date-time value") from exc
    # Timestamps are written in UTC; values without an offset are read as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _coerce_value(column: ColumnElement, item: ConditionItem) -> Any:
    if item.value is None or not isinstance(column.type, DateTime):
        return item.value
    if item.operate in {QueryOperator.LIKE, QueryOperator.ILIKE}:
        raise BadRequestError(f"'{item.key}' does not support text matching")
    if isinstance(item.value, list):
        return [_parse_datetime(item.key, raw) for raw in item.value]
    return _parse_datetime(item.key, item.value)


def _condition_clause(column: ColumnElement, item: ConditionItem) -> ColumnElement[bool] | None:
    value = _coerce_value(column, item)
    op = item.operate
    if op == QueryOperator.EQUAL:
        return column == value
    if op == QueryOperator.NOT_EQUAL:
        return column != value
    if op == QueryOperator.GREATER_THAN:
        return column > value
    if op == QueryOperator.GREATER_THAN_OR_EQUAL:
        return column >= value
    if op == QueryOperator.LESS_THAN:
        return column < value
    if op == QueryOperator.LESS_THAN_OR_EQUAL:
        return column <= value
    if op == QueryOperator.IN:
        if isinstance(value, list) and value:
            return or_(*(column == candidate for candidate in value))
        return None
    if op == QueryOperator.NOT_IN:
        if isinstance(value, list) and value:
            return column.not_in(value)
        return None
    if op == QueryOperator.BETWEEN:
        if isinstance(value, list) and len(value) == 2:
            return column.between(value[0], value[1])
        return None
    if op == QueryOperator.LIKE:
        return column.like(f"%{value}%")
    if op == QueryOperator.ILIKE:
        return column.ilike(f"%{value}%")
    raise BadRequestError(f"unsupported operator '{op}'")


def apply_filters(statement: Select, options: QueryOptions, filterable: Mapping[str, ColumnElement]) -> Select:
    clauses: list[Any] = []
    for item in options.condition:
        column = filterable.get(item.key)
        if column is None:
            raise BadRequestError(f"cannot filter on '{item.key}'")
        clause = _condition_clause(column, item)
        if clause is not None:
            clauses.append(clause)
    if clauses:
        statement = statement.where(and_(*clauses))
    return statement


def apply_sorting(statement: Select, options: QueryOptions, sortable: Mapping[str, ColumnElement]) -> Select:
    # Sort keys outside the allow-list are ignored.
    for item in options.sort:
        column = sortable.get(item.key)
        if column is None:
            continue
        statement = statement.order_by(column.desc() if item.order == "desc" else column.asc())
    return statement


def apply_pagination(statement: Select, options: QueryOptions) -> Select:
    offset = (options.page - 1) * options.limit
    return statement.offset(offset).limit(options.limit)


def paginate(
    session: Session,
    statement: Select,
    options: QueryOptions,
    *,
    filterable: Mapping[str, ColumnElement],
    sortable: Mapping[str, ColumnElement],
    tie_breakers: Sequence[ColumnElement] = (),
) -> Page:
    filtered = apply_filters(statement, options, filterable)
    total = session.scalar(select(func.count()).select_from(filtered.subquery())) or 0

    ordered = apply_sorting(filtered, options, sortable)
    if tie_breakers:
        ordered = ordered.order_by(*tie_breakers)
    paged = apply_pagination(ordered, options)
    data = list(session.scalars(paged).all())
    return Page(data=data, total=total, page=options.page, limit=options.limit)
