from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FieldType(IntEnum):
    TEXT = 1
    NUMBER = 2
    BOOLEAN = 3
    ARRAY = 4
    OBJECT = 5
    DATE = 6


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class QueryOperator(str, Enum):
    EQUAL = "eq"
    NOT_EQUAL = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "nin"
    BETWEEN = "between"
    LIKE = "like"
    ILIKE = "ilike"


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ConditionItem(CamelModel):
    key: str
    operate: QueryOperator
    value: Any = None


class SortItem(CamelModel):
    key: str
    order: Literal["asc", "desc"] = "asc"


class QueryOptions(CamelModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort: list[SortItem] = Field(default_factory=list)
    condition: list[ConditionItem] = Field(default_factory=list)


class FieldCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    type: FieldType
    value: str | None = None
    group_id: int | None = None
    belong_id: int | None = None
    pos: int | None = Field(default=None, ge=0)
    order: int | None = Field(default=None, ge=0)


class BatchFieldItem(FieldCreate):
    """A batch item; ``belong_id`` may also be a ``#<index>`` back-reference."""

    belong_id: int | str | None = None


class FieldPatch(CamelModel):
    value: str | None = None
    pos: int | None = Field(default=None, ge=0)


class FieldPatchItem(CamelModel):
    id: int
    data: FieldPatch
