from __future__ import annotations

import time
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import AliasChoices, BaseModel, Field, HttpUrl, field_validator

from resumeforge.types import BatchFieldItem, CamelModel, FieldPatchItem, FieldType

T = TypeVar("T")

SUCCESS_CODE = 0


def now_ms() -> int:
    return int(time.time() * 1000)


class Envelope(BaseModel, Generic[T]):
    code: int = SUCCESS_CODE
    message: str = "success"
    data: T | None = None
    timestamp: int = Field(default_factory=now_ms)


class ErrorEnvelope(BaseModel):
    code: int
    message: str
    timestamp: int = Field(default_factory=now_ms)
    errors: dict[str, list[str]] | None = None


# identity


class RegisterRequest(CamelModel):
    username: str = Field(min_length=4, max_length=20, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, value: str) -> str:
        if len(value.encode("utf-8")) > 72:
            raise ValueError("password too long (bcrypt limit 72 bytes)")
        return value


class LoginRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(CamelModel):
    access_token: str
    refresh_token: str
    user_id: int
    username: str


class RefreshRequest(CamelModel):
    refresh_token: str


class RefreshResponse(CamelModel):
    access_token: str


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class SuccessResponse(CamelModel):
    success: bool


class UserProfileResponse(CamelModel):
    id: int
    username: str
    nickname: str | None = None
    avatar_url: str | None = None
    create_time: datetime
    update_time: datetime


class UpdateUserRequest(CamelModel):
    nickname: str | None = Field(default=None, min_length=2, max_length=20)
    avatar_url: HttpUrl | None = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_length(cls, value: HttpUrl | None) -> HttpUrl | None:
        if value is not None and len(str(value)) > 255:
            raise ValueError("avatar url must be at most 255 characters")
        return value


# field store


class FieldGroupCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)


class FieldGroupUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)


class FieldGroupResponse(CamelModel):
    id: int
    name: str
    create_time: datetime
    update_time: datetime


class FieldGroupPageResponse(CamelModel):
    data: list[FieldGroupResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class FieldResponse(CamelModel):
    id: int
    name: str
    type: FieldType
    value: str | None = None
    group_id: int | None = None
    belong_id: int | None = None
    pos: int | None = None
    order: int | None = Field(default=None, validation_alias=AliasChoices("sort_order", "order"))
    create_time: datetime
    update_time: datetime


class BatchCreateRequest(CamelModel):
    fields: list[BatchFieldItem] = Field(min_length=1)


class BatchUpdateRequest(CamelModel):
    updates: list[FieldPatchItem] = Field(min_length=1)


class DeleteResponse(CamelModel):
    deleted: int


# uploads


class UploadResponse(CamelModel):
    filename: str
    original_name: str
    url: str
    size: int

