from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from resumeforge.api.deps import get_current_user, get_db
from resumeforge.api.schemas import (
    BatchCreateRequest,
    BatchUpdateRequest,
    DeleteResponse,
    Envelope,
    FieldGroupCreateRequest,
    FieldGroupPageResponse,
    FieldGroupResponse,
    FieldGroupUpdateRequest,
    FieldResponse,
)
from resumeforge.core.fields import FieldService
from resumeforge.db.models import User
from resumeforge.types import FieldCreate, FieldPatch, QueryOptions

router = APIRouter(prefix="/field", tags=["fields"])


def _fields(rows) -> list[FieldResponse]:
    return [FieldResponse.model_validate(row) for row in rows]


# field groups


@router.post("/group", status_code=status.HTTP_201_CREATED, response_model=Envelope[FieldGroupResponse])
def create_field_group(
    payload: FieldGroupCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldGroupResponse]:
    group = FieldService(db).create_group(user.id, payload.name)
    return Envelope(data=FieldGroupResponse.model_validate(group))


@router.post("/group/search", response_model=Envelope[FieldGroupPageResponse])
def search_field_groups(
    payload: QueryOptions,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldGroupPageResponse]:
    page = FieldService(db).list_groups(user.id, payload)
    return Envelope(
        data=FieldGroupPageResponse(
            data=[FieldGroupResponse.model_validate(row) for row in page.data],
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        )
    )


@router.get("/group/{group_id}", response_model=Envelope[FieldGroupResponse])
def get_field_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldGroupResponse]:
    group = FieldService(db).get_group(group_id, user.id)
    return Envelope(data=FieldGroupResponse.model_validate(group))


@router.put("/group/{group_id}", response_model=Envelope[FieldGroupResponse])
def update_field_group(
    group_id: int,
    payload: FieldGroupUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldGroupResponse]:
    group = FieldService(db).update_group(group_id, user.id, name=payload.name)
    return Envelope(data=FieldGroupResponse.model_validate(group))


@router.delete("/group/{group_id}", response_model=Envelope[None])
def delete_field_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[None]:
    FieldService(db).delete_group(group_id, user.id)
    return Envelope(data=None)


# batch operations


@router.post("/batch", status_code=status.HTTP_201_CREATED, response_model=Envelope[list[FieldResponse]])
def batch_create_fields(
    payload: BatchCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[list[FieldResponse]]:
    rows = FieldService(db).batch_create_fields(user.id, payload.fields)
    return Envelope(data=_fields(rows))


@router.put("/batch-update", response_model=Envelope[list[FieldResponse]])
def batch_update_fields(
    payload: BatchUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[list[FieldResponse]]:
    rows = FieldService(db).batch_update_fields(user.id, payload.updates)
    return Envelope(data=_fields(rows))


# fields


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Envelope[FieldResponse])
def create_field(
    payload: FieldCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldResponse]:
    field = FieldService(db).create_field(user.id, payload)
    return Envelope(data=FieldResponse.model_validate(field))


@router.get("", response_model=Envelope[list[FieldResponse]])
def list_fields(
    group_id: int | None = Query(default=None, alias="groupId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[list[FieldResponse]]:
    rows = FieldService(db).list_fields(user.id, group_id)
    return Envelope(data=_fields(rows))


@router.get("/{field_id}", response_model=Envelope[FieldResponse])
def get_field(
    field_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldResponse]:
    field = FieldService(db).get_field(field_id, user.id)
    return Envelope(data=FieldResponse.model_validate(field))


@router.put("/{field_id}", response_model=Envelope[FieldResponse])
def update_field(
    field_id: int,
    payload: FieldPatch,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[FieldResponse]:
    field = FieldService(db).update_field(field_id, user.id, payload)
    return Envelope(data=FieldResponse.model_validate(field))


@router.delete("/{field_id}", response_model=Envelope[DeleteResponse])
def delete_field(
    field_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[DeleteResponse]:
    deleted = FieldService(db).delete_field(field_id, user.id)
    return Envelope(data=DeleteResponse(deleted=deleted))
