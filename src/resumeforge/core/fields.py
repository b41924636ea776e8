"""Field store: user-scoped field groups and the field tree.

Fields form a forest per user through ``belong_id``. A parent must already be
persisted before a child may reference it, which keeps the forest acyclic
without any runtime cycle check. Every write that touches more than one row
runs inside a single ``atomic`` block.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resumeforge.core.query import Page, paginate
from resumeforge.db.models import Field, FieldGroup, User
from resumeforge.db.repositories import FieldRepository, UserRepository
from resumeforge.db.session import atomic
from resumeforge.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceError,
)
from resumeforge.types import BatchFieldItem, FieldCreate, FieldPatch, FieldPatchItem, QueryOptions

logger = logging.getLogger(__name__)

BACK_REFERENCE = re.compile(r"^#(\d+)$")

GROUP_FILTER_COLUMNS = {
    "id": FieldGroup.id,
    "name": FieldGroup.name,
    "createTime": FieldGroup.create_time,
    "updateTime": FieldGroup.update_time,
}
GROUP_SORT_COLUMNS = {
    "name": FieldGroup.name,
    "createTime": FieldGroup.create_time,
    "updateTime": FieldGroup.update_time,
}


def parking_slot(field: Field) -> int:
    """Private negative position used while a field moves between slots."""
    return -1 - field.id


class FieldService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = FieldRepository(session)
        self.users = UserRepository(session)

    @contextmanager
    def _write(self, action: str) -> Iterator[None]:
        try:
            with atomic(self.session):
                yield
        except ServiceError:
            raise
        except IntegrityError as exc:
            logger.warning("%s rejected by a uniqueness constraint: %s", action, exc.orig)
            raise ConflictError(f"{action} conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            logger.exception("%s failed", action)
            raise InternalError(f"failed to {action}, please retry later") from exc

    def _require_user(self, user_id: int) -> User:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("user does not exist")
        return user

    # field groups

    def create_group(self, user_id: int, name: str) -> FieldGroup:
        self._require_user(user_id)
        if self.repo.group_name_exists(user_id, name):
            raise ConflictError("field group name already exists")

        with self._write("create field group"):
            group = self.repo.add_group(user_id=user_id, name=name)
        return group

    def get_group(self, group_id: int, user_id: int) -> FieldGroup:
        group = self.repo.get_group(group_id)
        if group is None:
            raise NotFoundError("field group does not exist")
        if group.user_id != user_id:
            raise ForbiddenError("no access to this field group")
        return group

    def list_groups(self, user_id: int, options: QueryOptions) -> Page[FieldGroup]:
        statement = select(FieldGroup).where(FieldGroup.user_id == user_id)
        return paginate(
            self.session,
            statement,
            options,
            filterable=GROUP_FILTER_COLUMNS,
            sortable=GROUP_SORT_COLUMNS,
            tie_breakers=(FieldGroup.create_time.desc(), FieldGroup.id.desc()),
        )

    def update_group(self, group_id: int, user_id: int, name: str | None = None) -> FieldGroup:
        group = self.get_group(group_id, user_id)
        if name is None or name == group.name:
            return group
        if self.repo.group_name_exists(user_id, name, exclude_id=group.id):
            raise ConflictError("field group name already exists")

        with self._write("update field group"):
            group.name = name
            self.session.flush()
        return group

    def delete_group(self, group_id: int, user_id: int) -> None:
        group = self.get_group(group_id, user_id)

        with self._write("delete field group"):
            deleted: set[int] = set()
            for field in self.repo.list_group_fields(user_id, group.id):
                if field.id in deleted:
                    continue
                deleted.update(self._delete_subtree(field.id, user_id))
            self.repo.delete_group(group)
        logger.info("Deleted field group id=%s user_id=%s fields=%s", group_id, user_id, len(deleted))

    # fields

    def create_field(self, user_id: int, payload: FieldCreate) -> Field:
        self._require_user(user_id)
        if payload.group_id is not None and self.repo.get_user_group(payload.group_id, user_id) is None:
            raise NotFoundError("field group does not exist or is not accessible")
        if payload.belong_id is not None and self.repo.get_user_field(payload.belong_id, user_id) is None:
            raise NotFoundError("parent field does not exist or is not accessible")
        if self.repo.field_name_exists(
            user_id=user_id,
            name=payload.name,
            group_id=payload.group_id,
            belong_id=payload.belong_id,
            pos=payload.pos,
        ):
            raise ConflictError("field name already exists for this group, parent and position")

        with self._write("create field"):
            if payload.belong_id is not None and payload.pos is not None:
                self._displace(user_id, payload.belong_id, payload.pos)
            field = self._insert(user_id, payload, payload.belong_id)
        return field

    def get_field(self, field_id: int, user_id: int) -> Field:
        field = self.repo.get_field(field_id)
        if field is None:
            raise NotFoundError("field does not exist")
        if field.user_id != user_id:
            raise ForbiddenError("no access to this field")
        return field

    def list_fields(self, user_id: int, group_id: int | None = None) -> list[Field]:
        self._require_user(user_id)
        return self.repo.list_user_fields(user_id, group_id)

    def update_field(self, field_id: int, user_id: int, patch: FieldPatch) -> Field:
        field = self.get_field(field_id, user_id)

        with self._write("update field"):
            if "value" in patch.model_fields_set:
                field.value = patch.value
            if patch.pos is not None and patch.pos != field.pos:
                self._move(field, patch.pos)
            self.session.flush()
        return field

    def delete_field(self, field_id: int, user_id: int) -> int:
        self.get_field(field_id, user_id)

        with self._write("delete field"):
            deleted = self._delete_subtree(field_id, user_id)
        logger.info("Deleted field id=%s user_id=%s rows=%s", field_id, user_id, len(deleted))
        return len(deleted)

    def batch_create_fields(self, user_id: int, items: list[BatchFieldItem]) -> list[Field]:
        self._require_user(user_id)

        group_ids = {item.group_id for item in items if item.group_id is not None}
        if group_ids and self.repo.count_user_groups(user_id, group_ids) != len(group_ids):
            raise NotFoundError("some field groups do not exist or are not accessible")

        references = [self._resolve_reference(user_id, index, item) for index, item in enumerate(items)]

        for item, (kind, _) in zip(items, references):
            if kind == "batch":
                continue
            if self.repo.field_name_exists(
                user_id=user_id,
                name=item.name,
                group_id=item.group_id,
                belong_id=item.belong_id,
                pos=item.pos,
            ):
                raise ConflictError(f'field name "{item.name}" already exists for this group, parent and position')

        seen: dict[tuple, set[str]] = {}
        for item in items:
            names = seen.setdefault((item.group_id, item.belong_id, item.pos), set())
            if item.name in names:
                raise ConflictError(f'field name "{item.name}" is repeated within the batch')
            names.add(item.name)

        created: list[Field] = []
        with self._write("batch create fields"):
            created_ids: set[int] = set()
            displaced_ids: set[int] = set()
            for item, (kind, target) in zip(items, references):
                belong_id = created[target].id if kind == "batch" else target
                if kind == "existing" and belong_id in displaced_ids:
                    raise ConflictError(
                        f'parent field {belong_id} of "{item.name}" was replaced earlier in this batch'
                    )
                if belong_id is not None and item.pos is not None:
                    displaced_ids.update(self._displace(user_id, belong_id, item.pos, protected=created_ids))
                field = self._insert(user_id, item, belong_id)
                created.append(field)
                created_ids.add(field.id)
        logger.info("Batch created fields user_id=%s count=%s", user_id, len(created))
        return created

    def batch_update_fields(self, user_id: int, items: list[FieldPatchItem]) -> list[Field]:
        pairs: list[tuple[FieldPatchItem, Field]] = []
        for item in items:
            field = self.repo.get_user_field(item.id, user_id)
            if field is None:
                raise NotFoundError(f"field {item.id} does not exist or is not accessible")
            pairs.append((item, field))

        sibling_sets: dict[tuple[int | None, int | None], list[tuple[FieldPatchItem, Field]]] = {}
        for item, field in pairs:
            sibling_sets.setdefault((field.group_id, field.belong_id), []).append((item, field))

        with self._write("batch update fields"):
            for members in sibling_sets.values():
                moves = [pair for pair in members if pair[0].data.pos is not None]
                moves.sort(key=lambda pair: pair[0].data.pos, reverse=True)
                for item, field in moves:
                    if item.data.pos != field.pos:
                        self._move(field, item.data.pos)
                for item, field in members:
                    if "value" in item.data.model_fields_set:
                        field.value = item.data.value
            self.session.flush()

        updated: dict[int, Field] = {}
        for _, field in pairs:
            updated.setdefault(field.id, field)
        return list(updated.values())

    # internals

    def _resolve_reference(self, user_id: int, index: int, item: BatchFieldItem) -> tuple[str, int | None]:
        belong_id = item.belong_id
        if belong_id is None:
            return "none", None
        if isinstance(belong_id, str):
            match = BACK_REFERENCE.match(belong_id)
            if match is None:
                raise BadRequestError(
                    f'belongId "{belong_id}" of field "{item.name}" must be a field id or a #<index> reference'
                )
            target = int(match.group(1))
            if target >= index:
                raise BadRequestError(
                    f'belongId "{belong_id}" of field "{item.name}" must reference an earlier item in the batch'
                )
            return "batch", target
        if self.repo.get_user_field(belong_id, user_id) is None:
            raise NotFoundError(f'parent field {belong_id} of "{item.name}" does not exist or is not accessible')
        return "existing", belong_id

    def _insert(self, user_id: int, payload: FieldCreate, belong_id: int | None) -> Field:
        return self.repo.add_field(
            user_id=user_id,
            name=payload.name,
            type=int(payload.type),
            value=payload.value,
            group_id=payload.group_id,
            belong_id=belong_id,
            pos=payload.pos,
            sort_order=payload.order,
        )

    def _displace(self, user_id: int, belong_id: int, pos: int, protected: set[int] | None = None) -> list[int]:
        """Delete whatever occupies ``(belong_id, pos)`` and return the removed ids."""
        occupant = self.repo.find_slot_occupant(user_id, belong_id, pos)
        if occupant is None:
            return []
        subtree = self._collect_subtree(occupant.id, user_id)
        if protected and protected.intersection(subtree):
            raise ConflictError(f"slot {pos} under field {belong_id} was already written in this batch")
        logger.info(
            "Displacing field id=%s from slot belong_id=%s pos=%s rows=%s",
            occupant.id,
            belong_id,
            pos,
            len(subtree),
        )
        self._delete_ids(subtree)
        return subtree

    def _collect_subtree(self, root_id: int, user_id: int) -> list[int]:
        """Ids of ``root_id`` and all its descendants, breadth first."""
        ids = [root_id]
        frontier = [root_id]
        while frontier:
            frontier = self.repo.list_child_ids(user_id, frontier)
            ids.extend(frontier)
        return ids

    def _delete_ids(self, ids: list[int]) -> None:
        # Children always come after their parent in breadth-first order.
        for field_id in reversed(ids):
            field = self.repo.get_field(field_id)
            if field is not None:
                self.repo.delete_field(field)

    def _delete_subtree(self, root_id: int, user_id: int) -> list[int]:
        ids = self._collect_subtree(root_id, user_id)
        self._delete_ids(ids)
        return ids

    def _move(self, field: Field, new_pos: int) -> None:
        """Move ``field`` to ``new_pos`` and shift the siblings in between."""
        old_pos = field.pos
        if field.belong_id is None or old_pos is None:
            field.pos = new_pos
            self.session.flush()
            return

        if new_pos > old_pos:
            low, high, step = old_pos, new_pos, -1
        else:
            low, high, step = new_pos, old_pos, 1
        siblings = self.repo.list_siblings_between(
            user_id=field.user_id,
            group_id=field.group_id,
            belong_id=field.belong_id,
            low=low,
            high=high,
            exclude_id=field.id,
        )
        if not siblings:
            field.pos = new_pos
            self.session.flush()
            return

        # Rows move one at a time into the slot freed just before them.
        if step > 0:
            siblings.reverse()
        field.pos = parking_slot(field)
        self.session.flush()
        for sibling in siblings:
            sibling.pos += step
            self.session.flush()
        field.pos = new_pos
        self.session.flush()
