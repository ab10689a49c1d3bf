from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.auth.principal import Principal
from portal.db import apply_row_level_claims
from portal.models import Base
from portal.services.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceFailure,
)

ModelT = TypeVar("ModelT", bound=Base)


def parse_uuid(value: Any, resource: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(f"{resource} not found") from None


def _effective(value: Any) -> Any:
    """Return the value to write, or None when the field should be skipped."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ScopedService(Generic[ModelT]):
    """list/get/add/edit/delete over one table, optionally scoped to a caller.

    With a principal, every operation first hands the caller's claims to the
    database so row-level policies apply; without one the service connection
    is used as-is.
    """

    model: ClassVar[type[Base]]
    resource: ClassVar[str] = "record"
    # request field -> column
    add_fields: ClassVar[Mapping[str, str]] = {}
    editable_fields: ClassVar[Mapping[str, str]] = {}
    required_fields: ClassVar[tuple[str, ...]] = ()
    uuid_columns: ClassVar[tuple[str, ...]] = ()

    def __init__(self, db: Session, principal: Principal | None = None) -> None:
        self.db = db
        self.principal = principal

    def _scope(self) -> None:
        if self.principal is not None:
            apply_row_level_claims(self.db, self.principal.claims)

    def _ordering(self) -> tuple[Any, ...]:
        return (self.model.created_at.desc(),)

    def _coerce(self, values: dict[str, Any]) -> dict[str, Any]:
        return values

    def _prepare_update(self, updates: dict[str, Any]) -> dict[str, Any]:
        return updates

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"{self.resource} conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceFailure(f"failed to {action} {self.resource}") from exc

    def save(self, record: ModelT, action: str = "update") -> ModelT:
        self.db.add(record)
        self._commit(action)
        self.db.refresh(record)
        return record

    def clean_add_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field, column in self.add_fields.items():
            value = _effective(fields.get(field))
            if value is not None:
                values[column] = value

        missing = [column for column in self.required_fields if column not in values]
        if missing:
            raise InvalidArgumentError(f"missing required fields: {', '.join(missing)}")
        for column in self.uuid_columns:
            if column in values:
                values[column] = parse_uuid(values[column], "user")
        return self._coerce(values)

    def clean_edit_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        updates: dict[str, Any] = {}
        for field, column in self.editable_fields.items():
            value = _effective(fields.get(field))
            if value is not None:
                updates[column] = value

        if not updates:
            raise InvalidArgumentError("no valid update fields provided")
        return self._coerce(updates)

    def list(self) -> list[ModelT]:
        self._scope()
        return list(self.db.scalars(select(self.model).order_by(*self._ordering())))

    def get_by_id(self, record_id: Any) -> ModelT:
        pk = parse_uuid(record_id, self.resource)
        self._scope()
        record = self.db.get(self.model, pk)
        if record is None:
            raise NotFoundError(f"{self.resource} not found")
        return record

    def add(self, fields: Mapping[str, Any]) -> ModelT:
        values = self.clean_add_fields(fields)
        self._scope()
        return self.save(self.model(**values), "add")

    def edit(self, record_id: Any, fields: Mapping[str, Any]) -> ModelT:
        # Validate before touching the database
        updates = self._prepare_update(self.clean_edit_fields(fields))
        record = self.get_by_id(record_id)
        for column, value in updates.items():
            setattr(record, column, value)
        return self.save(record)

    def delete(self, record_id: Any) -> None:
        record = self.get_by_id(record_id)
        self.db.delete(record)
        self._commit("delete")
