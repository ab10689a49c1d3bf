from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, BinaryIO

import structlog
from sqlalchemy import select

from portal.auth.principal import Principal
from portal.models import Resource, ResourceCategory
from portal.services.base import ScopedService, parse_uuid
from portal.services.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PersistenceFailure,
    ServiceError,
)
from portal.services.uploads import buffer_upload, safe_filename
from portal.storage.base import StorageAdapter

logger = structlog.get_logger()

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
}


class ResourceCategoryService(ScopedService[ResourceCategory]):
    model = ResourceCategory
    resource = "category"
    add_fields = {"name": "name", "description": "description"}
    editable_fields = {"name": "name", "description": "description"}
    required_fields = ("name",)

    def _ordering(self):
        return (ResourceCategory.name.asc(),)


class ResourceRecordService(ScopedService[Resource]):
    model = Resource
    resource = "resource"

    def _ordering(self):
        return (Resource.name.asc(), Resource.created_at.asc())

    def list_where(self, *criteria) -> list[Resource]:
        self._scope()
        return list(self.db.scalars(select(Resource).where(*criteria).order_by(*self._ordering())))


class ResourceService:
    """Shared documents: e-board categories and per-sponsor uploads.

    Each ``resources`` row points at one object in the resources bucket; rows
    and objects are created and removed together.
    """

    def __init__(
        self,
        db,
        storage: StorageAdapter,
        max_bytes: int,
        principal: Principal | None = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.max_bytes = max_bytes
        self.categories = ResourceCategoryService(db, principal)
        self.records = ResourceRecordService(db, principal)

    def _remove_object(self, uri: str) -> None:
        try:
            self.storage.delete(self.storage.key_from_uri(uri))
        except (OSError, ValueError) as exc:
            logger.warning("resource_cleanup_failed", uri=uri, error=str(exc))

    def list_categories(self) -> list[tuple[ResourceCategory, list[Resource]]]:
        categories = self.categories.list()
        by_category: dict[uuid.UUID, list[Resource]] = {c.id: [] for c in categories}
        for record in self.records.list_where(Resource.category_id.is_not(None)):
            by_category.setdefault(record.category_id, []).append(record)
        return [(category, by_category[category.id]) for category in categories]

    def add_category(self, fields: Mapping[str, Any]) -> ResourceCategory:
        category = self.categories.add(fields)
        logger.info("resource_category_added", category_id=str(category.id), name=category.name)
        return category

    def delete_category(self, category_id: Any) -> None:
        category = self.categories.get_by_id(category_id)
        records = self.records.list_where(Resource.category_id == category.id)
        uris = [record.file_url for record in records]
        for record in records:
            self.db.delete(record)
        self.db.flush()
        # commits the resource rows together with the category
        self.categories.delete(category.id)
        for uri in uris:
            self._remove_object(uri)
        logger.info("resource_category_deleted", category_id=str(category.id), resources=len(uris))

    def list_for_sponsor(self, sponsor_id: Any) -> list[Resource]:
        pk = parse_uuid(sponsor_id, "sponsor")
        return self.records.list_where(Resource.sponsor_id == pk)

    def upload(
        self,
        name: str | None,
        filename: str | None,
        content_type: str | None,
        fileobj: BinaryIO,
        uploaded_by: Any = None,
        description: str | None = None,
        category_id: Any = None,
        sponsor_id: Any = None,
    ) -> Resource:
        label = (name or "").strip()
        if not label:
            raise InvalidArgumentError("resource name is required")
        if not content_type or content_type.lower() not in ALLOWED_MIME_TYPES:
            raise InvalidArgumentError("unsupported file type")

        if category_id is not None:
            owner = self.categories.get_by_id(category_id).id
            prefix = f"categories/{owner}"
            sponsor_pk = None
        elif sponsor_id is not None:
            owner = None
            sponsor_pk = parse_uuid(sponsor_id, "sponsor")
            prefix = f"sponsors/{sponsor_pk}"
        else:
            raise InvalidArgumentError("a category or sponsor is required")

        buffered = buffer_upload(fileobj, self.max_bytes)
        key = f"{prefix}/{uuid.uuid4().hex[:8]}-{safe_filename(filename)}"
        try:
            try:
                file_url = self.storage.put_file(key, buffered)
            except OSError as exc:
                raise PersistenceFailure("failed to store resource") from exc
        finally:
            buffered.close()

        record = Resource(
            category_id=owner,
            sponsor_id=sponsor_pk,
            name=label,
            description=(description or "").strip() or None,
            file_url=file_url,
            mime_type=content_type.lower(),
            uploaded_by=parse_uuid(uploaded_by, "user") if uploaded_by else None,
        )
        try:
            self.records.save(record, "add")
        except ServiceError:
            self._remove_object(file_url)
            raise
        logger.info("resource_stored", resource_id=str(record.id), key=key)
        return record

    def get(self, resource_id: Any) -> Resource:
        return self.records.get_by_id(resource_id)

    def open(self, resource_id: Any) -> tuple[Resource, BinaryIO]:
        record = self.get(resource_id)
        try:
            return record, self.storage.open(self.storage.key_from_uri(record.file_url))
        except (OSError, ValueError):
            raise NotFoundError("resource file not found") from None

    def delete(self, resource_id: Any, category_id: Any = None, sponsor_id: Any = None) -> None:
        record = self.get(resource_id)
        if category_id is not None and record.category_id != parse_uuid(category_id, "category"):
            raise NotFoundError("resource not found")
        if sponsor_id is not None and record.sponsor_id != parse_uuid(sponsor_id, "sponsor"):
            raise NotFoundError("resource not found")

        uri = record.file_url
        self.records.delete(record.id)
        self._remove_object(uri)
        logger.info("resource_deleted", resource_id=str(record.id))
