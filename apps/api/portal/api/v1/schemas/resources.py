from __future__ import annotations

from datetime import datetime
from uuid import UUID

from portal.api.v1.schemas.base import SchemaBase


class CategoryCreate(SchemaBase):
    name: str | None = None
    description: str | None = None


class ResourceOut(SchemaBase):
    id: UUID
    category_id: UUID | None = None
    sponsor_id: UUID | None = None
    name: str
    description: str | None = None
    file_url: str
    mime_type: str | None = None
    uploaded_by: UUID | None = None
    created_at: datetime


class CategoryOut(SchemaBase):
    id: UUID
    name: str
    description: str | None = None
    resources: list[ResourceOut] = []


class CategoriesOut(SchemaBase):
    items: list[CategoryOut]


class ResourcesOut(SchemaBase):
    items: list[ResourceOut]
