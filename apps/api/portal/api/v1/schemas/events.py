from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import Field, model_validator

from portal.api.v1.schemas.base import SchemaBase


class EventCreate(SchemaBase):
    name: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    description: str | None = None


class EventUpdate(SchemaBase):
    name: str | None = None
    # parsed by the service; blank strings leave the column unchanged
    date: str | None = None
    time: str | None = None
    location: str | None = None
    description: str | None = None


class EventOut(SchemaBase):
    id: UUID
    name: str
    date: dt.date
    time: dt.time | None = None
    location: str | None = None
    description: str | None = None
    lat: float | None = None
    lon: float | None = None
    created_by: UUID | None = None
    created_at: dt.datetime
    updated_at: dt.datetime


class PublicEventOut(SchemaBase):
    id: UUID
    name: str
    date: dt.date
    time: dt.time | None = None
    location: str | None = None
    description: str | None = None


class EventsByDateIn(SchemaBase):
    date: str | None = None


class EventSearchIn(SchemaBase):
    name: str | None = None


class CheckInIn(SchemaBase):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def _coerce_long_names(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("lat") is None and data.get("latitude") is not None:
                data["lat"] = data["latitude"]
            if data.get("lon") is None and data.get("longitude") is not None:
                data["lon"] = data["longitude"]
        return data


class CheckInOut(SchemaBase):
    status: str
    message: str
    event_id: UUID
    user_id: UUID
    distance_meters: float


class RSVPOut(SchemaBase):
    status: str
    message: str
    event_id: UUID
    user_id: UUID


class EventUsersOut(SchemaBase):
    event_id: UUID
    user_ids: list[UUID]
