from __future__ import annotations

import datetime as dt
from typing import Any

import structlog
from sqlalchemy import select

from portal.geo.geocoding import Coordinates
from portal.models import Event
from portal.services.base import ScopedService
from portal.services.exceptions import InvalidArgumentError

logger = structlog.get_logger()


def _parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidArgumentError("date must be YYYY-MM-DD") from None


def _parse_time(value: Any) -> dt.time:
    if isinstance(value, dt.time):
        return value
    try:
        return dt.time.fromisoformat(str(value))
    except ValueError:
        raise InvalidArgumentError("time must be HH:MM") from None


class EventService(ScopedService[Event]):
    model = Event
    resource = "event"
    add_fields = {
        "name": "name",
        "date": "date",
        "time": "time",
        "location": "location",
        "description": "description",
        "created_by": "created_by",
    }
    editable_fields = {
        "name": "name",
        "date": "date",
        "time": "time",
        "location": "location",
        "description": "description",
    }
    required_fields = ("name", "date")
    uuid_columns = ("created_by",)

    def _ordering(self):
        return (Event.date.asc(), Event.time.asc(), Event.created_at.asc())

    def _coerce(self, values: dict[str, Any]) -> dict[str, Any]:
        if "date" in values:
            values["date"] = _parse_date(values["date"])
        if "time" in values:
            values["time"] = _parse_time(values["time"])
        return values

    def _prepare_update(self, updates: dict[str, Any]) -> dict[str, Any]:
        if "location" in updates:
            # Stale coordinates are dropped; the next check-in geocodes again
            updates["lat"] = None
            updates["lon"] = None
        return updates

    def list_by_date(self, on_or_after: dt.date | str | None = None) -> list[Event]:
        start = _parse_date(on_or_after) if on_or_after else dt.date.today()
        self._scope()
        stmt = select(Event).where(Event.date >= start).order_by(*self._ordering())
        return list(self.db.scalars(stmt))

    def set_coordinates(self, event: Event, coords: Coordinates) -> None:
        self._scope()
        event.lat = coords.lat
        event.lon = coords.lon
        self.db.add(event)
        self._commit("update coordinates of")
        logger.info("coordinates_backfilled", event_id=str(event.id), lat=coords.lat, lon=coords.lon)

    def search_by_name(self, name: str | None) -> list[Event]:
        term = (name or "").strip()
        if not term:
            raise InvalidArgumentError("name is required")
        self._scope()
        stmt = (
            select(Event)
            .where(Event.name.ilike(f"%{term}%"))
            .order_by(*self._ordering())
        )
        return list(self.db.scalars(stmt))
