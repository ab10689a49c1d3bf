from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.auth.features import Feature
from portal.auth.principal import Principal
from portal.core.config import settings
from portal.geo.distance import haversine_meters
from portal.geo.geocoding import Coordinates, Geocoder
from portal.models import Attendance, Event
from portal.services.base import parse_uuid
from portal.services.events_service import EventService
from portal.services.exceptions import (
    GeocodeFailure,
    PersistenceFailure,
    ServiceError,
    TooFarError,
)
from portal.services.member_info_service import MemberInfoService

logger = structlog.get_logger()


class CheckInStatus(str, Enum):
    CHECKED_IN = "checked_in"
    ALREADY_CHECKED_IN = "already_checked_in"


@dataclass(frozen=True)
class CheckInResult:
    status: CheckInStatus
    event_id: uuid.UUID
    user_id: uuid.UUID
    distance_meters: float


def _resolve_coordinates(events: EventService, event: Event, geocoder: Geocoder) -> Coordinates:
    if event.has_coordinates:
        return Coordinates(lat=event.lat, lon=event.lon)

    try:
        coords = geocoder.geocode(event.location or "")
    except GeocodeFailure:
        logger.warning("check_in_geocode_failed", event_id=str(event.id), location=event.location)
        raise

    try:
        events.set_coordinates(event, coords)
    except ServiceError as exc:
        # best effort: the next check-in geocodes again
        logger.warning(
            "coordinate_backfill_failed",
            event_id=str(event.id),
            error=exc.message,
        )
    return coords


def check_in(
    db: Session,
    principal: Principal,
    event_id: Any,
    lat: float,
    lon: float,
    geocoder: Geocoder,
) -> CheckInResult:
    events = EventService(db, principal)
    event = events.get_by_id(event_id)
    user_id = parse_uuid(principal.id, "user")
    MemberInfoService(db, principal).require_feature(user_id, Feature.EVENT_CHECKIN)

    coords = _resolve_coordinates(events, event, geocoder)

    distance = haversine_meters(lat, lon, coords.lat, coords.lon)
    max_distance = settings.checkin_max_distance_meters
    if distance > max_distance:
        logger.info(
            "check_in_too_far",
            event_id=str(event.id),
            user_id=str(user_id),
            distance_m=round(distance, 1),
        )
        raise TooFarError(f"you must be within {max_distance:g} meters of the event to check in")

    db.add(Attendance(event_id=event.id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = db.scalar(
            select(Attendance.id).where(
                Attendance.event_id == event.id,
                Attendance.user_id == user_id,
            )
        )
        if existing is not None:
            return CheckInResult(CheckInStatus.ALREADY_CHECKED_IN, event.id, user_id, distance)
        raise PersistenceFailure("failed to record attendance") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure("failed to record attendance") from exc

    logger.info(
        "check_in_recorded",
        event_id=str(event.id),
        user_id=str(user_id),
        distance_m=round(distance, 1),
    )
    return CheckInResult(CheckInStatus.CHECKED_IN, event.id, user_id, distance)


def list_attendees(db: Session, principal: Principal | None, event_id: Any) -> list[uuid.UUID]:
    event = EventService(db, principal).get_by_id(event_id)
    stmt = (
        select(Attendance.user_id)
        .where(Attendance.event_id == event.id)
        .order_by(Attendance.created_at.asc())
    )
    return list(db.scalars(stmt))
