from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.auth.features import Feature
from portal.auth.principal import Principal
from portal.models import Rsvp
from portal.services.base import parse_uuid
from portal.services.events_service import EventService
from portal.services.exceptions import PersistenceFailure
from portal.services.member_info_service import MemberInfoService

logger = structlog.get_logger()


class RsvpStatus(str, Enum):
    RSVPED = "rsvped"
    ALREADY_RSVPED = "already_rsvped"


def rsvp(db: Session, principal: Principal, event_id: Any) -> tuple[RsvpStatus, uuid.UUID, uuid.UUID]:
    event = EventService(db, principal).get_by_id(event_id)
    user_id = parse_uuid(principal.id, "user")
    MemberInfoService(db, principal).require_feature(user_id, Feature.EVENT_RSVP)

    db.add(Rsvp(event_id=event.id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = db.scalar(
            select(Rsvp.id).where(Rsvp.event_id == event.id, Rsvp.user_id == user_id)
        )
        if existing is not None:
            return RsvpStatus.ALREADY_RSVPED, event.id, user_id
        raise PersistenceFailure("failed to record rsvp") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure("failed to record rsvp") from exc

    logger.info("rsvp_recorded", event_id=str(event.id), user_id=str(user_id))
    return RsvpStatus.RSVPED, event.id, user_id


def list_rsvps(db: Session, principal: Principal | None, event_id: Any) -> list[uuid.UUID]:
    event = EventService(db, principal).get_by_id(event_id)
    stmt = select(Rsvp.user_id).where(Rsvp.event_id == event.id).order_by(Rsvp.created_at.asc())
    return list(db.scalars(stmt))
