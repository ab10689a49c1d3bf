from typing import Annotated

from fastapi import APIRouter, Depends, Response

from portal.api.v1.schemas import (
    CheckInIn,
    CheckInOut,
    EventCreate,
    EventOut,
    EventsByDateIn,
    EventSearchIn,
    EventUpdate,
    EventUsersOut,
    PublicEventOut,
    RSVPOut,
)
from portal.auth.deps import CurrentPrincipal, DBSession, EBoard, Member
from portal.geo.geocoding import Geocoder, get_geocoder
from portal.services import check_in, list_attendees, list_rsvps, rsvp
from portal.services.base import parse_uuid
from portal.services.checkin_service import CheckInStatus
from portal.services.events_service import EventService
from portal.services.rsvp_service import RsvpStatus

router = APIRouter(prefix="/events", tags=["events"])

GeocoderDep = Annotated[Geocoder, Depends(get_geocoder)]

CHECK_IN_MESSAGES = {
    CheckInStatus.CHECKED_IN: "Checked in successfully",
    CheckInStatus.ALREADY_CHECKED_IN: "Already checked in to this event",
}
RSVP_MESSAGES = {
    RsvpStatus.RSVPED: "RSVP recorded",
    RsvpStatus.ALREADY_RSVPED: "Already RSVPed to this event",
}


@router.get("", response_model=list[EventOut])
def list_events(principal: CurrentPrincipal, db: DBSession):
    return EventService(db, principal).list()


@router.post("/by-date", response_model=list[EventOut])
def list_events_by_date(principal: CurrentPrincipal, db: DBSession, payload: EventsByDateIn | None = None):
    on_or_after = payload.date if payload else None
    return EventService(db, principal).list_by_date(on_or_after)


@router.get("/public", response_model=list[PublicEventOut])
def list_public_events(db: DBSession):
    # No sign-in; upcoming events only, without coordinates or authorship
    return EventService(db).list_by_date()


@router.post("/search", response_model=list[EventOut])
def search_events(payload: EventSearchIn, principal: CurrentPrincipal, db: DBSession):
    return EventService(db, principal).search_by_name(payload.name)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, principal: CurrentPrincipal, db: DBSession):
    return EventService(db, principal).get_by_id(event_id)


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, principal: EBoard, db: DBSession):
    fields = payload.model_dump(exclude_unset=True)
    fields["created_by"] = principal.id
    return EventService(db, principal).add(fields)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, principal: EBoard, db: DBSession):
    return EventService(db, principal).edit(event_id, payload.model_dump(exclude_unset=True))


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, principal: EBoard, db: DBSession):
    EventService(db, principal).delete(event_id)
    return Response(status_code=204)


@router.post("/checkin/{event_id}", response_model=CheckInOut)
def check_in_to_event(
    event_id: str,
    payload: CheckInIn,
    principal: Member,
    db: DBSession,
    geocoder: GeocoderDep,
):
    result = check_in(db, principal, event_id, payload.lat, payload.lon, geocoder)
    return CheckInOut(
        status=result.status.value,
        message=CHECK_IN_MESSAGES[result.status],
        event_id=result.event_id,
        user_id=result.user_id,
        distance_meters=round(result.distance_meters, 1),
    )


@router.get("/{event_id}/attendance", response_model=EventUsersOut)
def event_attendance(event_id: str, principal: EBoard, db: DBSession):
    user_ids = list_attendees(db, principal, event_id)
    return EventUsersOut(event_id=parse_uuid(event_id, "event"), user_ids=user_ids)


@router.post("/rsvp/{event_id}", response_model=RSVPOut)
def rsvp_to_event(event_id: str, principal: CurrentPrincipal, db: DBSession):
    """Open to any signed-in user, sponsors and prospective members included.

    An RSVP only records intent. Check-in records chapter attendance and
    therefore requires a member role. Alumni are refused by both.
    """
    status, event_pk, user_pk = rsvp(db, principal, event_id)
    return RSVPOut(
        status=status.value,
        message=RSVP_MESSAGES[status],
        event_id=event_pk,
        user_id=user_pk,
    )


@router.get("/{event_id}/rsvps", response_model=EventUsersOut)
def event_rsvps(event_id: str, principal: EBoard, db: DBSession):
    user_ids = list_rsvps(db, principal, event_id)
    return EventUsersOut(event_id=parse_uuid(event_id, "event"), user_ids=user_ids)
