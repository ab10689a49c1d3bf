from portal.services.checkin_service import check_in, list_attendees
from portal.services.rsvp_service import list_rsvps, rsvp

__all__ = [
    "check_in",
    "list_attendees",
    "rsvp",
    "list_rsvps",
]
