from portal.models.announcement import Announcement
from portal.models.attendance import Attendance, Rsvp
from portal.models.base import Base
from portal.models.event import Event
from portal.models.member_info import MemberInfo
from portal.models.resource import Resource, ResourceCategory
from portal.models.sponsor import Sponsor
from portal.models.user import User
from portal.models.user_role import UserRole

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Event",
    "Attendance",
    "Rsvp",
    "Announcement",
    "MemberInfo",
    "Sponsor",
    "ResourceCategory",
    "Resource",
]
