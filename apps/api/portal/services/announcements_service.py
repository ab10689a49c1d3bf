from __future__ import annotations

from portal.models import Announcement
from portal.services.base import ScopedService


class AnnouncementService(ScopedService[Announcement]):
    model = Announcement
    resource = "announcement"
    add_fields = {
        "title": "title",
        "description": "body",
        "created_by": "created_by",
    }
    editable_fields = {
        "title": "title",
        "description": "body",
    }
    required_fields = ("title", "body")
    uuid_columns = ("created_by",)
