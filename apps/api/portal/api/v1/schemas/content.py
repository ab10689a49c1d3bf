from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr

from portal.api.v1.schemas.base import SchemaBase


class AnnouncementCreate(SchemaBase):
    title: str | None = None
    description: str | None = None


class AnnouncementUpdate(AnnouncementCreate):
    pass


class AnnouncementOut(SchemaBase):
    id: UUID
    title: str
    description: str
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, announcement) -> AnnouncementOut:
        return cls(
            id=announcement.id,
            title=announcement.title,
            description=announcement.body,
            created_by=announcement.created_by,
            created_at=announcement.created_at,
            updated_at=announcement.updated_at,
        )


class MemberInfoUpdate(SchemaBase):
    first_name: str | None = None
    last_name: str | None = None
    year: str | None = None
    major: str | None = None
    bio: str | None = None
    internship: str | None = None
    contact_me: bool | None = None


class MemberInfoAdminUpdate(MemberInfoUpdate):
    rank: str | None = None


class MemberInfoCreate(MemberInfoAdminUpdate):
    user_id: UUID


class MemberInfoOut(SchemaBase):
    user_id: UUID
    first_name: str | None = None
    last_name: str | None = None
    year: str | None = None
    major: str | None = None
    bio: str | None = None
    internship: str | None = None
    contact_me: bool = False
    profile_photo_url: str | None = None
    rank: str | None = None
    archived_at: datetime | None = None


class MemberSearchHit(MemberInfoOut):
    email: str | None = None


class MemberSearchOut(SchemaBase):
    items: list[MemberSearchHit]


class ProfilePhotoOut(SchemaBase):
    user_id: UUID
    profile_photo_url: str | None = None


class SponsorCreate(SchemaBase):
    company_name: str
    passcode: str
    email: EmailStr
    about: str | None = None
    website: str | None = None


class SponsorUpdate(SchemaBase):
    about: str | None = None
    website: str | None = None


class SponsorOut(SchemaBase):
    id: UUID
    company_name: str
    about: str | None = None
    website: str | None = None


class SponsorNamesOut(SchemaBase):
    names: list[str]
