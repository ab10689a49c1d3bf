from portal.api.v1.schemas.auth import (
    AccessOut,
    AssignRoleIn,
    FeaturesOut,
    ChangedOut,
    LoginOut,
    PrincipalOut,
    RemoveRoleIn,
    RoleOut,
    RolesOut,
    RoleUserOut,
    RoleUsersOut,
    SessionOut,
    SponsorLoginIn,
)
from portal.api.v1.schemas.content import (
    AnnouncementCreate,
    AnnouncementOut,
    AnnouncementUpdate,
    MemberInfoAdminUpdate,
    MemberInfoCreate,
    MemberInfoOut,
    MemberInfoUpdate,
    MemberSearchHit,
    MemberSearchOut,
    ProfilePhotoOut,
    SponsorCreate,
    SponsorNamesOut,
    SponsorOut,
    SponsorUpdate,
)
from portal.api.v1.schemas.events import (
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
from portal.api.v1.schemas.resources import (
    CategoriesOut,
    CategoryCreate,
    CategoryOut,
    ResourceOut,
    ResourcesOut,
)

__all__ = [
    "AccessOut",
    "AssignRoleIn",
    "FeaturesOut",
    "ChangedOut",
    "LoginOut",
    "PrincipalOut",
    "RemoveRoleIn",
    "RoleOut",
    "RolesOut",
    "RoleUserOut",
    "RoleUsersOut",
    "SessionOut",
    "SponsorLoginIn",
    "AnnouncementCreate",
    "AnnouncementOut",
    "AnnouncementUpdate",
    "MemberInfoAdminUpdate",
    "MemberInfoCreate",
    "MemberInfoOut",
    "MemberInfoUpdate",
    "MemberSearchHit",
    "MemberSearchOut",
    "ProfilePhotoOut",
    "SponsorCreate",
    "SponsorNamesOut",
    "SponsorOut",
    "SponsorUpdate",
    "CheckInIn",
    "CheckInOut",
    "EventCreate",
    "EventOut",
    "EventsByDateIn",
    "EventSearchIn",
    "EventUpdate",
    "EventUsersOut",
    "PublicEventOut",
    "RSVPOut",
    "CategoriesOut",
    "CategoryCreate",
    "CategoryOut",
    "ResourceOut",
    "ResourcesOut",
]
