"""Feature access by member rank.

Roles decide which pages a user may open; rank narrows what a member can do
once inside. Alumni keep their profile and the directory but lose the
features tied to active membership.
"""
from __future__ import annotations

from enum import Enum


class MemberRank(str, Enum):
    PLEDGE = "pledge"
    INDUCTED = "inducted"
    ALUMNI = "alumni"


class Feature(str, Enum):
    EVENT_RSVP = "event-rsvp"
    EVENT_CHECKIN = "event-checkin"
    ANNOUNCEMENTS = "announcements"
    SLACK_ACCESS = "slack-access"


ALUMNI_BLOCKED_FEATURES = frozenset(
    {
        Feature.EVENT_RSVP,
        Feature.EVENT_CHECKIN,
        Feature.ANNOUNCEMENTS,
        Feature.SLACK_ACCESS,
    }
)


def parse_rank(value: str | None) -> MemberRank | None:
    if not value:
        return None
    try:
        return MemberRank(value.strip().lower())
    except ValueError:
        return None


def is_alumni(rank: str | None) -> bool:
    return parse_rank(rank) is MemberRank.ALUMNI


def can_access_feature(rank: str | None, feature: Feature) -> bool:
    if is_alumni(rank):
        return feature not in ALUMNI_BLOCKED_FEATURES
    return True
