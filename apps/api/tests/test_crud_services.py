from __future__ import annotations

import datetime as dt
from unittest.mock import MagicMock

import pytest
from argon2.exceptions import HashingError
from fastapi.testclient import TestClient

from conftest import CAMPUS, EBOARD, MEMBER, auth_headers, make_event, make_user, principal_for, random_id
from portal.api.v1.schemas import auth as auth_schemas
from portal.api.v1.schemas import content as content_schemas
from portal.api.v1.schemas import events as events_schemas
from portal.auth import password
from portal.auth.password import hash_passcode
from portal.auth.principal import Role, RoleName
from portal.models import Announcement, MemberInfo
from portal.services.announcements_service import AnnouncementService
from portal.services.base import ScopedService
from portal.services.events_service import EventService
from portal.services.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceFailure,
    UnauthenticatedError,
)
from portal.services.member_info_service import MemberInfoService
from portal.services.sponsor_service import SponsorService
from portal.services.user_role_service import UserRoleService


def test_edit_with_only_blank_fields_never_touches_the_database():
    db = MagicMock()
    service = AnnouncementService(db)

    with pytest.raises(InvalidArgumentError, match="no valid update fields provided"):
        service.edit("5", {"announcement_id": "5", "title": "", "description": ""})
    assert db.mock_calls == []


def test_delete_missing_record_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        AnnouncementService(db_session).delete(random_id())
    with pytest.raises(NotFoundError):
        EventService(db_session).delete("42")


def test_add_requires_fields(db_session):
    with pytest.raises(InvalidArgumentError, match="title"):
        AnnouncementService(db_session).add({"description": "body only"})
    with pytest.raises(InvalidArgumentError, match="date"):
        EventService(db_session).add({"name": "No date"})


def test_bad_date_is_invalid_argument(db_session):
    with pytest.raises(InvalidArgumentError):
        EventService(db_session).add({"name": "Social", "date": "next tuesday"})


def test_announcement_description_maps_to_body(db_session):
    service = AnnouncementService(db_session)
    created = service.add({"title": " Dues ", "description": "Pay by Friday"})
    assert isinstance(created, Announcement)
    assert (created.title, created.body) == ("Dues", "Pay by Friday")

    edited = service.edit(created.id, {"title": "  ", "description": "Pay by Monday"})
    assert (edited.title, edited.body) == ("Dues", "Pay by Monday")


def test_editing_location_clears_coordinates(db_session):
    event = make_event(db_session, location="Old Hall", lat=CAMPUS.lat, lon=CAMPUS.lon)
    service = EventService(db_session)

    renamed = service.edit(event.id, {"name": "Renamed"})
    assert (renamed.lat, renamed.lon) == (CAMPUS.lat, CAMPUS.lon)

    moved = service.edit(event.id, {"location": "New Hall"})
    assert moved.location == "New Hall"
    assert moved.lat is None and moved.lon is None


def test_list_by_date_skips_past_events(db_session):
    today = dt.date.today()
    make_event(db_session, name="Past", date=today - dt.timedelta(days=3))
    make_event(db_session, name="Upcoming", date=today + dt.timedelta(days=3))

    names = [e.name for e in EventService(db_session).list_by_date()]
    assert names == ["Upcoming"]
    names = [e.name for e in EventService(db_session).list_by_date(today - dt.timedelta(days=5))]
    assert names == ["Past", "Upcoming"]


def test_member_search_is_case_insensitive(db_session):
    ada = make_user(db_session, "ada@example.com")
    alan = make_user(db_session, "alan@example.com")
    members = MemberInfoService(db_session)
    members.add({"user_id": str(ada.id), "first_name": "Ada", "last_name": "Lovelace", "major": "Mathematics"})
    members.add({"user_id": str(alan.id), "first_name": "Alan", "last_name": "Turing", "internship": "Bletchley"})

    hits = members.search("MATH")
    assert [(info.first_name, email) for info, email in hits] == [("Ada", "ada@example.com")]
    with pytest.raises(InvalidArgumentError):
        members.search("  ")


def test_role_assignment_lifecycle(db_session):
    user = make_user(db_session, "new@example.com")
    roles = UserRoleService(db_session)

    assert roles.assign_role(user.id, Role(RoleName.GENERAL_MEMBER)) is True
    assert roles.assign_role(user.id, Role(RoleName.GENERAL_MEMBER)) is False
    assert roles.has_any_role(user.id, [RoleName.GENERAL_MEMBER, RoleName.EBOARD])
    assert [u.email for u, _ in roles.list_users_with_role(RoleName.GENERAL_MEMBER)] == ["new@example.com"]
    assert roles.get_user_id("NEW@example.com ") == user.id

    assert roles.remove_role(user.id, RoleName.GENERAL_MEMBER) is True
    assert roles.get_roles(user.id) == []
    assert roles.remove_role(user.id, RoleName.GENERAL_MEMBER) is False


def test_sponsor_role_requires_company(db_session):
    user = make_user(db_session, "hr@acme.com")
    with pytest.raises(InvalidArgumentError):
        UserRoleService(db_session).assign_role(user.id, Role(RoleName.SPONSOR))


def test_assign_role_to_unknown_user(db_session):
    with pytest.raises(NotFoundError):
        UserRoleService(db_session).assign_role(random_id(), Role(RoleName.EBOARD))


def test_sponsor_add_and_authenticate(db_session):
    sponsors = SponsorService(db_session)
    sponsor = sponsors.add_sponsor("Acme", "s3cret", "HR@acme.com", about="Widgets")

    assert sponsors.list_names() == ["Acme"]
    assert UserRoleService(db_session).get_roles(sponsor.user_id) == [Role.sponsor("Acme")]

    found, user = sponsors.authenticate("Acme", "s3cret")
    assert found.id == sponsor.id
    assert user.email == "hr@acme.com"

    with pytest.raises(UnauthenticatedError):
        sponsors.authenticate("Acme", "wrong")
    with pytest.raises(UnauthenticatedError):
        sponsors.authenticate("Globex", "s3cret")
    with pytest.raises(ConflictError):
        sponsors.add_sponsor("Acme", "other", "other@acme.com")


def test_announcement_routes(client: TestClient, db_session):
    board = make_user(db_session, "board@example.com", EBOARD)
    member = make_user(db_session, "member@example.com", MEMBER)

    resp = client.post(
        "/v1/announcements",
        json={"title": "Dues", "description": "Pay by Friday"},
        headers=auth_headers(board, EBOARD),
    )
    assert resp.status_code == 201
    announcement_id = resp.json()["id"]

    resp = client.get("/v1/announcements", headers=auth_headers(member, MEMBER))
    assert [a["description"] for a in resp.json()] == ["Pay by Friday"]

    resp = client.patch(
        f"/v1/announcements/{announcement_id}",
        json={"title": ""},
        headers=auth_headers(board, EBOARD),
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "no valid update fields provided", "code": "INVALID_ARGUMENT"}

    resp = client.post(
        "/v1/announcements",
        json={"title": "Nope", "description": "members cannot post"},
        headers=auth_headers(member, MEMBER),
    )
    assert resp.status_code == 403


def test_member_info_me_routes(client: TestClient, db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    headers = auth_headers(user, MEMBER)

    resp = client.get("/v1/member-info/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user_id"] == str(user.id)

    resp = client.patch(
        "/v1/member-info/me",
        json={"first_name": "Grace", "major": "Computer Science", "contact_me": True},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Grace"
    assert resp.json()["contact_me"] is True

    resp = client.get("/v1/member-info/search", params={"q": "computer"}, headers=headers)
    assert [hit["email"] for hit in resp.json()["items"]] == ["member@example.com"]

    assert db_session.get(MemberInfo, user.id) is not None


def test_role_routes(client: TestClient, db_session):
    board = make_user(db_session, "board@example.com", EBOARD)
    user = make_user(db_session, "new@example.com")
    headers = auth_headers(board, EBOARD)

    resp = client.post("/v1/roles/assign", json={"user_id": str(user.id), "role": "general-member"}, headers=headers)
    assert resp.json() == {"changed": True}

    resp = client.get("/v1/roles/me", headers=auth_headers(user))
    assert resp.json()["roles"] == [{"role": "general-member", "company_name": None}]

    resp = client.get("/v1/roles/general-member/users", headers=headers)
    assert [item["email"] for item in resp.json()["items"]] == ["new@example.com"]

    assert client.get("/v1/roles/wizard/users", headers=headers).status_code == 400

    resp = client.post("/v1/roles/remove", json={"user_id": str(user.id), "role": "general-member"}, headers=headers)
    assert resp.json() == {"changed": True}


def test_principal_scoped_service_on_sqlite(db_session):
    # row-level claims are only applied on Postgres; other dialects pass through
    user = make_user(db_session, "member@example.com", MEMBER)
    make_event(db_session)
    assert len(EventService(db_session, principal_for(user, MEMBER)).list()) == 1


def test_blank_passcode_is_invalid_argument():
    with pytest.raises(InvalidArgumentError, match="passcode is required"):
        hash_passcode("")


class _FailingHasher:
    def hash(self, plain):
        raise HashingError("out of memory")


def test_hashing_failure_is_persistence_failure(monkeypatch):
    monkeypatch.setattr(password, "_hasher", _FailingHasher())
    with pytest.raises(PersistenceFailure, match="failed to hash passcode"):
        hash_passcode("s3cret")


def test_sponsor_with_blank_passcode_is_400(client: TestClient, db_session):
    board = make_user(db_session, "board@example.com", EBOARD)
    resp = client.post(
        "/v1/sponsors",
        json={"company_name": "Acme", "passcode": "", "email": "hr@acme.com"},
        headers=auth_headers(board, EBOARD),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_ARGUMENT"


def test_schemas_share_one_base():
    assert events_schemas.SchemaBase is content_schemas.SchemaBase is auth_schemas.SchemaBase
    assert not hasattr(ScopedService, "set_principal")
