from __future__ import annotations

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from conftest import (
    CAMPUS,
    EBOARD,
    MEMBER,
    FakeGeocoder,
    auth_headers,
    make_event,
    make_member_info,
    make_user,
    principal_for,
    random_id,
)
from portal.geo.distance import haversine_meters
from portal.models import Attendance, Event
from portal.services import checkin_service
from portal.services.checkin_service import CheckInStatus, check_in
from portal.services.events_service import EventService
from portal.services.exceptions import ForbiddenError, GeocodeFailure, PersistenceFailure, TooFarError


def _attendance_count(db) -> int:
    return db.scalar(select(func.count()).select_from(Attendance))


def test_check_in_at_event_location(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "checked_in"
    assert body["distance_meters"] == 0
    assert body["user_id"] == str(user.id)
    assert _attendance_count(db_session) == 1
    assert geocoder.calls == []


def test_check_in_accepts_long_coordinate_names(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"latitude": CAMPUS.lat, "longitude": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 200


def test_check_in_two_km_away_is_too_far(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat + 0.018, "lon": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "TOO_FAR"
    assert _attendance_count(db_session) == 0


def test_missing_coordinates_are_geocoded_once_and_stored(client: TestClient, db_session, geocoder):
    first = make_user(db_session, "first@example.com", MEMBER)
    second = make_user(db_session, "second@example.com", EBOARD)
    event = make_event(db_session, location="Campus Quad")

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(first, MEMBER),
    )
    assert resp.status_code == 200
    assert geocoder.calls == ["Campus Quad"]

    db_session.expire_all()
    stored = db_session.get(Event, event.id)
    assert (stored.lat, stored.lon) == (CAMPUS.lat, CAMPUS.lon)

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(second, EBOARD),
    )
    assert resp.status_code == 200
    assert len(geocoder.calls) == 1
    assert _attendance_count(db_session) == 2


def test_geocode_failure_is_502_and_records_nothing(client: TestClient, db_session, geocoder):
    geocoder.result = GeocodeFailure("no location found for the given address")
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, location="Nowhere In Particular")

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 502
    assert resp.json()["code"] == "GEOCODE_FAILED"
    assert _attendance_count(db_session) == 0


def test_unknown_event_is_404(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    resp = client.post(
        f"/v1/events/checkin/{random_id()}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 404
    assert geocoder.calls == []


def test_user_without_member_role_is_forbidden(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "student@example.com")
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)
    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(user),
    )
    assert resp.status_code == 403
    assert _attendance_count(db_session) == 0


def test_duplicate_check_in_is_idempotent(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)
    headers = auth_headers(user, MEMBER)
    payload = {"lat": CAMPUS.lat, "lon": CAMPUS.lon}

    assert client.post(f"/v1/events/checkin/{event.id}", json=payload, headers=headers).json()["status"] == "checked_in"
    resp = client.post(f"/v1/events/checkin/{event.id}", json=payload, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "already_checked_in"
    assert _attendance_count(db_session) == 1


def test_out_of_range_coordinates_are_rejected(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)
    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": 123, "lon": 0},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_ARGUMENT"


def test_check_in_without_coordinates_is_400(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)
    resp = client.post(f"/v1/events/checkin/{event.id}", json={}, headers=auth_headers(user, MEMBER))
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "INVALID_ARGUMENT"
    assert "lat" in body["error"]
    assert _attendance_count(db_session) == 0


@pytest.mark.parametrize(
    ("distance", "accepted"),
    [(999.9, True), (1000.0, True), (1000.0001, False)],
)
def test_distance_threshold_is_inclusive(db_session, monkeypatch, distance, accepted):
    monkeypatch.setattr(checkin_service, "haversine_meters", lambda *args: distance)
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    if accepted:
        result = check_in(db_session, principal_for(user, MEMBER), event.id, 0.0, 0.0, FakeGeocoder())
        assert result.status is CheckInStatus.CHECKED_IN
        assert _attendance_count(db_session) == 1
    else:
        with pytest.raises(TooFarError):
            check_in(db_session, principal_for(user, MEMBER), event.id, 0.0, 0.0, FakeGeocoder())
        assert _attendance_count(db_session) == 0


def test_backfill_failure_does_not_abort_check_in(db_session, monkeypatch):
    def _fail(self, event, coords):
        raise PersistenceFailure("failed to update coordinates of event")

    monkeypatch.setattr(EventService, "set_coordinates", _fail)
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, location="Campus Quad")
    geocoder = FakeGeocoder()

    result = check_in(db_session, principal_for(user, MEMBER), event.id, CAMPUS.lat, CAMPUS.lon, geocoder)
    assert result.status is CheckInStatus.CHECKED_IN
    assert geocoder.calls == ["Campus Quad"]
    assert _attendance_count(db_session) == 1


def test_event_without_location_cannot_be_geocoded(db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, location=None)
    geocoder = FakeGeocoder(GeocodeFailure("no address to geocode"))

    with pytest.raises(GeocodeFailure):
        check_in(db_session, principal_for(user, MEMBER), event.id, CAMPUS.lat, CAMPUS.lon, geocoder)
    assert _attendance_count(db_session) == 0


def test_two_km_offset_is_about_two_km():
    distance = haversine_meters(CAMPUS.lat, CAMPUS.lon, CAMPUS.lat + 0.018, CAMPUS.lon)
    assert 1990 < distance < 2010


def test_eboard_sees_attendance(client: TestClient, db_session, geocoder):
    member = make_user(db_session, "member@example.com", MEMBER)
    board = make_user(db_session, "board@example.com", EBOARD)
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)
    client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(member, MEMBER),
    )

    resp = client.get(f"/v1/events/{event.id}/attendance", headers=auth_headers(board, EBOARD))
    assert resp.status_code == 200
    assert resp.json() == {"event_id": str(event.id), "user_ids": [str(member.id)]}


def test_caller_at_event_coordinates_checks_in(db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    event = make_event(db_session, location="Memorial Union", lat=33.4255, lon=-111.9400)

    result = check_in(db_session, principal_for(user, MEMBER), event.id, 33.4255, -111.9400, FakeGeocoder())
    assert result.distance_meters == 0
    assert result.status is CheckInStatus.CHECKED_IN
    assert _attendance_count(db_session) == 1


def test_alumni_cannot_check_in(client: TestClient, db_session, geocoder):
    user = make_user(db_session, "alum@example.com", MEMBER)
    make_member_info(db_session, user, rank="Alumni")
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    resp = client.post(
        f"/v1/events/checkin/{event.id}",
        json={"lat": CAMPUS.lat, "lon": CAMPUS.lon},
        headers=auth_headers(user, MEMBER),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"
    assert _attendance_count(db_session) == 0


def test_archived_member_cannot_check_in(db_session):
    user = make_user(db_session, "gone@example.com", MEMBER)
    make_member_info(db_session, user, rank="inducted", archived_at=dt.datetime.now(dt.timezone.utc))
    event = make_event(db_session, lat=CAMPUS.lat, lon=CAMPUS.lon)

    with pytest.raises(ForbiddenError):
        check_in(db_session, principal_for(user, MEMBER), event.id, CAMPUS.lat, CAMPUS.lon, FakeGeocoder())
    assert _attendance_count(db_session) == 0


def test_inducted_member_checks_in_after_coordinates_backfill(db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    make_member_info(db_session, user, rank="inducted")
    event = make_event(db_session, location="Campus Quad")

    result = check_in(db_session, principal_for(user, MEMBER), event.id, CAMPUS.lat, CAMPUS.lon, FakeGeocoder())
    assert result.status is CheckInStatus.CHECKED_IN
    assert _attendance_count(db_session) == 1
