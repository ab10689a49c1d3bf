from __future__ import annotations

import json
from unittest.mock import MagicMock

from sqlalchemy import event

from conftest import MEMBER, make_user, principal_for
from portal.db import CLAIMS_KEY, SessionLocal, _reapply_row_level_claims
from portal.services.announcements_service import AnnouncementService
from portal.services.events_service import EventService


def _connection(dialect: str) -> MagicMock:
    connection = MagicMock()
    connection.dialect.name = dialect
    return connection


def test_listener_is_registered_on_the_session_factory():
    assert event.contains(SessionLocal, "after_begin", _reapply_row_level_claims)


def test_new_postgres_transaction_gets_the_stored_claims():
    claims = {"sub": "0b5e0c1e-7d4f-4b8e-9d5c-2f1a3b4c5d6e", "role": "e-board"}
    session = MagicMock(info={CLAIMS_KEY: claims})
    connection = _connection("postgresql")

    _reapply_row_level_claims(session, None, connection)

    connection.execute.assert_called_once()
    statement, params = connection.execute.call_args.args
    assert "set_config('request.jwt.claims'" in str(statement)
    assert json.loads(params["claims"]) == claims


def test_unscoped_session_and_other_dialects_are_left_alone():
    connection = _connection("postgresql")
    _reapply_row_level_claims(MagicMock(info={}), None, connection)
    connection.execute.assert_not_called()

    connection = _connection("sqlite")
    _reapply_row_level_claims(MagicMock(info={CLAIMS_KEY: {"sub": "x"}}), None, connection)
    connection.execute.assert_not_called()


def test_scoped_service_keeps_claims_on_the_session(db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    principal = principal_for(user, MEMBER)

    EventService(db_session, principal).list()
    assert db_session.info[CLAIMS_KEY] == principal.claims


def test_work_after_commit_starts_with_the_callers_claims(db_session):
    user = make_user(db_session, "member@example.com", MEMBER)
    principal = principal_for(user, MEMBER)
    seen = []

    def _record(session, transaction, connection):
        seen.append(session.info.get(CLAIMS_KEY))

    event.listen(db_session, "after_begin", _record)
    try:
        # add commits, then refreshes the row in a fresh transaction
        created = AnnouncementService(db_session, principal).add({"title": "Dues", "description": "Friday"})
    finally:
        event.remove(db_session, "after_begin", _record)

    assert created.title == "Dues"
    assert seen
    assert all(claims == principal.claims for claims in seen)
