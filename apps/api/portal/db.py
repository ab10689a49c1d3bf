from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portal.core.config import settings


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # one shared in-memory connection across the threadpool
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, future=True, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


CLAIMS_KEY = "claims"
_SET_CLAIMS = text("SELECT set_config('request.jwt.claims', :claims, true)")


def _claims_params(claims: dict[str, Any]) -> dict[str, str]:
    return {"claims": json.dumps(claims, default=str)}


def apply_row_level_claims(db: Session, claims: dict[str, Any]) -> None:
    """Expose the caller's token claims to Postgres row-level policies.

    Policies read them back with ``current_setting('request.jwt.claims', true)``.
    The setting is transaction-local; the claims are kept in ``db.info`` and
    re-applied by ``_reapply_row_level_claims`` whenever the session begins a
    new transaction, so work after a commit stays scoped.
    Other dialects have no row-level policies and are left untouched.
    """
    db.info[CLAIMS_KEY] = claims
    bind = db.get_bind()
    if bind.dialect.name != "postgresql":
        return
    db.execute(_SET_CLAIMS, _claims_params(claims))


@event.listens_for(SessionLocal, "after_begin")
def _reapply_row_level_claims(session: Session, transaction, connection) -> None:
    claims = session.info.get(CLAIMS_KEY)
    if claims is None or connection.dialect.name != "postgresql":
        return
    connection.execute(_SET_CLAIMS, _claims_params(claims))
