from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from portal.auth.principal import Role

logger = structlog.get_logger()

SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthSnapshot:
    session: dict[str, Any] | None = None
    roles: tuple[Role, ...] = ()
    loading: bool = True


def _identity(session: dict[str, Any] | None) -> str | None:
    if not session:
        return None
    user = session.get("user")
    if isinstance(user, dict) and user.get("id"):
        return str(user["id"])
    subject = session.get("sub")
    return str(subject) if subject else None


class AuthSessionStore:
    """Holds the current session and the roles stored for its user.

    ``on_auth_state_change`` is the only writer. Roles are looked up through
    ``resolve_roles`` when the signed-in identity changes, not on every read.
    """

    def __init__(self, resolve_roles: Callable[[str], list[Role]]) -> None:
        self._resolve_roles = resolve_roles
        self._snapshot = AuthSnapshot()
        self._identity: str | None = None

    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    def on_auth_state_change(self, event: str, session: dict[str, Any] | None) -> AuthSnapshot:
        identity = None if event == SIGNED_OUT else _identity(session)

        if identity is None:
            self._identity = None
            self._snapshot = AuthSnapshot(session=None, roles=(), loading=False)
            return self._snapshot

        if identity == self._identity and not self._snapshot.loading:
            # token refresh for the same user; keep the roles we already have
            self._snapshot = AuthSnapshot(session=session, roles=self._snapshot.roles, loading=False)
            return self._snapshot

        self._identity = identity
        self._snapshot = AuthSnapshot(session=session, roles=(), loading=True)
        roles = tuple(self._resolve_roles(identity))
        logger.debug("session_roles_resolved", user_id=identity, roles=[r.name.value for r in roles])
        self._snapshot = AuthSnapshot(session=session, roles=roles, loading=False)
        return self._snapshot
