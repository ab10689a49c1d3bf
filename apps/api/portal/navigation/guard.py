"""Advisory navigation guard for the single-page client.

Decides where a navigation should land given the current session snapshot.
It controls navigation only; data access is enforced by ``require_role``.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from portal.auth.principal import RoleName, role_satisfies
from portal.core.config import settings
from portal.navigation.session import AuthSnapshot

logger = structlog.get_logger()

# Checked in order; first matching prefix wins
PATH_REQUIREMENTS: tuple[tuple[str, RoleName], ...] = (
    ("/admin", RoleName.EBOARD),
    ("/sponsor", RoleName.SPONSOR),
    ("/member", RoleName.GENERAL_MEMBER),
)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"


def required_role_for_path(path: str) -> RoleName | None:
    for prefix, role in PATH_REQUIREMENTS:
        if path.startswith(prefix):
            return role
    return None


class NavigationKind(str, Enum):
    ALLOW = "allow"
    LOADING = "loading"
    LOGIN = "login"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class NavigationDecision:
    kind: NavigationKind
    redirect_to: str | None = None
    required_role: RoleName | None = None
    # where the user was heading, so login can send them back
    from_path: str | None = None


def evaluate_navigation(snapshot: AuthSnapshot, path: str) -> NavigationDecision:
    required = required_role_for_path(path)
    if required is None:
        return NavigationDecision(NavigationKind.ALLOW)

    if snapshot.loading:
        return NavigationDecision(NavigationKind.LOADING, required_role=required)

    if snapshot.session is None:
        return NavigationDecision(
            NavigationKind.LOGIN,
            redirect_to=LOGIN_PATH,
            required_role=required,
            from_path=path,
        )

    if not any(role_satisfies(role, required) for role in snapshot.roles):
        return NavigationDecision(
            NavigationKind.UNAUTHORIZED,
            redirect_to=UNAUTHORIZED_PATH,
            required_role=required,
            from_path=path,
        )

    return NavigationDecision(NavigationKind.ALLOW, required_role=required)


class UnauthorizedInterstitial:
    """Countdown shown to a signed-in user who lacks the role for a page.

    The deadline is fixed when the interstitial is entered, so repeated
    ``render()`` calls never push the logout back.
    """

    def __init__(
        self,
        logout: Callable[[], None],
        countdown_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if countdown_seconds is None:
            countdown_seconds = settings.unauthorized_logout_seconds
        self._logout = logout
        self._clock = clock
        self.countdown_seconds = countdown_seconds
        self.entered_at = clock()
        self.logged_out = False

    def remaining_seconds(self) -> float:
        elapsed = self._clock() - self.entered_at
        return max(0.0, self.countdown_seconds - elapsed)

    def render(self) -> dict:
        return {
            "message": "You do not have access to this page.",
            "seconds_remaining": int(round(self.remaining_seconds())),
            "logged_out": self.logged_out,
        }

    def tick(self) -> bool:
        """Fire the logout once the countdown has elapsed. Returns True if it fired now."""
        if self.logged_out or self.remaining_seconds() > 0:
            return False
        logger.info("unauthorized_auto_logout", countdown_s=self.countdown_seconds)
        return self._fire()

    def logout_now(self) -> bool:
        if self.logged_out:
            return False
        return self._fire()

    def _fire(self) -> bool:
        self.logged_out = True
        self._logout()
        return True
