from __future__ import annotations

import base64
import hashlib
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlencode

import httpx
import structlog

from portal.core.config import settings
from portal.services.exceptions import UnauthenticatedError

logger = structlog.get_logger()


@dataclass(frozen=True)
class IdentityUser:
    id: str
    email: str | None


def new_pkce_pair() -> tuple[str, str]:
    """Return (code_verifier, S256 code_challenge)."""
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class IdentityProvider(ABC):
    @abstractmethod
    def authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        """URL the browser is sent to in order to start OAuth sign-in."""

    @abstractmethod
    def exchange_code_for_session(self, code: str, code_verifier: str) -> IdentityUser:
        """Trade the callback code for the signed-in user."""


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        provider: str = "google",
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._provider = provider
        self._client = client or httpx.Client()

    def authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        params = {
            "provider": self._provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self._base_url}/auth/v1/authorize?{urlencode(params)}"

    def exchange_code_for_session(self, code: str, code_verifier: str) -> IdentityUser:
        try:
            response = self._client.post(
                f"{self._base_url}/auth/v1/token",
                params={"grant_type": "pkce"},
                json={"auth_code": code, "code_verifier": code_verifier},
                headers={"apikey": self._anon_key},
            )
        except httpx.HTTPError as exc:
            logger.warning("oauth_exchange_failed", error=str(exc))
            raise UnauthenticatedError("authentication failed") from exc

        if response.status_code >= 400:
            logger.warning("oauth_exchange_rejected", status_code=response.status_code)
            raise UnauthenticatedError("authentication failed")

        try:
            body = response.json()
        except ValueError as exc:
            raise UnauthenticatedError("authentication failed") from exc

        user = body.get("user") if isinstance(body, dict) else None
        user = user if isinstance(user, dict) else {}

        user_id = user.get("id")
        if not user_id:
            raise UnauthenticatedError("no user data received")
        return IdentityUser(id=str(user_id), email=user.get("email"))


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider:
    return SupabaseIdentityProvider(
        settings.supabase_url,
        settings.supabase_anon_key,
        provider=settings.oauth_provider,
    )
