from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from portal.api.v1.schemas import LoginOut, PrincipalOut, SessionOut, SponsorLoginIn
from portal.auth.deps import CurrentPrincipal, DBSession
from portal.auth.jwt import create_session_token, principal_from_claims, verify_session_token
from portal.auth.principal import Role, RoleName, primary_role
from portal.core.config import settings
from portal.identity.supabase import IdentityProvider, get_identity_provider, new_pkce_pair
from portal.services.exceptions import InvalidArgumentError, UnauthenticatedError
from portal.services.sponsor_service import SponsorService
from portal.services.user_role_service import UserRoleService
from portal.services.users_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger()

IdentityDep = Annotated[IdentityProvider, Depends(get_identity_provider)]


def _set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=max_age,
        path="/",
    )


def _session_out(token: str) -> SessionOut:
    principal = principal_from_claims(verify_session_token(token))
    return SessionOut(
        access_token=token,
        expires_in=settings.session_token_ttl_seconds,
        principal=PrincipalOut.from_principal(principal),
    )


@router.post("/login", response_model=LoginOut)
def login(response: Response, identity: IdentityDep):
    verifier, challenge = new_pkce_pair()
    _set_cookie(response, settings.pkce_cookie_name, verifier, max_age=10 * 60)
    return LoginOut(url=identity.authorize_url(settings.oauth_redirect_url, challenge))


@router.get("/callback")
def callback(request: Request, db: DBSession, identity: IdentityDep, code: str | None = None):
    if not code:
        raise InvalidArgumentError("no code provided")

    verifier = request.cookies.get(settings.pkce_cookie_name)
    if not verifier:
        raise UnauthenticatedError("sign-in session expired; start again")

    account = identity.exchange_code_for_session(code, verifier)
    user = UserService(db).get_or_create(account.id, account.email)
    role = primary_role(UserRoleService(db).get_roles(user.id)) or Role(RoleName.STUDENT)

    token = create_session_token(user.id, user.email, role)
    logger.info("user_signed_in", user_id=str(user.id), role=role.name.value)

    response = RedirectResponse(settings.frontend_url, status_code=303)
    _set_cookie(response, settings.session_cookie_name, token, settings.session_token_ttl_seconds)
    response.delete_cookie(settings.pkce_cookie_name, path="/")
    return response


@router.get("/session", response_model=SessionOut)
def session(request: Request):
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthenticatedError("no active session")
    return _session_out(token)


@router.post("/sponsor-login", response_model=SessionOut)
def sponsor_login(payload: SponsorLoginIn, response: Response, db: DBSession):
    sponsor, user = SponsorService(db).authenticate(payload.company_name, payload.passcode)
    token = create_session_token(user.id, user.email, Role.sponsor(sponsor.company_name))
    _set_cookie(response, settings.session_cookie_name, token, settings.session_token_ttl_seconds)
    logger.info("sponsor_signed_in", sponsor_id=str(sponsor.id), user_id=str(user.id))
    return _session_out(token)


@router.post("/logout", status_code=204)
def logout():
    response = Response(status_code=204)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/me", response_model=PrincipalOut)
def me(principal: CurrentPrincipal):
    return PrincipalOut.from_principal(principal)
