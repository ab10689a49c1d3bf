from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from portal.auth.features import Feature
from portal.auth.jwt import principal_from_claims, verify_session_token
from portal.auth.principal import Principal, RoleName
from portal.auth.tokens import extract_bearer_token
from portal.db import get_db
from portal.services.exceptions import ForbiddenError, UnauthenticatedError
from portal.services.member_info_service import MemberInfoService
from portal.services.user_role_service import UserRoleService

DBSession = Annotated[Session, Depends(get_db)]


def get_current_principal(request: Request) -> Principal:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise UnauthenticatedError("missing bearer token")

    return principal_from_claims(verify_session_token(token))


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_role(*allowed: RoleName):
    allowed_names = frozenset(allowed)

    def _dep(principal: CurrentPrincipal, db: DBSession) -> Principal:
        held = UserRoleService(db).get_roles(principal.id)
        if not any(role.name in allowed_names for role in held):
            raise ForbiddenError("insufficient permissions")
        return principal

    return _dep


EBoard = Annotated[Principal, Depends(require_role(RoleName.EBOARD))]
Member = Annotated[
    Principal,
    Depends(require_role(RoleName.GENERAL_MEMBER, RoleName.EBOARD)),
]
Sponsor = Annotated[Principal, Depends(require_role(RoleName.SPONSOR))]


def require_feature(feature: Feature):
    def _dep(principal: CurrentPrincipal, db: DBSession) -> Principal:
        MemberInfoService(db, principal).require_feature(principal.id, feature)
        return principal

    return _dep


AnnouncementReader = Annotated[Principal, Depends(require_feature(Feature.ANNOUNCEMENTS))]
