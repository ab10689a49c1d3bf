from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import Field

from portal.api.v1.schemas.base import SchemaBase
from portal.auth.principal import Principal, RoleName


class LoginOut(SchemaBase):
    url: str


class PrincipalOut(SchemaBase):
    user_id: str
    email: str | None = None
    role: str | dict[str, Any] | None = None

    @classmethod
    def from_principal(cls, principal: Principal) -> PrincipalOut:
        return cls(
            user_id=principal.id,
            email=principal.email,
            role=principal.role.to_claim() if principal.role else None,
        )


class SessionOut(SchemaBase):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    principal: PrincipalOut


class SponsorLoginIn(SchemaBase):
    company_name: str = Field(min_length=1)
    passcode: str = Field(min_length=1)


class RoleOut(SchemaBase):
    role: RoleName
    company_name: str | None = None


class RolesOut(SchemaBase):
    user_id: str
    roles: list[RoleOut]


class AssignRoleIn(SchemaBase):
    user_id: UUID
    role: RoleName
    company_name: str | None = None


class RemoveRoleIn(SchemaBase):
    user_id: UUID
    role: RoleName


class ChangedOut(SchemaBase):
    changed: bool


class RoleUserOut(SchemaBase):
    user_id: UUID
    email: str | None = None
    name: str | None = None
    company_name: str | None = None


class RoleUsersOut(SchemaBase):
    role: RoleName
    items: list[RoleUserOut]


class AccessOut(SchemaBase):
    path: str
    decision: str
    redirect_to: str | None = None
    required_role: RoleName | None = None


class FeaturesOut(SchemaBase):
    rank: str | None = None
    archived: bool = False
    features: dict[str, bool]
