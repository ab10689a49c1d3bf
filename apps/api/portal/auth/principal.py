from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RoleName(str, Enum):
    STUDENT = "student"
    GENERAL_MEMBER = "general-member"
    EBOARD = "e-board"
    SPONSOR = "sponsor"


# Highest first; used to pick the role carried in a freshly issued token
ROLE_PRECEDENCE = (
    RoleName.EBOARD,
    RoleName.SPONSOR,
    RoleName.GENERAL_MEMBER,
    RoleName.STUDENT,
)


@dataclass(frozen=True)
class Role:
    """A role held by a user. Sponsors additionally carry their company."""

    name: RoleName
    company_name: str | None = None

    @classmethod
    def sponsor(cls, company_name: str) -> Role:
        return cls(RoleName.SPONSOR, company_name)

    @classmethod
    def parse(cls, value: Any) -> Role | None:
        """Accept the flat role string or the sponsor object form.

        Returns None for anything unrecognised so callers treat it as "no role".
        """
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            try:
                return cls(RoleName(value.strip()))
            except ValueError:
                return None
        if isinstance(value, dict):
            kind = value.get("type") or value.get("role")
            company = value.get("company_name") or value.get("companyName")
            if kind == RoleName.SPONSOR.value and isinstance(company, str) and company.strip():
                return cls.sponsor(company.strip())
        return None

    def to_claim(self) -> str | dict[str, str]:
        if self.name == RoleName.SPONSOR and self.company_name:
            return {"type": self.name.value, "company_name": self.company_name}
        return self.name.value


def role_satisfies(role: Role | None, required: RoleName) -> bool:
    if role is None:
        return False
    if role.name == RoleName.EBOARD:
        return required == RoleName.EBOARD
    if role.name == RoleName.SPONSOR:
        return required == RoleName.SPONSOR
    if role.name == RoleName.GENERAL_MEMBER:
        return required == RoleName.GENERAL_MEMBER
    if role.name == RoleName.STUDENT:
        return required == RoleName.STUDENT
    raise AssertionError(f"unhandled role: {role.name!r}")


def primary_role(roles: list[Role] | tuple[Role, ...]) -> Role | None:
    for name in ROLE_PRECEDENCE:
        for role in roles:
            if role.name == name:
                return role
    return None


@dataclass(frozen=True)
class Principal:
    """Authenticated identity resolved from a verified session token."""

    id: str
    email: str | None
    role: Role | None
    claims: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
