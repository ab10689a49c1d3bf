from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import select

from portal.auth.password import hash_passcode, verify_passcode
from portal.auth.principal import Role
from portal.models import Sponsor, User, UserRole
from portal.services.base import ScopedService
from portal.services.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
)

logger = structlog.get_logger()


class SponsorService(ScopedService[Sponsor]):
    model = Sponsor
    resource = "sponsor"
    editable_fields = {
        "about": "about",
        "website": "website",
    }

    def _ordering(self):
        return (Sponsor.company_name.asc(),)

    def list_names(self) -> list[str]:
        self._scope()
        return list(self.db.scalars(select(Sponsor.company_name).order_by(*self._ordering())))

    def get_by_company(self, company_name: str) -> Sponsor:
        self._scope()
        sponsor = self.db.scalar(
            select(Sponsor).where(Sponsor.company_name == (company_name or "").strip())
        )
        if sponsor is None:
            raise NotFoundError("sponsor not found")
        return sponsor

    def add(self, fields: Mapping[str, Any]) -> Sponsor:
        return self.add_sponsor(
            company_name=fields.get("company_name") or "",
            passcode=fields.get("passcode") or "",
            email=fields.get("email") or "",
            about=fields.get("about"),
            website=fields.get("website"),
        )

    def add_sponsor(
        self,
        company_name: str,
        passcode: str,
        email: str,
        about: str | None = None,
        website: str | None = None,
    ) -> Sponsor:
        company = company_name.strip()
        normalized_email = email.strip().lower()
        if not company or not passcode or not normalized_email:
            raise InvalidArgumentError("company_name, passcode and email are required")

        self._scope()
        if self.db.scalar(select(Sponsor.id).where(Sponsor.company_name == company)):
            raise ConflictError("sponsor already exists")

        user = self.db.scalar(select(User).where(User.email == normalized_email))
        if user is None:
            user = User(email=normalized_email, name=company)
            self.db.add(user)
            self.db.flush()

        role = Role.sponsor(company)
        sponsor = Sponsor(
            company_name=company,
            passcode_hash=hash_passcode(passcode),
            about=about,
            website=website,
            user_id=user.id,
        )
        self.db.add(sponsor)
        self.db.add(UserRole(user_id=user.id, role=role.name.value, company_name=company))
        self._commit("add")
        self.db.refresh(sponsor)
        logger.info("sponsor_added", sponsor_id=str(sponsor.id), company_name=company)
        return sponsor

    def authenticate(self, company_name: str, passcode: str) -> tuple[Sponsor, User]:
        try:
            sponsor = self.get_by_company(company_name)
        except NotFoundError:
            raise UnauthenticatedError("invalid credentials") from None

        if not verify_passcode(passcode, sponsor.passcode_hash):
            raise UnauthenticatedError("invalid credentials")

        user = self.db.get(User, sponsor.user_id)
        if user is None:
            raise UnauthenticatedError("invalid credentials")
        return sponsor, user
