from __future__ import annotations

import structlog
from sqlalchemy import select

from portal.models import User
from portal.services.base import ScopedService, parse_uuid
from portal.services.exceptions import NotFoundError, UnauthenticatedError

logger = structlog.get_logger()


class UserService(ScopedService[User]):
    model = User
    resource = "user"
    editable_fields = {"name": "name"}

    def get_or_create(self, identity_id: str, email: str | None) -> User:
        """Local user for an identity-provider account, created on first sign-in."""
        try:
            pk = parse_uuid(identity_id, "user")
        except NotFoundError:
            raise UnauthenticatedError("invalid user id from identity provider") from None

        normalized_email = email.strip().lower() if email else None
        user = self.db.get(User, pk)
        if user is None and normalized_email:
            # e.g. a sponsor account created before its first OAuth sign-in
            user = self.db.scalar(select(User).where(User.email == normalized_email))
        if user is not None:
            return user

        user = User(id=pk, email=normalized_email)
        self.save(user, "add")
        logger.info("user_created", user_id=str(pk))
        return user
