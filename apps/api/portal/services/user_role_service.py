from __future__ import annotations

import uuid
from collections.abc import Iterable

import structlog
from sqlalchemy import delete, select

from portal.auth.principal import Role, RoleName
from portal.models import User, UserRole
from portal.services.base import ScopedService, parse_uuid
from portal.services.exceptions import InvalidArgumentError, NotFoundError

logger = structlog.get_logger()


def parse_role_name(value: str) -> RoleName:
    try:
        return RoleName(value)
    except ValueError:
        raise InvalidArgumentError(f"invalid role: {value}") from None


class UserRoleService(ScopedService[UserRole]):
    model = UserRole
    resource = "role assignment"
    add_fields = {
        "user_id": "user_id",
        "role": "role",
        "company_name": "company_name",
    }
    editable_fields = {
        "company_name": "company_name",
    }
    required_fields = ("user_id", "role")
    uuid_columns = ("user_id",)

    def _coerce(self, values):
        if "role" in values:
            values["role"] = parse_role_name(values["role"]).value
        return values

    def get_roles(self, user_id: uuid.UUID | str) -> list[Role]:
        try:
            pk = parse_uuid(user_id, "user")
        except NotFoundError:
            return []

        self._scope()
        rows = self.db.scalars(select(UserRole).where(UserRole.user_id == pk))
        roles: list[Role] = []
        for row in rows:
            try:
                name = RoleName(row.role)
            except ValueError:
                logger.warning("unknown_role_row", user_id=str(pk), role=row.role)
                continue
            roles.append(Role(name, row.company_name if name == RoleName.SPONSOR else None))
        return roles

    def has_any_role(self, user_id: uuid.UUID | str, names: Iterable[RoleName]) -> bool:
        wanted = set(names)
        return any(role.name in wanted for role in self.get_roles(user_id))

    def assign_role(self, user_id: uuid.UUID | str, role: Role) -> bool:
        pk = parse_uuid(user_id, "user")
        if role.name == RoleName.SPONSOR and not role.company_name:
            raise InvalidArgumentError("sponsor role requires a company name")

        self._scope()
        if self.db.get(User, pk) is None:
            raise NotFoundError("user not found")

        existing = self.db.scalar(
            select(UserRole).where(UserRole.user_id == pk, UserRole.role == role.name.value)
        )
        if existing is not None:
            return False

        self.db.add(UserRole(user_id=pk, role=role.name.value, company_name=role.company_name))
        self._commit("assign")
        logger.info("role_assigned", user_id=str(pk), role=role.name.value)
        return True

    def remove_role(self, user_id: uuid.UUID | str, name: RoleName) -> bool:
        pk = parse_uuid(user_id, "user")
        self._scope()
        result = self.db.execute(
            delete(UserRole).where(UserRole.user_id == pk, UserRole.role == name.value)
        )
        self._commit("remove")
        removed = bool(result.rowcount)
        if removed:
            logger.info("role_removed", user_id=str(pk), role=name.value)
        return removed

    def list_users_with_role(self, name: RoleName) -> list[tuple[User, UserRole]]:
        self._scope()
        stmt = (
            select(User, UserRole)
            .join(UserRole, UserRole.user_id == User.id)
            .where(UserRole.role == name.value)
            .order_by(User.email.asc())
        )
        return [(user, row) for user, row in self.db.execute(stmt).all()]

    def get_user_id(self, email: str) -> uuid.UUID:
        normalized = (email or "").strip().lower()
        if not normalized:
            raise InvalidArgumentError("email is required")

        self._scope()
        user_id = self.db.scalar(select(User.id).where(User.email == normalized))
        if user_id is None:
            raise NotFoundError("user not found")
        return user_id
