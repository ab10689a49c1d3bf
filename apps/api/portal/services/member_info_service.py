from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import or_, select

from portal.auth.features import Feature, can_access_feature, parse_rank
from portal.models import MemberInfo, User
from portal.services.base import ScopedService, parse_uuid
from portal.services.exceptions import ConflictError, ForbiddenError, InvalidArgumentError

logger = structlog.get_logger()

SEARCHABLE_COLUMNS = (
    MemberInfo.first_name,
    MemberInfo.last_name,
    MemberInfo.major,
    MemberInfo.bio,
    MemberInfo.internship,
)


class MemberInfoService(ScopedService[MemberInfo]):
    model = MemberInfo
    resource = "member"
    add_fields = {
        "user_id": "user_id",
        "first_name": "first_name",
        "last_name": "last_name",
        "year": "year",
        "major": "major",
        "bio": "bio",
        "internship": "internship",
        "contact_me": "contact_me",
        "rank": "rank",
    }
    # rank is not self-service; see MemberAdminService
    editable_fields = {
        "first_name": "first_name",
        "last_name": "last_name",
        "year": "year",
        "major": "major",
        "bio": "bio",
        "internship": "internship",
        "contact_me": "contact_me",
    }
    required_fields = ("user_id",)
    uuid_columns = ("user_id",)

    def _ordering(self):
        return (MemberInfo.last_name.asc(), MemberInfo.first_name.asc())

    def _coerce(self, values: dict[str, Any]) -> dict[str, Any]:
        if "rank" in values:
            rank = parse_rank(values["rank"])
            if rank is None:
                raise InvalidArgumentError("rank must be pledge, inducted or alumni")
            values["rank"] = rank.value
        return values

    def find(self, user_id: uuid.UUID | str) -> MemberInfo | None:
        self._scope()
        return self.db.get(MemberInfo, parse_uuid(user_id, "user"))

    def get_or_create(self, user_id: uuid.UUID | str) -> MemberInfo:
        info = self.find(user_id)
        if info is not None:
            return info

        info = MemberInfo(user_id=parse_uuid(user_id, "user"))
        self.db.add(info)
        self._commit("add")
        self.db.refresh(info)
        return info

    def update_own(self, user_id: uuid.UUID | str, fields: Mapping[str, Any]) -> MemberInfo:
        # An empty edit must not leave a fresh row behind
        updates = self.clean_edit_fields(fields)
        self.get_or_create(user_id)
        return self.edit(user_id, updates)

    def search(self, query: str, limit: int = 50) -> list[tuple[MemberInfo, str | None]]:
        term = (query or "").strip()
        if not term:
            raise InvalidArgumentError("search query is required")

        like = f"%{term.lower()}%"
        self._scope()
        stmt = (
            select(MemberInfo, User.email)
            .join(User, User.id == MemberInfo.user_id)
            .where(MemberInfo.archived_at.is_(None))
            .where(or_(*(column.ilike(like) for column in SEARCHABLE_COLUMNS)))
            .order_by(*self._ordering())
            .limit(limit)
        )
        return [(info, email) for info, email in self.db.execute(stmt).all()]

    def list_archived(self) -> list[tuple[MemberInfo, str | None]]:
        self._scope()
        stmt = (
            select(MemberInfo, User.email)
            .join(User, User.id == MemberInfo.user_id)
            .where(MemberInfo.archived_at.is_not(None))
            .order_by(MemberInfo.archived_at.desc())
        )
        return [(info, email) for info, email in self.db.execute(stmt).all()]

    def archive(self, user_id: uuid.UUID | str) -> MemberInfo:
        info = self.get_by_id(user_id)
        if info.archived_at is not None:
            raise ConflictError("member is already archived")
        info.archived_at = datetime.now(timezone.utc)
        self.save(info, "archive")
        logger.info("member_archived", user_id=str(info.user_id))
        return info

    def restore(self, user_id: uuid.UUID | str) -> MemberInfo:
        info = self.get_by_id(user_id)
        if info.archived_at is None:
            raise ConflictError("member is not archived")
        info.archived_at = None
        self.save(info, "restore")
        logger.info("member_restored", user_id=str(info.user_id))
        return info

    def require_feature(self, user_id: uuid.UUID | str, feature: Feature) -> None:
        """Raise ForbiddenError when the member's rank or archive state bars ``feature``.

        Users without a member profile are not restricted; role checks cover them.
        """
        info = self.find(user_id)
        if info is None:
            return
        if info.archived_at is not None:
            raise ForbiddenError("archived members cannot use this feature")
        if not can_access_feature(info.rank, feature):
            logger.info("feature_blocked", user_id=str(info.user_id), feature=feature.value, rank=info.rank)
            raise ForbiddenError(f"alumni cannot use {feature.value}")


class MemberAdminService(MemberInfoService):
    """E-board edits, which may also set a member's rank."""

    editable_fields = {**MemberInfoService.editable_fields, "rank": "rank"}
