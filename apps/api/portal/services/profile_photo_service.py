from __future__ import annotations

import uuid
from typing import BinaryIO

import structlog

from portal.auth.principal import Principal
from portal.services.base import parse_uuid
from portal.services.exceptions import InvalidArgumentError, NotFoundError, PersistenceFailure
from portal.services.member_info_service import MemberInfoService
from portal.services.uploads import buffer_upload, safe_filename
from portal.storage.base import StorageAdapter

logger = structlog.get_logger()

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


class ProfilePhotoService:
    """Keeps a member's photo object and ``member_info.profile_photo_url`` in sync."""

    def __init__(
        self,
        db,
        storage: StorageAdapter,
        max_bytes: int,
        principal: Principal | None = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.max_bytes = max_bytes
        self.members = MemberInfoService(db, principal)

    def _remove_object(self, uri: str | None) -> None:
        if not uri:
            return
        try:
            self.storage.delete(self.storage.key_from_uri(uri))
        except (OSError, ValueError) as exc:
            # orphaned object; the row no longer points at it
            logger.warning("profile_photo_cleanup_failed", uri=uri, error=str(exc))

    def upload(
        self,
        user_id: uuid.UUID | str,
        filename: str | None,
        content_type: str | None,
        fileobj: BinaryIO,
    ) -> str:
        if not content_type or content_type.lower() not in ALLOWED_MIME_TYPES:
            raise InvalidArgumentError("only jpeg, png, webp or gif images are allowed")

        pk = parse_uuid(user_id, "user")
        buffered = buffer_upload(fileobj, self.max_bytes)
        key = f"{pk}/{uuid.uuid4().hex[:8]}-{safe_filename(filename, 'photo')}"
        try:
            info = self.members.get_or_create(pk)
            previous = info.profile_photo_url
            try:
                photo_url = self.storage.put_file(key, buffered)
            except OSError as exc:
                raise PersistenceFailure("failed to store profile photo") from exc
        finally:
            buffered.close()

        info.profile_photo_url = photo_url
        self.members.save(info, "update photo of")
        self._remove_object(previous)
        logger.info("profile_photo_stored", user_id=str(pk), key=key)
        return photo_url

    def get(self, user_id: uuid.UUID | str) -> str | None:
        return self.members.get_by_id(user_id).profile_photo_url

    def delete(self, user_id: uuid.UUID | str) -> None:
        info = self.members.get_by_id(user_id)
        if not info.profile_photo_url:
            raise NotFoundError("no profile photo")

        previous = info.profile_photo_url
        info.profile_photo_url = None
        self.members.save(info, "delete photo of")
        self._remove_object(previous)
