from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from portal.core.config import settings
from portal.storage.base import StorageAdapter
from portal.storage.local import LocalStorageAdapter


def create_storage(
    bucket: str,
    backend: str | None = None,
    root: str | Path | None = None,
) -> StorageAdapter:
    selected_backend = (backend or settings.storage_backend).strip().lower()
    if selected_backend == "local":
        storage_root = Path(root or settings.storage_root)
        return LocalStorageAdapter(storage_root, bucket)
    raise ValueError(f"unsupported storage backend: {selected_backend}")


@lru_cache(maxsize=None)
def get_storage(bucket: str) -> StorageAdapter:
    return create_storage(bucket)


def get_profile_photo_storage() -> StorageAdapter:
    return get_storage(settings.profile_photo_bucket)


def get_resource_storage() -> StorageAdapter:
    return get_storage(settings.resource_bucket)
