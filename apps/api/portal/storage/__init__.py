from __future__ import annotations

from portal.storage.base import StorageAdapter
from portal.storage.local import LocalStorageAdapter


def create_storage(*args, **kwargs):
    from portal.storage.factory import create_storage as _create_storage

    return _create_storage(*args, **kwargs)


def get_profile_photo_storage():
    from portal.storage.factory import get_profile_photo_storage as _get_storage

    return _get_storage()


def get_resource_storage():
    from portal.storage.factory import get_resource_storage as _get_storage

    return _get_storage()


__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
    "create_storage",
    "get_profile_photo_storage",
    "get_resource_storage",
]
