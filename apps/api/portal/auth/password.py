from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from portal.services.exceptions import InvalidArgumentError, PersistenceFailure

_hasher = PasswordHasher()


def hash_passcode(plain: str) -> str:
    if not plain:
        raise InvalidArgumentError("passcode is required")
    try:
        return _hasher.hash(plain)
    except HashingError as exc:
        raise PersistenceFailure("failed to hash passcode") from exc


def verify_passcode(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    try:
        return _hasher.verify(hashed, plain)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
