from __future__ import annotations

from typing import Any


def extract_bearer_token(authorization: Any) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Never raises: anything other than exactly ``Bearer`` plus one non-empty
    token separated by a single space yields None.
    """
    if not isinstance(authorization, str) or not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2:
        return None

    scheme, token = parts
    if scheme != "Bearer" or not token:
        return None
    return token
