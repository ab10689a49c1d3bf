from __future__ import annotations

from redis import Redis
from redis.connection import ConnectionPool

from portal.core.config import settings

_pool: ConnectionPool | None = None


def get_redis() -> Redis:
    """Client on a process-wide pool; used by the rate limiter only."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=1,
        )
    return Redis(connection_pool=_pool)
