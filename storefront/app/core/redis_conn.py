# storefront/app/core/redis_conn.py
from __future__ import annotations

import logging
from typing import Optional

from redis import Redis as SyncRedis
from redis import RedisError
from redis.asyncio import Redis as AsyncRedis  # requires redis>=5

from storefront.app.core.config import settings

logger = logging.getLogger(__name__)

# Connect fast and fail fast: the store sits on the request path.
_SOCKET_TIMEOUT = 2.0

_sync_client: Optional[SyncRedis] = None
_async_client: Optional[AsyncRedis] = None


def get_sync_redis() -> SyncRedis:
    """
    Shared client for the persistent store; its writes must land before the
    cart mutation returns, hence sync.
    """
    global _sync_client
    if _sync_client is None:
        _sync_client = SyncRedis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=_SOCKET_TIMEOUT,
            socket_timeout=_SOCKET_TIMEOUT,
        )
    return _sync_client


def get_async_redis() -> AsyncRedis:
    """Shared client for the notification bus (pub/sub)."""
    global _async_client
    if _async_client is None:
        _async_client = AsyncRedis.from_url(settings.redis_url, decode_responses=True)
    return _async_client


async def close_clients() -> None:
    """Drop both clients (app shutdown). The next getter call reconnects."""
    global _sync_client, _async_client
    if _async_client is not None:
        await _async_client.aclose()
        _async_client = None
    if _sync_client is not None:
        _sync_client.close()
        _sync_client = None


def ping() -> bool:
    try:
        return bool(get_sync_redis().ping())
    except (RedisError, OSError) as exc:
        logger.warning("redis ping failed (%s): %s", settings.redis_url, exc)
        return False
