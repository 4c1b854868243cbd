"""Redis connection + binary cache helpers.

All operations are wrapped in try/except. A Redis failure never breaks the app,
it only turns every lookup into a miss.
"""
from __future__ import annotations

import logging
from typing import Optional

log = logging.getLogger(__name__)

_redis_client = None
_redis_checked = False


def get_redis():
    """Lazy singleton.  Returns ``redis.Redis`` or ``None`` if unavailable."""
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client
    _redis_checked = True
    try:
        from chart_plot.config import settings

        if not settings.redis_url:
            return None
        import redis

        # Tiles are PNG bytes, so no response decoding
        _redis_client = redis.Redis.from_url(
            settings.redis_url, decode_responses=False, socket_connect_timeout=3, socket_timeout=3
        )
        _redis_client.ping()
        log.info("Redis connected: %s", settings.redis_url)
    except Exception as exc:
        log.warning("Redis unavailable (%s), running without shared tile cache", exc)
        _redis_client = None
    return _redis_client


def cache_get_bytes(key: str, client=None) -> Optional[bytes]:
    try:
        r = client if client is not None else get_redis()
        if r is None:
            return None
        return r.get(key)
    except Exception as exc:
        log.debug("Redis GET %s failed: %s", key, exc)
        return None


def cache_set_bytes(key: str, value: bytes, ttl: int, client=None) -> None:
    try:
        r = client if client is not None else get_redis()
        if r is None:
            return
        r.set(key, value, ex=ttl)
    except Exception as exc:
        log.debug("Redis SET %s failed: %s", key, exc)
