"""Tile cache collaborator: ``match(url)`` / ``put(url, data)``."""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Optional, Protocol

from chart_plot.cache import keys
from chart_plot.cache.redis_client import cache_get_bytes, cache_set_bytes, get_redis
from chart_plot.config import settings

log = logging.getLogger(__name__)


class TileCache(Protocol):
    def match(self, url: str) -> Optional[bytes]: ...

    def put(self, url: str, data: bytes) -> None: ...


class MemoryTileCache:
    """Process-local LRU cache, shared by request threads and the resolver."""

    def __init__(self, max_entries: int = 4096):
        self.max_entries = max_entries
        self._data: OrderedDict[str, bytes] = OrderedDict()
        self._lock = threading.Lock()

    def match(self, url: str) -> Optional[bytes]:
        with self._lock:
            data = self._data.get(url)
            if data is not None:
                self._data.move_to_end(url)
            return data

    def put(self, url: str, data: bytes) -> None:
        with self._lock:
            self._data[url] = data
            self._data.move_to_end(url)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class RedisTileCache:
    """Shared cache in Redis. Every Redis error reads as a miss."""

    def __init__(self, client=None, ttl: Optional[int] = None):
        self.client = client
        self.ttl = settings.ttl_tile if ttl is None else ttl

    def match(self, url: str) -> Optional[bytes]:
        return cache_get_bytes(keys.tile(url), client=self.client)

    def put(self, url: str, data: bytes) -> None:
        cache_set_bytes(keys.tile(url), data, self.ttl, client=self.client)


def build_tile_cache() -> TileCache:
    """Redis when configured and reachable, else in-memory."""
    r = get_redis()
    if r is None:
        log.info("Using in-memory tile cache")
        return MemoryTileCache()
    return RedisTileCache(client=r)
