"""Per-tile fetch: cache, then source (offline chart or online server), then a placeholder.

A single missing tile never fails the layer; it is replaced by a generated
image. This is independent of the layer-level resolver decision.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from requests.exceptions import RequestException

from chart_plot.cache.tile_cache import TileCache
from chart_plot.config import settings
from chart_plot.tiles.charts import Chart, ChartCatalog
from chart_plot.tiles.grid import tile_url
from chart_plot.tiles.http import HTTPClient
from chart_plot.tiles.placeholder import render_placeholder_tile

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileResponse:
    data: bytes
    source: str  # "cache" | "chart" | "network" | "placeholder"

    @property
    def is_placeholder(self) -> bool:
        return self.source == "placeholder"


class ChartTileFetcher:
    def __init__(self, catalog: ChartCatalog, cache: TileCache, timeout_s: Optional[float] = None):
        self.catalog = catalog
        self.cache = cache
        self.timeout_s = settings.chart_probe_timeout_s if timeout_s is None else timeout_s

    def get_tile(self, chart: Chart, z: int, x: int, y: int) -> TileResponse:
        key = self.catalog.tile_path(chart, z, x, y)

        cached = self.cache.match(key)
        if cached is not None:
            return TileResponse(cached, "cache")

        location = self.catalog.tile_location(chart, z, x, y)
        data: Optional[bytes] = None
        try:
            data = self.catalog.read_tile(location, self.timeout_s)
        except (OSError, RequestException) as e:
            log.debug("Chart tile read failed %s: %s", location, e)

        if data:
            self.cache.put(key, data)
            return TileResponse(data, "chart")

        log.debug("Chart tile missing, serving placeholder: %s", location)
        return TileResponse(render_placeholder_tile(z, x, y), "placeholder")


class OnlineTileFetcher:
    """Proxies online tiles and stores each one under its canonical URL.

    The canonical URL is the key the resolver's cached tier samples, so every
    tile served here counts towards the cache sufficiency check later on.
    """

    def __init__(
        self,
        cache: TileCache,
        client: Optional[HTTPClient] = None,
        url_template: Optional[str] = None,
        subdomain: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.cache = cache
        self.client = client or HTTPClient()
        self.url_template = url_template or settings.online_tile_url
        self.subdomain = subdomain or settings.online_tile_subdomain
        self.timeout_s = settings.online_tile_timeout_s if timeout_s is None else timeout_s

    def canonical_url(self, z: int, x: int, y: int) -> str:
        return tile_url(self.url_template, z, x, y, subdomain=self.subdomain)

    def get_tile(self, z: int, x: int, y: int) -> TileResponse:
        url = self.canonical_url(z, x, y)

        cached = self.cache.match(url)
        if cached is not None:
            return TileResponse(cached, "cache")

        data: Optional[bytes] = None
        try:
            data = self.client.get_bytes(url, timeout_s=self.timeout_s)
        except RequestException as e:
            log.debug("Online tile fetch failed %s: %s", url, e)

        if data:
            self.cache.put(url, data)
            return TileResponse(data, "network")

        return TileResponse(render_placeholder_tile(z, x, y), "placeholder")
