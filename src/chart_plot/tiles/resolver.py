"""Tile-source resolution: which imagery to show for the current viewport.

Tiers, evaluated in order with early exit:

  1. cache     enough tiles around the centre already cached  -> CACHED
  2. network   tile server answers a bounded HEAD probe       -> ONLINE
  3. chart     offline chart covering centre + zoom is present -> OFFLINE_CHART
  4. fallback  first offline chart that is present at all      -> OFFLINE_CHART_FALLBACK
  5. blank     transparent 1x1 tile                            -> BLANK

The connectivity indicator is derived from the winning tier only.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, List, Optional, Protocol

from chart_plot.cache.tile_cache import TileCache
from chart_plot.config import settings
from chart_plot.contracts.map_contract import MapSurface, TileSourceDescriptor
from chart_plot.core.models import Coordinate
from chart_plot.tiles.charts import Chart, ChartCatalog
from chart_plot.tiles.grid import neighborhood, tile_url, tile_xy
from chart_plot.tiles.placeholder import TRANSPARENT_DATA_URI

log = logging.getLogger(__name__)


class TileSourceKind(str, Enum):
    ONLINE = "online"
    CACHED = "cached"
    OFFLINE_CHART = "offline-chart"
    OFFLINE_CHART_FALLBACK = "offline-chart-fallback"
    BLANK = "blank"


_INDICATORS = {
    TileSourceKind.ONLINE: "online",
    TileSourceKind.CACHED: "cached",
    TileSourceKind.OFFLINE_CHART: "offline-chart",
    TileSourceKind.OFFLINE_CHART_FALLBACK: "offline-chart-fallback",
    TileSourceKind.BLANK: "offline-blank",
}


class ResolveTrigger(str, Enum):
    INITIAL_LOAD = "initial_load"
    TIMER = "timer"
    CONNECTIVITY = "connectivity"
    ZOOM_SETTLE = "zoom_settle"
    PAN_SETTLE = "pan_settle"


@dataclass(frozen=True)
class Viewport:
    center: Coordinate
    zoom: int


@dataclass(frozen=True)
class TileSourceDecision:
    kind: TileSourceKind
    descriptor: TileSourceDescriptor
    chart: Optional[Chart] = None

    @property
    def is_online(self) -> bool:
        return self.kind is TileSourceKind.ONLINE

    @property
    def can_load_tiles(self) -> bool:
        return self.kind in (TileSourceKind.ONLINE, TileSourceKind.CACHED)

    @property
    def indicator(self) -> str:
        return _INDICATORS[self.kind]


class Probe(Protocol):
    def is_reachable(self, timeout_s: float) -> bool: ...


@dataclass
class LayerContext:
    """Owned handle to the active tile layer of one map.

    ``generation`` moves on whenever an in-flight decision must no longer be
    applied (see :meth:`invalidate`). ``history`` keeps the most recent
    indicators only.
    """

    surface: Optional[MapSurface] = None
    decision: Optional[TileSourceDecision] = None
    handle: Any = None
    generation: int = 0
    in_flight: bool = False
    history: Deque[str] = field(default_factory=lambda: deque(maxlen=settings.layer_history_size))

    def invalidate(self) -> None:
        self.generation += 1

    def apply(self, decision: TileSourceDecision) -> None:
        """Swap the active layer; last decision wins."""
        if self.surface is not None:
            if self.handle is not None:
                self.surface.remove_layer(self.handle)
            self.handle = self.surface.add_layer(decision.descriptor)
        previous = self.decision
        self.decision = decision
        self.history.append(decision.indicator)
        if previous is None or previous.indicator != decision.indicator:
            log.info(
                "Tile source: %s -> %s",
                previous.indicator if previous else "none",
                decision.indicator,
            )


Tier = Callable[[Viewport, Optional[bool]], Awaitable[Optional[TileSourceDecision]]]


class TileSourceResolver:
    def __init__(
        self,
        catalog: ChartCatalog,
        cache: TileCache,
        probe: Probe,
        *,
        tile_url_template: Optional[str] = None,
        tile_subdomain: Optional[str] = None,
        proxy_url_template: Optional[str] = None,
        attribution: Optional[str] = None,
        cache_threshold: Optional[float] = None,
        cache_radius: Optional[int] = None,
        probe_timeout_s: Optional[float] = None,
        chart_probe_timeout_s: Optional[float] = None,
    ):
        self.catalog = catalog
        self.cache = cache
        self.probe = probe
        self.tile_url_template = tile_url_template or settings.online_tile_url
        self.tile_subdomain = tile_subdomain or settings.online_tile_subdomain
        self.proxy_url_template = settings.online_tile_proxy if proxy_url_template is None else proxy_url_template
        self.attribution = attribution or settings.online_attribution
        self.cache_threshold = settings.cache_sufficient_fraction if cache_threshold is None else cache_threshold
        self.cache_radius = settings.cache_sample_radius if cache_radius is None else cache_radius
        self.probe_timeout_s = settings.probe_timeout_s if probe_timeout_s is None else probe_timeout_s
        self.chart_probe_timeout_s = (
            settings.chart_probe_timeout_s if chart_probe_timeout_s is None else chart_probe_timeout_s
        )

    # ------------------------------------------------------------------
    # Descriptors
    # ------------------------------------------------------------------

    def online_descriptor(self) -> TileSourceDescriptor:
        """Online imagery, served through the caching proxy when one is configured."""
        return TileSourceDescriptor(
            url_template=self.proxy_url_template or self.tile_url_template,
            attribution=self.attribution,
        )

    @staticmethod
    def blank_descriptor() -> TileSourceDescriptor:
        return TileSourceDescriptor(
            url_template=TRANSPARENT_DATA_URI,
            attribution="Offline mode - no chart available",
        )

    def canonical_tile_url(self, z: int, x: int, y: int) -> str:
        return tile_url(self.tile_url_template, z, x, y, subdomain=self.tile_subdomain)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def cached_fraction(self, viewport: Viewport) -> float:
        z = viewport.zoom
        cx, cy = tile_xy(viewport.center.lat, viewport.center.lng, z)
        total = 0
        hits = 0
        for x, y in neighborhood(cx, cy, self.cache_radius):
            total += 1
            try:
                if self.cache.match(self.canonical_tile_url(z, x, y)) is not None:
                    hits += 1
            except Exception as exc:
                # Cache store unavailable reads as "nothing cached"
                log.warning("Tile cache unavailable (%s)", exc)
                return 0.0
        return hits / total if total else 0.0

    async def _from_cache(self, viewport: Viewport, link_up: Optional[bool]) -> Optional[TileSourceDecision]:
        fraction = await asyncio.to_thread(self.cached_fraction, viewport)
        log.debug("Cached fraction at z%d: %.2f", viewport.zoom, fraction)
        if fraction >= self.cache_threshold:
            return TileSourceDecision(TileSourceKind.CACHED, self.online_descriptor())
        return None

    async def _from_network(self, viewport: Viewport, link_up: Optional[bool]) -> Optional[TileSourceDecision]:
        if link_up is False:
            log.debug("Link reported down, skipping network probe")
            return None
        timeout = self.probe_timeout_s
        try:
            reachable = await asyncio.wait_for(asyncio.to_thread(self.probe.is_reachable, timeout), timeout)
        except asyncio.TimeoutError:
            log.debug("Network probe timed out after %.1fs", timeout)
            reachable = False
        if reachable:
            return TileSourceDecision(TileSourceKind.ONLINE, self.online_descriptor())
        return None

    async def _from_best_chart(self, viewport: Viewport, link_up: Optional[bool]) -> Optional[TileSourceDecision]:
        chart = self.catalog.find_best(viewport.center.lat, viewport.center.lng, viewport.zoom)
        if chart is None:
            return None
        if await self.catalog.is_available(chart, self.chart_probe_timeout_s):
            return TileSourceDecision(TileSourceKind.OFFLINE_CHART, self.catalog.descriptor(chart), chart)
        return None

    async def _from_any_chart(self, viewport: Viewport, link_up: Optional[bool]) -> Optional[TileSourceDecision]:
        for chart in self.catalog:
            if await self.catalog.is_available(chart, self.chart_probe_timeout_s):
                return TileSourceDecision(
                    TileSourceKind.OFFLINE_CHART_FALLBACK, self.catalog.descriptor(chart), chart
                )
        return None

    @property
    def tiers(self) -> List[Tier]:
        return [self._from_cache, self._from_network, self._from_best_chart, self._from_any_chart]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def decide(self, viewport: Viewport, link_up: Optional[bool] = None) -> TileSourceDecision:
        """Run the tiers in order; the first that answers wins.

        *link_up* is the host's own connectivity signal; ``False`` skips the
        network probe.
        """
        for tier in self.tiers:
            decision = await tier(viewport, link_up)
            if decision is not None:
                return decision
        return TileSourceDecision(TileSourceKind.BLANK, self.blank_descriptor())

    async def resolve(
        self,
        viewport: Viewport,
        ctx: LayerContext,
        trigger: ResolveTrigger = ResolveTrigger.TIMER,
        link_up: Optional[bool] = None,
    ) -> Optional[TileSourceDecision]:
        """Decide and apply to *ctx*; returns the context's active decision.

        A trigger arriving while another resolution on the same context is in
        flight is dropped. A result whose context was invalidated meanwhile is
        discarded.
        """
        if ctx.in_flight:
            log.debug("Resolution in flight, dropping %s trigger", trigger.value)
            return ctx.decision

        ctx.in_flight = True
        generation = ctx.generation
        try:
            log.debug("Resolving tile source (%s) at %s z%d", trigger.value, viewport.center, viewport.zoom)
            decision = await self.decide(viewport, link_up)
        finally:
            ctx.in_flight = False

        if generation != ctx.generation:
            log.debug("Discarding stale %s decision", decision.indicator)
            return ctx.decision

        ctx.apply(decision)
        return decision
