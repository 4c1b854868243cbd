"""Background tile-source monitor for chart-plot.

Re-runs tile-source resolution for a fixed viewport on a timer and logs
every change of the connectivity indicator, the way a map view would on its
30-second refresh.

Run with:  python -m chart_plot.worker
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from chart_plot.tiles.resolver import (
    LayerContext,
    ResolveTrigger,
    TileSourceDecision,
    TileSourceResolver,
    Viewport,
)

log = logging.getLogger(__name__)


async def run_cycle(
    resolver: TileSourceResolver,
    viewport: Viewport,
    ctx: LayerContext,
    trigger: ResolveTrigger = ResolveTrigger.TIMER,
) -> Optional[TileSourceDecision]:
    """Run one resolution; probe problems are never fatal."""
    try:
        return await resolver.resolve(viewport, ctx, trigger)
    except Exception as exc:
        log.exception("Resolution cycle error: %s", exc)
        return ctx.decision


async def run_forever(
    resolver: TileSourceResolver,
    viewport: Viewport,
    ctx: LayerContext,
    interval_s: float,
    stop: Optional[asyncio.Event] = None,
) -> None:
    stop = stop or asyncio.Event()
    trigger = ResolveTrigger.INITIAL_LOAD
    while not stop.is_set():
        decision = await run_cycle(resolver, viewport, ctx, trigger)
        if decision is not None:
            log.info("Active source: %s (%s)", decision.indicator, decision.descriptor.url_template)
        trigger = ResolveTrigger.TIMER
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_s)
        except asyncio.TimeoutError:
            pass


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [worker] %(levelname)s %(message)s",
    )
    from chart_plot.config import settings
    from chart_plot.core.models import Coordinate
    from chart_plot.deps import get_resolver

    viewport = Viewport(
        Coordinate(lat=settings.default_center_lat, lng=settings.default_center_lng).validated(),
        settings.default_zoom,
    )
    log.info("Worker starting (interval=%ds, viewport=%s z%d)",
             settings.refresh_interval_s, viewport.center, viewport.zoom)
    try:
        asyncio.run(run_forever(get_resolver(), viewport, LayerContext(), settings.refresh_interval_s))
    except KeyboardInterrupt:
        log.info("Worker stopped")


if __name__ == "__main__":
    main()
