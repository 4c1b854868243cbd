"""Process-wide singletons for the API surface, exposed as FastAPI dependencies."""
from __future__ import annotations

from functools import lru_cache

from chart_plot.cache.tile_cache import TileCache, build_tile_cache
from chart_plot.core.measurement import MeasurementSession
from chart_plot.core.plot import PlotState
from chart_plot.storage.json_store import JsonPlotStore
from chart_plot.tiles.charts import ChartCatalog
from chart_plot.tiles.fetch import ChartTileFetcher, OnlineTileFetcher
from chart_plot.tiles.http import HTTPClient, ReachabilityProbe
from chart_plot.tiles.resolver import LayerContext, TileSourceResolver


@lru_cache(maxsize=1)
def get_catalog() -> ChartCatalog:
    return ChartCatalog.from_settings()


@lru_cache(maxsize=1)
def get_tile_cache() -> TileCache:
    return build_tile_cache()


@lru_cache(maxsize=1)
def get_resolver() -> TileSourceResolver:
    return TileSourceResolver(get_catalog(), get_tile_cache(), ReachabilityProbe())


@lru_cache(maxsize=1)
def get_layer_context() -> LayerContext:
    return LayerContext()


@lru_cache(maxsize=1)
def get_tile_fetcher() -> ChartTileFetcher:
    return ChartTileFetcher(get_catalog(), get_tile_cache())


@lru_cache(maxsize=1)
def get_plot_state() -> PlotState:
    return PlotState.load(JsonPlotStore())


@lru_cache(maxsize=1)
def get_online_tile_fetcher() -> OnlineTileFetcher:
    return OnlineTileFetcher(get_tile_cache(), HTTPClient())


@lru_cache(maxsize=1)
def get_measurement_session() -> MeasurementSession:
    return MeasurementSession()
