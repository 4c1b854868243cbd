"""Centralized settings for the chart-plot backend."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "CHART_PLOT_"}

    # Redis: empty string means disabled (in-memory tile cache instead)
    redis_url: str = ""
    ttl_tile: int = 604800            # 7 d, cached map tiles

    # Online tile source
    online_tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    online_tile_subdomain: str = "a"  # canonical subdomain used for cache keys
    online_attribution: str = (
        '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
    )
    # Clients load online tiles through this route so they land in the tile cache.
    # Empty string sends clients straight to online_tile_url.
    online_tile_proxy: str = "/tiles/online/{z}/{x}/{y}.png"
    online_tile_timeout_s: float = 10.0

    # Reachability probe
    probe_url: str = "https://tile.openstreetmap.org/0/0/0.png"
    probe_timeout_s: float = 5.0
    chart_probe_timeout_s: float = 3.0

    # Cache sufficiency policy
    cache_sufficient_fraction: float = 0.3
    cache_sample_radius: int = 2

    # Periodic re-resolution
    refresh_interval_s: int = 30
    layer_history_size: int = 100     # indicator log kept per map context

    # Offline charts: a directory or an http(s) root the chart base paths hang off
    chart_source_root: str = "."
    charts_file: str = ""             # optional JSON catalog; empty -> built-in charts

    # Dead reckoning
    future_track_hours: float = 24.0
    future_track_points: int = 48

    # Persistence
    store_path: str = "~/.chart_plot/plot.json"

    # Initial viewport (worker / exporter)
    default_center_lat: float = 42.0
    default_center_lng: float = 12.0
    default_zoom: int = 6

    user_agent: str = "ChartPlot/0.1.0"


settings = Settings()
