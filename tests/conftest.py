"""Shared fixtures: a chart catalog rooted in a temp dir and a tile writer."""
from __future__ import annotations

from pathlib import Path

import pytest

from chart_plot.cache.tile_cache import MemoryTileCache
from chart_plot.tiles.charts import DEFAULT_CHARTS, ChartCatalog


@pytest.fixture()
def chart_root(tmp_path: Path) -> Path:
    root = tmp_path / "charts_root"
    root.mkdir()
    return root


@pytest.fixture()
def catalog(chart_root: Path) -> ChartCatalog:
    return ChartCatalog(DEFAULT_CHARTS, source_root=str(chart_root))


@pytest.fixture()
def write_tile(catalog: ChartCatalog):
    """write_tile(chart_id, z, x, y, data=...) puts a tile file on disk."""

    def _write(chart_id: str, z: int, x: int, y: int, data: bytes = b"\x89PNG fake tile") -> Path:
        chart = catalog.get(chart_id)
        p = Path(catalog.tile_location(chart, z, x, y))
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        return p

    return _write


@pytest.fixture()
def probe_tile(write_tile, catalog: ChartCatalog):
    """Make a chart pass its availability probe."""

    def _make(chart_id: str) -> None:
        chart = catalog.get(chart_id)
        write_tile(chart_id, chart.zoom_levels[0], 0, 0)

    return _make


@pytest.fixture()
def memory_cache() -> MemoryTileCache:
    return MemoryTileCache()
