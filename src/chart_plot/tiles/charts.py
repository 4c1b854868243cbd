"""Offline chart registry (CM93 tile sets) and its availability probe."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from shapely.geometry import Point, box

from chart_plot.config import settings
from chart_plot.contracts.map_contract import Bounds, TileSourceDescriptor
from chart_plot.tiles.http import HTTPClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chart:
    id: str
    name: str
    bounds: Bounds
    zoom_levels: Tuple[int, ...]
    base_path: str  # e.g. "/charts/mediterranean"

    @property
    def min_zoom(self) -> int:
        return min(self.zoom_levels)

    @property
    def max_zoom(self) -> int:
        return max(self.zoom_levels)

    def covers(self, lat: float, lng: float) -> bool:
        b = self.bounds
        # covers() includes the boundary, unlike contains()
        return box(b.west, b.south, b.east, b.north).covers(Point(lng, lat))


DEFAULT_CHARTS: Tuple[Chart, ...] = (
    Chart(
        id="mediterranean",
        name="Mediterranean",
        bounds=Bounds(north=46.0, south=30.0, east=36.0, west=-6.0),
        zoom_levels=(4, 5, 6, 7, 8, 9, 10, 11, 12),
        base_path="/charts/mediterranean",
    ),
    Chart(
        id="adriatic",
        name="Adriatic Sea",
        bounds=Bounds(north=46.0, south=39.0, east=20.0, west=12.0),
        zoom_levels=(6, 7, 8, 9, 10, 11, 12, 13, 14),
        base_path="/charts/adriatic",
    ),
)


def chart_from_dict(d: dict) -> Chart:
    b = d["bounds"]
    return Chart(
        id=str(d["id"]),
        name=str(d.get("name", d["id"])),
        bounds=Bounds(north=float(b["north"]), south=float(b["south"]), east=float(b["east"]), west=float(b["west"])),
        zoom_levels=tuple(int(z) for z in d["zoom_levels"]),
        base_path=str(d.get("base_path", f"/charts/{d['id']}")),
    )


def load_catalog(path: Path) -> List[Chart]:
    """Read a JSON list of chart definitions."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return [chart_from_dict(d) for d in data]


def _is_url(root: str) -> bool:
    return root.startswith("http://") or root.startswith("https://")


class ChartCatalog:
    """Static, ordered set of offline charts. Never mutated after construction."""

    def __init__(
        self,
        charts: Sequence[Chart] = DEFAULT_CHARTS,
        source_root: Optional[str] = None,
        client: Optional[HTTPClient] = None,
    ):
        self._charts: Tuple[Chart, ...] = tuple(charts)
        self._by_id: Dict[str, Chart] = {c.id: c for c in self._charts}
        self.source_root = source_root if source_root is not None else settings.chart_source_root
        self._client = client

    @classmethod
    def from_settings(cls) -> ChartCatalog:
        if settings.charts_file:
            charts = load_catalog(Path(settings.charts_file))
            log.info("Loaded %d chart(s) from %s", len(charts), settings.charts_file)
            return cls(charts)
        return cls()

    def __iter__(self) -> Iterator[Chart]:
        return iter(self._charts)

    def __len__(self) -> int:
        return len(self._charts)

    def get(self, chart_id: str) -> Optional[Chart]:
        return self._by_id.get(chart_id)

    def find_best(self, lat: float, lng: float, zoom: int) -> Optional[Chart]:
        """First chart (registration order) covering the point at this zoom level."""
        for chart in self._charts:
            if zoom in chart.zoom_levels and chart.covers(lat, lng):
                return chart
        return None

    # ------------------------------------------------------------------
    # Tile locations
    # ------------------------------------------------------------------

    @staticmethod
    def tile_path(chart: Chart, z: int, x: int, y: int) -> str:
        return f"{chart.base_path}/{z}/{x}/{y}.png"

    def tile_location(self, chart: Chart, z: int, x: int, y: int) -> str:
        """Where the tile physically lives: a URL or a filesystem path."""
        rel = self.tile_path(chart, z, x, y)
        if _is_url(self.source_root):
            return self.source_root.rstrip("/") + rel
        return str(Path(self.source_root) / rel.lstrip("/"))

    @property
    def client(self) -> HTTPClient:
        if self._client is None:
            self._client = HTTPClient()
        return self._client

    def tile_exists(self, location: str, timeout_s: float) -> bool:
        if _is_url(location):
            return self.client.head_ok(location, timeout_s=timeout_s)
        return Path(location).is_file()

    def read_tile(self, location: str, timeout_s: float) -> Optional[bytes]:
        if _is_url(location):
            return self.client.get_bytes(location, timeout_s=timeout_s)
        p = Path(location)
        if not p.is_file():
            return None
        return p.read_bytes()

    # ------------------------------------------------------------------

    async def is_available(self, chart: Chart, timeout_s: Optional[float] = None) -> bool:
        """Probe the chart's first tile; a timeout or error means unavailable."""
        timeout = settings.chart_probe_timeout_s if timeout_s is None else timeout_s
        location = self.tile_location(chart, chart.zoom_levels[0], 0, 0)
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.tile_exists, location, timeout), timeout)
        except asyncio.TimeoutError:
            log.debug("Chart probe timed out: %s (%s)", chart.id, location)
            return False
        except OSError as e:
            log.debug("Chart probe failed: %s (%s)", chart.id, e)
            return False

    def descriptor(self, chart: Chart) -> TileSourceDescriptor:
        return TileSourceDescriptor(
            url_template=f"{chart.base_path}/{{z}}/{{x}}/{{y}}.png",
            attribution=f"&copy; CM93 nautical charts - {chart.name}",
            min_zoom=chart.min_zoom,
            max_zoom=chart.max_zoom,
            bounds=chart.bounds,
        )
