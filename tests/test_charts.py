from __future__ import annotations

import json

import pytest

from chart_plot.tiles.charts import DEFAULT_CHARTS, ChartCatalog, chart_from_dict, load_catalog
from chart_plot.tiles.grid import neighborhood, tile_center, tile_origin, tile_url, tile_xy


class TestChart:
    def test_covers_inside_and_boundary(self):
        med = DEFAULT_CHARTS[0]
        assert med.covers(40.0, 10.0)
        assert med.covers(46.0, -6.0)  # corner
        assert not med.covers(47.0, 10.0)
        assert not med.covers(40.0, -7.0)

    def test_zoom_range(self):
        adriatic = DEFAULT_CHARTS[1]
        assert (adriatic.min_zoom, adriatic.max_zoom) == (6, 14)

    def test_from_dict_defaults(self):
        c = chart_from_dict(
            {"id": "aegean", "bounds": {"north": 41, "south": 35, "east": 28, "west": 22}, "zoom_levels": [5, 6]}
        )
        assert c.name == "aegean"
        assert c.base_path == "/charts/aegean"
        assert c.zoom_levels == (5, 6)
        assert c.bounds.north == 41.0

    def test_load_catalog(self, tmp_path):
        p = tmp_path / "charts.json"
        p.write_text(json.dumps([
            {"id": "x", "name": "X", "bounds": {"north": 1, "south": 0, "east": 1, "west": 0},
             "zoom_levels": [3], "base_path": "/c/x"},
        ]))
        charts = load_catalog(p)
        assert [c.id for c in charts] == ["x"]
        assert charts[0].base_path == "/c/x"


class TestCatalog:
    def test_find_best_registration_order(self, catalog):
        assert catalog.find_best(42.0, 15.0, 8).id == "mediterranean"

    def test_find_best_respects_zoom(self, catalog):
        assert catalog.find_best(42.0, 15.0, 13).id == "adriatic"
        assert catalog.find_best(42.0, 15.0, 3) is None

    def test_find_best_outside(self, catalog):
        assert catalog.find_best(0.0, 0.0, 6) is None

    def test_iteration_and_lookup(self, catalog):
        assert len(catalog) == 2
        assert [c.id for c in catalog] == ["mediterranean", "adriatic"]
        assert catalog.get("adriatic").name == "Adriatic Sea"
        assert catalog.get("nope") is None

    def test_tile_location_on_disk(self, catalog, chart_root):
        chart = catalog.get("adriatic")
        loc = catalog.tile_location(chart, 7, 68, 47)
        assert loc == str(chart_root / "charts" / "adriatic" / "7" / "68" / "47.png")

    def test_tile_location_url_root(self):
        cat = ChartCatalog(DEFAULT_CHARTS, source_root="https://charts.example.org/")
        loc = cat.tile_location(cat.get("mediterranean"), 4, 8, 5)
        assert loc == "https://charts.example.org/charts/mediterranean/4/8/5.png"

    @pytest.mark.asyncio
    async def test_available_when_probe_tile_present(self, catalog, probe_tile):
        probe_tile("adriatic")
        assert await catalog.is_available(catalog.get("adriatic"), 1.0) is True
        assert await catalog.is_available(catalog.get("mediterranean"), 1.0) is False

    def test_read_tile(self, catalog, write_tile):
        chart = catalog.get("mediterranean")
        write_tile("mediterranean", 5, 17, 11, data=b"tile-bytes")
        assert catalog.read_tile(catalog.tile_location(chart, 5, 17, 11), 1.0) == b"tile-bytes"
        assert catalog.read_tile(catalog.tile_location(chart, 5, 0, 0), 1.0) is None

    def test_descriptor(self, catalog):
        d = catalog.descriptor(catalog.get("adriatic"))
        assert d.url_template == "/charts/adriatic/{z}/{x}/{y}.png"
        assert d.bounds == catalog.get("adriatic").bounds
        assert "Adriatic Sea" in d.attribution


class TestGrid:
    def test_zoom_zero(self):
        assert tile_xy(0.0, 0.0, 0) == (0, 0)

    def test_known_tile(self):
        # Rome at z10
        assert tile_xy(41.9, 12.5, 10) == (547, 380)

    def test_origin_and_center_inside_tile(self):
        lat, lng = tile_center(10, 547, 380)
        assert tile_xy(lat, lng, 10) == (547, 380)
        north, west = tile_origin(10, 547, 380)
        assert north > lat and west < lng

    def test_neighborhood_size(self):
        tiles = list(neighborhood(10, 10, 2))
        assert len(tiles) == 25
        assert (8, 8) in tiles and (12, 12) in tiles

    def test_tile_url(self):
        assert tile_url("https://{s}.t.org/{z}/{x}/{y}.png", 1, 2, 3) == "https://a.t.org/1/2/3.png"
