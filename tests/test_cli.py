from __future__ import annotations

from datetime import datetime, timezone

import pytest
from rich.console import Console

from chart_plot import cli
from chart_plot.cache.tile_cache import MemoryTileCache
from chart_plot.config import settings
from chart_plot.core.models import Coordinate
from chart_plot.core.plot import PlotState
from chart_plot.storage.json_store import JsonPlotStore

from fakes import FakeProbe

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli, "console", Console(width=200, highlight=False))


@pytest.fixture()
def store_path(tmp_path):
    path = tmp_path / "plot.json"
    state = PlotState(JsonPlotStore(path))
    state.add_target("Ferry", Coordinate(lat=40.0, lng=10.0), course=90, speed=10, reference_time=T0)
    return path


def test_distance(capsys):
    cli.main(["distance", "36", "-5", "36", "-4"])
    out = capsys.readouterr().out
    assert "Distance: 48.57 NM" in out
    assert "Bearing: 89.7°" in out


def test_convert(capsys):
    cli.main(["convert", "36", "-5"])
    assert "36°00'00.00\"N 005°00'00.00\"W" in capsys.readouterr().out


def test_convert_out_of_range_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["convert", "95", "0"])
    assert exc.value.code == 2
    assert "Latitude out of range" in capsys.readouterr().out


def test_position(capsys, store_path):
    cli.main(["position", "--store", str(store_path), "--at", "2024-06-01T13:00:00"])
    out = capsys.readouterr().out
    assert "Ferry" in out
    assert "10.2174" in out or "10.2175" in out


def test_track_by_name(capsys, store_path):
    cli.main(["track", "Ferry", "--store", str(store_path)])
    out = capsys.readouterr().out
    assert "Future track: Ferry" in out
    assert "2024-06-02 12:00" in out


def test_track_unknown(store_path):
    with pytest.raises(SystemExit):
        cli.main(["track", "Nobody", "--store", str(store_path)])


def test_resolve_offline(capsys, monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "ReachabilityProbe", lambda: FakeProbe(reachable=False))
    monkeypatch.setattr(cli, "build_tile_cache", MemoryTileCache)
    monkeypatch.setattr(settings, "chart_source_root", str(tmp_path))
    cli.main(["resolve", "--lat", "42", "--lng", "15", "--zoom", "8"])
    out = capsys.readouterr().out
    assert "Source: offline-blank" in out


def test_charts(capsys):
    cli.main(["charts"])
    out = capsys.readouterr().out
    assert "mediterranean" in out
    assert "adriatic" in out
