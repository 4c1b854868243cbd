from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from chart_plot.cache.tile_cache import build_tile_cache
from chart_plot.core.dead_reckoning import (
    alignment_heading,
    current_position,
    hours_per_point,
    track_point_time,
)
from chart_plot.core.errors import ChartPlotError
from chart_plot.core.geodesy import bearing_deg, distance_nm, format_sexagesimal
from chart_plot.core.models import Coordinate
from chart_plot.core.plot import PlotState
from chart_plot.storage.json_store import JsonPlotStore
from chart_plot.tiles.charts import ChartCatalog
from chart_plot.tiles.http import ReachabilityProbe
from chart_plot.tiles.resolver import LayerContext, ResolveTrigger, TileSourceResolver, Viewport

console = Console()


def _parse_time(s: Optional[str]) -> datetime:
    if not s:
        return datetime.now(timezone.utc)
    dt = datetime.fromisoformat(s)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _load_state(store_path: Optional[str]) -> PlotState:
    store = JsonPlotStore(Path(store_path)) if store_path else JsonPlotStore()
    return PlotState.load(store)


def cmd_distance(args) -> None:
    a = Coordinate(lat=args.lat1, lng=args.lng1).validated()
    b = Coordinate(lat=args.lat2, lng=args.lng2).validated()
    console.print(
        f"{format_sexagesimal(a)} → {format_sexagesimal(b)}\n"
        f"Distance: [bold]{distance_nm(a, b):.2f} NM[/bold]   Bearing: [bold]{bearing_deg(a, b):.1f}°[/bold]"
    )


def cmd_convert(args) -> None:
    c = Coordinate(lat=args.lat, lng=args.lng).validated()
    console.print(format_sexagesimal(c))


def cmd_position(args) -> None:
    state = _load_state(args.store)
    at = _parse_time(args.at)

    table = Table(title=f"Targets at {at.isoformat(timespec='minutes')}")
    table.add_column("Name")
    table.add_column("Lat")
    table.add_column("Lng")
    table.add_column("Position")
    table.add_column("COG")
    table.add_column("SOG kn")
    table.add_column("Heading")

    for t in state.targets.values():
        pos = current_position(t, at)
        table.add_row(
            t.name,
            f"{pos.lat:.5f}",
            f"{pos.lng:.5f}",
            format_sexagesimal(pos),
            f"{t.course:.0f}",
            f"{t.speed:.1f}",
            f"{alignment_heading(t, at):.1f}",
        )
    console.print(table)


def cmd_track(args) -> None:
    state = _load_state(args.store)
    target = state.targets.get(args.target_id)
    if target is None:
        matches = [t for t in state.targets.values() if t.name == args.target_id]
        target = matches[0] if matches else None
    if target is None:
        raise SystemExit(f"No target '{args.target_id}'")

    step = hours_per_point()
    table = Table(title=f"Future track: {target.name}")
    table.add_column("#")
    table.add_column("Time (UTC)")
    table.add_column("Lat")
    table.add_column("Lng")
    for i, p in enumerate(target.future_track):
        when = track_point_time(target.reference_time, i, step)
        table.add_row(str(i), when.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M"), f"{p.lat:.6f}", f"{p.lng:.6f}")
    console.print(table)


def cmd_resolve(args) -> None:
    resolver = TileSourceResolver(ChartCatalog.from_settings(), build_tile_cache(), ReachabilityProbe())
    viewport = Viewport(Coordinate(lat=args.lat, lng=args.lng).validated(), args.zoom)
    decision = asyncio.run(resolver.resolve(viewport, LayerContext(), ResolveTrigger.INITIAL_LOAD))
    console.print(f"Source: [bold]{decision.indicator}[/bold]")
    console.print(f"Tiles:  {decision.descriptor.url_template}")
    if decision.chart is not None:
        console.print(f"Chart:  {decision.chart.name} ({decision.chart.id})")


def cmd_charts(args) -> None:
    table = Table(title="Offline charts")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("N/S/E/W")
    table.add_column("Zoom")
    table.add_column("Path")
    for c in ChartCatalog.from_settings():
        b = c.bounds
        table.add_row(c.id, c.name, f"{b.north}/{b.south}/{b.east}/{b.west}", f"{c.min_zoom}-{c.max_zoom}", c.base_path)
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="chart-plot")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("distance", help="Great-circle distance and initial bearing")
    for name in ("lat1", "lng1", "lat2", "lng2"):
        p.add_argument(name, type=float)
    p.set_defaults(func=cmd_distance)

    p = sub.add_parser("convert", help="Decimal degrees to degrees/minutes/seconds")
    p.add_argument("lat", type=float)
    p.add_argument("lng", type=float)
    p.set_defaults(func=cmd_convert)

    p = sub.add_parser("position", help="Dead-reckoned target positions")
    p.add_argument("--store", default=None, help="Path to the plot JSON file")
    p.add_argument("--at", default=None, help="ISO time (default: now, UTC)")
    p.set_defaults(func=cmd_position)

    p = sub.add_parser("track", help="Future track of one target with times")
    p.add_argument("target_id", help="Target id or name")
    p.add_argument("--store", default=None)
    p.set_defaults(func=cmd_track)

    p = sub.add_parser("resolve", help="Pick the tile source for a viewport")
    p.add_argument("--lat", type=float, required=True)
    p.add_argument("--lng", type=float, required=True)
    p.add_argument("--zoom", type=int, required=True)
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("charts", help="List offline charts")
    p.set_defaults(func=cmd_charts)

    return ap


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except ChartPlotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(2)


if __name__ == "__main__":
    main()
