from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from chart_plot.contracts.map_contract import MarkerDescriptor, PolylineDescriptor, TileSourceDescriptor
from chart_plot.core.models import Coordinate, PlotSnapshot
from chart_plot.render.overlays import target_layers, waypoint_layers


def _latlngs(points) -> list:
    return [[p.lat, p.lng] for p in points]


def _layer_json(layer) -> dict:
    if isinstance(layer, MarkerDescriptor):
        return {
            "type": "marker",
            "at": [layer.position.lat, layer.position.lng],
            "color": layer.color,
            "radius": layer.radius,
            "rotation": layer.rotation_deg,
            "popup": layer.popup or "",
        }
    if isinstance(layer, PolylineDescriptor):
        return {
            "type": "line",
            "points": _latlngs(layer.points),
            "color": layer.color,
            "weight": layer.weight,
            "dash": layer.dash_array,
        }
    raise TypeError(f"Unsupported layer: {layer!r}")


def build_map_html(snapshot: PlotSnapshot, tiles: TileSourceDescriptor, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    layers: List[dict] = []
    for wp in snapshot.waypoints:
        layers.extend(_layer_json(layer) for layer in waypoint_layers(wp))
    for t in snapshot.targets:
        layers.extend(_layer_json(layer) for layer in target_layers(t, now))

    tile_opts = {
        "attribution": tiles.attribution,
        "minZoom": tiles.min_zoom,
        "maxZoom": tiles.max_zoom,
    }
    if tiles.bounds is not None:
        b = asdict(tiles.bounds)
        tile_opts["bounds"] = [[b["south"], b["west"]], [b["north"], b["east"]]]

    html = f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Chart Plot – {now.strftime("%Y-%m-%d %H:%M")} UTC</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <style>
    body {{ margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; }}
    #map {{ height: 100vh; width: 100vw; }}
    .target-icon div {{ width: 0; height: 0; border-left: 8px solid transparent; border-right: 8px solid transparent; }}
  </style>
</head>
<body>
<div id="map"></div>
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<script>
  const layers = {json.dumps(layers)};
  const map = L.map('map').setView([42.0, 12.0], 6);

  L.tileLayer({json.dumps(tiles.url_template)}, {json.dumps(tile_opts)}).addTo(map);

  const pts = [];
  layers.forEach((l) => {{
    if (l.type === 'line') {{
      L.polyline(l.points, {{ color: l.color, weight: l.weight, dashArray: l.dash }}).addTo(map);
      l.points.forEach(p => pts.push(p));
    }} else if (l.rotation !== null) {{
      const icon = L.divIcon({{
        className: 'target-icon',
        html: `<div style="border-bottom: 20px solid ${{l.color}}; transform: rotate(${{l.rotation}}deg);"></div>`
      }});
      L.marker(l.at, {{ icon }}).addTo(map).bindPopup(l.popup);
      pts.push(l.at);
    }} else {{
      L.circleMarker(l.at, {{ radius: l.radius, color: l.color, fillOpacity: 0.8 }}).addTo(map).bindPopup(l.popup);
      pts.push(l.at);
    }}
  }});

  if (pts.length) map.fitBounds(L.latLngBounds(pts).pad(0.2));
</script>
</body>
</html>
"""
    return html


def main() -> None:
    from chart_plot.config import settings
    from chart_plot.deps import get_resolver
    from chart_plot.storage.json_store import JsonPlotStore
    from chart_plot.tiles.resolver import LayerContext, ResolveTrigger, Viewport

    ap = argparse.ArgumentParser(description="Export the saved plot as a Leaflet HTML page")
    ap.add_argument("--store", default=None, help="Path to the plot JSON file")
    ap.add_argument("--out", default="plot_map.html")
    args = ap.parse_args()

    store = JsonPlotStore(Path(args.store)) if args.store else JsonPlotStore()
    snapshot = store.export_data()

    center = Coordinate(lat=settings.default_center_lat, lng=settings.default_center_lng)
    decision = asyncio.run(
        get_resolver().resolve(Viewport(center, settings.default_zoom), LayerContext(), ResolveTrigger.INITIAL_LOAD)
    )

    out_path = Path(args.out)
    out_path.write_text(build_map_html(snapshot, decision.descriptor), encoding="utf-8")
    print(f"Wrote: {out_path.resolve()} (tiles: {decision.indicator})")


if __name__ == "__main__":
    main()
