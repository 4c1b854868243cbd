"""Translate core state into layer descriptors and keep a MapSurface in sync."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List

from chart_plot.contracts.map_contract import MapSurface, MarkerDescriptor, PolylineDescriptor
from chart_plot.core.dead_reckoning import alignment_heading, current_position
from chart_plot.core.geodesy import format_sexagesimal
from chart_plot.core.measurement import ChangeSet
from chart_plot.core.models import Target, Waypoint

MEASUREMENT_COLOR = "red"
PAST_TRACK_COLOR = "#000000"
FUTURE_TRACK_COLOR = "#1E90FF"


def measurement_popup(changes: ChangeSet) -> str:
    r = changes.result
    if r is None:
        return ""
    return f"Distance: {r.distance_nm:.2f} NM<br/>Bearing: {r.bearing_deg:.1f}°"


class MeasurementOverlay:
    """Owns the marker/line handles for the measurement on one surface."""

    def __init__(self, surface: MapSurface) -> None:
        self.surface = surface
        self._handles: List[Any] = []
        self._line: Any = None

    def apply(self, changes: ChangeSet) -> None:
        if not changes.changed:
            return
        self.remove()
        for p in changes.points:
            self._handles.append(
                self.surface.add_layer(MarkerDescriptor(position=p, color=MEASUREMENT_COLOR))
            )
        if changes.line is not None:
            self._line = self.surface.add_layer(
                PolylineDescriptor(points=changes.line, color=MEASUREMENT_COLOR)
            )
            if changes.result is not None:
                self.surface.set_content(self._line, measurement_popup(changes))

    def remove(self) -> None:
        for h in self._handles:
            self.surface.remove_layer(h)
        self._handles = []
        if self._line is not None:
            self.surface.remove_layer(self._line)
            self._line = None


def waypoint_layers(wp: Waypoint) -> list:
    return [
        MarkerDescriptor(
            position=wp.coordinate,
            color=wp.color,
            popup=f"<b>{wp.name}</b><br/>{format_sexagesimal(wp.coordinate)}",
        )
    ]


def target_layers(target: Target, now: datetime) -> list:
    """Marker at the dead-reckoned position plus past (solid) and future (dashed) tracks."""
    pos = current_position(target, now)
    layers: list = [
        MarkerDescriptor(
            position=pos,
            color=target.color,
            rotation_deg=alignment_heading(target, now),
            popup=(
                f"<b>{target.name}</b><br/>{format_sexagesimal(pos)}<br/>"
                f"COG {target.course:.0f}° | SOG {target.speed:.1f} kn"
            ),
        )
    ]
    if len(target.past_track) > 1:
        layers.append(PolylineDescriptor(points=target.past_track, color=PAST_TRACK_COLOR, weight=2))
    if len(target.future_track) > 1:
        layers.append(
            PolylineDescriptor(
                points=target.future_track, color=FUTURE_TRACK_COLOR, weight=2, dash_array="5, 5"
            )
        )
    return layers
