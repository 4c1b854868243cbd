"""In-memory plot state: the session's source of truth for waypoints and targets.

Persistence is best effort. A failed save is logged and remembered in
``last_persistence_error`` but never rolls back the in-memory change.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from chart_plot.core.dead_reckoning import with_future_track
from chart_plot.core.errors import PersistenceError, UnknownRecord
from chart_plot.core.models import (
    TARGET_COLORS,
    WAYPOINT_COLORS,
    Coordinate,
    PlotSnapshot,
    Target,
    Waypoint,
)
from chart_plot.storage.json_store import JsonPlotStore

log = logging.getLogger(__name__)

_TRACK_FIELDS = ("coordinate", "course", "speed")


def clamp_course(course: float) -> float:
    """Data-entry policy: course is kept within 0..359 degrees."""
    return max(0.0, min(359.0, float(course)))


def clamp_speed(speed: float) -> float:
    return max(0.0, float(speed))


class PlotState:
    def __init__(self, store: Optional[JsonPlotStore] = None):
        self.store = store
        self.waypoints: Dict[str, Waypoint] = {}
        self.targets: Dict[str, Target] = {}
        self.last_persistence_error: Optional[str] = None

    @classmethod
    def load(cls, store: JsonPlotStore) -> PlotState:
        state = cls(store)
        try:
            state.waypoints = {w.id: w for w in store.load_waypoints()}
            state.targets = {t.id: t for t in store.load_targets()}
            log.info("Loaded %d waypoint(s), %d target(s)", len(state.waypoints), len(state.targets))
        except PersistenceError as e:
            log.error("Could not load plot, starting empty: %s", e)
            state.last_persistence_error = str(e)
        return state

    def _persist(self, op: str, *args: Any) -> None:
        if self.store is None:
            return
        try:
            getattr(self.store, op)(*args)
            self.last_persistence_error = None
        except PersistenceError as e:
            log.error("Persistence failed (%s); keeping in-memory state", e)
            self.last_persistence_error = str(e)

    # ------------------------------------------------------------------
    # Waypoints
    # ------------------------------------------------------------------

    def add_waypoint(self, name: str, coordinate: Coordinate, color: Optional[str] = None) -> Waypoint:
        wp = Waypoint(
            name=name,
            coordinate=coordinate,
            color=color or WAYPOINT_COLORS[len(self.waypoints) % len(WAYPOINT_COLORS)],
        )
        self.waypoints[wp.id] = wp
        self._persist("add_waypoint", wp)
        return wp

    def update_waypoint(self, waypoint_id: str, **changes: Any) -> Waypoint:
        old = self.waypoints.get(waypoint_id)
        if old is None:
            raise UnknownRecord(waypoint_id)
        wp = old.updated(**changes)
        self.waypoints[wp.id] = wp
        self._persist("update_waypoint", wp)
        return wp

    def delete_waypoint(self, waypoint_id: str) -> None:
        if self.waypoints.pop(waypoint_id, None) is None:
            raise UnknownRecord(waypoint_id)
        self._persist("delete_waypoint", waypoint_id)

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def add_target(
        self,
        name: str,
        coordinate: Coordinate,
        course: float,
        speed: float,
        reference_time: datetime,
        color: Optional[str] = None,
        past_track: Iterable[Coordinate] = (),
    ) -> Target:
        target = Target(
            name=name,
            coordinate=coordinate,
            course=clamp_course(course),
            speed=clamp_speed(speed),
            reference_time=reference_time,
            color=color or TARGET_COLORS[len(self.targets) % len(TARGET_COLORS)],
            past_track=tuple(past_track),
        )
        target = with_future_track(target)
        self.targets[target.id] = target
        self._persist("add_target", target)
        return target

    def update_target(self, target_id: str, **changes: Any) -> Target:
        old = self.targets.get(target_id)
        if old is None:
            raise UnknownRecord(target_id)
        if "course" in changes:
            changes["course"] = clamp_course(changes["course"])
        if "speed" in changes:
            changes["speed"] = clamp_speed(changes["speed"])

        target = old.updated(**changes)
        if any(getattr(target, f) != getattr(old, f) for f in _TRACK_FIELDS) or not target.future_track:
            target = with_future_track(target)
        self.targets[target.id] = target
        self._persist("update_target", target)
        return target

    def delete_target(self, target_id: str) -> None:
        if self.targets.pop(target_id, None) is None:
            raise UnknownRecord(target_id)
        self._persist("delete_target", target_id)

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def export(self) -> PlotSnapshot:
        return PlotSnapshot(waypoints=list(self.waypoints.values()), targets=list(self.targets.values()))

    def import_snapshot(self, data: Dict[str, Any]) -> PlotSnapshot:
        """Replace the collections present in *data* (others are kept)."""
        if data.get("waypoints") is not None:
            wps: List[Waypoint] = [Waypoint.model_validate(w) for w in data["waypoints"]]
            self.waypoints = {w.id: w for w in wps}
            self._persist("save_waypoints", wps)
        if data.get("targets") is not None:
            tgts: List[Target] = [Target.model_validate(t) for t in data["targets"]]
            tgts = [t if t.future_track else with_future_track(t) for t in tgts]
            self.targets = {t.id: t for t in tgts}
            self._persist("save_targets", tgts)
        return self.export()
