"""JSON-file persistence for waypoints and targets.

Synchronous, last-write-wins, no transaction across the two collections.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from chart_plot.config import settings
from chart_plot.core.errors import PersistenceError
from chart_plot.core.models import PlotSnapshot, Target, Waypoint

log = logging.getLogger(__name__)

WAYPOINTS_KEY = "waypoints"
TARGETS_KEY = "targets"

M = TypeVar("M", bound=BaseModel)


class JsonPlotStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else Path(settings.store_path).expanduser()

    # ------------------------------------------------------------------
    # Raw document
    # ------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

    def _write(self, doc: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(doc, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    def _load(self, key: str, model: Type[M]) -> List[M]:
        rows = self._read().get(key, [])
        try:
            return [model.model_validate(r) for r in rows]
        except ValidationError as e:
            raise PersistenceError(f"Corrupt {key} in {self.path}: {e}") from e

    def _save(self, key: str, items: List[BaseModel]) -> None:
        doc = self._read()
        doc[key] = [i.model_dump(mode="json") for i in items]
        self._write(doc)

    # ------------------------------------------------------------------
    # Waypoints
    # ------------------------------------------------------------------

    def load_waypoints(self) -> List[Waypoint]:
        return self._load(WAYPOINTS_KEY, Waypoint)

    def save_waypoints(self, waypoints: List[Waypoint]) -> None:
        self._save(WAYPOINTS_KEY, waypoints)

    def add_waypoint(self, waypoint: Waypoint) -> None:
        self.save_waypoints(self.load_waypoints() + [waypoint])

    def update_waypoint(self, waypoint: Waypoint) -> None:
        items = self.load_waypoints()
        for i, w in enumerate(items):
            if w.id == waypoint.id:
                items[i] = waypoint
                self.save_waypoints(items)
                return

    def delete_waypoint(self, waypoint_id: str) -> None:
        self.save_waypoints([w for w in self.load_waypoints() if w.id != waypoint_id])

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def load_targets(self) -> List[Target]:
        return self._load(TARGETS_KEY, Target)

    def save_targets(self, targets: List[Target]) -> None:
        self._save(TARGETS_KEY, targets)

    def add_target(self, target: Target) -> None:
        self.save_targets(self.load_targets() + [target])

    def update_target(self, target: Target) -> None:
        items = self.load_targets()
        for i, t in enumerate(items):
            if t.id == target.id:
                items[i] = target
                self.save_targets(items)
                return

    def delete_target(self, target_id: str) -> None:
        self.save_targets([t for t in self.load_targets() if t.id != target_id])

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        self._write({})

    def export_data(self) -> PlotSnapshot:
        return PlotSnapshot(waypoints=self.load_waypoints(), targets=self.load_targets())

    def import_data(self, data: Dict[str, Any]) -> PlotSnapshot:
        """Replace whichever collections *data* carries; absent keys are left alone."""
        try:
            if data.get(WAYPOINTS_KEY) is not None:
                self.save_waypoints([Waypoint.model_validate(w) for w in data[WAYPOINTS_KEY]])
            if data.get(TARGETS_KEY) is not None:
                self.save_targets([Target.model_validate(t) for t in data[TARGETS_KEY]])
        except ValidationError as e:
            raise PersistenceError(f"Invalid import document: {e}") from e
        return self.export_data()
