"""Waypoint / target CRUD plus bulk export and import."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from chart_plot.core.models import Coordinate, PlotSnapshot, Target, Waypoint
from chart_plot.core.plot import PlotState
from chart_plot.deps import get_plot_state

router = APIRouter(prefix="/plot", tags=["plot"])


class WaypointCreate(BaseModel):
    name: str
    coordinate: Coordinate
    color: Optional[str] = None


class WaypointUpdate(BaseModel):
    name: Optional[str] = None
    coordinate: Optional[Coordinate] = None
    color: Optional[str] = None


class TargetCreate(BaseModel):
    name: str
    coordinate: Coordinate
    course: float = 0.0
    speed: float = 10.0
    reference_time: datetime
    color: Optional[str] = None
    past_track: List[Coordinate] = Field(default_factory=list)


class TargetUpdate(BaseModel):
    name: Optional[str] = None
    coordinate: Optional[Coordinate] = None
    course: Optional[float] = None
    speed: Optional[float] = None
    reference_time: Optional[datetime] = None
    color: Optional[str] = None
    past_track: Optional[List[Coordinate]] = None


def _persistence_header(response: Response, state: PlotState) -> None:
    # In-memory state is authoritative; tell the client when saving failed
    if state.last_persistence_error:
        response.headers["X-Persistence-Error"] = state.last_persistence_error[:200]


# ── Waypoints ────────────────────────────────────────────────────────────

@router.get("/waypoints", response_model=List[Waypoint])
def list_waypoints(state: PlotState = Depends(get_plot_state)):
    return list(state.waypoints.values())


@router.post("/waypoints", response_model=Waypoint, status_code=201)
def create_waypoint(body: WaypointCreate, response: Response, state: PlotState = Depends(get_plot_state)):
    wp = state.add_waypoint(body.name, body.coordinate.validated(), body.color)
    _persistence_header(response, state)
    return wp


@router.put("/waypoints/{waypoint_id}", response_model=Waypoint)
def update_waypoint(
    waypoint_id: str, body: WaypointUpdate, response: Response, state: PlotState = Depends(get_plot_state)
):
    changes: Dict[str, Any] = {k: v for k, v in body if v is not None}
    wp = state.update_waypoint(waypoint_id, **changes)
    _persistence_header(response, state)
    return wp


@router.delete("/waypoints/{waypoint_id}", status_code=204)
def delete_waypoint(waypoint_id: str, state: PlotState = Depends(get_plot_state)):
    state.delete_waypoint(waypoint_id)
    return Response(status_code=204)


# ── Targets ──────────────────────────────────────────────────────────────

@router.get("/targets", response_model=List[Target])
def list_targets(state: PlotState = Depends(get_plot_state)):
    return list(state.targets.values())


@router.post("/targets", response_model=Target, status_code=201)
def create_target(body: TargetCreate, response: Response, state: PlotState = Depends(get_plot_state)):
    t = state.add_target(
        body.name,
        body.coordinate.validated(),
        body.course,
        body.speed,
        body.reference_time,
        color=body.color,
        past_track=body.past_track,
    )
    _persistence_header(response, state)
    return t


@router.put("/targets/{target_id}", response_model=Target)
def update_target(
    target_id: str, body: TargetUpdate, response: Response, state: PlotState = Depends(get_plot_state)
):
    changes: Dict[str, Any] = {k: v for k, v in body if v is not None}
    if "past_track" in changes:
        changes["past_track"] = tuple(changes["past_track"])
    t = state.update_target(target_id, **changes)
    _persistence_header(response, state)
    return t


@router.delete("/targets/{target_id}", status_code=204)
def delete_target(target_id: str, state: PlotState = Depends(get_plot_state)):
    state.delete_target(target_id)
    return Response(status_code=204)


# ── Bulk ─────────────────────────────────────────────────────────────────

@router.get("/export", response_model=PlotSnapshot)
def export_plot(state: PlotState = Depends(get_plot_state)):
    return state.export()


@router.post("/import", response_model=PlotSnapshot)
def import_plot(body: Dict[str, Any], response: Response, state: PlotState = Depends(get_plot_state)):
    snap = state.import_snapshot(body)
    _persistence_header(response, state)
    return snap
