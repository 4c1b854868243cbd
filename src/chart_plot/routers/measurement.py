"""Hosts the operator's measurement session: one transition per request."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chart_plot.core.measurement import ChangeSet, MeasurementResult, MeasurementSession
from chart_plot.core.models import Coordinate
from chart_plot.deps import get_measurement_session

router = APIRouter(prefix="/measure/session", tags=["measure"])


class InputMode(BaseModel):
    active: bool


class ResultOut(BaseModel):
    distance_nm: float
    bearing_deg: float
    start: Coordinate
    end: Coordinate


class SessionOut(BaseModel):
    phase: str
    points: List[Coordinate]
    result: Optional[ResultOut] = None
    input_active: bool
    edit_mode: bool


class TransitionOut(BaseModel):
    changed: bool
    exit_input_mode: bool
    line: Optional[List[Coordinate]] = None
    session: SessionOut


def _result(r: Optional[MeasurementResult]) -> Optional[ResultOut]:
    if r is None:
        return None
    return ResultOut(distance_nm=r.distance_nm, bearing_deg=r.bearing_deg, start=r.start, end=r.end)


def _session(s: MeasurementSession) -> SessionOut:
    snap = s.snapshot()
    return SessionOut(
        phase=snap.phase.value,
        points=list(snap.points),
        result=_result(snap.result),
        input_active=snap.input_active,
        edit_mode=snap.edit_mode,
    )


def _transition(cs: ChangeSet, s: MeasurementSession) -> TransitionOut:
    return TransitionOut(
        changed=cs.changed,
        exit_input_mode=cs.exit_input_mode,
        line=list(cs.line) if cs.line else None,
        session=_session(s),
    )


@router.get("", response_model=SessionOut)
def get_session(session: MeasurementSession = Depends(get_measurement_session)):
    return _session(session)


@router.post("/input", response_model=TransitionOut)
def set_input(body: InputMode, session: MeasurementSession = Depends(get_measurement_session)):
    return _transition(session.set_input_mode(body.active), session)


@router.post("/select", response_model=TransitionOut)
def select_point(point: Coordinate, session: MeasurementSession = Depends(get_measurement_session)):
    return _transition(session.select(point.validated()), session)


@router.post("/edit", response_model=TransitionOut)
def begin_edit(session: MeasurementSession = Depends(get_measurement_session)):
    return _transition(session.begin_edit(), session)


@router.post("/edit/end", response_model=TransitionOut)
def end_edit(session: MeasurementSession = Depends(get_measurement_session)):
    return _transition(session.end_edit(), session)


@router.delete("", response_model=TransitionOut)
def clear_session(session: MeasurementSession = Depends(get_measurement_session)):
    return _transition(session.clear(), session)
