"""Two-point distance/bearing measurement as a small state machine.

    EMPTY --select--> ONE_SELECTED --select--> COMPLETED
      ^                    |                       |
      +------ clear / toggle off ------------------+

In edit mode a COMPLETED session re-opens with its endpoints; a further
selection relocates whichever endpoint is nearer instead of adding a third.
The session holds no renderer handles: each transition returns a
:class:`ChangeSet` describing what should be drawn.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from chart_plot.core.geodesy import bearing_deg, distance_nm
from chart_plot.core.models import Coordinate

log = logging.getLogger(__name__)


class MeasurementPhase(str, Enum):
    EMPTY = "empty"
    ONE_SELECTED = "one_selected"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MeasurementResult:
    distance_nm: float
    bearing_deg: float
    start: Coordinate
    end: Coordinate


@dataclass(frozen=True)
class MeasurementSnapshot:
    phase: MeasurementPhase
    points: Tuple[Coordinate, ...]
    result: Optional[MeasurementResult]
    input_active: bool
    edit_mode: bool


@dataclass(frozen=True)
class ChangeSet:
    """Everything a renderer needs after one transition."""

    points: Tuple[Coordinate, ...] = ()
    line: Optional[Tuple[Coordinate, Coordinate]] = None
    result: Optional[MeasurementResult] = None
    exit_input_mode: bool = False
    changed: bool = True


def measure(start: Coordinate, end: Coordinate) -> MeasurementResult:
    return MeasurementResult(
        distance_nm=distance_nm(start, end),
        bearing_deg=bearing_deg(start, end),
        start=start,
        end=end,
    )


class MeasurementSession:
    def __init__(self) -> None:
        self._points: Tuple[Coordinate, ...] = ()
        self._result: Optional[MeasurementResult] = None
        self._input_active = False
        self._edit_mode = False

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> MeasurementPhase:
        if self._result is not None:
            return MeasurementPhase.COMPLETED
        if self._points:
            return MeasurementPhase.ONE_SELECTED
        return MeasurementPhase.EMPTY

    @property
    def result(self) -> Optional[MeasurementResult]:
        return self._result

    def snapshot(self) -> MeasurementSnapshot:
        return MeasurementSnapshot(
            phase=self.phase,
            points=self._points,
            result=self._result,
            input_active=self._input_active,
            edit_mode=self._edit_mode,
        )

    def _changes(self, exit_input_mode: bool = False) -> ChangeSet:
        line = (self._points[0], self._points[1]) if len(self._points) == 2 else None
        return ChangeSet(
            points=self._points,
            line=line,
            result=self._result,
            exit_input_mode=exit_input_mode,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_input_mode(self, active: bool) -> ChangeSet:
        """Toggle measurement input on/off (manual toggle by the operator)."""
        if active:
            self._input_active = True
            if self.phase is MeasurementPhase.COMPLETED and not self._edit_mode:
                # Starting a new measurement supersedes the previous result
                self._reset()
            return self._changes()

        self._input_active = False
        self._edit_mode = False
        if self.phase is MeasurementPhase.ONE_SELECTED:
            log.debug("Measurement cancelled with one point selected")
            self._points = ()
        return self._changes()

    def select(self, point: Coordinate) -> ChangeSet:
        """A map click, or a click on an existing waypoint/target, while measuring."""
        if self._edit_mode and self.phase is MeasurementPhase.COMPLETED:
            return self._relocate(point)

        if not self._input_active:
            return ChangeSet(points=self._points, result=self._result, changed=False)

        phase = self.phase
        if phase is MeasurementPhase.EMPTY:
            self._points = (point,)
            return self._changes()

        if phase is MeasurementPhase.ONE_SELECTED:
            start = self._points[0]
            self._points = (start, point)
            self._result = measure(start, point)
            # One-shot interaction: completing a measurement leaves input mode
            self._input_active = False
            return self._changes(exit_input_mode=True)

        # COMPLETED without edit mode: the host re-enables input first
        return ChangeSet(points=self._points, line=self._changes().line, result=self._result, changed=False)

    def begin_edit(self) -> ChangeSet:
        if self._result is None:
            return ChangeSet(points=self._points, changed=False)
        self._points = (self._result.start, self._result.end)
        self._edit_mode = True
        self._input_active = True
        return self._changes()

    def end_edit(self) -> ChangeSet:
        self._edit_mode = False
        self._input_active = False
        return self._changes()

    def clear(self) -> ChangeSet:
        self._reset()
        self._edit_mode = False
        return self._changes()

    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._points = ()
        self._result = None

    def _relocate(self, point: Coordinate) -> ChangeSet:
        start, end = self._points
        d_start = math.hypot(point.lat - start.lat, point.lng - start.lng)
        d_end = math.hypot(point.lat - end.lat, point.lng - end.lng)
        # Ties move the start point
        if d_start <= d_end:
            start = point
        else:
            end = point
        self._points = (start, end)
        self._result = measure(start, end)
        return self._changes()
