"""Dead reckoning: a target's current position and its projected future track."""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional, Sequence, Tuple

from chart_plot.config import settings
from chart_plot.core.errors import InvalidTargetState
from chart_plot.core.geodesy import bearing_deg, project
from chart_plot.core.models import Coordinate, Target


def _check_motion(course: float, speed: float) -> None:
    if not (math.isfinite(course) and math.isfinite(speed)):
        raise InvalidTargetState(f"Non-finite course/speed: {course}, {speed}")
    if speed < 0:
        raise InvalidTargetState(f"Negative speed: {speed} kn")
    if not 0.0 <= course < 360.0:
        raise InvalidTargetState(f"Course out of range: {course}")


def hours_between(now: datetime, reference: datetime) -> float:
    """Signed hours from *reference* to *now* (negative if *reference* is later)."""
    return (now - reference).total_seconds() / 3600.0


def current_position(target: Target, now: datetime) -> Coordinate:
    """Where *target* is at *now*.

    A reference time in the future means the target has not started moving
    yet, so its reference coordinate is returned unchanged.
    """
    _check_motion(target.course, target.speed)
    elapsed = hours_between(now, target.reference_time)
    if elapsed < 0:
        return target.coordinate
    return project(target.coordinate, target.course, target.speed, elapsed)


def future_track(
    coordinate: Coordinate,
    course: float,
    speed: float,
    horizon_hours: Optional[float] = None,
    point_count: Optional[int] = None,
) -> Tuple[Coordinate, ...]:
    """``point_count + 1`` positions every ``horizon_hours / point_count`` hours from elapsed 0."""
    horizon = settings.future_track_hours if horizon_hours is None else horizon_hours
    n = settings.future_track_points if point_count is None else point_count
    _check_motion(course, speed)
    if n <= 0 or horizon < 0:
        raise InvalidTargetState(f"Invalid track horizon/points: {horizon} h, {n}")

    step = horizon / n
    return tuple(project(coordinate, course, speed, i * step) for i in range(n + 1))


def hours_per_point(horizon_hours: Optional[float] = None, point_count: Optional[int] = None) -> float:
    horizon = settings.future_track_hours if horizon_hours is None else horizon_hours
    n = settings.future_track_points if point_count is None else point_count
    return horizon / n


def track_point_time(reference_time: datetime, index: int, step_hours: Optional[float] = None) -> datetime:
    """Wall-clock time represented by future-track point *index*."""
    step = hours_per_point() if step_hours is None else step_hours
    return reference_time + timedelta(hours=index * step)


def nearest_track_index(track: Sequence[Coordinate], coord: Coordinate) -> Optional[int]:
    """Index of the track point closest to *coord* in degree space (hover lookup)."""
    best: Optional[int] = None
    best_d = math.inf
    for i, p in enumerate(track):
        d = math.hypot(p.lat - coord.lat, p.lng - coord.lng)
        if d < best_d:
            best_d = d
            best = i
    return best


def alignment_heading(target: Target, now: datetime) -> float:
    """Heading used to orient the target icon along its drawn track.

    Bearing from the current position to the second future-track point, so
    the icon matches the rendered track; the raw course when the track is
    too short.
    """
    if len(target.future_track) < 2:
        return target.course
    return bearing_deg(current_position(target, now), target.future_track[1])


def with_future_track(
    target: Target,
    horizon_hours: Optional[float] = None,
    point_count: Optional[int] = None,
) -> Target:
    """Return *target* with its future track recomputed from coordinate/course/speed."""
    track = future_track(target.coordinate, target.course, target.speed, horizon_hours, point_count)
    return target.model_copy(update={"future_track": track})
