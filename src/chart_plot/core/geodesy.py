"""Spherical geodesy: coordinate conversion, distance, bearing, forward projection.

Earth is modelled as a sphere of radius 3440.065 nautical miles. Longitudes
are not wrapped and poles are not special-cased.
"""
from __future__ import annotations

import math
from math import asin, atan2, cos, degrees, radians, sin, sqrt

from chart_plot.core.errors import InvalidInput
from chart_plot.core.models import Coordinate, SexagesimalAxis, SexagesimalCoordinate


EARTH_RADIUS_NM = 3440.065


# ---------------------------------------------------------------------------
# Input checks
# ---------------------------------------------------------------------------

def _finite(*values: float) -> None:
    for v in values:
        if not math.isfinite(v):
            raise InvalidInput(f"Non-finite value: {v}")


def _check_point(p: Coordinate) -> None:
    _finite(p.lat, p.lng)


# ---------------------------------------------------------------------------
# Sexagesimal conversion
# ---------------------------------------------------------------------------

def _axis_to_sexagesimal(value: float, is_latitude: bool) -> SexagesimalAxis:
    a = abs(value)
    deg = math.floor(a)
    minutes_f = (a - deg) * 60
    minutes = math.floor(minutes_f)
    seconds = round((minutes_f - minutes) * 60, 2)
    # Rounding can carry 59.995.. up to 60.00
    if seconds >= 60.0:
        seconds = 0.0
        minutes += 1
    if minutes >= 60:
        minutes = 0
        deg += 1

    if is_latitude:
        hemisphere = "N" if value >= 0 else "S"
    else:
        hemisphere = "E" if value >= 0 else "W"
    return SexagesimalAxis(degrees=deg, minutes=minutes, seconds=seconds, hemisphere=hemisphere)


def to_sexagesimal(coord: Coordinate) -> SexagesimalCoordinate:
    """Decimal degrees -> degrees/minutes/seconds (seconds rounded to 2 decimals)."""
    _check_point(coord)
    return SexagesimalCoordinate(
        lat=_axis_to_sexagesimal(coord.lat, True),
        lng=_axis_to_sexagesimal(coord.lng, False),
    )


def _axis_to_decimal(axis: SexagesimalAxis) -> float:
    decimal = axis.degrees + axis.minutes / 60 + axis.seconds / 3600
    return -decimal if axis.hemisphere in ("S", "W") else decimal


def to_decimal(sexagesimal: SexagesimalCoordinate) -> Coordinate:
    """Inverse of :func:`to_sexagesimal`.

    Seconds carry only two decimals, so a round trip is exact to ~3e-6 deg,
    not bit-for-bit. An out-of-range result (e.g. 95°N) raises InvalidInput.
    """
    return Coordinate(lat=_axis_to_decimal(sexagesimal.lat), lng=_axis_to_decimal(sexagesimal.lng)).validated()


def format_sexagesimal(coord: Coordinate) -> str:
    """Display form, e.g. ``36°00'00.00"N 005°00'00.00"W``."""
    sx = to_sexagesimal(coord)
    lat, lng = sx.lat, sx.lng
    return (
        f"{lat.degrees:02d}°{lat.minutes:02d}'{lat.seconds:05.2f}\"{lat.hemisphere} "
        f"{lng.degrees:03d}°{lng.minutes:02d}'{lng.seconds:05.2f}\"{lng.hemisphere}"
    )


# ---------------------------------------------------------------------------
# Distance / bearing / projection
# ---------------------------------------------------------------------------

def distance_nm(a: Coordinate, b: Coordinate) -> float:
    """Great-circle (haversine) distance in nautical miles."""
    _check_point(a)
    _check_point(b)
    lat1, lon1, lat2, lon2 = map(radians, [a.lat, a.lng, b.lat, b.lng])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_NM * 2 * atan2(sqrt(h), sqrt(1 - h))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from *a* to *b*, degrees clockwise from true north in [0, 360)."""
    _check_point(a)
    _check_point(b)
    lat1, lon1, lat2, lon2 = map(radians, [a.lat, a.lng, b.lat, b.lng])
    dlon = lon2 - lon1
    y = sin(dlon) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    brg = (degrees(atan2(y, x)) + 360.0) % 360.0
    # (-tiny + 360) % 360 can round to exactly 360.0
    return 0.0 if brg >= 360.0 else brg


def project(origin: Coordinate, course_deg: float, speed_kt: float, elapsed_hours: float) -> Coordinate:
    """Position reached from *origin* steering *course_deg* at *speed_kt* for *elapsed_hours*."""
    _check_point(origin)
    _finite(course_deg, speed_kt, elapsed_hours)
    if elapsed_hours < 0:
        raise InvalidInput(f"Negative elapsed time: {elapsed_hours} h")
    if speed_kt < 0:
        raise InvalidInput(f"Negative speed: {speed_kt} kn")
    if not 0.0 <= course_deg < 360.0:
        raise InvalidInput(f"Course out of range: {course_deg}")

    delta = (speed_kt * elapsed_hours) / EARTH_RADIUS_NM
    lat1 = radians(origin.lat)
    lon1 = radians(origin.lng)
    theta = radians(course_deg)

    s = sin(lat1) * cos(delta) + cos(lat1) * sin(delta) * cos(theta)
    lat2 = asin(min(1.0, max(-1.0, s)))
    lon2 = lon1 + atan2(
        sin(theta) * sin(delta) * cos(lat1),
        cos(delta) - sin(lat1) * sin(lat2),
    )
    return Coordinate(lat=degrees(lat2), lng=degrees(lon2))
