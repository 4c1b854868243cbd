"""Tests for spherical geodesy helpers."""
from __future__ import annotations

import math
import random

import pytest

from chart_plot.core.errors import InvalidInput
from chart_plot.core.geodesy import (
    EARTH_RADIUS_NM,
    bearing_deg,
    distance_nm,
    format_sexagesimal,
    project,
    to_decimal,
    to_sexagesimal,
)
from chart_plot.core.models import Coordinate, SexagesimalAxis, SexagesimalCoordinate


def C(lat: float, lng: float) -> Coordinate:
    return Coordinate(lat=lat, lng=lng)


def _random_points(n: int, seed: int = 42):
    rnd = random.Random(seed)
    return [C(rnd.uniform(-89.9, 89.9), rnd.uniform(-179.9, 179.9)) for _ in range(n)]


class TestSexagesimal:
    def test_positive_components(self):
        sx = to_sexagesimal(C(36.5, 5.25))
        assert (sx.lat.degrees, sx.lat.minutes, sx.lat.seconds, sx.lat.hemisphere) == (36, 30, 0.0, "N")
        assert (sx.lng.degrees, sx.lng.minutes, sx.lng.seconds, sx.lng.hemisphere) == (5, 15, 0.0, "E")

    def test_negative_hemispheres(self):
        sx = to_sexagesimal(C(-12.5, -70.75))
        assert sx.lat.hemisphere == "S"
        assert sx.lng.hemisphere == "W"
        assert sx.lat.degrees == 12 and sx.lat.minutes == 30
        assert sx.lng.degrees == 70 and sx.lng.minutes == 45

    def test_zero_is_north_east(self):
        sx = to_sexagesimal(C(0.0, 0.0))
        assert sx.lat.hemisphere == "N"
        assert sx.lng.hemisphere == "E"

    def test_seconds_two_decimals(self):
        sx = to_sexagesimal(C(10.123456, 20.654321))
        assert sx.lat.seconds == round(sx.lat.seconds, 2)
        assert sx.lng.seconds == round(sx.lng.seconds, 2)

    def test_to_decimal_negates_south_west(self):
        sx = SexagesimalCoordinate(
            lat=SexagesimalAxis(degrees=45, minutes=30, seconds=36.0, hemisphere="S"),
            lng=SexagesimalAxis(degrees=9, minutes=6, seconds=0.0, hemisphere="W"),
        )
        c = to_decimal(sx)
        assert c.lat == pytest.approx(-45.51)
        assert c.lng == pytest.approx(-9.1)

    def test_round_trip_within_tolerance(self):
        points = _random_points(500) + [C(0.9999999, -0.9999999), C(89.99999, 179.99999), C(-90, -180)]
        for c in points:
            back = to_decimal(to_sexagesimal(c))
            assert abs(back.lat - c.lat) < 1e-4
            assert abs(back.lng - c.lng) < 1e-4

    @pytest.mark.parametrize(
        "lat_deg,lng_deg",
        [(95, 10), (10, 400), (90, 180.5), (91, 181)],
    )
    def test_to_decimal_out_of_range_rejected(self, lat_deg, lng_deg):
        lng_whole = int(lng_deg)
        sx = SexagesimalCoordinate(
            lat=SexagesimalAxis(degrees=lat_deg, minutes=0, seconds=0, hemisphere="N"),
            lng=SexagesimalAxis(degrees=lng_whole, minutes=int((lng_deg - lng_whole) * 60), seconds=0, hemisphere="E"),
        )
        with pytest.raises(InvalidInput):
            to_decimal(sx)

    def test_to_decimal_accepts_extremes(self):
        sx = SexagesimalCoordinate(
            lat=SexagesimalAxis(degrees=90, minutes=0, seconds=0, hemisphere="S"),
            lng=SexagesimalAxis(degrees=180, minutes=0, seconds=0, hemisphere="W"),
        )
        assert to_decimal(sx) == C(-90.0, -180.0)

    def test_wrong_hemisphere_axis_rejected(self):
        with pytest.raises(ValueError):
            SexagesimalCoordinate(
                lat=SexagesimalAxis(degrees=1, minutes=0, seconds=0, hemisphere="E"),
                lng=SexagesimalAxis(degrees=1, minutes=0, seconds=0, hemisphere="E"),
            )

    def test_format(self):
        assert format_sexagesimal(C(36.0, -5.0)) == "36°00'00.00\"N 005°00'00.00\"W"


class TestDistance:
    def test_one_degree_longitude_at_36n(self):
        assert distance_nm(C(36.0, -5.0), C(36.0, -4.0)) == pytest.approx(48.6, abs=0.1)

    def test_one_degree_latitude_is_sixty_nm(self):
        assert distance_nm(C(10.0, 0.0), C(11.0, 0.0)) == pytest.approx(60.04, abs=0.05)

    def test_zero_distance(self):
        p = C(51.0, -1.0)
        assert distance_nm(p, p) == 0.0

    def test_symmetry(self):
        pts = _random_points(60, seed=7)
        for a, b in zip(pts, pts[1:]):
            assert distance_nm(a, b) == pytest.approx(distance_nm(b, a), rel=1e-12, abs=1e-12)

    def test_antipodal_half_circumference(self):
        d = distance_nm(C(0.0, 0.0), C(0.0, 180.0))
        assert d == pytest.approx(math.pi * EARTH_RADIUS_NM, rel=1e-9)

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidInput):
            distance_nm(C(float("nan"), 0.0), C(0.0, 0.0))


class TestBearing:
    def test_due_east_at_36n(self):
        assert bearing_deg(C(36.0, -5.0), C(36.0, -4.0)) == pytest.approx(90.0, abs=0.5)

    def test_cardinals(self):
        o = C(0.0, 0.0)
        assert bearing_deg(o, C(1.0, 0.0)) == pytest.approx(0.0, abs=1e-9)
        assert bearing_deg(o, C(0.0, 1.0)) == pytest.approx(90.0)
        assert bearing_deg(o, C(-1.0, 0.0)) == pytest.approx(180.0)
        assert bearing_deg(o, C(0.0, -1.0)) == pytest.approx(270.0)

    def test_range(self):
        pts = _random_points(200, seed=3)
        for a, b in zip(pts, pts[1:]):
            brg = bearing_deg(a, b)
            assert 0.0 <= brg < 360.0

    def test_same_point_is_finite(self):
        p = C(40.0, 10.0)
        brg = bearing_deg(p, p)
        assert math.isfinite(brg)
        assert brg == 0.0


class TestProject:
    def test_zero_elapsed_is_origin(self):
        o = C(40.0, 10.0)
        p = project(o, 123.0, 15.0, 0.0)
        assert p.lat == pytest.approx(40.0)
        assert p.lng == pytest.approx(10.0)

    def test_ten_knots_east_for_an_hour_at_40n(self):
        p = project(C(40.0, 10.0), 90.0, 10.0, 1.0)
        # 10 NM / cos(40 deg) = 13.05 arc-minutes of longitude
        assert p.lng == pytest.approx(10.2174, abs=1e-3)
        assert p.lat == pytest.approx(40.0, abs=0.01)

    def test_north_adds_latitude(self):
        p = project(C(0.0, 0.0), 0.0, 60.0, 1.0)
        assert p.lat == pytest.approx(60.0 / EARTH_RADIUS_NM * 180.0 / math.pi)
        assert p.lng == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize("course", [0.0, 45.0, 135.0, 222.5, 300.0, 359.9])
    @pytest.mark.parametrize("hours", [0.5, 3.0, 24.0])
    def test_distance_matches_speed_times_time(self, course, hours):
        origin = C(35.0, 14.0)
        speed = 12.0
        p = project(origin, course, speed, hours)
        assert distance_nm(origin, p) == pytest.approx(speed * hours, rel=1e-6)

    def test_negative_elapsed_rejected(self):
        with pytest.raises(InvalidInput):
            project(C(0.0, 0.0), 90.0, 10.0, -0.1)

    def test_negative_speed_rejected(self):
        with pytest.raises(InvalidInput):
            project(C(0.0, 0.0), 90.0, -1.0, 1.0)

    @pytest.mark.parametrize("course", [-1.0, 360.0, float("inf")])
    def test_course_out_of_range_rejected(self, course):
        with pytest.raises(InvalidInput):
            project(C(0.0, 0.0), course, 10.0, 1.0)


class TestCoordinateValidation:
    @pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.1), (0.0, -181.0)])
    def test_out_of_range(self, lat, lng):
        with pytest.raises(InvalidInput):
            C(lat, lng).validated()

    def test_edges_accepted(self):
        assert C(90.0, -180.0).validated() == C(90.0, -180.0)
