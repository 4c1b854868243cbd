from __future__ import annotations

import pytest

from chart_plot.contracts.map_contract import MarkerDescriptor, PolylineDescriptor
from chart_plot.core.geodesy import bearing_deg, distance_nm
from chart_plot.core.measurement import MeasurementPhase, MeasurementSession, measure
from chart_plot.core.models import Coordinate
from chart_plot.render.overlays import MeasurementOverlay

from fakes import FakeSurface

A = Coordinate(lat=36.0, lng=-5.0)
B = Coordinate(lat=36.0, lng=-4.0)


def _completed() -> MeasurementSession:
    s = MeasurementSession()
    s.set_input_mode(True)
    s.select(A)
    s.select(B)
    return s


class TestTransitions:
    def test_starts_empty(self):
        s = MeasurementSession()
        assert s.phase is MeasurementPhase.EMPTY
        assert s.result is None

    def test_select_ignored_when_input_off(self):
        s = MeasurementSession()
        cs = s.select(A)
        assert cs.changed is False
        assert s.phase is MeasurementPhase.EMPTY

    def test_first_point(self):
        s = MeasurementSession()
        s.set_input_mode(True)
        cs = s.select(A)
        assert s.phase is MeasurementPhase.ONE_SELECTED
        assert cs.points == (A,)
        assert cs.line is None
        assert cs.result is None

    def test_second_point_completes_and_exits_input(self):
        s = MeasurementSession()
        s.set_input_mode(True)
        s.select(A)
        cs = s.select(B)
        assert s.phase is MeasurementPhase.COMPLETED
        assert cs.exit_input_mode is True
        assert cs.line == (A, B)
        assert cs.result.distance_nm == distance_nm(A, B)
        assert cs.result.bearing_deg == bearing_deg(A, B)
        assert cs.result.distance_nm == pytest.approx(48.6, abs=0.1)
        assert abs(cs.result.bearing_deg - 90.0) < 0.5
        assert s.snapshot().input_active is False

    def test_third_select_without_edit_is_noop(self):
        s = _completed()
        before = s.result
        cs = s.select(Coordinate(lat=0.0, lng=0.0))
        assert cs.changed is False
        assert s.result == before

    def test_toggle_on_after_completed_starts_fresh(self):
        s = _completed()
        cs = s.set_input_mode(True)
        assert s.phase is MeasurementPhase.EMPTY
        assert cs.points == ()
        assert cs.result is None

    def test_toggle_off_with_one_point_discards_it(self):
        s = MeasurementSession()
        s.set_input_mode(True)
        s.select(A)
        s.set_input_mode(False)
        assert s.phase is MeasurementPhase.EMPTY

    def test_toggle_off_keeps_completed_result(self):
        s = _completed()
        s.set_input_mode(False)
        assert s.phase is MeasurementPhase.COMPLETED

    def test_clear(self):
        s = _completed()
        cs = s.clear()
        assert s.phase is MeasurementPhase.EMPTY
        assert cs.points == ()
        assert cs.line is None

    def test_points_never_exceed_two(self):
        s = _completed()
        s.begin_edit()
        for lng in (-6.0, -3.0, -4.5, -5.5):
            s.select(Coordinate(lat=36.0, lng=lng))
            assert len(s.snapshot().points) == 2


class TestEditMode:
    def test_begin_edit_requires_result(self):
        s = MeasurementSession()
        cs = s.begin_edit()
        assert cs.changed is False
        assert s.snapshot().edit_mode is False

    def test_relocates_nearer_endpoint(self):
        s = _completed()
        s.begin_edit()
        near_b = Coordinate(lat=36.1, lng=-3.9)
        cs = s.select(near_b)
        assert cs.points == (A, near_b)
        assert s.result.end == near_b
        assert s.result.distance_nm == pytest.approx(measure(A, near_b).distance_nm)

    def test_relocates_start(self):
        s = _completed()
        s.begin_edit()
        near_a = Coordinate(lat=35.9, lng=-5.2)
        s.select(near_a)
        assert s.result.start == near_a
        assert s.result.end == B

    def test_tie_moves_start(self):
        s = _completed()
        s.begin_edit()
        midpoint = Coordinate(lat=36.0, lng=-4.5)
        s.select(midpoint)
        assert s.result.start == midpoint
        assert s.result.end == B

    def test_end_edit(self):
        s = _completed()
        s.begin_edit()
        s.end_edit()
        snap = s.snapshot()
        assert snap.edit_mode is False
        assert snap.input_active is False
        assert snap.phase is MeasurementPhase.COMPLETED


class TestOverlay:
    def test_draws_points_line_and_popup(self):
        surface = FakeSurface()
        overlay = MeasurementOverlay(surface)
        s = MeasurementSession()
        s.set_input_mode(True)
        overlay.apply(s.select(A))
        assert len(surface.layers) == 1
        overlay.apply(s.select(B))

        markers = [d for d in surface.layers.values() if isinstance(d, MarkerDescriptor)]
        lines = [h for h, d in surface.layers.items() if isinstance(d, PolylineDescriptor)]
        assert len(markers) == 2
        assert len(lines) == 1
        popup = surface.content[lines[0]]
        assert popup.startswith("Distance: 48.5") or popup.startswith("Distance: 48.6")
        assert "NM<br/>Bearing: " in popup
        assert popup.endswith("°")

    def test_clear_removes_everything(self):
        surface = FakeSurface()
        overlay = MeasurementOverlay(surface)
        s = MeasurementSession()
        s.set_input_mode(True)
        overlay.apply(s.select(A))
        overlay.apply(s.select(B))
        overlay.apply(s.clear())
        assert surface.layers == {}
        assert surface.content == {}

    def test_unchanged_changeset_leaves_surface_alone(self):
        surface = FakeSurface()
        overlay = MeasurementOverlay(surface)
        s = MeasurementSession()
        overlay.apply(s.select(A))
        assert surface.layers == {}
        assert surface.removed == []
