"""
Tests for the draw session state machine and its pointer adapter
"""

import pytest

from playze.map.draw_session import (
    STATIC_OFFSET, DrawSession, DrawState, MeasureInteraction, TooltipStyle
)
from playze.map.errors import DrawStateError
from playze.map.feature_store import FeatureStore
from playze.map.geometry import GeometryType, LineString, Polygon
from playze.map.measurement import MeasurementEngine


class TestDrawSession:
    """Idle -> Drawing -> Committed / Cancelled transitions."""

    @pytest.fixture(autouse=True)
    def session(self, sphere_registry):
        self.store = FeatureStore("measure")
        self.session = DrawSession(MeasurementEngine(sphere_registry, "SPHERE:EQC"), self.store)
        self.measurements = []
        self.committed = []
        self.cancelled = []
        self.removed_tooltips = []
        self.session.measurement_changed.connect(lambda m, pos: self.measurements.append((m, pos)))
        self.session.geometry_committed.connect(self.committed.append)
        self.session.session_cancelled.connect(lambda: self.cancelled.append(True))
        self.session.tooltip_removed.connect(self.removed_tooltips.append)

    def test_initial_state(self):
        assert self.session.state is DrawState.IDLE
        assert not self.session.is_drawing
        assert self.session.tooltips == []

    def test_measure_hundred_metres(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((0.0, 100.0))
        geometry = self.session.finish()

        assert isinstance(geometry, LineString)
        assert self.session.state is DrawState.COMMITTED
        assert self.session.last_measurement.label == "100 m"
        assert len(self.store) == 1
        assert self.committed[0].properties["label"] == "100 m"

    def test_commit_pins_label(self):
        self.session.start(GeometryType.LINE_STRING)
        tracking = self.session.tooltip
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((0.0, 40.0))
        self.session.finish()

        assert tracking.style is TooltipStyle.STATIC
        assert tracking.offset == STATIC_OFFSET
        assert tracking.position == (0.0, 40.0)
        # A fresh tracking label is armed for the next sketch
        assert self.session.tooltip is not tracking
        assert len(self.session.tooltips) == 2

    def test_polygon_commit(self):
        self.session.start(GeometryType.POLYGON)
        for vertex in [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)]:
            self.session.add_vertex(vertex)
        geometry = self.session.finish()

        assert isinstance(geometry, Polygon)
        assert geometry.ring[0] == geometry.ring[-1]
        assert self.session.last_measurement.label == "10000 m²"

    def test_each_vertex_updates_measurement(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((0.0, 30.0))
        assert len(self.measurements) == 2
        measurement, position = self.measurements[-1]
        assert measurement.label == "30 m"
        assert position == (0.0, 30.0)

    def test_pointer_extends_sketch(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.move_pointer((0.0, 10.0))
        assert self.measurements == []

        self.session.add_vertex((0.0, 0.0))
        self.session.move_pointer((0.0, 20.0))
        assert self.session.sketch == [(0.0, 0.0), (0.0, 20.0)]
        assert self.session.vertices == [(0.0, 0.0)]
        assert self.session.last_measurement.label == "20 m"

    def test_start_rejects_point_mode(self):
        with pytest.raises(DrawStateError):
            self.session.start(GeometryType.POINT)

    def test_operations_outside_drawing(self):
        with pytest.raises(DrawStateError):
            self.session.add_vertex((0.0, 0.0))
        with pytest.raises(DrawStateError):
            self.session.finish()

    def test_finish_below_minimum_discards(self):
        self.session.start(GeometryType.POLYGON)
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((10.0, 0.0))

        assert self.session.finish() is None
        assert self.session.state is DrawState.IDLE
        assert len(self.store) == 0
        assert self.committed == []

    def test_cancel(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.add_vertex((0.0, 0.0))
        self.session.cancel()

        assert self.session.state is DrawState.CANCELLED
        assert self.session.vertices == []
        assert self.session.tooltip is None
        assert len(self.cancelled) == 1
        assert len(self.removed_tooltips) == 1

    def test_cancel_is_noop_unless_drawing(self):
        self.session.cancel()
        assert self.session.state is DrawState.IDLE
        assert self.cancelled == []

    def test_restart_discards_committed(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((0.0, 10.0))
        self.session.finish()

        self.session.start(GeometryType.LINE_STRING)
        assert len(self.store) == 0
        assert self.session.committed_geometry is None
        assert len(self.session.tooltips) == 1

    def test_clear_removes_everything(self):
        self.session.start(GeometryType.LINE_STRING)
        self.session.add_vertex((0.0, 0.0))
        self.session.add_vertex((0.0, 10.0))
        self.session.finish()
        self.session.clear()

        assert self.session.state is DrawState.IDLE
        assert self.session.tooltips == []
        assert len(self.store) == 0
        assert len(self.removed_tooltips) == 2


class TestMeasureInteraction:
    """Pointer events feeding a draw session."""

    @pytest.fixture(autouse=True)
    def interaction(self, sphere_registry, fake_surface):
        self.surface = fake_surface
        self.session = DrawSession(MeasurementEngine(sphere_registry, "SPHERE:EQC"))
        self.interaction = MeasureInteraction(self.session, fake_surface.events, GeometryType.LINE_STRING)

    def test_starts_drawing(self):
        assert self.session.is_drawing
        assert self.interaction.active

    def test_click_and_double_click(self):
        self.surface.click(0.0, 0.0)
        self.surface.move(0.0, 50.0)
        self.surface.click(0.0, 100.0)
        self.surface.double_click(0.0, 100.0)

        assert self.session.state is DrawState.COMMITTED
        assert self.session.last_measurement.label == "100 m"

    def test_click_after_commit_starts_new_sketch(self):
        self.surface.click(0.0, 0.0)
        self.surface.click(0.0, 10.0)
        self.surface.double_click(0.0, 10.0)
        self.surface.click(5.0, 5.0)

        assert self.session.is_drawing
        assert self.session.vertices == [(5.0, 5.0)]

    def test_dispose_detaches(self):
        self.interaction.dispose()
        assert not self.interaction.active
        self.surface.click(0.0, 0.0)
        assert self.session.vertices == []
        assert self.session.state is DrawState.IDLE

    def test_cancel_detaches_listeners(self):
        self.surface.click(0.0, 0.0)
        self.session.cancel()
        self.surface.click(0.0, 50.0)
        self.surface.double_click(0.0, 50.0)

        assert self.session.state is DrawState.CANCELLED
        assert self.session.vertices == []
        assert not self.interaction.active

    def test_cancel_then_dispose(self):
        self.session.cancel()
        self.session.cancel()
        self.interaction.dispose()
        assert self.session.state is DrawState.IDLE

    def test_restart_while_drawing_keeps_listeners(self):
        cancelled = []
        self.session.session_cancelled.connect(lambda: cancelled.append(True))
        self.surface.click(0.0, 0.0)
        self.session.start(GeometryType.LINE_STRING)
        self.surface.click(0.0, 10.0)

        assert cancelled == []
        assert self.interaction.active
        assert self.session.vertices == [(0.0, 10.0)]
