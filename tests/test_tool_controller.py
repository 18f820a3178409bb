"""
Tests for the tool controller state machine
"""

import itertools

import pytest

from playze.map.draw_session import DrawState
from playze.map.geometry import Point
from playze.map.measurement import MeasurementEngine
from playze.map.tool_controller import DEFAULT_ANIMATION_MS, Tool, ToolController


class TestToolController:
    """Tool switching, teardown and one-shot commands."""

    @pytest.fixture(autouse=True)
    def controller(self, sphere_registry, fake_surface):
        self.surface = fake_surface
        self.controller = ToolController(fake_surface, MeasurementEngine(sphere_registry, "SPHERE:EQC"))
        self.changes = []
        self.failures = []
        self.tooltips_added = []
        self.tooltips_removed = []
        self.controller.active_tool_changed.connect(self.changes.append)
        self.controller.tool_failed.connect(lambda tool, message: self.failures.append((tool, message)))
        self.controller.tooltip_added.connect(self.tooltips_added.append)
        self.controller.tooltip_removed.connect(self.tooltips_removed.append)

    def live_tooltips(self):
        removed = {t.id for t in self.tooltips_removed}
        return [t for t in self.tooltips_added if t.id not in removed]

    def test_initial_state(self):
        assert self.controller.active_tool is None
        assert not self.controller.has_draw_session
        assert not self.controller.has_click_listener

    def test_zoom_commands(self):
        assert self.controller.select_tool(Tool.ZOOM_IN)
        self.controller.select_tool(Tool.ZOOM_OUT)
        assert self.surface.calls == [
            ("zoom_by", 1.0, DEFAULT_ANIMATION_MS),
            ("zoom_by", -1.0, DEFAULT_ANIMATION_MS),
        ]
        assert self.controller.active_tool is Tool.ZOOM_OUT

    def test_reset_rotation(self):
        self.controller.select_tool(Tool.RESET_ROTATION)
        assert self.surface.calls == [("rotate_to", 0.0, 250)]

    def test_measure_then_switch_to_area(self):
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        self.surface.click(0.0, 0.0)
        self.surface.click(0.0, 100.0)
        self.surface.double_click(0.0, 100.0)

        first_session = self.controller.draw_session
        assert first_session.state is DrawState.COMMITTED
        assert first_session.last_measurement.label == "100 m"

        self.controller.select_tool(Tool.MEASURE_AREA)
        assert self.controller.draw_session is not first_session
        assert first_session.state is DrawState.IDLE
        assert first_session.tooltips == []
        # Only the new session's tracking label survives
        assert len(self.live_tooltips()) == 1
        assert len(self.controller.measurements) == 0

    def test_measurement_signals_are_forwarded(self):
        committed = []
        self.controller.measurement_committed.connect(committed.append)
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        self.surface.click(0.0, 0.0)
        self.surface.click(0.0, 25.0)
        self.surface.double_click(0.0, 25.0)
        assert committed[0].properties["label"] == "25 m"

    def test_marker_placement(self):
        placed = []
        self.controller.marker_placed.connect(placed.append)
        self.controller.select_tool(Tool.MARKER)
        assert self.controller.has_click_listener

        self.surface.click(10.0, 20.0)
        assert len(placed) == 1
        assert placed[0].geometry == Point((10.0, 20.0))
        assert placed[0].properties["kind"] == "marker"

    def test_marker_listener_removed_on_switch(self):
        self.controller.select_tool(Tool.MARKER)
        self.controller.select_tool(Tool.PAN)
        self.surface.click(1.0, 1.0)
        assert len(self.controller.features) == 0
        assert not self.controller.has_click_listener

    def test_markers_survive_tool_switch(self):
        self.controller.select_tool(Tool.MARKER)
        self.surface.click(1.0, 1.0)
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        assert len(self.controller.features) == 1

    def test_measure_clicks_do_not_place_markers(self):
        self.controller.select_tool(Tool.MARKER)
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        self.surface.click(0.0, 0.0)
        assert len(self.controller.features) == 0
        assert self.controller.draw_session.vertices == [(0.0, 0.0)]

    def test_never_two_resources(self):
        tools = [Tool.MEASURE_DISTANCE, Tool.MARKER, Tool.MEASURE_AREA, Tool.PAN, Tool.ZOOM_IN]
        for sequence in itertools.product(tools, repeat=3):
            for tool in sequence:
                self.controller.select_tool(tool)
                assert not (self.controller.has_draw_session and self.controller.has_click_listener)
            self.controller.cancel_active()

    def test_cancel_active(self):
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        self.surface.click(0.0, 0.0)
        self.controller.cancel_active()

        assert self.controller.active_tool is None
        assert not self.controller.has_draw_session
        assert self.live_tooltips() == []
        assert self.changes == [Tool.MEASURE_DISTANCE, None]

    def test_cancel_active_is_idempotent(self):
        self.controller.select_tool(Tool.MARKER)
        self.controller.cancel_active()
        self.controller.cancel_active()
        assert self.changes == [Tool.MARKER, None]

    def test_cancel_without_tool_changes_nothing(self):
        self.controller.cancel_active()
        assert self.changes == []
        assert self.surface.calls == []

    def test_escape_cancels(self):
        self.controller.select_tool(Tool.MEASURE_AREA)
        assert self.controller.handle_key("Escape")
        assert self.controller.active_tool is None
        assert not self.controller.handle_key("Enter")

    def test_fullscreen(self):
        self.controller.select_tool(Tool.TOGGLE_FULLSCREEN)
        assert self.surface.fullscreen
        assert self.controller.active_tool is Tool.TOGGLE_FULLSCREEN

    def test_fullscreen_denied_keeps_tool(self):
        self.surface.deny_fullscreen = True
        assert self.controller.select_tool(Tool.TOGGLE_FULLSCREEN)
        assert self.controller.active_tool is Tool.TOGGLE_FULLSCREEN
        assert self.failures[0][0] is Tool.TOGGLE_FULLSCREEN

    def test_select_by_id(self):
        assert self.controller.select_tool_by_id("measure-line")
        assert self.controller.active_tool is Tool.MEASURE_DISTANCE
        assert not self.controller.select_tool_by_id("lasso")
        assert self.controller.active_tool is Tool.MEASURE_DISTANCE

    def test_reselecting_same_tool_restarts_session(self):
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        first = self.controller.draw_session
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        assert self.controller.draw_session is not first
        assert self.changes == [Tool.MEASURE_DISTANCE]
        assert len(self.live_tooltips()) == 1

    def test_shutdown(self):
        self.controller.select_tool(Tool.MEASURE_DISTANCE)
        self.surface.click(0.0, 0.0)
        self.surface.click(0.0, 10.0)
        self.surface.double_click(0.0, 10.0)
        self.controller.shutdown()
        assert self.controller.active_tool is None
        assert len(self.controller.measurements) == 0


class TestToolMetadata:
    """Toolbox ids, labels and hints."""

    def test_ids(self):
        assert [tool.value for tool in Tool] == [
            "zoom-in", "zoom-out", "rotate", "fullscreen",
            "measure-line", "measure-area", "drag-pan", "marker",
        ]

    def test_labels_and_hints(self):
        assert all(tool.label for tool in Tool)
        assert "Double-click" in Tool.MEASURE_DISTANCE.hint
        assert Tool.ZOOM_IN.hint == ""
        assert Tool.MEASURE_AREA.is_measurement
        assert not Tool.MARKER.is_measurement
