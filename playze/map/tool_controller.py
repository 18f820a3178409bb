"""
Tool Controller - the single authority on which interactive map tool is active

Selecting a tool always tears down the previous tool's resources (draw session,
floating labels, click subscription) before establishing the new one.
"""

from enum import Enum
from typing import Optional

from PySide6.QtCore import QObject, Signal
from loguru import logger

from .draw_session import DrawSession, MeasureInteraction
from .errors import EnvironmentDenied, MapToolError
from .feature_store import FeatureStore
from .geometry import GeometryType, Point
from .measurement import MeasurementEngine
from .surface import MapSurface, Subscription

DEFAULT_ANIMATION_MS = 250


class Tool(Enum):
    """Mutually exclusive toolbox modes, valued by their toolbox ids"""
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    RESET_ROTATION = "rotate"
    TOGGLE_FULLSCREEN = "fullscreen"
    MEASURE_DISTANCE = "measure-line"
    MEASURE_AREA = "measure-area"
    PAN = "drag-pan"
    MARKER = "marker"

    @property
    def is_measurement(self) -> bool:
        return self in (Tool.MEASURE_DISTANCE, Tool.MEASURE_AREA)

    @property
    def label(self) -> str:
        return TOOL_LABELS[self]

    @property
    def hint(self) -> str:
        return TOOL_HINTS.get(self, "")


TOOL_LABELS = {
    Tool.ZOOM_IN: "Zoom In",
    Tool.ZOOM_OUT: "Zoom Out",
    Tool.RESET_ROTATION: "Reset Rotation",
    Tool.TOGGLE_FULLSCREEN: "Fullscreen",
    Tool.MEASURE_DISTANCE: "Measure Distance",
    Tool.MEASURE_AREA: "Measure Area",
    Tool.PAN: "Pan",
    Tool.MARKER: "Add Marker",
}

TOOL_HINTS = {
    Tool.MEASURE_DISTANCE: "Click to start measuring. Double-click to finish.",
    Tool.MEASURE_AREA: "Click to draw area. Double-click to finish.",
    Tool.MARKER: "Click on the map to place a marker.",
}


class ToolController(QObject):
    """Finite state machine over ``active_tool``"""

    # Signals
    active_tool_changed = Signal(object)  # Tool or None
    tool_failed = Signal(object, str)  # Tool, message
    marker_placed = Signal(object)  # Feature
    measurement_changed = Signal(object, object)  # Measurement, label position
    measurement_committed = Signal(object)  # Feature
    tooltip_added = Signal(object)
    tooltip_updated = Signal(object)
    tooltip_removed = Signal(object)

    def __init__(self, surface: MapSurface, engine: MeasurementEngine,
                 features: Optional[FeatureStore] = None,
                 measurements: Optional[FeatureStore] = None,
                 animation_ms: int = DEFAULT_ANIMATION_MS, zoom_step: float = 1.0,
                 parent=None):
        super().__init__(parent)
        self.surface = surface
        self.engine = engine
        self.features = features if features is not None else FeatureStore("markers")
        self.measurements = measurements if measurements is not None else FeatureStore("measure")
        self.animation_ms = animation_ms
        self.zoom_step = zoom_step

        self.active_tool: Optional[Tool] = None
        self._measure: Optional[MeasureInteraction] = None
        self._click_subscription: Optional[Subscription] = None

    # --- state queries ---------------------------------------------------

    @property
    def has_draw_session(self) -> bool:
        return self._measure is not None

    @property
    def has_click_listener(self) -> bool:
        return self._click_subscription is not None and self._click_subscription.active

    @property
    def draw_session(self) -> Optional[DrawSession]:
        return self._measure.session if self._measure is not None else None

    # --- transitions -----------------------------------------------------

    def select_tool(self, tool: Tool) -> bool:
        """Activate ``tool``. Returns False if it could not be activated."""
        self._teardown()

        try:
            self._dispatch(tool)
        except EnvironmentDenied as e:
            logger.warning(f"{tool.label}: {e}")
            self.tool_failed.emit(tool, str(e))
        except MapToolError as e:
            logger.error(f"Failed to activate {tool.label}: {e}")
            self._teardown()
            self._set_active(None)
            self.tool_failed.emit(tool, str(e))
            return False

        self._set_active(tool)
        return True

    def select_tool_by_id(self, tool_id: str) -> bool:
        try:
            tool = Tool(tool_id)
        except ValueError:
            logger.warning(f"Unknown tool id '{tool_id}'")
            return False
        return self.select_tool(tool)

    def cancel_active(self):
        """Return to the no-tool state. Safe to call at any time."""
        had_tool = self.active_tool is not None
        self._teardown()
        self._set_active(None)
        if had_tool:
            logger.info("Active tool cancelled")

    def handle_key(self, key: str) -> bool:
        if key == "Escape":
            self.cancel_active()
            return True
        return False

    def shutdown(self):
        self.cancel_active()
        self.measurements.clear()

    # --- internals -------------------------------------------------------

    def _dispatch(self, tool: Tool):
        if tool is Tool.ZOOM_IN:
            self.surface.zoom_by(self.zoom_step, self.animation_ms)
        elif tool is Tool.ZOOM_OUT:
            self.surface.zoom_by(-self.zoom_step, self.animation_ms)
        elif tool is Tool.RESET_ROTATION:
            self.surface.rotate_to(0.0, self.animation_ms)
        elif tool is Tool.TOGGLE_FULLSCREEN:
            self.surface.toggle_fullscreen()
        elif tool is Tool.MEASURE_DISTANCE:
            self._start_measuring(GeometryType.LINE_STRING)
        elif tool is Tool.MEASURE_AREA:
            self._start_measuring(GeometryType.POLYGON)
        elif tool is Tool.MARKER:
            self._click_subscription = Subscription(
                self.surface.events.clicked, self._place_marker, "marker-click"
            )
        # Tool.PAN is the baseline mode: nothing to attach

    def _start_measuring(self, mode: GeometryType):
        session = DrawSession(self.engine, self.measurements)
        session.measurement_changed.connect(self.measurement_changed)
        session.geometry_committed.connect(self.measurement_committed)
        session.tooltip_added.connect(self.tooltip_added)
        session.tooltip_updated.connect(self.tooltip_updated)
        session.tooltip_removed.connect(self.tooltip_removed)
        self._measure = MeasureInteraction(session, self.surface.events, mode)

    def _place_marker(self, coord):
        feature = self.features.add(Point((float(coord[0]), float(coord[1]))), kind="marker")
        logger.debug(f"Marker placed at {feature.geometry.coordinate}")
        self.marker_placed.emit(feature)

    def _teardown(self):
        if self._measure is not None:
            measure, self._measure = self._measure, None
            measure.dispose()
        if self._click_subscription is not None:
            subscription, self._click_subscription = self._click_subscription, None
            subscription.cancel()

    def _set_active(self, tool: Optional[Tool]):
        changed = tool is not self.active_tool
        self.active_tool = tool
        if tool is not None:
            logger.info(f"Active tool: {tool.label}")
        if changed:
            self.active_tool_changed.emit(tool)
