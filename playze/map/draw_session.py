"""
Draw Session - capture of a line or polygon from discrete vertex clicks

The session is a pure state machine over geometry; it knows nothing about the
renderer. MeasureInteraction is the thin adapter that feeds map events into it.
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from PySide6.QtCore import QObject, Signal
from loguru import logger

from .errors import DrawStateError, InvalidGeometry
from .feature_store import FeatureStore
from .geometry import Coordinate, Geometry, GeometryType, build_geometry
from .measurement import Measurement, MeasurementEngine, label_position
from .surface import MapEvents, Subscription

TRACKING_OFFSET = (0, -15)
STATIC_OFFSET = (0, -7)

_tooltip_ids = itertools.count(1)


class DrawState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class TooltipStyle(Enum):
    MEASURE = "measure"  # follows the sketch
    STATIC = "static"  # pinned to a committed geometry


@dataclass
class MeasureTooltip:
    """Floating measurement label"""
    id: int
    text: str = ""
    position: Optional[Coordinate] = None
    style: TooltipStyle = TooltipStyle.MEASURE
    offset: Tuple[int, int] = TRACKING_OFFSET


class DrawSession(QObject):
    """Idle -> Drawing -> Committed, with Cancelled reachable from Drawing"""

    measurement_changed = Signal(object, object)  # Measurement, label position
    geometry_committed = Signal(object)  # Feature
    session_cancelled = Signal()
    tooltip_added = Signal(object)  # MeasureTooltip
    tooltip_updated = Signal(object)  # MeasureTooltip
    tooltip_removed = Signal(object)  # MeasureTooltip

    def __init__(self, engine: MeasurementEngine, store: Optional[FeatureStore] = None, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.store = store if store is not None else FeatureStore("measure")
        self.mode: Optional[GeometryType] = None
        self.state = DrawState.IDLE
        self.last_measurement: Optional[Measurement] = None
        self.committed_geometry: Optional[Geometry] = None

        self._vertices: List[Coordinate] = []
        self._pointer: Optional[Coordinate] = None
        self._tooltip: Optional[MeasureTooltip] = None
        self._static_tooltip: Optional[MeasureTooltip] = None
        self._committed_feature_id: Optional[int] = None

    # --- state queries ---------------------------------------------------

    @property
    def is_drawing(self) -> bool:
        return self.state is DrawState.DRAWING

    @property
    def vertices(self) -> List[Coordinate]:
        return list(self._vertices)

    @property
    def sketch(self) -> List[Coordinate]:
        """In-progress vertices plus the trailing pointer position, if any"""
        if self._pointer is not None:
            return self._vertices + [self._pointer]
        return list(self._vertices)

    @property
    def tooltip(self) -> Optional[MeasureTooltip]:
        return self._tooltip

    @property
    def tooltips(self) -> List[MeasureTooltip]:
        return [t for t in (self._static_tooltip, self._tooltip) if t is not None]

    # --- transitions -----------------------------------------------------

    def start(self, mode: GeometryType):
        if mode not in (GeometryType.LINE_STRING, GeometryType.POLYGON):
            raise DrawStateError(f"Cannot draw {mode.value} geometries")
        if self.state is DrawState.DRAWING:
            self._drop_sketch()

        self._discard_committed()
        self.mode = mode
        self._vertices = []
        self._pointer = None
        self.last_measurement = None
        if self._tooltip is None:
            self._arm_tooltip()
        self.state = DrawState.DRAWING
        logger.debug(f"Draw session started ({mode.value})")

    def add_vertex(self, coord: Coordinate):
        if self.state is not DrawState.DRAWING:
            raise DrawStateError(f"Cannot add a vertex while {self.state.value}")
        self._vertices.append((float(coord[0]), float(coord[1])))
        self._pointer = None
        self._update_measurement()

    def move_pointer(self, coord: Coordinate):
        if self.state is not DrawState.DRAWING or not self._vertices:
            return
        self._pointer = (float(coord[0]), float(coord[1]))
        self._update_measurement()

    def finish(self) -> Optional[Geometry]:
        """Commit the sketch. Returns None if it had too few vertices to form a geometry."""
        if self.state is not DrawState.DRAWING:
            raise DrawStateError(f"Cannot finish while {self.state.value}")
        self._pointer = None

        try:
            geometry = build_geometry(self.mode, self._vertices)
        except InvalidGeometry as e:
            logger.debug(f"Discarding sketch: {e}")
            self._vertices = []
            self.last_measurement = self.engine.measure(self.mode, [])
            self._reset_tooltip()
            self.state = DrawState.IDLE
            return None

        measurement = self.engine.measure(self.mode, geometry.coordinates)
        feature = self.store.add(geometry, kind="measurement", label=measurement.label)

        tooltip = self._tooltip
        tooltip.text = measurement.label
        tooltip.position = label_position(self.mode, geometry.coordinates)
        tooltip.style = TooltipStyle.STATIC
        tooltip.offset = STATIC_OFFSET
        self.tooltip_updated.emit(tooltip)

        self._static_tooltip = tooltip
        self._committed_feature_id = feature.id
        self._tooltip = None
        self._arm_tooltip()

        self.committed_geometry = geometry
        self.last_measurement = measurement
        self._vertices = []
        self.state = DrawState.COMMITTED
        logger.info(f"Measured {self.mode.value}: {measurement.label}")
        self.geometry_committed.emit(feature)
        return geometry

    def cancel(self):
        """
        Drop the sketch in progress and end the session. No-op unless drawing.

        Cancelled is terminal for whoever feeds the session: session_cancelled
        tells bound interactions to release their listeners.
        """
        if self.state is not DrawState.DRAWING:
            return
        self._drop_sketch()
        self.state = DrawState.CANCELLED
        logger.debug("Draw session cancelled")
        self.session_cancelled.emit()

    def clear(self):
        """Total teardown: sketch, every label and the committed geometry"""
        self.cancel()
        self._discard_committed()
        self._remove_tooltip(self._tooltip)
        self._tooltip = None
        self.store.clear()
        self.committed_geometry = None
        self.state = DrawState.IDLE

    # --- internals -------------------------------------------------------

    def _drop_sketch(self):
        self._vertices = []
        self._pointer = None
        self._remove_tooltip(self._tooltip)
        self._tooltip = None

    def _update_measurement(self):
        coords = self.sketch
        measurement = self.engine.measure(self.mode, coords)
        position = label_position(self.mode, coords)
        self.last_measurement = measurement
        if self._tooltip is not None:
            self._tooltip.text = measurement.label
            self._tooltip.position = position
            self.tooltip_updated.emit(self._tooltip)
        self.measurement_changed.emit(measurement, position)

    def _arm_tooltip(self):
        self._tooltip = MeasureTooltip(next(_tooltip_ids))
        self.tooltip_added.emit(self._tooltip)

    def _reset_tooltip(self):
        if self._tooltip is not None:
            self._tooltip.text = ""
            self._tooltip.position = None
            self.tooltip_updated.emit(self._tooltip)

    def _remove_tooltip(self, tooltip: Optional[MeasureTooltip]):
        if tooltip is not None:
            self.tooltip_removed.emit(tooltip)

    def _discard_committed(self):
        if self._committed_feature_id is not None:
            self.store.remove(self._committed_feature_id)
            self._committed_feature_id = None
        self._remove_tooltip(self._static_tooltip)
        self._static_tooltip = None
        self.committed_geometry = None


class MeasureInteraction:
    """Binds a DrawSession to map pointer events for one measurement tool"""

    def __init__(self, session: DrawSession, events: MapEvents, mode: GeometryType):
        self.session = session
        self.mode = mode
        self._subscriptions = [
            Subscription(events.clicked, self._on_click, "measure-click"),
            Subscription(events.double_clicked, self._on_double_click, "measure-finish"),
            Subscription(events.pointer_moved, self._on_pointer_moved, "measure-pointer"),
        ]
        self._cancelled = Subscription(session.session_cancelled, self._detach, "measure-cancelled")
        session.start(mode)

    @property
    def active(self) -> bool:
        return any(s.active for s in self._subscriptions)

    def _detach(self):
        for subscription in self._subscriptions:
            subscription.cancel()
        self._cancelled.cancel()
        logger.debug(f"Measure interaction detached ({self.mode.value})")

    def _on_click(self, coord):
        if not self.session.is_drawing:
            self.session.start(self.mode)
        self.session.add_vertex(coord)

    def _on_double_click(self, coord):
        if self.session.is_drawing:
            self.session.finish()

    def _on_pointer_moved(self, coord):
        self.session.move_pointer(coord)

    def dispose(self):
        self._detach()
        self.session.clear()
