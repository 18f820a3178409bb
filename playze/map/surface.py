"""
Rendering surface contract consumed by the tool controller
"""

import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, Signal
from loguru import logger

Coordinate = Tuple[float, float]


class MapEvents(QObject):
    """Pointer events from the map, coordinates in the display CRS"""

    clicked = Signal(object)  # (x, y)
    double_clicked = Signal(object)  # (x, y)
    pointer_moved = Signal(object)  # (x, y)


class Subscription:
    """Handle for one signal→slot connection. ``cancel`` is idempotent."""

    def __init__(self, signal, slot: Callable, name: str = ""):
        self._signal = signal
        self._slot = slot
        self.name = name
        signal.connect(slot)
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self):
        if not self._active:
            return
        self._active = False
        self._signal.disconnect(self._slot)
        logger.debug(f"Subscription '{self.name}' cancelled")


class ClickClassifier:
    """
    Decides whether a click completes a double click.

    The second click must land within ``interval_ms`` of the first and near it:
    within ``tolerance_px`` screen pixels when both clicks carry a pixel
    position, otherwise within ``tolerance_m`` display-CRS units. A completed
    double click resets the pair, so a third quick click starts over.
    """

    def __init__(self, interval_ms: int = 300, tolerance_px: float = 5.0,
                 tolerance_m: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.interval_ms = interval_ms
        self.tolerance_px = tolerance_px
        self.tolerance_m = tolerance_m
        self.clock = clock
        self._last: Optional[tuple] = None  # (time, coord, pixel)

    def is_double(self, coord: Coordinate, pixel: Optional[Tuple[float, float]] = None) -> bool:
        now = self.clock()
        last, self._last = self._last, (now, coord, pixel)
        if last is None:
            return False

        last_time, last_coord, last_pixel = last
        if (now - last_time) * 1000 > self.interval_ms:
            return False
        if pixel is not None and last_pixel is not None:
            near = math.dist(pixel, last_pixel) <= self.tolerance_px
        else:
            near = math.dist(coord, last_coord) <= self.tolerance_m
        if near:
            self._last = None
        return near


class MapSurface(ABC):
    """Camera commands plus the event source of a rendered map.

    Commands are fire-and-forget: nothing waits on animation completion.
    """

    def __init__(self, click_classifier: Optional[ClickClassifier] = None):
        self.events = MapEvents()
        self.click_classifier = click_classifier if click_classifier is not None else ClickClassifier()

    def report_click(self, coord: Coordinate, pixel: Optional[Tuple[float, float]] = None):
        """Emit a raw click as either a click or a double click"""
        if self.click_classifier.is_double(coord, pixel):
            self.events.double_clicked.emit(coord)
        else:
            self.events.clicked.emit(coord)

    @abstractmethod
    def zoom_by(self, delta: float, duration_ms: int):
        """Animate a relative zoom change"""

    @abstractmethod
    def rotate_to(self, angle: float, duration_ms: int):
        """Animate the view rotation to an absolute angle (radians)"""

    @abstractmethod
    def animate_to(self, center: Coordinate, zoom: float, duration_ms: int):
        """Animate the view to a center (display CRS) and zoom level"""

    @abstractmethod
    def toggle_fullscreen(self) -> bool:
        """Enter or leave fullscreen; returns the new state.

        Raises EnvironmentDenied when the host refuses.
        """
