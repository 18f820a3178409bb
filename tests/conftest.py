"""
Shared fixtures: a Qt application for signals/timers and a recording map surface
"""

import sys
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

# Add the parent directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from playze.map.errors import EnvironmentDenied
from playze.map.projections import build_registry
from playze.map.surface import MapSurface

# Sphere-based systems: 1 unit north in SPHERE:EQC is exactly 1 m of great-circle arc
SPHERE_DEFINITIONS = {
    "EPSG:4326": "+proj=longlat +R=6371008.8 +no_defs",
    "SPHERE:EQC": "+proj=eqc +R=6371008.8 +units=m +no_defs",
}


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeSurface(MapSurface):
    """Records every camera command instead of animating anything"""

    def __init__(self, deny_fullscreen: bool = False):
        super().__init__()
        self.deny_fullscreen = deny_fullscreen
        self.fullscreen = False
        self.calls = []

    def zoom_by(self, delta, duration_ms):
        self.calls.append(("zoom_by", delta, duration_ms))

    def rotate_to(self, angle, duration_ms):
        self.calls.append(("rotate_to", angle, duration_ms))

    def animate_to(self, center, zoom, duration_ms):
        self.calls.append(("animate_to", center, zoom, duration_ms))

    def toggle_fullscreen(self):
        if self.deny_fullscreen:
            raise EnvironmentDenied("Fullscreen request was rejected")
        self.fullscreen = not self.fullscreen
        self.calls.append(("toggle_fullscreen", self.fullscreen))
        return self.fullscreen

    # Pointer helpers
    def click(self, x, y):
        self.events.clicked.emit((x, y))

    def double_click(self, x, y):
        self.events.double_clicked.emit((x, y))

    def move(self, x, y):
        self.events.pointer_moved.emit((x, y))


@pytest.fixture
def sphere_registry():
    return build_registry(SPHERE_DEFINITIONS)


@pytest.fixture
def fake_surface():
    return FakeSurface()
