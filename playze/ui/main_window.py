"""
Main Application Window for Playze Map Tools
"""

import os
# Ensure consistent Qt binding
os.environ["QT_API"] = "pyside6"

from qtpy.QtWidgets import QMainWindow, QDockWidget, QToolBar, QStatusBar, QLabel
from qtpy.QtCore import Qt, QSettings, QTimer
from loguru import logger

from ..config import (
    GAZETTEER, SETTINGS_APPLICATION, SETTINGS_ORGANIZATION, default_layer_groups, load_map_config
)
from ..map.layer_manager import LayerManager
from ..map.projections import default_registry
from ..map.search import GazetteerLookup
from ..map.turbines import TurbinePlanner
from .layer_panel import LayerMenuPanel
from .map_widget import PlayzeMapWidget
from .search_bar import LocationSearchBar
from .turbine_panel import TurbinePlannerPanel


class MainWindow(QMainWindow):
    """Map window with the layer menu, search bar and turbine planner"""

    def __init__(self):
        super().__init__()
        self.settings = QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)
        self.config = load_map_config(self.settings)
        self.registry = default_registry()
        self.layer_manager = LayerManager(default_layer_groups(), parent=self)
        self.planner = TurbinePlanner(interval_ms=50, parent=self)

        self.setup_ui()
        self.setup_toolbars()
        self.setup_docks()
        self.setup_statusbar()
        self.setup_connections()

        if not self.restore_state():
            logger.info("No saved state found, using default window layout.")

        logger.info("Playze Map Tools initialized")

    def setup_ui(self):
        """Initialize the main UI structure"""
        self.setWindowTitle("Playze Map Tools")
        self.setGeometry(50, 50, 1400, 900)

        self.map_widget = PlayzeMapWidget(self.config, self.registry, self.layer_manager, self.planner)
        self.setCentralWidget(self.map_widget)

    def setup_toolbars(self):
        search_toolbar = QToolBar("Search")
        search_toolbar.setObjectName("SearchToolbar")
        self.search_bar = LocationSearchBar(
            GazetteerLookup(GAZETTEER), self.map_widget.surface, self.registry,
            self.config.display_crs, self.map_widget.markers,
            zoom=self.config.tools.search_zoom, duration_ms=self.config.tools.search_animation_ms,
        )
        self.search_bar.setFixedWidth(320)
        search_toolbar.addWidget(self.search_bar)
        self.addToolBar(Qt.TopToolBarArea, search_toolbar)

    def setup_docks(self):
        """Create dockable panels"""
        self.layers_dock = QDockWidget("Layers", self)
        self.layers_dock.setObjectName("LayerMenuDock")
        self.layers_panel = LayerMenuPanel(self.layer_manager)
        self.layers_dock.setWidget(self.layers_panel)
        self.addDockWidget(Qt.RightDockWidgetArea, self.layers_dock)

        self.turbine_dock = QDockWidget("Vindkraft", self)
        self.turbine_dock.setObjectName("TurbinePlannerDock")
        self.turbine_panel = TurbinePlannerPanel(self.planner, self.map_widget)
        self.turbine_dock.setWidget(self.turbine_panel)
        self.addDockWidget(Qt.LeftDockWidgetArea, self.turbine_dock)

    def setup_statusbar(self):
        """Create the status bar"""
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self.status_label = QLabel("Ready")
        self.status_bar.addWidget(self.status_label)

        self.tool_label = QLabel("No active tool")
        self.status_bar.addPermanentWidget(self.tool_label)

        self.crs_label = QLabel(self.config.display_crs)
        self.status_bar.addPermanentWidget(self.crs_label)

    def setup_connections(self):
        self.map_widget.status_message.connect(self.show_message)
        self.search_bar.status_message.connect(self.show_message)
        self.map_widget.controller.active_tool_changed.connect(
            lambda tool: self.tool_label.setText(tool.label if tool is not None else "No active tool")
        )
        self.map_widget.controller.measurement_changed.connect(
            lambda measurement, _position: self.status_label.setText(measurement.label)
        )

    def show_message(self, message: str):
        self.status_label.setText(message)
        QTimer.singleShot(5000, lambda: self.status_label.setText("Ready"))

    def restore_state(self):
        """Restore window state from settings. Returns True if state was restored."""
        geometry = self.settings.value("geometry")
        state = self.settings.value("windowState")

        if geometry and state:
            self.restoreGeometry(geometry)
            self.restoreState(state)
            logger.info("Restored window layout from settings.")
            return True

        return False

    def closeEvent(self, event):
        """Stop tools and animations, save state before closing"""
        self.map_widget.shutdown()

        self.settings.setValue("geometry", self.saveGeometry())
        self.settings.setValue("windowState", self.saveState())
        event.accept()
