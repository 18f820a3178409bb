"""
Location search bar - type a place name, pick a result, fly there
"""

import os
os.environ["QT_API"] = "pyside6"

from qtpy.QtWidgets import QWidget, QVBoxLayout, QLineEdit, QListWidget, QListWidgetItem
from qtpy.QtCore import Qt, Signal
from loguru import logger

from ..map.errors import MapToolError
from ..map.feature_store import FeatureStore
from ..map.projections import ProjectionRegistry
from ..map.search import LocationLookup, go_to_location
from ..map.surface import MapSurface


class LocationSearchBar(QWidget):
    """Search field with a drop-down of matching places"""

    # Signals
    location_selected = Signal(object)  # LocationCandidate
    status_message = Signal(str)

    def __init__(self, lookup: LocationLookup, surface: MapSurface, registry: ProjectionRegistry,
                 display_crs: str, store: FeatureStore, zoom: float = 14,
                 duration_ms: int = 1000, parent=None):
        super().__init__(parent)
        self.lookup = lookup
        self.surface = surface
        self.registry = registry
        self.display_crs = display_crs
        self.store = store
        self.zoom = zoom
        self.duration_ms = duration_ms
        self._search_feature_id = None
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(2)

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Sök plats...")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.returnPressed.connect(self.run_search)
        self.search_edit.textChanged.connect(lambda text: self.results_list.setVisible(False) if not text else None)
        layout.addWidget(self.search_edit)

        self.results_list = QListWidget()
        self.results_list.setMaximumHeight(120)
        self.results_list.setVisible(False)
        self.results_list.itemActivated.connect(self._on_result_activated)
        self.results_list.itemClicked.connect(self._on_result_activated)
        layout.addWidget(self.results_list)

    def run_search(self):
        text = self.search_edit.text()
        results = self.lookup.search(text)
        self.results_list.clear()
        for candidate in results:
            item = QListWidgetItem(candidate.display_name)
            item.setData(Qt.UserRole, candidate)
            self.results_list.addItem(item)
        self.results_list.setVisible(bool(results))
        if not results:
            self.status_message.emit(f"Inga träffar för '{text}'")

    def _on_result_activated(self, item: QListWidgetItem):
        candidate = item.data(Qt.UserRole)
        if candidate is None:
            return
        # Only the latest search result stays marked
        if self._search_feature_id is not None:
            self.store.remove(self._search_feature_id)
            self._search_feature_id = None
        try:
            feature = go_to_location(candidate, self.surface, self.registry, self.display_crs,
                                     self.store, self.zoom, self.duration_ms)
        except MapToolError as e:
            logger.error(f"Could not go to '{candidate.display_name}': {e}")
            self.status_message.emit(str(e))
            return
        if feature is not None:
            self._search_feature_id = feature.id
        self.search_edit.setText(candidate.display_name)
        self.results_list.setVisible(False)
        self.location_selected.emit(candidate)
