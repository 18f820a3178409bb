"""
Layer menu panel - collapsible groups with visibility toggles and opacity sliders
"""

import os
os.environ["QT_API"] = "pyside6"

from qtpy.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QSlider, QFrame, QScrollArea
)
from qtpy.QtCore import Qt, Signal
from qtpy.QtGui import QFont, QPixmap
from typing import Dict
from loguru import logger

from ..map.layer_manager import LayerManager
from ..map.layer_types import LayerDescriptor, LayerGroup, LayerKind

VISIBLE_STYLE = """
    QPushButton {
        background-color: #28a745;
        border: 1px solid #20a83a;
        border-radius: 4px;
    }
    QPushButton:hover {
        background-color: #34ce57;
    }
"""

HIDDEN_STYLE = """
    QPushButton {
        background-color: #dc3545;
        border: 1px solid #c82333;
        border-radius: 4px;
    }
    QPushButton:hover {
        background-color: #e85a67;
    }
"""


class LayerItemWidget(QWidget):
    """One layer row: visibility indicator, title and opacity slider"""

    visibility_toggled = Signal(str)  # layer_id
    opacity_changed = Signal(str, float)  # layer_id, opacity

    def __init__(self, layer: LayerDescriptor):
        super().__init__()
        self.layer = layer
        self.setup_ui()

    def setup_ui(self):
        outer = QVBoxLayout()
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        layout = QHBoxLayout()
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(8)

        self.visibility_icon = QPushButton()
        self.visibility_icon.setFixedSize(10, 10)
        self.visibility_icon.setFlat(True)
        self.visibility_icon.clicked.connect(self._toggle_visibility)
        layout.addWidget(self.visibility_icon)

        info_layout = QVBoxLayout()
        info_layout.setSpacing(2)
        self.name_label = QLabel(self.layer.title)
        name_font = QFont()
        name_font.setPointSize(9)
        self.name_label.setFont(name_font)
        info_layout.addWidget(self.name_label)

        details = "Base map" if self.layer.kind is LayerKind.BASE else self.layer.source.source_type.value
        self.details_label = QLabel(details)
        self.details_label.setStyleSheet("color: #999999; font-size: 8px;")
        info_layout.addWidget(self.details_label)
        layout.addLayout(info_layout)
        layout.addStretch()

        self.opacity_slider = QSlider(Qt.Horizontal)
        self.opacity_slider.setRange(0, 100)
        self.opacity_slider.setFixedWidth(80)
        self.opacity_slider.setValue(int(round(self.layer.opacity * 100)))
        self.opacity_slider.valueChanged.connect(
            lambda value: self.opacity_changed.emit(self.layer.id, value / 100.0)
        )
        layout.addWidget(self.opacity_slider)

        self.opacity_label = QLabel()
        self.opacity_label.setStyleSheet("color: #999999; font-size: 8px;")
        self.opacity_label.setFixedWidth(28)
        layout.addWidget(self.opacity_label)

        self.legend_button = QPushButton("👁")
        self.legend_button.setCheckable(True)
        self.legend_button.setFixedSize(22, 22)
        self.legend_button.setFlat(True)
        self.legend_button.setToolTip("Show legend")
        self.legend_button.toggled.connect(self._toggle_legend)
        self.legend_button.setVisible(self.layer.has_legend)
        layout.addWidget(self.legend_button)

        self.legend_label = QLabel()
        self.legend_label.setContentsMargins(26, 0, 8, 6)
        self.legend_label.setVisible(False)
        self._legend_loaded = False

        outer.addLayout(layout)
        outer.addWidget(self.legend_label)
        self.setLayout(outer)
        self.setMinimumHeight(36)
        self.refresh()

    def _toggle_visibility(self):
        # State changes go through the layer manager; refresh() follows its signal
        self.visibility_toggled.emit(self.layer.id)

    def _toggle_legend(self, shown: bool):
        if shown and not self._legend_loaded:
            self._load_legend()
        self.legend_button.setToolTip("Hide legend" if shown else "Show legend")
        self.legend_label.setVisible(shown)

    def _load_legend(self):
        """Fill the legend label from a local image, or link to a remote one"""
        self._legend_loaded = True
        path = self.layer.legend_path
        if path is None:
            url = self.layer.legend_url
            self.legend_label.setText(f'<a href="{url}">Legend</a>')
            self.legend_label.setOpenExternalLinks(True)
            return

        pixmap = QPixmap(path)
        if pixmap.isNull():
            logger.warning(f"Legend for layer '{self.layer.id}' could not be loaded from {path}")
            self.legend_label.setText("Legend unavailable")
            self.legend_label.setStyleSheet("color: #999999; font-size: 8px;")
        else:
            self.legend_label.setPixmap(pixmap)

    def refresh(self):
        """Sync indicator, slider and label with the descriptor"""
        if self.layer.visible:
            self.visibility_icon.setToolTip("Layer is visible - click to hide")
            self.visibility_icon.setStyleSheet(VISIBLE_STYLE)
        else:
            self.visibility_icon.setToolTip("Layer is hidden - click to show")
            self.visibility_icon.setStyleSheet(HIDDEN_STYLE)

        slider_value = int(round(self.layer.opacity * 100))
        if self.opacity_slider.value() != slider_value:
            self.opacity_slider.blockSignals(True)
            self.opacity_slider.setValue(slider_value)
            self.opacity_slider.blockSignals(False)
        self.opacity_label.setText(f"{slider_value}%")


class GroupItemWidget(QFrame):
    """A collapsible group of layer rows"""

    expansion_toggled = Signal(str)  # group_id

    def __init__(self, group: LayerGroup, parent=None):
        super().__init__(parent)
        self.group = group

        self.setFrameShape(QFrame.NoFrame)
        self.setObjectName("groupItem")
        self.setStyleSheet("#groupItem { border-bottom: 1px solid #333; }")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.header_widget = QWidget()
        self.header_widget.setObjectName("groupHeader")
        self.header_widget.setStyleSheet("""
            #groupHeader {
                background-color: #2a2a2a;
                border-bottom: 1px solid #333;
            }
            #groupHeader:hover {
                background-color: #383838;
            }
        """)
        self.header_widget.mousePressEvent = self._on_header_pressed

        header_layout = QHBoxLayout(self.header_widget)
        header_layout.setContentsMargins(8, 6, 8, 6)
        header_layout.setSpacing(6)

        self.arrow_label = QLabel()
        self.arrow_label.setFixedWidth(10)
        title_font = QFont()
        title_font.setBold(True)
        title_font.setPointSize(10)
        self.title_label = QLabel(group.title)
        self.title_label.setFont(title_font)
        self.item_count_label = QLabel(f"({len(group.layers)} layers)")
        self.item_count_label.setStyleSheet("color: #888;")

        header_layout.addWidget(self.arrow_label)
        header_layout.addWidget(self.title_label)
        header_layout.addStretch()
        header_layout.addWidget(self.item_count_label)

        self.layer_container = QWidget()
        self.layer_container_layout = QVBoxLayout(self.layer_container)
        self.layer_container_layout.setContentsMargins(0, 0, 0, 0)
        self.layer_container_layout.setSpacing(1)

        layout.addWidget(self.header_widget)
        layout.addWidget(self.layer_container)
        self.refresh()

    def _on_header_pressed(self, event=None):
        # Only toggle on left-click
        if event and hasattr(event, 'button') and event.button() != Qt.LeftButton:
            return
        self.expansion_toggled.emit(self.group.id)

    def add_layer_item(self, widget: LayerItemWidget):
        self.layer_container_layout.addWidget(widget)

    def refresh(self):
        self.arrow_label.setText("▼" if self.group.expanded else "►")
        self.layer_container.setVisible(self.group.expanded)


class LayerMenuPanel(QWidget):
    """Layer menu bound to a LayerManager

    Signal chain: widget -> layer manager -> (map widget, this panel)
    """

    def __init__(self, layer_manager: LayerManager, parent=None):
        super().__init__(parent)
        self.layer_manager = layer_manager
        self.layer_items: Dict[str, LayerItemWidget] = {}
        self.group_items: Dict[str, GroupItemWidget] = {}
        self.setup_ui()

        self.layer_manager.layer_visibility_changed.connect(self._on_layer_changed)
        self.layer_manager.layer_opacity_changed.connect(self._on_layer_changed)
        self.layer_manager.group_expansion_changed.connect(self._on_group_changed)

    def setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QLabel("Lager")
        header_font = QFont()
        header_font.setBold(True)
        header_font.setPointSize(11)
        header.setFont(header_font)
        header.setContentsMargins(8, 8, 8, 4)
        layout.addWidget(header)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.NoFrame)
        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(0)

        for group in self.layer_manager.groups:
            group_widget = GroupItemWidget(group)
            group_widget.expansion_toggled.connect(self.layer_manager.toggle_group)
            for layer in group.layers:
                item = LayerItemWidget(layer)
                item.visibility_toggled.connect(self.layer_manager.toggle_visibility)
                item.opacity_changed.connect(self.layer_manager.set_opacity)
                group_widget.add_layer_item(item)
                self.layer_items[layer.id] = item
            content_layout.addWidget(group_widget)
            self.group_items[group.id] = group_widget

        content_layout.addStretch()
        scroll.setWidget(content)
        layout.addWidget(scroll)
        logger.debug(f"Layer menu built with {len(self.layer_items)} layers")

    def _on_layer_changed(self, layer_id: str, _value):
        item = self.layer_items.get(layer_id)
        if item is not None:
            item.refresh()

    def _on_group_changed(self, group_id: str, _expanded: bool):
        group_widget = self.group_items.get(group_id)
        if group_widget is not None:
            group_widget.refresh()
