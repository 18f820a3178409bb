"""
Wind turbine planner panel - place turbines and read back the projected economics
"""

import os
os.environ["QT_API"] = "pyside6"

from qtpy.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel, QPushButton, QDoubleSpinBox, QGroupBox
)
from loguru import logger

from ..map.turbines import PlannerSummary, TurbinePlanner


class TurbinePlannerPanel(QWidget):
    """Controls for the TurbinePlanner plus a live summary"""

    def __init__(self, planner: TurbinePlanner, map_widget, parent=None):
        super().__init__(parent)
        self.planner = planner
        self.map_widget = map_widget
        self.setup_ui()
        self.planner.turbines_changed.connect(self.update_summary)
        self.update_summary(self.planner.summary())

    def setup_ui(self):
        layout = QVBoxLayout(self)

        params_group = QGroupBox("Ny turbin")
        params_layout = QFormLayout(params_group)
        self.wind_speed_spin = self._spin(0, 40, 15.0, " m/s")
        self.height_spin = self._spin(50, 300, 200.0, " m")
        self.rotor_spin = self._spin(20, 200, 90.0, " m")
        params_layout.addRow("Vindhastighet", self.wind_speed_spin)
        params_layout.addRow("Navhöjd", self.height_spin)
        params_layout.addRow("Rotordiameter", self.rotor_spin)
        layout.addWidget(params_group)

        buttons = QHBoxLayout()
        self.add_button = QPushButton("Placera i kartans mitt")
        self.add_button.clicked.connect(self._on_add_clicked)
        self.clear_button = QPushButton("Rensa")
        self.clear_button.clicked.connect(self.planner.clear)
        buttons.addWidget(self.add_button)
        buttons.addWidget(self.clear_button)
        layout.addLayout(buttons)

        summary_group = QGroupBox("Sammanfattning")
        summary_layout = QFormLayout(summary_group)
        self.count_label = QLabel()
        self.power_label = QLabel()
        self.production_label = QLabel()
        self.co2_label = QLabel()
        self.jobs_label = QLabel()
        self.revenue_label = QLabel()
        summary_layout.addRow("Turbiner", self.count_label)
        summary_layout.addRow("Effekt", self.power_label)
        summary_layout.addRow("Årsproduktion", self.production_label)
        summary_layout.addRow("CO₂-besparing", self.co2_label)
        summary_layout.addRow("Arbetstillfällen", self.jobs_label)
        summary_layout.addRow("Lokala intäkter", self.revenue_label)
        layout.addWidget(summary_group)
        layout.addStretch()

    def _spin(self, minimum, maximum, value, suffix) -> QDoubleSpinBox:
        spin = QDoubleSpinBox()
        spin.setRange(minimum, maximum)
        spin.setValue(value)
        spin.setSuffix(suffix)
        return spin

    def _on_add_clicked(self):
        self.map_widget.request_center(self._place_at)

    def _place_at(self, center):
        logger.debug(f"Placing turbine at map center {center}")
        self.planner.add_turbine(
            center,
            wind_speed=self.wind_speed_spin.value(),
            height=self.height_spin.value(),
            rotor_diameter=self.rotor_spin.value(),
        )

    def update_summary(self, summary: PlannerSummary):
        self.count_label.setText(str(summary.turbine_count))
        self.power_label.setText(f"{summary.total_power:.1f} MW")
        self.production_label.setText(f"{summary.annual_production:,.0f} MWh")
        self.co2_label.setText(f"{summary.co2_savings:,.0f} ton")
        self.jobs_label.setText(f"{summary.jobs:.1f}")
        self.revenue_label.setText(f"{summary.local_revenue:,.0f} kr")
