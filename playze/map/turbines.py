"""
Wind turbine planner - placed turbines, rough economics and the blade animation
"""

import itertools
import math
from dataclasses import dataclass
from typing import Dict, List

from PySide6.QtCore import QObject, Signal
from loguru import logger

from .animation import AnimationTask
from .geometry import Coordinate

HOURS_PER_YEAR = 8760
CAPACITY_FACTOR = 0.35
CO2_TONNES_PER_MWH = 0.5
JOBS_PER_MW = 0.3 * 2.5
LOCAL_REVENUE_PER_TURBINE = 150000
BLADE_COUNT = 3


@dataclass
class Turbine:
    id: int
    coordinate: Coordinate
    wind_speed: float = 15.0        # m/s
    height: float = 200.0           # m
    rotor_diameter: float = 90.0    # m
    blade_angle: float = 0.0        # degrees
    air_density: float = 1.225      # kg/m³
    efficiency: float = 0.4


def calculate_power(turbine: Turbine) -> float:
    """Rated output in MW"""
    swept_area = math.pi * (turbine.rotor_diameter / 2) ** 2
    return (0.5 * turbine.air_density * swept_area * turbine.wind_speed ** 3
            * turbine.efficiency * (1 - turbine.blade_angle / 15) / 1000000)


@dataclass(frozen=True)
class PlannerSummary:
    turbine_count: int
    total_power: float          # MW
    annual_production: float    # MWh
    co2_savings: float          # tonnes
    jobs: float
    local_revenue: float


def summarize(turbines: List[Turbine]) -> PlannerSummary:
    total = sum(calculate_power(t) for t in turbines)
    annual = total * HOURS_PER_YEAR * CAPACITY_FACTOR
    return PlannerSummary(
        turbine_count=len(turbines),
        total_power=total,
        annual_production=annual,
        co2_savings=annual * CO2_TONNES_PER_MWH,
        jobs=total * JOBS_PER_MW,
        local_revenue=len(turbines) * LOCAL_REVENUE_PER_TURBINE,
    )


def blade_rotation(elapsed_ms: float) -> float:
    """Rotor angle in radians: one radian every two seconds"""
    return elapsed_ms / 2000.0


def blade_angles(rotation: float) -> List[float]:
    return [rotation + i * 2 * math.pi / BLADE_COUNT for i in range(BLADE_COUNT)]


class TurbinePlanner(QObject):
    """Turbine placements plus the rotating-blade animation they own"""

    turbine_added = Signal(object)  # Turbine
    turbine_removed = Signal(int)
    turbines_changed = Signal(object)  # PlannerSummary
    frame = Signal(float)  # rotor rotation in radians

    def __init__(self, interval_ms: int = 16, parent=None):
        super().__init__(parent)
        self._turbines: Dict[int, Turbine] = {}
        self._ids = itertools.count(1)
        self.rotation = 0.0
        self.animation = AnimationTask(self._advance, interval_ms, "turbine-blades", self)

    @property
    def turbines(self) -> List[Turbine]:
        return list(self._turbines.values())

    def add_turbine(self, coordinate: Coordinate, **overrides) -> Turbine:
        turbine = Turbine(next(self._ids), (float(coordinate[0]), float(coordinate[1])), **overrides)
        self._turbines[turbine.id] = turbine
        logger.info(f"Turbine {turbine.id} placed, {calculate_power(turbine):.2f} MW")
        self.turbine_added.emit(turbine)
        self.turbines_changed.emit(self.summary())
        return turbine

    def remove_turbine(self, turbine_id: int) -> bool:
        if self._turbines.pop(turbine_id, None) is None:
            logger.warning(f"Turbine {turbine_id} not found")
            return False
        self.turbine_removed.emit(turbine_id)
        self.turbines_changed.emit(self.summary())
        return True

    def clear(self):
        for turbine_id in list(self._turbines):
            self.remove_turbine(turbine_id)

    def summary(self) -> PlannerSummary:
        return summarize(self.turbines)

    def attach(self):
        """Start animating the blades"""
        self.animation.start()

    def detach(self):
        """Stop the animation; nothing keeps running after this"""
        self.animation.stop()

    def _advance(self, elapsed_ms: int):
        self.rotation = blade_rotation(elapsed_ms)
        if self._turbines:
            self.frame.emit(self.rotation)
