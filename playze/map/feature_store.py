"""
Feature Store - in-memory vector store for markers and committed measurements
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from PySide6.QtCore import QObject, Signal
from loguru import logger

from .geometry import Geometry


@dataclass
class Feature:
    id: int
    geometry: Geometry
    properties: Dict[str, Any] = field(default_factory=dict)


class FeatureStore(QObject):
    """Holds features in insertion order and announces changes to the renderer"""

    feature_added = Signal(object)  # Feature
    feature_removed = Signal(int)  # feature id
    cleared = Signal()

    def __init__(self, name: str = "features", parent=None):
        super().__init__(parent)
        self.name = name
        self._features: Dict[int, Feature] = {}
        self._next_id = 1

    def add(self, geometry: Geometry, **properties) -> Feature:
        feature = Feature(self._next_id, geometry, dict(properties))
        self._next_id += 1
        self._features[feature.id] = feature
        logger.debug(f"[{self.name}] added {geometry.geometry_type.value} feature {feature.id}")
        self.feature_added.emit(feature)
        return feature

    def remove(self, feature_id: int) -> bool:
        if feature_id not in self._features:
            logger.warning(f"[{self.name}] feature {feature_id} not found")
            return False
        del self._features[feature_id]
        self.feature_removed.emit(feature_id)
        return True

    def clear(self):
        if not self._features:
            return
        self._features.clear()
        logger.debug(f"[{self.name}] cleared")
        self.cleared.emit()

    def get(self, feature_id: int):
        return self._features.get(feature_id)

    def features(self) -> List[Feature]:
        return list(self._features.values())

    def __len__(self) -> int:
        return len(self._features)
