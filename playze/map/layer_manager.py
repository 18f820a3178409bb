"""
Layer Manager - the layer composition model the renderer observes
"""

from typing import Dict, Iterator, List, Optional

from PySide6.QtCore import QObject, Signal
from loguru import logger

from .errors import DuplicateLayerId, ResourceNotFound
from .layer_types import LayerDescriptor, LayerGroup, RenderSpec, clamp_opacity


class LayerManager(QObject):
    """Owns the ordered layer groups; visibility and opacity are pure state transitions"""

    # Signals
    layer_visibility_changed = Signal(str, bool)  # layer_id, is_visible
    layer_opacity_changed = Signal(str, float)  # layer_id, opacity
    group_expansion_changed = Signal(str, bool)  # group_id, expanded

    def __init__(self, groups: Optional[List[LayerGroup]] = None, parent=None):
        super().__init__(parent)
        self.groups: List[LayerGroup] = list(groups or [])
        self._index: Dict[str, LayerDescriptor] = {}
        for layer in self.layers():
            if layer.id in self._index:
                raise DuplicateLayerId(f"Layer id '{layer.id}' is declared twice")
            self._index[layer.id] = layer
        logger.debug(f"Layer model holds {len(self._index)} layers in {len(self.groups)} groups")

    def layers(self) -> Iterator[LayerDescriptor]:
        """All layers in declared order"""
        for group in self.groups:
            yield from group.layers

    def visible_layers(self) -> List[LayerDescriptor]:
        return [layer for layer in self.layers() if layer.visible]

    def get_layer(self, layer_id: str) -> Optional[LayerDescriptor]:
        return self._index.get(layer_id)

    def require_layer(self, layer_id: str) -> LayerDescriptor:
        layer = self._index.get(layer_id)
        if layer is None:
            raise ResourceNotFound(f"Layer '{layer_id}' not found")
        return layer

    def get_group(self, group_id: str) -> Optional[LayerGroup]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def toggle_visibility(self, layer_id: str) -> bool:
        """Flip visibility of one layer. Unknown ids are ignored."""
        layer = self._index.get(layer_id)
        if layer is None:
            logger.warning(f"Layer '{layer_id}' not found")
            return False

        layer.visible = not layer.visible
        logger.debug(f"Set layer '{layer_id}' visibility to {layer.visible}")
        self.layer_visibility_changed.emit(layer_id, layer.visible)
        return True

    def set_opacity(self, layer_id: str, opacity: float) -> Optional[float]:
        """Clamp ``opacity`` to [0, 1] and store it. Returns the stored value."""
        layer = self._index.get(layer_id)
        if layer is None:
            logger.warning(f"Layer '{layer_id}' not found")
            return None

        value = clamp_opacity(opacity)
        if layer.opacity != value:
            layer.opacity = value
            logger.debug(f"Set layer '{layer_id}' opacity to {value}")
            self.layer_opacity_changed.emit(layer_id, value)
        return value

    def toggle_group(self, group_id: str) -> bool:
        group = self.get_group(group_id)
        if group is None:
            logger.warning(f"Layer group '{group_id}' not found")
            return False
        group.expanded = not group.expanded
        self.group_expansion_changed.emit(group_id, group.expanded)
        return True

    def render_plan(self, display_crs: str) -> List[RenderSpec]:
        """One RenderSpec per layer in declared order; each vector layer keeps its own source CRS"""
        plan = []
        for layer in self.layers():
            source_crs = layer.source.data_crs if layer.is_vector else None
            plan.append(RenderSpec(layer, source_crs, display_crs))
        return plan
