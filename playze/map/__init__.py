# Map interaction core

from .errors import (
    MapToolError, UnknownProjection, ProjectionDefinitionError, RegistryFrozen,
    InvalidGeometry, DrawStateError, EnvironmentDenied, ResourceNotFound, DuplicateLayerId
)
from .projections import ProjectionRegistry, build_registry, default_registry
from .geometry import GeometryType, Point, LineString, Polygon
from .measurement import Measurement, MeasurementEngine, format_length, format_area
from .feature_store import Feature, FeatureStore
from .surface import ClickClassifier, MapEvents, MapSurface, Subscription
from .draw_session import DrawSession, DrawState, MeasureInteraction, MeasureTooltip, TooltipStyle
from .tool_controller import Tool, ToolController
from .layer_types import (
    LayerDescriptor, LayerGroup, LayerKind, TileServiceSource, XYZSource, VectorSource, WMSSource
)
from .layer_manager import LayerManager
from .animation import AnimationTask
from .search import GazetteerLookup, LocationCandidate, go_to_location
from .turbines import Turbine, TurbinePlanner

__all__ = [
    'MapToolError', 'UnknownProjection', 'ProjectionDefinitionError', 'RegistryFrozen',
    'InvalidGeometry', 'DrawStateError', 'EnvironmentDenied', 'ResourceNotFound',
    'DuplicateLayerId',
    'ProjectionRegistry', 'build_registry', 'default_registry',
    'GeometryType', 'Point', 'LineString', 'Polygon',
    'Measurement', 'MeasurementEngine', 'format_length', 'format_area',
    'Feature', 'FeatureStore',
    'ClickClassifier', 'MapEvents', 'MapSurface', 'Subscription',
    'DrawSession', 'DrawState', 'MeasureInteraction', 'MeasureTooltip', 'TooltipStyle',
    'Tool', 'ToolController',
    'LayerDescriptor', 'LayerGroup', 'LayerKind', 'TileServiceSource', 'XYZSource',
    'VectorSource', 'WMSSource',
    'LayerManager',
    'AnimationTask',
    'GazetteerLookup', 'LocationCandidate', 'go_to_location',
    'Turbine', 'TurbinePlanner',
]
