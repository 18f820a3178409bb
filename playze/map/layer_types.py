"""
Data structures for the map layer composition model
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union
from urllib.parse import unquote, urlparse


class LayerKind(Enum):
    """Role of a layer in the composition"""
    BASE = "base"
    OVERLAY = "overlay"


class SourceType(Enum):
    """Kinds of layer source"""
    OSM = "OSM"
    XYZ = "XYZ"
    GEOJSON = "GeoJSON"
    WMS = "WMS"


@dataclass(frozen=True)
class TileServiceSource:
    """Well-known tile service (OpenStreetMap)"""
    service: str = "OSM"
    url: str = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
    attribution: str = "© OpenStreetMap contributors"
    source_type = SourceType.OSM


@dataclass(frozen=True)
class XYZSource:
    """Tiled imagery from a URL template"""
    url: str
    attribution: Optional[str] = None
    source_type = SourceType.XYZ


@dataclass(frozen=True)
class VectorSource:
    """GeoJSON features with the CRS they were authored in"""
    url: str
    data_crs: str
    color: str = "#ff0000"  # stroke; the fill is the same colour at 20% opacity
    source_type = SourceType.GEOJSON


@dataclass(frozen=True)
class WMSSource:
    """Parameterized map-service request"""
    url: str
    params: Dict[str, Union[str, bool]] = field(default_factory=dict)
    cross_origin: str = "anonymous"
    source_type = SourceType.WMS


LayerSource = Union[TileServiceSource, XYZSource, VectorSource, WMSSource]


def clamp_opacity(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass
class LayerDescriptor:
    """One renderable layer and its visual state"""
    id: str
    title: str
    kind: LayerKind
    source: LayerSource
    visible: bool = True
    opacity: float = 1.0
    legend_url: Optional[str] = None

    def __post_init__(self):
        self.opacity = clamp_opacity(self.opacity)

    @property
    def is_vector(self) -> bool:
        return isinstance(self.source, VectorSource)

    @property
    def has_legend(self) -> bool:
        return bool(self.legend_url)

    @property
    def legend_path(self) -> Optional[str]:
        """Local file behind the legend, or None for remote legends"""
        if not self.legend_url:
            return None
        parsed = urlparse(self.legend_url)
        if parsed.scheme == "file":
            return unquote(parsed.path)
        if parsed.scheme in ("http", "https"):
            return None
        return self.legend_url


@dataclass
class LayerGroup:
    """Ordered group of layers as shown in the layer menu"""
    id: str
    title: str
    layers: List[LayerDescriptor] = field(default_factory=list)
    expanded: bool = True


@dataclass(frozen=True)
class RenderSpec:
    """How the renderer must materialize one layer"""
    layer: LayerDescriptor
    source_crs: Optional[str]  # None for tiled sources rendered natively
    target_crs: str
