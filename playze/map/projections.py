"""
Projection Registry - named coordinate reference systems and transforms between them
"""

from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError

from .errors import ProjectionDefinitionError, RegistryFrozen, UnknownProjection

Coordinate = Tuple[float, float]

GEOGRAPHIC_CRS = "EPSG:4326"
WEB_MERCATOR_CRS = "EPSG:3857"
DISPLAY_CRS = "EPSG:5857"
UTM33_CRS = "EPSG:3006"

# Definitions registered at startup. The two local systems carry explicit PROJ
# strings so the vector data authored in them resolves identically everywhere.
DEFAULT_DEFINITIONS = {
    GEOGRAPHIC_CRS: "EPSG:4326",
    WEB_MERCATOR_CRS: "EPSG:3857",
    DISPLAY_CRS: (
        "+proj=tmerc +lat_0=0 +lon_0=23.25 +k=1 +x_0=150000 +y_0=0 "
        "+ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
    ),
    UTM33_CRS: "+proj=utm +zone=33 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs",
}


class ProjectionRegistry:
    """Registry of named CRS definitions with forward/inverse transforms"""

    def __init__(self):
        self._definitions: Dict[str, str] = {}
        self._crs: Dict[str, CRS] = {}
        self._transformers: Dict[Tuple[str, str], Transformer] = {}
        self._frozen = False

    def register(self, code: str, definition: str) -> None:
        """Register a CRS under ``code``. Re-registering replaces the definition."""
        if self._frozen:
            raise RegistryFrozen(f"Cannot register '{code}': registry is frozen")

        try:
            crs = CRS.from_user_input(definition)
        except CRSError as e:
            raise ProjectionDefinitionError(f"Invalid definition for '{code}': {e}") from e

        self._definitions[code] = definition
        self._crs[code] = crs
        # Drop cached transformers touching a replaced code
        self._transformers = {
            pair: t for pair, t in self._transformers.items() if code not in pair
        }
        logger.debug(f"Registered projection '{code}' ({crs.name})")

    def freeze(self) -> None:
        """Make the registry read-only"""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def is_registered(self, code: str) -> bool:
        return code in self._crs

    def codes(self) -> List[str]:
        return list(self._crs.keys())

    def definition(self, code: str) -> str:
        self._require(code)
        return self._definitions[code]

    def crs(self, code: str) -> CRS:
        self._require(code)
        return self._crs[code]

    def transform(self, coord: Coordinate, from_code: str, to_code: str) -> Coordinate:
        """Transform a single (x, y) coordinate between two registered systems"""
        self._require(from_code)
        self._require(to_code)
        if from_code == to_code:
            return (float(coord[0]), float(coord[1]))

        x, y = self._transformer(from_code, to_code).transform(coord[0], coord[1])
        return (float(x), float(y))

    def transform_many(self, coords: Iterable[Coordinate], from_code: str,
                       to_code: str) -> List[Coordinate]:
        """Transform a sequence of coordinates, preserving order"""
        self._require(from_code)
        self._require(to_code)
        coords = list(coords)
        if from_code == to_code or not coords:
            return [(float(x), float(y)) for x, y in coords]

        xs, ys = zip(*coords)
        out_x, out_y = self._transformer(from_code, to_code).transform(list(xs), list(ys))
        return [(float(x), float(y)) for x, y in zip(out_x, out_y)]

    def _transformer(self, from_code: str, to_code: str) -> Transformer:
        key = (from_code, to_code)
        transformer = self._transformers.get(key)
        if transformer is None:
            transformer = Transformer.from_crs(
                self._crs[from_code], self._crs[to_code], always_xy=True
            )
            self._transformers[key] = transformer
        return transformer

    def _require(self, code: str) -> None:
        if code not in self._crs:
            raise UnknownProjection(code)


_default_registry: Optional[ProjectionRegistry] = None


def build_registry(definitions: Optional[Dict[str, str]] = None, freeze: bool = True) -> ProjectionRegistry:
    """Create a registry populated with ``definitions`` (defaults to the built-in set)"""
    registry = ProjectionRegistry()
    for code, definition in (definitions or DEFAULT_DEFINITIONS).items():
        registry.register(code, definition)
    if freeze:
        registry.freeze()
    return registry


def default_registry() -> ProjectionRegistry:
    """Process-wide registry, populated once on first use and read-only afterwards"""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry()
        logger.info(f"Projection registry ready: {', '.join(_default_registry.codes())}")
    return _default_registry
