"""
Geometry value types produced by the drawing and marker tools
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union

from .errors import InvalidGeometry

Coordinate = Tuple[float, float]


class GeometryType(Enum):
    """Geometry kinds that can be drawn on the map"""
    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"

    @property
    def min_vertices(self) -> int:
        return {
            GeometryType.POINT: 1,
            GeometryType.LINE_STRING: 2,
            GeometryType.POLYGON: 3,
        }[self]


def _as_coordinate(coord) -> Coordinate:
    return (float(coord[0]), float(coord[1]))


@dataclass(frozen=True)
class Point:
    coordinate: Coordinate
    geometry_type = GeometryType.POINT

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        return (self.coordinate,)


@dataclass(frozen=True)
class LineString:
    coordinates: Tuple[Coordinate, ...]
    geometry_type = GeometryType.LINE_STRING

    @classmethod
    def from_vertices(cls, vertices: Sequence) -> "LineString":
        coords = tuple(_as_coordinate(c) for c in vertices)
        if len(coords) < 2:
            raise InvalidGeometry(f"LineString needs at least 2 vertices, got {len(coords)}")
        return cls(coords)

    @property
    def last_coordinate(self) -> Coordinate:
        return self.coordinates[-1]


@dataclass(frozen=True)
class Polygon:
    """Single-ring polygon; ``ring`` is always closed (first == last)"""
    ring: Tuple[Coordinate, ...]
    geometry_type = GeometryType.POLYGON

    @classmethod
    def from_vertices(cls, vertices: Sequence) -> "Polygon":
        coords = [_as_coordinate(c) for c in vertices]
        if len(coords) > 1 and coords[0] == coords[-1]:
            coords = coords[:-1]
        if len(coords) < 3:
            raise InvalidGeometry(f"Polygon ring needs at least 3 vertices, got {len(coords)}")
        return cls(tuple(coords + [coords[0]]))

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        return self.ring

    @property
    def vertices(self) -> Tuple[Coordinate, ...]:
        """Ring without the closing coordinate"""
        return self.ring[:-1]


Geometry = Union[Point, LineString, Polygon]


def build_geometry(geometry_type: GeometryType, vertices: Sequence) -> Geometry:
    """Build an immutable geometry, raising InvalidGeometry below the minimum vertex count"""
    if geometry_type is GeometryType.POINT:
        if len(vertices) != 1:
            raise InvalidGeometry(f"Point needs exactly 1 vertex, got {len(vertices)}")
        return Point(_as_coordinate(vertices[0]))
    if geometry_type is GeometryType.LINE_STRING:
        return LineString.from_vertices(vertices)
    return Polygon.from_vertices(vertices)
