"""
Geometry Measurement Engine

Lengths and areas are measured on a sphere of radius 6 371 008.8 m (mean Earth
radius) after transforming the working coordinates to geographic lon/lat:

- length: sum of haversine great-circle distances between consecutive vertices
- area: spherical polygon formula |sum((lon2 - lon1) * (2 + sin(lat1) + sin(lat2)))| * R^2 / 2

Both are independent of the working projection, so a line drawn in a
transverse-mercator or UTM view reports its true ground length.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from loguru import logger
from shapely.geometry import Polygon as ShapelyPolygon

from .geometry import Coordinate, GeometryType
from .projections import GEOGRAPHIC_CRS, ProjectionRegistry

EARTH_RADIUS = 6371008.8

LENGTH_KM_THRESHOLD = 100.0        # metres
AREA_KM2_THRESHOLD = 10000.0       # square metres


@dataclass(frozen=True)
class Measurement:
    """A measured magnitude and its human-readable form"""
    value: float            # raw value in m or m²
    magnitude: float        # rounded value in the reporting unit
    unit: str               # "m", "km", "m²" or "km²"

    @property
    def label(self) -> str:
        return f"{format_number(self.magnitude)} {self.unit}"

    def __str__(self) -> str:
        return self.label


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to ``digits`` decimals with halves rounded up; inf and NaN pass through"""
    if not math.isfinite(value):
        return value
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_number(value: float) -> str:
    """Two decimals at most, trailing zeros dropped (100.0 -> '100', 0.10 -> '0.1')"""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _settle(value: float) -> float:
    # sub-micrometre float noise never crosses a unit threshold
    return round(value, 6)


def _warn_if_not_finite(value: float, what: str):
    if not math.isfinite(value):
        logger.warning(f"Measured {what} is not finite: {value}")


def format_length(metres: float) -> Measurement:
    _warn_if_not_finite(metres, "length")
    if _settle(metres) > LENGTH_KM_THRESHOLD:
        return Measurement(metres, round_half_up(metres / 1000.0), "km")
    return Measurement(metres, round_half_up(metres), "m")


def format_area(square_metres: float) -> Measurement:
    _warn_if_not_finite(square_metres, "area")
    if _settle(square_metres) > AREA_KM2_THRESHOLD:
        return Measurement(square_metres, round_half_up(square_metres / 1000000.0), "km²")
    return Measurement(square_metres, round_half_up(square_metres), "m²")


def _open_ring(coords: Sequence[Coordinate]) -> list:
    coords = [tuple(c) for c in coords]
    if len(coords) > 1 and coords[0] == coords[-1]:
        coords = coords[:-1]
    return coords


def haversine_length(lonlat: Sequence[Coordinate], radius: float = EARTH_RADIUS) -> float:
    """Great-circle length of a lon/lat polyline in metres"""
    if len(lonlat) < 2:
        return 0.0
    pts = np.radians(np.asarray(lonlat, dtype=float))
    lon, lat = pts[:, 0], pts[:, 1]
    dlat = np.diff(lat)
    dlon = np.diff(lon)
    a = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return float(np.sum(2 * radius * np.arctan2(np.sqrt(a), np.sqrt(1 - a))))


def spherical_ring_area(lonlat: Sequence[Coordinate], radius: float = EARTH_RADIUS) -> float:
    """Area in m² of a lon/lat ring on the sphere; open or closed rings accepted"""
    ring = _open_ring(lonlat)
    if len(ring) < 3:
        return 0.0
    pts = np.radians(np.asarray(ring, dtype=float))
    lon, lat = pts[:, 0], pts[:, 1]
    prev_lon = np.roll(lon, 1)
    prev_lat = np.roll(lat, 1)
    total = np.sum((lon - prev_lon) * (2 + np.sin(prev_lat) + np.sin(lat)))
    return float(abs(total * radius * radius / 2.0))


def label_position(mode: GeometryType, coords: Sequence[Coordinate]) -> Optional[Coordinate]:
    """Where the measurement label sits: last vertex of a line, interior point of a polygon"""
    if not coords:
        return None
    if mode is not GeometryType.POLYGON:
        x, y = coords[-1]
        return (float(x), float(y))

    ring = _open_ring(coords)
    if len(ring) >= 3:
        shape = ShapelyPolygon(ring)
        if shape.is_valid and not shape.is_empty:
            point = shape.representative_point()
            return (float(point.x), float(point.y))
    mean = np.mean(np.asarray(ring, dtype=float), axis=0)
    return (float(mean[0]), float(mean[1]))


class MeasurementEngine:
    """Measures geometries expressed in a working CRS"""

    def __init__(self, registry: ProjectionRegistry, working_crs: str):
        self.registry = registry
        self.working_crs = working_crs

    def _geographic(self, coords: Sequence[Coordinate]) -> list:
        return self.registry.transform_many(coords, self.working_crs, GEOGRAPHIC_CRS)

    def length(self, coords: Sequence[Coordinate]) -> Measurement:
        """Ground length of a polyline; fewer than 2 vertices measures zero"""
        if len(coords) < 2:
            return format_length(0.0)
        return format_length(haversine_length(self._geographic(coords)))

    def area(self, coords: Sequence[Coordinate]) -> Measurement:
        """Ground area of a ring; fewer than 3 distinct vertices measures zero"""
        ring = _open_ring(coords)
        if len(ring) < 3:
            return format_area(0.0)
        return format_area(spherical_ring_area(self._geographic(ring)))

    def measure(self, mode: GeometryType, coords: Sequence[Coordinate]) -> Measurement:
        if mode is GeometryType.POLYGON:
            result = self.area(coords)
        else:
            result = self.length(coords)
        logger.debug(f"Measured {mode.value} with {len(coords)} vertices: {result.label}")
        return result

