"""
Location lookup collaborator and the go-to-location operation
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from loguru import logger

from .feature_store import Feature, FeatureStore
from .geometry import Coordinate, Point
from .projections import GEOGRAPHIC_CRS, ProjectionRegistry
from .surface import MapSurface

SEARCH_ZOOM = 14
SEARCH_ANIMATION_MS = 1000
SEARCH_LIMIT = 5


@dataclass(frozen=True)
class LocationCandidate:
    display_name: str
    coordinate: Coordinate  # (lon, lat) in EPSG:4326
    kind: str = ""


class LocationLookup(Protocol):
    def search(self, text: str, limit: int = SEARCH_LIMIT) -> List[LocationCandidate]:
        ...


class GazetteerLookup:
    """In-memory place list searched by case-insensitive substring"""

    def __init__(self, entries: Sequence[LocationCandidate]):
        self.entries = list(entries)

    def search(self, text: str, limit: int = SEARCH_LIMIT) -> List[LocationCandidate]:
        needle = text.strip().lower()
        if not needle:
            return []
        matches = [e for e in self.entries if needle in e.display_name.lower()]
        logger.debug(f"Gazetteer '{text}': {len(matches)} matches")
        return matches[:limit]


def go_to_location(candidate: LocationCandidate, surface: MapSurface,
                   registry: ProjectionRegistry, display_crs: str,
                   store: Optional[FeatureStore] = None, zoom: float = SEARCH_ZOOM,
                   duration_ms: int = SEARCH_ANIMATION_MS) -> Optional[Feature]:
    """Mark the candidate and fly the camera to it.

    The transform runs first, so an UnknownProjection leaves the map untouched.
    """
    center = registry.transform(candidate.coordinate, GEOGRAPHIC_CRS, display_crs)
    feature = None
    if store is not None:
        feature = store.add(Point(center), kind="search", name=candidate.display_name)
    surface.animate_to(center, zoom, duration_ms)
    logger.info(f"Moving to '{candidate.display_name}' at {center}")
    return feature
