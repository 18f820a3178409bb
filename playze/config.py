"""
Map configuration: view defaults, tool timings and the declared layer groups
"""

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional

from loguru import logger
from PySide6.QtCore import QSettings

from .map.layer_types import (
    LayerDescriptor, LayerGroup, LayerKind, TileServiceSource, VectorSource, XYZSource
)
from .map.projections import DISPLAY_CRS, UTM33_CRS
from .map.search import LocationCandidate

SETTINGS_ORGANIZATION = "Playze"
SETTINGS_APPLICATION = "MapTools"

DATA_DIR = os.path.join(os.path.abspath(os.path.dirname(__file__)), "data")
LEGEND_DIR = os.path.join(DATA_DIR, "legends")


@dataclass(frozen=True)
class MarkerStyle:
    radius: int = 6
    fill_color: str = "red"
    stroke_color: str = "white"
    stroke_width: int = 2


@dataclass(frozen=True)
class ToolConfig:
    animation_ms: int = 250
    zoom_step: float = 1.0
    search_zoom: float = 14
    search_animation_ms: int = 1000
    double_click_ms: int = 300
    double_click_px: float = 5.0
    double_click_m: float = 5.0


@dataclass(frozen=True)
class MapConfig:
    display_crs: str = DISPLAY_CRS
    center: tuple = (141115.0, 7448818.0)  # display CRS
    default_zoom: float = 11
    marker_style: MarkerStyle = field(default_factory=MarkerStyle)
    tools: ToolConfig = field(default_factory=ToolConfig)


def base_map_layers() -> List[LayerDescriptor]:
    return [
        LayerDescriptor(
            id="osm",
            title="OpenStreetMap",
            kind=LayerKind.BASE,
            source=TileServiceSource(),
            visible=True,
        ),
        LayerDescriptor(
            id="terrain",
            title="Terrain",
            kind=LayerKind.BASE,
            source=XYZSource(
                url="https://stamen-tiles.a.ssl.fastly.net/terrain/{z}/{x}/{y}.jpg",
                attribution="Map tiles by Stamen Design",
            ),
            visible=False,
        ),
    ]


def project_layers() -> List[LayerDescriptor]:
    # The two areas were authored in different national grids
    return [
        LayerDescriptor(
            id="project-area",
            title="Projektområde",
            kind=LayerKind.OVERLAY,
            source=VectorSource(
                url=os.path.join(DATA_DIR, "project_area.geojson"),
                data_crs=DISPLAY_CRS,
            ),
            legend_url=os.path.join(LEGEND_DIR, "project_area.svg"),
        ),
        LayerDescriptor(
            id="utredning-area",
            title="Utredningsområde",
            kind=LayerKind.OVERLAY,
            source=VectorSource(
                url=os.path.join(DATA_DIR, "utredning_omrade.geojson"),
                data_crs=UTM33_CRS,
                color="#00ff00",
            ),
            legend_url=os.path.join(LEGEND_DIR, "utredning_omrade.svg"),
        ),
    ]


def default_layer_groups() -> List[LayerGroup]:
    return [
        LayerGroup(id="base", title="Base Maps", layers=base_map_layers()),
        LayerGroup(id="project", title="Projekt", layers=project_layers()),
    ]


GAZETTEER = [
    LocationCandidate("Luleå, Norrbotten, Sverige", (22.1547, 65.5848), "city"),
    LocationCandidate("Boden, Norrbotten, Sverige", (21.6886, 65.8252), "town"),
    LocationCandidate("Piteå, Norrbotten, Sverige", (21.4794, 65.3173), "town"),
    LocationCandidate("Kalix, Norrbotten, Sverige", (23.1564, 65.8535), "town"),
    LocationCandidate("Haparanda, Norrbotten, Sverige", (24.1365, 65.8355), "town"),
    LocationCandidate("Älvsbyn, Norrbotten, Sverige", (21.0024, 65.6765), "town"),
]


def load_map_config(settings: Optional[QSettings] = None) -> MapConfig:
    """Default config with view overrides read from QSettings"""
    config = MapConfig()
    if settings is None:
        settings = QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)

    overrides = {}
    display_crs = settings.value("map/display_crs")
    if display_crs:
        overrides["display_crs"] = str(display_crs)

    center_x = settings.value("map/center_x")
    center_y = settings.value("map/center_y")
    if center_x is not None and center_y is not None:
        try:
            overrides["center"] = (float(center_x), float(center_y))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid stored map center: {center_x}, {center_y}")

    zoom = settings.value("map/zoom")
    if zoom is not None:
        try:
            overrides["default_zoom"] = float(zoom)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid stored zoom: {zoom}")

    if overrides:
        logger.info(f"Map config overrides from settings: {sorted(overrides)}")
        config = replace(config, **overrides)
    return config
