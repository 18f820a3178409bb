"""
Main Map Widget for Playze Map Tools - pyqtlet2 based implementation

Features:
- Layer composition materialized without HTML reloads
- Vector layers reprojected per layer from their declared CRS
- Toolbox of mutually exclusive tools driven by the ToolController
- Floating measurement labels, markers and animated turbines
"""

import os
# Make sure qtpy and pyqtlet2 use the same Qt binding
os.environ["QT_API"] = "pyside6"

import json
import math
from typing import Dict, Optional

from qtpy.QtWidgets import QWidget, QVBoxLayout, QToolBar, QToolButton, QLabel
from qtpy.QtCore import Qt, Signal, QTimer
from qtpy.QtGui import QKeySequence, QShortcut
from pyqtlet2 import L, MapWidget
from loguru import logger

from ..config import MapConfig
from ..map.draw_session import MeasureTooltip, TooltipStyle
from ..map.errors import EnvironmentDenied, MapToolError
from ..map.feature_store import Feature, FeatureStore
from ..map.geometry import GeometryType
from ..map.layer_manager import LayerManager
from ..map.layer_types import RenderSpec, SourceType
from ..map.measurement import MeasurementEngine
from ..map.projections import GEOGRAPHIC_CRS, ProjectionRegistry
from ..map.surface import ClickClassifier, Coordinate, MapSurface
from ..map.tool_controller import Tool, ToolController
from ..map.turbines import Turbine, TurbinePlanner

TOOL_ICONS = {
    Tool.ZOOM_IN: "➕",
    Tool.ZOOM_OUT: "➖",
    Tool.RESET_ROTATION: "🧭",
    Tool.TOGGLE_FULLSCREEN: "🔳",
    Tool.MEASURE_DISTANCE: "📏",
    Tool.MEASURE_AREA: "▦",
    Tool.PAN: "✋",
    Tool.MARKER: "📍",
}

MEASURE_STROKE = "#ffcc33"


class LeafletSurface(MapSurface):
    """MapSurface over a pyqtlet2 map.

    Leaflet works in lat/lon; every coordinate crossing this boundary is
    transformed between EPSG:4326 and the display CRS.
    """

    def __init__(self, widget: "PlayzeMapWidget", registry: ProjectionRegistry,
                 display_crs: str, click_classifier: Optional[ClickClassifier] = None):
        super().__init__(click_classifier)
        self.widget = widget
        self.registry = registry
        self.display_crs = display_crs

    def to_latlng(self, coord: Coordinate) -> list:
        lon, lat = self.registry.transform(coord, self.display_crs, GEOGRAPHIC_CRS)
        return [lat, lon]

    def from_latlng(self, lat: float, lng: float) -> Coordinate:
        return self.registry.transform((lng, lat), GEOGRAPHIC_CRS, self.display_crs)

    def zoom_by(self, delta: float, duration_ms: int):
        self.widget.run_map_js(
            f"map.setZoom(map.getZoom() + {float(delta)}, {{animate: true, duration: {duration_ms / 1000.0}}});"
        )

    def rotate_to(self, angle: float, duration_ms: int):
        # Leaflet views are always north-up, so the only reachable rotation is 0
        if angle != 0:
            logger.warning(f"Map view cannot rotate to {angle} rad; staying north-up")
        else:
            logger.debug("Rotation reset (view is north-up)")

    def animate_to(self, center: Coordinate, zoom: float, duration_ms: int):
        lat, lng = self.to_latlng(center)
        self.widget.run_map_js(
            f"map.flyTo([{lat}, {lng}], {float(zoom)}, {{duration: {duration_ms / 1000.0}}});"
        )

    def toggle_fullscreen(self) -> bool:
        if not self.widget.isVisible():
            raise EnvironmentDenied("Fullscreen is only available while the map is shown")
        return self.widget.set_fullscreen(not self.widget.isFullScreen())

    def handle_leaflet_click(self, lat: float, lng: float, pixel: Optional[tuple] = None):
        """Turn raw clicks into click / double-click events in the display CRS"""
        self.report_click(self.from_latlng(lat, lng), pixel)


class PlayzeMapWidget(QWidget):
    """Map widget with the tool controller and layer composition wired to Leaflet"""

    # Signals
    map_ready = Signal()  # Emitted when map is fully initialized
    status_message = Signal(str)

    def __init__(self, config: MapConfig, registry: ProjectionRegistry,
                 layer_manager: LayerManager, planner: Optional[TurbinePlanner] = None):
        super().__init__()
        self.config = config
        self.registry = registry
        self.layer_manager = layer_manager
        self.planner = planner
        self._map_created = False
        self._original_parent = None
        self.map = None
        self.tool_buttons: Dict[Tool, QToolButton] = {}

        clicks = ClickClassifier(
            config.tools.double_click_ms, config.tools.double_click_px, config.tools.double_click_m
        )
        self.surface = LeafletSurface(self, registry, config.display_crs, clicks)
        self.engine = MeasurementEngine(registry, config.display_crs)
        self.markers = FeatureStore("markers")
        self.measurements = FeatureStore("measure")
        self.controller = ToolController(
            self.surface, self.engine, self.markers, self.measurements,
            animation_ms=config.tools.animation_ms, zoom_step=config.tools.zoom_step,
            parent=self,
        )

        self.setup_ui()
        self.connect_signals()

    def setup_ui(self):
        """Initialize the UI"""
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QToolBar()
        for tool in Tool:
            button = QToolButton()
            button.setText(TOOL_ICONS[tool])
            button.setToolTip(tool.label)
            button.setCheckable(True)
            button.clicked.connect(lambda checked=False, t=tool: self._on_tool_button(t))
            toolbar.addWidget(button)
            self.tool_buttons[tool] = button
            if tool is Tool.TOGGLE_FULLSCREEN:
                toolbar.addSeparator()

        self.hint_label = QLabel("Press ESC to cancel active tool")
        self.hint_label.setStyleSheet("color: #999999; padding-left: 8px;")
        toolbar.addSeparator()
        toolbar.addWidget(self.hint_label)

        self.map_widget = MapWidget()

        # Let local HTML fetch remote tile URLs
        from qtpy.QtWebEngineCore import QWebEngineSettings
        self.map_widget.settings().setAttribute(
            QWebEngineSettings.LocalContentCanAccessRemoteUrls, True
        )

        layout.addWidget(toolbar)
        layout.addWidget(self.map_widget)
        self.setLayout(layout)

        self.escape_shortcut = QShortcut(QKeySequence(Qt.Key_Escape), self)
        self.escape_shortcut.activated.connect(self._on_escape)

    def connect_signals(self):
        """Connect model and controller signals to the Leaflet side"""
        self.layer_manager.layer_visibility_changed.connect(self._on_layer_visibility_changed)
        self.layer_manager.layer_opacity_changed.connect(self._on_layer_opacity_changed)

        self.controller.active_tool_changed.connect(self._on_active_tool_changed)
        self.controller.tool_failed.connect(self._on_tool_failed)
        self.controller.tooltip_added.connect(self._on_tooltip_changed)
        self.controller.tooltip_updated.connect(self._on_tooltip_changed)
        self.controller.tooltip_removed.connect(self._on_tooltip_removed)
        self.controller.measurement_committed.connect(
            lambda feature: self.status_message.emit(f"Measured: {feature.properties.get('label', '')}")
        )

        for store in (self.markers, self.measurements):
            store.feature_added.connect(lambda feature, s=store: self._on_feature_added(s, feature))
            store.feature_removed.connect(lambda feature_id, s=store: self._on_feature_removed(s, feature_id))
            store.cleared.connect(lambda s=store: self._on_store_cleared(s))

        if self.planner is not None:
            self.planner.turbine_added.connect(self._on_turbine_added)
            self.planner.turbine_removed.connect(self._on_turbine_removed)
            self.planner.frame.connect(self._on_turbine_frame)

    # --- map lifecycle ---------------------------------------------------

    def setup_map(self):
        """Create the pyqtlet2 map at the configured center"""
        logger.info("Setting up pyqtlet2 map")
        self.map = L.map(self.map_widget)
        lat, lng = self.surface.to_latlng(self.config.center)
        self.map.setView([lat, lng], int(self.config.default_zoom))

        self._init_js_layer_manager()
        self._materialize_layers()
        self._setup_event_handlers()

        if self.planner is not None:
            self.planner.attach()

        logger.info("Map ready")
        self.map_ready.emit()

    def _setup_event_handlers(self):
        @self.map.clicked.connect
        def on_map_click(event):
            lat = event['latlng']['lat']
            lng = event['latlng']['lng']
            point = event.get('containerPoint')
            pixel = (point['x'], point['y']) if point else None
            try:
                self.surface.handle_leaflet_click(lat, lng, pixel)
            except MapToolError as e:
                logger.error(f"Click at {lat}, {lng} could not be handled: {e}")

    def run_map_js(self, statement: str):
        """Run a statement against the Leaflet map once it exists"""
        if self.map is None:
            logger.debug("Map not yet initialized, skipping command")
            return
        self.map_widget.page.runJavaScript(
            "if (typeof map !== 'undefined' && map) {" + statement + "}"
        )

    def request_center(self, callback):
        """Ask Leaflet for the view center; ``callback`` receives display-CRS coordinates"""
        if self.map is None:
            callback(tuple(self.config.center))
            return

        def on_result(result):
            if not result:
                callback(tuple(self.config.center))
                return
            callback(self.surface.from_latlng(result[1], result[0]))

        self.map_widget.page.runJavaScript(
            "[map.getCenter().lng, map.getCenter().lat]", 0, on_result
        )

    # --- layers ----------------------------------------------------------

    def _materialize_layers(self):
        """Create every declared layer in order, honouring visibility and opacity"""
        for z_index, spec in enumerate(self.layer_manager.render_plan(self.config.display_crs)):
            try:
                self._create_layer(spec, z_index)
            except (MapToolError, OSError, ValueError) as e:
                logger.error(f"Failed to create layer '{spec.layer.id}': {e}")

    def _create_layer(self, spec: RenderSpec, z_index: int):
        layer = spec.layer
        source = layer.source
        layer_id_js = json.dumps(layer.id)
        options = {"opacity": layer.opacity, "zIndex": z_index}

        if source.source_type in (SourceType.OSM, SourceType.XYZ):
            if source.attribution:
                options["attribution"] = source.attribution
            factory = f"L.tileLayer({json.dumps(source.url)}, {json.dumps(options)})"
        elif source.source_type is SourceType.WMS:
            options.update(source.params)
            options["crossOrigin"] = source.cross_origin
            factory = f"L.tileLayer.wms({json.dumps(source.url)}, {json.dumps(options)})"
        else:
            data = self._load_geojson(source.url, spec.source_crs)
            style = {
                "color": source.color, "fillColor": source.color,
                "weight": 2, "fillOpacity": 0.2, "opacity": layer.opacity,
            }
            factory = f"L.geoJSON({json.dumps(data)}, {{style: {json.dumps(style)}}})"

        self.map_widget.page.runJavaScript(f"storePlayzeLayer({layer_id_js}, {factory});")
        if layer.visible:
            self.map_widget.page.runJavaScript(f"showPlayzeLayer({layer_id_js});")
        logger.debug(f"Layer '{layer.id}' created (source CRS {spec.source_crs or 'tiles'})")

    def _load_geojson(self, path: str, source_crs: str) -> dict:
        """Read a GeoJSON file and reproject it from ``source_crs`` to lat/lon"""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        def reproject(coords):
            if coords and isinstance(coords[0], (int, float)):
                return list(self.registry.transform(coords[:2], source_crs, GEOGRAPHIC_CRS))
            return [reproject(c) for c in coords]

        features = data.get("features", [data]) if data.get("type") == "FeatureCollection" else [data]
        for feature in features:
            geometry = feature.get("geometry", feature) or {}
            if "coordinates" in geometry:
                geometry["coordinates"] = reproject(geometry["coordinates"])
        return data

    def _on_layer_visibility_changed(self, layer_id: str, is_visible: bool):
        layer_id_js = json.dumps(layer_id)
        fn = "showPlayzeLayer" if is_visible else "hidePlayzeLayer"
        self.run_map_js(f"{fn}({layer_id_js});")
        logger.debug(f"Layer '{layer_id}' {'shown' if is_visible else 'hidden'}")

    def _on_layer_opacity_changed(self, layer_id: str, opacity: float):
        self.run_map_js(f"setPlayzeLayerOpacity({json.dumps(layer_id)}, {opacity});")

    # --- tools -----------------------------------------------------------

    def _on_tool_button(self, tool: Tool):
        self.controller.select_tool(tool)
        # Re-selecting the active tool emits no change, so resync the buttons here
        self._on_active_tool_changed(self.controller.active_tool)

    def _on_escape(self):
        self.controller.handle_key("Escape")
        if self.isFullScreen():
            self.set_fullscreen(False)

    def _on_active_tool_changed(self, tool: Optional[Tool]):
        for t, button in self.tool_buttons.items():
            button.setChecked(t is tool)
        # The double click that finishes a sketch must not zoom
        if tool is not None and tool.is_measurement:
            self.run_map_js("map.doubleClickZoom.disable();")
        else:
            self.run_map_js("map.doubleClickZoom.enable();")
        if tool is not None and tool.hint:
            self.hint_label.setText(tool.hint)
        else:
            self.hint_label.setText("Press ESC to cancel active tool")

    def _on_tool_failed(self, tool: Tool, message: str):
        self.status_message.emit(f"{tool.label}: {message}")

    def set_fullscreen(self, enabled: bool) -> bool:
        """Detach into a fullscreen window, or return to the original parent"""
        if enabled:
            self._original_parent = self.parent()
            self.setParent(None)
            self.showFullScreen()
            logger.info("Map entered fullscreen mode")
        else:
            if self._original_parent is not None:
                self.showNormal()
                self.setParent(self._original_parent)
                if hasattr(self._original_parent, 'setCentralWidget'):
                    self._original_parent.setCentralWidget(self)
                self._original_parent = None
            logger.info("Map restored from fullscreen")
        return enabled

    # --- features and labels ---------------------------------------------

    def _on_feature_added(self, store: FeatureStore, feature: Feature):
        geometry = feature.geometry
        latlngs = [self.surface.to_latlng(c) for c in geometry.coordinates]
        key = json.dumps(f"{store.name}:{feature.id}")
        if geometry.geometry_type is GeometryType.POINT:
            style = self.config.marker_style
            options = {
                "radius": style.radius, "fillColor": style.fill_color, "color": style.stroke_color,
                "weight": style.stroke_width, "fillOpacity": 1.0,
            }
            factory = f"L.circleMarker({json.dumps(latlngs[0])}, {json.dumps(options)})"
        elif geometry.geometry_type is GeometryType.LINE_STRING:
            factory = f"L.polyline({json.dumps(latlngs)}, {{color: '{MEASURE_STROKE}', weight: 2}})"
        else:
            factory = (f"L.polygon({json.dumps(latlngs[:-1])}, {{color: '{MEASURE_STROKE}', "
                       f"weight: 2, fillColor: '#ffffff', fillOpacity: 0.2}})")
        self.run_map_js(f"addPlayzeFeature({key}, {factory});")

    def _on_feature_removed(self, store: FeatureStore, feature_id: int):
        self.run_map_js(f"removePlayzeFeature({json.dumps(f'{store.name}:{feature_id}')});")

    def _on_store_cleared(self, store: FeatureStore):
        self.run_map_js(f"clearPlayzeFeatures({json.dumps(store.name)});")

    def _on_tooltip_changed(self, tooltip: MeasureTooltip):
        if tooltip.position is None or not tooltip.text:
            self.run_map_js(f"removePlayzeTooltip({tooltip.id});")
            return
        lat, lng = self.surface.to_latlng(tooltip.position)
        css = "ol-tooltip ol-tooltip-static" if tooltip.style is TooltipStyle.STATIC else "ol-tooltip ol-tooltip-measure"
        self.run_map_js(
            f"setPlayzeTooltip({tooltip.id}, [{lat}, {lng}], {json.dumps(tooltip.text)}, "
            f"{json.dumps(css)}, {json.dumps(list(tooltip.offset))});"
        )

    def _on_tooltip_removed(self, tooltip: MeasureTooltip):
        self.run_map_js(f"removePlayzeTooltip({tooltip.id});")

    def _on_turbine_added(self, turbine: Turbine):
        lat, lng = self.surface.to_latlng(turbine.coordinate)
        self.run_map_js(f"addPlayzeTurbine({turbine.id}, [{lat}, {lng}]);")

    def _on_turbine_removed(self, turbine_id: int):
        self.run_map_js(f"removePlayzeTurbine({turbine_id});")

    def _on_turbine_frame(self, rotation: float):
        self.run_map_js(f"rotatePlayzeTurbines({math.degrees(rotation) % 360.0:.1f});")

    # --- Qt events -------------------------------------------------------

    def showEvent(self, event):
        super().showEvent(event)

        # Lazy map creation on first show
        if not self._map_created and self.width() > 0 and self.height() > 0:
            logger.info("Creating map on first show")
            self._map_created = True
            QTimer.singleShot(100, self.setup_map)  # Small delay to ensure widget is fully shown
        else:
            self._kick_leaflet()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._kick_leaflet()

    def _kick_leaflet(self):
        """
        Force Leaflet to re-measure the container **only** when
        the widget already has a size > 0, so map.mapObject is non-null.
        """
        if self.width() > 0 and self.height() > 0:
            QTimer.singleShot(100, lambda: self.run_map_js("map.invalidateSize(true);"))

    def shutdown(self):
        """Tear down tools and stop periodic work"""
        self.controller.shutdown()
        if self.planner is not None:
            self.planner.detach()

    def _init_js_layer_manager(self):
        """Initialize JavaScript stores for layers, features, labels and turbines"""
        js_code = """
            window.playzeLayers = window.playzeLayers || {};
            window.playzeFeatures = window.playzeFeatures || {};
            window.playzeTooltips = window.playzeTooltips || {};
            window.playzeTurbines = window.playzeTurbines || {};

            function storePlayzeLayer(layerId, layer) {
                window.playzeLayers[layerId] = layer;
            }

            function showPlayzeLayer(layerId) {
                const layer = window.playzeLayers[layerId];
                if (!layer) {
                    console.warn('Cannot show layer - not found:', layerId);
                    return;
                }
                if (!map.hasLayer(layer)) {
                    layer.addTo(map);
                }
            }

            function hidePlayzeLayer(layerId) {
                const layer = window.playzeLayers[layerId];
                if (layer && map.hasLayer(layer)) {
                    map.removeLayer(layer);
                }
            }

            function setPlayzeLayerOpacity(layerId, opacity) {
                const layer = window.playzeLayers[layerId];
                if (!layer) {
                    console.warn('Cannot set opacity - layer not found:', layerId);
                    return;
                }
                if (typeof layer.setOpacity === 'function') {
                    layer.setOpacity(opacity);
                } else if (typeof layer.setStyle === 'function') {
                    layer.setStyle({opacity: opacity, fillOpacity: opacity * 0.2});
                }
            }

            function addPlayzeFeature(key, layer) {
                window.playzeFeatures[key] = layer.addTo(map);
            }

            function removePlayzeFeature(key) {
                if (window.playzeFeatures[key]) {
                    map.removeLayer(window.playzeFeatures[key]);
                    delete window.playzeFeatures[key];
                }
            }

            function clearPlayzeFeatures(storeName) {
                Object.keys(window.playzeFeatures).forEach(function(key) {
                    if (key.startsWith(storeName + ':')) {
                        map.removeLayer(window.playzeFeatures[key]);
                        delete window.playzeFeatures[key];
                    }
                });
            }

            function setPlayzeTooltip(id, latlng, text, className, offset) {
                removePlayzeTooltip(id);
                window.playzeTooltips[id] = L.tooltip({
                    permanent: true, direction: 'top', className: className, offset: offset
                }).setLatLng(latlng).setContent(text).addTo(map);
            }

            function removePlayzeTooltip(id) {
                if (window.playzeTooltips[id]) {
                    map.removeLayer(window.playzeTooltips[id]);
                    delete window.playzeTooltips[id];
                }
            }

            function addPlayzeTurbine(id, latlng) {
                const icon = L.divIcon({
                    className: 'playze-turbine',
                    html: '<div class="playze-rotor" style="font-size:24px">✢</div>'
                });
                window.playzeTurbines[id] = L.marker(latlng, {icon: icon}).addTo(map);
            }

            function removePlayzeTurbine(id) {
                if (window.playzeTurbines[id]) {
                    map.removeLayer(window.playzeTurbines[id]);
                    delete window.playzeTurbines[id];
                }
            }

            function rotatePlayzeTurbines(degrees) {
                document.querySelectorAll('.playze-rotor').forEach(function(el) {
                    el.style.transform = 'rotate(' + degrees + 'deg)';
                });
            }
        """
        self.map_widget.page.runJavaScript(js_code)
        logger.debug("JavaScript layer manager initialized")
