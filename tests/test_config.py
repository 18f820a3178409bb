"""
Tests for map configuration and the feature store
"""

import json
import os

from PySide6.QtCore import QSettings

from playze.config import DATA_DIR, MapConfig, default_layer_groups, load_map_config
from playze.map.feature_store import FeatureStore
from playze.map.geometry import Point
from playze.map.projections import DISPLAY_CRS, build_registry


class TestMapConfig:

    def make_settings(self, tmp_path):
        return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)

    def test_defaults(self, tmp_path):
        config = load_map_config(self.make_settings(tmp_path))
        assert config == MapConfig()
        assert config.display_crs == DISPLAY_CRS
        assert config.tools.animation_ms == 250
        assert config.tools.search_zoom == 14

    def test_overrides(self, tmp_path):
        settings = self.make_settings(tmp_path)
        settings.setValue("map/center_x", "150000")
        settings.setValue("map/center_y", "7300000")
        settings.setValue("map/zoom", "9")
        config = load_map_config(settings)
        assert config.center == (150000.0, 7300000.0)
        assert config.default_zoom == 9.0

    def test_invalid_override_ignored(self, tmp_path):
        settings = self.make_settings(tmp_path)
        settings.setValue("map/zoom", "close")
        assert load_map_config(settings).default_zoom == MapConfig().default_zoom

    def test_default_layers_use_registered_crs(self):
        registry = build_registry()
        for group in default_layer_groups():
            for layer in group.layers:
                if layer.is_vector:
                    assert registry.is_registered(layer.source.data_crs)

    def test_default_vector_sources_exist(self, tmp_path, monkeypatch):
        # Paths must not depend on the working directory
        monkeypatch.chdir(tmp_path)
        vectors = [layer for group in default_layer_groups() for layer in group.layers if layer.is_vector]
        assert len(vectors) == 2
        for layer in vectors:
            assert os.path.isabs(layer.source.url)
            assert os.path.dirname(layer.source.url) == DATA_DIR
            with open(layer.source.url, encoding="utf-8") as f:
                assert json.load(f)["type"] == "FeatureCollection"

    def test_project_layers_have_legends(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        groups = {group.id: group for group in default_layer_groups()}
        for layer in groups["project"].layers:
            assert layer.has_legend
            assert os.path.isfile(layer.legend_url)
        assert not any(layer.has_legend for layer in groups["base"].layers)

    def test_project_area_colours(self):
        groups = {group.id: group for group in default_layer_groups()}
        colours = {layer.id: layer.source.color for layer in groups["project"].layers}
        assert colours == {"project-area": "#ff0000", "utredning-area": "#00ff00"}


class TestFeatureStore:

    def setup_method(self):
        self.store = FeatureStore("markers")
        self.removed = []
        self.store.feature_removed.connect(self.removed.append)

    def test_add_assigns_ids(self):
        first = self.store.add(Point((0.0, 0.0)), kind="marker")
        second = self.store.add(Point((1.0, 1.0)))
        assert (first.id, second.id) == (1, 2)
        assert self.store.get(1) is first
        assert [f.id for f in self.store.features()] == [1, 2]

    def test_remove(self):
        feature = self.store.add(Point((0.0, 0.0)))
        assert self.store.remove(feature.id)
        assert not self.store.remove(feature.id)
        assert self.removed == [feature.id]
        assert len(self.store) == 0

    def test_clear(self):
        cleared = []
        self.store.cleared.connect(lambda: cleared.append(True))
        self.store.clear()
        assert cleared == []
        self.store.add(Point((0.0, 0.0)))
        self.store.clear()
        assert cleared == [True]
