"""
Tests for the projection registry
"""

import itertools

import pytest

from playze.map.errors import (
    ProjectionDefinitionError, RegistryFrozen, UnknownProjection
)
from playze.map.projections import (
    DEFAULT_DEFINITIONS, DISPLAY_CRS, GEOGRAPHIC_CRS, UTM33_CRS, WEB_MERCATOR_CRS,
    ProjectionRegistry, build_registry, default_registry
)

# Inside the area of use of every default system (Norrbotten)
SAMPLE_LONLAT = (22.15, 65.58)


class TestRegistryContents:
    """Registration, lookup and freezing."""

    def setup_method(self):
        self.registry = build_registry(freeze=False)

    def test_default_codes(self):
        assert set(self.registry.codes()) == {GEOGRAPHIC_CRS, WEB_MERCATOR_CRS, DISPLAY_CRS, UTM33_CRS}
        assert self.registry.is_registered(DISPLAY_CRS)
        assert not self.registry.is_registered("EPSG:9999")

    def test_definition_returned_verbatim(self):
        assert self.registry.definition(DISPLAY_CRS) == DEFAULT_DEFINITIONS[DISPLAY_CRS]

    def test_unknown_definition_lookup(self):
        with pytest.raises(UnknownProjection) as excinfo:
            self.registry.definition("EPSG:9999")
        assert excinfo.value.code == "EPSG:9999"

    def test_invalid_definition(self):
        with pytest.raises(ProjectionDefinitionError):
            self.registry.register("BROKEN", "+proj=does_not_exist +no_defs")
        assert not self.registry.is_registered("BROKEN")

    def test_reregister_replaces_definition(self):
        self.registry.transform(SAMPLE_LONLAT, GEOGRAPHIC_CRS, DISPLAY_CRS)
        self.registry.register(DISPLAY_CRS, "EPSG:3857")
        x, y = self.registry.transform(SAMPLE_LONLAT, GEOGRAPHIC_CRS, DISPLAY_CRS)
        expected = self.registry.transform(SAMPLE_LONLAT, GEOGRAPHIC_CRS, WEB_MERCATOR_CRS)
        assert (x, y) == pytest.approx(expected)

    def test_freeze(self):
        self.registry.freeze()
        assert self.registry.frozen
        with pytest.raises(RegistryFrozen):
            self.registry.register("LOCAL", "EPSG:3006")

    def test_empty_registry(self):
        registry = ProjectionRegistry()
        assert registry.codes() == []
        with pytest.raises(UnknownProjection):
            registry.transform((0.0, 0.0), GEOGRAPHIC_CRS, WEB_MERCATOR_CRS)

    def test_default_registry_is_shared_and_frozen(self):
        assert default_registry() is default_registry()
        assert default_registry().frozen


class TestTransform:
    """Forward and inverse transforms between registered systems."""

    def setup_method(self):
        self.registry = build_registry()

    def test_round_trip_all_pairs(self):
        codes = self.registry.codes()
        for a, b in itertools.permutations(codes, 2):
            start = self.registry.transform(SAMPLE_LONLAT, GEOGRAPHIC_CRS, a)
            there = self.registry.transform(start, a, b)
            back = self.registry.transform(there, b, a)
            tolerance = 1e-7 if a == GEOGRAPHIC_CRS else 1e-3
            assert back == pytest.approx(start, abs=tolerance), f"{a} -> {b} -> {a}"

    def test_same_code_is_identity(self):
        assert self.registry.transform((1, 2), DISPLAY_CRS, DISPLAY_CRS) == (1.0, 2.0)

    def test_axis_order_is_lon_lat(self):
        x, y = self.registry.transform((0.0, 0.0), GEOGRAPHIC_CRS, WEB_MERCATOR_CRS)
        assert x == pytest.approx(0.0, abs=1e-6)
        assert y == pytest.approx(0.0, abs=1e-6)
        x, _ = self.registry.transform((10.0, 0.0), GEOGRAPHIC_CRS, WEB_MERCATOR_CRS)
        assert x == pytest.approx(1113194.9, abs=0.1)

    def test_display_crs_false_easting(self):
        # Central meridian 23.25 maps onto the false easting
        x, _ = self.registry.transform((23.25, 66.0), GEOGRAPHIC_CRS, DISPLAY_CRS)
        assert x == pytest.approx(150000.0, abs=1e-3)

    def test_unknown_code_in_either_position(self):
        with pytest.raises(UnknownProjection):
            self.registry.transform(SAMPLE_LONLAT, "EPSG:1234", GEOGRAPHIC_CRS)
        with pytest.raises(UnknownProjection):
            self.registry.transform(SAMPLE_LONLAT, GEOGRAPHIC_CRS, "EPSG:1234")

    def test_transform_many_preserves_order(self):
        coords = [(22.0, 65.0), (22.5, 65.5), (23.0, 66.0)]
        projected = self.registry.transform_many(coords, GEOGRAPHIC_CRS, UTM33_CRS)
        assert len(projected) == 3
        for single, many in zip(coords, projected):
            assert self.registry.transform(single, GEOGRAPHIC_CRS, UTM33_CRS) == pytest.approx(many)

    def test_transform_many_empty(self):
        assert self.registry.transform_many([], GEOGRAPHIC_CRS, UTM33_CRS) == []
