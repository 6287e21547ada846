"""Tests for per-sensor band tables and coefficient tables."""

from __future__ import annotations

import numpy as np
import pytest

from landsat_lst.core.config import NDVIMethod, Sensor
from landsat_lst.core.exceptions import MissingBandError, UnrecognizedSensorError
from landsat_lst.models.bands import (
    ASTER_ROLES,
    REFLECTANCE_ROLES,
    ROLE_ATRAN,
    ROLE_NIR,
    ROLE_QA,
    ROLE_RED,
    ROLE_THERMAL,
    THERMAL_ROLES,
    BandSet,
    band_set_for,
)
from landsat_lst.models.coefficients import (
    aster_convolution_for,
    ndvi_threshold_coefficients,
)
from landsat_lst.models.raster import Raster


class TestBandSetTables:
    @pytest.mark.parametrize(
        ("sensor", "red", "nir", "thermal", "suffix"),
        [
            ("L8", "SR_B4", "SR_B5", "B10", "BAND_10"),
            ("L7", "SR_B3", "SR_B4", "B6_VCID_1", "BAND_6_VCID_1"),
            ("L5", "SR_B3", "SR_B4", "B6", "BAND_6"),
            ("L4", "SR_B3", "SR_B4", "B6", "BAND_6"),
        ],
    )
    def test_sensor_names(
        self, sensor: str, red: str, nir: str, thermal: str, suffix: str
    ) -> None:
        bs = band_set_for(sensor)
        assert bs.name(ROLE_RED) == red
        assert bs.name(ROLE_NIR) == nir
        assert bs.name(ROLE_THERMAL) == thermal
        assert bs.metadata_key("K1_CONSTANT") == f"K1_CONSTANT_{suffix}"

    def test_unknown_sensor(self) -> None:
        with pytest.raises(UnrecognizedSensorError):
            band_set_for("L9")

    def test_names_for_source_roles(self) -> None:
        bs = band_set_for("L8")
        assert "B10" not in bs.names_for(REFLECTANCE_ROLES)
        assert bs.names_for(THERMAL_ROLES) == ("B10",)
        assert bs.names_for(ASTER_ROLES) == ("emissivity_band13", "emissivity_band14", "ndvi")

    def test_names_for_skips_undefined_roles(self) -> None:
        bs = BandSet(Sensor.L8, {ROLE_RED: "R"})
        assert bs.names_for((ROLE_RED, ROLE_NIR)) == ("R",)

    def test_undefined_role_raises_missing_band(self) -> None:
        bs = BandSet(Sensor.L8, {ROLE_RED: "R"})
        with pytest.raises(MissingBandError) as exc_info:
            bs.name(ROLE_QA, scene_id="s1")
        assert exc_info.value.band == ROLE_QA


class TestBandSetScaling:
    def test_reflectance_scaled(self) -> None:
        bs = band_set_for("L8")
        raster = Raster({"SR_B4": np.full((1, 1), 10000, dtype=np.uint16)})
        assert bs.scaled(raster, ROLE_RED)[0, 0] == pytest.approx(0.075)

    def test_atran_scaled(self) -> None:
        bs = band_set_for("L8")
        raster = Raster({"ST_ATRAN": np.full((1, 1), 9000, dtype=np.int16)})
        assert bs.scaled(raster, ROLE_ATRAN)[0, 0] == pytest.approx(0.9)

    def test_qa_unscaled(self) -> None:
        bs = band_set_for("L8")
        raster = Raster({"QA_PIXEL": np.full((1, 1), 21824, dtype=np.uint16)})
        assert bs.raw(raster, ROLE_QA).dtype == np.uint16
        assert bs.scaled(raster, ROLE_QA)[0, 0] == 21824.0

    def test_missing_band_in_raster(self) -> None:
        bs = band_set_for("L8")
        raster = Raster({"SR_B4": np.ones((1, 1))}, scene_id="s1")
        with pytest.raises(MissingBandError) as exc_info:
            bs.raw(raster, ROLE_NIR, stage="vegetation_index")
        assert exc_info.value.band == "SR_B5"
        assert exc_info.value.stage == "vegetation_index"


class TestCoefficientTables:
    def test_skokovic(self) -> None:
        c = ndvi_threshold_coefficients(NDVIMethod.SKOKOVIC_2014)
        assert (c.soil_emissivity, c.vegetation_emissivity) == (0.971, 0.987)
        assert (c.soil_intercept, c.soil_red_slope) == (0.979, 0.046)
        assert c.full_vegetation_emissivity == 0.99

    def test_yu_has_cavity_and_no_vegetation_constant(self) -> None:
        c = ndvi_threshold_coefficients(NDVIMethod.YU_2014)
        assert c.cavity_factor == 0.55
        assert c.full_vegetation_emissivity == c.vegetation_emissivity

    def test_sndvi_has_no_soil_regression(self) -> None:
        assert ndvi_threshold_coefficients(NDVIMethod.SNDVI).soil_intercept is None

    def test_overrides(self) -> None:
        c = ndvi_threshold_coefficients(NDVIMethod.SOBRINO_2008)
        changed = c.with_overrides(soil_emissivity=0.95)
        assert changed.soil_emissivity == 0.95
        assert changed.vegetation_emissivity == c.vegetation_emissivity
        assert c.soil_emissivity == 0.986
        assert c.with_overrides() is c

    def test_vegetation_override_replaces_full_vegetation(self) -> None:
        c = ndvi_threshold_coefficients(NDVIMethod.SKOKOVIC_2014)
        assert c.full_vegetation_emissivity == 0.99
        changed = c.with_overrides(vegetation_emissivity=0.95)
        assert changed.vegetation_emissivity == 0.95
        assert changed.full_vegetation_emissivity == 0.95

    def test_aster_convolution_l8(self) -> None:
        conv = aster_convolution_for("L8")
        assert (conv.c13, conv.c14, conv.c) == (0.6820, 0.2578, 0.0584)

    def test_aster_convolution_unknown_sensor(self) -> None:
        with pytest.raises(UnrecognizedSensorError):
            aster_convolution_for("L9")
