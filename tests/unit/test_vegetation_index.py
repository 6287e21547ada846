"""Tests for the NDVI and fractional vegetation cover stage."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from landsat_lst.core.config import RetrievalConfig
from landsat_lst.core.exceptions import MissingBandError
from landsat_lst.models.bands import BandSet
from landsat_lst.models.raster import Raster
from landsat_lst.stages.vegetation_index import (
    compute_fvc,
    compute_ndvi,
    fractional_vegetation_cover,
    ndvi,
)


class TestNdvi:
    def test_formula(self) -> None:
        assert ndvi(0.2, 0.4) == pytest.approx(1.0 / 3.0)

    def test_zero_sum_is_nan(self) -> None:
        assert np.isnan(ndvi(np.array([0.0]), np.array([0.0]))[0])

    def test_range(self) -> None:
        values = ndvi(np.array([0.0, 0.5, 0.1]), np.array([0.5, 0.0, 0.1]))
        np.testing.assert_allclose(values, [1.0, -1.0, 0.0])


class TestFractionalVegetationCover:
    def test_mixed(self) -> None:
        assert fractional_vegetation_cover(1.0 / 3.0, 0.2, 0.5) == pytest.approx(16.0 / 81.0)

    def test_at_thresholds(self) -> None:
        out = fractional_vegetation_cover(np.array([0.2, 0.5]), 0.2, 0.5)
        np.testing.assert_allclose(out, [0.0, 1.0])

    def test_above_vegetation_threshold_clamped(self) -> None:
        assert fractional_vegetation_cover(0.9, 0.2, 0.5) == 1.0

    def test_square_before_clamp(self) -> None:
        # far below s_th the square is large and the ceiling brings it to 1
        assert fractional_vegetation_cover(-0.5, 0.2, 0.5) == 1.0
        assert fractional_vegetation_cover(0.1, 0.2, 0.5) == pytest.approx(1.0 / 9.0)

    def test_nan_stays_nan(self) -> None:
        assert np.isnan(fractional_vegetation_cover(np.array([np.nan]))[0])


class TestVegetationStage:
    def test_adds_ndvi_and_fvc(self, reflectance_raster: Raster, band_set: BandSet) -> None:
        out = compute_fvc(compute_ndvi(reflectance_raster, band_set))
        assert out.has_band("NDVI")
        assert out.has_band("FVC")
        np.testing.assert_allclose(out.band("NDVI"), 1.0 / 3.0)
        np.testing.assert_allclose(out.band("FVC"), 16.0 / 81.0)
        assert not reflectance_raster.has_band("NDVI")

    def test_configured_thresholds(self, reflectance_raster: Raster, band_set: BandSet) -> None:
        cfg = RetrievalConfig(soil_threshold=0.0, vegetation_threshold=2.0 / 3.0)
        out = compute_fvc(compute_ndvi(reflectance_raster, band_set), cfg)
        np.testing.assert_allclose(out.band("FVC"), 0.25)

    def test_missing_red_raises(
        self, make_reflectance: Callable[..., Raster], band_set: BandSet
    ) -> None:
        raster = make_reflectance(drop=("SR_B4",))
        with pytest.raises(MissingBandError) as exc_info:
            compute_ndvi(raster, band_set)
        assert exc_info.value.band == "SR_B4"
        assert exc_info.value.stage == "vegetation_index"

    def test_fvc_without_ndvi_raises(self, reflectance_raster: Raster) -> None:
        with pytest.raises(MissingBandError, match="NDVI"):
            compute_fvc(reflectance_raster)
