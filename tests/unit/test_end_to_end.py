"""End-to-end retrieval on a synthetic uniform Landsat 8 scene.

Inputs (after scaling): red 0.2, NIR 0.4, tau 0.9, Lu 1.0, Ld 2.0,
LTOA 10.0, K1 774.89, K2 1321.08. The intermediate values follow by hand:

    NDVI = 1/3, FVC = 16/81
    LSE  = 0.971 + 0.016 * 16/81            (Skoković 2014, mixed class)
    BTS  = (10 - 1 - 0.9 * (1 - LSE) * 2) / (0.9 * LSE)
    LST  = 1321.08 / ln(1 + 774.89 / BTS)  ≈ 304.24 K
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from landsat_lst.catalogs.memory import InMemoryCatalog
from landsat_lst.core.config import RetrievalConfig
from landsat_lst.models.bands import BandSet
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import ThermalCalibration
from landsat_lst.orchestrators.lst_pipeline import run_pipeline
from landsat_lst.stages.atmospheric_correction import invert_rte
from landsat_lst.stages.emissivity import build_estimator
from landsat_lst.stages.radiance import calibrate_radiance
from landsat_lst.stages.temperature import invert_planck, to_celsius
from landsat_lst.stages.vegetation_index import compute_fvc, compute_ndvi

FVC = 16.0 / 81.0
LSE = 0.971 + 0.016 * FVC
BTS = (10.0 - 1.0 - 0.9 * (1.0 - LSE) * 2.0) / (0.9 * LSE)
LST = 1321.08 / np.log(1.0 + 774.89 / BTS)


class TestStageChain:
    """Chaining the stage functions by hand."""

    def test_pinned_values(
        self,
        reflectance_raster: Raster,
        thermal_raster: Raster,
        calibration: ThermalCalibration,
        band_set: BandSet,
        config: RetrievalConfig,
    ) -> None:
        raster = compute_fvc(compute_ndvi(reflectance_raster, band_set), config)
        raster = build_estimator(config).estimate(raster, band_set)
        raster = calibrate_radiance(raster.combine(thermal_raster), calibration, band_set)
        raster = invert_rte(raster, band_set, "LSE")
        raster = to_celsius(invert_planck(raster, calibration.k1, calibration.k2))

        np.testing.assert_allclose(raster.band("NDVI"), 1.0 / 3.0)
        np.testing.assert_allclose(raster.band("FVC"), FVC)
        np.testing.assert_allclose(raster.band("LSE"), LSE)
        np.testing.assert_allclose(raster.band("LTOA"), 10.0)
        np.testing.assert_allclose(raster.band("BTS"), BTS)
        np.testing.assert_allclose(raster.band("LST"), LST)
        np.testing.assert_allclose(raster.band("LSTC"), LST - 273.15)

    def test_lst_magnitude(self) -> None:
        assert BTS == pytest.approx(10.2122, abs=1e-3)
        assert LST == pytest.approx(304.24, abs=0.01)


class TestPipelineRun:
    """The same scene through ``run_pipeline``."""

    def test_pinned_values(
        self, make_catalogs: Callable[..., tuple[InMemoryCatalog, InMemoryCatalog]]
    ) -> None:
        reflectance, thermal = make_catalogs()
        result = run_pipeline(reflectance, thermal, RetrievalConfig())

        assert len(result.rasters) == 1
        raster = result.rasters[0]
        np.testing.assert_allclose(raster.band("LST"), LST)
        np.testing.assert_allclose(raster.band("LSTC"), LST - 273.15)
        assert raster.properties["emissivity_band"] == "LSE"
        assert raster.properties["k1"] == 774.89

        outcome = result.outcomes[0]
        assert outcome["state"] == "finalized"
        assert outcome["lst"]["valid_pixels"] == 6
        assert outcome["lst"]["mean"] == pytest.approx(LST)

    def test_usgs_st_included(
        self, make_catalogs: Callable[..., tuple[InMemoryCatalog, InMemoryCatalog]]
    ) -> None:
        reflectance, thermal = make_catalogs()
        result = run_pipeline(reflectance, thermal, RetrievalConfig(include_usgs_st=True))
        st = result.rasters[0].band("ST")
        np.testing.assert_allclose(st, 45000 * 0.00341802 + 149.0)
