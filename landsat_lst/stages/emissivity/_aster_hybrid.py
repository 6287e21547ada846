"""ASTER GED hybrid emissivity (Ermida et al. 2020).

Three interchangeable paths, one of which is selected by configuration
and written as ``EM``:

- ``EM0``: ASTER bands 13/14 convolved to the Landsat thermal band
- ``EMd``: the same convolution on a bare-surface proxy, then blended
  with full-vegetation emissivity by the scene's FVC
- ``NBEM``: the NDVI-threshold three-class model

Only the selected path is evaluated, so the ASTER layers are required
only for ``EM0`` and ``EMd``. Overrides on the selected output, later
wins: water flag, then snow/ice flag.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.config import HybridOutput
from landsat_lst.core.constants import (
    ASTER_SOIL_NDVI,
    ASTER_VEGETATION_EMISSIVITY,
    ASTER_VEGETATION_NDVI,
    DEFAULT_SNOW_EMISSIVITY,
    DEFAULT_SOIL_THRESHOLD,
    DEFAULT_VEGETATION_THRESHOLD,
    DEFAULT_WATER_EMISSIVITY,
    EM_BAND,
    QAFlag,
)
from landsat_lst.core.raster_algebra import as_float, bit_is_set, safe_divide, where
from landsat_lst.models.bands import ROLE_ASTER_EM13, ROLE_ASTER_EM14, ROLE_ASTER_NDVI, ROLE_RED
from landsat_lst.stages.emissivity._base import STAGE, EmissivityEstimator
from landsat_lst.stages.emissivity._ndvi_threshold import three_class_emissivity
from landsat_lst.stages.vegetation_index import fractional_vegetation_cover

if TYPE_CHECKING:
    import numpy.typing as npt

    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.coefficients import AsterConvolution, NDVIThresholdCoefficients
    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.emissivity")


def convolve(
    em13: npt.ArrayLike, em14: npt.ArrayLike, convolution: AsterConvolution
) -> np.ndarray:
    """``c13 * EM13 + c14 * EM14 + c`` on scaled ASTER emissivities."""
    return convolution.c13 * as_float(em13) + convolution.c14 * as_float(em14) + convolution.c


def bare_surface_emissivity(emissivity: npt.ArrayLike, aster_fvc: npt.ArrayLike) -> np.ndarray:
    """Remove the vegetation contribution from an ASTER emissivity band.

    ``(EM - 0.99 * FVCa) / (1 - FVCa)``; fully vegetated ASTER pixels
    (``FVCa == 1``) are NaN.
    """
    fvca = as_float(aster_fvc)
    return safe_divide(as_float(emissivity) - ASTER_VEGETATION_EMISSIVITY * fvca, 1.0 - fvca)


class AsterHybridEstimator(EmissivityEstimator):
    """ASTER-hybrid emissivity written as ``EM``.

    Args:
        convolution: Sensor-specific ASTER → Landsat coefficients.
        output: Which path to evaluate.
        ndvi_coefficients: Coefficient set used by the ``NBEM`` path.
        soil_threshold: ``s_th`` of the ``NBEM`` path.
        vegetation_threshold: ``v_th`` of the ``NBEM`` path.
        water_emissivity: Value prescribed for water-flagged pixels.
        snow_emissivity: Value prescribed for snow/ice-flagged pixels.
    """

    name = "aster_hybrid"
    output_band = EM_BAND

    def __init__(
        self,
        convolution: AsterConvolution,
        output: HybridOutput,
        ndvi_coefficients: NDVIThresholdCoefficients,
        *,
        soil_threshold: float = DEFAULT_SOIL_THRESHOLD,
        vegetation_threshold: float = DEFAULT_VEGETATION_THRESHOLD,
        water_emissivity: float = DEFAULT_WATER_EMISSIVITY,
        snow_emissivity: float = DEFAULT_SNOW_EMISSIVITY,
    ) -> None:
        self.convolution = convolution
        self.output = output
        self.ndvi_coefficients = ndvi_coefficients
        self.soil_threshold = soil_threshold
        self.vegetation_threshold = vegetation_threshold
        self.water_emissivity = water_emissivity
        self.snow_emissivity = snow_emissivity

    def estimate(self, raster: Raster, band_set: BandSet) -> Raster:
        ndvi, fvc, qa = self._common_inputs(raster, band_set)

        if self.output is HybridOutput.NBEM:
            emissivity = self._ndvi_based(raster, band_set, ndvi, fvc)
        elif self.output is HybridOutput.EM0:
            emissivity = self._static(raster, band_set)
        else:
            emissivity = self._dynamic(raster, band_set, fvc)

        water = bit_is_set(qa, QAFlag.WATER)
        snow = bit_is_set(qa, QAFlag.SNOW)
        emissivity = where(water, self.water_emissivity, emissivity)
        emissivity = where(snow, self.snow_emissivity, emissivity)

        logger.debug(
            "stage=%s strategy=%s | scene=%s | output=%s | water_pixels=%d | snow_pixels=%d",
            STAGE,
            self.name,
            raster.scene_id,
            self.output.value,
            int(water.sum()),
            int(snow.sum()),
        )
        return raster.with_bands({self.output_band: emissivity})

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _static(self, raster: Raster, band_set: BandSet) -> np.ndarray:
        em13 = band_set.scaled(raster, ROLE_ASTER_EM13, stage=STAGE)
        em14 = band_set.scaled(raster, ROLE_ASTER_EM14, stage=STAGE)
        return convolve(em13, em14, self.convolution)

    def _dynamic(self, raster: Raster, band_set: BandSet, fvc: np.ndarray) -> np.ndarray:
        em13 = band_set.scaled(raster, ROLE_ASTER_EM13, stage=STAGE)
        em14 = band_set.scaled(raster, ROLE_ASTER_EM14, stage=STAGE)
        aster_ndvi = band_set.scaled(raster, ROLE_ASTER_NDVI, stage=STAGE)
        aster_fvc = fractional_vegetation_cover(
            aster_ndvi, ASTER_SOIL_NDVI, ASTER_VEGETATION_NDVI
        )
        em_bare = convolve(
            bare_surface_emissivity(em13, aster_fvc),
            bare_surface_emissivity(em14, aster_fvc),
            self.convolution,
        )
        fvc_f = as_float(fvc)
        return fvc_f * ASTER_VEGETATION_EMISSIVITY + (1.0 - fvc_f) * em_bare

    def _ndvi_based(
        self, raster: Raster, band_set: BandSet, ndvi: np.ndarray, fvc: np.ndarray
    ) -> np.ndarray:
        red = None
        if self.ndvi_coefficients.soil_intercept is not None:
            red = band_set.scaled(raster, ROLE_RED, stage=STAGE)
        return three_class_emissivity(
            ndvi,
            fvc,
            self.ndvi_coefficients,
            red=red,
            soil_threshold=self.soil_threshold,
            vegetation_threshold=self.vegetation_threshold,
        )
