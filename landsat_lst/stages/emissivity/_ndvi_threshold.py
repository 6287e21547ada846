"""NDVI-threshold emissivity (three-class piecewise model).

Classes are decided by strict comparisons against the thresholds, so a
pixel whose NDVI equals ``s_th`` or ``v_th`` stays in the mixed class:

1. base: mixed blend of vegetation and soil emissivity by FVC
2. ``NDVI < s_th``: soil regression on scaled red reflectance
3. ``NDVI > v_th``: full vegetation
4. water flag: water emissivity (always wins)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.constants import (
    DEFAULT_SOIL_THRESHOLD,
    DEFAULT_VEGETATION_THRESHOLD,
    DEFAULT_WATER_EMISSIVITY,
    LSE_BAND,
    QAFlag,
)
from landsat_lst.core.raster_algebra import as_float, bit_is_set, where
from landsat_lst.models.bands import ROLE_RED
from landsat_lst.stages.emissivity._base import STAGE, EmissivityEstimator

if TYPE_CHECKING:
    import numpy.typing as npt

    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.coefficients import NDVIThresholdCoefficients
    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.emissivity")


def three_class_emissivity(
    ndvi: npt.ArrayLike,
    fvc: npt.ArrayLike,
    coefficients: NDVIThresholdCoefficients,
    *,
    red: npt.ArrayLike | None = None,
    soil_threshold: float = DEFAULT_SOIL_THRESHOLD,
    vegetation_threshold: float = DEFAULT_VEGETATION_THRESHOLD,
) -> np.ndarray:
    """Soil / mixed / vegetation emissivity without any QA override.

    *red* (scaled reflectance) is required when the coefficient set has a
    soil regression; sets without one use ``e_s`` for the soil class.
    """
    ndvi_f = as_float(ndvi)
    fvc_f = as_float(fvc)
    e_s = coefficients.soil_emissivity
    e_v = coefficients.vegetation_emissivity

    cavity = (1.0 - e_s) * e_v * coefficients.cavity_factor * (1.0 - fvc_f)
    mixed = e_v * fvc_f + e_s * (1.0 - fvc_f) + cavity

    if coefficients.soil_intercept is None:
        soil: npt.ArrayLike = np.full_like(ndvi_f, e_s)
    else:
        if red is None:
            msg = f"{coefficients.method.value} soil class needs scaled red reflectance"
            raise ValueError(msg)
        soil = coefficients.soil_intercept - coefficients.soil_red_slope * as_float(red)
    vegetation = coefficients.full_vegetation_emissivity + cavity

    with np.errstate(invalid="ignore"):
        is_soil = ndvi_f < soil_threshold
        is_vegetation = ndvi_f > vegetation_threshold

    emissivity = where(is_soil, soil, mixed)
    return where(is_vegetation, vegetation, emissivity)


class NDVIThresholdEstimator(EmissivityEstimator):
    """Three-class NDVI-threshold emissivity written as ``LSE``.

    Args:
        coefficients: The selected published coefficient set (with any
            configured ``e_s`` / ``e_v`` overrides already applied).
        soil_threshold: ``s_th``.
        vegetation_threshold: ``v_th``.
        water_emissivity: Value prescribed for water-flagged pixels.
    """

    name = "ndvi_threshold"
    output_band = LSE_BAND

    def __init__(
        self,
        coefficients: NDVIThresholdCoefficients,
        *,
        soil_threshold: float = DEFAULT_SOIL_THRESHOLD,
        vegetation_threshold: float = DEFAULT_VEGETATION_THRESHOLD,
        water_emissivity: float = DEFAULT_WATER_EMISSIVITY,
    ) -> None:
        self.coefficients = coefficients
        self.soil_threshold = soil_threshold
        self.vegetation_threshold = vegetation_threshold
        self.water_emissivity = water_emissivity

    def estimate(self, raster: Raster, band_set: BandSet) -> Raster:
        ndvi, fvc, qa = self._common_inputs(raster, band_set)
        red = None
        if self.coefficients.soil_intercept is not None:
            red = band_set.scaled(raster, ROLE_RED, stage=STAGE)

        emissivity = three_class_emissivity(
            ndvi,
            fvc,
            self.coefficients,
            red=red,
            soil_threshold=self.soil_threshold,
            vegetation_threshold=self.vegetation_threshold,
        )
        water = bit_is_set(qa, QAFlag.WATER)
        emissivity = where(water, self.water_emissivity, emissivity)

        logger.debug(
            "stage=%s strategy=%s | scene=%s | method=%s | water_pixels=%d",
            STAGE,
            self.name,
            raster.scene_id,
            self.coefficients.method.value,
            int(water.sum()),
        )
        return raster.with_bands({self.output_band: emissivity})
