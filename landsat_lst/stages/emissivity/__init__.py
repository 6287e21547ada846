"""Land surface emissivity stage.

Emissivity is estimated by one of two interchangeable strategies behind
the ``EmissivityEstimator`` interface, selected by configuration:

- **_ndvi_threshold**: three-class NDVI-threshold model (Sobrino 2008,
  Skoković 2014, Yu 2014, SNDVI), written as ``LSE``
- **_aster_hybrid**: ASTER GED based ``EM0`` / ``EMd`` or the NDVI-based
  ``NBEM``, written as ``EM``

``build_estimator`` resolves the coefficient tables for the configured
sensor and method once per run. An unknown sensor raises
``UnrecognizedSensorError`` here, before any scene is processed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from landsat_lst.core.config import EmissivityStrategy
from landsat_lst.models.coefficients import aster_convolution_for, ndvi_threshold_coefficients
from landsat_lst.stages.emissivity._aster_hybrid import (
    AsterHybridEstimator,
    bare_surface_emissivity,
    convolve,
)
from landsat_lst.stages.emissivity._base import STAGE, EmissivityEstimator
from landsat_lst.stages.emissivity._ndvi_threshold import (
    NDVIThresholdEstimator,
    three_class_emissivity,
)

if TYPE_CHECKING:
    from landsat_lst.core.config import RetrievalConfig

logger = logging.getLogger("landsat_lst.stages.emissivity")


def build_estimator(config: RetrievalConfig) -> EmissivityEstimator:
    """Create the emissivity strategy described by *config*.

    Raises:
        UnrecognizedSensorError: If the configured sensor has no
            coefficient set.
        ConfigValidationError: If the strategy, method or hybrid output
            is not a known value.
    """
    sensor = config.sensor_id
    coefficients = ndvi_threshold_coefficients(config.method).with_overrides(
        soil_emissivity=config.soil_emissivity,
        vegetation_emissivity=config.vegetation_emissivity,
    )

    estimator: EmissivityEstimator
    if config.strategy is EmissivityStrategy.ASTER_HYBRID:
        estimator = AsterHybridEstimator(
            aster_convolution_for(sensor),
            config.output,
            coefficients,
            soil_threshold=config.soil_threshold,
            vegetation_threshold=config.vegetation_threshold,
            water_emissivity=config.water_emissivity,
            snow_emissivity=config.snow_emissivity,
        )
    else:
        estimator = NDVIThresholdEstimator(
            coefficients,
            soil_threshold=config.soil_threshold,
            vegetation_threshold=config.vegetation_threshold,
            water_emissivity=config.water_emissivity,
        )

    logger.info(
        "Emissivity estimator ready | strategy=%s | sensor=%s | method=%s | output_band=%s",
        estimator.name,
        sensor.value,
        coefficients.method.value,
        estimator.output_band,
    )
    return estimator


__all__ = [
    "STAGE",
    "AsterHybridEstimator",
    "EmissivityEstimator",
    "NDVIThresholdEstimator",
    "bare_surface_emissivity",
    "build_estimator",
    "convolve",
    "three_class_emissivity",
]
