"""Vegetation index stage: NDVI and fractional vegetation cover.

``compute_ndvi`` works on Collection 2 surface reflectance after the
sensor's scale and offset have been applied. ``compute_fvc`` maps NDVI
to a [0, 1] vegetated fraction with the squared scaled-NDVI model of
Carlson & Ripley (1997):

    FVC = clamp(((NDVI - s_th) / (v_th - s_th)) ** 2, 0, 1)

The square is applied before clamping, so NDVI far below ``s_th`` maps
to a large value that the ceiling brings back to 1. This is the
published formula and is kept as is.

Both functions fail only when a required band is absent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.constants import (
    DEFAULT_SOIL_THRESHOLD,
    DEFAULT_VEGETATION_THRESHOLD,
    FVC_BAND,
    NDVI_BAND,
)
from landsat_lst.core.raster_algebra import as_float, clamp, safe_divide
from landsat_lst.models.bands import ROLE_NIR, ROLE_RED

if TYPE_CHECKING:
    import numpy.typing as npt

    from landsat_lst.core.config import RetrievalConfig
    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.vegetation_index")

STAGE = "vegetation_index"


def ndvi(red: npt.ArrayLike, nir: npt.ArrayLike) -> np.ndarray:
    """Normalised difference of scaled reflectances; NaN where both are zero."""
    red_f = as_float(red)
    nir_f = as_float(nir)
    return safe_divide(nir_f - red_f, nir_f + red_f)


def fractional_vegetation_cover(
    ndvi_values: npt.ArrayLike,
    soil_threshold: float = DEFAULT_SOIL_THRESHOLD,
    vegetation_threshold: float = DEFAULT_VEGETATION_THRESHOLD,
) -> np.ndarray:
    """Squared scaled NDVI clamped to [0, 1]. NaN NDVI stays NaN."""
    scaled = (as_float(ndvi_values) - soil_threshold) / (vegetation_threshold - soil_threshold)
    return clamp(np.square(scaled), 0.0, 1.0)


def compute_ndvi(raster: Raster, band_set: BandSet) -> Raster:
    """Add the ``NDVI`` band.

    Raises:
        MissingBandError: If the red or NIR band is absent.
    """
    red = band_set.scaled(raster, ROLE_RED, stage=STAGE)
    nir = band_set.scaled(raster, ROLE_NIR, stage=STAGE)
    values = ndvi(red, nir)
    logger.debug(
        "stage=%s band=%s | scene=%s | defined=%d/%d",
        STAGE,
        NDVI_BAND,
        raster.scene_id,
        int(np.isfinite(values).sum()),
        values.size,
    )
    return raster.with_bands({NDVI_BAND: values})


def compute_fvc(raster: Raster, config: RetrievalConfig | None = None) -> Raster:
    """Add the ``FVC`` band from ``NDVI`` using the configured thresholds.

    Raises:
        MissingBandError: If ``NDVI`` is absent.
    """
    soil = config.soil_threshold if config is not None else DEFAULT_SOIL_THRESHOLD
    vegetation = (
        config.vegetation_threshold if config is not None else DEFAULT_VEGETATION_THRESHOLD
    )
    values = fractional_vegetation_cover(raster.band(NDVI_BAND, stage=STAGE), soil, vegetation)
    logger.debug(
        "stage=%s band=%s | scene=%s | s_th=%.3f | v_th=%.3f",
        STAGE,
        FVC_BAND,
        raster.scene_id,
        soil,
        vegetation,
    )
    return raster.with_bands({FVC_BAND: values})
