"""Optional quality stages driven by ``QA_PIXEL`` and the Level-2 product.

- ``mask_clouds``: drop cloud and cloud-shadow pixels from the mask
- ``compute_surface_temperature``: add the USGS ``ST`` product in Kelvin
  so it can be compared with the retrieved ``LST``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.constants import FILL_DN, ST_BAND, QAFlag
from landsat_lst.core.raster_algebra import bit_is_set
from landsat_lst.models.bands import ROLE_QA, ROLE_SURFACE_TEMPERATURE

if TYPE_CHECKING:
    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.quality")

STAGE = "quality"


def mask_clouds(raster: Raster, band_set: BandSet) -> Raster:
    """Return a raster whose mask also excludes cloud and cloud shadow.

    Band values are untouched; only the validity mask narrows.

    Raises:
        MissingBandError: If the QA band is absent.
    """
    qa = band_set.raw(raster, ROLE_QA, stage=STAGE)
    cloudy = bit_is_set(qa, QAFlag.CLOUD) | bit_is_set(qa, QAFlag.CLOUD_SHADOW)
    logger.debug(
        "stage=%s step=cloud_mask | scene=%s | masked=%d/%d",
        STAGE,
        raster.scene_id,
        int(cloudy.sum()),
        cloudy.size,
    )
    return raster.update_mask(~cloudy)


def compute_surface_temperature(raster: Raster, band_set: BandSet) -> Raster:
    """Add ``ST``, the Collection 2 Level-2 surface temperature in Kelvin.

    Raises:
        MissingBandError: If the surface temperature band is absent.
    """
    raw = band_set.raw(raster, ROLE_SURFACE_TEMPERATURE, stage=STAGE)
    kelvin = band_set.scaled(raster, ROLE_SURFACE_TEMPERATURE, stage=STAGE)
    return raster.with_bands({ST_BAND: np.where(raw == FILL_DN, np.nan, kelvin)})
