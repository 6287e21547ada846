"""Radiance calibration: thermal DN to top-of-atmosphere radiance.

``LTOA = DN * RADIANCE_MULT + RADIANCE_ADD`` with the scene's Level-1
rescaling constants. Landsat fill (DN 0) becomes NaN.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from landsat_lst.core.constants import LTOA_BAND
from landsat_lst.core.raster_algebra import calibrated_radiance
from landsat_lst.models.bands import ROLE_THERMAL

if TYPE_CHECKING:
    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster
    from landsat_lst.models.scene import ThermalCalibration

logger = logging.getLogger("landsat_lst.stages.radiance")

STAGE = "radiance"


def calibrate_radiance(
    raster: Raster, calibration: ThermalCalibration, band_set: BandSet
) -> Raster:
    """Add the ``LTOA`` band from the sensor's raw thermal band.

    Raises:
        MissingBandError: If the thermal DN band is absent.
    """
    dn = band_set.raw(raster, ROLE_THERMAL, stage=STAGE)
    radiance = calibrated_radiance(dn, calibration.radiance_mult, calibration.radiance_add)
    logger.debug(
        "stage=%s | scene=%s | mult=%g | add=%g",
        STAGE,
        raster.scene_id,
        calibration.radiance_mult,
        calibration.radiance_add,
    )
    return raster.with_bands({LTOA_BAND: radiance})
