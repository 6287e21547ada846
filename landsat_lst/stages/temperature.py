"""Planck inversion of surface radiance to temperature.

``LST = K2 / ln(1 + K1 / BTS)`` in Kelvin. The logarithm is defined
only for ``BTS > 0``; every other pixel, and any non-finite result, is
NaN. ``to_celsius`` adds ``LSTC = LST - 273.15``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.constants import BTS_BAND, KELVIN_OFFSET, LST_BAND, LSTC_BAND
from landsat_lst.core.raster_algebra import as_float

if TYPE_CHECKING:
    import numpy.typing as npt

    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.temperature")

STAGE = "temperature"


def planck_temperature(radiance: npt.ArrayLike, k1: float, k2: float) -> np.ndarray:
    """Inverse Planck function. NaN where the logarithm is undefined."""
    bts = as_float(radiance)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        argument = 1.0 + k1 / bts
        lst = k2 / np.log(argument)
        defined = (bts > 0.0) & (argument > 0.0) & np.isfinite(lst)
    return np.where(defined, lst, np.nan)


def invert_planck(raster: Raster, k1: float, k2: float) -> Raster:
    """Add the ``LST`` band (Kelvin).

    Raises:
        MissingBandError: If ``BTS`` is absent.
    """
    lst = planck_temperature(raster.band(BTS_BAND, stage=STAGE), k1, k2)
    logger.debug(
        "stage=%s | scene=%s | k1=%.4f | k2=%.4f | defined=%d/%d",
        STAGE,
        raster.scene_id,
        k1,
        k2,
        int(np.isfinite(lst).sum()),
        lst.size,
    )
    return raster.with_bands({LST_BAND: lst})


def to_celsius(raster: Raster) -> Raster:
    """Add the ``LSTC`` band (degrees Celsius)."""
    return raster.with_bands({LSTC_BAND: raster.band(LST_BAND, stage=STAGE) - KELVIN_OFFSET})
