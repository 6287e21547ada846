"""Atmospheric correction by radiative transfer equation inversion.

The sensor sees surface emission attenuated by the atmosphere plus the
atmosphere's own upwelling emission and the reflected downwelling sky:

    LTOA = tau * (EM * BTS + (1 - EM) * Ld) + Lu

Solving for the surface (blackbody-equivalent) radiance gives

    BTS = (LTOA - Lu - tau * (1 - EM) * Ld) / (tau * EM)

``tau``, ``Lu`` and ``Ld`` come from the Collection 2 Level-2
auxiliary bands ``ST_ATRAN``, ``ST_URAD`` and ``ST_DRAD`` after scaling.
Pixels where ``tau * EM == 0`` are NaN.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from landsat_lst.core.constants import BTS_BAND, LSE_BAND, LTOA_BAND
from landsat_lst.core.raster_algebra import as_float, safe_divide
from landsat_lst.models.bands import ROLE_ATRAN, ROLE_DRAD, ROLE_URAD

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster

logger = logging.getLogger("landsat_lst.stages.atmospheric_correction")

STAGE = "atmospheric_correction"


def surface_radiance(
    ltoa: npt.ArrayLike,
    emissivity: npt.ArrayLike,
    tau: npt.ArrayLike,
    upwelling: npt.ArrayLike,
    downwelling: npt.ArrayLike,
) -> np.ndarray:
    """Invert the RTE for the surface radiance ``BTS``."""
    em = as_float(emissivity)
    t = as_float(tau)
    numerator = as_float(ltoa) - as_float(upwelling) - t * (1.0 - em) * as_float(downwelling)
    return safe_divide(numerator, t * em)


def forward_rte(
    bts: npt.ArrayLike,
    emissivity: npt.ArrayLike,
    tau: npt.ArrayLike,
    upwelling: npt.ArrayLike,
    downwelling: npt.ArrayLike,
) -> np.ndarray:
    """At-sensor radiance for a surface radiance (inverse of ``surface_radiance``)."""
    em = as_float(emissivity)
    t = as_float(tau)
    return t * (em * as_float(bts) + (1.0 - em) * as_float(downwelling)) + as_float(upwelling)


def invert_rte(raster: Raster, band_set: BandSet, emissivity_band: str = LSE_BAND) -> Raster:
    """Add the ``BTS`` band.

    Args:
        raster: Raster carrying ``LTOA``, the emissivity band and the
            atmospheric auxiliary bands.
        band_set: The scene's sensor band table.
        emissivity_band: ``LSE`` or ``EM``, whichever the estimator wrote.

    Raises:
        MissingBandError: If any input band is absent.
    """
    raster.require(LTOA_BAND, emissivity_band, stage=STAGE)
    tau = band_set.scaled(raster, ROLE_ATRAN, stage=STAGE)
    upwelling = band_set.scaled(raster, ROLE_URAD, stage=STAGE)
    downwelling = band_set.scaled(raster, ROLE_DRAD, stage=STAGE)

    bts = surface_radiance(
        raster.band(LTOA_BAND),
        raster.band(emissivity_band),
        tau,
        upwelling,
        downwelling,
    )
    logger.debug(
        "stage=%s | scene=%s | emissivity_band=%s",
        STAGE,
        raster.scene_id,
        emissivity_band,
    )
    return raster.with_bands({BTS_BAND: bts})
