"""EmissivityEstimator abstract base class.

Every emissivity strategy implements ``estimate(raster, band_set)``: it
reads ``NDVI``, ``FVC`` and the QA band from the raster and returns a
new raster carrying its ``output_band``. Per-pixel class assignment and
overrides are ordered masked assignments over a base array, applied in
a fixed precedence where later assignments win.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from landsat_lst.core.constants import FVC_BAND, NDVI_BAND
from landsat_lst.models.bands import ROLE_QA

if TYPE_CHECKING:
    import numpy as np

    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster

STAGE = "emissivity"


class EmissivityEstimator(abc.ABC):
    """Abstract base class for land surface emissivity strategies.

    Example usage::

        estimator = build_estimator(config)
        raster = estimator.estimate(raster, band_set)
        emissivity = raster.band(estimator.output_band)
    """

    #: Registry-style identifier of the strategy.
    name: str = ""
    #: Band the strategy writes.
    output_band: str = ""

    @abc.abstractmethod
    def estimate(self, raster: Raster, band_set: BandSet) -> Raster:
        """Return a new raster with ``output_band`` added.

        Raises:
            MissingBandError: If ``NDVI``, ``FVC``, QA or a band the
                strategy reads is absent.
        """

    def _common_inputs(
        self, raster: Raster, band_set: BandSet
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return ``(ndvi, fvc, qa)``, raising for the first absent band."""
        raster.require(NDVI_BAND, FVC_BAND, stage=STAGE)
        qa = band_set.raw(raster, ROLE_QA, stage=STAGE)
        return raster.band(NDVI_BAND), raster.band(FVC_BAND), qa

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, output_band={self.output_band!r})"
