"""Shared retrieval constants: the single source of truth.

Centralises output band names, Landsat Collection 2 scale factors, QA
bit positions, and model defaults that would otherwise be duplicated
across stages, catalogs, and the orchestrator.

References:
    USGS Landsat Collection 2 Level-2 Science Product Guide
    Ermida et al. (2020), Remote Sensing 12(9), 1471
"""

from __future__ import annotations

import enum

# ---------------------------------------------------------------------------
# Output band names
# ---------------------------------------------------------------------------

NDVI_BAND = "NDVI"
FVC_BAND = "FVC"
LSE_BAND = "LSE"
"""Emissivity band written by the NDVI-threshold estimator."""
EM_BAND = "EM"
"""Emissivity band written by the ASTER-hybrid estimator."""
LTOA_BAND = "LTOA"
BTS_BAND = "BTS"
LST_BAND = "LST"
LSTC_BAND = "LSTC"
ST_BAND = "ST"

# ---------------------------------------------------------------------------
# Collection 2 scale factors (DN * scale + offset)
# ---------------------------------------------------------------------------

REFLECTANCE_SCALE = 0.0000275
REFLECTANCE_OFFSET = -0.2
ATRAN_SCALE = 0.0001
RADIANCE_PATH_SCALE = 0.001
"""Scale of ``ST_URAD`` / ``ST_DRAD`` to W/(m2 sr um)."""
SURFACE_TEMPERATURE_SCALE = 0.00341802
SURFACE_TEMPERATURE_OFFSET = 149.0
ASTER_EMISSIVITY_SCALE = 0.001
ASTER_NDVI_SCALE = 0.01

#: Landsat fill value for unsigned integer products.
FILL_DN = 0

KELVIN_OFFSET = 273.15


# ---------------------------------------------------------------------------
# QA_PIXEL bits
# ---------------------------------------------------------------------------


class QAFlag(enum.IntEnum):
    """Bit positions of the Collection 2 ``QA_PIXEL`` band used here."""

    CLOUD = 3
    CLOUD_SHADOW = 4
    SNOW = 5
    WATER = 7


# ---------------------------------------------------------------------------
# Model defaults
# ---------------------------------------------------------------------------

DEFAULT_SOIL_THRESHOLD = 0.2
DEFAULT_VEGETATION_THRESHOLD = 0.5
DEFAULT_WATER_EMISSIVITY = 0.991
DEFAULT_SNOW_EMISSIVITY = 0.989

#: Emissivity of full vegetation used by the ASTER vegetation correction.
ASTER_VEGETATION_EMISSIVITY = 0.99
#: NDVI thresholds of the ASTER GED bare-surface correction.
ASTER_SOIL_NDVI = 0.2
ASTER_VEGETATION_NDVI = 0.86
