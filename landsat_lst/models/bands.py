"""Per-sensor band naming and scaling.

Landsat generations name the same physical band differently (red is
``SR_B4`` on Landsat 8 and ``SR_B3`` on Landsat 4-7). Stages address
bands by *role* and resolve the concrete name through a ``BandSet``,
which also carries the Collection 2 scale and offset for that band and
the metadata keys of the thermal calibration constants.

Roles:
- ``red`` / ``nir``: surface reflectance used by NDVI
- ``qa``: ``QA_PIXEL`` bit flags
- ``thermal``: raw top-of-atmosphere thermal DN
- ``surface_temperature``: USGS Level-2 ``ST`` product
- ``atran`` / ``urad`` / ``drad``: Level-2 atmospheric auxiliaries
- ``aster_em13`` / ``aster_em14`` / ``aster_ndvi``: ASTER GED layers
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from landsat_lst.core.config import Sensor
from landsat_lst.core.constants import (
    ASTER_EMISSIVITY_SCALE,
    ASTER_NDVI_SCALE,
    ATRAN_SCALE,
    RADIANCE_PATH_SCALE,
    REFLECTANCE_OFFSET,
    REFLECTANCE_SCALE,
    SURFACE_TEMPERATURE_OFFSET,
    SURFACE_TEMPERATURE_SCALE,
)
from landsat_lst.core.exceptions import MissingBandError
from landsat_lst.core.raster_algebra import scale_offset

if TYPE_CHECKING:
    import numpy as np

    from landsat_lst.models.raster import Raster

ROLE_BLUE = "blue"
ROLE_GREEN = "green"
ROLE_RED = "red"
ROLE_NIR = "nir"
ROLE_QA = "qa"
ROLE_THERMAL = "thermal"
ROLE_SURFACE_TEMPERATURE = "surface_temperature"
ROLE_ATRAN = "atran"
ROLE_URAD = "urad"
ROLE_DRAD = "drad"
ROLE_ASTER_EM13 = "aster_em13"
ROLE_ASTER_EM14 = "aster_em14"
ROLE_ASTER_NDVI = "aster_ndvi"

#: Roles read from the surface-reflectance (Level-2) source.
REFLECTANCE_ROLES = (
    ROLE_BLUE,
    ROLE_GREEN,
    ROLE_RED,
    ROLE_NIR,
    ROLE_QA,
    ROLE_SURFACE_TEMPERATURE,
    ROLE_ATRAN,
    ROLE_URAD,
    ROLE_DRAD,
)
#: Roles read from the top-of-atmosphere (Level-1) source.
THERMAL_ROLES = (ROLE_THERMAL,)
#: Ancillary ASTER GED roles, co-registered with the reflectance source.
ASTER_ROLES = (ROLE_ASTER_EM13, ROLE_ASTER_EM14, ROLE_ASTER_NDVI)


@dataclass(frozen=True, slots=True)
class BandScale:
    """Linear DN rescaling ``value = DN * scale + offset``."""

    scale: float = 1.0
    offset: float = 0.0


_IDENTITY = BandScale()


@dataclass(frozen=True, slots=True)
class BandSet:
    """Role → band-name table for one sensor.

    Attributes:
        sensor: The sensor this table describes.
        names: Role → concrete band name.
        scales: Role → ``BandScale``; roles without an entry are unscaled.
        thermal_suffix: Suffix of the Level-1 thermal metadata keys
            (``K1_CONSTANT_<suffix>``, ``RADIANCE_MULT_<suffix>``, ...).
    """

    sensor: Sensor
    names: Mapping[str, str]
    scales: Mapping[str, BandScale] = field(default_factory=dict)
    thermal_suffix: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))
        object.__setattr__(self, "scales", MappingProxyType(dict(self.scales)))

    def name(self, role: str, *, scene_id: str = "", stage: str = "") -> str:
        """Return the band name for *role*.

        Raises:
            MissingBandError: If the sensor defines no band for *role*.
        """
        try:
            return self.names[role]
        except KeyError:
            raise MissingBandError(role, scene_id=scene_id, stage=stage) from None

    def names_for(self, roles: tuple[str, ...]) -> tuple[str, ...]:
        """Concrete names of the *roles* this sensor defines, in order."""
        return tuple(self.names[r] for r in roles if r in self.names)

    def raw(self, raster: Raster, role: str, *, stage: str = "") -> np.ndarray:
        """Return the unscaled band for *role* from *raster*."""
        return raster.band(self.name(role, scene_id=raster.scene_id, stage=stage), stage=stage)

    def scaled(self, raster: Raster, role: str, *, stage: str = "") -> np.ndarray:
        """Return the band for *role* with its scale and offset applied."""
        factor = self.scales.get(role, _IDENTITY)
        return scale_offset(self.raw(raster, role, stage=stage), factor.scale, factor.offset)

    def metadata_key(self, prefix: str) -> str:
        """Return e.g. ``K1_CONSTANT_BAND_10`` for prefix ``K1_CONSTANT``."""
        return f"{prefix}_{self.thermal_suffix}"


# ---------------------------------------------------------------------------
# Collection 2 band tables
# ---------------------------------------------------------------------------

_COMMON_SCALES: dict[str, BandScale] = {
    ROLE_BLUE: BandScale(REFLECTANCE_SCALE, REFLECTANCE_OFFSET),
    ROLE_GREEN: BandScale(REFLECTANCE_SCALE, REFLECTANCE_OFFSET),
    ROLE_RED: BandScale(REFLECTANCE_SCALE, REFLECTANCE_OFFSET),
    ROLE_NIR: BandScale(REFLECTANCE_SCALE, REFLECTANCE_OFFSET),
    ROLE_SURFACE_TEMPERATURE: BandScale(SURFACE_TEMPERATURE_SCALE, SURFACE_TEMPERATURE_OFFSET),
    ROLE_ATRAN: BandScale(ATRAN_SCALE),
    ROLE_URAD: BandScale(RADIANCE_PATH_SCALE),
    ROLE_DRAD: BandScale(RADIANCE_PATH_SCALE),
    ROLE_ASTER_EM13: BandScale(ASTER_EMISSIVITY_SCALE),
    ROLE_ASTER_EM14: BandScale(ASTER_EMISSIVITY_SCALE),
    ROLE_ASTER_NDVI: BandScale(ASTER_NDVI_SCALE),
}

_COMMON_NAMES: dict[str, str] = {
    ROLE_QA: "QA_PIXEL",
    ROLE_ATRAN: "ST_ATRAN",
    ROLE_URAD: "ST_URAD",
    ROLE_DRAD: "ST_DRAD",
    ROLE_ASTER_EM13: "emissivity_band13",
    ROLE_ASTER_EM14: "emissivity_band14",
    ROLE_ASTER_NDVI: "ndvi",
}

_TM_ETM_NAMES: dict[str, str] = {
    **_COMMON_NAMES,
    ROLE_BLUE: "SR_B1",
    ROLE_GREEN: "SR_B2",
    ROLE_RED: "SR_B3",
    ROLE_NIR: "SR_B4",
    ROLE_SURFACE_TEMPERATURE: "ST_B6",
}

_BAND_SETS: dict[Sensor, BandSet] = {
    Sensor.L4: BandSet(
        Sensor.L4, {**_TM_ETM_NAMES, ROLE_THERMAL: "B6"}, _COMMON_SCALES, "BAND_6"
    ),
    Sensor.L5: BandSet(
        Sensor.L5, {**_TM_ETM_NAMES, ROLE_THERMAL: "B6"}, _COMMON_SCALES, "BAND_6"
    ),
    Sensor.L7: BandSet(
        Sensor.L7,
        {**_TM_ETM_NAMES, ROLE_THERMAL: "B6_VCID_1"},
        _COMMON_SCALES,
        "BAND_6_VCID_1",
    ),
    Sensor.L8: BandSet(
        Sensor.L8,
        {
            **_COMMON_NAMES,
            ROLE_BLUE: "SR_B2",
            ROLE_GREEN: "SR_B3",
            ROLE_RED: "SR_B4",
            ROLE_NIR: "SR_B5",
            ROLE_SURFACE_TEMPERATURE: "ST_B10",
            ROLE_THERMAL: "B10",
        },
        _COMMON_SCALES,
        "BAND_10",
    ),
}


def band_set_for(sensor: str | Sensor) -> BandSet:
    """Return the Collection 2 band table for *sensor*.

    Raises:
        UnrecognizedSensorError: If *sensor* is not supported.
    """
    return _BAND_SETS[Sensor.parse(sensor)]
