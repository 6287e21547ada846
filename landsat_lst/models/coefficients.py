"""Emissivity coefficient tables.

Immutable, loaded once, selected by configuration. Nothing here is
computed per pixel; the estimators in ``landsat_lst.stages.emissivity``
read these values.

NDVI-threshold sets (per class)::

    soil        e = a - b * red        (or e_s when the set has no red term)
    mixed       e = e_v * FVC + e_s * (1 - FVC) + ci
    vegetation  e = e_veg + ci         (e_veg defaults to e_v; a configured e_v replaces it)

    ci = (1 - e_s) * e_v * F * (1 - FVC)    (cavity term, F = 0 disables)

References:
    Sobrino et al. (2008), IEEE TGRS 46(2), 316-327
    Skoković et al. (2014), RAQRS IV
    Yu et al. (2014), Remote Sensing 6(10), 9829-9852
    Ermida et al. (2020), Remote Sensing 12(9), 1471
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from landsat_lst.core.config import NDVIMethod, Sensor
from landsat_lst.models._checks import check_range


@dataclass(frozen=True, slots=True)
class NDVIThresholdCoefficients:
    """One published NDVI-threshold emissivity parameterisation.

    Attributes:
        method: The coefficient set's identifier.
        soil_emissivity: ``e_s``, bare-soil emissivity of the mixed blend.
        vegetation_emissivity: ``e_v``, vegetation emissivity of the blend.
        soil_intercept: ``a`` of the soil-class red regression, or ``None``
            when the soil class uses ``e_s`` directly.
        soil_red_slope: ``b`` of the soil-class red regression.
        vegetation_class_emissivity: Full-vegetation value, or ``None`` for ``e_v``.
        cavity_factor: Geometric factor ``F`` of the cavity term.
    """

    method: NDVIMethod
    soil_emissivity: float
    vegetation_emissivity: float
    soil_intercept: float | None = None
    soil_red_slope: float = 0.0
    vegetation_class_emissivity: float | None = None
    cavity_factor: float = 0.0

    def __post_init__(self) -> None:
        name = "NDVIThresholdCoefficients"
        check_range(name, "soil_emissivity", self.soil_emissivity, 0.0, 1.0)
        check_range(name, "vegetation_emissivity", self.vegetation_emissivity, 0.0, 1.0)
        check_range(name, "cavity_factor", self.cavity_factor, 0.0, 1.0)

    @property
    def full_vegetation_emissivity(self) -> float:
        if self.vegetation_class_emissivity is None:
            return self.vegetation_emissivity
        return self.vegetation_class_emissivity

    def with_overrides(
        self,
        soil_emissivity: float | None = None,
        vegetation_emissivity: float | None = None,
    ) -> NDVIThresholdCoefficients:
        """Return a copy with ``e_s`` and/or ``e_v`` replaced.

        A replaced ``e_v`` also becomes the full-vegetation class value.
        """
        changes: dict[str, float] = {}
        if soil_emissivity is not None:
            changes["soil_emissivity"] = soil_emissivity
        if vegetation_emissivity is not None:
            changes["vegetation_emissivity"] = vegetation_emissivity
            changes["vegetation_class_emissivity"] = vegetation_emissivity
        return dataclasses.replace(self, **changes) if changes else self


NDVI_THRESHOLD_COEFFICIENTS: dict[NDVIMethod, NDVIThresholdCoefficients] = {
    NDVIMethod.SKOKOVIC_2014: NDVIThresholdCoefficients(
        NDVIMethod.SKOKOVIC_2014,
        soil_emissivity=0.971,
        vegetation_emissivity=0.987,
        soil_intercept=0.979,
        soil_red_slope=0.046,
        vegetation_class_emissivity=0.99,
    ),
    NDVIMethod.SOBRINO_2008: NDVIThresholdCoefficients(
        NDVIMethod.SOBRINO_2008,
        soil_emissivity=0.986,
        vegetation_emissivity=0.990,
        soil_intercept=0.979,
        soil_red_slope=0.035,
        vegetation_class_emissivity=0.99,
    ),
    NDVIMethod.YU_2014: NDVIThresholdCoefficients(
        NDVIMethod.YU_2014,
        soil_emissivity=0.9668,
        vegetation_emissivity=0.9863,
        soil_intercept=0.973,
        soil_red_slope=0.047,
        cavity_factor=0.55,
    ),
    NDVIMethod.SNDVI: NDVIThresholdCoefficients(
        NDVIMethod.SNDVI,
        soil_emissivity=0.971,
        vegetation_emissivity=0.987,
    ),
}


@dataclass(frozen=True, slots=True)
class AsterConvolution:
    """Spectral convolution of ASTER bands 13/14 to a Landsat thermal band.

    ``EM0 = c13 * EM13 + c14 * EM14 + c`` on scaled emissivities.
    """

    c13: float
    c14: float
    c: float


ASTER_CONVOLUTION: dict[Sensor, AsterConvolution] = {
    Sensor.L4: AsterConvolution(0.3222, 0.6498, 0.0272),
    Sensor.L5: AsterConvolution(-0.0723, 1.0521, 0.0195),
    Sensor.L7: AsterConvolution(0.2147, 0.7789, 0.0059),
    Sensor.L8: AsterConvolution(0.6820, 0.2578, 0.0584),
}


def ndvi_threshold_coefficients(method: NDVIMethod) -> NDVIThresholdCoefficients:
    return NDVI_THRESHOLD_COEFFICIENTS[method]


def aster_convolution_for(sensor: str | Sensor) -> AsterConvolution:
    """Return the ASTER convolution for *sensor*.

    Raises:
        UnrecognizedSensorError: If *sensor* is not supported.
    """
    return ASTER_CONVOLUTION[Sensor.parse(sensor)]
