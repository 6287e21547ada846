"""Retrieval configuration loaded from environment variables.

All configuration values have defaults matching the published
NDVI-threshold setup (Skoković et al. 2014, thresholds 0.2 / 0.5) and
Landsat 8. The configuration is an immutable structure passed into each
stage call; there is no process-wide mutable state.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out of
    its valid range, and ``UnrecognizedSensorError`` if the sensor has no
    coefficient set. Bad configuration is caught before any scene is read.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import TypeVar

from landsat_lst.core.constants import (
    DEFAULT_SNOW_EMISSIVITY,
    DEFAULT_SOIL_THRESHOLD,
    DEFAULT_VEGETATION_THRESHOLD,
    DEFAULT_WATER_EMISSIVITY,
)
from landsat_lst.core.exceptions import PipelineError, UnrecognizedSensorError

_E = TypeVar("_E", bound=enum.Enum)


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


# ---------------------------------------------------------------------------
# Enumerated configuration values
# ---------------------------------------------------------------------------


class Sensor(enum.Enum):
    """Supported Landsat sensor generations."""

    L4 = "L4"
    L5 = "L5"
    L7 = "L7"
    L8 = "L8"

    @classmethod
    def parse(cls, value: str | Sensor) -> Sensor:
        """Return the sensor for *value* (case-insensitive).

        Raises:
            UnrecognizedSensorError: If no such sensor is supported.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnrecognizedSensorError(value, known=tuple(s.value for s in cls)) from None


class EmissivityStrategy(enum.Enum):
    """Which ``EmissivityEstimator`` produces the emissivity band."""

    NDVI_THRESHOLD = "ndvi_threshold"
    ASTER_HYBRID = "aster_hybrid"


class NDVIMethod(enum.Enum):
    """Published NDVI-threshold coefficient sets."""

    SKOKOVIC_2014 = "skokovic_2014"
    SOBRINO_2008 = "sobrino_2008"
    YU_2014 = "yu_2014"
    SNDVI = "sndvi"


class HybridOutput(enum.Enum):
    """Which ASTER-hybrid path is written as the ``EM`` band."""

    EM0 = "EM0"
    EMD = "EMd"
    NBEM = "NBEM"


@dataclass(frozen=True, slots=True)
class RetrievalConfig:
    """Immutable retrieval configuration.

    Loaded once per run and threaded through the orchestrator into
    every stage.

    Attributes:
        sensor: Landsat generation (``L4``, ``L5``, ``L7``, ``L8``).
        emissivity_strategy: ``ndvi_threshold`` or ``aster_hybrid``.
        ndvi_method: NDVI-threshold coefficient set.
        hybrid_output: ASTER-hybrid output selector (``EM0``, ``EMd``, ``NBEM``).
        soil_threshold: NDVI below which a pixel is bare soil.
        vegetation_threshold: NDVI above which a pixel is full vegetation.
        soil_emissivity: Override of the method's bare-soil emissivity.
        vegetation_emissivity: Override of the method's vegetation emissivity,
            used for the mixed blend and the full-vegetation class.
        water_emissivity: Emissivity prescribed for water-flagged pixels.
        snow_emissivity: Emissivity prescribed for snow/ice pixels (ASTER hybrid).
        apply_cloud_mask: Mask cloud and cloud-shadow pixels from QA.
        include_usgs_st: Also add the USGS Level-2 ``ST`` band for comparison.
        max_workers: Scenes processed concurrently.
        batch_size: Scenes submitted per batch.
    """

    sensor: str = "L8"
    emissivity_strategy: str = EmissivityStrategy.NDVI_THRESHOLD.value
    ndvi_method: str = NDVIMethod.SKOKOVIC_2014.value
    hybrid_output: str = HybridOutput.NBEM.value
    soil_threshold: float = DEFAULT_SOIL_THRESHOLD
    vegetation_threshold: float = DEFAULT_VEGETATION_THRESHOLD
    soil_emissivity: float | None = None
    vegetation_emissivity: float | None = None
    water_emissivity: float = DEFAULT_WATER_EMISSIVITY
    snow_emissivity: float = DEFAULT_SNOW_EMISSIVITY
    apply_cloud_mask: bool = False
    include_usgs_st: bool = False
    max_workers: int = 4
    batch_size: int = 8

    @property
    def sensor_id(self) -> Sensor:
        """Return the parsed sensor (raises ``UnrecognizedSensorError``)."""
        return Sensor.parse(self.sensor)

    @property
    def strategy(self) -> EmissivityStrategy:
        return _parse_enum(EmissivityStrategy, "LST_EMISSIVITY_STRATEGY", self.emissivity_strategy)

    @property
    def method(self) -> NDVIMethod:
        return _parse_enum(NDVIMethod, "LST_NDVI_METHOD", self.ndvi_method)

    @property
    def output(self) -> HybridOutput:
        return _parse_enum(HybridOutput, "LST_HYBRID_OUTPUT", self.hybrid_output)

    def validate(self) -> RetrievalConfig:
        """Validate all fields and return ``self`` for chaining."""
        _validate(self)
        return self

    @classmethod
    def from_env(cls) -> RetrievalConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or an
                enumerated value is unknown.
            UnrecognizedSensorError: If ``LST_SENSOR`` is not supported.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``LST_SOIL_THRESHOLD=abc``).
        """
        config = cls(
            sensor=os.getenv("LST_SENSOR", "L8"),
            emissivity_strategy=os.getenv("LST_EMISSIVITY_STRATEGY", "ndvi_threshold"),
            ndvi_method=os.getenv("LST_NDVI_METHOD", "skokovic_2014"),
            hybrid_output=os.getenv("LST_HYBRID_OUTPUT", "NBEM"),
            soil_threshold=float(os.getenv("LST_SOIL_THRESHOLD", "0.2")),
            vegetation_threshold=float(os.getenv("LST_VEGETATION_THRESHOLD", "0.5")),
            soil_emissivity=_optional_float(os.getenv("LST_SOIL_EMISSIVITY", "")),
            vegetation_emissivity=_optional_float(os.getenv("LST_VEGETATION_EMISSIVITY", "")),
            water_emissivity=float(os.getenv("LST_WATER_EMISSIVITY", "0.991")),
            snow_emissivity=float(os.getenv("LST_SNOW_EMISSIVITY", "0.989")),
            apply_cloud_mask=_env_bool(os.getenv("LST_APPLY_CLOUD_MASK", "false")),
            include_usgs_st=_env_bool(os.getenv("LST_INCLUDE_USGS_ST", "false")),
            max_workers=int(os.getenv("LST_MAX_WORKERS", "4")),
            batch_size=int(os.getenv("LST_BATCH_SIZE", "8")),
        )
        _validate(config)
        return config


def _optional_float(raw: str) -> float | None:
    return float(raw) if raw.strip() else None


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_enum(enum_cls: type[_E], key: str, value: str) -> _E:
    """Match *value* against an enum's values, case-insensitively."""
    wanted = str(value).strip().lower()
    for member in enum_cls:
        if str(member.value).lower() == wanted:
            return member
    allowed = ", ".join(str(m.value) for m in enum_cls)
    raise ConfigValidationError(key, value, f"must be one of: {allowed}")


def _validate(config: RetrievalConfig) -> None:
    """Validate configuration values.  Raises on the first violation."""
    Sensor.parse(config.sensor)
    _parse_enum(EmissivityStrategy, "LST_EMISSIVITY_STRATEGY", config.emissivity_strategy)
    _parse_enum(NDVIMethod, "LST_NDVI_METHOD", config.ndvi_method)
    _parse_enum(HybridOutput, "LST_HYBRID_OUTPUT", config.hybrid_output)

    for key, value in (
        ("LST_SOIL_THRESHOLD", config.soil_threshold),
        ("LST_VEGETATION_THRESHOLD", config.vegetation_threshold),
    ):
        if not -1.0 <= value <= 1.0:
            raise ConfigValidationError(key, value, "must be between -1 and 1 (NDVI)")

    if config.soil_threshold >= config.vegetation_threshold:
        raise ConfigValidationError(
            "LST_SOIL_THRESHOLD",
            config.soil_threshold,
            f"must be < LST_VEGETATION_THRESHOLD ({config.vegetation_threshold})",
        )

    for key, value in (
        ("LST_SOIL_EMISSIVITY", config.soil_emissivity),
        ("LST_VEGETATION_EMISSIVITY", config.vegetation_emissivity),
        ("LST_WATER_EMISSIVITY", config.water_emissivity),
        ("LST_SNOW_EMISSIVITY", config.snow_emissivity),
    ):
        if value is not None and not 0.0 < value <= 1.0:
            raise ConfigValidationError(key, value, "must be in (0, 1] (emissivity)")

    if config.max_workers < 1:
        raise ConfigValidationError("LST_MAX_WORKERS", config.max_workers, "must be >= 1")

    if config.batch_size < 1:
        raise ConfigValidationError("LST_BATCH_SIZE", config.batch_size, "must be >= 1")
