"""Scene-level models exchanged between catalogs and the orchestrator.

- ``ThermalCalibration``: per-scene K1/K2 and radiance rescaling constants
- ``SceneRef``: one catalog search hit (not yet loaded)
- ``ScenePair``: a reflectance hit joined to its thermal counterpart
- ``SceneCollection``: ordered joined pairs plus the unjoined skip records
- ``Scene``: a loaded scene ready for the retrieval stages
- ``SkipRecord``: one entry of the skip manifest

All models are frozen dataclasses; a scene's constants are read-only for
the lifetime of its processing.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from landsat_lst.core.exceptions import MissingCalibrationError
from landsat_lst.models._checks import ModelValidationError, check_non_empty, check_positive
from landsat_lst.models.contracts import SkipPayload

if TYPE_CHECKING:
    from datetime import date

    from landsat_lst.core.exceptions import PipelineError
    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.raster import Raster


# ---------------------------------------------------------------------------
# Calibration constants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ThermalCalibration:
    """Thermal band calibration constants of one scene.

    Attributes:
        k1: Planck constant K1 in W/(m2 sr um).
        k2: Planck constant K2 in Kelvin.
        radiance_mult: DN → radiance gain.
        radiance_add: DN → radiance offset.
    """

    k1: float
    k2: float
    radiance_mult: float = 1.0
    radiance_add: float = 0.0

    def __post_init__(self) -> None:
        check_positive("ThermalCalibration", "k1", self.k1)
        check_positive("ThermalCalibration", "k2", self.k2)

    @classmethod
    def from_metadata(
        cls,
        metadata: Mapping[str, object],
        band_set: BandSet,
        *,
        scene_id: str = "",
    ) -> ThermalCalibration:
        """Read the constants keyed by the sensor's thermal band.

        Landsat MTL values arrive as strings; they are converted here.

        Raises:
            MissingCalibrationError: If a key is absent or not numeric.
        """
        values: dict[str, float] = {}
        for attr, prefix in (
            ("k1", "K1_CONSTANT"),
            ("k2", "K2_CONSTANT"),
            ("radiance_mult", "RADIANCE_MULT"),
            ("radiance_add", "RADIANCE_ADD"),
        ):
            key = band_set.metadata_key(prefix)
            raw = metadata.get(key)
            try:
                values[attr] = float(raw)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                raise MissingCalibrationError(key, scene_id=scene_id) from None
        return cls(**values)


# ---------------------------------------------------------------------------
# Catalog references
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SceneRef:
    """A scene found by a catalog search.

    Attributes:
        scene_id: Join key shared by the reflectance and thermal products.
        catalog: Name of the catalog that produced the hit.
        sensor: Sensor identifier (``L8``, ...), empty if unknown.
        acquired: Acquisition date.
        bounds: ``(min_lon, min_lat, max_lon, max_lat)`` footprint.
        location: Catalog-specific locator (directory, key).
        product_id: Full product identifier.
        metadata: Flat scene metadata (calibration constants live here).
    """

    scene_id: str
    catalog: str
    sensor: str = ""
    acquired: date | None = None
    bounds: tuple[float, float, float, float] | None = None
    location: str = ""
    product_id: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_non_empty("SceneRef", "scene_id", self.scene_id)
        check_non_empty("SceneRef", "catalog", self.catalog)
        if self.bounds is not None:
            min_x, min_y, max_x, max_y = self.bounds
            if min_x > max_x or min_y > max_y:
                raise ModelValidationError(
                    "SceneRef", "bounds", self.bounds, "min must be <= max on both axes"
                )
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True, slots=True)
class ScenePair:
    """A reflectance hit joined to its unique thermal counterpart."""

    reflectance: SceneRef
    thermal: SceneRef

    def __post_init__(self) -> None:
        if self.reflectance.scene_id != self.thermal.scene_id:
            raise ModelValidationError(
                "ScenePair",
                "thermal",
                self.thermal.scene_id,
                f"does not match reflectance scene {self.reflectance.scene_id!r}",
            )

    @property
    def scene_id(self) -> str:
        return self.reflectance.scene_id


# ---------------------------------------------------------------------------
# Skip manifest
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SkipRecord:
    """Why a scene is absent from the output collection.

    Attributes:
        scene_id: The dropped scene.
        code: Machine-readable error code (``MISSING_BAND``, ``UNJOINED_SCENE``).
        stage: Stage that failed (``emissivity``, ``join``, ...).
        category: Error category from the taxonomy.
        message: Human-readable reason.
        state: Last pipeline state the scene reached (empty if never entered).
        detail: Extra structured context (missing band, catalog source).
    """

    scene_id: str
    code: str
    stage: str
    category: str
    message: str
    state: str = ""
    detail: Mapping[str, object] = field(default_factory=dict)

    @classmethod
    def from_error(cls, scene_id: str, error: PipelineError, *, state: str = "") -> SkipRecord:
        """Build a record from a taxonomy error's ``to_error_dict()`` payload."""
        payload = error.to_error_dict()
        detail: dict[str, object] = {}
        for attr in ("band", "key", "source", "matches"):
            if hasattr(error, attr):
                detail[attr] = getattr(error, attr)
        return cls(
            scene_id=scene_id,
            code=str(payload["code"]),
            stage=str(payload["stage"]),
            category=str(payload["category"]),
            message=str(payload["message"]),
            state=state,
            detail=detail,
        )

    def to_dict(self) -> SkipPayload:
        return SkipPayload(
            scene_id=self.scene_id,
            code=self.code,
            stage=self.stage,
            category=self.category,
            message=self.message,
            state=self.state,
            detail=dict(self.detail),
        )


# ---------------------------------------------------------------------------
# Collections and loaded scenes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SceneCollection:
    """Joined scenes in reflectance-catalog order, plus unjoined records."""

    pairs: tuple[ScenePair, ...] = ()
    skipped: tuple[SkipRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[ScenePair]:
        return iter(self.pairs)

    @property
    def scene_ids(self) -> tuple[str, ...]:
        return tuple(p.scene_id for p in self.pairs)


@dataclass(frozen=True, slots=True, eq=False)
class Scene:
    """One overpass, loaded and ready for the retrieval stages.

    The thermal raster stays separate until radiance calibration, when
    the orchestrator combines it into the working raster.

    Attributes:
        scene_id: Join key of the scene.
        sensor: Sensor identifier.
        raster: Reflectance, QA and atmospheric-auxiliary bands.
        thermal: Raw thermal DN raster.
        calibration: The scene's thermal constants.
        acquired: Acquisition date, if known.
    """

    scene_id: str
    sensor: str
    raster: Raster
    thermal: Raster
    calibration: ThermalCalibration
    acquired: date | None = None

    def __post_init__(self) -> None:
        check_non_empty("Scene", "scene_id", self.scene_id)
        if self.raster.shape != self.thermal.shape:
            raise ModelValidationError(
                "Scene",
                "thermal",
                self.thermal.shape,
                f"must be co-registered with reflectance shape {self.raster.shape}",
            )
