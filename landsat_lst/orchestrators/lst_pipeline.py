"""Orchestrator for the Landsat LST retrieval pipeline.

Coordinates one run end to end:

1. Validate configuration and build the emissivity strategy (an unknown
   sensor or bad configuration aborts here, before any scene is read)
2. Join phase: search both catalogs, pair scenes by scene id
3. Retrieval phase: load each joined scene and walk it through the
   stage sequence, in bounded parallel batches

Each scene moves through a fixed sequence of states, one stage
invocation per transition::

    SELECTED → VEGETATION_INDEXED → EMISSIVITY_ESTIMATED →
    RADIANCE_CALIBRATED → ATMOSPHERICALLY_CORRECTED →
    TEMPERATURE_INVERTED → FINALIZED

A scene that fails a transition with a per-scene error (missing band,
missing calibration, unreadable file) is dropped with a skip record
naming the last state it reached; the remaining scenes still complete.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from landsat_lst.core.config import ConfigValidationError, RetrievalConfig
from landsat_lst.core.constants import LST_BAND
from landsat_lst.core.exceptions import PipelineError, UnrecognizedSensorError
from landsat_lst.models.bands import (
    ASTER_ROLES,
    REFLECTANCE_ROLES,
    THERMAL_ROLES,
    band_set_for,
)
from landsat_lst.models.manifest import RunManifest
from landsat_lst.models.scene import Scene, SkipRecord, ThermalCalibration
from landsat_lst.orchestrators.phases import (
    SceneResult,
    build_pipeline_summary,
    run_join_phase,
    run_retrieval_phase,
)
from landsat_lst.stages.atmospheric_correction import invert_rte
from landsat_lst.stages.emissivity import build_estimator
from landsat_lst.stages.quality import compute_surface_temperature, mask_clouds
from landsat_lst.stages.radiance import calibrate_radiance
from landsat_lst.stages.temperature import invert_planck, to_celsius
from landsat_lst.stages.vegetation_index import compute_fvc, compute_ndvi

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import date

    from landsat_lst.catalogs.base import Bounds, DateRange, SceneCatalog
    from landsat_lst.models.bands import BandSet
    from landsat_lst.models.contracts import PipelineSummary, SceneOutcome
    from landsat_lst.models.raster import Raster
    from landsat_lst.models.scene import ScenePair
    from landsat_lst.stages.emissivity import EmissivityEstimator

logger = logging.getLogger("landsat_lst.orchestrators.lst_pipeline")

#: Errors that indicate misconfiguration and abort the whole run.
RUN_FATAL_ERRORS: tuple[type[PipelineError], ...] = (
    UnrecognizedSensorError,
    ConfigValidationError,
)


class SceneState(enum.Enum):
    """Lifecycle state of one scene in the retrieval pipeline."""

    SELECTED = "selected"
    VEGETATION_INDEXED = "vegetation_indexed"
    EMISSIVITY_ESTIMATED = "emissivity_estimated"
    RADIANCE_CALIBRATED = "radiance_calibrated"
    ATMOSPHERICALLY_CORRECTED = "atmospherically_corrected"
    TEMPERATURE_INVERTED = "temperature_inverted"
    FINALIZED = "finalized"


# ---------------------------------------------------------------------------
# Per-scene state machine
# ---------------------------------------------------------------------------


class ScenePipeline:
    """Runs single scenes through the stage sequence.

    Built once per run; holds only immutable, shareable state (config,
    band table, emissivity strategy), so one instance serves all worker
    threads.

    Raises:
        UnrecognizedSensorError: If the configured sensor is unknown.
        ConfigValidationError: If the configuration is invalid.
    """

    def __init__(
        self,
        config: RetrievalConfig,
        *,
        band_set: BandSet | None = None,
        estimator: EmissivityEstimator | None = None,
    ) -> None:
        self.config = config.validate()
        self.band_set = band_set or band_set_for(config.sensor_id)
        self.estimator = estimator or build_estimator(config)
        self._transitions: tuple[tuple[SceneState, Callable[[Scene, Raster], Raster]], ...] = (
            (SceneState.VEGETATION_INDEXED, self._index_vegetation),
            (SceneState.EMISSIVITY_ESTIMATED, self._estimate_emissivity),
            (SceneState.RADIANCE_CALIBRATED, self._calibrate_radiance),
            (SceneState.ATMOSPHERICALLY_CORRECTED, self._correct_atmosphere),
            (SceneState.TEMPERATURE_INVERTED, self._invert_temperature),
            (SceneState.FINALIZED, self._finalize),
        )

    @property
    def emissivity_band(self) -> str:
        return self.estimator.output_band

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_scene(
        self,
        pair: ScenePair,
        reflectance_catalog: SceneCatalog,
        thermal_catalog: SceneCatalog,
    ) -> Scene:
        """Read both rasters and the thermal calibration of a joined scene.

        Raises:
            CatalogLoadError: If a source raster cannot be read.
            MissingCalibrationError: If a calibration constant is absent.
        """
        raster = reflectance_catalog.load(
            pair.reflectance, self.band_set.names_for(REFLECTANCE_ROLES + ASTER_ROLES)
        )
        thermal = thermal_catalog.load(pair.thermal, self.band_set.names_for(THERMAL_ROLES))
        calibration = ThermalCalibration.from_metadata(
            thermal_catalog.metadata(pair.thermal),
            self.band_set,
            scene_id=pair.scene_id,
        )
        sensor = pair.reflectance.sensor or self.band_set.sensor.value
        if sensor != self.band_set.sensor.value:
            logger.warning(
                "Scene sensor differs from configured sensor | scene=%s | scene_sensor=%s | "
                "configured=%s",
                pair.scene_id,
                sensor,
                self.band_set.sensor.value,
            )
        return Scene(
            scene_id=pair.scene_id,
            sensor=sensor,
            raster=raster,
            thermal=thermal,
            calibration=calibration,
            acquired=pair.reflectance.acquired,
        )

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def run(self, scene: Scene) -> SceneResult:
        """Walk *scene* through every transition.

        Per-scene errors become a skip record carrying the last state
        reached. Run-fatal errors propagate.
        """
        state = SceneState.SELECTED
        raster = scene.raster
        try:
            for target, step in self._transitions:
                raster = step(scene, raster)
                state = target
        except RUN_FATAL_ERRORS:
            raise
        except PipelineError as exc:
            return self._skip(scene.scene_id, exc, state)

        logger.info(
            "Scene finalized | scene=%s | emissivity_band=%s | bands=%d",
            scene.scene_id,
            self.emissivity_band,
            len(raster.band_names),
        )
        return SceneResult(scene_id=scene.scene_id, state=state.value, raster=raster, skip=None)

    def process(
        self,
        pair: ScenePair,
        reflectance_catalog: SceneCatalog,
        thermal_catalog: SceneCatalog,
    ) -> SceneResult:
        """Load and run one joined scene."""
        try:
            scene = self.load_scene(pair, reflectance_catalog, thermal_catalog)
        except RUN_FATAL_ERRORS:
            raise
        except PipelineError as exc:
            return self._skip(pair.scene_id, exc, SceneState.SELECTED)
        return self.run(scene)

    def _skip(self, scene_id: str, error: PipelineError, state: SceneState) -> SceneResult:
        logger.warning(
            "Scene skipped | scene=%s | state=%s | code=%s | stage=%s | error=%s",
            scene_id,
            state.value,
            error.code,
            error.stage,
            error.message,
        )
        return SceneResult(
            scene_id=scene_id,
            state=state.value,
            raster=None,
            skip=SkipRecord.from_error(scene_id, error, state=state.value),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _index_vegetation(self, scene: Scene, raster: Raster) -> Raster:
        if self.config.apply_cloud_mask:
            raster = mask_clouds(raster, self.band_set)
        return compute_fvc(compute_ndvi(raster, self.band_set), self.config)

    def _estimate_emissivity(self, scene: Scene, raster: Raster) -> Raster:
        return self.estimator.estimate(raster, self.band_set)

    def _calibrate_radiance(self, scene: Scene, raster: Raster) -> Raster:
        return calibrate_radiance(raster.combine(scene.thermal), scene.calibration, self.band_set)

    def _correct_atmosphere(self, scene: Scene, raster: Raster) -> Raster:
        return invert_rte(raster, self.band_set, self.emissivity_band)

    def _invert_temperature(self, scene: Scene, raster: Raster) -> Raster:
        raster = invert_planck(raster, scene.calibration.k1, scene.calibration.k2)
        return to_celsius(raster)

    def _finalize(self, scene: Scene, raster: Raster) -> Raster:
        if self.config.include_usgs_st:
            raster = compute_surface_temperature(raster, self.band_set)
        return raster.with_properties(
            sensor=scene.sensor,
            acquired=scene.acquired.isoformat() if scene.acquired else "",
            emissivity_band=self.emissivity_band,
            k1=scene.calibration.k1,
            k2=scene.calibration.k2,
        )


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class PipelineResult:
    """Output of a retrieval run.

    Attributes:
        rasters: One raster per completed scene, in reflectance-catalog order.
        skipped: Skip manifest (unjoined scenes first, then retrieval failures).
        outcomes: Per-scene summaries of the completed scenes.
        config: The configuration the run used.
        summary: Structured run summary.
    """

    rasters: tuple[Raster, ...]
    skipped: tuple[SkipRecord, ...]
    outcomes: tuple[SceneOutcome, ...]
    config: RetrievalConfig
    summary: PipelineSummary

    @property
    def scene_ids(self) -> tuple[str, ...]:
        return tuple(r.scene_id for r in self.rasters)

    def to_summary(self) -> PipelineSummary:
        return self.summary

    def to_manifest(self, *, run_id: str = "", timestamp: str = "") -> RunManifest:
        """Build the pydantic run manifest for this result."""
        return RunManifest.from_summary(
            self.summary, self.config, run_id=run_id, timestamp=timestamp
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_pipeline(
    reflectance_catalog: SceneCatalog,
    thermal_catalog: SceneCatalog,
    config: RetrievalConfig | None = None,
    *,
    date_start: date | None = None,
    date_end: date | None = None,
    date_ranges: Sequence[DateRange] | None = None,
    bounds: Bounds | None = None,
) -> PipelineResult:
    """Retrieve LST for every scene both catalogs hold in the search window.

    Args:
        reflectance_catalog: Source of surface reflectance, QA and
            atmospheric auxiliary bands.
        thermal_catalog: Source of raw thermal DN and calibration metadata.
        config: Retrieval configuration. Loaded from the environment
            when omitted.
        date_start: Earliest acquisition date (inclusive).
        date_end: Latest acquisition date (inclusive).
        date_ranges: Several ``(date_start, date_end)`` windows searched in
            one run, instead of *date_start* / *date_end*.
        bounds: ``(min_lon, min_lat, max_lon, max_lat)`` search window.

    Raises:
        ValueError: If *date_ranges* is combined with *date_start* or
            *date_end*.
        UnrecognizedSensorError: If the configured sensor is unknown.
        ConfigValidationError: If the configuration is invalid.
        CatalogSearchError: If a catalog cannot be searched.
    """
    if date_ranges is None:
        date_ranges = ((date_start, date_end),)
    elif date_start is not None or date_end is not None:
        msg = "pass either date_ranges or date_start/date_end, not both"
        raise ValueError(msg)

    if config is None:
        config = RetrievalConfig.from_env()
    pipeline = ScenePipeline(config)

    logger.info(
        "Pipeline started | sensor=%s | strategy=%s | reflectance=%s | thermal=%s | "
        "date_ranges=%s",
        config.sensor,
        config.emissivity_strategy,
        reflectance_catalog.name,
        thermal_catalog.name,
        [(str(start), str(end)) for start, end in date_ranges],
    )

    join = run_join_phase(
        reflectance_catalog,
        thermal_catalog,
        date_ranges=date_ranges,
        bounds=bounds,
    )

    def _process(pair: ScenePair) -> SceneResult:
        return pipeline.process(pair, reflectance_catalog, thermal_catalog)

    retrieval = run_retrieval_phase(
        join["collection"].pairs,
        _process,
        emissivity_band=pipeline.emissivity_band,
        lst_band=LST_BAND,
        max_workers=config.max_workers,
        batch_size=config.batch_size,
    )

    summary = build_pipeline_summary(
        join,
        retrieval,
        sensor=config.sensor,
        emissivity_strategy=config.emissivity_strategy,
    )

    logger.info(
        "Pipeline finished | status=%s | joined=%d | completed=%d | skipped=%d",
        summary["status"],
        summary["joined"],
        summary["completed"],
        len(summary["skipped"]),
    )

    return PipelineResult(
        rasters=tuple(retrieval["rasters"]),
        skipped=(*join["collection"].skipped, *retrieval["skipped"]),
        outcomes=tuple(retrieval["outcomes"]),
        config=config,
        summary=summary,
    )
