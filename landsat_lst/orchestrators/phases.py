"""Bounded phase helpers for the LST pipeline orchestrator.

Each phase is a plain function that returns a typed result contract.
The top-level orchestrator in ``lst_pipeline.py`` runs them in order.

Phases
------
1. **Join**: search both catalogs concurrently, pair scenes by scene id,
   record every scene without exactly one counterpart as unjoined.
2. **Retrieval**: run joined scenes through the stage sequence in
   bounded parallel batches; per-scene failures become skip records.

``build_pipeline_summary`` folds the phase results into the run summary.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypedDict

from landsat_lst.catalogs.base import search_order
from landsat_lst.core.exceptions import UnjoinedSceneError
from landsat_lst.models.contracts import BandStatistics, PipelineSummary, SceneOutcome
from landsat_lst.models.scene import SceneCollection, ScenePair, SkipRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from landsat_lst.catalogs.base import Bounds, DateRange, SceneCatalog
    from landsat_lst.models.raster import Raster
    from landsat_lst.models.scene import SceneRef

logger = logging.getLogger("landsat_lst.orchestrators.phases")

REFLECTANCE_SOURCE = "reflectance"
THERMAL_SOURCE = "thermal"


# ---------------------------------------------------------------------------
# Phase result contracts
# ---------------------------------------------------------------------------


class JoinResult(TypedDict):
    """Output contract for the join phase."""

    collection: SceneCollection
    reflectance_found: int
    thermal_found: int
    joined: int
    unjoined: int


class RetrievalResult(TypedDict):
    """Output contract for the retrieval phase."""

    rasters: list[Raster]
    outcomes: list[SceneOutcome]
    skipped: list[SkipRecord]
    completed: int
    failed: int
    batches: int


class SceneResult(TypedDict):
    """What processing one scene yields: a raster or a skip record."""

    scene_id: str
    state: str
    raster: Raster | None
    skip: SkipRecord | None


# ---------------------------------------------------------------------------
# Phase 1: Join
# ---------------------------------------------------------------------------


def join_scenes(
    reflectance: Sequence[SceneRef],
    thermal: Sequence[SceneRef],
) -> SceneCollection:
    """Pair reflectance and thermal hits that share exactly one scene id.

    Output order follows *reflectance*. A scene id that appears more than
    once in either source, or in only one source, is not joined: it gets
    an ``UNJOINED_SCENE`` skip record and never enters the pipeline.
    """
    reflectance_counts = Counter(r.scene_id for r in reflectance)
    thermal_counts = Counter(t.scene_id for t in thermal)
    thermal_by_id = {t.scene_id: t for t in thermal}

    pairs: list[ScenePair] = []
    skipped: list[SkipRecord] = []
    seen: set[str] = set()

    for ref in reflectance:
        scene_id = ref.scene_id
        if scene_id in seen:
            continue
        seen.add(scene_id)

        n_thermal = thermal_counts.get(scene_id, 0)
        n_reflectance = reflectance_counts[scene_id]
        if n_thermal == 1 and n_reflectance == 1:
            pairs.append(ScenePair(reflectance=ref, thermal=thermal_by_id[scene_id]))
            continue

        if n_thermal == 1:
            error = UnjoinedSceneError(scene_id, source=THERMAL_SOURCE, matches=n_reflectance)
        else:
            error = UnjoinedSceneError(scene_id, source=REFLECTANCE_SOURCE, matches=n_thermal)
        skipped.append(SkipRecord.from_error(scene_id, error))

    for ref in thermal:
        if ref.scene_id in seen:
            continue
        seen.add(ref.scene_id)
        error = UnjoinedSceneError(ref.scene_id, source=THERMAL_SOURCE, matches=0)
        skipped.append(SkipRecord.from_error(ref.scene_id, error))

    for record in skipped:
        logger.info(
            "Scene not joined | scene=%s | source=%s | matches=%s",
            record.scene_id,
            record.detail.get("source", ""),
            record.detail.get("matches", 0),
        )

    return SceneCollection(pairs=tuple(pairs), skipped=tuple(skipped))


def search_windows(
    catalog: SceneCatalog,
    date_ranges: Sequence[DateRange],
    bounds: Bounds | None = None,
) -> list[SceneRef]:
    """Search *catalog* once per date window and merge the hits.

    A product matched by overlapping windows is returned once. The merged
    list keeps the catalog search order.
    """
    hits: dict[tuple[str, str, str], SceneRef] = {}
    for date_start, date_end in date_ranges:
        for ref in catalog.search(date_start, date_end, bounds):
            hits.setdefault((ref.scene_id, ref.location, ref.product_id), ref)
    return sorted(hits.values(), key=search_order)


def run_join_phase(
    reflectance_catalog: SceneCatalog,
    thermal_catalog: SceneCatalog,
    *,
    date_ranges: Sequence[DateRange] = ((None, None),),
    bounds: Bounds | None = None,
) -> JoinResult:
    """Search both catalogs concurrently, then join by scene id.

    Each catalog is searched once per window in *date_ranges*.

    Raises:
        CatalogSearchError: If either catalog cannot be searched.
    """
    phase_start = time.monotonic()

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="lst-search") as pool:
        reflectance_future = pool.submit(
            search_windows, reflectance_catalog, date_ranges, bounds
        )
        thermal_future = pool.submit(search_windows, thermal_catalog, date_ranges, bounds)
        reflectance_refs = reflectance_future.result()
        thermal_refs = thermal_future.result()

    collection = join_scenes(reflectance_refs, thermal_refs)

    logger.info(
        "phase=join completed | windows=%d | reflectance=%d | thermal=%d | joined=%d | "
        "unjoined=%d | duration=%.2fs",
        len(date_ranges),
        len(reflectance_refs),
        len(thermal_refs),
        len(collection.pairs),
        len(collection.skipped),
        time.monotonic() - phase_start,
    )

    return JoinResult(
        collection=collection,
        reflectance_found=len(reflectance_refs),
        thermal_found=len(thermal_refs),
        joined=len(collection.pairs),
        unjoined=len(collection.skipped),
    )


# ---------------------------------------------------------------------------
# Phase 2: Retrieval
# ---------------------------------------------------------------------------


def run_retrieval_phase(
    pairs: Sequence[ScenePair],
    process: Callable[[ScenePair], SceneResult],
    *,
    emissivity_band: str,
    lst_band: str,
    max_workers: int = 4,
    batch_size: int = 8,
) -> RetrievalResult:
    """Process joined scenes in bounded parallel batches.

    Scenes share no mutable state, so each batch is fanned out over a
    thread pool; results are collected in input order. *process* reports
    per-scene failures as skip records and raises only for run-fatal
    errors, which propagate out of this phase.
    """
    phase_start = time.monotonic()

    rasters: list[Raster] = []
    outcomes: list[SceneOutcome] = []
    skipped: list[SkipRecord] = []
    batches = 0

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lst-scene") as pool:
        for batch_start in range(0, len(pairs), batch_size):
            batch = pairs[batch_start : batch_start + batch_size]
            batches += 1
            for result in pool.map(process, batch):
                raster = result["raster"]
                if raster is not None:
                    rasters.append(raster)
                    outcomes.append(
                        scene_outcome(
                            raster,
                            state=result["state"],
                            emissivity_band=emissivity_band,
                            lst_band=lst_band,
                        )
                    )
                elif result["skip"] is not None:
                    skipped.append(result["skip"])

            logger.info(
                "phase=retrieval step=batch | batch=%d | scenes=%d | completed=%d | failed=%d",
                batches,
                len(batch),
                len(rasters),
                len(skipped),
            )

    logger.info(
        "phase=retrieval completed | scenes=%d | completed=%d | failed=%d | "
        "batches=%d | duration=%.2fs",
        len(pairs),
        len(rasters),
        len(skipped),
        batches,
        time.monotonic() - phase_start,
    )

    return RetrievalResult(
        rasters=rasters,
        outcomes=outcomes,
        skipped=skipped,
        completed=len(rasters),
        failed=len(skipped),
        batches=batches,
    )


def band_statistics(raster: Raster, band: str) -> BandStatistics:
    """Min / mean / max of *band* over valid, defined pixels."""
    count = raster.valid_count(band)
    if count == 0:
        return BandStatistics(band=band, valid_pixels=0, minimum=None, mean=None, maximum=None)
    values = raster.masked(band)
    return BandStatistics(
        band=band,
        valid_pixels=count,
        minimum=float(values.min()),
        mean=float(values.mean()),
        maximum=float(values.max()),
    )


def scene_outcome(
    raster: Raster,
    *,
    state: str,
    emissivity_band: str,
    lst_band: str,
) -> SceneOutcome:
    return SceneOutcome(
        scene_id=raster.scene_id,
        sensor=str(raster.properties.get("sensor", "")),
        acquired=str(raster.properties.get("acquired", "")),
        state=state,
        emissivity_band=emissivity_band,
        bands=list(raster.band_names),
        lst=band_statistics(raster, lst_band),
    )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def build_pipeline_summary(
    join: JoinResult,
    retrieval: RetrievalResult,
    *,
    sensor: str,
    emissivity_strategy: str,
) -> PipelineSummary:
    """Build the run summary from the phase outputs."""
    skipped = [*join["collection"].skipped, *retrieval["skipped"]]
    status = "completed" if not skipped else "partial"

    return PipelineSummary(
        status=status,
        sensor=sensor,
        emissivity_strategy=emissivity_strategy,
        reflectance_found=join["reflectance_found"],
        thermal_found=join["thermal_found"],
        joined=join["joined"],
        unjoined=join["unjoined"],
        completed=retrieval["completed"],
        failed=retrieval["failed"],
        skipped=[s.to_dict() for s in skipped],
        scenes=list(retrieval["outcomes"]),
        message=(
            f"Joined {join['joined']} scene(s) "
            f"({join['unjoined']} unjoined), "
            f"retrieved LST for {retrieval['completed']}, "
            f"skipped {retrieval['failed']} during retrieval."
        ),
    )
