"""Canonical payload contracts for the orchestrator's structured outputs.

Every dict the orchestrator hands back to a caller (skip records, phase
results, run summaries) is defined here as a ``TypedDict``. This module
is the single place field names are declared; the orchestrator tests
check runtime dicts against these keys.

Design notes:
- Output contracts use ``total=True`` so missing keys are flagged.
- Statistics are plain floats so payloads serialise to JSON unchanged.
"""

from __future__ import annotations

from typing import TypedDict

# ---------------------------------------------------------------------------
# Skip manifest
# ---------------------------------------------------------------------------


class SkipPayload(TypedDict):
    """Output of ``SkipRecord.to_dict()``."""

    scene_id: str
    code: str
    stage: str
    category: str
    message: str
    state: str
    detail: dict[str, object]


# ---------------------------------------------------------------------------
# Per-scene outcome
# ---------------------------------------------------------------------------


class BandStatistics(TypedDict):
    """Summary statistics of one output band over valid pixels."""

    band: str
    valid_pixels: int
    minimum: float | None
    mean: float | None
    maximum: float | None


class SceneOutcome(TypedDict):
    """What the retrieval phase reports for one completed scene."""

    scene_id: str
    sensor: str
    acquired: str
    state: str
    emissivity_band: str
    bands: list[str]
    lst: BandStatistics


# ---------------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------------


class PipelineSummary(TypedDict):
    """Output of ``PipelineResult.to_summary()``."""

    status: str
    sensor: str
    emissivity_strategy: str
    reflectance_found: int
    thermal_found: int
    joined: int
    unjoined: int
    completed: int
    failed: int
    skipped: list[SkipPayload]
    scenes: list[SceneOutcome]
    message: str
