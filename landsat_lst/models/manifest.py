"""Pydantic run manifest for one retrieval run.

The manifest is the "flight recorder" of a run: the configuration it
ran with, which scenes were joined, what each completed scene produced,
and why every other scene was skipped. It serialises to JSON with a
``$schema`` version tag so stored manifests stay readable as the model
evolves.

Sections:
- **configuration**: sensor, emissivity strategy and thresholds
- **scenes**: one record per completed scene with LST statistics
- **skipped**: one record per dropped scene with the structured reason
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from landsat_lst.core.config import RetrievalConfig
    from landsat_lst.models.contracts import PipelineSummary

SCHEMA_VERSION = "lst-run-manifest-v1"


class ConfigurationSection(BaseModel):
    """The retrieval configuration a run used."""

    sensor: str = ""
    emissivity_strategy: str = ""
    ndvi_method: str = ""
    hybrid_output: str = ""
    soil_threshold: float = 0.0
    vegetation_threshold: float = 0.0
    water_emissivity: float = 0.0
    snow_emissivity: float = 0.0
    apply_cloud_mask: bool = False
    include_usgs_st: bool = False


class SceneRecord(BaseModel):
    """One completed scene.

    Attributes:
        scene_id: Join key of the scene.
        acquired: Acquisition date (ISO 8601), empty if unknown.
        emissivity_band: ``LSE`` or ``EM``.
        bands: Band names of the output raster.
        lst_valid_pixels: Pixels with a defined LST.
        lst_min_k: Minimum LST in Kelvin over valid pixels.
        lst_mean_k: Mean LST in Kelvin over valid pixels.
        lst_max_k: Maximum LST in Kelvin over valid pixels.
    """

    scene_id: str
    acquired: str = ""
    emissivity_band: str = ""
    bands: list[str] = Field(default_factory=list)
    lst_valid_pixels: int = 0
    lst_min_k: float | None = None
    lst_mean_k: float | None = None
    lst_max_k: float | None = None


class SkippedRecord(BaseModel):
    """One skipped scene and the structured reason."""

    scene_id: str
    code: str
    stage: str = ""
    category: str = ""
    message: str = ""
    state: str = ""
    detail: dict[str, Any] = Field(default_factory=dict)


class RunManifest(BaseModel):
    """Top-level manifest of a retrieval run."""

    schema_version: str = Field(default=SCHEMA_VERSION, alias="$schema")
    run_id: str = ""
    timestamp: str = ""
    status: str = "pending"
    configuration: ConfigurationSection = Field(default_factory=ConfigurationSection)
    joined: int = 0
    scenes: list[SceneRecord] = Field(default_factory=list)
    skipped: list[SkippedRecord] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_summary(
        cls,
        summary: PipelineSummary,
        config: RetrievalConfig,
        *,
        run_id: str = "",
        timestamp: str = "",
    ) -> RunManifest:
        """Build the manifest from a run summary and its configuration.

        Args:
            summary: Output of ``PipelineResult.to_summary()``.
            config: The configuration the run used.
            run_id: Caller-supplied run identifier.
            timestamp: Run timestamp (ISO 8601). Defaults to now (UTC).
        """
        if not timestamp:
            timestamp = datetime.now(UTC).isoformat()

        scenes = [
            SceneRecord(
                scene_id=s["scene_id"],
                acquired=s["acquired"],
                emissivity_band=s["emissivity_band"],
                bands=list(s["bands"]),
                lst_valid_pixels=s["lst"]["valid_pixels"],
                lst_min_k=s["lst"]["minimum"],
                lst_mean_k=s["lst"]["mean"],
                lst_max_k=s["lst"]["maximum"],
            )
            for s in summary["scenes"]
        ]
        skipped = [SkippedRecord(**s) for s in summary["skipped"]]

        return cls(
            run_id=run_id,
            timestamp=timestamp,
            status=summary["status"],
            configuration=ConfigurationSection(
                sensor=config.sensor,
                emissivity_strategy=config.emissivity_strategy,
                ndvi_method=config.ndvi_method,
                hybrid_output=config.hybrid_output,
                soil_threshold=config.soil_threshold,
                vegetation_threshold=config.vegetation_threshold,
                water_emissivity=config.water_emissivity,
                snow_emissivity=config.snow_emissivity,
                apply_cloud_mask=config.apply_cloud_mask,
                include_usgs_st=config.include_usgs_st,
            ),
            joined=summary["joined"],
            scenes=scenes,
            skipped=skipped,
        )

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string using the ``$schema`` alias."""
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
