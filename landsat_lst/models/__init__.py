"""Data models and schemas.

Defines the data structures used throughout the retrieval:
- Raster: immutable co-registered band stack with a validity mask
- BandSet: per-sensor role → band-name and scale table
- ThermalCalibration / SceneRef / ScenePair / SceneCollection / Scene
- SkipRecord: skip-manifest entry
- RunManifest: per-run JSON manifest
"""

from landsat_lst.models._checks import ModelValidationError
from landsat_lst.models.bands import BandScale, BandSet, band_set_for
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import (
    Scene,
    SceneCollection,
    ScenePair,
    SceneRef,
    SkipRecord,
    ThermalCalibration,
)

__all__ = [
    "BandScale",
    "BandSet",
    "ModelValidationError",
    "Raster",
    "Scene",
    "SceneCollection",
    "ScenePair",
    "SceneRef",
    "SkipRecord",
    "ThermalCalibration",
    "band_set_for",
]
