"""Shared pytest fixtures for the Landsat LST test suite.

Synthetic Landsat 8 scenes are built with uniform bands whose scaled
values are round numbers:

- red / NIR reflectance 0.2 / 0.4 (NDVI 1/3, mixed class)
- transmittance 0.9, upwelling 1.0, downwelling 2.0 W/(m2 sr um)
- thermal DN 100 with gain 0.1 (LTOA 10.0)
- K1 774.89, K2 1321.08
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import numpy as np
import pytest

from landsat_lst.catalogs.memory import CatalogEntry, InMemoryCatalog
from landsat_lst.core.config import RetrievalConfig
from landsat_lst.models.bands import BandSet, band_set_for
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import ThermalCalibration

SHAPE = (2, 3)
SCENE_ID = "L8_204033_20210715"

K1 = 774.89
K2 = 1321.08
RADIANCE_MULT = 0.1
THERMAL_DN = 100.0


def reflectance_dn(value: float) -> float:
    """Collection 2 SR DN whose scaled reflectance is *value*."""
    return (value + 0.2) / 0.0000275


# ---------------------------------------------------------------------------
# Band builders
# ---------------------------------------------------------------------------


def _reflectance_bands(
    shape: tuple[int, int] = SHAPE,
    *,
    red: float = 0.2,
    nir: float = 0.4,
    qa: int = 0,
    drop: tuple[str, ...] = (),
    aster: bool = False,
) -> dict[str, np.ndarray]:
    bands: dict[str, np.ndarray] = {
        "SR_B4": np.full(shape, reflectance_dn(red)),
        "SR_B5": np.full(shape, reflectance_dn(nir)),
        "QA_PIXEL": np.full(shape, qa, dtype=np.uint16),
        "ST_B10": np.full(shape, 45000, dtype=np.uint16),
        "ST_ATRAN": np.full(shape, 9000, dtype=np.int16),
        "ST_URAD": np.full(shape, 1000, dtype=np.int16),
        "ST_DRAD": np.full(shape, 2000, dtype=np.int16),
    }
    if aster:
        bands["emissivity_band13"] = np.full(shape, 970, dtype=np.int16)
        bands["emissivity_band14"] = np.full(shape, 975, dtype=np.int16)
        bands["ndvi"] = np.full(shape, 10, dtype=np.int16)
    for name in drop:
        bands.pop(name, None)
    return bands


def _thermal_bands(
    shape: tuple[int, int] = SHAPE, *, dn: float = THERMAL_DN
) -> dict[str, np.ndarray]:
    return {"B10": np.full(shape, dn)}


def _thermal_metadata(
    *, k1: float = K1, k2: float = K2, mult: float = RADIANCE_MULT, add: float = 0.0
) -> dict[str, object]:
    # MTL values arrive as strings
    return {
        "K1_CONSTANT_BAND_10": str(k1),
        "K2_CONSTANT_BAND_10": str(k2),
        "RADIANCE_MULT_BAND_10": str(mult),
        "RADIANCE_ADD_BAND_10": str(add),
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def band_set() -> BandSet:
    """Landsat 8 Collection 2 band table."""
    return band_set_for("L8")


@pytest.fixture()
def config() -> RetrievalConfig:
    """Default configuration (L8, Skoković 2014, thresholds 0.2 / 0.5)."""
    return RetrievalConfig()


@pytest.fixture()
def calibration() -> ThermalCalibration:
    return ThermalCalibration(k1=K1, k2=K2, radiance_mult=RADIANCE_MULT, radiance_add=0.0)


@pytest.fixture()
def make_reflectance() -> Callable[..., Raster]:
    """Factory for a synthetic L8 reflectance raster."""

    def _make(scene_id: str = SCENE_ID, **kwargs: Any) -> Raster:
        return Raster(_reflectance_bands(**kwargs), scene_id=scene_id)

    return _make


@pytest.fixture()
def reflectance_raster(make_reflectance: Callable[..., Raster]) -> Raster:
    return make_reflectance()


@pytest.fixture()
def thermal_raster() -> Raster:
    return Raster(_thermal_bands(), scene_id=SCENE_ID)


@pytest.fixture()
def thermal_metadata() -> dict[str, object]:
    return _thermal_metadata()


@pytest.fixture()
def make_catalogs() -> Callable[..., tuple[InMemoryCatalog, InMemoryCatalog]]:
    """Factory for a (reflectance, thermal) pair of in-memory catalogs.

    Every scene id gets a complete reflectance and thermal entry.
    ``reflectance_overrides`` maps a scene id to keyword arguments for
    its reflectance bands (e.g. ``{"sid": {"drop": ("QA_PIXEL",)}}``);
    ``thermal_only`` / ``reflectance_only`` add unjoined scenes.
    """

    def _make(
        scene_ids: tuple[str, ...] = (SCENE_ID,),
        *,
        reflectance_overrides: dict[str, dict[str, Any]] | None = None,
        metadata_overrides: dict[str, dict[str, object]] | None = None,
        reflectance_only: tuple[str, ...] = (),
        thermal_only: tuple[str, ...] = (),
    ) -> tuple[InMemoryCatalog, InMemoryCatalog]:
        reflectance_overrides = reflectance_overrides or {}
        metadata_overrides = metadata_overrides or {}
        reflectance = InMemoryCatalog(name="c2l2")
        thermal = InMemoryCatalog(name="c2l1")

        for scene_id in (*scene_ids, *reflectance_only):
            reflectance.add(
                CatalogEntry(
                    scene_id=scene_id,
                    bands=_reflectance_bands(**reflectance_overrides.get(scene_id, {})),
                    sensor="L8",
                    acquired=date(2021, 7, 15),
                    bounds=(-9.3, 38.6, -9.0, 38.8),
                )
            )
        for scene_id in (*scene_ids, *thermal_only):
            thermal.add(
                CatalogEntry(
                    scene_id=scene_id,
                    bands=_thermal_bands(),
                    sensor="L8",
                    acquired=date(2021, 7, 15),
                    bounds=(-9.3, 38.6, -9.0, 38.8),
                    metadata=metadata_overrides.get(scene_id, _thermal_metadata()),
                )
            )
        return reflectance, thermal

    return _make
