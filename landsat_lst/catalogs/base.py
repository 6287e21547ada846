"""SceneCatalog abstract base class.

Defines the contract every scene source implements. The orchestrator
talks only to this interface; it never knows whether scenes come from
memory, a local folder of Collection 2 products, or anything else.

Lifecycle:
    1. ``search(date_start, date_end, bounds)``: find scenes in a window.
    2. ``metadata(ref)``: flat scene metadata (calibration constants).
    3. ``load(ref, bands)``: read the requested bands into a ``Raster``.

``load`` returns whichever of the requested bands exist. A band the
scene does not have is simply absent from the raster, so the stage that
needs it raises ``MissingBandError`` and only that scene is dropped.
"""

from __future__ import annotations

import abc
from datetime import date
from typing import TYPE_CHECKING

from landsat_lst.core.exceptions import PipelineError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from landsat_lst.models.raster import Raster
    from landsat_lst.models.scene import SceneRef

#: ``(min_lon, min_lat, max_lon, max_lat)``
Bounds = tuple[float, float, float, float]

#: ``(date_start, date_end)``, inclusive; ``None`` leaves that side open
DateRange = tuple[date | None, date | None]


class SceneCatalog(abc.ABC):
    """Abstract base class for scene sources.

    Example usage::

        catalog = get_catalog("landsat_folder", root="/data/c2l2")
        refs = catalog.search(date(2021, 6, 1), date(2021, 8, 31), bounds)
        raster = catalog.load(refs[0], ["SR_B4", "SR_B5", "QA_PIXEL"])
    """

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @abc.abstractmethod
    def search(
        self,
        date_start: date | None = None,
        date_end: date | None = None,
        bounds: Bounds | None = None,
    ) -> list[SceneRef]:
        """Return scenes acquired in ``[date_start, date_end]`` intersecting *bounds*.

        ``None`` disables that part of the predicate. Results are ordered
        by acquisition date, then scene id.

        Raises:
            CatalogSearchError: If the catalog cannot be listed.
        """

    @abc.abstractmethod
    def load(self, ref: SceneRef, bands: Sequence[str]) -> Raster:
        """Read the requested *bands* of *ref* that exist.

        Raises:
            CatalogLoadError: If none of the requested bands can be read.
        """

    def metadata(self, ref: SceneRef) -> Mapping[str, object]:
        """Return the scene's flat metadata. Defaults to ``ref.metadata``."""
        return ref.metadata


# ---------------------------------------------------------------------------
# Catalog exceptions
# ---------------------------------------------------------------------------


class CatalogError(PipelineError):
    """Base exception for catalog errors.

    Attributes:
        catalog: Name of the catalog that raised the error.
    """

    default_stage = "catalog"
    default_code = "CATALOG_ERROR"

    def __init__(
        self,
        catalog: str,
        message: str,
        *,
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.catalog = catalog
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
            correlation_id=correlation_id,
        )

    def __str__(self) -> str:
        return f"[{self.catalog}] {self.message}"


class CatalogSearchError(CatalogError):
    """The catalog could not be searched. Fatal for the run."""

    default_code = "CATALOG_SEARCH_FAILED"


class CatalogLoadError(CatalogError):
    """A scene could not be read. Fatal for that scene only."""

    default_code = "CATALOG_LOAD_FAILED"


# ---------------------------------------------------------------------------
# Search predicate shared by the built-in catalogs
# ---------------------------------------------------------------------------


def matches_window(
    ref: SceneRef,
    date_start: date | None = None,
    date_end: date | None = None,
    bounds: Bounds | None = None,
) -> bool:
    """Return True if *ref* falls in the date window and touches *bounds*.

    A scene without a date or footprint passes the part of the predicate
    it cannot be tested against.
    """
    if ref.acquired is not None:
        if date_start is not None and ref.acquired < date_start:
            return False
        if date_end is not None and ref.acquired > date_end:
            return False

    if bounds is not None and ref.bounds is not None:
        from shapely.geometry import box

        return bool(box(*ref.bounds).intersects(box(*bounds)))
    return True


def search_order(ref: SceneRef) -> tuple[date, str]:
    """Sort key for search results: acquisition date, then scene id."""
    return (ref.acquired or date.min, ref.scene_id)
