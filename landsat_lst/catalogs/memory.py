"""In-memory scene catalog.

Holds ``CatalogEntry`` objects (arrays plus metadata) and serves them
through the ``SceneCatalog`` contract. Used for synthetic scenes, for
callers that already hold arrays, and throughout the tests.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from landsat_lst.catalogs.base import (
    CatalogLoadError,
    SceneCatalog,
    matches_window,
    search_order,
)
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import SceneRef

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date

    import numpy as np
    import numpy.typing as npt

    from landsat_lst.catalogs.base import Bounds

logger = logging.getLogger("landsat_lst.catalogs.memory")


@dataclass(frozen=True, slots=True, eq=False)
class CatalogEntry:
    """One scene held in memory.

    Attributes:
        scene_id: Join key.
        bands: Band name → 2-D array.
        sensor: Sensor identifier.
        acquired: Acquisition date.
        bounds: ``(min_lon, min_lat, max_lon, max_lat)`` footprint.
        metadata: Flat metadata (thermal calibration keys for thermal scenes).
        mask: Optional validity mask (True = valid).
    """

    scene_id: str
    bands: Mapping[str, npt.ArrayLike]
    sensor: str = ""
    acquired: date | None = None
    bounds: tuple[float, float, float, float] | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)
    mask: np.ndarray | None = None


class InMemoryCatalog(SceneCatalog):
    """Serve ``CatalogEntry`` objects in insertion order.

    Args:
        entries: The scenes the catalog holds.
        name: Catalog name recorded on every ``SceneRef``.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = (), *, name: str = "memory") -> None:
        super().__init__(name)
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: CatalogEntry) -> None:
        """Add or replace an entry (keyed by ``scene_id``)."""
        self._entries[entry.scene_id] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def _ref(self, entry: CatalogEntry) -> SceneRef:
        return SceneRef(
            scene_id=entry.scene_id,
            catalog=self.name,
            sensor=entry.sensor,
            acquired=entry.acquired,
            bounds=entry.bounds,
            location=entry.scene_id,
            product_id=entry.scene_id,
            metadata=entry.metadata,
        )

    def search(
        self,
        date_start: date | None = None,
        date_end: date | None = None,
        bounds: Bounds | None = None,
    ) -> list[SceneRef]:
        refs = [self._ref(e) for e in self._entries.values()]
        hits = sorted(
            (r for r in refs if matches_window(r, date_start, date_end, bounds)),
            key=search_order,
        )
        logger.debug(
            "Catalog search | catalog=%s | candidates=%d | hits=%d",
            self.name,
            len(refs),
            len(hits),
        )
        return hits

    def load(self, ref: SceneRef, bands: Sequence[str]) -> Raster:
        entry = self._entries.get(ref.location)
        if entry is None:
            raise CatalogLoadError(
                self.name,
                f"Scene {ref.scene_id!r} is not held by this catalog",
                correlation_id=ref.scene_id,
            )

        selected = {name: entry.bands[name] for name in bands if name in entry.bands}
        if not selected:
            raise CatalogLoadError(
                self.name,
                f"Scene {ref.scene_id!r} has none of the requested bands: {', '.join(bands)}",
                correlation_id=ref.scene_id,
            )

        return Raster(
            selected,
            mask=entry.mask,
            scene_id=ref.scene_id,
            properties={
                "catalog": self.name,
                "sensor": entry.sensor,
                "acquired": entry.acquired.isoformat() if entry.acquired else "",
            },
        )
