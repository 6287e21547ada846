"""Local Landsat Collection 2 scene folders.

Each product lives in its own directory, as delivered by USGS:

    <root>/<product_id>/<product_id>_MTL.json
    <root>/<product_id>/<product_id>_<BAND>.TIF

The same layout serves both sources of a retrieval run: point one
catalog at Level-2 products (``SR_B*``, ``QA_PIXEL``, ``ST_*``) and
another at Level-1 products (``B10`` / ``B6``). ASTER GED layers already
co-registered to a scene are read the same way when present
(``<product_id>_emissivity_band13.TIF``, ...).

Scene id (join key)
-------------------
Level-1 and Level-2 products of one overpass differ in processing level
and dates, so the join key keeps only ``{sensor}_{path/row}_{acquired}``:
``LC08_L2SP_204033_20210715_20210721_02_T1`` → ``L8_204033_20210715``.

Bands are read with ``rasterio`` as masked arrays; the product's nodata
becomes ``False`` in the raster's validity mask.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from landsat_lst.catalogs.base import (
    CatalogLoadError,
    CatalogSearchError,
    SceneCatalog,
    matches_window,
    search_order,
)
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import SceneRef

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from landsat_lst.catalogs.base import Bounds

logger = logging.getLogger("landsat_lst.catalogs.landsat_folder")

MTL_SUFFIX = "_MTL.json"
BAND_EXTENSIONS = (".TIF", ".tif")

#: Product-id mission prefix → sensor.
SENSOR_PREFIXES: dict[str, str] = {
    "LT04": "L4",
    "LT05": "L5",
    "LE07": "L7",
    "LC08": "L8",
}

_CORNERS = ("UL", "UR", "LL", "LR")


class LandsatFolderCatalog(SceneCatalog):
    """Scene catalog over a directory of Collection 2 product folders.

    Args:
        root: Directory holding one sub-directory per product (or the
            products' files directly).
        name: Catalog name recorded on every ``SceneRef``.
    """

    def __init__(self, root: str | Path, *, name: str = "landsat_folder") -> None:
        super().__init__(name)
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def search(
        self,
        date_start: date | None = None,
        date_end: date | None = None,
        bounds: Bounds | None = None,
    ) -> list[SceneRef]:
        if not self._root.is_dir():
            raise CatalogSearchError(self.name, f"Catalog root {self._root} is not a directory")

        refs: list[SceneRef] = []
        for mtl_path in sorted(self._root.glob(f"**/*{MTL_SUFFIX}")):
            try:
                ref = self._ref_from_mtl(mtl_path)
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning(
                    "Skipping unreadable MTL | catalog=%s | path=%s | error=%s",
                    self.name,
                    mtl_path,
                    exc,
                )
                continue
            if matches_window(ref, date_start, date_end, bounds):
                refs.append(ref)

        refs.sort(key=search_order)
        logger.info(
            "Catalog search completed | catalog=%s | root=%s | hits=%d",
            self.name,
            self._root,
            len(refs),
        )
        return refs

    def load(self, ref: SceneRef, bands: Sequence[str]) -> Raster:
        location = Path(ref.location)
        arrays: dict[str, np.ndarray] = {}
        mask: np.ndarray | None = None

        for band in bands:
            path = _band_path(location, ref.product_id, band)
            if path is None:
                continue
            values, valid = _read_band(path, catalog=self.name, scene_id=ref.scene_id)
            arrays[band] = values
            if mask is None:
                mask = valid
            elif mask.shape == valid.shape:
                mask = mask & valid
            else:
                raise CatalogLoadError(
                    self.name,
                    f"Band {band!r} of {ref.scene_id!r} has shape {valid.shape}, "
                    f"expected {mask.shape}; bands must be co-registered",
                    correlation_id=ref.scene_id,
                )

        if not arrays:
            raise CatalogLoadError(
                self.name,
                f"Scene {ref.scene_id!r} has none of the requested bands in {location}",
                correlation_id=ref.scene_id,
            )

        logger.debug(
            "Scene loaded | catalog=%s | scene=%s | bands=%s",
            self.name,
            ref.scene_id,
            ",".join(arrays),
        )
        return Raster(
            arrays,
            mask=mask,
            scene_id=ref.scene_id,
            properties={
                "catalog": self.name,
                "sensor": ref.sensor,
                "product_id": ref.product_id,
                "acquired": ref.acquired.isoformat() if ref.acquired else "",
            },
        )

    # ------------------------------------------------------------------
    # MTL parsing
    # ------------------------------------------------------------------

    def _ref_from_mtl(self, mtl_path: Path) -> SceneRef:
        with mtl_path.open(encoding="utf-8") as fh:
            document = json.load(fh)
        mtl = document["LANDSAT_METADATA_FILE"]

        product_id = str(mtl["PRODUCT_CONTENTS"]["LANDSAT_PRODUCT_ID"])
        image = mtl.get("IMAGE_ATTRIBUTES", {})
        acquired_raw = image.get("DATE_ACQUIRED")

        return SceneRef(
            scene_id=scene_id_from_product_id(product_id),
            catalog=self.name,
            sensor=sensor_from_product_id(product_id),
            acquired=date.fromisoformat(acquired_raw) if acquired_raw else None,
            bounds=footprint(mtl.get("PROJECTION_ATTRIBUTES", {})),
            location=str(mtl_path.parent),
            product_id=product_id,
            metadata=flatten_mtl(mtl),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def sensor_from_product_id(product_id: str) -> str:
    """``LC08_...`` → ``L8``. Unknown missions return the raw prefix."""
    prefix = product_id.split("_", 1)[0]
    return SENSOR_PREFIXES.get(prefix, prefix)


def scene_id_from_product_id(product_id: str) -> str:
    """Join key ``{sensor}_{path/row}_{acquired}`` from a product id.

    Raises:
        ValueError: If the id does not have the Collection 2 shape.
    """
    parts = product_id.split("_")
    if len(parts) < 4:
        msg = f"Not a Landsat Collection 2 product id: {product_id!r}"
        raise ValueError(msg)
    return f"{sensor_from_product_id(product_id)}_{parts[2]}_{parts[3]}"


def footprint(projection: Mapping[str, Any]) -> tuple[float, float, float, float] | None:
    """Bounding box of the four product corners, or ``None`` if incomplete."""
    lats: list[float] = []
    lons: list[float] = []
    for corner in _CORNERS:
        lat = projection.get(f"CORNER_{corner}_LAT_PRODUCT")
        lon = projection.get(f"CORNER_{corner}_LON_PRODUCT")
        if lat is None or lon is None:
            return None
        lats.append(float(lat))
        lons.append(float(lon))
    return (min(lons), min(lats), max(lons), max(lats))


def flatten_mtl(mtl: Mapping[str, Any]) -> dict[str, object]:
    """Flatten MTL groups into one ``KEY → value`` mapping.

    Group names are dropped; Collection 2 keys are unique across groups.
    """
    flat: dict[str, object] = {}
    for key, value in mtl.items():
        if isinstance(value, dict):
            flat.update(flatten_mtl(value))
        else:
            flat[key] = value
    return flat


def _band_path(location: Path, product_id: str, band: str) -> Path | None:
    for ext in BAND_EXTENSIONS:
        path = location / f"{product_id}_{band}{ext}"
        if path.is_file():
            return path
    return None


def _read_band(path: Path, *, catalog: str, scene_id: str) -> tuple[np.ndarray, np.ndarray]:
    """Read band 1 of *path*; return ``(values, valid_mask)``.

    Raises:
        CatalogLoadError: If rasterio cannot read the file.
    """
    import rasterio
    from rasterio.errors import RasterioError

    try:
        with rasterio.open(path) as src:
            data = src.read(1, masked=True)
    except RasterioError as exc:
        raise CatalogLoadError(
            catalog,
            f"Cannot read {path.name}: {exc}",
            correlation_id=scene_id,
        ) from exc

    return np.ma.getdata(data), ~np.ma.getmaskarray(data)
