"""Scene catalogs: where input rasters and calibration metadata come from.

- ``SceneCatalog``: the contract the orchestrator depends on
- ``InMemoryCatalog``: arrays already in memory
- ``LandsatFolderCatalog``: local Collection 2 product folders (rasterio)

Select one by name with ``get_catalog``.
"""

from landsat_lst.catalogs.base import (
    CatalogError,
    CatalogLoadError,
    CatalogSearchError,
    SceneCatalog,
)
from landsat_lst.catalogs.factory import get_catalog, list_catalogs, register_catalog

__all__ = [
    "CatalogError",
    "CatalogLoadError",
    "CatalogSearchError",
    "SceneCatalog",
    "get_catalog",
    "list_catalogs",
    "register_catalog",
]
