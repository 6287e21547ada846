"""Catalog factory: selects a scene catalog by name.

The factory keeps a registry of known catalogs. Each entry is a lazy
loader so that a catalog's heavier dependencies (``rasterio`` for the
folder catalog) are imported only when that catalog is selected.

Usage::

    from landsat_lst.catalogs.factory import get_catalog

    catalog = get_catalog("landsat_folder", root="/data/c2l2")
    refs = catalog.search(bounds=(-9.3, 38.6, -9.0, 38.8))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from landsat_lst.catalogs.base import CatalogError, SceneCatalog

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("landsat_lst.catalogs.factory")

# ---------------------------------------------------------------------------
# Catalog name constants
# ---------------------------------------------------------------------------

MEMORY = "memory"
LANDSAT_FOLDER = "landsat_folder"

# ---------------------------------------------------------------------------
# Lazy-import catalog registry
# ---------------------------------------------------------------------------

_CATALOG_REGISTRY: dict[str, Callable[[], type[SceneCatalog]]] = {}


def _register_builtin_catalogs() -> None:
    """Register the built-in catalogs (called once, on first use)."""

    def _memory() -> type[SceneCatalog]:
        from landsat_lst.catalogs.memory import InMemoryCatalog

        return InMemoryCatalog

    def _landsat_folder() -> type[SceneCatalog]:
        from landsat_lst.catalogs.landsat_folder import LandsatFolderCatalog

        return LandsatFolderCatalog

    _CATALOG_REGISTRY[MEMORY] = _memory
    _CATALOG_REGISTRY[LANDSAT_FOLDER] = _landsat_folder


def _ensure_registry() -> None:
    if not _CATALOG_REGISTRY:
        _register_builtin_catalogs()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_catalog(name: str, loader: Callable[[], type[SceneCatalog]]) -> None:
    """Register a custom catalog.

    Args:
        name: Catalog name (e.g. ``"my_archive"``).
        loader: A zero-argument callable that returns the catalog class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Catalog name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _CATALOG_REGISTRY[name] = loader
    logger.debug("Registered catalog: %s", name)


def get_catalog(name: str, **kwargs: object) -> SceneCatalog:
    """Create and return a catalog instance.

    Args:
        name: Catalog identifier (``"memory"``, ``"landsat_folder"``).
        **kwargs: Passed to the catalog constructor.

    Raises:
        CatalogError: If the named catalog is not registered.
    """
    _ensure_registry()

    loader = _CATALOG_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_CATALOG_REGISTRY))
        msg = f"Unknown scene catalog: {name!r}. Available: {available}"
        raise CatalogError(catalog=name, message=msg)

    catalog_cls = loader()
    logger.info("Creating scene catalog: %s", name)
    return catalog_cls(**kwargs)  # type: ignore[arg-type]


def list_catalogs() -> list[str]:
    """Return the names of all registered catalogs."""
    _ensure_registry()
    return sorted(_CATALOG_REGISTRY)
