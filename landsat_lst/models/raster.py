"""Immutable multi-band raster value.

A ``Raster`` is the unit every stage consumes and produces: a set of
co-registered 2-D bands, a per-pixel validity mask, and read-only scene
properties. Stages never mutate a raster; they return a new one from
``with_bands`` carrying additional or replaced bands. Band arrays are
made read-only when a raster is built, so a later stage cannot write
into an earlier stage's output by accident.

NoData inside computed float bands is ``NaN``. The validity mask is the
separate "is this pixel usable at all" layer (fill, clouds) and is never
folded into band values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.exceptions import MissingBandError
from landsat_lst.core.raster_algebra import valid_mask
from landsat_lst.models._checks import ModelValidationError

if TYPE_CHECKING:
    import numpy.typing as npt


def _freeze(values: npt.ArrayLike) -> np.ndarray:
    """Return a read-only array for *values*, copying only writable input."""
    arr = np.asarray(values)
    if arr.flags.writeable:
        arr = arr.copy()
        arr.flags.writeable = False
    return arr


@dataclass(frozen=True, slots=True, eq=False)
class Raster:
    """A co-registered stack of named 2-D bands for one scene.

    Attributes:
        bands: Band name → 2-D array. All bands share one shape.
        mask: Boolean validity mask (True = valid). Defaults to all valid.
        scene_id: Identifier of the scene the raster belongs to.
        properties: Read-only scene properties (e.g. ``acquired``, ``sensor``).
    """

    bands: Mapping[str, np.ndarray]
    mask: np.ndarray | None = None
    scene_id: str = ""
    properties: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.bands:
            raise ModelValidationError("Raster", "bands", {}, "must contain at least one band")

        frozen: dict[str, np.ndarray] = {}
        shape: tuple[int, ...] | None = None
        for name, values in self.bands.items():
            arr = _freeze(values)
            if arr.ndim != 2:
                raise ModelValidationError(
                    "Raster", "bands", name, f"must be 2-D, got {arr.ndim}-D"
                )
            if shape is None:
                shape = arr.shape
            elif arr.shape != shape:
                raise ModelValidationError(
                    "Raster",
                    "bands",
                    name,
                    f"shape {arr.shape} does not match {shape}",
                )
            frozen[str(name)] = arr

        if self.mask is None:
            mask = np.ones(shape, dtype=bool)  # type: ignore[arg-type]
            mask.flags.writeable = False
        else:
            mask = _freeze(np.asarray(self.mask, dtype=bool))
            if mask.shape != shape:
                raise ModelValidationError(
                    "Raster", "mask", mask.shape, f"must match band shape {shape}"
                )

        object.__setattr__(self, "bands", MappingProxyType(frozen))
        object.__setattr__(self, "mask", mask)
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def band_names(self) -> tuple[str, ...]:
        """Band names in insertion order."""
        return tuple(self.bands)

    @property
    def shape(self) -> tuple[int, int]:
        """``(rows, cols)`` shared by every band."""
        first = next(iter(self.bands.values()))
        return first.shape  # type: ignore[return-value]

    def has_band(self, name: str) -> bool:
        return name in self.bands

    def band(self, name: str, *, stage: str = "") -> np.ndarray:
        """Return the read-only array for *name*.

        Raises:
            MissingBandError: If the band is absent.
        """
        try:
            return self.bands[name]
        except KeyError:
            raise MissingBandError(name, scene_id=self.scene_id, stage=stage) from None

    def require(self, *names: str, stage: str = "") -> None:
        """Raise ``MissingBandError`` for the first of *names* that is absent."""
        for name in names:
            if name not in self.bands:
                raise MissingBandError(name, scene_id=self.scene_id, stage=stage)

    def masked(self, name: str) -> np.ma.MaskedArray:
        """Return band *name* as a masked array (invalid mask or NaN hidden)."""
        values = self.band(name)
        hidden = ~self.mask  # type: ignore[operator]
        if np.issubdtype(values.dtype, np.floating):
            hidden = hidden | ~valid_mask(values)
        return np.ma.masked_array(values, mask=hidden)

    def valid_count(self, name: str) -> int:
        """Number of pixels of *name* that are valid and not NoData."""
        return int(self.masked(name).count())

    # ------------------------------------------------------------------
    # Derivation (always returns a new Raster)
    # ------------------------------------------------------------------

    def with_bands(self, bands: Mapping[str, npt.ArrayLike]) -> Raster:
        """Return a new raster with *bands* added (same-named bands replaced)."""
        merged: dict[str, npt.ArrayLike] = dict(self.bands)
        merged.update(bands)
        return Raster(merged, mask=self.mask, scene_id=self.scene_id, properties=self.properties)

    def select(self, *names: str) -> Raster:
        """Return a new raster with only *names* (raises if one is absent)."""
        self.require(*names)
        return Raster(
            {n: self.bands[n] for n in names},
            mask=self.mask,
            scene_id=self.scene_id,
            properties=self.properties,
        )

    def combine(self, other: Raster) -> Raster:
        """Merge the bands of a co-registered raster into a new raster.

        Masks are intersected; properties of *other* fill keys that this
        raster does not define.

        Raises:
            ModelValidationError: If the shapes differ or a band name
                appears in both rasters.
        """
        if other.shape != self.shape:
            raise ModelValidationError(
                "Raster", "shape", other.shape, f"cannot combine with {self.shape}"
            )
        clash = sorted(set(self.bands) & set(other.bands))
        if clash:
            raise ModelValidationError("Raster", "bands", clash, "duplicate band names in combine")
        merged: dict[str, npt.ArrayLike] = dict(self.bands)
        merged.update(other.bands)
        properties = {**other.properties, **self.properties}
        return Raster(
            merged,
            mask=self.mask & other.mask,  # type: ignore[operator]
            scene_id=self.scene_id or other.scene_id,
            properties=properties,
        )

    def update_mask(self, mask: npt.ArrayLike) -> Raster:
        """Return a new raster whose mask is ``self.mask & mask``."""
        new_mask = self.mask & np.asarray(mask, dtype=bool)  # type: ignore[operator]
        return Raster(self.bands, mask=new_mask, scene_id=self.scene_id, properties=self.properties)

    def with_properties(self, **properties: object) -> Raster:
        """Return a new raster with extra or replaced properties."""
        return Raster(
            self.bands,
            mask=self.mask,
            scene_id=self.scene_id,
            properties={**self.properties, **properties},
        )
