"""Elementwise raster algebra over numpy arrays.

This is the adapter for the raster/array engine the retrieval stages are
written against. Every primitive is a pure, position-local function of
its inputs, uses ``NaN`` as NoData, and never raises for per-pixel
domain violations.

- ``scale_offset``: linear DN rescaling
- ``safe_divide``: division with NoData where the denominator is zero
- ``clamp``: hard floor / ceiling, NoData preserved
- ``where``: ordered masked assignment over a base array
- ``bit_is_set``: bitwise flag test on a categorical (QA) array
- ``calibrated_radiance``: DN → TOA radiance with fill masking
- ``valid_mask``: finite-value mask
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from landsat_lst.core.constants import FILL_DN

if TYPE_CHECKING:
    import numpy.typing as npt


def as_float(values: npt.ArrayLike) -> np.ndarray:
    """Return *values* as a float64 array (copying integer DN arrays)."""
    return np.asarray(values, dtype=np.float64)


def scale_offset(values: npt.ArrayLike, scale: float, offset: float = 0.0) -> np.ndarray:
    """Apply ``values * scale + offset`` in float64."""
    return as_float(values) * scale + offset


def safe_divide(numerator: npt.ArrayLike, denominator: npt.ArrayLike) -> np.ndarray:
    """Divide elementwise, returning NaN where the denominator is zero.

    Non-finite results (inf from overflow, NaN inputs) are also NaN so an
    infinity never leaks into downstream stages.
    """
    num = as_float(numerator)
    den = as_float(denominator)
    with np.errstate(divide="ignore", invalid="ignore"):
        out = np.divide(num, den)
    out = np.where(den == 0.0, np.nan, out)
    return np.where(np.isfinite(out), out, np.nan)


def clamp(values: npt.ArrayLike, lower: float, upper: float) -> np.ndarray:
    """Clamp to ``[lower, upper]``. NaN stays NaN."""
    return np.clip(as_float(values), lower, upper)


def where(condition: npt.ArrayLike, value: npt.ArrayLike, base: npt.ArrayLike) -> np.ndarray:
    """Masked assignment: *value* where *condition* holds, else *base*.

    Conditions involving NaN evaluate False, so NoData pixels keep the
    base value. Applying several ``where`` calls in sequence gives a
    fixed override precedence (later calls win).
    """
    cond = np.asarray(condition, dtype=bool)
    return np.where(cond, as_float(value), as_float(base))


def bit_is_set(qa: npt.ArrayLike, bit: int) -> np.ndarray:
    """Return a boolean array that is True where *bit* is set in *qa*."""
    flags = np.asarray(qa)
    if not np.issubdtype(flags.dtype, np.integer):
        flags = np.nan_to_num(flags, nan=0.0).astype(np.int64)
    return np.bitwise_and(flags, 1 << bit) != 0


def calibrated_radiance(dn: npt.ArrayLike, mult: float, add: float) -> np.ndarray:
    """Convert raw thermal DN to TOA spectral radiance.

    ``L = DN * mult + add``; fill pixels (DN == 0) become NaN.
    """
    raw = as_float(dn)
    radiance = raw * mult + add
    return np.where(raw == FILL_DN, np.nan, radiance)


def valid_mask(values: npt.ArrayLike) -> np.ndarray:
    """Return True where *values* is finite."""
    return np.isfinite(as_float(values))
