"""Tests for the immutable Raster value."""

from __future__ import annotations

import numpy as np
import pytest

from landsat_lst.core.exceptions import MissingBandError
from landsat_lst.models._checks import ModelValidationError
from landsat_lst.models.raster import Raster


def _raster(**kwargs: object) -> Raster:
    bands = {"A": np.arange(6, dtype=np.float64).reshape(2, 3), "B": np.ones((2, 3))}
    return Raster(bands, scene_id="s1", **kwargs)  # type: ignore[arg-type]


class TestRasterConstruction:
    def test_default_mask_all_valid(self) -> None:
        r = _raster()
        assert r.mask.shape == (2, 3)
        assert r.mask.all()

    def test_band_names_in_order(self) -> None:
        assert _raster().band_names == ("A", "B")

    def test_shape(self) -> None:
        assert _raster().shape == (2, 3)

    def test_empty_bands_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="at least one band"):
            Raster({})

    def test_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="does not match"):
            Raster({"A": np.ones((2, 3)), "B": np.ones((3, 2))})

    def test_non_2d_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="2-D"):
            Raster({"A": np.ones(3)})

    def test_mask_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ModelValidationError):
            Raster({"A": np.ones((2, 2))}, mask=np.ones((3, 3), dtype=bool))

    def test_bands_are_read_only(self) -> None:
        r = _raster()
        with pytest.raises(ValueError):
            r.band("A")[0, 0] = 99.0

    def test_caller_array_not_frozen(self) -> None:
        source = np.ones((2, 2))
        Raster({"A": source})
        source[0, 0] = 5.0
        assert source[0, 0] == 5.0

    def test_later_writes_to_source_do_not_leak(self) -> None:
        source = np.ones((2, 2))
        r = Raster({"A": source})
        source[0, 0] = 5.0
        assert r.band("A")[0, 0] == 1.0

    def test_properties_read_only(self) -> None:
        r = _raster(properties={"sensor": "L8"})
        with pytest.raises(TypeError):
            r.properties["sensor"] = "L5"  # type: ignore[index]


class TestRasterAccess:
    def test_missing_band_raises(self) -> None:
        with pytest.raises(MissingBandError) as exc_info:
            _raster().band("QA_PIXEL", stage="emissivity")
        assert exc_info.value.band == "QA_PIXEL"
        assert exc_info.value.scene_id == "s1"
        assert exc_info.value.stage == "emissivity"

    def test_require_names_first_missing(self) -> None:
        with pytest.raises(MissingBandError) as exc_info:
            _raster().require("A", "X", "Y")
        assert exc_info.value.band == "X"

    def test_masked_hides_invalid_and_nan(self) -> None:
        mask = np.array([[True, False, True], [True, True, True]])
        r = Raster({"A": np.array([[1.0, 2.0, np.nan], [4.0, 5.0, 6.0]])}, mask=mask)
        values = r.masked("A")
        assert values.count() == 4
        assert r.valid_count("A") == 4
        assert float(values.min()) == 1.0


class TestRasterDerivation:
    def test_with_bands_adds_without_mutating(self) -> None:
        r = _raster()
        r2 = r.with_bands({"C": np.zeros((2, 3))})
        assert r2.band_names == ("A", "B", "C")
        assert r.band_names == ("A", "B")
        assert r2.scene_id == "s1"

    def test_with_bands_replaces(self) -> None:
        r2 = _raster().with_bands({"A": np.full((2, 3), 7.0)})
        assert (r2.band("A") == 7.0).all()

    def test_select(self) -> None:
        assert _raster().select("B").band_names == ("B",)

    def test_combine_ands_masks_and_merges_properties(self) -> None:
        left = Raster(
            {"A": np.ones((2, 2))},
            mask=np.array([[True, True], [False, True]]),
            scene_id="s1",
            properties={"sensor": "L8"},
        )
        right = Raster(
            {"B10": np.ones((2, 2))},
            mask=np.array([[True, False], [True, True]]),
            properties={"sensor": "X", "catalog": "c2l1"},
        )
        combined = left.combine(right)
        assert combined.band_names == ("A", "B10")
        np.testing.assert_array_equal(combined.mask, [[True, False], [False, True]])
        assert combined.properties["sensor"] == "L8"
        assert combined.properties["catalog"] == "c2l1"
        assert combined.scene_id == "s1"

    def test_combine_duplicate_band_rejected(self) -> None:
        r = _raster()
        with pytest.raises(ModelValidationError, match="duplicate"):
            r.combine(r.select("A"))

    def test_combine_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ModelValidationError):
            _raster().combine(Raster({"C": np.ones((4, 4))}))

    def test_update_mask_narrows(self) -> None:
        r = _raster().update_mask(np.array([[True, False, True], [True, True, False]]))
        assert int(r.mask.sum()) == 4

    def test_with_properties(self) -> None:
        r = _raster(properties={"a": 1}).with_properties(b=2)
        assert dict(r.properties) == {"a": 1, "b": 2}
