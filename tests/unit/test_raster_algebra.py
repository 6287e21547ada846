"""Tests for the elementwise raster algebra primitives."""

from __future__ import annotations

import numpy as np
import pytest

from landsat_lst.core.raster_algebra import (
    bit_is_set,
    calibrated_radiance,
    clamp,
    safe_divide,
    scale_offset,
    valid_mask,
    where,
)


class TestScaleOffset:
    def test_applies_scale_and_offset(self) -> None:
        out = scale_offset(np.array([[0, 10000]], dtype=np.uint16), 0.0000275, -0.2)
        assert out.dtype == np.float64
        assert out[0, 0] == pytest.approx(-0.2)
        assert out[0, 1] == pytest.approx(0.075)


class TestSafeDivide:
    def test_zero_denominator_is_nan(self) -> None:
        out = safe_divide(np.array([1.0, 2.0]), np.array([0.0, 4.0]))
        assert np.isnan(out[0])
        assert out[1] == 0.5

    def test_zero_over_zero_is_nan(self) -> None:
        assert np.isnan(safe_divide(0.0, 0.0))

    def test_nan_propagates(self) -> None:
        assert np.isnan(safe_divide(np.nan, 2.0))


class TestClamp:
    def test_bounds(self) -> None:
        out = clamp(np.array([-1.0, 0.5, 3.0]), 0.0, 1.0)
        np.testing.assert_array_equal(out, [0.0, 0.5, 1.0])

    def test_nan_stays_nan(self) -> None:
        assert np.isnan(clamp(np.array([np.nan]), 0.0, 1.0)[0])


class TestWhere:
    def test_later_calls_win(self) -> None:
        base = np.zeros(3)
        first = where(np.array([True, True, False]), 1.0, base)
        second = where(np.array([False, True, False]), 2.0, first)
        np.testing.assert_array_equal(second, [1.0, 2.0, 0.0])

    def test_nan_condition_keeps_base(self) -> None:
        values = np.array([np.nan, 0.9])
        with np.errstate(invalid="ignore"):
            out = where(values > 0.5, 1.0, np.zeros(2))
        np.testing.assert_array_equal(out, [0.0, 1.0])


class TestBitIsSet:
    def test_water_bit(self) -> None:
        qa = np.array([0, 1 << 7, (1 << 7) | (1 << 5), 1 << 5], dtype=np.uint16)
        np.testing.assert_array_equal(bit_is_set(qa, 7), [False, True, True, False])

    def test_float_qa_with_nan(self) -> None:
        qa = np.array([np.nan, 128.0])
        np.testing.assert_array_equal(bit_is_set(qa, 7), [False, True])


class TestCalibratedRadiance:
    def test_gain_and_offset(self) -> None:
        out = calibrated_radiance(np.array([100.0, 200.0]), 0.1, 0.5)
        np.testing.assert_allclose(out, [10.5, 20.5])

    def test_fill_is_nan(self) -> None:
        out = calibrated_radiance(np.array([0, 100], dtype=np.uint16), 0.1, 0.0)
        assert np.isnan(out[0])
        assert out[1] == pytest.approx(10.0)


class TestValidMask:
    def test_finite(self) -> None:
        np.testing.assert_array_equal(
            valid_mask(np.array([1.0, np.nan, np.inf])), [True, False, False]
        )
