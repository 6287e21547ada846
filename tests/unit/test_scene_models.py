"""Tests for scene-level models: calibration, refs, pairs, skip records."""

from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from landsat_lst.core.exceptions import (
    MissingBandError,
    MissingCalibrationError,
    UnjoinedSceneError,
)
from landsat_lst.models._checks import ModelValidationError
from landsat_lst.models.bands import BandSet, band_set_for
from landsat_lst.models.raster import Raster
from landsat_lst.models.scene import (
    Scene,
    SceneCollection,
    ScenePair,
    SceneRef,
    SkipRecord,
    ThermalCalibration,
)


class TestThermalCalibration:
    def test_from_metadata(self, thermal_metadata: dict[str, object], band_set: BandSet) -> None:
        cal = ThermalCalibration.from_metadata(thermal_metadata, band_set, scene_id="s1")
        assert cal.k1 == 774.89
        assert cal.k2 == 1321.08
        assert cal.radiance_mult == 0.1
        assert cal.radiance_add == 0.0

    def test_l7_uses_vcid_1_keys(self) -> None:
        metadata = {
            "K1_CONSTANT_BAND_6_VCID_1": 666.09,
            "K2_CONSTANT_BAND_6_VCID_1": 1282.71,
            "RADIANCE_MULT_BAND_6_VCID_1": 0.067,
            "RADIANCE_ADD_BAND_6_VCID_1": -0.067,
            "K1_CONSTANT_BAND_6_VCID_2": 1.0,
        }
        cal = ThermalCalibration.from_metadata(metadata, band_set_for("L7"))
        assert cal.k1 == 666.09
        assert cal.radiance_add == -0.067

    def test_missing_key(self, thermal_metadata: dict[str, object], band_set: BandSet) -> None:
        del thermal_metadata["K2_CONSTANT_BAND_10"]
        with pytest.raises(MissingCalibrationError) as exc_info:
            ThermalCalibration.from_metadata(thermal_metadata, band_set, scene_id="s1")
        assert exc_info.value.key == "K2_CONSTANT_BAND_10"
        assert exc_info.value.scene_id == "s1"

    def test_non_numeric_value(
        self, thermal_metadata: dict[str, object], band_set: BandSet
    ) -> None:
        thermal_metadata["K1_CONSTANT_BAND_10"] = "n/a"
        with pytest.raises(MissingCalibrationError, match="K1_CONSTANT_BAND_10"):
            ThermalCalibration.from_metadata(thermal_metadata, band_set)

    def test_non_positive_constant(self) -> None:
        with pytest.raises(ModelValidationError, match="k1"):
            ThermalCalibration(k1=0.0, k2=1321.08)


class TestSceneRef:
    def test_metadata_read_only(self) -> None:
        ref = SceneRef("s1", "c2l2", metadata={"a": 1})
        with pytest.raises(TypeError):
            ref.metadata["a"] = 2  # type: ignore[index]

    def test_empty_scene_id(self) -> None:
        with pytest.raises(ModelValidationError):
            SceneRef("", "c2l2")

    def test_inverted_bounds(self) -> None:
        with pytest.raises(ModelValidationError, match="bounds"):
            SceneRef("s1", "c2l2", bounds=(1.0, 0.0, 0.0, 1.0))


class TestScenePair:
    def test_ids_must_match(self) -> None:
        with pytest.raises(ModelValidationError):
            ScenePair(SceneRef("s1", "a"), SceneRef("s2", "b"))

    def test_scene_id(self) -> None:
        assert ScenePair(SceneRef("s1", "a"), SceneRef("s1", "b")).scene_id == "s1"

    def test_collection(self) -> None:
        pair = ScenePair(SceneRef("s1", "a"), SceneRef("s1", "b"))
        collection = SceneCollection(pairs=(pair,))
        assert len(collection) == 1
        assert list(collection) == [pair]
        assert collection.scene_ids == ("s1",)


class TestScene:
    def test_shapes_must_match(self) -> None:
        with pytest.raises(ModelValidationError, match="co-registered"):
            Scene(
                scene_id="s1",
                sensor="L8",
                raster=Raster({"A": np.ones((2, 2))}),
                thermal=Raster({"B10": np.ones((3, 3))}),
                calibration=ThermalCalibration(k1=774.89, k2=1321.08),
                acquired=date(2021, 7, 15),
            )


class TestSkipRecord:
    def test_from_missing_band(self) -> None:
        err = MissingBandError("QA_PIXEL", scene_id="s1", stage="emissivity")
        record = SkipRecord.from_error("s1", err, state="vegetation_indexed")
        assert record.code == "MISSING_BAND"
        assert record.stage == "emissivity"
        assert record.category == "contract"
        assert record.state == "vegetation_indexed"
        assert record.detail == {"band": "QA_PIXEL"}

    def test_from_unjoined(self) -> None:
        record = SkipRecord.from_error("s1", UnjoinedSceneError("s1", source="thermal", matches=2))
        assert dict(record.detail) == {"source": "thermal", "matches": 2}
        assert record.state == ""

    def test_to_dict(self) -> None:
        err = MissingCalibrationError("K1_CONSTANT_BAND_10", scene_id="s1")
        payload = SkipRecord.from_error("s1", err, state="selected").to_dict()
        assert set(payload) == {
            "scene_id",
            "code",
            "stage",
            "category",
            "message",
            "state",
            "detail",
        }
        assert payload["detail"] == {"key": "K1_CONSTANT_BAND_10"}
