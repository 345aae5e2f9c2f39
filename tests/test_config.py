"""Unit tests for the analysis configuration."""

from __future__ import annotations

import json
import math

import pytest

from astrovessel.core import (
    AnalysisConfig,
    AstrocyteDetectionConfig,
    Calibration,
    ConfigurationError,
    MicrogliaDetectionConfig,
    VesselDetectionConfig,
    create_default_config,
)


def test_defaults_match_published_parameters() -> None:
    config = create_default_config()
    assert config.microglia.threshold_method == "Moments"
    assert config.microglia.median_radius == 8
    assert config.vessels.threshold_method == "Triangle"
    assert config.vessels.log_sigma == 14.0
    assert config.vessels.min_volume == 100.0
    assert config.vessels.dilation_radius == 2.0
    assert config.astrocytes.threshold_method == "Li"
    assert config.astrocytes.min_volume == 0.2
    assert math.isinf(config.astrocytes.max_volume)
    assert config.connectivity == 26


def test_method_names_are_canonicalised() -> None:
    assert VesselDetectionConfig(threshold_method="triangle").threshold_method == "Triangle"
    assert AstrocyteDetectionConfig(threshold_method="MINERROR").threshold_method == "MinError"


@pytest.mark.parametrize(
    "build",
    [
        lambda: VesselDetectionConfig(threshold_method="NotAMethod"),
        lambda: VesselDetectionConfig(min_volume=-1.0),
        lambda: VesselDetectionConfig(min_volume=10.0, max_volume=5.0),
        lambda: VesselDetectionConfig(dilation_radius=-0.5),
        lambda: AstrocyteDetectionConfig(min_volume=math.nan),
        lambda: AstrocyteDetectionConfig(median_radius=2.5),
        lambda: MicrogliaDetectionConfig(median_radius=math.inf),
        lambda: AnalysisConfig(connectivity=8),
        lambda: AnalysisConfig(threshold_backend="opencl"),
        lambda: AnalysisConfig(pixel_size_xy=0.0),
        lambda: AnalysisConfig(histogram_bins=1),
    ],
)
def test_invalid_values_raise(build) -> None:
    with pytest.raises(ConfigurationError):
        build()


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        AnalysisConfig(connectivity=4)


def test_extensions_are_normalised() -> None:
    config = AnalysisConfig(image_extensions=("TIF", ".Tiff"))
    assert config.image_extensions == (".tif", ".tiff")


def test_to_dict_serialises_infinity() -> None:
    data = create_default_config().to_dict()
    assert data["vessels"]["max_volume"] == "inf"
    assert data["image_extensions"] == [".tif", ".tiff"]
    json.dumps(data)


@pytest.mark.parametrize("filename", ["config.json", "config.yaml"])
def test_save_load_round_trip(tmp_path, filename) -> None:
    config = AnalysisConfig(
        vessels=VesselDetectionConfig(threshold_method="Otsu", dilation_radius=3.5),
        connectivity=6,
        pixel_size_xy=0.3,
        save_overlays=False,
    )
    path = tmp_path / filename
    config.save(path)
    assert AnalysisConfig.load(path) == config


def test_from_dict_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigurationError):
        AnalysisConfig.from_dict({"dilatation": 2})
    with pytest.raises(ConfigurationError):
        AnalysisConfig.from_dict({"vessels": {"sigma": 2}})


def test_from_dict_accepts_partial_sections() -> None:
    config = AnalysisConfig.from_dict({"astrocytes": {"min_volume": "0.5"}})
    assert config.astrocytes.min_volume == 0.5
    assert config.astrocytes.threshold_method == "Li"


def test_resolve_calibration_overrides_win() -> None:
    metadata = Calibration(0.2, 0.2, 1.5)
    assert AnalysisConfig().resolve_calibration(metadata) == Calibration(0.2, 0.2, 1.5)
    overridden = AnalysisConfig(pixel_size_xy=0.5).resolve_calibration(metadata)
    assert (overridden.voxel_width, overridden.voxel_depth) == (0.5, 1.5)


def test_resolve_calibration_without_xy_size_fails() -> None:
    with pytest.raises(ConfigurationError):
        AnalysisConfig().resolve_calibration(None)
    cal = AnalysisConfig(pixel_size_xy=1.0).resolve_calibration(None)
    assert cal.voxel_depth == 1.0


def test_replace_revalidates() -> None:
    config = AnalysisConfig()
    assert config.replace(threshold_backend="AUTO").threshold_backend == "auto"
    with pytest.raises(ConfigurationError):
        config.replace(connectivity=5)


def test_median_radius_must_be_whole_pixels() -> None:
    config = AnalysisConfig.from_dict({"astrocytes": {"median_radius": 3.0}})
    assert config.astrocytes.median_radius == 3
    assert isinstance(config.astrocytes.median_radius, int)
    with pytest.raises(ConfigurationError):
        AnalysisConfig.from_dict({"microglia": {"median_radius": 2.5}})
