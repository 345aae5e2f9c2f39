"""End-to-end tests of the batch analysis and its command line."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import tifffile

from astrovessel.cli import main
from astrovessel.core import (
    AnalysisConfig,
    AstrocyteDetectionConfig,
    Calibration,
    MicrogliaDetectionConfig,
    VesselDetectionConfig,
    VolumeGrid,
)
from astrovessel.pipeline import REPORT_FILENAME, InOutVesselAnalyzer, run_batch


SHAPE = (6, 3, 32, 32)  # Z, C, Y, X
ASTRO_VOLUME = 54.0  # two 3x3x3 cubes at 1 µm


def _config(**changes) -> AnalysisConfig:
    config = AnalysisConfig(
        microglia=MicrogliaDetectionConfig(threshold_method="Otsu", median_radius=1),
        vessels=VesselDetectionConfig(threshold_method="Otsu", log_sigma=2.0, min_volume=0.0),
        astrocytes=AstrocyteDetectionConfig(threshold_method="Otsu", median_radius=0, min_volume=0.0),
    )
    return config.replace(**changes) if changes else config


def _synthetic_stack() -> np.ndarray:
    """Vessel bar along x at y 4..7, one microglia cube, two astrocyte cubes."""
    data = np.full(SHAPE, 10, dtype=np.uint16)
    data[:, 0, 4:8, :] = 200
    data[2:5, 1, 14:17, 14:17] = 200
    data[1:4, 2, 4:7, 4:7] = 200  # on the vessel
    data[1:4, 2, 22:25, 22:25] = 200  # far from it
    return data


def _write_stack(path: Path) -> Path:
    tifffile.imwrite(
        str(path),
        _synthetic_stack(),
        imagej=True,
        resolution=(1.0, 1.0),
        metadata={"axes": "ZCYX", "spacing": 1.0, "unit": "um"},
    )
    return path


def _batch_folder(tmp_path: Path) -> Path:
    folder = tmp_path / "stacks"
    folder.mkdir()
    _write_stack(folder / "a_stack.tif")
    _write_stack(folder / "b_stack.tif")
    (folder / "c_bad.tif").write_bytes(b"this is not a tiff file")
    roi = {"rois": [{"name": "corner", "points": [[26, 0], [31, 0], [31, 5], [26, 5]]}]}
    (folder / "b_stack.rois.json").write_text(json.dumps(roi))
    return folder


def test_analyzer_partitions_astrocytes() -> None:
    data = _synthetic_stack()
    cal = Calibration(1.0, 1.0, 1.0)
    grids = [VolumeGrid(data[:, c], cal) for c in range(3)]
    analysis = InOutVesselAnalyzer(_config()).analyze(*grids, image_name="synthetic")

    assert len(analysis.vessels) >= 1
    assert analysis.inside_volume == pytest.approx(27.0)
    assert analysis.outside_volume == pytest.approx(27.0)
    assert analysis.image_volume == pytest.approx(6 * 32 * 32)
    row = analysis.to_row()
    assert row["Image-ROI vol (µm3)"] == row["Image vol (µm3)"]


def test_run_batch_reports_completed_and_failed_images(tmp_path: Path) -> None:
    folder = _batch_folder(tmp_path)
    result = run_batch(folder, _config())

    assert result.total == 3
    assert [row["Image name"] for row in result.completed] == ["a_stack.tif", "b_stack.tif"]
    assert result.failed == [("c_bad.tif", "TiffFileError")]
    assert result.report_path == folder / "Results" / REPORT_FILENAME

    table = pd.read_csv(result.report_path, sep="\t")
    assert table["Image name"].tolist() == ["a_stack.tif", "b_stack.tif"]
    assert table["Image vol (µm3)"].tolist() == pytest.approx([6144.0, 6144.0])
    astro = table["Astrocytes vol in vessels (µm3)"] + table["Astrocytes vol out vessels (µm3)"]
    assert astro.tolist() == pytest.approx([ASTRO_VOLUME, ASTRO_VOLUME])
    assert table["Astrocytes vol in vessels (µm3)"].tolist() == pytest.approx([27.0, 27.0])

    # b_stack has an ROI sidecar, a_stack does not
    rest = table["Image-ROI vol (µm3)"].tolist()
    assert rest[0] == pytest.approx(6144.0)
    assert 0 < rest[1] < 6144.0

    for stem in ("a_stack", "b_stack"):
        assert (folder / "Results" / f"{stem}_in_out_vessels.tif").exists()
        assert (folder / "Results" / f"{stem}_in_out_vessels.png").exists()


def test_run_batch_without_overlays(tmp_path: Path) -> None:
    folder = tmp_path / "stacks"
    folder.mkdir()
    _write_stack(folder / "only.tif")
    out = tmp_path / "out"
    result = run_batch(folder, _config(save_overlays=False), out)
    assert len(result.completed) == 1
    assert (out / REPORT_FILENAME).exists()
    assert not list(out.glob("*_in_out_vessels.*"))


def test_run_batch_empty_and_missing_folders(tmp_path: Path) -> None:
    result = run_batch(tmp_path)
    assert result.total == 0
    assert result.report_path is None
    with pytest.raises(FileNotFoundError):
        run_batch(tmp_path / "missing")


def test_cli_exit_codes(tmp_path: Path) -> None:
    assert main([str(tmp_path / "missing")]) == 2

    empty = tmp_path / "empty"
    empty.mkdir()
    assert main([str(empty)]) == 3

    folder = tmp_path / "stacks"
    folder.mkdir()
    _write_stack(folder / "a_stack.tif")
    config_path = tmp_path / "analysis.yaml"
    _config().save(config_path)
    assert main([str(folder), "--config", str(config_path), "--no-overlays"]) == 0
    assert (folder / "Results" / REPORT_FILENAME).exists()


def test_cli_rejects_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "bad.json"
    config_path.write_text(json.dumps({"connectivity": 4}))
    assert main([str(tmp_path), "--config", str(config_path)]) == 2


def test_cli_writes_default_config(tmp_path: Path) -> None:
    path = tmp_path / "default.yaml"
    assert main(["--write-default-config", str(path)]) == 0
    assert AnalysisConfig.load(path) == AnalysisConfig()
