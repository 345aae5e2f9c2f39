"""Unit tests for calibration, bounding boxes and volume grids."""

from __future__ import annotations

import math

import numpy as np
import pytest

from astrovessel.core import BoundingBox, Calibration, ConfigurationError, VolumeGrid


def _cal(xy: float = 1.0, z: float = 1.0) -> Calibration:
    return Calibration(xy, xy, z)


@pytest.mark.parametrize("sizes", [(0.0, 1.0, 1.0), (1.0, -1.0, 1.0), (1.0, 1.0, math.nan), (1.0, 1.0, math.inf)])
def test_calibration_rejects_non_positive_sizes(sizes) -> None:
    with pytest.raises(ConfigurationError):
        Calibration(*sizes)


def test_calibration_from_pixel_sizes_defaults_depth_to_one() -> None:
    cal = Calibration.from_pixel_sizes(0.5)
    assert (cal.voxel_width, cal.voxel_height, cal.voxel_depth) == (0.5, 0.5, 1.0)
    assert cal.is_isotropic_xy
    assert cal.voxel_volume == pytest.approx(0.25)


def test_physical_to_voxels_is_per_axis() -> None:
    cal = Calibration(0.5, 0.5, 2.0)
    assert cal.physical_to_voxels(2.0) == (4.0, 4.0, 1.0)


def test_bounding_box_shape_and_contains() -> None:
    box = BoundingBox.from_shape(10, 8, 5)
    assert box.shape == (5, 8, 10)
    voxels = np.array([[0, 0, 0], [9, 7, 4], [10, 0, 0], [0, -1, 0], [3, 3, 5]])
    assert box.contains(voxels).tolist() == [True, True, False, False, False]
    assert BoundingBox.unbounded().contains(np.array([[10**9, -10**9, 0]])).all()


def test_volume_grid_promotes_2d_and_reports_dimensions() -> None:
    grid = VolumeGrid(np.zeros((4, 6)), _cal(0.5, 2.0))
    assert grid.shape == (1, 4, 6)
    assert (grid.width, grid.height, grid.depth) == (6, 4, 1)
    assert grid.physical_volume == pytest.approx(6 * 4 * 1 * 0.5)


def test_volume_grid_rejects_bad_shapes() -> None:
    with pytest.raises(ConfigurationError):
        VolumeGrid(np.zeros((2, 2, 2, 2)), _cal())


def test_check_same_dimensions() -> None:
    a = VolumeGrid.zeros((2, 3, 4), _cal())
    a.check_same_dimensions(a.create_same_dimensions())
    with pytest.raises(ConfigurationError):
        a.check_same_dimensions(VolumeGrid.zeros((2, 3, 5), _cal()))


def test_duplicate_is_independent() -> None:
    grid = VolumeGrid.zeros((2, 2, 2), _cal())
    copy = grid.duplicate()
    copy.data[0, 0, 0] = 255
    assert grid.foreground_count() == 0
    assert copy.foreground_count() == 1


def test_context_manager_releases_buffer() -> None:
    with VolumeGrid.zeros((2, 2, 2), _cal()) as grid:
        assert not grid.released
    assert grid.released
    assert grid.shape == (2, 2, 2)
    with pytest.raises(RuntimeError):
        _ = grid.data
