"""Unit tests for drawing objects and grid arithmetic."""

from __future__ import annotations

import numpy as np
import pytest

from astrovessel.analysis import ObjectPopulation, VoxelObject, draw_object, draw_population, subtract_grids
from astrovessel.core import Calibration, ConfigurationError, VolumeGrid


CAL = Calibration(1.0, 1.0, 1.0)


def test_draw_object_sets_only_object_voxels() -> None:
    grid = VolumeGrid.zeros((3, 4, 5), CAL)
    obj = VoxelObject(1, [[4, 3, 2], [0, 0, 0]], CAL)
    draw_object(obj, grid, 7)
    assert grid.data[2, 3, 4] == 7
    assert grid.data[0, 0, 0] == 7
    assert grid.foreground_count() == 2


def test_draw_background_erases() -> None:
    grid = VolumeGrid(np.full((2, 2, 2), 255, dtype=np.uint8), CAL)
    draw_population(ObjectPopulation([VoxelObject(1, [[1, 1, 1]], CAL)]), grid, 0)
    assert grid.foreground_count() == 7


def test_draw_outside_grid_raises() -> None:
    grid = VolumeGrid.zeros((2, 2, 2), CAL)
    with pytest.raises(ConfigurationError):
        draw_object(VoxelObject(1, [[2, 0, 0]], CAL), grid)


def test_subtract_is_saturating() -> None:
    a = VolumeGrid(np.array([[[5, 10, 255]]], dtype=np.uint8), CAL)
    b = VolumeGrid(np.array([[[7, 3, 255]]], dtype=np.uint8), CAL)
    out = subtract_grids(a, b)
    assert out.data.tolist() == [[[0, 7, 0]]]
    assert out.dtype == np.uint8
    assert a.data.tolist() == [[[5, 10, 255]]]


def test_subtract_bool_is_set_difference() -> None:
    a = VolumeGrid(np.array([[[True, True, False]]]), CAL)
    b = VolumeGrid(np.array([[[True, False, True]]]), CAL)
    assert subtract_grids(a, b).data.tolist() == [[[False, True, False]]]


def test_subtract_requires_same_dimensions() -> None:
    with pytest.raises(ConfigurationError):
        subtract_grids(VolumeGrid.zeros((2, 2, 2), CAL), VolumeGrid.zeros((2, 2, 3), CAL))
