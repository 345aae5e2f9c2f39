"""Tests for the inside / outside vessel partition of astrocytes."""

from __future__ import annotations

import numpy as np
import pytest

from astrovessel.analysis import (
    InOutPartition,
    ObjectPopulation,
    VoxelObject,
    label_objects,
    partition_in_out,
)
from astrovessel.core import BoundingBox, Calibration, ConfigurationError, VolumeGrid


CAL = Calibration(1.0, 1.0, 1.0)
BOUNDS = BoundingBox.from_shape(10, 10, 5)


def _box(label, x0, x1, y0, y1, z0, z1) -> VoxelObject:
    """Object filling the inclusive box [x0, x1] x [y0, y1] x [z0, z1]."""
    zz, yy, xx = np.mgrid[z0:z1 + 1, y0:y1 + 1, x0:x1 + 1]
    return VoxelObject(label, np.column_stack([xx.ravel(), yy.ravel(), zz.ravel()]), CAL)


def _population(*objects) -> ObjectPopulation:
    return ObjectPopulation(list(objects), CAL)


def _union(population: ObjectPopulation) -> set:
    voxels = set()
    for obj in population:
        voxels |= obj.voxel_set()
    return voxels


def test_astrocyte_under_full_vessel_is_inside() -> None:
    astro = _population(_box(1, 3, 5, 3, 5, 1, 3))
    vessels = _population(_box(1, 0, 9, 0, 9, 0, 4))
    inside, outside = partition_in_out(astro, vessels, BOUNDS, 1.0, CAL)
    assert inside.voxel_count == 27
    assert len(outside) == 0


def test_no_vessels_means_all_outside() -> None:
    astro = _population(_box(1, 3, 5, 3, 5, 1, 3))
    with pytest.warns(UserWarning):
        inside, outside = partition_in_out(astro, _population(), BOUNDS, 2.0, CAL)
    assert len(inside) == 0
    assert outside.voxel_count == 27
    assert _union(outside) == _union(astro)


def test_two_astrocytes_split_by_dilated_slab() -> None:
    near = _box(1, 1, 2, 4, 5, 1, 2)
    far = _box(2, 7, 8, 4, 5, 1, 2)
    vessels = _population(_box(1, 0, 3, 0, 9, 0, 4))
    inside, outside = partition_in_out(_population(near, far), vessels, BOUNDS, 1.0, CAL)

    assert len(inside) == 1 and len(outside) == 1
    assert inside[0].voxel_set() == near.voxel_set()
    assert outside[0].voxel_set() == far.voxel_set()
    assert inside.voxel_count + outside.voxel_count == 16


def test_straddling_astrocyte_is_cut() -> None:
    astro = _population(_box(1, 3, 5, 3, 5, 1, 3))
    # slab x 0..2 grows to x 0..3
    vessels = _population(_box(1, 0, 2, 0, 9, 0, 4))
    inside, outside = partition_in_out(astro, vessels, BOUNDS, 1.0, CAL)
    assert inside.voxel_count == 9
    assert outside.voxel_count == 18
    assert {v[0] for v in _union(inside)} == {3}
    assert {v[0] for v in _union(outside)} == {4, 5}


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_partition_conserves_astrocyte_voxels(seed) -> None:
    rng = np.random.default_rng(seed)
    astro_mask = (rng.random(BOUNDS.shape) > 0.7).astype(np.uint8) * 255
    vessel_mask = (rng.random(BOUNDS.shape) > 0.95).astype(np.uint8) * 255
    astro = label_objects(VolumeGrid(astro_mask, CAL))
    vessels = label_objects(VolumeGrid(vessel_mask, CAL))

    inside, outside = partition_in_out(astro, vessels, BOUNDS, 1.0, CAL)
    inside_set, outside_set = _union(inside), _union(outside)
    assert inside_set.isdisjoint(outside_set)
    assert inside_set | outside_set == _union(astro)
    assert inside.voxel_count + outside.voxel_count == astro.voxel_count
    assert inside.labels == list(range(1, len(inside) + 1))
    assert outside.labels == list(range(1, len(outside) + 1))


def test_astrocyte_outside_grid_raises() -> None:
    astro = _population(_box(1, 9, 10, 0, 1, 0, 1))
    with pytest.raises(ConfigurationError):
        partition_in_out(astro, _population(), BOUNDS, 1.0, CAL)


def test_bounds_must_start_at_origin() -> None:
    bounds = BoundingBox(1, 10, 0, 9, 0, 4)
    with pytest.raises(ConfigurationError):
        partition_in_out(_population(), _population(), bounds, 1.0, CAL)


def test_result_is_named_tuple() -> None:
    astro = _population(_box(1, 0, 1, 0, 1, 0, 1))
    vessels = _population(_box(1, 0, 1, 0, 1, 0, 1))
    result = partition_in_out(astro, vessels, BOUNDS, 0.0, CAL)
    assert isinstance(result, InOutPartition)
    assert result.inside.voxel_count == 8
