"""Unit tests for physical volume measurements."""

from __future__ import annotations

import numpy as np
import pytest

from astrovessel.analysis import (
    ObjectPopulation,
    VoxelObject,
    foreground_volume,
    image_volume,
    population_volume,
    volume_of,
)
from astrovessel.core import BoundingBox, Calibration, VolumeGrid


CAL = Calibration(0.5, 0.5, 2.0)


def test_object_and_population_volume() -> None:
    a = VoxelObject(1, [[0, 0, 0], [1, 0, 0]], CAL)
    b = VoxelObject(2, [[5, 5, 1]], CAL)
    population = ObjectPopulation([a, b])
    assert volume_of(a) == pytest.approx(1.0)
    assert volume_of(population) == pytest.approx(1.5)
    assert population_volume(population) == pytest.approx(sum(o.volume for o in population))


def test_empty_population_has_zero_volume() -> None:
    assert population_volume(ObjectPopulation([])) == 0.0
    assert population_volume(ObjectPopulation([], CAL)) == 0.0


def test_image_volume() -> None:
    assert image_volume(BoundingBox.from_shape(10, 20, 3), CAL) == pytest.approx(10 * 20 * 3 * 0.5)


def test_foreground_volume() -> None:
    data = np.zeros((2, 4, 4), dtype=np.uint8)
    data[0, :2, :2] = 255
    assert foreground_volume(VolumeGrid(data, CAL)) == pytest.approx(4 * 0.5)
