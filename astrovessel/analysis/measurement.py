"""Physical volume measurements."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from ..core.roi import PolygonROI, rois_to_mask
from ..core.volume import BoundingBox, Calibration, VolumeGrid
from .objects import ObjectPopulation, VoxelObject


def object_volume(obj: VoxelObject) -> float:
    return obj.volume


def population_volume(population: ObjectPopulation) -> float:
    """Sum of the object volumes; 0 for an empty population."""
    if population.calibration is None:
        return 0.0
    return population.voxel_count * population.calibration.voxel_volume


def volume_of(item: Union[VoxelObject, ObjectPopulation]) -> float:
    """Volume of a single object or of a whole population."""
    if isinstance(item, VoxelObject):
        return object_volume(item)
    return population_volume(item)


def foreground_volume(grid: VolumeGrid) -> float:
    """Volume of the non-zero voxels of a grid."""
    return grid.foreground_count() * grid.calibration.voxel_volume


def image_volume(bounds: BoundingBox, calibration: Calibration) -> float:
    """Volume of the whole stack."""
    return bounds.width * bounds.height * bounds.depth * calibration.voxel_volume


def roi_volume(rois: Sequence[PolygonROI], bounds: BoundingBox, calibration: Calibration) -> float:
    """Volume excluded by the ROIs: union area x stack depth.

    Overlapping polygons are counted once.
    """
    if not rois:
        return 0.0
    mask = rois_to_mask(rois, bounds.height, bounds.width)
    area = int(np.count_nonzero(mask)) * calibration.voxel_width * calibration.voxel_height
    return area * bounds.depth * calibration.voxel_depth


__all__ = [
    "object_volume",
    "population_volume",
    "volume_of",
    "foreground_volume",
    "image_volume",
    "roi_volume",
]
