"""
Rendering objects into grids and voxel-wise grid arithmetic.

`draw_object`, `draw_population` and `clear_regions` modify the target
grid in place; `subtract_grids` returns a new grid.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.exceptions import ConfigurationError
from ..core.roi import PolygonROI, rois_to_mask
from ..core.volume import BACKGROUND, FOREGROUND, VolumeGrid
from .objects import ObjectPopulation, VoxelObject


def draw_object(obj: VoxelObject, grid: VolumeGrid, value: int = FOREGROUND) -> None:
    """Set every voxel of ``obj`` to ``value`` in ``grid``.

    Raises:
        ConfigurationError: If the object has voxels outside the grid.
    """
    if obj.is_empty:
        return
    voxels = obj.voxels
    if not grid.bounds.contains(voxels).all():
        raise ConfigurationError(
            f"Object {obj.label} extends beyond grid of shape {grid.shape} (Z, Y, X)"
        )
    grid.data[voxels[:, 2], voxels[:, 1], voxels[:, 0]] = value


def draw_population(population: ObjectPopulation, grid: VolumeGrid, value: int = FOREGROUND) -> None:
    for obj in population:
        draw_object(obj, grid, value)


def clear_regions(grid: VolumeGrid, rois: Sequence[PolygonROI]) -> None:
    """Set to background every voxel inside any ROI, on every slice."""
    if not rois:
        return
    mask = rois_to_mask(rois, grid.height, grid.width)
    grid.data[:, mask] = BACKGROUND


def subtract_grids(a: VolumeGrid, b: VolumeGrid) -> VolumeGrid:
    """Saturating difference ``max(0, a - b)`` as a new grid.

    Boolean grids give the set difference ``a & ~b``.

    Raises:
        ConfigurationError: If the grids differ in shape.
    """
    a.check_same_dimensions(b)
    if a.dtype == bool:
        result = a.data & ~(b.data != 0)
    else:
        # a - min(a, b) never leaves the range of a, even for unsigned types
        result = (a.data - np.minimum(a.data, b.data)).astype(a.dtype, copy=False)
    return VolumeGrid(result, a.calibration)


__all__ = ["draw_object", "draw_population", "clear_regions", "subtract_grids"]
