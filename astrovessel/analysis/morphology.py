"""
Physical-distance dilation of single objects.

One radius in calibrated units becomes a different voxel radius per axis
whenever the calibration is anisotropic (typically Z). Dilated voxels that
leave the enclosing grid are dropped.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from scipy import ndimage as ndi

from ..core.exceptions import ConfigurationError
from ..core.volume import BoundingBox, Calibration
from .objects import VoxelObject


logger = logging.getLogger(__name__)


def ellipsoid_structure(radii: Tuple[float, float, float]) -> np.ndarray:
    """Boolean (Z, Y, X) ellipsoid kernel for voxel radii (rx, ry, rz).

    Half-sizes are floor(radius); an offset belongs to the kernel when
    sum((d / r)^2) <= 1 over the axes with a non-zero half-size.
    """
    # physical / voxel size ratios like 0.7 / 0.1 land just below the integer
    rx, ry, rz = (round(float(r), 9) for r in radii)
    if min(rx, ry, rz) < 0:
        raise ConfigurationError(f"Dilation radii must be >= 0, got {radii}")
    hx, hy, hz = int(np.floor(rx)), int(np.floor(ry)), int(np.floor(rz))

    dz, dy, dx = np.ogrid[-hz:hz + 1, -hy:hy + 1, -hx:hx + 1]
    dist = np.zeros((2 * hz + 1, 2 * hy + 1, 2 * hx + 1), dtype=np.float64)
    for d, half, r in ((dx, hx, rx), (dy, hy, ry), (dz, hz, rz)):
        if half > 0:
            dist = dist + (d / r) ** 2
    return dist <= 1.0


def dilate_object(
    obj: VoxelObject,
    bounds: BoundingBox,
    radius: float,
    calibration: Calibration,
) -> VoxelObject:
    """Grow an object by a physical distance, clipped to ``bounds``.

    Args:
        obj: Object to dilate; left untouched.
        bounds: Enclosing grid bounds.
        radius: Dilation distance in calibrated units.
        calibration: Converts the distance to voxel radii per axis.

    Returns:
        VoxelObject: New object with the same label.
    """
    if radius < 0:
        raise ConfigurationError(f"Dilation radius must be >= 0, got {radius}")
    if obj.is_empty:
        return VoxelObject(obj.label, obj.voxels, obj.calibration)

    kernel = ellipsoid_structure(calibration.physical_to_voxels(radius))
    hz, hy, hx = (s // 2 for s in kernel.shape)
    box = obj.bounding_box

    # Local canvas around the object, padded so growth is never cut short
    local = np.zeros((box.depth + 2 * hz, box.height + 2 * hy, box.width + 2 * hx), dtype=bool)
    v = obj.voxels
    local[v[:, 2] - box.zmin + hz, v[:, 1] - box.ymin + hy, v[:, 0] - box.xmin + hx] = True
    grown = ndi.binary_dilation(local, structure=kernel)
    del local

    zz, yy, xx = np.nonzero(grown)
    voxels = np.column_stack([xx + box.xmin - hx, yy + box.ymin - hy, zz + box.zmin - hz])
    inside = bounds.contains(voxels)
    clipped = int(inside.size - np.count_nonzero(inside))
    if clipped:
        logger.debug(f"Object {obj.label}: {clipped} dilated voxel(s) clipped to grid bounds")
    return VoxelObject(obj.label, voxels[inside], obj.calibration)


__all__ = ["ellipsoid_structure", "dilate_object"]
