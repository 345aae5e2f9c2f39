"""
Slice-by-slice pre-filters applied before thresholding.

Both filters work on each Z slice independently.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import ndimage as ndi
from skimage.morphology import disk

from ..core.exceptions import ConfigurationError
from ..core.volume import VolumeGrid


logger = logging.getLogger(__name__)


def median_filter_stack(grid: VolumeGrid, radius: int) -> VolumeGrid:
    """2D median with a disk footprint applied to every slice.

    Args:
        grid: Scalar grid.
        radius: Disk radius in pixels; 0 returns a copy.

    Returns:
        VolumeGrid: Filtered grid, same dtype and calibration.
    """
    if radius < 0:
        raise ConfigurationError(f"Median radius must be >= 0, got {radius}")
    if not float(radius).is_integer():
        raise ConfigurationError(f"Median radius must be a whole number of pixels, got {radius}")
    radius = int(radius)
    if radius == 0:
        return grid.duplicate()

    footprint = disk(radius)
    src = grid.data
    out = np.empty_like(src)
    for z in range(src.shape[0]):
        out[z] = ndi.median_filter(src[z], footprint=footprint, mode="nearest")
    logger.debug("Median filter radius %d on %d slice(s)", radius, src.shape[0])
    return VolumeGrid(out, grid.calibration)


def log_filter_stack(
    grid: VolumeGrid,
    sigma: float,
    scale_normalised: bool = True,
    negate: bool = True,
) -> VolumeGrid:
    """Laplacian of Gaussian applied to every slice.

    Tubular bright structures give a negative LoG response, so the result
    is negated by default to make them the bright tail of the histogram.

    Args:
        grid: Scalar grid.
        sigma: Gaussian sigma in pixels.
        scale_normalised: Multiply the response by sigma^2.
        negate: Flip the sign of the response.

    Returns:
        VolumeGrid: float32 response with the input calibration.
    """
    if sigma <= 0:
        raise ConfigurationError(f"LoG sigma must be > 0, got {sigma}")

    src = grid.data
    out = np.empty(src.shape, dtype=np.float32)
    factor = sigma * sigma if scale_normalised else 1.0
    if negate:
        factor = -factor
    for z in range(src.shape[0]):
        response = ndi.gaussian_laplace(src[z].astype(np.float32), sigma=sigma, mode="nearest")
        out[z] = response * factor
    logger.debug("LoG sigma %.2f on %d slice(s)", sigma, src.shape[0])
    return VolumeGrid(out, grid.calibration)


__all__ = ["median_filter_stack", "log_filter_stack"]
