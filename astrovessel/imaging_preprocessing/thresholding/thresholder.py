"""
Global thresholding of 3D stacks.

One cutoff is computed from the histogram of the whole stack (never per
slice) and applied uniformly. The histogram and comparison run on the
selected backend; the method itself always runs on the host, so every
backend gives the same mask.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from ...core.volume import VolumeGrid
from .backends import ThresholdBackend, get_backend
from .methods import resolve_method_name, threshold_bin


logger = logging.getLogger(__name__)


class Thresholder:
    """Binarise scalar grids with a named global histogram method.

    Args:
        method: Threshold method name (case-insensitive, see `available_methods`).
        backend: Backend instance or name ('cpu', 'cuda', 'auto').
        bins: Number of equal-width histogram bins.
    """

    def __init__(
        self,
        method: str,
        backend: Union[str, ThresholdBackend] = "cpu",
        bins: int = 256,
    ) -> None:
        self.method = resolve_method_name(method)
        self.backend = get_backend(backend) if isinstance(backend, str) else backend
        self.bins = int(bins)

    def compute_threshold(self, grid: VolumeGrid) -> Optional[float]:
        """Intensity cutoff for a grid.

        Returns:
            Optional[float]: Voxels ``>= cutoff`` are foreground; None when
            nothing can be foreground (constant stack or top bin chosen).
        """
        counts, edges = self.backend.histogram(grid.data, self.bins)
        try:
            if counts.sum() == 0 or edges[0] == edges[-1]:
                logger.warning("%s: constant or empty stack, no foreground", self.method)
                return None
            centers = (edges[:-1] + edges[1:]) / 2.0
            k = threshold_bin(counts, centers, self.method)
        finally:
            del counts
        if k >= self.bins - 1:
            logger.info("%s threshold selected the top bin, no foreground", self.method)
            return None
        cutoff = float(edges[k + 1])
        logger.info("%s threshold: bin %d, cutoff %.4g", self.method, k, cutoff)
        return cutoff

    def threshold(self, grid: VolumeGrid) -> VolumeGrid:
        """Binary (0/255 uint8) grid with the calibration of the input."""
        cutoff = self.compute_threshold(grid)
        if cutoff is None:
            return grid.create_same_dimensions(dtype=np.uint8)
        return VolumeGrid(self.backend.binarize(grid.data, cutoff), grid.calibration)


def threshold(
    grid: VolumeGrid,
    method: str,
    backend: Union[str, ThresholdBackend] = "cpu",
    bins: int = 256,
) -> VolumeGrid:
    """Functional shortcut for ``Thresholder(method, backend, bins).threshold(grid)``."""
    return Thresholder(method, backend=backend, bins=bins).threshold(grid)
