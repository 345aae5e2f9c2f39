"""Connected-component extraction and physical size filtering."""

from __future__ import annotations

import logging
import math
import warnings

import numpy as np
from scipy import ndimage as ndi

from ..core.exceptions import ConfigurationError, EmptyInputWarning
from ..core.volume import VolumeGrid
from .objects import ObjectPopulation


logger = logging.getLogger(__name__)

# face / face+edge / face+edge+corner neighbours
_CONNECTIVITY_RANK = {6: 1, 18: 2, 26: 3}


def connectivity_structure(connectivity: int = 26) -> np.ndarray:
    """3x3x3 structuring element for 6-, 18- or 26-connectivity."""
    if connectivity not in _CONNECTIVITY_RANK:
        raise ConfigurationError(f"connectivity must be 6, 18 or 26, got {connectivity}")
    return ndi.generate_binary_structure(3, _CONNECTIVITY_RANK[connectivity])


def label_objects(grid: VolumeGrid, connectivity: int = 26) -> ObjectPopulation:
    """Extract the connected foreground components of a grid.

    Labels follow raster scan order (x fastest, then y, then z), so the
    output is reproducible for identical input.

    Args:
        grid: Binary or labelled grid; every non-zero voxel is foreground.
        connectivity: 6, 18 or 26.

    Returns:
        ObjectPopulation: Labels 1..N; empty when there is no foreground.
    """
    structure = connectivity_structure(connectivity)
    labels, count = ndi.label(grid.data != 0, structure=structure)
    try:
        population = ObjectPopulation.from_label_array(labels, grid.calibration)
    finally:
        del labels
    logger.info(f"{count} object(s) labelled ({connectivity}-connectivity)")
    if count == 0:
        warnings.warn("No object found in grid", EmptyInputWarning, stacklevel=2)
    return population


def filter_by_size(
    population: ObjectPopulation,
    min_volume: float = 0.0,
    max_volume: float = math.inf,
) -> ObjectPopulation:
    """Keep the objects whose physical volume lies in [min_volume, max_volume].

    The surviving objects are relabelled 1..N in their original order.

    Raises:
        ConfigurationError: If the bounds are NaN, negative or inverted.
    """
    if math.isnan(min_volume) or math.isnan(max_volume):
        raise ConfigurationError("Size filter bounds must be numbers")
    if min_volume < 0 or min_volume > max_volume:
        raise ConfigurationError(f"Invalid size filter bounds [{min_volume}, {max_volume}]")

    kept = [obj for obj in population if min_volume <= obj.volume <= max_volume]
    filtered = ObjectPopulation(kept, population.calibration).relabeled()
    logger.info(f"{len(filtered)} of {len(population)} object(s) remaining after size filtering")
    if len(filtered) == 0:
        warnings.warn("No object left after size filtering", EmptyInputWarning, stacklevel=2)
    return filtered


__all__ = ["connectivity_structure", "label_objects", "filter_by_size"]
