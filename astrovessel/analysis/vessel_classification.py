"""
Inside / outside vessel classification of astrocytes.

The astrocyte population is rendered once; every vessel object, dilated
by a physical distance, is erased from that rendering. What survives is
outside the vessels, and the difference with an untouched copy is inside.
Both masks come from the same grid, so each astrocyte voxel ends up in
exactly one of the two populations.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from ..core.exceptions import ConfigurationError
from ..core.volume import BACKGROUND, FOREGROUND, BoundingBox, Calibration, VolumeGrid
from .labeling import label_objects
from .masks import draw_object, draw_population, subtract_grids
from .morphology import dilate_object
from .objects import ObjectPopulation


logger = logging.getLogger(__name__)


class InOutPartition(NamedTuple):
    """Astrocyte objects inside and outside the dilated vessels."""

    inside: ObjectPopulation
    outside: ObjectPopulation


def partition_in_out(
    astrocytes: ObjectPopulation,
    vessels: ObjectPopulation,
    bounds: BoundingBox,
    dilation_radius: float,
    calibration: Calibration,
    connectivity: int = 26,
) -> InOutPartition:
    """Split astrocytes into the parts inside and outside dilated vessels.

    Args:
        astrocytes: Astrocyte objects.
        vessels: Vessel objects.
        bounds: Bounds of the analysed grid; must start at the origin.
        dilation_radius: Vessel dilation in calibrated units.
        calibration: Voxel calibration of the grid.
        connectivity: Connectivity used to relabel the two masks.

    Returns:
        InOutPartition: ``(inside, outside)`` populations.
    """
    if (bounds.xmin, bounds.ymin, bounds.zmin) != (0, 0, 0):
        raise ConfigurationError(f"Classification bounds must start at the grid origin, got {bounds}")

    with VolumeGrid.zeros(bounds.shape, calibration) as astro_mask:
        draw_population(astrocytes, astro_mask, FOREGROUND)
        with astro_mask.duplicate() as reference:
            for vessel in vessels:
                dilated = dilate_object(vessel, bounds, dilation_radius, calibration)
                draw_object(dilated, astro_mask, BACKGROUND)

            outside = label_objects(astro_mask, connectivity)
            with subtract_grids(reference, astro_mask) as inside_mask:
                inside = label_objects(inside_mask, connectivity)

    logger.info(
        f"Astrocytes: {len(inside)} object(s) in vessels, {len(outside)} out of vessels"
    )
    return InOutPartition(inside, outside)


__all__ = ["InOutPartition", "partition_in_out"]
