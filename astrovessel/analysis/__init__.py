"""Analysis modules."""

from .objects import VoxelObject, ObjectPopulation
from .labeling import connectivity_structure, label_objects, filter_by_size
from .masks import draw_object, draw_population, clear_regions, subtract_grids
from .morphology import ellipsoid_structure, dilate_object
from .vessel_classification import InOutPartition, partition_in_out
from .measurement import (
    object_volume,
    population_volume,
    volume_of,
    foreground_volume,
    image_volume,
    roi_volume,
)
from .detection import find_microglia, find_vessels, find_astrocytes

__all__ = [
    "VoxelObject",
    "ObjectPopulation",
    "connectivity_structure",
    "label_objects",
    "filter_by_size",
    "draw_object",
    "draw_population",
    "clear_regions",
    "subtract_grids",
    "ellipsoid_structure",
    "dilate_object",
    "InOutPartition",
    "partition_in_out",
    "object_volume",
    "population_volume",
    "volume_of",
    "foreground_volume",
    "image_volume",
    "roi_volume",
    "find_microglia",
    "find_vessels",
    "find_astrocytes",
]
