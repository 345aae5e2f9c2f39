"""
Detection stages for the three channels.

Each stage pre-filters its channel, applies a global threshold and
extracts objects. Intermediate grids are released before returning.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.config import AnalysisConfig
from ..core.roi import PolygonROI
from ..core.volume import BACKGROUND, VolumeGrid
from ..imaging_preprocessing.filters import log_filter_stack, median_filter_stack
from ..imaging_preprocessing.thresholding.backends import ThresholdBackend, get_backend
from ..imaging_preprocessing.thresholding.thresholder import Thresholder
from .labeling import filter_by_size, label_objects
from .masks import clear_regions, draw_population
from .objects import ObjectPopulation


logger = logging.getLogger(__name__)


def _thresholder(method: str, config: AnalysisConfig, backend: Optional[ThresholdBackend]) -> Thresholder:
    if backend is None:
        backend = get_backend(config.threshold_backend)
    return Thresholder(method, backend=backend, bins=config.histogram_bins)


def find_microglia(
    grid: VolumeGrid,
    config: AnalysisConfig,
    backend: Optional[ThresholdBackend] = None,
) -> ObjectPopulation:
    """Microglia objects, used only to clean the vessel mask (no size filter)."""
    params = config.microglia
    thresholder = _thresholder(params.threshold_method, config, backend)
    with median_filter_stack(grid, params.median_radius) as filtered:
        with thresholder.threshold(filtered) as mask:
            microglia = label_objects(mask, config.connectivity)
    logger.info(f"Nb microglia detected: {len(microglia)}")
    return microglia


def find_vessels(
    grid: VolumeGrid,
    microglia: ObjectPopulation,
    rois: Sequence[PolygonROI],
    config: AnalysisConfig,
    backend: Optional[ThresholdBackend] = None,
) -> ObjectPopulation:
    """Vessel objects: LoG, threshold, ROI and microglia removal, size filter."""
    params = config.vessels
    thresholder = _thresholder(params.threshold_method, config, backend)
    with log_filter_stack(grid, params.log_sigma) as filtered:
        with thresholder.threshold(filtered) as mask:
            clear_regions(mask, rois)
            draw_population(microglia, mask, BACKGROUND)
            vessels = label_objects(mask, config.connectivity)
    logger.info(f"Nb vessels detected: {len(vessels)}")
    vessels = filter_by_size(vessels, params.min_volume, params.max_volume)
    logger.info(f"Vessels remaining after size filtering: {len(vessels)}")
    return vessels


def find_astrocytes(
    grid: VolumeGrid,
    rois: Sequence[PolygonROI],
    config: AnalysisConfig,
    backend: Optional[ThresholdBackend] = None,
) -> ObjectPopulation:
    """Astrocyte objects: median, threshold, ROI removal, size filter."""
    params = config.astrocytes
    thresholder = _thresholder(params.threshold_method, config, backend)
    with median_filter_stack(grid, params.median_radius) as filtered:
        with thresholder.threshold(filtered) as mask:
            clear_regions(mask, rois)
            astrocytes = label_objects(mask, config.connectivity)
    logger.info(f"Nb astrocytes detected: {len(astrocytes)}")
    astrocytes = filter_by_size(astrocytes, params.min_volume, params.max_volume)
    logger.info(f"Astrocytes remaining after size filtering: {len(astrocytes)}")
    return astrocytes


__all__ = ["find_microglia", "find_vessels", "find_astrocytes"]
