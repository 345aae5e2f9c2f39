"""
Astrovessel: astrocyte / blood vessel spatial analysis of 3D confocal stacks.

Astrocytes are classified as inside or outside a dilated vessel network,
after removal of microglia-contaminated regions from the vessel mask.
"""

__version__ = "0.1.0"

# Core
from .core import (
    AstrovesselError,
    ConfigurationError,
    ThresholdError,
    BackendUnavailableError,
    EmptyInputWarning,
    Calibration,
    BoundingBox,
    VolumeGrid,
    PolygonROI,
    AnalysisConfig,
    create_default_config,
)

# Preprocessing
from .imaging_preprocessing import Thresholder, threshold, median_filter_stack, log_filter_stack

# Analysis
from .analysis import (
    VoxelObject,
    ObjectPopulation,
    label_objects,
    filter_by_size,
    dilate_object,
    partition_in_out,
    volume_of,
    roi_volume,
)

# Data processing
from .data_processing import ImageLoader, ResultsWriter

# Pipeline
from .pipeline import ImageAnalysis, BatchResult, InOutVesselAnalyzer, run_batch

__all__ = [
    # Version
    "__version__",

    # Core
    "AstrovesselError",
    "ConfigurationError",
    "ThresholdError",
    "BackendUnavailableError",
    "EmptyInputWarning",
    "Calibration",
    "BoundingBox",
    "VolumeGrid",
    "PolygonROI",
    "AnalysisConfig",
    "create_default_config",

    # Preprocessing
    "Thresholder",
    "threshold",
    "median_filter_stack",
    "log_filter_stack",

    # Analysis
    "VoxelObject",
    "ObjectPopulation",
    "label_objects",
    "filter_by_size",
    "dilate_object",
    "partition_in_out",
    "volume_of",
    "roi_volume",

    # Data processing
    "ImageLoader",
    "ResultsWriter",

    # Pipeline
    "ImageAnalysis",
    "BatchResult",
    "InOutVesselAnalyzer",
    "run_batch",
]
