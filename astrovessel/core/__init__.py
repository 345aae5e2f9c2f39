"""Core infrastructure modules."""

from .exceptions import (
    AstrovesselError,
    ConfigurationError,
    ThresholdError,
    BackendUnavailableError,
    EmptyInputWarning,
)
from .volume import FOREGROUND, BACKGROUND, Calibration, BoundingBox, VolumeGrid
from .roi import PolygonROI, rois_to_mask, load_rois, find_roi_file, load_rois_for_image
from .config import (
    AnalysisConfig,
    MicrogliaDetectionConfig,
    VesselDetectionConfig,
    AstrocyteDetectionConfig,
    create_default_config,
)
from .utils import (
    validate_file_path,
    image_stem,
    find_image_type,
    find_images,
    ensure_directory,
)

__all__ = [
    # Errors
    "AstrovesselError",
    "ConfigurationError",
    "ThresholdError",
    "BackendUnavailableError",
    "EmptyInputWarning",

    # Volumes
    "FOREGROUND",
    "BACKGROUND",
    "Calibration",
    "BoundingBox",
    "VolumeGrid",

    # ROIs
    "PolygonROI",
    "rois_to_mask",
    "load_rois",
    "find_roi_file",
    "load_rois_for_image",

    # Configuration
    "AnalysisConfig",
    "MicrogliaDetectionConfig",
    "VesselDetectionConfig",
    "AstrocyteDetectionConfig",
    "create_default_config",

    # Utility functions
    "validate_file_path",
    "image_stem",
    "find_image_type",
    "find_images",
    "ensure_directory",
]
