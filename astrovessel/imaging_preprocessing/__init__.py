"""Imaging preprocessing: pre-filters and global thresholding."""

from .filters import median_filter_stack, log_filter_stack
from .thresholding import (
    THRESHOLD_METHODS,
    available_methods,
    resolve_method_name,
    ThresholdBackend,
    CpuBackend,
    CudaBackend,
    get_backend,
    Thresholder,
    threshold,
)

__all__ = [
    "median_filter_stack",
    "log_filter_stack",
    # Thresholding
    "THRESHOLD_METHODS",
    "available_methods",
    "resolve_method_name",
    "ThresholdBackend",
    "CpuBackend",
    "CudaBackend",
    "get_backend",
    "Thresholder",
    "threshold",
]
