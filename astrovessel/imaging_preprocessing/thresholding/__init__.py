"""Global histogram thresholding with pluggable compute backends."""

from .methods import THRESHOLD_METHODS, available_methods, resolve_method_name, threshold_bin
from .backends import ThresholdBackend, CpuBackend, CudaBackend, get_backend
from .thresholder import Thresholder, threshold

__all__ = [
    "THRESHOLD_METHODS",
    "available_methods",
    "resolve_method_name",
    "threshold_bin",
    "ThresholdBackend",
    "CpuBackend",
    "CudaBackend",
    "get_backend",
    "Thresholder",
    "threshold",
]
