from __future__ import annotations

import logging
from typing import Protocol, Tuple

import numpy as np

from ...core.exceptions import BackendUnavailableError, ConfigurationError
from .cpu_backend import binarize_cpu, histogram_cpu
from .cuda_backend import _ensure_cuda, binarize_cuda, histogram_cuda


logger = logging.getLogger(__name__)


class ThresholdBackend(Protocol):
    """Where the stack histogram and the final comparison are computed."""

    name: str

    def histogram(self, data: np.ndarray, bins: int) -> Tuple[np.ndarray, np.ndarray]:
        ...

    def binarize(self, data: np.ndarray, cutoff: float) -> np.ndarray:
        ...


class CpuBackend:
    """numpy backend, always available."""

    name = "cpu"

    def histogram(self, data: np.ndarray, bins: int) -> Tuple[np.ndarray, np.ndarray]:
        return histogram_cpu(data, bins)

    def binarize(self, data: np.ndarray, cutoff: float) -> np.ndarray:
        return binarize_cpu(data, cutoff)


class CudaBackend:
    """CuPy backend; requires the ``gpu`` extra and a CUDA device."""

    name = "cuda"

    def __init__(self) -> None:
        if not _ensure_cuda():
            raise BackendUnavailableError("CUDA backend requested but CuPy/CUDA is not available")

    def histogram(self, data: np.ndarray, bins: int) -> Tuple[np.ndarray, np.ndarray]:
        return histogram_cuda(data, bins)

    def binarize(self, data: np.ndarray, cutoff: float) -> np.ndarray:
        return binarize_cuda(data, cutoff)


def get_backend(name: str = "cpu") -> ThresholdBackend:
    """Instantiate a backend by name ('cpu', 'cuda' or 'auto').

    Raises:
        BackendUnavailableError: If 'cuda' is requested without CuPy.
        ConfigurationError: If the name is unknown.
    """
    key = str(name).lower()
    if key == "cpu":
        return CpuBackend()
    if key == "cuda":
        return CudaBackend()
    if key == "auto":
        if _ensure_cuda():
            logger.info("Using CUDA thresholding backend")
            return CudaBackend()
        logger.info("CUDA not available; using CPU thresholding backend")
        return CpuBackend()
    raise ConfigurationError(f"Unknown threshold backend '{name}'")
