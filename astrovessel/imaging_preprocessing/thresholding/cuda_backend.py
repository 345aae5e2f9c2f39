from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from ...core.exceptions import BackendUnavailableError
from ...core.volume import BACKGROUND, FOREGROUND


logger = logging.getLogger(__name__)

CUDA_AVAILABLE = False
cp = None


def _ensure_cuda() -> bool:
    """Lazy-load CuPy for this backend module."""
    global cp, CUDA_AVAILABLE
    if CUDA_AVAILABLE:
        return True
    try:
        import cupy as _cp  # type: ignore

        _cp.cuda.runtime.getDeviceCount()
        cp = _cp
        CUDA_AVAILABLE = True
    except ImportError:
        CUDA_AVAILABLE = False
    except Exception as e:  # cupy imports fine but no usable device / driver
        logger.debug("CuPy present but no CUDA device: %s", e)
        CUDA_AVAILABLE = False
    return CUDA_AVAILABLE


def _require_cuda() -> None:
    if not _ensure_cuda():
        raise BackendUnavailableError("CUDA backend selected but CuPy is unavailable")


def histogram_cuda(data: np.ndarray, bins: int) -> Tuple[np.ndarray, np.ndarray]:
    """GPU histogram with the same binning rules as `histogram_cpu`."""
    _require_cuda()
    gpu_data = None
    try:
        gpu_data = cp.asarray(data)
        if gpu_data.dtype.kind == "f":
            gpu_data = gpu_data[cp.isfinite(gpu_data)]
        if gpu_data.size == 0:
            return np.zeros(bins, dtype=np.int64), np.linspace(0.0, 1.0, bins + 1)
        lo = float(gpu_data.min())
        hi = float(gpu_data.max())
        if lo == hi:
            counts = np.zeros(bins, dtype=np.int64)
            counts[0] = int(gpu_data.size)
            return counts, np.full(bins + 1, lo)
        counts, edges = cp.histogram(gpu_data, bins=bins, range=(lo, hi))
        return cp.asnumpy(counts).astype(np.int64), cp.asnumpy(edges)
    finally:
        del gpu_data
        cp.get_default_memory_pool().free_all_blocks()


def binarize_cuda(data: np.ndarray, cutoff: float) -> np.ndarray:
    """GPU rendition of `binarize_cpu`."""
    _require_cuda()
    gpu_data = None
    gpu_mask = None
    try:
        gpu_data = cp.asarray(data, dtype=cp.float64)
        gpu_mask = cp.where(gpu_data >= cutoff, FOREGROUND, BACKGROUND).astype(cp.uint8)
        return cp.asnumpy(gpu_mask)
    finally:
        del gpu_data, gpu_mask
        cp.get_default_memory_pool().free_all_blocks()
