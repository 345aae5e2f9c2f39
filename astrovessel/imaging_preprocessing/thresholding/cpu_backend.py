from __future__ import annotations

from typing import Tuple

import numpy as np

from ...core.volume import BACKGROUND, FOREGROUND


def histogram_cpu(data: np.ndarray, bins: int) -> Tuple[np.ndarray, np.ndarray]:
    """Equal-width histogram over the finite [min, max] range of the stack."""
    finite = data[np.isfinite(data)] if np.issubdtype(data.dtype, np.floating) else data
    if finite.size == 0:
        return np.zeros(bins, dtype=np.int64), np.linspace(0.0, 1.0, bins + 1)
    lo = float(finite.min())
    hi = float(finite.max())
    if lo == hi:
        # Degenerate range: every voxel ends up in bin 0
        counts = np.zeros(bins, dtype=np.int64)
        counts[0] = finite.size
        return counts, np.full(bins + 1, lo)
    counts, edges = np.histogram(finite, bins=bins, range=(lo, hi))
    return counts, edges


def binarize_cpu(data: np.ndarray, cutoff: float) -> np.ndarray:
    """FOREGROUND where ``data >= cutoff``, BACKGROUND elsewhere."""
    out = np.full(data.shape, BACKGROUND, dtype=np.uint8)
    out[np.asarray(data, dtype=np.float64) >= cutoff] = FOREGROUND
    return out
