"""
Global histogram thresholds.

Every method receives the histogram of the whole stack as ``counts`` (and
the matching ``bin_centers``) and returns a bin index ``k``: voxels falling
in bins above ``k`` are foreground. Method names follow the ImageJ
AutoThresholder menu so that settings carry over from Fiji macros.

Otsu, Yen, IsoData and Minimum come straight from scikit-image (which
accepts a precomputed histogram); the remaining methods are histogram
ports working on bin indices.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

import numpy as np
from skimage import filters

from ...core.exceptions import ConfigurationError, ThresholdError


logger = logging.getLogger(__name__)

_EPSILON = np.finfo(np.float64).eps
_MAX_ITERATIONS = 10000
_PERCENTILE_FRACTION = 0.5

HistogramMethod = Callable[[np.ndarray, np.ndarray], int]


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def _bin_index_of(bin_centers: np.ndarray, value: float) -> int:
    """Index of the bin whose center is the last one <= value."""
    idx = int(np.searchsorted(bin_centers, value, side="right")) - 1
    return int(np.clip(idx, 0, bin_centers.size - 1))


def _from_skimage(func: Callable[..., float], name: str) -> HistogramMethod:
    def method(counts: np.ndarray, bin_centers: np.ndarray) -> int:
        try:
            value = func(hist=(counts, bin_centers))
        except RuntimeError as e:
            raise ThresholdError(f"{name} threshold failed: {e}") from e
        return _bin_index_of(bin_centers, float(np.asarray(value).ravel()[0]))

    method.__name__ = f"_{name.lower()}"
    return method


def _default(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """ImageJ 'Default': IsoData variant ignoring the two extreme bins."""
    data = counts.astype(np.float64)
    data[0] = 0.0
    data[-1] = 0.0
    n = data.size
    nonzero = np.flatnonzero(data)
    if nonzero.size == 0 or nonzero[0] >= nonzero[-1]:
        return n // 2

    lo, hi = int(nonzero[0]), int(nonzero[-1])
    idx = np.arange(n, dtype=np.float64)
    moving = lo
    while True:
        below = data[lo:moving + 1]
        above = data[moving + 1:hi + 1]
        result = (
            (idx[lo:moving + 1] * below).sum() / below.sum()
            + (idx[moving + 1:hi + 1] * above).sum() / above.sum()
        ) / 2.0
        moving += 1
        if not ((moving + 1) <= result and moving < hi - 1):
            break
    return _round_half_up(result)


def _is_bimodal(hist: np.ndarray) -> bool:
    inner = hist[1:-1]
    modes = np.count_nonzero((hist[:-2] < inner) & (hist[2:] < inner))
    return modes == 2


def _smooth_until_bimodal(counts: np.ndarray) -> np.ndarray:
    hist = counts.astype(np.float64)
    kernel = np.ones(3) / 3.0
    for _ in range(_MAX_ITERATIONS):
        if _is_bimodal(hist):
            return hist
        hist = np.convolve(hist, kernel, mode="same")
    raise ThresholdError("Histogram never became bimodal while smoothing")


def _intermodes(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    hist = _smooth_until_bimodal(counts)
    inner = hist[1:-1]
    peaks = np.flatnonzero((hist[:-2] < inner) & (hist[2:] < inner)) + 1
    return int(np.floor(peaks.sum() / 2.0))


def _li(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """Li's iterative minimum cross entropy."""
    data = counts.astype(np.float64)
    idx = np.arange(data.size, dtype=np.float64)
    cum_n = np.cumsum(data)
    cum_s = np.cumsum(idx * data)
    num_pixels = cum_n[-1]
    total = cum_s[-1]

    tolerance = 0.5
    new_thresh = total / num_pixels
    for _ in range(_MAX_ITERATIONS):
        old_thresh = new_thresh
        t = int(np.clip(int(old_thresh + 0.5), 0, data.size - 1))

        num_back = cum_n[t]
        num_obj = num_pixels - num_back
        mean_back = cum_s[t] / num_back if num_back > 0 else 0.0
        mean_obj = (total - cum_s[t]) / num_obj if num_obj > 0 else 0.0

        if mean_back <= 0 or mean_obj <= 0:
            temp = 0.0
        else:
            temp = (mean_back - mean_obj) / (np.log(mean_back) - np.log(mean_obj))

        new_thresh = int(temp - 0.5) if temp < -_EPSILON else int(temp + 0.5)
        if abs(new_thresh - old_thresh) <= tolerance:
            break
    return int(new_thresh)


def _max_entropy(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """Kapur-Sahoo-Wong maximum entropy."""
    data = counts.astype(np.float64)
    norm = data / data.sum()
    p1 = np.cumsum(norm)
    p2 = 1.0 - p1
    occupied = data > 0

    first_candidates = np.flatnonzero(np.abs(p1) >= _EPSILON)
    last_candidates = np.flatnonzero(np.abs(p2) >= _EPSILON)
    first = int(first_candidates[0])
    last = int(last_candidates[-1]) if last_candidates.size else first

    best = -np.inf
    threshold = first
    for it in range(first, last + 1):
        back = norm[:it + 1][occupied[:it + 1]] / p1[it]
        obj = norm[it + 1:][occupied[it + 1:]] / p2[it]
        total = -np.sum(back * np.log(back)) - np.sum(obj * np.log(obj))
        if total > best:
            best = total
            threshold = it
    return threshold


def _mean(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    data = counts.astype(np.float64)
    idx = np.arange(data.size, dtype=np.float64)
    return int(np.floor((idx * data).sum() / data.sum()))


def _min_error(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """Kittler-Illingworth minimum error, iterative form."""
    data = counts.astype(np.float64)
    idx = np.arange(data.size, dtype=np.float64)
    a = np.cumsum(data)
    b = np.cumsum(idx * data)
    c = np.cumsum(idx * idx * data)
    end = data.size - 1

    threshold = _mean(counts, bin_centers)
    previous = -2
    for _ in range(_MAX_ITERATIONS):
        if threshold == previous:
            break
        t = threshold
        with np.errstate(divide="ignore", invalid="ignore"):
            mu = b[t] / a[t]
            nu = (b[end] - b[t]) / (a[end] - a[t])
            p = a[t] / a[end]
            q = (a[end] - a[t]) / a[end]
            sigma2 = c[t] / a[t] - mu * mu
            tau2 = (c[end] - c[t]) / (a[end] - a[t]) - nu * nu
            w0 = 1.0 / sigma2 - 1.0 / tau2
            w1 = mu / sigma2 - nu / tau2
            w2 = mu * mu / sigma2 - nu * nu / tau2 + np.log10((sigma2 * q * q) / (tau2 * p * p))
            sqterm = w1 * w1 - w0 * w2
            if not np.isfinite(sqterm) or sqterm < 0:
                logger.warning("MinError: not converging, keeping bin %d", t)
                break
            previous = t
            temp = (w1 + np.sqrt(sqterm)) / w0
        if np.isfinite(temp):
            threshold = int(np.clip(np.floor(temp), 0, end))
        else:
            threshold = previous
    return int(threshold)


def _moments(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """Tsai's moment-preserving threshold."""
    data = counts.astype(np.float64)
    histo = data / data.sum()
    idx = np.arange(data.size, dtype=np.float64)

    m0 = 1.0
    m1 = (idx * histo).sum()
    m2 = (idx ** 2 * histo).sum()
    m3 = (idx ** 3 * histo).sum()
    cd = m0 * m2 - m1 * m1
    if cd <= 0:
        raise ThresholdError("Moments threshold undefined for a single-valued histogram")
    c0 = (-m2 * m2 + m1 * m3) / cd
    c1 = (m0 * -m3 + m2 * m1) / cd
    disc = c1 * c1 - 4.0 * c0
    if disc < 0:
        raise ThresholdError("Moments threshold has no real solution")
    z0 = 0.5 * (-c1 - np.sqrt(disc))
    z1 = 0.5 * (-c1 + np.sqrt(disc))
    p0 = (z1 - m1) / (z1 - z0)

    above = np.flatnonzero(np.cumsum(histo) > p0)
    return int(above[0]) if above.size else data.size - 1


def _percentile(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    data = counts.astype(np.float64)
    cum = np.cumsum(data) / data.sum()
    return int(np.argmin(np.abs(cum - _PERCENTILE_FRACTION)))


def _triangle(counts: np.ndarray, bin_centers: np.ndarray) -> int:
    """Zack's triangle method, searching on the side of the longer tail."""
    data = counts.astype(np.float64)
    n = data.size
    nonzero = np.flatnonzero(data)
    lo = int(nonzero[0])
    if lo > 0:
        lo -= 1
    hi = int(nonzero[-1])
    if hi < n - 1:
        hi += 1
    peak = int(np.argmax(data))

    inverted = False
    if (peak - lo) < (hi - peak):
        data = data[::-1]
        lo = n - 1 - hi
        peak = n - 1 - peak
        inverted = True

    if lo == peak:
        return n - 1 - lo if inverted else lo

    nx = data[peak]
    ny = lo - peak
    norm = np.hypot(nx, ny)
    nx, ny = nx / norm, ny / norm
    d = nx * lo + ny * data[lo]

    positions = np.arange(lo + 1, peak + 1)
    distances = nx * positions + ny * data[lo + 1:peak + 1] - d
    split = lo
    if distances.size and distances.max() > 0:
        split = lo + 1 + int(np.argmax(distances))
    split -= 1

    return n - 1 - split if inverted else split


THRESHOLD_METHODS: Dict[str, HistogramMethod] = {
    "Default": _default,
    "Intermodes": _intermodes,
    "IsoData": _from_skimage(filters.threshold_isodata, "IsoData"),
    "Li": _li,
    "MaxEntropy": _max_entropy,
    "Mean": _mean,
    "MinError": _min_error,
    "Minimum": _from_skimage(filters.threshold_minimum, "Minimum"),
    "Moments": _moments,
    "Otsu": _from_skimage(filters.threshold_otsu, "Otsu"),
    "Percentile": _percentile,
    "Triangle": _triangle,
    "Yen": _from_skimage(filters.threshold_yen, "Yen"),
}

_LOOKUP = {name.lower(): name for name in THRESHOLD_METHODS}


def available_methods() -> List[str]:
    """Names accepted by `resolve_method_name`."""
    return list(THRESHOLD_METHODS)


def resolve_method_name(name: str) -> str:
    """Canonical spelling of a threshold method name (case-insensitive).

    Raises:
        ConfigurationError: If the method is not supported.
    """
    key = str(name).strip().lower()
    # Fiji macros sometimes carry the "MinError(I)" spelling
    key = key.replace("(i)", "")
    if key not in _LOOKUP:
        raise ConfigurationError(
            f"Unknown threshold method '{name}'. Available: {available_methods()}"
        )
    return _LOOKUP[key]


def threshold_bin(counts: np.ndarray, bin_centers: np.ndarray, method: str) -> int:
    """Run a threshold method on a histogram.

    Args:
        counts: Histogram counts of the whole stack.
        bin_centers: Center value of each bin.
        method: Threshold method name.

    Returns:
        int: Highest background bin index, clipped to the histogram.
    """
    func = THRESHOLD_METHODS[resolve_method_name(method)]
    idx = func(np.asarray(counts), np.asarray(bin_centers))
    return int(np.clip(idx, 0, len(counts) - 1))


__all__ = [
    "THRESHOLD_METHODS",
    "available_methods",
    "resolve_method_name",
    "threshold_bin",
]
