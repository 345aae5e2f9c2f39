"""Unit tests for the slice-by-slice pre-filters."""

from __future__ import annotations

import numpy as np
import pytest

from astrovessel.core import Calibration, ConfigurationError, VolumeGrid
from astrovessel.imaging_preprocessing import log_filter_stack, median_filter_stack


CAL = Calibration(0.5, 0.5, 2.0)


def _salt_stack() -> VolumeGrid:
    data = np.zeros((3, 21, 21), dtype=np.uint16)
    data[:, 10, 10] = 1000
    return VolumeGrid(data, CAL)


def _blob_stack(radius: int = 5) -> VolumeGrid:
    yy, xx = np.mgrid[:41, :41]
    disk = ((yy - 20) ** 2 + (xx - 20) ** 2) <= radius ** 2
    data = np.repeat((disk * 100.0)[np.newaxis], 3, axis=0)
    return VolumeGrid(data, CAL)


def test_median_removes_isolated_voxels() -> None:
    out = median_filter_stack(_salt_stack(), radius=1)
    assert out.foreground_count() == 0
    assert out.dtype == np.uint16
    assert out.calibration == CAL


def test_median_radius_zero_copies() -> None:
    grid = _salt_stack()
    out = median_filter_stack(grid, radius=0)
    assert out is not grid
    assert np.array_equal(out.data, grid.data)


def test_median_rejects_negative_radius() -> None:
    with pytest.raises(ConfigurationError):
        median_filter_stack(_salt_stack(), radius=-1)
    with pytest.raises(ConfigurationError):
        median_filter_stack(_salt_stack(), radius=2.5)


def test_log_makes_bright_blobs_positive() -> None:
    out = log_filter_stack(_blob_stack(), sigma=3.0)
    assert out.dtype == np.float32
    assert out.shape == (3, 41, 41)
    assert (out.data[:, 20, 20] > 0).all()
    assert out.data[1, 20, 20] > out.data[1, 0, 0]


def test_log_sign_and_scale_options() -> None:
    grid = _blob_stack()
    plain = log_filter_stack(grid, sigma=2.0, scale_normalised=False, negate=False)
    scaled = log_filter_stack(grid, sigma=2.0)
    np.testing.assert_allclose(scaled.data, -4.0 * plain.data, rtol=1e-5, atol=1e-5)


def test_log_rejects_non_positive_sigma() -> None:
    with pytest.raises(ConfigurationError):
        log_filter_stack(_blob_stack(), sigma=0.0)
