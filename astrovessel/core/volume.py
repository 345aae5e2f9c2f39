"""
Calibrated 3D volumes.

Grids are stored the way `ImageLoader` hands channels over: numpy arrays
shaped (Z, Y, X). Voxel coordinates exchanged with the object model are
always (x, y, z) triples.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .exceptions import ConfigurationError


FOREGROUND = 255
BACKGROUND = 0


@dataclass(frozen=True)
class Calibration:
    """Physical size of one voxel along each axis."""

    voxel_width: float
    voxel_height: float
    voxel_depth: float
    unit: str = "microns"

    def __post_init__(self) -> None:
        for name in ("voxel_width", "voxel_height", "voxel_depth"):
            value = getattr(self, name)
            if value is None or not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"Calibration {name} must be a positive number, got {value!r}")

    @classmethod
    def from_pixel_sizes(
        cls,
        pixel_size_xy: float,
        pixel_size_z: Optional[float] = None,
        unit: str = "microns",
    ) -> "Calibration":
        """Build an XY-isotropic calibration; Z defaults to 1 when unknown."""
        depth = pixel_size_z if pixel_size_z is not None else 1.0
        return cls(float(pixel_size_xy), float(pixel_size_xy), float(depth), unit)

    @property
    def voxel_volume(self) -> float:
        return self.voxel_width * self.voxel_height * self.voxel_depth

    @property
    def is_isotropic_xy(self) -> bool:
        return self.voxel_width == self.voxel_height

    def physical_to_voxels(self, distance: float) -> Tuple[float, float, float]:
        """Convert one physical distance to per-axis voxel radii (x, y, z)."""
        return (
            distance / self.voxel_width,
            distance / self.voxel_height,
            distance / self.voxel_depth,
        )


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive integer bounds in voxel coordinates."""

    xmin: int
    xmax: int
    ymin: int
    ymax: int
    zmin: int
    zmax: int

    @classmethod
    def from_shape(cls, width: int, height: int, depth: int) -> "BoundingBox":
        return cls(0, width - 1, 0, height - 1, 0, depth - 1)

    @classmethod
    def unbounded(cls) -> "BoundingBox":
        """Bounds that never clip anything."""
        lo, hi = -sys.maxsize, sys.maxsize
        return cls(lo, hi, lo, hi, lo, hi)

    @property
    def width(self) -> int:
        return self.xmax - self.xmin + 1

    @property
    def height(self) -> int:
        return self.ymax - self.ymin + 1

    @property
    def depth(self) -> int:
        return self.zmax - self.zmin + 1

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Array shape (Z, Y, X) of a grid spanning these bounds."""
        return (self.depth, self.height, self.width)

    def contains(self, voxels: np.ndarray) -> np.ndarray:
        """Boolean mask of the (N, 3) x, y, z voxels lying inside the box."""
        voxels = np.asarray(voxels)
        x, y, z = voxels[:, 0], voxels[:, 1], voxels[:, 2]
        return (
            (x >= self.xmin) & (x <= self.xmax)
            & (y >= self.ymin) & (y <= self.ymax)
            & (z >= self.zmin) & (z <= self.zmax)
        )


class VolumeGrid:
    """A (Z, Y, X) array with its calibration attached.

    Dimensions are fixed at creation. Grids can be used as context managers
    so that large intermediate masks are dropped as soon as a stage is done
    with them.
    """

    def __init__(self, data: np.ndarray, calibration: Calibration):
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[np.newaxis, ...]
        if data.ndim != 3:
            raise ConfigurationError(f"VolumeGrid expects a (Z, Y, X) array, got shape {data.shape}")
        if not isinstance(calibration, Calibration):
            raise ConfigurationError("VolumeGrid requires a Calibration")
        self._data: Optional[np.ndarray] = data
        self._shape: Tuple[int, int, int] = tuple(int(s) for s in data.shape)  # type: ignore[assignment]
        self.calibration = calibration

    @classmethod
    def zeros(cls, shape: Tuple[int, int, int], calibration: Calibration, dtype=np.uint8) -> "VolumeGrid":
        return cls(np.zeros(shape, dtype=dtype), calibration)

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise RuntimeError("VolumeGrid has been released")
        return self._data

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._shape

    @property
    def width(self) -> int:
        return self._shape[2]

    @property
    def height(self) -> int:
        return self._shape[1]

    @property
    def depth(self) -> int:
        return self._shape[0]

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def bounds(self) -> BoundingBox:
        return BoundingBox.from_shape(self.width, self.height, self.depth)

    @property
    def physical_volume(self) -> float:
        """Whole-grid volume in calibrated units."""
        return self.width * self.height * self.depth * self.calibration.voxel_volume

    @property
    def released(self) -> bool:
        return self._data is None

    def create_same_dimensions(self, dtype=np.uint8) -> "VolumeGrid":
        """Empty grid with the same shape and calibration."""
        return VolumeGrid.zeros(self._shape, self.calibration, dtype=dtype)

    def duplicate(self) -> "VolumeGrid":
        return VolumeGrid(self.data.copy(), self.calibration)

    def with_calibration(self, calibration: Calibration) -> "VolumeGrid":
        return VolumeGrid(self.data, calibration)

    def check_same_dimensions(self, other: "VolumeGrid") -> None:
        if self._shape != other.shape:
            raise ConfigurationError(
                f"Grid dimensions differ: {self._shape} vs {other.shape} (Z, Y, X)"
            )

    def foreground_count(self) -> int:
        return int(np.count_nonzero(self.data))

    def release(self) -> None:
        """Drop the voxel buffer; the grid is unusable afterwards."""
        self._data = None

    def __enter__(self) -> "VolumeGrid":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else str(self.data.dtype)
        return f"VolumeGrid(shape={self._shape}, {state}, calibration={self.calibration})"


__all__ = ["FOREGROUND", "BACKGROUND", "Calibration", "BoundingBox", "VolumeGrid"]
