"""
Object model: labelled voxel sets and the populations holding them.

Voxels are (x, y, z) integer triples. A population keeps insertion order
and unique labels; `ObjectPopulation.relabeled` renumbers to 1..N.
"""

from __future__ import annotations

from functools import cached_property
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np
from scipy import ndimage as ndi

from ..core.exceptions import ConfigurationError
from ..core.volume import BoundingBox, Calibration


class VoxelObject:
    """One connected object: a positive label plus its voxel set.

    Args:
        label: Positive integer, unique within the owning population.
        voxels: (N, 3) array of x, y, z coordinates; duplicates are dropped.
        calibration: Calibration used for the physical volume.
    """

    def __init__(self, label: int, voxels: np.ndarray, calibration: Calibration):
        if int(label) < 1:
            raise ConfigurationError(f"Object labels must be positive, got {label}")
        voxels = np.array(voxels, dtype=np.int64).reshape(-1, 3)
        if len(voxels) > 1:
            voxels = np.unique(voxels, axis=0)
        voxels.setflags(write=False)
        self.label = int(label)
        self.calibration = calibration
        self._voxels = voxels

    @property
    def voxels(self) -> np.ndarray:
        """Read-only (N, 3) x, y, z array, lexicographically sorted."""
        return self._voxels

    @property
    def voxel_count(self) -> int:
        return int(self._voxels.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.voxel_count == 0

    @cached_property
    def bounding_box(self) -> Optional[BoundingBox]:
        if self.is_empty:
            return None
        lo = self._voxels.min(axis=0)
        hi = self._voxels.max(axis=0)
        return BoundingBox(int(lo[0]), int(hi[0]), int(lo[1]), int(hi[1]), int(lo[2]), int(hi[2]))

    @cached_property
    def volume(self) -> float:
        """Physical volume: voxel count x voxel volume."""
        return self.voxel_count * self.calibration.voxel_volume

    def voxel_set(self) -> set:
        return {tuple(v) for v in self._voxels.tolist()}

    def with_label(self, label: int) -> "VoxelObject":
        """Same voxels under another label."""
        return VoxelObject(label, self._voxels, self.calibration)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VoxelObject):
            return NotImplemented
        return self.label == other.label and np.array_equal(self._voxels, other._voxels)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"VoxelObject(label={self.label}, voxels={self.voxel_count})"


class ObjectPopulation:
    """Insertion-ordered collection of VoxelObjects with unique labels."""

    def __init__(self, objects: Iterable[VoxelObject] = (), calibration: Optional[Calibration] = None):
        self._objects: List[VoxelObject] = list(objects)
        self._by_label: Dict[int, VoxelObject] = {}
        for obj in self._objects:
            if obj.label in self._by_label:
                raise ConfigurationError(f"Duplicate object label {obj.label} in population")
            self._by_label[obj.label] = obj
        if calibration is None and self._objects:
            calibration = self._objects[0].calibration
        self.calibration = calibration

    @classmethod
    def from_label_array(cls, labels: np.ndarray, calibration: Calibration) -> "ObjectPopulation":
        """Build a population from a (Z, Y, X) label image.

        Objects appear in label order; background is 0.
        """
        objects: List[VoxelObject] = []
        for idx, slices in enumerate(ndi.find_objects(labels), start=1):
            if slices is None:
                continue
            zz, yy, xx = np.nonzero(labels[slices] == idx)
            voxels = np.column_stack([
                xx + slices[2].start,
                yy + slices[1].start,
                zz + slices[0].start,
            ])
            objects.append(VoxelObject(idx, voxels, calibration))
        return cls(objects, calibration)

    def relabeled(self) -> "ObjectPopulation":
        """Copy with labels renumbered 1..N in population order."""
        return ObjectPopulation(
            (obj.with_label(i) for i, obj in enumerate(self._objects, start=1)),
            self.calibration,
        )

    @property
    def labels(self) -> List[int]:
        return [obj.label for obj in self._objects]

    @property
    def voxel_count(self) -> int:
        return sum(obj.voxel_count for obj in self._objects)

    def get(self, label: int) -> Optional[VoxelObject]:
        return self._by_label.get(label)

    def all_voxels(self) -> np.ndarray:
        """(N, 3) stack of every object's voxels."""
        if not self._objects:
            return np.empty((0, 3), dtype=np.int64)
        return np.concatenate([obj.voxels for obj in self._objects], axis=0)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[VoxelObject]:
        return iter(self._objects)

    def __getitem__(self, index: int) -> VoxelObject:
        return self._objects[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectPopulation):
            return NotImplemented
        return self._objects == other._objects

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ObjectPopulation({len(self)} objects)"


__all__ = ["VoxelObject", "ObjectPopulation"]
