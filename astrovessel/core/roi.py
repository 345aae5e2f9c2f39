"""
Artefact-exclusion regions.

ROIs are 2D polygons in pixel coordinates (x = column, y = row), replicated
across every slice of the stack. They are read from a sidecar file stored
next to each image::

    <stem>.rois.json   or   <stem>.rois.yaml / <stem>.rois.yml

holding a list of ``{"name": ..., "points": [[x, y], ...]}`` entries or bare
point lists.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import yaml
from skimage.draw import polygon as draw_polygon

from .exceptions import ConfigurationError
from .utils import image_stem


logger = logging.getLogger(__name__)

ROI_SUFFIXES = (".rois.json", ".rois.yaml", ".rois.yml")


@dataclass(frozen=True)
class PolygonROI:
    """Closed 2D polygon; vertices are pixel coordinates."""

    xs: Tuple[float, ...]
    ys: Tuple[float, ...]
    name: str = ""

    def __post_init__(self) -> None:
        if len(self.xs) != len(self.ys):
            raise ConfigurationError(f"ROI '{self.name}' has {len(self.xs)} x and {len(self.ys)} y coordinates")
        if len(self.xs) < 3:
            raise ConfigurationError(f"ROI '{self.name}' needs at least 3 vertices, got {len(self.xs)}")

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], name: str = "") -> "PolygonROI":
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ConfigurationError(f"ROI '{name}' points must be [[x, y], ...], got shape {pts.shape}")
        return cls(tuple(pts[:, 0].tolist()), tuple(pts[:, 1].tolist()), name)

    def to_mask(self, height: int, width: int) -> np.ndarray:
        """Rasterise the polygon into a (height, width) boolean mask."""
        mask = np.zeros((height, width), dtype=bool)
        rr, cc = draw_polygon(np.asarray(self.ys), np.asarray(self.xs), shape=(height, width))
        mask[rr, cc] = True
        return mask


def rois_to_mask(rois: Sequence[PolygonROI], height: int, width: int) -> np.ndarray:
    """Union of all ROI polygons as one (height, width) boolean mask."""
    mask = np.zeros((height, width), dtype=bool)
    for roi in rois:
        mask |= roi.to_mask(height, width)
    return mask


def _parse_roi_entries(entries: Any, source: str) -> List[PolygonROI]:
    if entries is None:
        return []
    if isinstance(entries, dict):
        entries = entries.get("rois", [])
    if not isinstance(entries, list):
        raise ConfigurationError(f"ROI file {source} must hold a list of polygons")

    rois: List[PolygonROI] = []
    for idx, entry in enumerate(entries):
        if isinstance(entry, dict):
            name = str(entry.get("name", f"roi_{idx + 1}"))
            points = entry.get("points")
        else:
            name = f"roi_{idx + 1}"
            points = entry
        if points is None:
            raise ConfigurationError(f"ROI '{name}' in {source} has no points")
        rois.append(PolygonROI.from_points(points, name=name))
    return rois


def load_rois(path: Union[str, Path]) -> List[PolygonROI]:
    """Read polygons from a JSON or YAML ROI file."""
    path = Path(path)
    with open(path, "r") as f:
        if path.suffix.lower() in (".yml", ".yaml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    rois = _parse_roi_entries(data, str(path))
    logger.info("Loaded %d ROI(s) from %s", len(rois), path.name)
    return rois


def find_roi_file(image_path: Union[str, Path]) -> Optional[Path]:
    """Return the ROI sidecar of an image, if any."""
    image_path = Path(image_path)
    stem = image_stem(image_path)
    for suffix in ROI_SUFFIXES:
        candidate = image_path.with_name(stem + suffix)
        if candidate.exists():
            return candidate
    return None


def load_rois_for_image(image_path: Union[str, Path]) -> List[PolygonROI]:
    """ROIs belonging to an image; empty when no sidecar exists."""
    roi_file = find_roi_file(image_path)
    if roi_file is None:
        return []
    return load_rois(roi_file)


__all__ = [
    "PolygonROI",
    "rois_to_mask",
    "load_rois",
    "find_roi_file",
    "load_rois_for_image",
    "ROI_SUFFIXES",
]
