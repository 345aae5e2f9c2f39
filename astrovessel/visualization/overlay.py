"""
QA overlays of the classification.

Channel order: astrocytes in vessels (red), astrocytes out of vessels
(green), vessels (blue).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import tifffile

from ..analysis.objects import ObjectPopulation
from ..core.volume import FOREGROUND, Calibration


logger = logging.getLogger(__name__)

OVERLAY_CHANNELS = ("in vessels", "out vessels", "vessels")


def compose_overlay(
    inside: ObjectPopulation,
    outside: ObjectPopulation,
    vessels: ObjectPopulation,
    shape: Tuple[int, int, int],
) -> np.ndarray:
    """Render the three populations as a (Z, 3, Y, X) uint8 stack.

    Args:
        inside: Astrocytes in vessels (channel 0).
        outside: Astrocytes out of vessels (channel 1).
        vessels: Vessels (channel 2).
        shape: (Z, Y, X) shape of the analysed grid.
    """
    depth, height, width = shape
    overlay = np.zeros((depth, len(OVERLAY_CHANNELS), height, width), dtype=np.uint8)
    for channel, population in enumerate((inside, outside, vessels)):
        voxels = population.all_voxels()
        if len(voxels):
            overlay[voxels[:, 2], channel, voxels[:, 1], voxels[:, 0]] = FOREGROUND
    return overlay


def save_overlay(overlay: np.ndarray, path: Union[str, Path], calibration: Calibration) -> Path:
    """Write the overlay as an ImageJ composite hyperstack."""
    path = Path(path)
    tifffile.imwrite(
        str(path),
        overlay,
        imagej=True,
        resolution=(1.0 / calibration.voxel_width, 1.0 / calibration.voxel_height),
        metadata={
            "axes": "ZCYX",
            "spacing": calibration.voxel_depth,
            "unit": "um",
            "mode": "composite",
        },
    )
    logger.info(f"Overlay saved to {path}")
    return path


def save_projection_figure(
    overlay: np.ndarray,
    path: Union[str, Path],
    title: str = "",
    dpi: int = 150,
) -> Path:
    """Save the max-intensity projection of an overlay as an RGB figure."""
    path = Path(path)
    rgb = overlay.max(axis=0).transpose(1, 2, 0)

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        ax.imshow(rgb)
        ax.set_title(title or "Astrocytes in (red) / out (green) of vessels (blue)")
        ax.axis("off")
        fig.savefig(path, dpi=dpi, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.info(f"Projection figure saved to {path}")
    return path


__all__ = ["OVERLAY_CHANNELS", "compose_overlay", "save_overlay", "save_projection_figure"]
