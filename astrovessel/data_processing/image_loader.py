"""
Loading of multi-channel TIFF z-stacks.

Stacks are normalised to (C, Z, Y, X) whatever the axis order stored in
the file, and the voxel calibration is read from OME or ImageJ metadata.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import tifffile

from ..core.config import AnalysisConfig, ChannelSelector
from ..core.exceptions import ConfigurationError
from ..core.utils import format_bytes, validate_file_path
from ..core.volume import Calibration, VolumeGrid


logger = logging.getLogger(__name__)

# ImageJ stores the micro sign escaped in its description
_MICRON_SPELLINGS = {"um", "\u00b5m", "\u03bcm", "\\u00b5m", "micron", "microns"}


def _normalise_unit(unit: Optional[str]) -> str:
    if not unit:
        return "microns"
    return "microns" if unit.strip().lower() in _MICRON_SPELLINGS else unit


def to_czyx(image: np.ndarray, axes: str) -> np.ndarray:
    """Reorder an array with tifffile axes codes to (C, Z, Y, X).

    Time points and other extra axes keep their first index only; a
    generic 'I'/'Q' axis is taken as Z when the file has no Z axis.

    Raises:
        ValueError: If Y or X is missing.
    """
    axes = axes.upper()
    if "S" in axes and "C" not in axes:
        axes = axes.replace("S", "C")

    idx = 0
    while idx < len(axes):
        ax = axes[idx]
        if ax in "CZYX":
            idx += 1
        elif ax in "IQ" and "Z" not in axes:
            axes = axes[:idx] + "Z" + axes[idx + 1:]
            idx += 1
        else:
            if image.shape[idx] > 1:
                logger.info(f"Keeping first index of axis '{ax}' (size {image.shape[idx]})")
            image = np.take(image, 0, axis=idx)
            axes = axes[:idx] + axes[idx + 1:]

    if "Y" not in axes or "X" not in axes or len(set(axes)) != len(axes):
        raise ValueError(f"Unhandled TIFF axes '{axes}' with shape {image.shape}")
    for ax in "ZC":
        if ax not in axes:
            image = image[np.newaxis, ...]
            axes = ax + axes
    return np.transpose(image, [axes.index(a) for a in "CZYX"])


@dataclass
class LoadedImage:
    """Channels of one stack plus what the metadata says about them."""

    path: Path
    channels: np.ndarray  # (C, Z, Y, X)
    channel_names: List[str] = field(default_factory=list)
    calibration: Optional[Calibration] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def n_channels(self) -> int:
        return int(self.channels.shape[0])

    def channel_index(self, selector: ChannelSelector) -> int:
        """Resolve a channel index or (case-insensitive) name."""
        if isinstance(selector, str):
            lowered = [n.lower() for n in self.channel_names]
            if selector.lower() not in lowered:
                raise ConfigurationError(
                    f"Unknown channel '{selector}' in {self.name}. Available: {self.channel_names}"
                )
            return lowered.index(selector.lower())
        index = int(selector)
        if not 0 <= index < self.n_channels:
            raise ConfigurationError(
                f"Channel index {index} out of range for {self.name} ({self.n_channels} channel(s))"
            )
        return index

    def channel_grid(self, selector: ChannelSelector, calibration: Calibration) -> VolumeGrid:
        return VolumeGrid(self.channels[self.channel_index(selector)], calibration)


class ImageLoader:
    """TIFF / OME-TIFF / ImageJ hyperstack loader."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """Initialize the image loader.

        Args:
            config: Analysis configuration (image extensions). If None, uses defaults.
        """
        self.config = config or AnalysisConfig()

    def load(self, filepath: Union[str, Path]) -> LoadedImage:
        """Load a stack and its metadata.

        Args:
            filepath: Path to a TIFF file.

        Returns:
            LoadedImage: (C, Z, Y, X) channels, names and calibration.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file cannot be read as a z-stack.
        """
        filepath = Path(filepath)
        validate_file_path(filepath, self.config.image_extensions)
        logger.info(f"Loading image: {filepath.name}")

        with tifffile.TiffFile(str(filepath)) as tif:
            series = tif.series[0]
            image = to_czyx(series.asarray(), series.axes)
            names: List[str] = []
            calibration: Optional[Calibration] = None
            if tif.is_ome and tif.ome_metadata:
                names, calibration = self._parse_ome(tif.ome_metadata)
            if calibration is None and tif.is_imagej:
                calibration = self._parse_imagej(tif)

        if len(names) != image.shape[0]:
            names = [f"C{i + 1}" for i in range(image.shape[0])]
        if calibration is None:
            logger.warning(f"No calibration found in {filepath.name}")
        logger.info(
            f"Loaded {filepath.name}: (C, Z, Y, X) = {image.shape}, {format_bytes(image.nbytes)}, "
            f"calibration {calibration}"
        )
        return LoadedImage(filepath, image, names, calibration)

    @staticmethod
    def _parse_ome(xml: str):
        """Channel names and calibration from OME-XML."""
        root = ET.fromstring(xml)
        pixels = next((el for el in root.iter() if el.tag.endswith("}Pixels") or el.tag == "Pixels"), None)
        if pixels is None:
            return [], None
        names = [
            el.get("Name", "") for el in pixels
            if el.tag.endswith("}Channel") or el.tag == "Channel"
        ]
        size_x = pixels.get("PhysicalSizeX")
        if size_x is None:
            return names, None
        size_z = pixels.get("PhysicalSizeZ")
        unit = _normalise_unit(pixels.get("PhysicalSizeXUnit"))
        calibration = Calibration.from_pixel_sizes(
            float(size_x), float(size_z) if size_z is not None else None, unit
        )
        return names, calibration

    @staticmethod
    def _parse_imagej(tif: "tifffile.TiffFile") -> Optional[Calibration]:
        """Calibration from ImageJ resolution tags and 'spacing'."""
        page = tif.pages[0]
        tag = page.tags.get("XResolution")
        if tag is None:
            return None
        num, den = tag.value
        if num == 0 or den == 0:
            return None
        metadata = tif.imagej_metadata or {}
        spacing = metadata.get("spacing")
        unit = _normalise_unit(metadata.get("unit"))
        return Calibration.from_pixel_sizes(den / num, float(spacing) if spacing else None, unit)


__all__ = ["ImageLoader", "LoadedImage", "to_czyx"]
