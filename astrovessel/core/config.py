"""
Configuration management for the astrocyte / vessel analysis.

One immutable `AnalysisConfig` is built per batch run and handed to every
stage. Defaults reproduce the parameters used for the published analysis.
"""

from dataclasses import dataclass, field, asdict, replace
from typing import Dict, Any, Optional, Tuple, Union
from pathlib import Path
import json
import math

import yaml

from .exceptions import ConfigurationError
from .volume import Calibration


SUPPORTED_BACKENDS = ('cpu', 'cuda', 'auto')
SUPPORTED_CONNECTIVITY = (6, 18, 26)

ChannelSelector = Union[int, str]


def _canonical_method(name: str) -> str:
    # Imported lazily: the thresholding package depends on core
    from ..imaging_preprocessing.thresholding.methods import resolve_method_name
    return resolve_method_name(name)


def _check_volume_range(owner: str, min_volume: float, max_volume: float) -> None:
    if math.isnan(min_volume) or math.isnan(max_volume):
        raise ConfigurationError(f"{owner}: volume bounds must be numbers")
    if min_volume < 0:
        raise ConfigurationError(f"{owner}: min_volume must be >= 0, got {min_volume}")
    if min_volume > max_volume:
        raise ConfigurationError(f"{owner}: min_volume {min_volume} > max_volume {max_volume}")


def _check_radius(owner: str, name: str, value: float) -> None:
    if value is None or math.isnan(value) or value < 0:
        raise ConfigurationError(f"{owner}: {name} must be >= 0, got {value!r}")


def _check_pixel_radius(owner: str, name: str, value: float) -> int:
    _check_radius(owner, name, value)
    if not float(value).is_integer():
        raise ConfigurationError(f"{owner}: {name} must be a whole number of pixels, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class MicrogliaDetectionConfig:
    """Microglia detection, used to clean the vessel mask."""

    threshold_method: str = 'Moments'
    median_radius: int = 8  # pixels, applied slice by slice

    def __post_init__(self) -> None:
        object.__setattr__(self, 'threshold_method', _canonical_method(self.threshold_method))
        object.__setattr__(
            self, 'median_radius', _check_pixel_radius('microglia', 'median_radius', self.median_radius)
        )


@dataclass(frozen=True)
class VesselDetectionConfig:
    """Vessel detection and dilation parameters."""

    threshold_method: str = 'Triangle'
    log_sigma: float = 14.0  # pixels
    min_volume: float = 100.0  # calibrated units^3
    max_volume: float = math.inf
    dilation_radius: float = 2.0  # calibrated units

    def __post_init__(self) -> None:
        object.__setattr__(self, 'threshold_method', _canonical_method(self.threshold_method))
        _check_volume_range('vessels', self.min_volume, self.max_volume)
        _check_radius('vessels', 'dilation_radius', self.dilation_radius)
        _check_radius('vessels', 'log_sigma', self.log_sigma)


@dataclass(frozen=True)
class AstrocyteDetectionConfig:
    """Astrocyte detection parameters."""

    threshold_method: str = 'Li'
    median_radius: int = 2
    min_volume: float = 0.2
    max_volume: float = math.inf

    def __post_init__(self) -> None:
        object.__setattr__(self, 'threshold_method', _canonical_method(self.threshold_method))
        _check_volume_range('astrocytes', self.min_volume, self.max_volume)
        object.__setattr__(
            self, 'median_radius', _check_pixel_radius('astrocytes', 'median_radius', self.median_radius)
        )


@dataclass(frozen=True)
class AnalysisConfig:
    """Complete, immutable configuration of one batch run."""

    # Channel selection (index or metadata name)
    vessel_channel: ChannelSelector = 0
    microglia_channel: ChannelSelector = 1
    astrocyte_channel: ChannelSelector = 2

    # Detection stages
    microglia: MicrogliaDetectionConfig = field(default_factory=MicrogliaDetectionConfig)
    vessels: VesselDetectionConfig = field(default_factory=VesselDetectionConfig)
    astrocytes: AstrocyteDetectionConfig = field(default_factory=AstrocyteDetectionConfig)

    # Object extraction
    connectivity: int = 26

    # Thresholding backend
    threshold_backend: str = 'cpu'
    histogram_bins: int = 256

    # Calibration overrides (None means use image metadata)
    pixel_size_xy: Optional[float] = None
    pixel_size_z: Optional[float] = None
    unit: str = 'microns'

    # Batch handling
    image_extensions: Tuple[str, ...] = ('.tif', '.tiff')
    results_dirname: str = 'Results'
    save_overlays: bool = True

    # Logging
    log_level: str = 'INFO'

    def __post_init__(self) -> None:
        if self.connectivity not in SUPPORTED_CONNECTIVITY:
            raise ConfigurationError(
                f"connectivity must be one of {SUPPORTED_CONNECTIVITY}, got {self.connectivity}"
            )
        backend = str(self.threshold_backend).lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"threshold_backend must be one of {SUPPORTED_BACKENDS}, got '{self.threshold_backend}'"
            )
        object.__setattr__(self, 'threshold_backend', backend)
        if int(self.histogram_bins) < 2:
            raise ConfigurationError(f"histogram_bins must be >= 2, got {self.histogram_bins}")
        for name in ('pixel_size_xy', 'pixel_size_z'):
            value = getattr(self, name)
            if value is not None and (math.isnan(value) or value <= 0):
                raise ConfigurationError(f"{name} must be positive, got {value}")
        object.__setattr__(
            self,
            'image_extensions',
            tuple(ext.lower() if ext.startswith('.') else f'.{ext.lower()}' for ext in self.image_extensions),
        )

    def resolve_calibration(self, metadata_calibration: Optional[Calibration]) -> Calibration:
        """Apply the pixel size overrides on top of the image metadata.

        Args:
            metadata_calibration: Calibration read from the image, if any.

        Returns:
            Calibration: XY-isotropic calibration used for the analysis.

        Raises:
            ConfigurationError: If neither metadata nor overrides give an XY size.
        """
        xy = self.pixel_size_xy
        z = self.pixel_size_z
        unit = self.unit
        if metadata_calibration is not None:
            if xy is None:
                xy = metadata_calibration.voxel_width
            if z is None:
                z = metadata_calibration.voxel_depth
            unit = metadata_calibration.unit
        if xy is None:
            raise ConfigurationError("No XY pixel size in image metadata; set pixel_size_xy")
        return Calibration.from_pixel_sizes(xy, z, unit)

    def replace(self, **changes: Any) -> 'AnalysisConfig':
        """Return a copy with some fields changed."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary.

        Returns:
            Dict[str, Any]: Configuration as dictionary, infinite bounds as "inf".
        """
        def _plain(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: _plain(v) for k, v in value.items()}
            if isinstance(value, tuple):
                return list(value)
            if isinstance(value, float) and math.isinf(value):
                return 'inf' if value > 0 else '-inf'
            return value

        return _plain(asdict(self))

    def save(self, filepath: Path, format: str = 'auto') -> None:
        """Save configuration to file.

        Args:
            filepath: Path to save configuration.
            format: File format ('json', 'yaml', or 'auto' to detect from extension).
        """
        filepath = Path(filepath)

        if format == 'auto':
            format = 'yaml' if filepath.suffix.lower() in ['.yml', '.yaml'] else 'json'

        config_dict = self.to_dict()

        with open(filepath, 'w') as f:
            if format == 'yaml':
                yaml.dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)
            else:
                json.dump(config_dict, f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        """Build a configuration from a (possibly partial) dictionary."""
        data = dict(data or {})
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

        nested = {
            'microglia': MicrogliaDetectionConfig,
            'vessels': VesselDetectionConfig,
            'astrocytes': AstrocyteDetectionConfig,
        }
        for key, config_class in nested.items():
            if key in data and isinstance(data[key], dict):
                section = dict(data[key])
                bad = set(section) - set(config_class.__dataclass_fields__)
                if bad:
                    raise ConfigurationError(f"Unknown keys in '{key}': {sorted(bad)}")
                for vol_key in ('min_volume', 'max_volume', 'dilation_radius', 'log_sigma'):
                    if vol_key in section:
                        section[vol_key] = float(section[vol_key])
                data[key] = config_class(**section)

        if 'image_extensions' in data:
            data['image_extensions'] = tuple(data['image_extensions'])
        return cls(**data)

    @classmethod
    def load(cls, filepath: Path) -> 'AnalysisConfig':
        """Load configuration from JSON or YAML file.

        Args:
            filepath: Path to configuration file.

        Returns:
            AnalysisConfig: Loaded configuration object.
        """
        filepath = Path(filepath)

        with open(filepath, 'r') as f:
            if filepath.suffix.lower() in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        return cls.from_dict(data)


def create_default_config(**overrides: Any) -> AnalysisConfig:
    """Create the default configuration, optionally overriding top-level fields."""
    return AnalysisConfig(**overrides)
