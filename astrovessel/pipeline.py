"""
Per-image analysis and sequential batch processing.

For every image: detect microglia, vessels and astrocytes, split the
astrocytes into the parts inside and outside the dilated vessels, then
measure. Images are processed one after the other in name order; a
failing image is logged and skipped, the others still get their row in
the report.
"""

from __future__ import annotations

import gc
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .analysis.detection import find_astrocytes, find_microglia, find_vessels
from .analysis.measurement import image_volume, population_volume, roi_volume
from .analysis.objects import ObjectPopulation
from .analysis.vessel_classification import partition_in_out
from .core.config import AnalysisConfig
from .core.roi import PolygonROI, load_rois_for_image
from .core.utils import ensure_directory, find_images, image_stem
from .core.volume import Calibration, VolumeGrid
from .data_processing.image_loader import ImageLoader, LoadedImage
from .data_processing.results_writer import REPORT_COLUMNS, ResultsWriter
from .imaging_preprocessing.thresholding.backends import ThresholdBackend, get_backend
from .visualization.overlay import compose_overlay, save_overlay, save_projection_figure


logger = logging.getLogger(__name__)

REPORT_FILENAME = "results.tsv"


@dataclass
class ImageAnalysis:
    """Populations and volumes obtained for one image."""

    image_name: str
    calibration: Calibration
    shape: Tuple[int, int, int]  # (Z, Y, X)
    vessels: ObjectPopulation
    inside: ObjectPopulation
    outside: ObjectPopulation
    image_volume: float
    roi_volume: float

    @property
    def vessel_volume(self) -> float:
        return population_volume(self.vessels)

    @property
    def inside_volume(self) -> float:
        return population_volume(self.inside)

    @property
    def outside_volume(self) -> float:
        return population_volume(self.outside)

    def to_row(self) -> Dict[str, object]:
        """Report columns for this image."""
        values = (
            self.image_name,
            self.image_volume,
            self.image_volume - self.roi_volume,
            self.vessel_volume,
            self.inside_volume,
            self.outside_volume,
        )
        return dict(zip(REPORT_COLUMNS, values))


@dataclass
class BatchResult:
    """Outcome of `run_batch`."""

    completed: List[Dict[str, object]] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    report_path: Optional[Path] = None

    @property
    def total(self) -> int:
        return len(self.completed) + len(self.failed)


class InOutVesselAnalyzer:
    """Runs the whole analysis of one image with a fixed configuration.

    Args:
        config: Analysis configuration. If None, uses defaults.
        backend: Threshold backend; built from ``config.threshold_backend`` if None.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None, backend: Optional[ThresholdBackend] = None):
        self.config = config or AnalysisConfig()
        self.backend = backend or get_backend(self.config.threshold_backend)

    def analyze(
        self,
        vessel: VolumeGrid,
        microglia: VolumeGrid,
        astrocyte: VolumeGrid,
        rois: Sequence[PolygonROI] = (),
        image_name: str = "",
    ) -> ImageAnalysis:
        """Analyse the three channel grids of one image.

        Raises:
            ConfigurationError: If the grids differ in shape.
        """
        astrocyte.check_same_dimensions(vessel)
        astrocyte.check_same_dimensions(microglia)
        config = self.config
        calibration = astrocyte.calibration
        bounds = astrocyte.bounds

        microglia_objects = find_microglia(microglia, config, self.backend)
        vessels = find_vessels(vessel, microglia_objects, rois, config, self.backend)
        del microglia_objects
        astrocytes = find_astrocytes(astrocyte, rois, config, self.backend)

        inside, outside = partition_in_out(
            astrocytes,
            vessels,
            bounds,
            config.vessels.dilation_radius,
            calibration,
            config.connectivity,
        )
        return ImageAnalysis(
            image_name=image_name,
            calibration=calibration,
            shape=astrocyte.shape,
            vessels=vessels,
            inside=inside,
            outside=outside,
            image_volume=image_volume(bounds, calibration),
            roi_volume=roi_volume(rois, bounds, calibration),
        )

    def analyze_image(self, image: LoadedImage, rois: Sequence[PolygonROI] = ()) -> ImageAnalysis:
        """Analyse a loaded stack, resolving channels and calibration from the config."""
        config = self.config
        calibration = config.resolve_calibration(image.calibration)
        with image.channel_grid(config.vessel_channel, calibration) as vessel, \
                image.channel_grid(config.microglia_channel, calibration) as microglia, \
                image.channel_grid(config.astrocyte_channel, calibration) as astrocyte:
            return self.analyze(vessel, microglia, astrocyte, rois, image_name=image.name)


def save_image_overlays(analysis: ImageAnalysis, output_dir: Path, stem: str) -> None:
    """Write the QA overlay stack and its projection figure."""
    overlay = compose_overlay(analysis.inside, analysis.outside, analysis.vessels, analysis.shape)
    save_overlay(overlay, output_dir / f"{stem}_in_out_vessels.tif", analysis.calibration)
    save_projection_figure(overlay, output_dir / f"{stem}_in_out_vessels.png", title=analysis.image_name)


def process_image(
    image_path: Path,
    analyzer: InOutVesselAnalyzer,
    loader: ImageLoader,
    output_dir: Optional[Path] = None,
) -> ImageAnalysis:
    """Load, analyse and (optionally) save the overlays of one image."""
    image = loader.load(image_path)
    rois = load_rois_for_image(image_path)
    analysis = analyzer.analyze_image(image, rois)
    del image
    if output_dir is not None and analyzer.config.save_overlays:
        save_image_overlays(analysis, output_dir, image_stem(image_path))
    return analysis


def run_batch(
    input_dir: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
    output_dir: Optional[Union[str, Path]] = None,
) -> BatchResult:
    """Analyse every image of a folder, sequentially and in name order.

    Args:
        input_dir: Folder holding the images (and their ROI sidecars).
        config: Analysis configuration. If None, uses defaults.
        output_dir: Where the report and overlays go; defaults to
            ``input_dir / config.results_dirname``.

    Returns:
        BatchResult: Report rows of the completed images and the
        ``(name, error kind)`` of the failed ones.

    Raises:
        FileNotFoundError: If ``input_dir`` is not a directory.
    """
    config = config or AnalysisConfig()
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input folder not found: {input_dir}")

    result = BatchResult()
    images = find_images(input_dir, config.image_extensions)
    if not images:
        return result

    out_dir = ensure_directory(output_dir if output_dir is not None else input_dir / config.results_dirname)
    writer = ResultsWriter(out_dir / REPORT_FILENAME)
    result.report_path = writer.path
    analyzer = InOutVesselAnalyzer(config)
    loader = ImageLoader(config)

    for idx, image_path in enumerate(images, 1):
        logger.info(f"=== [{idx}/{len(images)}] {image_path.name} ===")
        t0 = time.perf_counter()
        try:
            analysis = process_image(image_path, analyzer, loader, out_dir)
            row = analysis.to_row()
            del analysis
        except Exception as e:
            logger.error(f"{image_path.name} failed: {type(e).__name__}: {e}")
            logger.debug("Traceback:", exc_info=True)
            result.failed.append((image_path.name, type(e).__name__))
            continue
        finally:
            gc.collect()

        writer.write_row(row)
        result.completed.append(row)
        logger.info(f"Finished {image_path.name} in {time.perf_counter() - t0:.1f}s")

    logger.info(
        f"All done. Completed: {len(result.completed)}, Failed: {len(result.failed)}, Total: {len(images)}"
    )
    return result


__all__ = [
    "REPORT_FILENAME",
    "ImageAnalysis",
    "BatchResult",
    "InOutVesselAnalyzer",
    "save_image_overlays",
    "process_image",
    "run_batch",
]
