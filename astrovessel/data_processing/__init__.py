"""Data processing modules for image loading and result reports."""

from .image_loader import ImageLoader, LoadedImage, to_czyx
from .results_writer import REPORT_COLUMNS, ResultsWriter

__all__ = [
    "ImageLoader",
    "LoadedImage",
    "to_czyx",
    "REPORT_COLUMNS",
    "ResultsWriter",
]
