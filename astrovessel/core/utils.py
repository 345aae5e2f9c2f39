"""
Utility functions for the astrovessel package.
Helpers for image discovery, naming and output directories.
"""

from pathlib import Path
from typing import Union, List, Optional, Sequence
import logging


logger = logging.getLogger(__name__)


def validate_file_path(filepath: Path, valid_extensions: Sequence[str]) -> None:
    """Validate that a file exists and has the correct extension.

    Args:
        filepath: Path to validate.
        valid_extensions: List of valid file extensions (e.g., ['.tif', '.tiff']).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file extension is not valid.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    if not filepath.is_file():
        raise ValueError(f"Path is not a file: {filepath}")

    extension = filepath.suffix.lower()
    valid_extensions = [ext.lower() for ext in valid_extensions]

    if extension not in valid_extensions:
        raise ValueError(
            f"Invalid file extension: {extension}. "
            f"Valid extensions: {valid_extensions}"
        )


def image_stem(filepath: Union[str, Path]) -> str:
    """File name without its image extension (handles '.ome.tif')."""
    name = Path(filepath).name
    lower = name.lower()
    for ext in ('.ome.tiff', '.ome.tif'):
        if lower.endswith(ext):
            return name[: -len(ext)]
    return Path(name).stem


def find_image_type(folder: Union[str, Path], extensions: Sequence[str]) -> Optional[str]:
    """Return the first supported image extension present in a folder.

    Args:
        folder: Directory to scan.
        extensions: Supported extensions in order of preference.

    Returns:
        Optional[str]: Matching extension, or None if no image is found.
    """
    folder = Path(folder)
    present = {p.suffix.lower() for p in folder.iterdir() if p.is_file()}
    for ext in extensions:
        if ext.lower() in present:
            return ext.lower()
    return None


def find_images(folder: Union[str, Path], extensions: Sequence[str]) -> List[Path]:
    """List the images of a folder, sorted by name.

    Only the first extension found (see `find_image_type`) is used, so a
    folder mixing formats is processed as a single batch of one format.

    Args:
        folder: Directory containing image files.
        extensions: Supported extensions in order of preference.

    Returns:
        List[Path]: Sorted image paths; empty if none were found.
    """
    folder = Path(folder)
    ext = find_image_type(folder, extensions)
    if ext is None:
        logger.warning(f"No image with extension {list(extensions)} found in {folder}")
        return []
    images = sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ext)
    logger.info(f"Found {len(images)} '{ext}' image(s) in {folder}")
    return images


def ensure_directory(directory: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path.

    Returns:
        Path: Directory path as Path object.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def format_bytes(bytes_value: float) -> str:
    """Format bytes value as human-readable string.

    Args:
        bytes_value: Number of bytes.

    Returns:
        str: Formatted string (e.g., "1.5 GB").
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.2f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.2f} TB"
