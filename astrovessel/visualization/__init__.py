"""Visualization modules."""

from .overlay import OVERLAY_CHANNELS, compose_overlay, save_overlay, save_projection_figure

__all__ = [
    "OVERLAY_CHANNELS",
    "compose_overlay",
    "save_overlay",
    "save_projection_figure",
]
