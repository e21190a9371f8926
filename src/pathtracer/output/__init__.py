"""Output module for writing resolved images.

Components:
    export: PPM (P3 text) and PNG writers for 8-bit RGB images
"""

from .export import STDOUT_DESTINATION, save_image, save_png, save_ppm, write_ppm

__all__ = [
    "STDOUT_DESTINATION",
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
