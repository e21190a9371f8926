"""Image export for resolved 8-bit renders.

Supported formats:
    - PPM (plain-text P3, one "r g b" triple per line, top row first)
    - PNG (8-bit RGB via Pillow)

All writers take a uint8 array of shape (height, width, 3) whose row 0 is
the top of the image, as produced by ``get_image_uint8()``.

Example:
    >>> from pathtracer.output.export import save_image
    >>> save_image(renderer.get_image_uint8(), "render.png")
"""

import sys
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Destination that sends PPM text to standard output
STDOUT_DESTINATION = "-"


def _check_pixels(pixels: npt.NDArray[np.uint8]) -> None:
    """Raise ValueError unless ``pixels`` is a (height, width, 3) uint8 array."""
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")


def write_ppm(stream: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write ``pixels`` to a text stream as a plain PPM (P3) image.

    Args:
        stream: Text stream to write to.
        pixels: uint8 array of shape (height, width, 3), top row first.

    Raises:
        ValueError: If ``pixels`` has the wrong shape or dtype.
    """
    _check_pixels(pixels)
    height, width, _ = pixels.shape

    stream.write(f"P3\n{width} {height}\n255\n")
    for row in pixels:
        stream.write("".join(f"{r} {g} {b}\n" for r, g, b in row.tolist()))


def save_ppm(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save ``pixels`` as a plain PPM (P3) file."""
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        write_ppm(f, pixels)


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save ``pixels`` as an 8-bit RGB PNG file."""
    _check_pixels(pixels)
    PILImage.fromarray(np.ascontiguousarray(pixels)).save(filepath, format="PNG")


def save_image(pixels: npt.NDArray[np.uint8], destination: str | Path) -> None:
    """Save ``pixels`` in the format implied by ``destination``.

    Args:
        pixels: uint8 array of shape (height, width, 3), top row first.
        destination: A path ending in .ppm or .png, or "-" to write PPM
            text to standard output.

    Raises:
        ValueError: If the file extension is not supported.
    """
    if str(destination) == STDOUT_DESTINATION:
        write_ppm(sys.stdout, pixels)
        sys.stdout.flush()
        return

    suffix = Path(destination).suffix.lower()
    if suffix == ".ppm":
        save_ppm(pixels, destination)
    elif suffix == ".png":
        save_png(pixels, destination)
    else:
        raise ValueError(f"Unsupported output format '{suffix}'; use .ppm or .png")
