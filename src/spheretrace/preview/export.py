"""Image export utilities for rendered images.

Supported formats:
    - PPM (plain-text P3, one "r g b" line per pixel)
    - PNG (8-bit RGB via Pillow)

Images are (height, width, 3) uint8 arrays as produced by ScanlineRenderer,
already gamma corrected and quantized.

Example:
    >>> from spheretrace.preview.export import save_image
    >>> image = renderer.render()
    >>> save_image(image, "spheres.png")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def _check_image(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    array = np.asarray(image)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {array.shape}")
    return array.astype(np.uint8, copy=False)


def write_ppm(
    image: npt.NDArray[np.uint8] | Iterable[tuple[int, int, int]],
    stream: TextIO,
    width: int | None = None,
    height: int | None = None,
) -> None:
    """Write an image to a text stream in plain PPM (P3) format.

    The header is "P3", then "width height", then "255", each on its own
    line, followed by one "r g b" line per pixel, row-major from the top.

    Args:
        image: A (height, width, 3) array, or an iterable of (r, g, b)
            pixels in row-major order.
        stream: Text stream to write to.
        width: Image width. Required when image is a pixel iterable.
        height: Image height. Required when image is a pixel iterable.

    Raises:
        ValueError: If the image shape is wrong, or width and height are
            missing for a pixel iterable.
    """
    if isinstance(image, np.ndarray):
        array = _check_image(image)
        height, width = array.shape[0], array.shape[1]
        pixels: Iterable = array.reshape(-1, 3)
    else:
        if width is None or height is None:
            raise ValueError("width and height are required when writing a pixel iterable")
        pixels = image

    stream.write(f"P3\n{width} {height}\n255\n")
    for r, g, b in pixels:
        stream.write(f"{int(r)} {int(g)} {int(b)}\n")


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as a plain PPM file, or to stdout when filepath is "-"."""
    if str(filepath) == "-":
        write_ppm(image, sys.stdout)
        sys.stdout.flush()
        return

    with open(filepath, "w", encoding="ascii") as f:
        write_ppm(image, f)
    logger.debug(f"Wrote PPM to {filepath}")


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as an 8-bit RGB PNG file."""
    array = _check_image(image)
    pil_image = PILImage.fromarray(np.ascontiguousarray(array))
    pil_image.save(filepath, format="PNG")
    logger.debug(f"Wrote PNG to {filepath}")


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, choosing the format from the file extension.

    Args:
        image: The (height, width, 3) uint8 image.
        filepath: Output path ending in .ppm or .png, or "-" for PPM on
            stdout.

    Raises:
        ValueError: If the extension is not supported.
    """
    if str(filepath) == "-":
        save_ppm(image, filepath)
        return

    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath)
    elif suffix == ".png":
        save_png(image, filepath)
    else:
        raise ValueError(f"Unsupported output format '{suffix}', expected .ppm or .png")
