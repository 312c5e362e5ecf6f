"""Preview module for writing rendered images.

Components:
    export: Plain PPM and PNG writers
"""

from spheretrace.preview.export import (
    save_image,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
