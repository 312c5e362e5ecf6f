"""Scanline renderer driving the integrator row by row.

The renderer publishes the camera, then renders the image one scanline at a
time from the top row down. Rows can be consumed as they finish, either by
iterating render_scanlines() or by passing a progress callback to render().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.core.scanline import ScanlineRenderer
    >>> from spheretrace.scene.presets import create_material_showcase_scene
    >>>
    >>> scene, camera = create_material_showcase_scene()
    >>> renderer = ScanlineRenderer(scene, camera, seed=7)
    >>> image = renderer.render()
    >>> image.shape
    (225, 400, 3)
"""

import logging
import time
from collections.abc import Callable, Generator, Iterator

import numpy as np
import numpy.typing as npt

from spheretrace.camera.thin_lens import Camera, CameraGeometry, setup_camera
from spheretrace.core.integrator import MAX_IMAGE_WIDTH, render_scanline
from spheretrace.scene.manager import Scene

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class ScanlineRenderer:
    """Renders a scene through a camera one scanline at a time.

    Attributes:
        scene: The scene being rendered. It is published to the Taichi
            fields before each render.
        camera: The camera configuration.
        seed: Render seed. Identical scene, camera and seed give identical
            images.
        geometry: The camera geometry derived at construction.
    """

    def __init__(self, scene: Scene, camera: Camera, seed: int = 0) -> None:
        """Initialize the renderer and publish the camera.

        Raises:
            ValueError: If the camera configuration is invalid or the image
                is wider than MAX_IMAGE_WIDTH.
        """
        self.scene = scene
        self.camera = camera
        self.seed = int(seed)
        self.geometry: CameraGeometry = setup_camera(camera)

        if self.geometry.image_width > MAX_IMAGE_WIDTH:
            raise ValueError(
                f"Image width ({self.geometry.image_width}) exceeds maximum "
                f"supported ({MAX_IMAGE_WIDTH})"
            )

        self._image = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self._linear = np.zeros((self.height, self.width, 3), dtype=np.float64)
        self._rows_done = 0

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.geometry.image_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.geometry.image_height

    @property
    def rows_done(self) -> int:
        """Number of scanlines finished by the current or last render."""
        return self._rows_done

    @property
    def image(self) -> npt.NDArray[np.uint8]:
        """The (height, width, 3) 8-bit image of the last render."""
        return self._image

    @property
    def linear_image(self) -> npt.NDArray[np.float64]:
        """The (height, width, 3) averaged linear colors of the last render."""
        return self._linear

    def render_scanlines(self) -> Generator[tuple[int, npt.NDArray[np.uint8]], None, None]:
        """Render the image, yielding each scanline when it is finished.

        The scene and camera are published again before the first row, so
        another scene or renderer created in between does not affect this
        one.

        Yields:
            Tuple of (row_index, rgb8_row) where rgb8_row has shape (width, 3).
        """
        self.scene.publish()
        setup_camera(self.camera)
        self._rows_done = 0
        start = time.perf_counter()
        logger.info(
            f"Rendering {self.width}x{self.height} with "
            f"{self.camera.samples_per_pixel} spp, max depth {self.camera.max_depth}"
        )

        for j in range(self.height):
            rgb8, linear = render_scanline(
                j,
                self.width,
                self.camera.samples_per_pixel,
                self.camera.max_depth,
                self.seed,
            )
            self._image[j] = rgb8
            self._linear[j] = linear
            self._rows_done = j + 1
            yield (j, rgb8)

        logger.info(f"Rendered {self.height} scanlines in {time.perf_counter() - start:.2f}s")

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint8]:
        """Render the whole image.

        Args:
            callback: Optional callback called after each scanline.
                Receives (rows_done, total_rows).

        Returns:
            The (height, width, 3) uint8 image.

        Example:
            >>> def progress(done, total):
            ...     print(f"Scanlines remaining: {total - done}")
            >>> image = renderer.render(callback=progress)
        """
        for _ in self.render_scanlines():
            if callback is not None:
                callback(self._rows_done, self.height)
        return self._image

    def iter_pixels(self) -> Iterator[tuple[int, int, int]]:
        """Iterate the last rendered image's pixels, row-major from the top."""
        for row in self._image:
            for r, g, b in row:
                yield (int(r), int(g), int(b))
