"""Thin-lens camera: pixel grid geometry and jittered ray generation.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits focus_dist in front of the camera, so objects at that
distance are in perfect focus. Pixel (i, j) is sampled at its center plus a
uniform jitter in [-0.5, 0.5]^2 pixel units. With a positive defocus_angle
ray origins are spread over a disk of radius focus_dist * tan(angle / 2)
around the camera center, producing depth of field.

Geometry is computed once per render on the Python side with NumPy and then
copied into Taichi fields that get_ray() reads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.camera.thin_lens import Camera, setup_camera
    >>> camera = Camera(image_width=200, vfov=20.0, lookfrom=(13.0, 2.0, 3.0),
    ...                 lookat=(0.0, 0.0, 0.0), defocus_angle=0.6)
    >>> geometry = setup_camera(camera)
    >>> geometry.image_height
    112
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from spheretrace.core.ray import Ray, make_ray, vec3
from spheretrace.core.sampler import random_double, random_in_unit_disk

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """User-facing camera and render configuration.

    Attributes:
        aspect_ratio: Ratio of image width over height.
        image_width: Rendered image width in pixels.
        samples_per_pixel: Number of random samples for each pixel.
        max_depth: Maximum number of ray bounces into the scene.
        vfov: Vertical view angle (field of view) in degrees.
        lookfrom: Point the camera is looking from.
        lookat: Point the camera is looking at.
        vup: Camera-relative "up" direction.
        defocus_angle: Variation angle of rays through each pixel, in degrees.
            0 disables depth of field.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 400
    samples_per_pixel: int = 10
    max_depth: int = 10
    vfov: float = 90.0
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    defocus_angle: float = 0.0
    focus_dist: float = 10.0

    def initialize(self) -> "CameraGeometry":
        """Derive the pixel grid and lens geometry.

        Returns:
            The CameraGeometry for the current parameters.

        Raises:
            ValueError: If the configuration cannot produce an image.
        """
        return compute_camera_geometry(self)


@dataclass
class CameraGeometry:
    """Derived camera state, recomputed on every initialization.

    Attributes:
        image_width: Image width in pixels.
        image_height: Image height in pixels, at least 1.
        center: Camera center (lookfrom).
        pixel00_loc: Location of the center of pixel (0, 0), the top-left one.
        pixel_delta_u: Offset from one pixel to its right neighbor.
        pixel_delta_v: Offset from one pixel to the one below it.
        u: Camera frame right vector.
        v: Camera frame up vector.
        w: Camera frame backward vector.
        defocus_disk_u: Defocus disk horizontal radius vector.
        defocus_disk_v: Defocus disk vertical radius vector.
        defocus_angle: Defocus angle in degrees; <= 0 disables disk sampling.
    """

    image_width: int
    image_height: int
    center: np.ndarray
    pixel00_loc: np.ndarray
    pixel_delta_u: np.ndarray
    pixel_delta_v: np.ndarray
    u: np.ndarray
    v: np.ndarray
    w: np.ndarray
    defocus_disk_u: np.ndarray
    defocus_disk_v: np.ndarray
    defocus_angle: float


def _validate_camera(camera: Camera) -> None:
    if camera.image_width < 1:
        raise ValueError(f"image_width = {camera.image_width} must be at least 1")
    if not camera.aspect_ratio > 0.0:
        raise ValueError(f"aspect_ratio = {camera.aspect_ratio} must be positive")
    if camera.samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel = {camera.samples_per_pixel} must be at least 1")
    if camera.max_depth < 0:
        raise ValueError(f"max_depth = {camera.max_depth} must not be negative")
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov = {camera.vfov} must be in (0, 180) degrees")
    if not camera.focus_dist > 0.0:
        raise ValueError(f"focus_dist = {camera.focus_dist} must be positive")


def compute_camera_geometry(camera: Camera) -> CameraGeometry:
    """Compute the camera basis, viewport and defocus disk.

    Args:
        camera: Camera configuration.

    Returns:
        The derived CameraGeometry.

    Raises:
        ValueError: If a parameter is out of range, or lookfrom equals lookat,
            or vup is parallel to the view direction.
    """
    _validate_camera(camera)

    image_width = int(camera.image_width)
    # Half-up rounding, 2.5 rows becomes 3
    image_height = max(1, math.floor(image_width / camera.aspect_ratio + 0.5))

    center = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = center - lookat
    w_norm = np.linalg.norm(w)
    if w_norm == 0.0:
        raise ValueError("lookfrom and lookat must be different points")
    w = w / w_norm

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm == 0.0:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_norm

    # v points up in the camera's frame
    v = np.cross(w, u)

    # Viewport dimensions at the focus distance
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * camera.focus_dist
    viewport_width = viewport_height * (image_width / image_height)

    # Vectors across the horizontal and down the vertical viewport edges
    viewport_u = viewport_width * u
    viewport_v = viewport_height * -v

    pixel_delta_u = viewport_u / image_width
    pixel_delta_v = viewport_v / image_height

    viewport_upper_left = center - camera.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
    pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    defocus_radius = camera.focus_dist * math.tan(math.radians(camera.defocus_angle / 2.0))

    return CameraGeometry(
        image_width=image_width,
        image_height=image_height,
        center=center,
        pixel00_loc=pixel00_loc,
        pixel_delta_u=pixel_delta_u,
        pixel_delta_v=pixel_delta_v,
        u=u,
        v=v,
        w=w,
        defocus_disk_u=u * defocus_radius,
        defocus_disk_v=v * defocus_radius,
        defocus_angle=float(camera.defocus_angle),
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_angle = ti.field(dtype=ti.f64, shape=())


def setup_camera(camera: Camera) -> CameraGeometry:
    """Initialize the camera and publish its geometry to kernel fields.

    Must be called from Python scope before rendering.

    Args:
        camera: Camera configuration.

    Returns:
        The CameraGeometry that was written.

    Raises:
        ValueError: If the configuration is invalid.
    """
    geometry = camera.initialize()

    _camera_center[None] = geometry.center.tolist()
    _pixel00_loc[None] = geometry.pixel00_loc.tolist()
    _pixel_delta_u[None] = geometry.pixel_delta_u.tolist()
    _pixel_delta_v[None] = geometry.pixel_delta_v.tolist()
    _defocus_disk_u[None] = geometry.defocus_disk_u.tolist()
    _defocus_disk_v[None] = geometry.defocus_disk_v.tolist()
    _defocus_angle[None] = geometry.defocus_angle

    logger.debug(
        f"Camera ready: {geometry.image_width}x{geometry.image_height}, "
        f"vfov={camera.vfov}, defocus_angle={camera.defocus_angle}"
    )
    return geometry


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def sample_square(state: ti.u32):
    """Draw an offset in the [-0.5, 0.5]^2 unit square (z = 0)."""
    s, x = random_double(state)
    s, y = random_double(s)
    return s, vec3(x - 0.5, y - 0.5, 0.0)


@ti.func
def defocus_disk_sample(state: ti.u32):
    """Draw a ray origin on the camera's defocus disk."""
    s, p = random_in_unit_disk(state)
    origin = _camera_center[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]
    return s, origin


@ti.func
def get_ray(state: ti.u32, i: ti.i32, j: ti.i32):
    """Generate a jittered camera ray through pixel (i, j).

    Column i grows to the right and row j grows downward from the top-left
    pixel.

    Args:
        state: The sampler state.
        i: Pixel column.
        j: Pixel row.

    Returns:
        A tuple of (state, ray). The ray starts at the camera center, or on
        the defocus disk when defocus_angle > 0, and points at the jittered
        sample position on the focus plane.
    """
    s, offset = sample_square(state)
    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(i, ti.f64) + offset.x) * _pixel_delta_u[None]
        + (ti.cast(j, ti.f64) + offset.y) * _pixel_delta_v[None]
    )

    ray_origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        s, ray_origin = defocus_disk_sample(s)

    return s, make_ray(ray_origin, pixel_sample - ray_origin)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the published camera state for debugging.

    Returns:
        Dictionary with center, pixel00_loc, pixel_delta_u, pixel_delta_v,
        defocus_disk_u and defocus_disk_v.
    """
    fields = {
        "center": _camera_center,
        "pixel00_loc": _pixel00_loc,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
