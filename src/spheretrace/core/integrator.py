"""Color integration for camera rays and the scanline render kernel.

ray_color() follows a camera ray through the scene: at every hit the material
either absorbs the ray (black) or scatters it, tinting the light that comes
back along the scattered ray by the material's attenuation. Rays that escape
pick up the sky gradient. After max_depth bounces no more light is gathered.
The bounce recursion is unrolled into a loop that carries the product of the
attenuations so far.

Every random draw goes through an explicit sampler state seeded per pixel
sample, and the pixel loop is serialized, so a render is a pure function of
the scene, the camera and the seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.camera.thin_lens import Camera, setup_camera
    >>> from spheretrace.core.integrator import render_scanline
    >>> geometry = setup_camera(Camera(image_width=64))
    >>> rgb8, linear = render_scanline(0, geometry.image_width, 4, 10, seed=0)
"""

import math

import numpy as np
import taichi as ti

from spheretrace.camera.thin_lens import get_ray
from spheretrace.core.interval import Interval, interval_clamp, make_interval
from spheretrace.core.ray import Ray, make_ray, unit_vector, vec3
from spheretrace.core.sampler import init_sampler
from spheretrace.materials.dielectric import scatter_dielectric_by_id
from spheretrace.materials.lambertian import scatter_lambertian_by_id
from spheretrace.materials.metal import scatter_metal_by_id
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Lower bound for hit parameters; skips self-intersection at scatter origins
T_MIN = 0.001

# Largest representable channel value before quantization
MAX_INTENSITY = 0.999

# Row buffers are preallocated to this width to avoid kernel recompilation
MAX_IMAGE_WIDTH = 8192

_row_linear = ti.Vector.field(3, dtype=ti.f64, shape=MAX_IMAGE_WIDTH)
_row_rgb8 = ti.Vector.field(3, dtype=ti.i32, shape=MAX_IMAGE_WIDTH)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    state: ti.u32,
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scatter function of a material.

    Returns:
        A tuple of (state, did_scatter, attenuation, scattered_direction).
        Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    s = state
    did_scatter = 0
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered_direction = vec3(0.0, 0.0, 0.0)

    if mat_type == int(MaterialType.LAMBERTIAN):
        s, did_scatter, attenuation, scattered_direction = scatter_lambertian_by_id(
            s, type_index, normal
        )
    elif mat_type == int(MaterialType.METAL):
        s, did_scatter, attenuation, scattered_direction = scatter_metal_by_id(
            s, type_index, incident_direction, normal
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        s, did_scatter, attenuation, scattered_direction = scatter_dielectric_by_id(
            s, type_index, incident_direction, normal, front_face
        )

    return s, did_scatter, attenuation, scattered_direction


# =============================================================================
# Color Integration
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Vertical sky gradient, white at y = -1 blending to blue at y = 1."""
    unit_direction = unit_vector(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * vec3(1.0, 1.0, 1.0) + a * vec3(0.5, 0.7, 1.0)


@ti.func
def ray_color(state: ti.u32, ray: Ray, depth: ti.i32):
    """Estimate the light arriving along a ray.

    Args:
        state: The sampler state.
        ray: The ray to follow.
        depth: Remaining bounce budget. At depth <= 0 the result is black.

    Returns:
        A tuple of (state, color).
    """
    s = state
    origin = ray.origin
    direction = ray.direction
    remaining = depth

    result = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Cleared once the path terminates
    active = 1
    while active == 1:
        if remaining <= 0:
            active = 0
        else:
            rec = intersect_scene(make_ray(origin, direction), make_interval(T_MIN, math.inf))
            if rec.hit == 0:
                result = throughput * background_color(direction)
                active = 0
            else:
                did_scatter = 0
                attenuation = vec3(0.0, 0.0, 0.0)
                scattered_direction = vec3(0.0, 0.0, 0.0)
                s, did_scatter, attenuation, scattered_direction = _scatter_material(
                    s, rec.material_id, direction, rec.normal, rec.front_face
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction
                    remaining -= 1

    return s, result


@ti.func
def linear_to_gamma(linear_component: ti.f64) -> ti.f64:
    """Gamma 2 transform. Non-positive (and NaN) components map to 0."""
    result = 0.0
    if linear_component > 0.0:
        result = ti.sqrt(linear_component)
    return result


@ti.func
def write_color(pixel_color: vec3):
    """Convert a linear color to 8-bit channels.

    Each channel is gamma corrected, clamped to [0, 0.999] and scaled by 256,
    so the result always lies in [0, 255].
    """
    intensity = Interval(min=0.0, max=MAX_INTENSITY)
    rgb = ti.Vector([0, 0, 0], dt=ti.i32)
    for c in ti.static(range(3)):
        value = interval_clamp(intensity, linear_to_gamma(pixel_color[c]))
        rgb[c] = ti.cast(ti.floor(256.0 * value), ti.i32)
    return rgb


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_scanline(
    row: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    pixel_samples_scale = 1.0 / ti.cast(samples_per_pixel, ti.f64)
    ti.loop_config(serialize=True)
    for i in range(width):
        pixel_index = ti.cast(row * width + i, ti.u32)
        pixel_color = vec3(0.0, 0.0, 0.0)
        for sample in range(samples_per_pixel):
            state = init_sampler(seed, pixel_index, ti.cast(sample, ti.u32))
            state, ray = get_ray(state, i, row)
            state, sample_color = ray_color(state, ray, max_depth)
            pixel_color += sample_color

        linear = pixel_samples_scale * pixel_color
        _row_linear[i] = linear
        _row_rgb8[i] = write_color(linear)


def render_scanline(
    row: int,
    width: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """Render one row of the image with the published camera and scene.

    Args:
        row: Row index, 0 is the top of the image.
        width: Number of pixels in the row.
        samples_per_pixel: Rays averaged per pixel.
        max_depth: Bounce budget of every ray.
        seed: Render seed.

    Returns:
        A tuple of (rgb8, linear): a (width, 3) uint8 array and the
        (width, 3) float64 averaged linear colors.

    Raises:
        ValueError: If width exceeds MAX_IMAGE_WIDTH.
    """
    if width > MAX_IMAGE_WIDTH:
        raise ValueError(
            f"Image width ({width}) exceeds maximum supported ({MAX_IMAGE_WIDTH})"
        )

    _render_scanline(row, width, samples_per_pixel, max_depth, seed & 0xFFFFFFFF)

    rgb8 = _row_rgb8.to_numpy()[:width].astype(np.uint8)
    linear = _row_linear.to_numpy()[:width].copy()
    return rgb8, linear


# =============================================================================
# Single-evaluation Probes
# =============================================================================

_probe_color = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_rgb8 = ti.Vector.field(3, dtype=ti.i32, shape=())
_probe_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _trace_ray_color(
    ox: ti.f64,
    oy: ti.f64,
    oz: ti.f64,
    dx: ti.f64,
    dy: ti.f64,
    dz: ti.f64,
    depth: ti.i32,
    seed: ti.u32,
):
    state = init_sampler(seed, ti.u32(0), ti.u32(0))
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
    state, result = ray_color(state, ray, depth)
    _probe_color[None] = result


@ti.kernel
def _write_color(r: ti.f64, g: ti.f64, b: ti.f64):
    _probe_rgb8[None] = write_color(vec3(r, g, b))


@ti.kernel
def _sample_camera_ray(i: ti.i32, j: ti.i32, seed: ti.u32):
    state = init_sampler(seed, ti.cast(i, ti.u32), ti.cast(j, ti.u32))
    state, ray = get_ray(state, i, j)
    _probe_origin[None] = ray.origin
    _probe_direction[None] = ray.direction


def _as_tuple(vec) -> tuple:
    return (vec[0], vec[1], vec[2])


def trace_ray_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color() once for the given ray against the current scene.

    Returns:
        The linear (R, G, B) color.
    """
    _trace_ray_color(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        depth,
        seed & 0xFFFFFFFF,
    )
    return tuple(float(c) for c in _as_tuple(_probe_color[None]))


def color_to_rgb8(pixel_color: tuple[float, float, float]) -> tuple[int, int, int]:
    """Apply write_color() to a single linear color."""
    _write_color(float(pixel_color[0]), float(pixel_color[1]), float(pixel_color[2]))
    return tuple(int(c) for c in _as_tuple(_probe_rgb8[None]))


def sample_camera_ray(
    i: int, j: int, seed: int = 0
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate one camera ray through pixel (i, j) with the published camera.

    Returns:
        A tuple of (origin, direction).
    """
    _sample_camera_ray(i, j, seed & 0xFFFFFFFF)
    origin = tuple(float(c) for c in _as_tuple(_probe_origin[None]))
    direction = tuple(float(c) for c in _as_tuple(_probe_direction[None]))
    return origin, direction
