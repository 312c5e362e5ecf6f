"""Ray data structure and vector utilities for the ray tracing kernel.

This module provides the fundamental Ray dataclass and the vector helpers the
rest of the kernel is built on. Everything runs in double precision: the
``vec3`` type is a three component ``ti.f64`` vector and doubles as a point
(``point3``) and an RGB color (``color``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f64:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0).z
"""

import taichi as ti
import taichi.math as tm

# Three doubles. Positions, displacements and colors share the representation.
vec3 = ti.types.vector(3, ti.f64)
point3 = vec3
color = vec3

# Components below this magnitude count as zero in near_zero().
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Not required to be unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f64:
    """Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Squared Euclidean length of a vector.

    Prefer this over length() when only comparing magnitudes, it avoids the
    square root.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The caller guarantees v is not the zero vector; a zero input yields NaNs.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions.

    Returns:
        1 if every component is smaller than 1e-8 in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect v about the unit normal n: v - 2(v . n)n."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the component perpendicular to the
    normal and the component parallel to it.

    Args:
        uv: The unit incident direction.
        n: The unit surface normal on the incident side.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction. Callers check for total internal reflection
        before using it.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Relative index of refraction.

    Returns:
        R0 + (1 - R0)(1 - cosine)^5 with R0 = ((1 - n) / (1 + n))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
