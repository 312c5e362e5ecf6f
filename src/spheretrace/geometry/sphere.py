"""Sphere primitive and ray-sphere intersection.

The intersection solves the half-b quadratic for the ray parameter and tries
the near root before the far one, so rays starting inside a sphere, or whose
near hit lies before the valid interval, still report the far wall.

Example:
    >>> from spheretrace.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere(ray, interval, sphere) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.interval import Interval, interval_surrounds
from spheretrace.core.ray import Ray, length_squared, ray_at, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere. Never negative once stored in a
            scene; a zero radius sphere is never hit.
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss. The other
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point, equal to ray_at(ray, t).
        normal: Unit surface normal, always facing against the ray.
        front_face: 1 if the ray arrived from the side the outward normal
            points to, 0 otherwise.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a unit outward normal against the incident ray.

    Args:
        ray_direction: Direction of the incident ray.
        outward_normal: Geometric normal of unit length pointing out of the
            surface.

    Returns:
        A tuple of (front_face, normal) with dot(ray_direction, normal) <= 0.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def make_miss_record() -> HitRecord:
    """A HitRecord reporting no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def hit_sphere(ray: Ray, ray_t: Interval, sphere: Sphere) -> HitRecord:
    """Test a ray against a sphere.

    With oc = center - origin the intersection solves

        a*t^2 - 2*h*t + c = 0

    where a = |direction|^2, h = direction . oc and c = |oc|^2 - radius^2.
    The near root (h - sqrt(h^2 - ac)) / a is taken when it lies strictly
    inside ray_t, otherwise the far root (h + sqrt(h^2 - ac)) / a.

    Args:
        ray: The ray to test.
        ray_t: Valid ray parameters. Roots on either bound are rejected.
        sphere: The sphere to test against.

    Returns:
        A HitRecord; check the hit field before using the others.
    """
    result = make_miss_record()

    oc = sphere.center - ray.origin
    a = length_squared(ray.direction)
    h = tm.dot(ray.direction, oc)
    c = length_squared(oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # A zero radius sphere is degenerate and never hit.
    if discriminant >= 0.0 and sphere.radius > 0.0:
        sqrtd = ti.sqrt(discriminant)

        root = (h - sqrtd) / a
        valid = interval_surrounds(ray_t, root)
        if not valid:
            root = (h + sqrtd) / a
            valid = interval_surrounds(ray_t, root)

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f64) -> Sphere:
    """Create a sphere inside a kernel, clamping negative radii to zero."""
    return Sphere(center=center, radius=tm.max(radius, 0.0))
