"""Scene-level ray intersection over an ordered list of hittables.

The scene is a brute-force aggregate: every hittable is tested in insertion
order and the search interval shrinks to the closest confirmed hit, so a
farther hit is never returned when a closer one exists.

Each hittable is a (kind, index, material_id) entry. The kind tag selects the
per-kind storage that ``index`` points into; spheres are the only kind.
Geometry lives in Taichi fields laid out as structure of arrays.

Example:
    >>> from spheretrace.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use intersect_scene(ray, ray_t) within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti

from spheretrace.core.interval import Interval, make_interval
from spheretrace.core.ray import Ray, vec3
from spheretrace.geometry.sphere import HitRecord, Sphere, hit_sphere


class HittableKind(IntEnum):
    """Closed set of geometry kinds an aggregate entry can refer to."""

    SPHERE = 0


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if any hittable was intersected, 0 on a miss.
        t: The ray parameter of the closest intersection.
        point: The intersection point.
        normal: Unit normal facing against the incident ray.
        front_face: 1 if the ray hit the outside of the surface.
        material_id: Material of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of hittables (and spheres) supported in the scene
MAX_HITTABLES = 4096
MAX_SPHERES = MAX_HITTABLES

# Aggregate entries, in insertion order
hittable_kinds = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
hittable_indices = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
hittable_material_ids = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
num_hittables = ti.field(dtype=ti.i32, shape=())

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f64, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove every hittable from the scene.

    Only the counts are reset; stale field data is overwritten by later adds.
    """
    num_hittables[None] = 0
    num_spheres[None] = 0


def _append_hittable(kind: HittableKind, index: int, material_id: int) -> int:
    idx = num_hittables[None]
    if idx >= MAX_HITTABLES:
        raise RuntimeError(f"Maximum number of hittables ({MAX_HITTABLES}) exceeded")
    hittable_kinds[idx] = int(kind)
    hittable_indices[idx] = index
    hittable_material_ids[idx] = material_id
    num_hittables[None] = idx + 1
    return idx


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Negative values are clamped to 0.
        material_id: The material ID to associate with this sphere.

    Returns:
        The position of the new entry in the aggregate.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    sphere_idx = num_spheres[None]
    if sphere_idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[sphere_idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[sphere_idx] = max(0.0, float(radius))
    num_spheres[None] = sphere_idx + 1
    return _append_hittable(HittableKind.SPHERE, sphere_idx, material_id)


def get_hittable_count() -> int:
    """Get the number of entries in the aggregate."""
    return int(num_hittables[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def make_scene_miss_record() -> SceneHitRecord:
    """A SceneHitRecord reporting no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_hittable(entry: ti.i32, ray: Ray, ray_t: Interval) -> HitRecord:
    """Dispatch an intersection test on the kind of an aggregate entry."""
    kind = hittable_kinds[entry]
    index = hittable_indices[entry]
    rec = HitRecord(hit=0)
    if kind == int(HittableKind.SPHERE):
        sphere = Sphere(center=sphere_centers[index], radius=sphere_radii[index])
        rec = hit_sphere(ray, ray_t, sphere)
    return rec


@ti.func
def intersect_scene(ray: Ray, ray_t: Interval) -> SceneHitRecord:
    """Find the closest intersection of a ray with the scene.

    Args:
        ray: The ray to trace.
        ray_t: Valid ray parameters (exclusive bounds).

    Returns:
        The SceneHitRecord of the closest hit, or a miss record.
    """
    closest_so_far = ray_t.max
    result = make_scene_miss_record()

    for i in range(num_hittables[None]):
        rec = hit_hittable(i, ray, make_interval(ray_t.min, closest_so_far))
        if rec.hit == 1:
            closest_so_far = rec.t
            result = _to_scene_hit_record(rec, hittable_material_ids[i])

    return result
