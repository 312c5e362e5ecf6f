"""Scene container coordinating spheres and their materials.

A Scene is the ordered hittable list the renderer traces against. It owns the
module-level Taichi storage for primitives (scene.intersection) and for
materials (one registry per material type), and keeps a Python-side record of
what it stored.

Materials are immutable handles (Lambertian, Metal, Dielectric). The first
time a handle is used it is registered into its type registry and given a
unified material_id; every sphere sharing the handle shares that id. The
path tracer resolves a material_id to (MaterialType, type-local index) through
the material_types / material_type_indices fields.

The storage holds one scene at a time. Creating or clearing a Scene takes
it over; a scene whose data was replaced writes itself back (publish()) before
it is queried, extended or rendered.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.materials import Lambertian
    >>> from spheretrace.scene.manager import Scene
    >>> scene = Scene()
    >>> scene.add_sphere((0, 0, -1), 0.5, Lambertian((0.1, 0.2, 0.5)))
    >>> scene.hit((0, 0, 0), (0, 0, -1)).t
    0.5
"""

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

import taichi as ti

from spheretrace.core.interval import Interval
from spheretrace.core.ray import Ray, vec3
from spheretrace.materials.dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
)
from spheretrace.materials.lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
)
from spheretrace.materials.metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
)
from spheretrace.scene.intersection import (
    MAX_HITTABLES,
    add_sphere,
    clear_scene,
    get_hittable_count,
    intersect_scene,
)

logger = logging.getLogger(__name__)

# Default lower bound for ray parameters; skips self-intersection at the origin
DEFAULT_T_MIN = 0.001


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 3072

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


# The Scene whose objects are currently in the Taichi fields
_active_scene = None


def _reset_active_scene() -> None:
    global _active_scene
    _active_scene = None


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum), or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index of a material within its type registry, -1 if invalid."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material registry.
        material: The handle the material was registered from.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    material: Lambertian | Metal | Dielectric


@dataclass(frozen=True)
class SphereInfo:
    """A sphere together with the material it is made of.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere.
        material: The material handle of the sphere.
    """

    center: tuple[float, float, float]
    radius: float
    material: Lambertian | Metal | Dielectric


@dataclass
class HitInfo:
    """Result of a Python-side ray query against the scene.

    Attributes:
        t: The ray parameter of the closest hit.
        point: The hit point.
        normal: Unit normal facing against the ray.
        front_face: True if the ray hit the outside of the sphere.
        material_id: The unified material ID of the sphere hit.
        material: The material handle of the sphere hit.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int
    material: Lambertian | Metal | Dielectric


def _store_material(material: Lambertian | Metal | Dielectric) -> tuple[MaterialType, int]:
    """Add a material to its type-specific registry.

    Returns:
        Tuple of (material_type, type_index).
    """
    if isinstance(material, Lambertian):
        return MaterialType.LAMBERTIAN, add_lambertian_material(material.albedo)
    if isinstance(material, Metal):
        return MaterialType.METAL, add_metal_material(material.albedo, material.fuzz)
    return MaterialType.DIELECTRIC, add_dielectric_material(material.refraction_index)


# Result storage for Scene.hit()
_probe_hit = ti.field(dtype=ti.i32, shape=())
_probe_t = ti.field(dtype=ti.f64, shape=())
_probe_point = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_normal = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_front_face = ti.field(dtype=ti.i32, shape=())
_probe_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _probe_scene(
    ox: ti.f64,
    oy: ti.f64,
    oz: ti.f64,
    dx: ti.f64,
    dy: ti.f64,
    dz: ti.f64,
    t_min: ti.f64,
    t_max: ti.f64,
):
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
    rec = intersect_scene(ray, Interval(min=t_min, max=t_max))
    _probe_hit[None] = rec.hit
    _probe_t[None] = rec.t
    _probe_point[None] = rec.point
    _probe_normal[None] = rec.normal
    _probe_front_face[None] = rec.front_face
    _probe_material_id[None] = rec.material_id


class Scene:
    """Ordered list of spheres with their materials.

    Attributes:
        objects: SphereInfo for every sphere, in insertion order.
        materials: MaterialInfo for every registered material, indexed by
            material_id.

    Example:
        >>> scene = Scene()
        >>> glass = Dielectric(1.5)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), 0.4, Dielectric(1.0 / 1.5))
        >>> scene.add_sphere((1, 0, -1), 0.5, Metal((0.8, 0.6, 0.2), fuzz=1.0))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.objects: list[SphereInfo] = []
        self.materials: list[MaterialInfo] = []
        self._material_ids: dict[int, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        global _active_scene
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.objects.clear()
        self.materials.clear()
        self._material_ids.clear()
        _active_scene = self

    def publish(self) -> None:
        """Write this scene back into the Taichi fields if another scene replaced it.

        Materials and spheres are stored again in their original order, so
        material ids and type indices are unchanged.
        """
        global _active_scene
        if _active_scene is self:
            return

        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

        for info in self.materials:
            _, type_index = _store_material(info.material)
            material_types[info.material_id] = int(info.material_type)
            material_type_indices[info.material_id] = type_index
        num_materials[None] = len(self.materials)

        for obj in self.objects:
            add_sphere(obj.center, obj.radius, self._material_ids[id(obj.material)])

        _active_scene = self
        logger.debug(
            f"Published scene with {len(self.objects)} spheres and "
            f"{len(self.materials)} materials"
        )

    def clear(self) -> None:
        """Remove every sphere and material from the scene."""
        self._clear_all()

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[SphereInfo]:
        return iter(self.objects)

    # =========================================================================
    # Material Management
    # =========================================================================

    def register_material(self, material: Lambertian | Metal | Dielectric) -> int:
        """Get the material_id of a handle, registering it on first use.

        Args:
            material: A Lambertian, Metal or Dielectric handle.

        Returns:
            The unified material ID shared by every sphere using this handle.

        Raises:
            TypeError: If material is not a supported material handle.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        self.publish()
        key = id(material)
        if key in self._material_ids:
            return self._material_ids[key]

        if not isinstance(material, (Lambertian, Metal, Dielectric)):
            raise TypeError(f"Unsupported material type: {type(material).__name__}")

        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_type, type_index = _store_material(material)

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                material=material,
            )
        )
        self._material_ids[key] = material_id
        logger.debug(f"Registered {material_type.name.lower()} material {material_id}")
        return material_id

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add(self, obj: SphereInfo) -> int:
        """Append a sphere to the scene.

        Args:
            obj: The sphere to add. A negative radius is clamped to 0.

        Returns:
            The position of the sphere in the scene.

        Raises:
            TypeError: If the sphere's material is not a supported handle.
            RuntimeError: If the scene is full.
        """
        if not isinstance(obj, SphereInfo):
            raise TypeError(f"Unsupported hittable type: {type(obj).__name__}")
        self.publish()
        if get_hittable_count() >= MAX_HITTABLES:
            raise RuntimeError(f"Maximum number of hittables ({MAX_HITTABLES}) exceeded")

        radius = max(0.0, float(obj.radius))
        center = (float(obj.center[0]), float(obj.center[1]), float(obj.center[2]))
        stored = SphereInfo(center=center, radius=radius, material=obj.material)

        material_id = self.register_material(obj.material)
        index = add_sphere(center, radius, material_id)
        self.objects.append(stored)
        return index

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Lambertian | Metal | Dielectric,
    ) -> int:
        """Add a sphere made of the given material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Negative values are clamped to 0.
            material: The material handle of the sphere.

        Returns:
            The position of the sphere in the scene.
        """
        return self.add(SphereInfo(center=tuple(center), radius=radius, material=material))

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = DEFAULT_T_MIN,
        t_max: float = math.inf,
    ) -> HitInfo | None:
        """Find the closest sphere hit by a ray.

        Args:
            origin: The ray origin.
            direction: The ray direction, not necessarily unit length.
            t_min: Exclusive lower bound on the ray parameter.
            t_max: Exclusive upper bound on the ray parameter.

        Returns:
            HitInfo for the closest hit with t_min < t < t_max, or None.
        """
        self.publish()
        _probe_scene(
            float(origin[0]),
            float(origin[1]),
            float(origin[2]),
            float(direction[0]),
            float(direction[1]),
            float(direction[2]),
            float(t_min),
            float(t_max),
        )
        if _probe_hit[None] == 0:
            return None

        point = _probe_point[None]
        normal = _probe_normal[None]
        material_id = int(_probe_material_id[None])
        return HitInfo(
            t=float(_probe_t[None]),
            point=(float(point[0]), float(point[1]), float(point[2])),
            normal=(float(normal[0]), float(normal[1]), float(normal[2])),
            front_face=bool(_probe_front_face[None]),
            material_id=material_id,
            material=self.materials[material_id].material,
        )
