"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Ordered hittable table and closest-hit search
    manager: Scene container coordinating spheres and materials
    presets: Ready-made demo scenes

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data
    - Unified material IDs resolved to per-type registries
"""

from .intersection import (
    MAX_HITTABLES,
    MAX_SPHERES,
    HittableKind,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_hittable_count,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    HitInfo,
    MaterialInfo,
    MaterialType,
    Scene,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    create_material_showcase_scene,
    create_random_spheres_scene,
    create_two_spheres_scene,
)

__all__ = [
    # Intersection module
    "HittableKind",
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_hittable_count",
    "get_sphere_count",
    "intersect_scene",
    "MAX_HITTABLES",
    "MAX_SPHERES",
    # Manager module
    "Scene",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "HitInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_two_spheres_scene",
    "create_material_showcase_scene",
    "create_random_spheres_scene",
]
