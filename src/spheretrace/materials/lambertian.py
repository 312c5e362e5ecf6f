"""Lambertian (ideal diffuse) material.

A diffuse surface scatters every incoming ray into the hemisphere around the
surface normal. The scatter direction is the normal offset by a random vector
from random_unit_vector(), which yields a cosine-like distribution without an
explicit pdf. Attenuation is the albedo and the surface always scatters.

Example:
    >>> from spheretrace.materials.lambertian import Lambertian
    >>> ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    >>> # Inside a kernel:
    >>> # state, did_scatter, attenuation, direction = scatter_lambertian(
    >>> #     state, albedo, normal
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti

from spheretrace.core.ray import near_zero, vec3
from spheretrace.core.sampler import random_unit_vector


def validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Check that an albedo has three components in [0, 1].

    Returns:
        The albedo as a tuple of floats.

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))


@dataclass(frozen=True)
class Lambertian:
    """Diffuse material handle.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@ti.func
def scatter_lambertian(state: ti.u32, albedo: vec3, normal: vec3):
    """Scatter a ray off a diffuse surface.

    Args:
        state: The sampler state.
        albedo: The diffuse reflectance color.
        normal: Unit surface normal facing against the incident ray.

    Returns:
        A tuple of (state, did_scatter, attenuation, scattered_direction).
        did_scatter is always 1.
    """
    s, offset = random_unit_vector(state)
    scattered_direction = normal + offset

    # The offset can cancel the normal almost exactly.
    if near_zero(scattered_direction):
        scattered_direction = normal

    return s, 1, albedo, scattered_direction


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    material = Lambertian(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = material.albedo
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def scatter_lambertian_by_id(state: ti.u32, material_idx: ti.i32, normal: vec3):
    """Scatter off the Lambertian material stored at material_idx."""
    return scatter_lambertian(state, lambertian_albedos[material_idx], normal)
