"""Metal (specular reflective) material.

The incident direction is mirrored about the surface normal,

    R = I - 2(I . N)N

and then perturbed by fuzz times a random vector from random_unit_vector().
A perturbed ray that ends up below the surface is absorbed.

Example:
    >>> from spheretrace.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import reflect, vec3
from spheretrace.core.sampler import random_unit_vector
from spheretrace.materials.lambertian import validate_albedo


@dataclass(frozen=True)
class Metal:
    """Metal material handle.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection fuzziness. 0 is a perfect mirror; values above 1
            are clamped to 1.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        if self.fuzz < 0.0:
            raise ValueError(
                f"Fuzz = {self.fuzz} is negative. "
                "Fuzz must be at least 0 (perfect mirror)."
            )
        object.__setattr__(self, "fuzz", min(float(self.fuzz), 1.0))


@ti.func
def scatter_metal(
    state: ti.u32,
    albedo: vec3,
    fuzz: ti.f64,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter a ray off a metal surface.

    The reflected direction is not normalized before the fuzz offset is added,
    so the fuzz cone scales with the length of the incident direction.

    Args:
        state: The sampler state.
        albedo: The reflective color.
        fuzz: Reflection fuzziness.
        incident_direction: Direction of the incoming ray.
        normal: Unit surface normal facing against the incident ray.

    Returns:
        A tuple of (state, did_scatter, attenuation, scattered_direction).
        did_scatter is 0 when the scattered direction points into the surface.
    """
    s, offset = random_unit_vector(state)
    scattered_direction = reflect(incident_direction, normal) + fuzz * offset
    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1
    return s, did_scatter, albedo, scattered_direction


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: Reflection fuzziness, clamped to 1. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1] or the fuzz
            is negative.
    """
    material = Metal(albedo, fuzz)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = material.albedo
    metal_fuzzes[idx] = material.fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def scatter_metal_by_id(
    state: ti.u32,
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter off the metal material stored at material_idx.

    Returns:
        A tuple of (state, did_scatter, attenuation, scattered_direction).
    """
    return scatter_metal(
        state,
        metal_albedos[material_idx],
        metal_fuzzes[material_idx],
        incident_direction,
        normal,
    )
