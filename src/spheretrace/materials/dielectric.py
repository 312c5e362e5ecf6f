"""Dielectric (glass, water) material with refraction.

Dielectrics never absorb: attenuation is always white. At each hit the ray
either reflects or refracts. It must reflect under total internal reflection
(ri * sin_theta > 1); otherwise it reflects with the probability given by
Schlick's approximation of the Fresnel reflectance, and refracts through
Snell's law the rest of the time.

An index below 1 models a medium less dense than its surroundings, such as an
air bubble inside glass.

Example:
    >>> from spheretrace.materials.dielectric import Dielectric
    >>> glass = Dielectric(refraction_index=1.5)
    >>> bubble = Dielectric(refraction_index=1.0 / 1.5)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import reflect, refract, schlick_reflectance, unit_vector, vec3
from spheretrace.core.sampler import random_double


@dataclass(frozen=True)
class Dielectric:
    """Dielectric material handle.

    Attributes:
        refraction_index: Index of refraction relative to the enclosing
            medium. Must be positive. Common values are water 1.33, glass 1.5
            and diamond 2.4.
    """

    refraction_index: float = 1.5

    def __post_init__(self) -> None:
        if not self.refraction_index > 0.0:
            raise ValueError(
                f"Index of refraction = {self.refraction_index} must be positive."
            )
        object.__setattr__(self, "refraction_index", float(self.refraction_index))


@ti.func
def scatter_dielectric(
    state: ti.u32,
    refraction_index: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter a ray through a dielectric surface.

    Args:
        state: The sampler state.
        refraction_index: The material's index of refraction.
        incident_direction: Direction of the incoming ray.
        normal: Unit surface normal facing against the incident ray.
        front_face: 1 if the ray enters the material from outside.

    Returns:
        A tuple of (state, did_scatter, attenuation, scattered_direction).
        did_scatter is always 1 and attenuation is always (1, 1, 1).
    """
    ri = refraction_index
    if front_face == 1:
        ri = 1.0 / refraction_index

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    cannot_refract = ri * sin_theta > 1.0

    s, threshold = random_double(state)
    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_reflectance(cos_theta, ri) > threshold:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ri)

    return s, 1, vec3(1.0, 1.0, 1.0), direction


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

dielectric_indices = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(refraction_index: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refraction_index: Index of refraction. Default is 1.5 (typical glass).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the index of refraction is not positive.
    """
    material = Dielectric(refraction_index)

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = material.refraction_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def scatter_dielectric_by_id(
    state: ti.u32,
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter through the dielectric material stored at material_idx."""
    return scatter_dielectric(
        state,
        dielectric_indices[material_idx],
        incident_direction,
        normal,
        front_face,
    )
