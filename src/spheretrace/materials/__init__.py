"""Surface materials and their scattering functions.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like reflection and refraction (Schlick's approximation)

Each material has an immutable Python handle that validates its parameters,
a Taichi field registry, and a scatter function of the form

    state, did_scatter, attenuation, direction = scatter_*(state, ...)

that threads the sampler state through the call.
"""

from .dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
    validate_albedo,
)
from .metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

Material = Lambertian | Metal | Dielectric

__all__ = [
    "Material",
    # Lambertian
    "Lambertian",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "validate_albedo",
    # Metal
    "Metal",
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    # Dielectric
    "Dielectric",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
]
