"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    interval: Numeric ranges for ray parameters and color clamping
    sampler: Explicit, seedable random number source
    integrator: Depth-bounded color integration and the scanline kernel
    scanline: Row-by-row render driver with progress reporting

All compute-intensive operations are Taichi functions in double precision.
"""

from .interval import (
    Interval,
    empty_interval,
    interval_clamp,
    interval_contains,
    interval_size,
    interval_surrounds,
    make_interval,
    universe_interval,
)
from .ray import (
    Ray,
    color,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    point3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .sampler import (
    init_sampler,
    pcg_hash,
    random_double,
    random_in_unit_disk,
    random_on_hemisphere,
    random_range,
    random_unit_vector,
    random_vec3,
    random_vec3_range,
)

# Note: integrator and scanline are NOT imported here, they allocate Taichi
# fields at import time. Import them directly after ti.init().

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "point3",
    "color",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "Interval",
    "make_interval",
    "empty_interval",
    "universe_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "interval_clamp",
    "pcg_hash",
    "init_sampler",
    "random_double",
    "random_range",
    "random_vec3",
    "random_vec3_range",
    "random_unit_vector",
    "random_on_hemisphere",
    "random_in_unit_disk",
]
