"""Explicit, seedable random number source for Monte Carlo sampling.

Every function here takes the current sampler state and returns the advanced
state together with the drawn value, so randomness is threaded through camera
and material calls instead of coming from a process-wide generator. The state
is a single ``u32`` advanced with the PCG output permutation hash.

Each pixel sample starts from ``init_sampler(seed, pixel_index, sample_index)``,
which makes a render a pure function of the scene, the camera and the seed.

Example:
    >>> @ti.kernel
    ... def draw(seed: ti.u32) -> ti.f64:
    ...     state = init_sampler(seed, ti.u32(0), ti.u32(0))
    ...     state, x = random_double(state)
    ...     return x
"""

import taichi as ti

from spheretrace.core.ray import length_squared, vec3

# 1 / 2**32, maps a u32 onto [0, 1).
_U32_TO_UNIT = 1.0 / 4294967296.0

# Squared lengths at or below this are rejected by random_unit_vector().
_MIN_UNIT_VECTOR_LENGTH_SQUARED = 1e-8


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """PCG output permutation hash of a 32-bit value."""
    # The increment 2891336453 is applied as -1403630843 (mod 2**32).
    state = value * ti.u32(747796405) - ti.u32(1403630843)
    shift = (state >> ti.u32(28)) + ti.u32(4)
    word = ((state >> shift) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.func
def init_sampler(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Derive the starting state for one pixel sample.

    Args:
        seed: The render seed.
        pixel_index: Row-major pixel index.
        sample_index: Index of the sample within the pixel.

    Returns:
        A sampler state independent of every other (pixel, sample) pair.
    """
    return pcg_hash(seed + pcg_hash(pixel_index + pcg_hash(sample_index)))


@ti.func
def random_double(state: ti.u32):
    """Draw a uniform double in [0, 1).

    Returns:
        A tuple of (new_state, value).
    """
    next_state = pcg_hash(state)
    return next_state, ti.cast(next_state, ti.f64) * _U32_TO_UNIT


@ti.func
def random_range(state: ti.u32, lo: ti.f64, hi: ti.f64):
    """Draw a uniform double in [lo, hi).

    Returns:
        A tuple of (new_state, value).
    """
    next_state, x = random_double(state)
    return next_state, lo + (hi - lo) * x


@ti.func
def random_vec3(state: ti.u32):
    """Draw a vector with every component uniform in [0, 1)."""
    s, x = random_double(state)
    s, y = random_double(s)
    s, z = random_double(s)
    return s, vec3(x, y, z)


@ti.func
def random_vec3_range(state: ti.u32, lo: ti.f64, hi: ti.f64):
    """Draw a vector with every component uniform in [lo, hi)."""
    s, x = random_range(state, lo, hi)
    s, y = random_range(s, lo, hi)
    s, z = random_range(s, lo, hi)
    return s, vec3(x, y, z)


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a random vector for diffuse and fuzz scattering.

    Samples uniformly in the cube [-1, 1]^3 and rejects points whose squared
    length is at most 1e-8 or greater than 1. The accepted point is returned
    as is, without renormalization.

    Returns:
        A tuple of (new_state, vector) with 1e-8 < |vector|^2 <= 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    while True:
        s, candidate = random_vec3_range(s, -1.0, 1.0)
        lensq = length_squared(candidate)
        if lensq > _MIN_UNIT_VECTOR_LENGTH_SQUARED and lensq <= 1.0:
            p = candidate
            break
    return s, p


@ti.func
def random_on_hemisphere(state: ti.u32, normal: vec3):
    """Draw a random_unit_vector() flipped into the hemisphere of normal."""
    s, on_sphere = random_unit_vector(state)
    result = on_sphere
    if on_sphere.dot(normal) <= 0.0:
        result = -on_sphere
    return s, result


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly inside the unit disk in the xy-plane.

    Used for depth of field. Rejection samples the square [-1, 1]^2.

    Returns:
        A tuple of (new_state, point) with z = 0 and x^2 + y^2 < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    while True:
        s, x = random_range(s, -1.0, 1.0)
        s, y = random_range(s, -1.0, 1.0)
        candidate = vec3(x, y, 0.0)
        if length_squared(candidate) < 1.0:
            p = candidate
            break
    return s, p
