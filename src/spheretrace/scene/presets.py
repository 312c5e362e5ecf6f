"""Ready-made demo scenes.

Each factory resets the shared scene storage and returns a populated Scene
together with a Camera framed for it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretrace.scene.presets import create_random_spheres_scene
    >>> scene, camera = create_random_spheres_scene(seed=42)
    >>> len(scene) > 4
    True
"""

import logging

import numpy as np

from spheretrace.camera.thin_lens import Camera
from spheretrace.materials import Dielectric, Lambertian, Metal
from spheretrace.scene.manager import Scene

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

GLASS_INDEX = 1.5

# Random spheres scene: small spheres on a grid of cells from -11 to 10
RANDOM_GRID_MIN = -11
RANDOM_GRID_MAX = 11
SMALL_SPHERE_RADIUS = 0.2

# Small spheres are kept clear of the large metal sphere by this distance
CLEARANCE_POINT = (4.0, 0.2, 0.0)
CLEARANCE_DISTANCE = 0.9

# Cumulative material probabilities of the small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95


def create_two_spheres_scene() -> tuple[Scene, Camera]:
    """Create a small sphere resting on a huge ground sphere.

    The sphere of radius 0.5 sits at (0, 0, -1) straight ahead of the default
    camera, the ground sphere of radius 100 at (0, -100.5, -1).

    Returns:
        A tuple of (Scene, Camera) using the default camera.
    """
    scene = Scene()
    gray = Lambertian((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, gray)
    scene.add_sphere((0.0, -100.5, -1.0), 100.0, gray)
    return scene, Camera()


def create_material_showcase_scene() -> tuple[Scene, Camera]:
    """Create one sphere of each material on a yellow-green ground.

    - Center: blue diffuse
    - Left: hollow glass (a glass sphere holding a smaller air bubble)
    - Right: fuzzy gold metal

    Returns:
        A tuple of (Scene, Camera). The camera looks down at the spheres with
        a shallow depth of field focused on them.
    """
    scene = Scene()

    material_ground = Lambertian((0.8, 0.8, 0.0))
    material_center = Lambertian((0.1, 0.2, 0.5))
    material_left = Dielectric(GLASS_INDEX)
    material_bubble = Dielectric(1.0 / GLASS_INDEX)
    material_right = Metal((0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, material_ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, material_center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, material_left)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.4, material_bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, material_right)

    camera = Camera(
        vfov=20.0,
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=10.0,
        focus_dist=3.4,
    )
    return scene, camera


def create_random_spheres_scene(seed: int = 0) -> tuple[Scene, Camera]:
    """Create the field of random small spheres around three large ones.

    Small spheres are diffuse with probability 0.8 (albedo the product of two
    random colors), metal with probability 0.15 (albedo in [0.5, 1), fuzz in
    [0, 0.5)) and glass otherwise.

    Args:
        seed: Seed of the NumPy generator choosing positions and materials.

    Returns:
        A tuple of (Scene, Camera).
    """
    rng = np.random.default_rng(seed)
    scene = Scene()

    ground = Lambertian((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    clearance_point = np.array(CLEARANCE_POINT)
    glass = Dielectric(GLASS_INDEX)

    for a in range(RANDOM_GRID_MIN, RANDOM_GRID_MAX):
        for b in range(RANDOM_GRID_MIN, RANDOM_GRID_MAX):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, b + 0.9 * rng.random()]
            )

            if np.linalg.norm(center - clearance_point) <= CLEARANCE_DISTANCE:
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(tuple(albedo.tolist()))
            elif choose_mat < METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                material = Metal(tuple(albedo.tolist()), fuzz=float(fuzz))
            else:
                material = glass

            scene.add_sphere(tuple(center.tolist()), SMALL_SPHERE_RADIUS, material)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, Lambertian((0.4, 0.2, 0.1)))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, Metal((0.7, 0.6, 0.5), fuzz=0.0))

    logger.info(f"Random spheres scene: {len(scene)} spheres, seed {seed}")

    camera = Camera(
        vfov=20.0,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=0.6,
        focus_dist=10.0,
    )
    return scene, camera
