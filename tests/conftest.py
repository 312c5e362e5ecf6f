"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Kernels run in
    double precision like the renderer.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material data before and after each test."""
    # Import here so Taichi is initialized before fields are allocated
    from spheretrace.materials.dielectric import clear_dielectric_materials
    from spheretrace.materials.lambertian import clear_lambertian_materials
    from spheretrace.materials.metal import clear_metal_materials
    from spheretrace.scene.intersection import clear_scene
    from spheretrace.scene.manager import _clear_material_tracking, _reset_active_scene

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        _reset_active_scene()

    _clear_all()
    yield
    _clear_all()
