"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, near_zero)
- Reflection, refraction and Schlick reflectance
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-12
        assert abs(r[1] - 2.0) < 1e-12
        assert abs(r[2] - 3.0) < 1e-12

    def test_ray_at_positive_t(self):
        """Test ray_at computes origin + t * direction."""
        from spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 0.0, 0.0), direction=vec3(0.5, 2.0, -1.0))
            result[None] = ray_at(ray, 4.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 3.0) < 1e-12
        assert abs(r[1] - 8.0) < 1e-12
        assert abs(r[2] - (-4.0)) < 1e-12

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from spheretrace.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][1] - (-3.0)) < 1e-12


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_length_and_length_squared(self):
        """Test length of a 3-4-0 vector."""
        from spheretrace.core.ray import length, length_squared, vec3

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[0] = length(v)
            result[1] = length_squared(v)

        test_kernel()
        assert abs(result[0] - 5.0) < 1e-12
        assert abs(result[1] - 25.0) < 1e-12

    def test_unit_vector(self):
        """Test unit_vector produces length 1 in the same direction."""
        from spheretrace.core.ray import unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-12
        assert abs(r[1] - 0.6) < 1e-12
        assert abs(r[2] - 0.8) < 1e-12

    def test_dot_and_cross(self):
        """Test dot and cross on the coordinate axes."""
        from spheretrace.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f64, shape=())
        cross_result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 12.0) < 1e-12
        c = cross_result[None]
        assert abs(c[0]) < 1e-12
        assert abs(c[1]) < 1e-12
        assert abs(c[2] - 1.0) < 1e-12

    def test_near_zero(self):
        """Test near_zero threshold of 1e-8 per component."""
        from spheretrace.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-7, 0.0))
            result[2] = near_zero(vec3(0.0, 0.0, 0.0))

        test_kernel()
        assert result[0] != 0
        assert result[1] == 0
        assert result[2] != 0


class TestReflectRefract:
    """Tests for reflect, refract and schlick_reflectance."""

    def test_reflect_flips_normal_component(self):
        """Test reflect(v, n) = v - 2(v.n)n."""
        from spheretrace.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-12
        assert abs(r[1] - 1.0) < 1e-12
        assert abs(r[2]) < 1e-12

    def test_refract_straight_through(self):
        """Test normal incidence passes straight through for any index ratio."""
        from spheretrace.core.ray import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-12
        assert abs(r[1] - (-1.0)) < 1e-12
        assert abs(r[2]) < 1e-12

    def test_refract_obeys_snell(self):
        """Test sin(theta_t) = eta * sin(theta_i) for a 45 degree ray."""
        from spheretrace.core.ray import refract, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())
        eta = 1.0 / 1.5

        @ti.kernel
        def test_kernel():
            uv = unit_vector(vec3(1.0, -1.0, 0.0))
            result[None] = refract(uv, vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result[None]
        sin_t = r[0] / math.sqrt(r[0] ** 2 + r[1] ** 2)
        assert abs(sin_t - eta * math.sin(math.pi / 4)) < 1e-9
        assert r[1] < 0.0

    def test_schlick_reflectance(self):
        """Test Schlick at normal incidence gives R0 and at grazing gives 1."""
        from spheretrace.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = schlick_reflectance(1.0, 1.5)
            result[1] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[0] - 0.04) < 1e-12
        assert abs(result[1] - 1.0) < 1e-12
