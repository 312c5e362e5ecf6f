"""Tests for the scanline renderer.

These render small images end to end, so they are slower than the unit
tests of the individual modules.
"""

import numpy as np
import pytest


def _small_two_spheres(width=48, samples=4, depth=10):
    from spheretrace.scene.presets import create_two_spheres_scene

    scene, camera = create_two_spheres_scene()
    camera.image_width = width
    camera.samples_per_pixel = samples
    camera.max_depth = depth
    return scene, camera


class TestScanlineRenderer:
    """Tests for ScanlineRenderer."""

    def test_dimensions(self):
        """Test the renderer derives the image size from the camera."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(width=48)
        renderer = ScanlineRenderer(scene, camera)
        assert renderer.width == 48
        assert renderer.height == 27
        assert renderer.rows_done == 0

    def test_render_shape_and_range(self):
        """Test the image is (height, width, 3) uint8 and linear colors are in [0, 1]."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres()
        renderer = ScanlineRenderer(scene, camera)
        image = renderer.render()

        assert image.shape == (27, 48, 3)
        assert image.dtype == np.uint8
        assert renderer.rows_done == 27
        linear = renderer.linear_image
        assert linear.min() >= 0.0
        assert linear.max() <= 1.0 + 1e-12

    def test_center_pixel_sees_sphere(self):
        """Test the sphere straight ahead darkens the center pixel."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres()
        renderer = ScanlineRenderer(scene, camera)
        renderer.render()
        linear = renderer.linear_image

        center = linear[13, 24]
        # Sky at the same height would be nearly (0.75, 0.85, 1.0)
        assert center[2] < 0.75
        # Top row is open sky
        assert np.all(linear[0, :, 2] > 0.99)

    def test_single_bounce_budget_renders_objects_black(self):
        """Test max_depth 1 leaves every surface black."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(depth=1)
        renderer = ScanlineRenderer(scene, camera)
        image = renderer.render()

        # Center of the sphere and the bottom row of the ground
        assert np.all(image[13, 24] == 0)
        assert np.all(image[-1] == 0)

    def test_renders_own_scene_after_another_is_built(self):
        """Test a scene built after the renderer does not replace its scene."""
        from spheretrace.core.scanline import ScanlineRenderer
        from spheretrace.scene.manager import Scene

        scene, camera = _small_two_spheres(width=16, samples=1, depth=1)
        renderer = ScanlineRenderer(scene, camera)
        Scene()

        image = renderer.render()
        assert image.shape == (9, 16, 3)
        # The sphere ahead is still there, black at max_depth 1
        assert np.all(image[4, 8] == 0)
        assert np.all(image[-1] == 0)

    def test_renders_own_scene_after_another_render(self):
        """Test two renderers with different scenes can render in turn."""
        from spheretrace.core.scanline import ScanlineRenderer
        from spheretrace.materials import Lambertian
        from spheretrace.scene.manager import Scene

        scene, camera = _small_two_spheres(width=16, samples=1, depth=1)
        renderer = ScanlineRenderer(scene, camera)
        expected = renderer.render().copy()

        behind_camera = Scene()
        behind_camera.add_sphere((0, 0, 5), 0.5, Lambertian((0.5, 0.5, 0.5)))
        sky = ScanlineRenderer(behind_camera, camera).render()
        assert np.all(sky[4, 8] > 0)

        np.testing.assert_array_equal(renderer.render(), expected)

    def test_deterministic_for_seed(self):
        """Test identical scene, camera and seed give identical images."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(width=32, samples=3)
        renderers = [ScanlineRenderer(scene, camera, seed=seed) for seed in (5, 5, 6)]
        for renderer in renderers:
            renderer.render()
        first, second, other = renderers

        np.testing.assert_array_equal(first.image, second.image)
        np.testing.assert_array_equal(first.linear_image, second.linear_image)
        assert not np.array_equal(first.linear_image, other.linear_image)

    def test_render_scanlines_yields_rows_top_down(self):
        """Test rows are yielded in order with the right shape."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(width=16, samples=1)
        renderer = ScanlineRenderer(scene, camera)

        rows = []
        for j, row in renderer.render_scanlines():
            assert row.shape == (16, 3)
            assert renderer.rows_done == j + 1
            rows.append(j)
        assert rows == list(range(renderer.height))

    def test_progress_callback(self):
        """Test the callback sees every row with the total."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(width=16, samples=1)
        renderer = ScanlineRenderer(scene, camera)

        calls = []
        renderer.render(callback=lambda done, total: calls.append((done, total)))
        assert calls == [(j + 1, renderer.height) for j in range(renderer.height)]

    def test_iter_pixels(self):
        """Test pixels iterate row-major as int tuples."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres(width=16, samples=1)
        renderer = ScanlineRenderer(scene, camera)
        image = renderer.render()

        pixels = list(renderer.iter_pixels())
        assert len(pixels) == renderer.width * renderer.height
        assert pixels[0] == tuple(int(c) for c in image[0, 0])
        assert pixels[renderer.width] == tuple(int(c) for c in image[1, 0])
        assert all(isinstance(c, int) for c in pixels[-1])

    def test_invalid_camera_raises(self):
        """Test the renderer validates the camera up front."""
        from spheretrace.core.scanline import ScanlineRenderer

        scene, camera = _small_two_spheres()
        camera.samples_per_pixel = 0
        with pytest.raises(ValueError):
            ScanlineRenderer(scene, camera)

    def test_random_scene_renders(self):
        """Test the large random scene renders a tiny image."""
        from spheretrace.core.scanline import ScanlineRenderer
        from spheretrace.scene.presets import create_random_spheres_scene

        scene, camera = create_random_spheres_scene(seed=1)
        camera.image_width = 12
        camera.samples_per_pixel = 1
        camera.max_depth = 4
        image = ScanlineRenderer(scene, camera).render()
        assert image.shape == (7, 12, 3)
