"""Tests for the path tracing integrator and pixel sampler.

This module tests the core path tracing functionality including:
- Render target setup and management
- The sky gradient for escaped rays
- Depth truncation and absorption
- Deterministic multi-bounce paths (mirror metal, matched-index glass)
- End-to-end single sphere render
- Resolving sample sums to 8-bit output

Note: Imports are done inside test methods so that Taichi is initialized by
conftest.py before any module declaring fields is imported.
"""

import numpy as np
import pytest

SKY_STRAIGHT_AHEAD = (0.75, 0.85, 1.0)


def _setup_single_sphere_view(size=11):
    """Lambertian sphere of radius 0.5 at (0, 0, -1), camera at the origin looking down -z."""
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    from pathtracer.core.integrator import setup_render_target
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
    setup_camera(
        ThinLensCamera(
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=1.0,
            aperture=0.0,
            focus_dist=1.0,
        )
    )
    setup_render_target(size, size)
    return scene


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target_sets_dimensions(self):
        """Test that setup_render_target records the active size."""
        from pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (4096, 10), (10, 2049)])
    def test_invalid_dimensions(self, size):
        """Test out-of-range dimensions raise ValueError."""
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_render_accumulates_and_clears(self):
        """Test render_image adds samples and clear_render_target resets them."""
        from pathtracer.core.integrator import (
            clear_render_target,
            get_total_samples,
            render_image,
        )

        _setup_single_sphere_view(size=8)
        render_image(num_samples=2, max_depth=5)
        assert get_total_samples() == 2
        render_image(num_samples=1, max_depth=5)
        assert get_total_samples() == 3

        clear_render_target()
        assert get_total_samples() == 0

    def test_negative_depth_rejected(self):
        """Test a negative depth budget raises ValueError."""
        from pathtracer.core.integrator import render_image, trace_ray

        _setup_single_sphere_view(size=4)
        with pytest.raises(ValueError):
            render_image(num_samples=1, max_depth=-1)
        with pytest.raises(ValueError):
            trace_ray((0, 0, 0), (0, 0, -1), max_depth=-1)


class TestBackground:
    """Tests for rays that escape the scene."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((0.0, -1.0, 0.0), (1.0, 1.0, 1.0)),
            ((0.0, 0.0, -1.0), SKY_STRAIGHT_AHEAD),
            ((0.0, 0.0, -7.0), SKY_STRAIGHT_AHEAD),
        ],
    )
    def test_sky_gradient(self, direction, expected):
        """Test the gradient blends white to sky blue on the unit direction's y."""
        from pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), direction, max_depth=1)
        np.testing.assert_allclose(color, expected, atol=1e-6)


class TestTermination:
    """Tests for depth truncation and absorption."""

    def test_depth_zero_is_black(self):
        """Test a zero depth budget returns black without tracing."""
        from pathtracer.core.integrator import trace_ray

        _setup_single_sphere_view()
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=0) == (0.0, 0.0, 0.0)
        # Even a ray that would escape to the sky
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=0) == (0.0, 0.0, 0.0)

    def test_depth_exhausted_on_hit_is_black(self):
        """Test a single bounce budget spent on a hit returns black."""
        from pathtracer.core.integrator import trace_ray

        _setup_single_sphere_view()
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=1) == (0.0, 0.0, 0.0)

    def test_unknown_material_absorbs(self):
        """Test a sphere with an unregistered material absorbs the path."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.intersection import add_sphere

        add_sphere(np.array([0.0, 0.0, -1.0]), 0.5, 5)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=10) == (0.0, 0.0, 0.0)


class TestDeterministicPaths:
    """Paths whose bounces involve no randomness."""

    def test_mirror_reflects_sky_with_albedo(self):
        """Test a head-on hit on a perfect mirror returns albedo times the sky behind."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.4), fuzz=0.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=2)
        # Reflected straight back along +z, where the gradient is again SKY_STRAIGHT_AHEAD
        np.testing.assert_allclose(color, (0.8 * 0.75, 0.6 * 0.85, 0.4 * 1.0), atol=1e-5)

    def test_matched_index_glass_is_invisible(self):
        """Test a head-on ray passes straight through an index-1 sphere."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -1.0), 0.5, 1.0)

        # Enter, exit, escape
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=3)
        np.testing.assert_allclose(color, SKY_STRAIGHT_AHEAD, atol=1e-5)

        # Not enough depth to escape
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=2) == (0.0, 0.0, 0.0)

    def test_closest_material_is_used(self):
        """Test the nearest sphere's material shades the hit."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -5.0), 0.5, (0.5, 0.5, 0.5))
        scene.add_metal_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5), fuzz=0.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=2)
        np.testing.assert_allclose(color, (0.375, 0.425, 0.5), atol=1e-5)


class TestEndToEnd:
    """Single sphere rendered through the camera."""

    def test_center_pixel_hits_sphere(self):
        """Test rays through the silhouette hit: depth 1 leaves them black."""
        from pathtracer.core.integrator import render_sample

        _setup_single_sphere_view(size=11)
        for _ in range(10):
            assert render_sample(5, 5, max_depth=1) == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("pixel", [(0, 0), (10, 0), (0, 10), (10, 10)])
    def test_corner_pixels_see_sky(self, pixel):
        """Test rays outside the silhouette get a color between white and sky blue."""
        from pathtracer.core.integrator import render_sample

        _setup_single_sphere_view(size=11)
        r, g, b = render_sample(*pixel, max_depth=1)

        assert 0.5 < r < 1.0
        assert 0.7 < g < 1.0
        assert abs(b - 1.0) < 1e-6

    def test_depth_zero_image_is_black(self):
        """Test a full render with zero depth is entirely black."""
        from pathtracer.core.integrator import get_image_uint8, render_image

        _setup_single_sphere_view(size=6)
        render_image(num_samples=3, max_depth=0)

        assert np.all(get_image_uint8() == 0)

    def test_image_rows_run_top_to_bottom(self):
        """Test row 0 of the output is the top of the image (the bluer sky)."""
        from pathtracer.core.integrator import get_image_uint8, render_image
        from pathtracer.scene.manager import SceneManager

        _setup_single_sphere_view(size=9)
        SceneManager()  # empty scene: sky only
        render_image(num_samples=1, max_depth=1)
        pixels = get_image_uint8()

        assert pixels.shape == (9, 9, 3)
        assert pixels.dtype == np.uint8
        assert np.all(pixels[0, :, 0] < pixels[-1, :, 0])
        assert np.all(pixels[:, :, 2] == 255)

    def test_single_pixel_image(self):
        """Test a 1x1 image renders with a unit divisor."""
        from pathtracer.core.integrator import get_image_numpy, get_total_samples, render_image

        _setup_single_sphere_view(size=1)
        render_image(num_samples=4, max_depth=3)

        assert get_total_samples() == 4
        image = get_image_numpy()
        assert image.shape == (1, 1, 3)
        assert np.all(np.isfinite(image))

    def test_full_depth_render_is_bounded(self):
        """Test a converging render stays within [0, 1] and shades the sphere darker than sky."""
        from pathtracer.core.integrator import get_image_numpy, render_image

        _setup_single_sphere_view(size=11)
        render_image(num_samples=16, max_depth=50)
        image = get_image_numpy()

        assert np.all(image >= 0.0)
        assert np.all(image <= 1.0 + 1e-6)
        # A grey diffuse sphere absorbs at least half of the light at each bounce
        assert image[5, 5].mean() < image[0, 0].mean()


class TestResolvePixels:
    """Tests for the scale, gamma, clamp and quantize step."""

    @pytest.mark.parametrize("spp", [1, 3, 7, 100, 1000])
    def test_constant_red_resolves_to_255(self, spp):
        """Test a constant (1, 0, 0) integrator resolves to (255, 0, 0) for any spp."""
        from pathtracer.core.integrator import resolve_pixels

        color_sum = np.zeros((2, 3, 3), dtype=np.float32)
        for _ in range(spp):
            color_sum += np.array([1.0, 0.0, 0.0], dtype=np.float32)

        pixels = resolve_pixels(color_sum, spp)
        assert pixels.dtype == np.uint8
        assert np.all(pixels == np.array([255, 0, 0], dtype=np.uint8))

    def test_gamma_two(self):
        """Test the average is square-rooted before quantizing."""
        from pathtracer.core.integrator import resolve_pixels

        pixels = resolve_pixels(np.array([[[1.0, 0.25, 0.04]]]) * 4, 4)
        # floor(256 * sqrt(v))
        assert pixels[0, 0].tolist() == [255, 128, 51]

    def test_out_of_range_values_are_clamped(self):
        """Test values above 1 saturate at 255 and negative values go to 0."""
        from pathtracer.core.integrator import resolve_pixels

        pixels = resolve_pixels(np.array([[[5.0, -1.0, 0.999]]]), 1)
        assert pixels[0, 0].tolist() == [255, 0, 255]

    def test_per_pixel_counts(self):
        """Test a per-pixel sample count array scales each pixel separately."""
        from pathtracer.core.integrator import resolve_pixels

        color_sum = np.array([[[2.0, 2.0, 2.0], [2.0, 2.0, 2.0], [1.0, 1.0, 1.0]]])
        counts = np.array([[2, 8, 0]])
        pixels = resolve_pixels(color_sum, counts)

        assert pixels[0, 0].tolist() == [255, 255, 255]
        assert pixels[0, 1].tolist() == [128, 128, 128]
        # No samples resolves to black
        assert pixels[0, 2].tolist() == [0, 0, 0]
