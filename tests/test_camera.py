"""Unit tests for the thin-lens camera.

Tests cover:
- Orthonormal basis and viewport setup
- Ray generation through the viewport
- Depth of field: origins on the lens disk, convergence at the focus plane
- Parameter validation
"""

import math

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 500


def _camera(**overrides):
    from pathtracer.camera.thin_lens import ThinLensCamera

    params = dict(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
        aperture=0.0,
        focus_dist=1.0,
    )
    params.update(overrides)
    return ThinLensCamera(**params)


def _rays(s, t):
    """Generate N_SAMPLES camera rays through (s, t); return (origins, directions)."""
    from pathtracer.camera.thin_lens import get_ray

    origins = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

    @ti.kernel
    def test_kernel(s: ti.f64, t: ti.f64):
        for i in range(N_SAMPLES):
            ray = get_ray(s, t)
            origins[i] = ray.origin
            directions[i] = ray.direction

    test_kernel(s, t)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraSetup:
    """Tests for setup_camera."""

    def test_basis_for_default_view(self):
        """Test the basis for a camera looking down -z with +y up."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera())
        info = get_camera_info()

        np.testing.assert_allclose(info["u"], [1.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(info["v"], [0.0, 1.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(info["w"], [0.0, 0.0, 1.0], atol=1e-6)

    def test_viewport_size(self):
        """Test the viewport spans 2*tan(vfov/2) high, aspect times that wide."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera(vfov=90.0, aspect_ratio=2.0, focus_dist=1.0))
        info = get_camera_info()

        np.testing.assert_allclose(info["horizontal"], [4.0, 0.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["vertical"], [0.0, 2.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["lower_left"], [-2.0, -1.0, -1.0], atol=1e-5)

    def test_viewport_scales_with_focus_distance(self):
        """Test the viewport is placed and scaled at the focus distance."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera(vfov=90.0, aspect_ratio=1.0, focus_dist=3.0, aperture=0.5))
        info = get_camera_info()

        np.testing.assert_allclose(info["horizontal"], [6.0, 0.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["vertical"], [0.0, 6.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(info["lower_left"], [-3.0, -3.0, -3.0], atol=1e-5)
        assert abs(info["lens_radius"] - 0.25) < 1e-6

    def test_focus_distance_defaults_to_lookat_distance(self):
        """Test focus_dist=None focuses on the look-at point."""
        camera = _camera(lookfrom=(3.0, 4.0, 0.0), lookat=(0.0, 0.0, 0.0), focus_dist=None)
        assert abs(camera.resolved_focus_dist() - 5.0) < 1e-9


class TestRayGeneration:
    """Tests for get_ray."""

    def test_pinhole_center_ray(self):
        """Test with no aperture the center ray starts at lookfrom and points at lookat."""
        from pathtracer.camera.thin_lens import setup_camera

        setup_camera(_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0), focus_dist=3.0))
        origins, directions = _rays(0.5, 0.5)

        np.testing.assert_allclose(origins[0], [1.0, 2.0, 3.0], atol=1e-6)
        np.testing.assert_allclose(directions[0], [0.0, 0.0, -3.0], atol=1e-5)

    def test_corner_rays(self):
        """Test (0, 0) aims at the lower-left and (1, 1) at the upper-right corner."""
        from pathtracer.camera.thin_lens import setup_camera

        setup_camera(_camera())
        _, lower_left = _rays(0.0, 0.0)
        _, upper_right = _rays(1.0, 1.0)

        np.testing.assert_allclose(lower_left[0], [-2.0, -1.0, -1.0], atol=1e-5)
        np.testing.assert_allclose(upper_right[0], [2.0, 1.0, -1.0], atol=1e-5)

    def test_lens_origins_lie_on_disk(self):
        """Test ray origins are jittered within the lens radius in the u-v plane."""
        from pathtracer.camera.thin_lens import setup_camera

        setup_camera(_camera(aperture=0.4, focus_dist=2.0))
        origins, _ = _rays(0.3, 0.7)

        assert np.all(np.abs(origins[:, 2]) < 1e-6)
        assert np.all(np.linalg.norm(origins[:, :2], axis=1) < 0.2 + 1e-6)
        assert np.std(origins[:, 0]) > 0.01

    def test_rays_converge_on_focus_plane(self):
        """Test every jittered ray passes through the same focus-plane point."""
        from pathtracer.camera.thin_lens import setup_camera

        setup_camera(_camera(aperture=0.4, focus_dist=2.0))
        origins, directions = _rays(0.3, 0.7)

        focus_points = origins + directions
        np.testing.assert_allclose(focus_points, np.tile(focus_points[0], (N_SAMPLES, 1)), atol=1e-5)
        assert np.all(np.abs(focus_points[:, 2] + 2.0) < 1e-5)


class TestCameraValidation:
    """Tests for parameter validation."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
            {"lookat": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
        ],
    )
    def test_invalid_parameters(self, overrides):
        """Test degenerate camera parameters raise ValueError."""
        from pathtracer.camera.thin_lens import setup_camera

        with pytest.raises(ValueError):
            setup_camera(_camera(**overrides))

    def test_valid_random_scene_view(self):
        """Test the wide-angle tilted view used for the demo scene validates."""
        camera = _camera(
            lookfrom=(11.0, 4.0, 3.0),
            lookat=(0.0, 0.0, 0.0),
            vfov=20.0,
            aspect_ratio=1.5,
            aperture=0.05,
            focus_dist=None,
        )
        camera.validate()
        assert abs(camera.resolved_focus_dist() - math.sqrt(146.0)) < 1e-9
