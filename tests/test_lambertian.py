"""Unit tests for the Lambertian material.

Tests cover:
- Scatter always succeeds with attenuation equal to albedo
- Scattered rays start at the hit point and leave through the hemisphere
- Scattered directions are never degenerate
- Material registry operations and validation
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 2000


def _scatter_many(normal, albedo=(0.5, 0.3, 0.1)):
    """Scatter N_SAMPLES rays off a surface at (1, 2, 3) with the given normal."""
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.geometry.sphere import HitRecord
    from pathtracer.materials.lambertian import scatter_lambertian

    did_scatter = ti.field(dtype=ti.i32, shape=N_SAMPLES)
    attenuation = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
    origin = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
    direction = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

    @ti.kernel
    def test_kernel(nx: ti.f64, ny: ti.f64, nz: ti.f64, r: ti.f64, g: ti.f64, b: ti.f64):
        for i in range(N_SAMPLES):
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=vec3(1.0, 2.0, 3.0),
                normal=vec3(nx, ny, nz),
                front_face=1,
                material_id=0,
            )
            ray_in = make_ray(vec3(1.0, 5.0, 3.0), vec3(0.0, -1.0, 0.0))
            srec = scatter_lambertian(vec3(r, g, b), ray_in, rec)
            did_scatter[i] = srec.did_scatter
            attenuation[i] = srec.attenuation
            origin[i] = srec.scattered.origin
            direction[i] = srec.scattered.direction

    test_kernel(*normal, *albedo)
    return (
        did_scatter.to_numpy(),
        attenuation.to_numpy(),
        origin.to_numpy(),
        direction.to_numpy(),
    )


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_always_scatters_with_albedo(self):
        """Test every sample scatters and is attenuated by the albedo."""
        did_scatter, attenuation, _, _ = _scatter_many((0.0, 1.0, 0.0))

        assert np.all(did_scatter == 1)
        np.testing.assert_allclose(attenuation, np.tile([0.5, 0.3, 0.1], (N_SAMPLES, 1)), atol=1e-6)

    def test_scattered_ray_starts_at_hit_point(self):
        """Test the scattered ray originates exactly at the hit point."""
        _, _, origin, _ = _scatter_many((0.0, 1.0, 0.0))
        np.testing.assert_allclose(origin, np.tile([1.0, 2.0, 3.0], (N_SAMPLES, 1)), atol=1e-6)

    def test_direction_never_zero_length(self):
        """Test scattered directions are never degenerate."""
        _, _, _, direction = _scatter_many((0.0, 0.0, 1.0))
        lengths = np.linalg.norm(direction, axis=1)
        assert np.all(lengths > 1e-6)

    def test_directions_leave_through_normal_hemisphere(self):
        """Test normal + unit vector never points below the surface."""
        normal = np.array([0.0, 0.6, 0.8])
        _, _, _, direction = _scatter_many(tuple(normal))
        assert np.all(direction @ normal >= -1e-5)

    def test_directions_are_cosine_weighted(self):
        """Test the mean cosine with the normal is about 2/3, as for a cosine lobe."""
        normal = np.array([0.0, 1.0, 0.0])
        _, _, _, direction = _scatter_many(tuple(normal))
        unit = direction / np.linalg.norm(direction, axis=1, keepdims=True)
        assert abs(np.mean(unit @ normal) - 2.0 / 3.0) < 0.05


class TestLambertianDirection:
    """Tests for lambertian_direction with a fixed random vector."""

    def _direction(self, normal, random_unit):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.lambertian import lambertian_direction

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(
            nx: ti.f64, ny: ti.f64, nz: ti.f64, rx: ti.f64, ry: ti.f64, rz: ti.f64
        ):
            result[None] = lambertian_direction(vec3(nx, ny, nz), vec3(rx, ry, rz))

        test_kernel(*normal, *random_unit)
        return result[None].to_numpy()

    def test_sum_of_normal_and_random_vector(self):
        """Test the direction is normal + random vector when they do not cancel."""
        direction = self._direction((0.0, 1.0, 0.0), (0.6, 0.0, 0.8))
        np.testing.assert_allclose(direction, [0.6, 1.0, 0.8], atol=1e-12)

    def test_exact_cancellation_falls_back_to_normal(self):
        """Test a random vector opposite the normal yields exactly the normal."""
        normal = (0.0, 0.6, 0.8)
        direction = self._direction(normal, (0.0, -0.6, -0.8))
        assert direction.tolist() == list(normal)

    def test_near_cancellation_falls_back_to_normal(self):
        """Test a sum below the near-zero threshold yields exactly the normal."""
        direction = self._direction((0.0, 0.0, 1.0), (1e-10, -1e-10, -1.0 + 1e-10))
        assert direction.tolist() == [0.0, 0.0, 1.0]


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_count(self):
        """Test materials get consecutive type-local indices."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
            lambertian_albedos,
        )

        assert add_lambertian_material((0.1, 0.2, 0.3)) == 0
        assert add_lambertian_material((0.4, 0.5, 0.6)) == 1
        assert get_lambertian_material_count() == 2
        np.testing.assert_allclose(lambertian_albedos[1].to_numpy(), [0.4, 0.5, 0.6], atol=1e-6)

    def test_clear(self):
        """Test clearing resets the count."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(1.1, 0.5, 0.5), (0.5, -0.01, 0.5), (0.5, 0.5)])
    def test_invalid_albedo(self, albedo):
        """Test invalid albedos raise ValueError."""
        from pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError):
            add_lambertian_material(albedo)

    def test_scatter_by_id_uses_stored_albedo(self):
        """Test scatter_lambertian_by_id reads the registry entry."""
        from pathtracer.core.ray import make_ray, vec3
        from pathtracer.geometry.sphere import HitRecord
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        add_lambertian_material((0.9, 0.9, 0.9))
        idx = add_lambertian_material((0.2, 0.4, 0.6))
        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                front_face=1,
                material_id=0,
            )
            ray_in = make_ray(vec3(0.0, 1.0, 0.0), vec3(0.0, -1.0, 0.0))
            result[None] = scatter_lambertian_by_id(material_idx, ray_in, rec).attenuation

        test_kernel(idx)
        np.testing.assert_allclose(result[None].to_numpy(), [0.2, 0.4, 0.6], atol=1e-6)
