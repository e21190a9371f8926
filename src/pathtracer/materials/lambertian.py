"""Lambertian (ideal diffuse) material.

The scattered direction is the surface normal plus a random unit vector,
which distributes outgoing rays with density proportional to the cosine of
the angle from the normal. No sampling weight is needed: the attenuation is
simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_lambertian(albedo, ray_in, rec)
"""

import taichi as ti

from pathtracer.core.ray import Ray, make_ray, near_zero, random_unit_vector, vec3
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.material import ScatterRecord, validate_color


@ti.func
def lambertian_direction(normal: vec3, random_unit: vec3) -> vec3:
    """Diffuse scatter direction ``normal + random_unit``.

    Falls back to the bare normal when the random vector cancels the normal
    almost exactly.
    """
    scatter_direction = normal + random_unit
    if near_zero(scatter_direction):
        scatter_direction = normal
    return scatter_direction


@ti.func
def scatter_lambertian(albedo: vec3, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color.
        ray_in: The incoming ray (unused; diffuse scattering ignores it).
        rec: The hit being shaded.

    Returns:
        A ScatterRecord that always scatters, with attenuation equal to albedo.
    """
    return ScatterRecord(
        did_scatter=1,
        attenuation=albedo,
        scattered=make_ray(rec.point, lambertian_direction(rec.normal, random_unit_vector())),
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_color("albedo", albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off the Lambertian material stored at ``material_idx``."""
    return scatter_lambertian(lambertian_albedos[material_idx], ray_in, rec)
