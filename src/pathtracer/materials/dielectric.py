"""Dielectric (glass/water) material.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when (n1/n2) * sin(theta1) > 1
    - Schlick's approximation for the Fresnel reflectance

At each hit the material reflects with probability equal to the Schlick
reflectance (always, under total internal reflection) and refracts otherwise.
Glass absorbs nothing, so the attenuation is white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_dielectric(refractive_index, ray_in, rec)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, reflect, refract, unit_vector, vec3
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.material import ScatterRecord


@ti.func
def reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Schlick's approximation of the Fresnel reflectance.

        r0 = ((1 - n) / (1 + n))^2
        R = r0 + (1 - r0) * (1 - cos)^5
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def refraction_ratio(refractive_index: ti.f64, front_face: ti.i32) -> ti.f64:
    """Index ratio for the crossing: ``1/n`` entering, ``n`` leaving."""
    ratio = refractive_index
    if front_face == 1:
        ratio = 1.0 / refractive_index
    return ratio


@ti.func
def scatter_dielectric(refractive_index: ti.f64, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        refractive_index: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The hit being shaded. ``front_face`` selects whether the ray is
            entering (ratio 1/n) or leaving (ratio n) the material.

    Returns:
        A ScatterRecord that always scatters with white attenuation.
    """
    ratio = refraction_ratio(refractive_index, rec.front_face)

    unit_direction = unit_vector(ray_in.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0 or reflectance(cos_theta, ratio) > ti.random(ti.f64):
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, ratio)

    return ScatterRecord(
        did_scatter=1,
        attenuation=vec3(1.0, 1.0, 1.0),
        scattered=make_ray(rec.point, direction),
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

# Storage for dielectric material properties
dielectric_indices = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float = 1.5) -> int:
    """Add a dielectric material to the registry.

    Args:
        refractive_index: Index of refraction. Default is 1.5 (typical glass).

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    if refractive_index <= 0.0:
        raise ValueError(f"Refractive index = {refractive_index} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def scatter_dielectric_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off the dielectric material stored at ``material_idx``."""
    return scatter_dielectric(dielectric_indices[material_idx], ray_in, rec)
