"""Metal (specular reflective) material with fuzz.

The incoming direction is mirrored about the normal:

    R = I - 2(I . N)N

then perturbed by ``fuzz`` times a random point in the unit ball. A fuzz of
0 gives a perfect mirror. Perturbed directions that end up at or below the
surface are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_metal(albedo, fuzz, ray_in, rec)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, random_in_unit_sphere, reflect, unit_vector, vec3
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.material import ScatterRecord, validate_color


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f64, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Reflect a ray off a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: The perturbation radius in [0, 1].
        ray_in: The incoming ray.
        rec: The hit being shaded.

    Returns:
        A ScatterRecord with attenuation equal to albedo. ``did_scatter`` is 0
        when the perturbed direction does not point away from the surface.
    """
    reflected = reflect(unit_vector(ray_in.direction), rec.normal)
    direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 0
    if tm.dot(direction, rec.normal) > 0.0:
        did_scatter = 1

    return ScatterRecord(
        did_scatter=did_scatter,
        attenuation=albedo,
        scattered=make_ray(rec.point, direction),
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 512

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Add a metal material to the registry.

    Args:
        albedo: The reflective color as (R, G, B), each in [0, 1].
        fuzz: The perturbation radius in [0, 1]. Default is a perfect mirror.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component or the fuzz is outside [0, 1].
    """
    validate_color("albedo", albedo)

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off the metal material stored at ``material_idx``."""
    return scatter_metal(metal_albedos[material_idx], metal_fuzzes[material_idx], ray_in, rec)
