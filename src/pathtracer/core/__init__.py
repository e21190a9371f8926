"""Core rendering module.

Components:
    ray: Ray data structure, vector algebra and random sampling helpers
    integrator: The recursive radiance estimator (ray_color) and the
        per-pixel Monte Carlo sampler with gamma correction
    progressive: Batched sample accumulation with progress reporting

The estimator follows scattered paths through the scene until they are
absorbed, escape to the sky, or exhaust the bounce budget.
"""

from .ray import (
    MAX_REJECTION_ATTEMPTS,
    NEAR_ZERO_EPSILON,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    unit_vector,
    vec3,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "dot",
    "cross",
    "unit_vector",
    "near_zero",
    "reflect",
    "refract",
    "random_float",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "NEAR_ZERO_EPSILON",
    "MAX_REJECTION_ATTEMPTS",
]
