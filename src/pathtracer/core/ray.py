"""Ray data structure and vector algebra for the path tracer.

Vectors, points and RGB colors all share the f64 ``vec3`` type. Every function
returns a new value; nothing is mutated in place. All functions are Taichi
functions and are meant to be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# 3D vectors in double precision. taichi.math.vec3 is bound to the default
# float type at import time, so it stays f32 even under default_fp=ti.f64.
vec3 = ti.types.vector(3, ti.f64)

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Cap on rejection-sampling attempts before falling back to a fixed sample
MAX_REJECTION_ATTEMPTS = 64


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Not required to be unit
            length; intersection code divides by its squared length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point ``origin + t * direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Algebra
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f64:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The caller guarantees a non-zero length; a zero vector yields NaNs.
    """
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component is below NEAR_ZERO_EPSILON in magnitude."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect ``v`` about the unit normal ``n``: ``v - 2 (v . n) n``.

    Applying the reflection twice with the same normal restores ``v``.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted direction is split into a part perpendicular to the normal,
    which scales with the index ratio, and a part parallel to it, which keeps
    the result at unit length.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal (unit length, pointing against ``uv``).
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted direction. Only meaningful when total internal
        reflection does not occur (``etai_over_etat * sin_theta <= 1``).
    """
    cos_theta = tm.min(-tm.dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


# =============================================================================
# Random Sampling
# =============================================================================


@ti.func
def random_float(lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Draw a uniform sample from ``[lo, hi)``."""
    return lo + (hi - lo) * ti.random(ti.f64)


@ti.func
def random_vec3(lo: ti.f64, hi: ti.f64) -> vec3:
    """Draw a vector with each component uniform in ``[lo, hi)``."""
    return vec3(random_float(lo, hi), random_float(lo, hi), random_float(lo, hi))


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point strictly inside the unit ball.

    Rejection sampling from the enclosing cube. Each attempt is accepted with
    probability pi/6, so the loop terminates quickly in expectation; after
    MAX_REJECTION_ATTEMPTS misses a fixed interior point is returned.
    """
    p = vec3(0.5, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = random_vec3(-1.0, 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector (normalized point in the unit ball)."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point ``(x, y, 0)`` with ``x^2 + y^2 < 1``.

    Same capped rejection scheme as random_in_unit_sphere(); the fallback is
    the disk center.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(random_float(-1.0, 1.0), random_float(-1.0, 1.0), 0.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p
