"""Sphere primitive, hit records and ray-sphere intersection.

Every hittable primitive answers ``hit(ray, t_min, t_max)`` with a HitRecord.
The record's ``hit`` flag is 1 only when the ray meets the surface at a
parameter strictly inside ``(t_min, t_max)``; otherwise the record is a miss
and its remaining fields carry no meaning.

The quadratic is solved with the robust formulation from Ray Tracing Gems to
avoid catastrophic cancellation when ``h^2`` is close to ``a*c``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import vec3
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at, vec3


@ti.dataclass
class Sphere:
    """A sphere with a shared material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius. Non-positive radii never report a hit.
        material_id: Unified material ID, shared with any other primitive
            using the same material.
    """

    center: vec3
    radius: ti.f64
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Result of a ray-surface intersection test.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 for a miss.
        t: Ray parameter of the intersection.
        point: The intersection point, ``ray_at(ray, t)``.
        normal: Unit surface normal, always facing against the incoming ray.
        front_face: 1 if the ray struck the outward-facing side, 0 if it
            struck the surface from inside.
        material_id: Material of the surface that was hit.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal): front_face is 1 when the ray travels
        against the outward normal; normal is the outward normal on the front
        face and its negation on the back face.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def _solve_quadratic_robust(h: ti.f64, a: ti.f64, c: ti.f64, sqrt_d: ti.f64):
    """Solve ``a*t^2 + 2*h*t + c = 0`` given ``sqrt(h^2 - a*c)``.

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0
    if ti.abs(q) < 1e-10:
        # Fall back to the textbook formula for the tangent case
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Intersect a ray with a sphere.

    Solves ``|O + t*D - C|^2 = r^2``, written with the half-b coefficients

        a = D . D
        h = D . (O - C)
        c = |O - C|^2 - r^2

    The nearer root is tried first and the farther one only if the nearer
    root lies outside ``(t_min, t_max)``.

    Args:
        ray: The ray to test. Its direction need not be unit length.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound on the accepted ray parameter.
        t_max: Exclusive upper bound on the accepted ray parameter.

    Returns:
        A HitRecord; check ``hit`` before reading the other fields.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    result = miss_record()

    if sphere.radius > 0.0 and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f64, material_id: ti.i32) -> Sphere:
    """Create a sphere inside a kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
