"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, HitRecord and ray-sphere intersection

Intersection routines are Taichi functions following the pattern:
    record = hit_shape(ray, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, face_normal, hit_sphere, make_sphere, miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "miss_record",
    "face_normal",
]
