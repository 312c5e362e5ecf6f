"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) that take a Ray and
an Interval of valid ray parameters and return a HitRecord:
    rec = hit_sphere(ray, ray_t, sphere)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
    "set_face_normal",
]
