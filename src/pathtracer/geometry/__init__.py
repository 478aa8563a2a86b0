"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) so they can run inside
the render kernels. Every successful intersection produces a HitRecord whose
normal is unit length and faces against the incoming ray:
    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_hit_record,
    make_miss_record,
    make_sphere,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_hit_record",
    "make_miss_record",
    "make_sphere",
]
