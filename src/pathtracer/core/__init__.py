"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    rng: Explicit per-sample random number streams
    ray: Ray data structure, vector utilities and direction samplers
    vector: Python-side vector validation for scene and camera construction
    integrator: The recursive radiance estimator and sample kernels
    progressive: Render configuration and progressive sample accumulation

The core module estimates the rendering equation with Monte Carlo path
tracing: camera rays bounce through diffuse, metal and glass surfaces until
they escape to the sky gradient, are absorbed, or run out of depth.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    random_in_hemisphere,
    random_in_unit_disk,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .rng import hash_u32, init_rng, make_seed, rand_f32, rand_range
from .vector import as_vector, to_tuple, unit_vector

# Note: integrator and progressive are NOT imported here because they allocate
# Taichi fields at import time. Import them after ti.init():
#   from pathtracer.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "hash_u32",
    "init_rng",
    "make_seed",
    "rand_f32",
    "rand_range",
    "as_vector",
    "to_tuple",
    "unit_vector",
]
