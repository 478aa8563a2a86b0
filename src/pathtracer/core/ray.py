"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass, the small set of vector operations the
renderer relies on, the reflection/refraction formulas, and the random direction
samplers used by the camera and the materials. All operations are Taichi
functions, callable from inside kernels.

The samplers take an explicit generator state (see ``pathtracer.core.rng``) and
return it advanced alongside their result, so a caller always threads the same
stream through a whole path.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import rand_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; camera rays in particular are not normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Return v / length(v).

    Undefined for zero-length input. Scene and camera construction reject the
    configurations that could produce one, so kernels never pass a zero vector.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal should be unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector. Its length equals the incident length.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The transmitted direction is split into the component perpendicular to the
    normal, eta * (v + cos_theta * n), and the component parallel to it, whose
    length follows from the transmitted vector being unit length.

    Callers must have ruled out total internal reflection (eta * sin_theta <= 1)
    before calling this.

    Args:
        unit_incident: The incoming direction (normalized).
        normal: The surface normal, opposing the incident direction.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction (unit length).
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    r_out_perp = eta * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, eta: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        eta: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - eta) / (1 + eta))^2.
    """
    r0 = ((1.0 - eta) / (1.0 + eta)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector(rng: ti.u32):
    """Generate a unit vector uniformly distributed on the sphere.

    Samples z uniformly in [-1, 1) and the azimuth uniformly in [0, 2pi);
    by Archimedes' hat-box theorem this is uniform over the sphere and needs
    no rejection loop.

    Returns:
        A tuple of (unit_vector, next_rng).
    """
    phi, rng_out = rand_range(rng, 0.0, 2.0 * tm.pi)
    z, rng_out = rand_range(rng_out, -1.0, 1.0)
    r = ti.sqrt(tm.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z), rng_out


@ti.func
def random_in_hemisphere(normal: vec3, rng: ti.u32):
    """Generate a random unit vector in the hemisphere around a normal.

    A uniform unit vector is kept if it already lies on the normal's side and
    negated otherwise.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        rng: Generator state.

    Returns:
        A tuple of (unit_vector, next_rng).
    """
    on_sphere, rng_out = random_unit_vector(rng)
    result = on_sphere
    if tm.dot(on_sphere, normal) <= 0.0:
        result = -on_sphere
    return result, rng_out


@ti.func
def random_in_unit_disk(rng: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Rejection sampling: draw (x, y) uniformly in [-1, 1]^2 and retry while
    x^2 + y^2 >= 1. Used for depth-of-field lens sampling.

    Returns:
        A tuple of (point, next_rng) where point is (x, y, 0).
    """
    p = vec3(0.0, 0.0, 0.0)
    rng_out = rng
    found = False
    # Acceptance rate is pi/4; if all 100 tries miss (odds below 1e-60) the
    # disk center is returned
    for _ in range(100):
        if not found:
            x, rng_out = rand_range(rng_out, -1.0, 1.0)
            y, rng_out = rand_range(rng_out, -1.0, 1.0)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, rng_out

