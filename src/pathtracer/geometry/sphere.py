"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the ray-sphere
intersection function. Roots are computed with the robust quadratic formula
from Ray Tracing Gems to avoid catastrophic cancellation when b^2 is nearly
equal to 4ac.

A sphere may have a negative radius. The outward normal (p - center) / radius
then points inward, which turns the sphere into a hollow shell; placing one
inside a glass sphere of the same center models a thin glass bubble.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normals.
        material_id: The unified material ID of the surface.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Only construct through make_hit_record() or make_miss_record(), which keep
    the normal invariant.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The surface normal at the intersection point. Unit length and
            always opposing the incoming ray: dot(ray_direction, normal) <= 0.
        front_face: 1 if the geometric outward normal already opposed the ray
            (ray arriving from outside), 0 otherwise.
        material_id: The material ID of the hit surface, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_hit_record(
    point: vec3,
    outward_normal: vec3,
    t: ti.f32,
    ray_direction: vec3,
    material_id: ti.i32,
) -> HitRecord:
    """Build a hit record, orienting the normal against the incoming ray.

    Args:
        point: The intersection point.
        outward_normal: The geometric normal (any nonzero length).
        t: The ray parameter of the intersection.
        ray_direction: The direction of the incoming ray.
        material_id: The material ID of the hit surface.

    Returns:
        A HitRecord with hit=1, a unit normal opposing ray_direction, and
        front_face set from the outward normal's orientation.
    """
    unit_outward = tm.normalize(outward_normal)
    front_face = 0
    normal = -unit_outward
    if tm.dot(ray_direction, unit_outward) < 0.0:
        front_face = 1
        normal = unit_outward

    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


@ti.func
def make_miss_record() -> HitRecord:
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
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the reduced discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) never subtracts nearly equal values
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the origin of the quadratic: use the textbook form
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
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The intersection solves |origin + t * direction - center|^2 = radius^2,
    i.e. a*t^2 + 2*h*t + c = 0 with:
        oc = origin - center
        a = dot(direction, direction)
        h = dot(direction, oc)  (half of the usual b)
        c = dot(oc, oc) - radius^2

    The reduced discriminant h^2 - a*c has the sign of b^2 - 4ac. The nearer
    root is taken if it lies strictly inside (t_min, t_max), otherwise the far
    root under the same test.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized,
            must be nonzero).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on accepted t (avoids self-intersection).
        t_max: Exclusive upper bound on accepted t (current closest hit).

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction
            # Sign follows the radius, so negative spheres face inward
            outward_normal = (hit_point - sphere.center) / sphere.radius
            result = make_hit_record(
                hit_point, outward_normal, t, ray_direction, sphere.material_id
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material ID."""
    return Sphere(center=center, radius=radius, material_id=material_id)
