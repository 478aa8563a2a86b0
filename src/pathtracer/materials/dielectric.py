"""Dielectric (glass/water) material implementation.

This module implements the dielectric material, which models transparent
surfaces with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when eta * sin(theta) > 1

The total internal reflection test always runs before the refraction formula;
past that test the material picks reflection with probability equal to the
Schlick reflectance and refraction otherwise, using a single uniform draw.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, rng
    >>> # )
"""

import math

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    reflect,
    refract,
    schlick_fresnel,
)
from pathtracer.core.rng import rand_f32

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Return n_incident / n_transmitted for a hit on a dielectric.

    Entering from outside (front_face=1) gives 1/ior; leaving gives ior.
    """
    eta = 1.0 / ior
    if front_face == 0:
        eta = ior
    return eta


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The surface normal (unit length, facing the incoming ray).
        front_face: 1 if the ray hits the outside of the surface.

    Returns:
        1 if refraction is impossible, 0 otherwise.
    """
    eta = refraction_ratio(ior, front_face)
    cos_theta = tm.min(tm.dot(-tm.normalize(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    result = 0
    if eta * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute the Schlick reflectance for a hit on a dielectric."""
    eta = refraction_ratio(ior, front_face)
    cos_theta = tm.min(tm.dot(-tm.normalize(incident_direction), normal), 1.0)
    return schlick_fresnel(cos_theta, eta)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The surface normal (unit length, facing the incoming ray).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it is leaving the material.
        rng: Generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: The reflected or refracted direction (unit).
        - attenuation: White; clear glass absorbs nothing.
        - did_scatter: Always 1.
        - rng: The advanced generator state. No value is drawn on total
          internal reflection.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    eta = refraction_ratio(ior, front_face)
    unit_direction = tm.normalize(incident_direction)

    rng_out = rng
    scattered_direction = vec3(0.0, 0.0, 0.0)
    if will_reflect(ior, incident_direction, normal, front_face):
        # Total internal reflection
        scattered_direction = reflect(unit_direction, normal)
    else:
        u, rng_out = rand_f32(rng)
        if u < fresnel_reflectance(ior, incident_direction, normal, front_face):
            scattered_direction = reflect(unit_direction, normal)
        else:
            scattered_direction = refract(unit_direction, normal, eta)

    did_scatter = 1

    return scattered_direction, attenuation, did_scatter, rng_out


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Must be
            positive and finite. Values below 1 are accepted and model a
            medium optically thinner than its surroundings.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not a positive finite number.
    """
    if not math.isfinite(ior) or ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not a positive finite number."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Scatter off a registered dielectric material.

    Looks up the IOR from the registry and calls scatter_dielectric.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face, rng)
