"""Materials module for surface scattering models.

This module implements the three surface behaviors of the renderer:

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzziness
    dielectric: Glass-like materials with refraction (Schlick Fresnel)

Each material provides a scatter function with the same shape:
    scattered_direction, attenuation, did_scatter, rng = scatter_xxx(..., rng)

did_scatter == 0 means the ray was absorbed. The generator state is passed in
and returned advanced; see pathtracer.core.rng.

Each material type also keeps a registry of parameters in Taichi fields,
indexed by a type-local index. The scene manager maps unified material IDs to
(type, index) pairs for dispatch in the path tracer.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "refraction_ratio",
    "will_reflect",
]
