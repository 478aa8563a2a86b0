"""Unified scene manager for coordinating spheres and materials.

This module provides the high-level scene building API. It tracks which
material type (Lambertian, Metal, Dielectric) each material ID corresponds to,
which is how the path tracer dispatches scattering: a material is a tag plus an
index into the registry of that tag.

A SceneManager owns one ID space shared by every material type and records,
for each ID, which registry holds the material and at what position. It also
builds spheres together with their materials and round-trips the scene
through plain dictionaries.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_lambertian_sphere((0, -100.5, -1), 100.0, albedo=(0.8, 0.8, 0.0))
    >>> scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)
    >>> scene.add_dielectric_sphere((-1, 0, -1), -0.45, ior=1.5)  # hollow glass
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from pathtracer.core.vector import to_tuple
from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)


class MaterialType(IntEnum):
    """Tag of a material variant; selects the scatter function in kernels."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One registry slot per material ID, three registries of 1024
MAX_MATERIALS = 3072

# Material ID -> MaterialType tag
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# Material ID -> position in that tag's registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Forget every material ID (the per-type registries are cleared separately)."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Look up the MaterialType tag of a material ID, or -1 if it is unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Look up where a material ID lives in its registry, or -1 if it is unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Python-side record of one registered material.

    Attributes:
        material_id: ID shared across all material types.
        material_type: Which registry the material lives in.
        type_index: Position in that registry.
        params: Constructor arguments, normalized to floats and tuples.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Python-side record of one sphere, in insertion order.

    Attributes:
        sphere_index: Slot in the sphere fields.
        center: World-space center.
        radius: Signed radius; negative spheres face inward.
        material_id: Material the sphere scatters with.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene.

    Material entries are listed by material ID, so a sphere entry's
    ``material_id`` is an index into ``materials``.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Unified scene manager coordinating spheres and materials.

    The scene is global Taichi state: creating a SceneManager clears any
    previously built scene. Build the scene completely before rendering; the
    render kernels only read it.

    Attributes:
        materials: MaterialInfo records indexed by material ID.
        spheres: SphereInfo records in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Reset the sphere store, every registry and the Python mirrors."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a type-local registry entry."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
    ) -> int:
        """Register a diffuse material and return its material ID.

        Raises:
            RuntimeError: If no material IDs are left.
            ValueError: If any albedo channel is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": to_tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal and return its material ID.

        Args:
            albedo: Reflected color, each channel in [0, 1].
            fuzz: Radius of the perturbation added to the mirror direction,
                in [0, 1]. 0 is a perfect mirror.

        Raises:
            RuntimeError: If no material IDs are left.
            ValueError: If an albedo channel or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": to_tuple(albedo), "fuzz": float(fuzz)}
        )

    def add_dielectric_material(
        self,
        ior: float = 1.5,
    ) -> int:
        """Register a clear refractive material and return its material ID.

        ``ior`` is relative to the surrounding medium; 1.5 is glass, 1.33
        water. Values below 1 describe a bubble in a denser medium.

        Raises:
            RuntimeError: If no material IDs are left.
            ValueError: If ior is not a positive finite number.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(
            MaterialType.DIELECTRIC, type_index, {"ior": float(ior)}
        )

    def get_material_count(self) -> int:
        """Number of material IDs handed out so far."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the record for a material ID, or None if it was never issued."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Python-side counterpart of the get_material_type kernel lookup."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Append a sphere that scatters with an existing material.

        A negative radius flips the outward normal, which turns the sphere
        into the inner wall of a hollow shell; a zero radius is rejected.

        Returns:
            The sphere's slot, equal to the number of spheres added before it.

        Raises:
            RuntimeError: If the sphere store is full.
            ValueError: If material_id was not issued by this scene, or the
                center or radius is not usable.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(center, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=to_tuple(center),
                radius=float(radius),
                material_id=material_id,
            )
        )

        return sphere_index

    # =========================================================================
    # Convenience Methods (add sphere with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a diffuse sphere with its own material; returns (sphere, material) IDs."""
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a metal sphere with its own material; returns (sphere, material) IDs."""
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a glass sphere with its own material; returns (sphere, material) IDs."""
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Number of spheres in the global store."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Snapshot the scene as a SceneConfig with lowercase type names and lists."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {
                "type": mat.material_type.name.lower(),
            }
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by ``config``.

        Missing keys fall back to the constructor defaults.

        Raises:
            ValueError: On an unknown material type or any value the
                add_* methods reject.
        """
        self.clear()

        # Materials first, so sphere material IDs resolve
        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                albedo = to_tuple(mat_config.get("albedo", [0.5, 0.5, 0.5]))
                self.add_lambertian_material(albedo)
            elif mat_type == "metal":
                albedo = to_tuple(mat_config.get("albedo", [0.8, 0.8, 0.8]))
                self.add_metal_material(albedo, mat_config.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            center = to_tuple(sphere_config.get("center", [0.0, 0.0, 0.0]))
            radius = sphere_config.get("radius", 1.0)
            material_id = sphere_config.get("material_id", 0)
            self.add_sphere(center, radius, material_id)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Capacity of the sphere store."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Total material IDs available across all types."""
        return MAX_MATERIALS
