"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere storage and the nearest-hit scan
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes with matching cameras

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - A unified material ID space mapped to (type, type-local index)
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import (
    SCENES,
    create_material_showcase_scene,
    create_random_scene,
    create_scene,
    create_three_sphere_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets module
    "SCENES",
    "create_scene",
    "create_three_sphere_scene",
    "create_material_showcase_scene",
    "create_random_scene",
]
