"""Ready-made scenes with matching cameras.

Each factory clears the global scene, builds its spheres through a new
SceneManager and returns (scene, camera). The camera still has to be passed
to setup_camera before rendering.

Scenes:
    three_spheres: Two small diffuse spheres over a large ground sphere, seen
        through a fixed 90 degree viewport. The smallest useful scene.
    materials: One sphere of each material, including a hollow glass bubble
        made from a negative-radius sphere inside a positive one.
    random: A ground sphere, a seeded grid of small random spheres and three
        large feature spheres, with a depth-of-field camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_three_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_sphere_scene()
    >>> setup_camera(camera)
"""

import math
import random
from collections.abc import Callable

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

# Albedo of the spheres in the three-sphere scene
DEFAULT_ALBEDO = (0.5, 0.5, 0.5)

# Grid of small spheres in the random scene spans [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11


def create_three_sphere_scene(
    aspect_ratio: float = 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create two diffuse spheres resting on a large ground sphere.

    With the default 2:1 aspect ratio the camera reproduces the classic fixed
    viewport: origin at (0, 0, 0), lower-left corner (-2, -1, -1), horizontal
    span (4, 0, 0) and vertical span (0, 2, 0).

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, DEFAULT_ALBEDO)
    scene.add_lambertian_sphere((-2.0, 0.0, -2.0), 0.5, DEFAULT_ALBEDO)
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, DEFAULT_ALBEDO)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )
    return scene, camera


def create_material_showcase_scene(
    aspect_ratio: float = 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a row of diffuse, metal and hollow-glass spheres.

    The glass sphere on the left contains a slightly smaller sphere with a
    negative radius and the same index of refraction. Its normals point
    inward, so together the two surfaces form a thin glass shell.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.1, 0.2, 0.5))
    scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, ior=1.5)
    scene.add_dielectric_sphere((-1.0, 0.0, -1.0), -0.45, ior=1.5)
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.1)

    camera = ThinLensCamera(
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_random_scene(
    seed: int = 0,
    aspect_ratio: float = 3.0 / 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a large ground sphere covered in small random spheres.

    Small spheres of radius 0.2 sit on a jittered grid. Each gets a diffuse
    material (80%), a metal (15%) or glass (5%). Spheres that would overlap
    the large metal sphere at (4, 1, 0) are skipped. The layout depends only
    on ``seed``.

    Args:
        seed: Seed for the scene layout (independent of the render seed).
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    rng = random.Random(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, albedo=(0.5, 0.5, 0.5))

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if math.dist(center, (4.0, 0.2, 0.0)) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = tuple(rng.random() * rng.random() for _ in range(3))
                scene.add_lambertian_sphere(center, 0.2, albedo)
            elif choose_mat < 0.95:
                albedo = tuple(rng.uniform(0.5, 1.0) for _ in range(3))
                scene.add_metal_sphere(center, 0.2, albedo, fuzz=rng.uniform(0.0, 0.5))
            else:
                scene.add_dielectric_sphere(center, 0.2, ior=1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


# Scene name -> factory(aspect_ratio, seed)
SCENES: dict[str, Callable[[float, int], tuple[SceneManager, ThinLensCamera]]] = {
    "three_spheres": lambda aspect, seed: create_three_sphere_scene(aspect),
    "materials": lambda aspect, seed: create_material_showcase_scene(aspect),
    "random": lambda aspect, seed: create_random_scene(seed, aspect),
}


def create_scene(
    name: str,
    aspect_ratio: float,
    seed: int = 0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build a preset scene by name.

    Raises:
        ValueError: If the name is not one of SCENES.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene {name!r}; choose from {', '.join(sorted(SCENES))}"
        ) from None
    return factory(aspect_ratio, seed)
