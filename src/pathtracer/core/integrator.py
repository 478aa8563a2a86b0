"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel: recursive path tracing with
material-based scattering against a sky gradient background, and progressive
sample accumulation.

The path tracer estimates the radiance arriving along each camera ray by
bouncing it off surfaces according to their material properties. A path ends
when it escapes to the sky, is absorbed by a surface, or runs out of depth.
The recursion is unrolled into a loop that carries the product of the
attenuations seen so far (the throughput).

Every pixel sample draws its random numbers from a private stream seeded from
(seed, pixel index, sample index), so a render is a pure function of the
scene, the camera, the seed and the sample count.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from pathtracer.scene.presets import create_three_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_sphere_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 200)
    >>> render_image(num_samples=100)
    >>> image = get_image_numpy()
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.ray import normalize
from pathtracer.core.rng import init_rng, make_seed
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# t_min and t_max for ray intersection; t_min keeps a bounce from re-hitting
# the surface it just left
T_MIN = 1e-4
T_MAX = tm.inf

# Sky gradient endpoints: white at the horizon-down end, blue straight up
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all samples per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_max_depth(max_depth: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


# =============================================================================
# Background
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    A vertical gradient: t = 0.5 * (unit(direction).y + 1) blends linearly
    from white (t = 0) to light blue (t = 1).
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The surface normal (normalized, facing toward ray).
        front_face: 1 if hit front face, 0 if back face.
        rng: Generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
        An unknown material absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    rng_out = rng

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter, rng_out = scatter_lambertian_by_id(
            type_index, normal, rng
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter, rng_out = scatter_metal_by_id(
            type_index, incident_direction, normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter, rng_out = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, rng
        )

    return scattered_direction, attenuation, did_scatter, rng_out


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, rng: ti.u32):
    """Estimate the radiance arriving along a ray.

    Each iteration is one level of the recursion: intersect the scene in
    (T_MIN, T_MAX); on a miss return throughput * sky; on absorption return
    black; otherwise multiply the throughput by the attenuation and continue
    from the hit point along the scattered direction. When max_depth levels
    have been used without reaching the sky, the path contributes black, so
    max_depth <= 0 always gives black.

    Args:
        origin: The starting point of the ray.
        direction: The ray direction (any nonzero length).
        max_depth: Number of intersection tests the path may perform.
        rng: Generator state.

    Returns:
        A tuple of (color, rng).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    rng_out = rng

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, rng_out = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, rng_out
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color, rng_out


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    sample_index: ti.i32,
) -> vec3:
    """Render a single jittered sample for a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum path depth.
        seed: Render-wide seed.
        sample_index: Which sample of this pixel is being taken.

    Returns:
        The estimated radiance (RGB) for this sample.
    """
    rng = init_rng(seed, pixel_i + pixel_j * width, sample_index)
    ray, rng = get_ray_jittered(pixel_i, pixel_j, width, height, rng)
    color, rng = ray_color(ray.origin, ray.direction, max_depth, rng)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, seed: ti.u32):
    """Render one sample per pixel and accumulate.

    Each pixel's sample index is its current sample count, so repeated calls
    continue the same per-pixel sequence of streams.
    """
    for i, j in ti.ndrange(width, height):
        color = render_sample_impl(i, j, width, height, max_depth, seed, _sample_count[i, j])
        _color_sum[i, j] += color
        _sample_count[i, j] += 1


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    sample_index: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel without accumulating."""
    return render_sample_impl(pixel_i, pixel_j, width, height, max_depth, seed, sample_index)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    sample_index: int = 0,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel. The result is
    exactly the value render_image() adds for that pixel when it takes sample
    number sample_index with the same seed.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum path depth.
        seed: Render-wide seed.
        sample_index: Which sample of this pixel to take.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If max_depth is negative.
    """
    _check_render_target_initialized()
    _check_max_depth(max_depth)

    width, height = get_image_dimensions()
    color = _render_single_pixel(
        pixel_i, pixel_j, width, height, max_depth, make_seed(seed), sample_index
    )

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH, seed: int = 0) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum path depth.
        seed: Render-wide seed.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If max_depth is negative.
    """
    _check_render_target_initialized()
    _check_max_depth(max_depth)

    width, height = get_image_dimensions()
    seed_u32 = make_seed(seed)

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, seed_u32)


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the averaged linear-radiance image as a NumPy array.

    Each pixel is the sum of its samples divided by the sample count; pixels
    without samples are black. The array is in image order: shape
    (height, width, 3), first row at the top, dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    image = color_sum / np.maximum(counts, 1)[:, :, np.newaxis]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
