"""Image export utilities for rendered images.

This module turns averaged linear radiance into 8-bit pixels and writes them
to disk.

The color transform is fixed: per channel take the square root (gamma 2),
clamp to [0, 0.9999], multiply by 255.9 and truncate. That maps [0, 1) onto
all 256 output levels with no level getting a double-width bucket.

Supported formats:
    - PPM (binary P6, written directly)
    - PNG (8-bit via Pillow)

Example:
    >>> from pathtracer.preview.export import save_ppm, to_rgb8
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 200)
    >>> renderer.render(100)
    >>> save_ppm(to_rgb8(renderer.get_image_numpy()), "output.ppm")
"""

from __future__ import annotations

import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Upper clamp keeps 1.0 from landing on 256 after scaling
MAX_INTENSITY = 0.9999
SCALE = 255.9


def to_rgb8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit output pixels.

    Args:
        image: Linear radiance array of shape (H, W, 3).

    Returns:
        Array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array is not (H, W, 3) or contains NaN or infinity.
    """
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    if not np.all(np.isfinite(image)):
        bad = int(np.count_nonzero(~np.isfinite(image)))
        raise ValueError(f"Image contains {bad} non-finite channel values")

    # Stay in float32 so truncation lands on the same level as an f32 pipeline
    linear = np.maximum(image.astype(np.float32), np.float32(0.0))
    clamped = np.clip(np.sqrt(linear), np.float32(0.0), np.float32(MAX_INTENSITY))
    return (clamped * np.float32(SCALE)).astype(np.uint8)


def encode_ppm(pixels: npt.NDArray[np.uint8]) -> bytes:
    """Encode 8-bit RGB pixels as a binary PPM (P6) image.

    Args:
        pixels: Array of shape (H, W, 3), first row at the top.

    Returns:
        The header b"P6\\n{W} {H}\\n255\\n" followed by the raw row-major
        RGB bytes.

    Raises:
        ValueError: If the array is not (H, W, 3) uint8.
    """
    if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(
            f"Expected an (H, W, 3) uint8 array, got {pixels.dtype} {pixels.shape}"
        )
    height, width = pixels.shape[:2]
    header = f"P6\n{width} {height}\n255\n".encode("ascii")
    return header + np.ascontiguousarray(pixels).tobytes()


def save_ppm(pixels: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Write 8-bit RGB pixels to a binary PPM file.

    Raises:
        ValueError: If the array is not (H, W, 3) uint8.
        OSError: If the file cannot be written.
    """
    data = encode_ppm(pixels)
    with open(filepath, "wb") as f:
        f.write(data)


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Write 8-bit RGB pixels to a PNG file using Pillow.

    Raises:
        OSError: If the file cannot be written.
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels), mode="RGB")
    pil_image.save(filepath, format="PNG")


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Write pixels as PPM or PNG depending on the file extension.

    ".ppm" writes P6; anything else is handed to Pillow as PNG.
    """
    if os.fspath(filepath).lower().endswith(".ppm"):
        save_ppm(pixels, filepath)
    else:
        save_png(pixels, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
