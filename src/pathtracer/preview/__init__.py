"""Preview module for output and visualization.

Components:
    export: 8-bit color transform, PPM and PNG writers, image statistics
    display: Matplotlib-based static preview

Example:
    >>> from pathtracer.preview import save_ppm, to_rgb8
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 200)
    >>> renderer.render(100)
    >>> save_ppm(to_rgb8(renderer.get_image_numpy()), "output.ppm")
"""

from pathtracer.preview.display import show_comparison, show_preview
from pathtracer.preview.export import (
    compute_rmse,
    encode_ppm,
    save_image,
    save_png,
    save_ppm,
    to_rgb8,
)

__all__ = [
    # Display functions
    "show_preview",
    "show_comparison",
    # Export functions
    "to_rgb8",
    "encode_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
