#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

This script demonstrates end-to-end rendering with the path tracer. It builds
a preset scene, sets up the camera, renders with progressive refinement and
writes the result as PPM (P6) or PNG depending on the output extension.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH         Image width in pixels (default: 200)
    --height HEIGHT       Image height in pixels (default: 100)
    --samples SAMPLES     Number of samples per pixel (default: 100)
    --max-depth DEPTH     Maximum path depth (default: 50)
    --seed SEED           Render seed; also lays out the random scene (default: 0)
    --scene NAME          three_spheres, materials or random (default: three_spheres)
    --output OUTPUT       Output file path (default: result.ppm)
    --batch-size SIZE     Samples per progress update (default: 10)
    --cpu                 Force the CPU backend
    --show                Show the result in a Matplotlib window
    --quiet               Suppress progress output

Example:
    python -m examples.render_scene --scene random --width 600 --height 400 --samples 50
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_NAMES = ("three_spheres", "materials", "random")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=200,
        help="Image width in pixels (default: 200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=100,
        help="Image height in pixels (default: 100)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum path depth (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Render seed; also lays out the random scene (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="three_spheres",
        help="Preset scene to render (default: three_spheres)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="result.ppm",
        help="Output file path, .ppm or .png (default: result.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    scene_name: str = "three_spheres",
    width: int = 200,
    height: int = 100,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "result.ppm",
    batch_size: int = 10,
    show: bool = False,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save to file.

    Args:
        scene_name: Name of the preset scene.
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum path depth.
        seed: Render seed (and layout seed for the random scene).
        output_path: Output file path (.ppm or .png).
        batch_size: Number of samples to render between progress updates.
        show: If True, display the result with Matplotlib after saving.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer, RenderConfig
    from pathtracer.preview.export import save_image
    from pathtracer.scene.presets import create_scene

    config = RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{height})...")

    scene, camera = create_scene(scene_name, config.aspect_ratio, seed=seed)
    setup_camera(camera)

    if not quiet:
        print(f"  {scene.get_sphere_count()} spheres, {scene.get_material_count()} materials")

    renderer = ProgressiveRenderer.from_config(config)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel (max depth {max_depth})...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=config.samples_per_pixel,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_image(renderer.get_rgb8(), output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    if show:
        from pathtracer.preview.display import show_preview

        show_preview(renderer, title=f"{scene_name} - {renderer.sample_count} SPP")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")
    else:
        try:
            ti.init(arch=ti.gpu)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu)
            if not args.quiet:
                print("Using CPU backend")

    try:
        render_scene(
            scene_name=args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            show=args.show,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
