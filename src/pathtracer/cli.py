"""Command-line renderer.

Renders the random sphere field (or a scene loaded from JSON) and writes
the image as PPM or PNG. Progress goes to stderr so that PPM output on
stdout stays clean.

Usage:
    pathtracer [options]
    python -m pathtracer.cli [options]

Example:
    pathtracer --width 200 --samples 20 --output spheres.png
    pathtracer --samples 10 > image.ppm
"""

import argparse
import sys
import time
from pathlib import Path

from pathtracer.config import (
    ARCHS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SAMPLES_PER_PIXEL,
    DEFAULT_WIDTH,
    RenderSettings,
    init_runtime,
)

DEFAULT_OUTPUT = "-"
DEFAULT_BATCH_SIZE = 10
DEFAULT_EXTENT = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Image height in pixels (default: width / 1.5)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=DEFAULT_SAMPLES_PER_PIXEL,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES_PER_PIXEL})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum bounces per path (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for sampling (default: 0)",
    )
    parser.add_argument(
        "--scene-seed",
        type=int,
        default=None,
        help="Seed for the random scene layout (default: fresh entropy)",
    )
    parser.add_argument(
        "--extent",
        type=int,
        default=DEFAULT_EXTENT,
        help=f"Half-extent of the random sphere grid, 0-11 (default: {DEFAULT_EXTENT})",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Load the scene from a JSON file instead of generating one",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help="Output file path, .ppm or .png; '-' writes PPM to stdout (default: -)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Samples per progress update (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHS),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=1,
        help="CPU threads for the pixel loop (default: 1)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Build RenderSettings from parsed arguments."""
    return RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        arch=args.arch,
        num_threads=args.threads,
    )


def _log(message: str, quiet: bool, end: str = "\n") -> None:
    if not quiet:
        print(message, end=end, file=sys.stderr, flush=True)


def render(args: argparse.Namespace, settings: RenderSettings) -> None:
    """Build the scene, render it and write the image.

    Must run after :func:`init_runtime`.
    """
    # Lazy imports: these modules declare Taichi fields
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.random_scene import create_random_scene, default_camera

    quiet = args.quiet

    if args.scene is not None:
        _log(f"Loading scene from {args.scene}...", quiet)
        scene = SceneManager()
        scene.load_json(args.scene)
        camera = default_camera(settings.aspect_ratio)
    else:
        _log(f"Creating random scene (extent {args.extent})...", quiet)
        scene, camera = create_random_scene(
            seed=args.scene_seed,
            extent=args.extent,
            aspect_ratio=settings.aspect_ratio,
        )

    setup_camera(camera)
    renderer = ProgressiveRenderer(settings.width, settings.height, max_depth=settings.max_depth)

    _log(
        f"Rendering {scene.get_sphere_count()} spheres at {settings.width}x{settings.height}, "
        f"{settings.samples_per_pixel} samples per pixel...",
        quiet,
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        _log(
            f"\r  Samples remaining: {target - current:>5} ({samples_per_sec:.1f} spp/s)",
            quiet,
            end="",
        )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=args.batch_size,
        callback=progress_callback,
    )
    _log("", quiet)

    renderer.save_image(args.output)

    total_time = time.time() - start_time
    if args.output != DEFAULT_OUTPUT:
        _log(f"Saved to: {Path(args.output).absolute()}", quiet)
    _log(f"Done in {total_time:.2f}s", quiet)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        settings = settings_from_args(args)
        init_runtime(settings, quiet=args.quiet)
        render(args, settings)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
