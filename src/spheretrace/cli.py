"""Command-line entry point: render a preset scene to an image file.

Usage:
    spheretrace [options]

Example:
    spheretrace --scene random --width 400 --samples 50 --output spheres.png
    spheretrace --scene two-spheres --output - > image.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from spheretrace import __version__
from spheretrace.config import RenderConfig, init_taichi

if TYPE_CHECKING:
    from spheretrace.camera.thin_lens import Camera

logger = logging.getLogger(__name__)

SCENES = ("two-spheres", "showcase", "random")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="spheretrace",
        description="Render a scene of spheres with a stochastic ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="showcase",
        help="Preset scene to render (default: showcase)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: the scene camera's, 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width over height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum ray bounces (default: 10)",
    )
    parser.add_argument(
        "--vfov",
        type=float,
        default=None,
        help="Vertical field of view in degrees (default: the scene camera's)",
    )
    parser.add_argument(
        "--defocus-angle",
        type=float,
        default=None,
        help="Defocus cone angle in degrees, 0 disables depth of field",
    )
    parser.add_argument(
        "--focus-dist",
        type=float,
        default=None,
        help="Distance to the plane of perfect focus",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Render seed, also seeds the random scene (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheretrace.png",
        help="Output file (.ppm or .png), or - for PPM on stdout (default: spheretrace.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _apply_overrides(camera: Camera, args: argparse.Namespace) -> None:
    overrides = {
        "image_width": args.width,
        "aspect_ratio": args.aspect_ratio,
        "samples_per_pixel": args.samples,
        "max_depth": args.max_depth,
        "vfov": args.vfov,
        "defocus_angle": args.defocus_angle,
        "focus_dist": args.focus_dist,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(camera, name, value)


def render_scene(args: argparse.Namespace) -> Path | None:
    """Build the chosen scene, render it and save the image.

    Returns:
        Path to the saved image, or None when written to stdout.
    """
    # Lazy imports: these modules allocate Taichi fields
    from spheretrace.core.scanline import ScanlineRenderer
    from spheretrace.preview.export import save_image
    from spheretrace.scene.presets import (
        create_material_showcase_scene,
        create_random_spheres_scene,
        create_two_spheres_scene,
    )

    if args.scene == "two-spheres":
        scene, camera = create_two_spheres_scene()
    elif args.scene == "showcase":
        scene, camera = create_material_showcase_scene()
    else:
        scene, camera = create_random_spheres_scene(seed=args.seed)

    _apply_overrides(camera, args)

    renderer = ScanlineRenderer(scene, camera, seed=args.seed)
    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not args.quiet:
            print(f"\rScanlines remaining: {total - done} ", end="", file=sys.stderr, flush=True)

    image = renderer.render(callback=progress_callback)

    if not args.quiet:
        print("\rDone.                 ", file=sys.stderr)

    save_image(image, args.output)

    if args.output == "-":
        return None

    output_file = Path(args.output)
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Total time: {time.time() - start_time:.2f}s", file=sys.stderr)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        init_taichi(RenderConfig(arch=args.arch))
        render_scene(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
