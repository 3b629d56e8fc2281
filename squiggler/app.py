"""Squiggler command line - Main entry point."""

import argparse
import logging
import random
import sys
from pathlib import Path

from squiggler.config_manager import ConfigManager, apply_query
from squiggler.errors import ProcessingCancelled, SquigglerError
from squiggler.image_processing import ImageProcessor, extract_all_color_groups
from squiggler.models import ImageFile, ProcessingMode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="squiggler",
        description="Convert an image into a squiggle SVG for pen plotters.",
    )
    parser.add_argument("input", type=Path, help="Source image (PNG, JPG, ...)")
    parser.add_argument("-o", "--output", type=Path, help="Output SVG (default: INPUT.svg)")
    parser.add_argument("--config", type=Path, help="Settings JSON to start from")
    parser.add_argument("--share", help="Share string (query) layered over the settings")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ProcessingMode],
        help="Color processing mode",
    )
    parser.add_argument("--rows", type=int, help="Grid rows (4-200)")
    parser.add_argument("--cols", type=int, help="Grid columns (4-200)")
    parser.add_argument("--colors", type=int, help="Palette size for grayscale/posterize")
    parser.add_argument("--min-density", type=int)
    parser.add_argument("--max-density", type=int)
    parser.add_argument("--threshold", type=int, help="Brightness threshold (0-255)")
    parser.add_argument("--color", help="Stroke color for monochrome mode")
    parser.add_argument("--straight", action="store_true", help="Straight lines instead of curves")
    parser.add_argument(
        "--individual", action="store_true", help="One path per tile instead of stitched paths"
    )
    parser.add_argument(
        "--split-groups", type=Path, metavar="DIR", help="Also write one SVG per color group"
    )
    parser.add_argument("--seed", type=int, help="Seed for reproducible random shifts")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def build_settings(args: argparse.Namespace):
    manager = ConfigManager(args.config) if args.config else ConfigManager()
    settings = manager.load()
    if args.share:
        settings = apply_query(settings, args.share)

    overrides = {
        "processing_mode": ProcessingMode(args.mode) if args.mode else None,
        "rows_count": args.rows,
        "columns_count": args.cols,
        "colors_amt": args.colors,
        "min_density": args.min_density,
        "max_density": args.max_density,
        "brightness_threshold": args.threshold,
        "monochrome_color": args.color,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)

    if args.straight:
        settings.curved_paths = False
    if args.individual:
        settings.continuous_paths = False
    return settings


def write_group_files(svg_text: str, directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for index, (key, group_svg) in enumerate(extract_all_color_groups(svg_text).items(), 1):
        safe_key = "".join(c if c.isalnum() else "_" for c in key).strip("_")
        path = directory / f"{index:02d}_{safe_key}.svg"
        path.write_text(group_svg, encoding="utf-8")
        print(f"  wrote {path}")


def print_progress(progress: float, status: str) -> bool:
    print(f"[{progress * 100:5.1f}%] {status}")
    return False


def main(argv: "list[str] | None" = None) -> int:
    """Run the squiggler command line."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    output = args.output or args.input.with_suffix(".svg")
    rng = random.Random(args.seed)

    try:
        settings = build_settings(args)
        processor = ImageProcessor(settings, rng)
        processed, svg_text = processor.process(ImageFile(args.input), progress=print_progress)
    except ProcessingCancelled:
        print("Cancelled.", file=sys.stderr)
        return 130
    except SquigglerError as e:
        logger.debug("Processing failed", exc_info=True)
        print(f"Error: {e.user_message} ({e.code}: {e.message})", file=sys.stderr)
        return 1

    output.write_text(svg_text, encoding="utf-8")
    print(f"Saved {output}")

    for key, (paths, vertices, length) in processor.path_statistics(processed).items():
        name = processed.color_groups[key].display_name
        print(f"  {name}: {paths} paths, {vertices} vertices, {length:.0f} px")

    if args.split_groups:
        write_group_files(svg_text, args.split_groups)

    return 0


if __name__ == "__main__":
    sys.exit(main())
