"""Image processing pipeline for image-to-squiggle conversion.

AIDEV-NOTE: This package handles the complete pipeline from source image
to SVG text. Organized into modular components:
- processor: Main ImageProcessor orchestrator
- sampling: Grid downsampling and brightness
- colors / quantization: Color math and K-means palettes
- classifiers: Monochrome, grayscale, posterize and CMYK strategies
- paths: Zigzag vertices and continuous path stitching
- curves: Line and Bezier path data
- svg_builder: SVG assembly and color group extraction
"""

from .processor import (
    ImageProcessor,
    render_svg,
    render_svg_progressively,
    run_in_background,
    sample_and_classify,
)
from .progress import CancelToken
from .svg_builder import (
    extract_all_color_groups,
    extract_color_group_svg,
    generate_svg,
    generate_svg_progressively,
)

__all__ = [
    "CancelToken",
    "ImageProcessor",
    "extract_all_color_groups",
    "extract_color_group_svg",
    "generate_svg",
    "generate_svg_progressively",
    "render_svg",
    "render_svg_progressively",
    "run_in_background",
    "sample_and_classify",
]
