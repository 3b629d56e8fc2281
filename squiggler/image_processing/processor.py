"""Main image processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from source image to
SVG text: dimension planning, grid sampling, color classification, path
synthesis and SVG assembly. Every stage is a pure function of its inputs;
the processor only wires them together, reports progress and turns
unexpected failures into SquigglerErrors.
"""

import logging
import random
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError

from squiggler import config_manager
from squiggler.errors import (
    ImageLoadError,
    ImageProcessingError,
    SquigglerError,
    SVGGenerationError,
)
from squiggler.models import (
    ImageFile,
    ImagePixels,
    ImageSource,
    ProcessedImage,
    ProcessingMode,
    Settings,
    SvgChunk,
)

from .classifiers import classify
from .paths import group_runs
from .progress import CancelToken, ProgressCallback, ProgressReporter
from .quantization import PaletteCache, RandomSource, extract_palette
from .sampling import sample_pixels
from .svg_builder import generate_svg, generate_svg_progressively
from .utils import calculate_total_length, count_vertices, plan_dimensions

logger = logging.getLogger(__name__)


class ImageProcessor:
    """Processes images into squiggle SVG drawings."""

    def __init__(
        self,
        settings: Settings | None = None,
        rng: RandomSource | None = None,
        palette_cache: PaletteCache | None = None,
    ):
        self.settings = settings or Settings()
        self.rng = rng or random.Random()
        self.palette_cache = palette_cache

    def load_image(self, source: ImageSource) -> Image.Image:
        """Load and validate a source image.

        Args:
            source: Image file on disk or an already decoded image

        Returns:
            PIL Image in RGBA mode

        Raises:
            ImageLoadError: If the image cannot be read or decoded
        """
        match source:
            case ImageFile(path=path):
                try:
                    with Image.open(path) as opened:
                        # AIDEV-NOTE: Always convert to RGBA for consistent processing
                        image = opened.convert("RGBA")
                except (OSError, UnidentifiedImageError) as e:
                    raise ImageLoadError(f"Failed to load image {path}: {e}") from e
            case ImagePixels(image=decoded):
                image = decoded if decoded.mode == "RGBA" else decoded.convert("RGBA")
            case _:
                raise TypeError(f"Unsupported image source: {type(source).__name__}")

        if image.width == 0 or image.height == 0:
            raise ImageLoadError("Image has no pixels")
        return image

    def sample_and_classify(
        self,
        source: ImageSource,
        reporter: ProgressReporter | None = None,
    ) -> ProcessedImage:
        """Sample the source onto the grid and classify it into color groups.

        Raises:
            SettingsValidationError: If the settings are out of bounds
            ImageLoadError: If the source cannot be loaded
            ImageProcessingError: If any later stage fails
            ProcessingCancelled: If cancelled at a milestone
        """
        reporter = reporter or ProgressReporter()
        settings = self.settings
        config_manager.validate_settings(settings)

        image = self.load_image(source)
        reporter.report(0.05, "Image loaded")

        try:
            plan = plan_dimensions(
                image.width, image.height, settings.columns_count, settings.rows_count
            )

            palette = None
            if settings.processing_mode is ProcessingMode.POSTERIZE:
                palette = extract_palette(
                    image, settings.colors_amt, self.rng, self.palette_cache
                )
                reporter.report(0.15, "Palette extracted")

            pixels = sample_pixels(
                image,
                settings.columns_count,
                settings.rows_count,
                settings.brightness_threshold,
                settings.processing_mode,
                palette,
            )
            reporter.report(0.3, "Sampling done")

            processed = ProcessedImage(
                width=settings.columns_count,
                height=settings.rows_count,
                pixels=pixels,
                original_width=image.width,
                original_height=image.height,
                resized_width=settings.columns_count,
                resized_height=settings.rows_count,
                output_width=plan.output_width,
                output_height=plan.output_height,
                tile_width=plan.tile_width,
                tile_height=plan.tile_height,
            )
            processed.color_groups = classify(processed, settings, self.rng, palette)
        except SquigglerError:
            raise
        except Exception as e:
            raise ImageProcessingError(f"Image processing failed: {e}") from e

        reporter.report(0.5, "Classification done")
        logger.info(
            "Classified %d samples into %d color groups",
            len(processed.pixels),
            len(processed.color_groups),
        )
        return processed

    def generate_svg(
        self,
        processed: ProcessedImage,
        reporter: ProgressReporter | None = None,
    ) -> str:
        """Render a processed image to SVG text."""
        try:
            return generate_svg(
                processed, self.settings, self.rng, reporter or ProgressReporter()
            )
        except SquigglerError:
            raise
        except Exception as e:
            raise SVGGenerationError(f"SVG generation failed: {e}") from e

    def generate_svg_progressively(
        self,
        processed: ProcessedImage,
        on_chunk: "Callable[[SvgChunk], None]",
        inter_chunk_delay_ms: float = 0,
        reporter: ProgressReporter | None = None,
    ) -> str:
        """Render to SVG text, handing each chunk to on_chunk as it is ready."""
        try:
            return generate_svg_progressively(
                processed,
                self.settings,
                on_chunk,
                inter_chunk_delay_ms,
                self.rng,
                reporter or ProgressReporter(),
            )
        except SquigglerError:
            raise
        except Exception as e:
            raise SVGGenerationError(f"SVG generation failed: {e}") from e

    def path_statistics(self, processed: ProcessedImage) -> "dict[str, tuple[int, int, float]]":
        """Per group: (path count, vertex count, drawn length in output px).

        AIDEV-NOTE: Runs are regenerated here, so disorganize jitter makes
        the lengths approximate.
        """
        stats = {}
        for key, group in processed.color_groups.items():
            runs = group_runs(group, self.settings, self.rng)
            stats[key] = (len(runs), count_vertices(runs), calculate_total_length(runs))
        return stats

    def process(
        self,
        source: "ImageSource | str | Path",
        progress: ProgressCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> "tuple[ProcessedImage, str]":
        """Execute the complete pipeline.

        Args:
            source: Image source, or a path to an image file
            progress: Called at milestones; returning True cancels
            cancel_token: Alternative way to cancel from another thread

        Returns:
            Tuple of (processed image, SVG text)
        """
        if isinstance(source, (str, Path)):
            source = ImageFile(source)

        reporter = ProgressReporter(progress, cancel_token)
        logger.info("Starting %s processing", self.settings.processing_mode.value)

        processed = self.sample_and_classify(source, reporter)
        svg_text = self.generate_svg(processed, reporter)

        logger.info("SVG generated (%.1f KB)", len(svg_text) / 1024)
        return processed, svg_text


def run_in_background(
    executor: ThreadPoolExecutor,
    processor: ImageProcessor,
    source: "ImageSource | str | Path",
    progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> "Future[tuple[ProcessedImage, str]]":
    """Run ImageProcessor.process on a worker thread.

    AIDEV-NOTE: The pipeline holds no shared state, so the only thing a
    caller needs to coordinate is the cancel token.
    """
    return executor.submit(processor.process, source, progress, cancel_token)


# --- Functional entry points ---


def sample_and_classify(
    source: "ImageSource | str | Path",
    settings: Settings,
    rng: RandomSource | None = None,
    progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> ProcessedImage:
    if isinstance(source, (str, Path)):
        source = ImageFile(source)
    return ImageProcessor(settings, rng).sample_and_classify(
        source, ProgressReporter(progress, cancel_token)
    )


def render_svg(
    processed: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
) -> str:
    return ImageProcessor(settings, rng).generate_svg(processed)


def render_svg_progressively(
    processed: ProcessedImage,
    settings: Settings,
    on_chunk: "Callable[[SvgChunk], None]",
    inter_chunk_delay_ms: float = 0,
    rng: RandomSource | None = None,
) -> str:
    return ImageProcessor(settings, rng).generate_svg_progressively(
        processed, on_chunk, inter_chunk_delay_ms
    )

