"""Color classification strategies.

AIDEV-NOTE: Each strategy turns the sampled cells of a ProcessedImage into
named color groups of PathPoints. Strategies only differ in how a cell is
bucketed and how its ink value (0-1) is derived; the density mapping and
PathPoint layout are shared.
"""

import logging
import random
from typing import Callable, Sequence

from squiggler.models import (
    ColorGroup,
    PathPoint,
    PixelSample,
    ProcessedImage,
    ProcessingMode,
    Settings,
)

from .colors import hue_and_brightness, rgb_to_cmyk, rgb_to_hex
from .quantization import RandomSource
from .utils import calculate_density, round_half_up

logger = logging.getLogger(__name__)

Classifier = Callable[..., "dict[str, ColorGroup]"]

# AIDEV-NOTE: Fixed layering order for CMYK separations
CMYK_GROUPS = {
    "cyan": ("#00FFFF", "Cyan", 180.0, 255.0),
    "magenta": ("#FF00FF", "Magenta", 300.0, 255.0),
    "yellow": ("#FFFF00", "Yellow", 60.0, 255.0),
    "black": ("#000000", "Black", 0.0, 0.0),
}


def create_path_point(
    pixel: PixelSample,
    tile_width: float,
    tile_height: float,
    density: int,
    rng: RandomSource,
) -> PathPoint:
    """Lay out one tile for a sampled cell.

    AIDEV-NOTE: Odd rows start at the right edge of the tile and walk left
    so consecutive rows form a serpentine.
    """
    even_row = pixel.y % 2 == 0
    start_x = pixel.x * tile_width if even_row else pixel.x * tile_width + tile_width
    shift_range = tile_width + tile_height

    return PathPoint(
        x=start_x,
        y=pixel.y * tile_height,
        width=tile_width,
        height=tile_height,
        density=density,
        row=pixel.y,
        direction=1 if even_row else -1,
        random_upper_knot_shift_x=(rng.random() - 0.5) * shift_range,
        random_upper_knot_shift_y=(rng.random() - 0.5) * shift_range,
    )


def classify_monochrome(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    **_: object,
) -> "dict[str, ColorGroup]":
    """Single group in the chosen color, darker cells drawn denser."""
    rng = rng or random
    color = settings.monochrome_color

    try:
        hue, brightness = hue_and_brightness(color)
    except ValueError:
        logger.warning("Unrecognised monochrome color %r, using defaults", color)
        hue, brightness = 0.0, 255.0

    group = ColorGroup(
        color=color,
        display_name="Monochrome",
        hue=hue,
        brightness=brightness,
    )

    for pixel in image.pixels:
        density = calculate_density(
            (255 - pixel.brightness) / 255,
            settings.min_density,
            settings.max_density,
        )
        if density > 0:
            group.points.append(
                create_path_point(pixel, image.tile_width, image.tile_height, density, rng)
            )

    return {"monochrome": group}


def quantize_gray_level(brightness: float, levels: int) -> int:
    """Snap a brightness to one of `levels` evenly spaced grays.

    AIDEV-NOTE: A single level maps everything to mid gray (128).
    """
    levels = max(1, levels)
    if levels == 1:
        value = 128
    else:
        step = 255 / (levels - 1)
        value = round_half_up(round_half_up(brightness / step) * step)
    return min(255, max(0, value))


def classify_grayscale(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    **_: object,
) -> "dict[str, ColorGroup]":
    """Bucket cells into gray levels.

    AIDEV-NOTE: Density uses the unquantized brightness so neighbouring
    cells in the same gray bucket still vary smoothly.
    """
    rng = rng or random
    groups: "dict[str, ColorGroup]" = {}

    for pixel in image.pixels:
        gray = quantize_gray_level(pixel.brightness, settings.colors_amt)
        key = f"rgb({gray},{gray},{gray})"

        if key not in groups:
            groups[key] = ColorGroup(
                color=key,
                display_name=f"Gray {round_half_up(gray / 255 * 100)}%",
                hue=0.0,
                brightness=float(gray),
            )

        density = calculate_density(
            1 - pixel.brightness / 255,
            settings.min_density,
            settings.max_density,
        )
        if density == 0:
            continue

        groups[key].points.append(
            create_path_point(pixel, image.tile_width, image.tile_height, density, rng)
        )

    return groups


def classify_posterize(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    palette: "Sequence[tuple[int, int, int]] | None" = None,
    **_: object,
) -> "dict[str, ColorGroup]":
    """Group already-quantized cells by their hex color.

    Args:
        image: Processed image whose samples carry palette colors
        settings: Run settings
        rng: Random source for the upper knot shifts
        palette: Palette the samples were snapped to. Its colors get a
            group each, in palette order, even when no cell uses them.
    """
    rng = rng or random
    groups: "dict[str, ColorGroup]" = {}

    def group_for(hex_color: str) -> ColorGroup:
        if hex_color not in groups:
            hue, brightness = hue_and_brightness(hex_color)
            groups[hex_color] = ColorGroup(
                color=hex_color,
                display_name=f"Color {len(groups) + 1}",
                hue=hue,
                brightness=brightness,
            )
        return groups[hex_color]

    for r, g, b in palette or ():
        group_for(rgb_to_hex(r, g, b))

    for pixel in image.pixels:
        group = group_for(rgb_to_hex(pixel.r, pixel.g, pixel.b))

        density = calculate_density(
            1 - pixel.brightness / 255,
            settings.min_density,
            settings.max_density,
        )
        if density == 0:
            continue

        group.points.append(
            create_path_point(pixel, image.tile_width, image.tile_height, density, rng)
        )

    return groups


def classify_cmyk(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    **_: object,
) -> "dict[str, ColorGroup]":
    """Split every cell into up to four ink separations.

    AIDEV-NOTE: Each channel gets its own PathPoint with its own random
    shift pair, so one cell can yield four overlapping strokes.
    """
    rng = rng or random
    groups = {
        key: ColorGroup(color=color, display_name=name, hue=hue, brightness=brightness)
        for key, (color, name, hue, brightness) in CMYK_GROUPS.items()
    }

    for pixel in image.pixels:
        cmyk = rgb_to_cmyk(pixel.r, pixel.g, pixel.b)

        for channel, value in cmyk.items():
            if value <= 0:
                continue

            density = calculate_density(
                value / 255,
                settings.min_density,
                settings.max_density,
            )
            if density == 0:
                continue

            groups[channel].points.append(
                create_path_point(pixel, image.tile_width, image.tile_height, density, rng)
            )

    return groups


CLASSIFIERS: "dict[ProcessingMode, Classifier]" = {
    ProcessingMode.MONOCHROME: classify_monochrome,
    ProcessingMode.GRAYSCALE: classify_grayscale,
    ProcessingMode.POSTERIZE: classify_posterize,
    ProcessingMode.CMYK: classify_cmyk,
}


def classify(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    palette: "Sequence[tuple[int, int, int]] | None" = None,
) -> "dict[str, ColorGroup]":
    """Run the classifier for settings.processing_mode."""
    classifier = CLASSIFIERS[settings.processing_mode]
    groups = classifier(image, settings, rng=rng, palette=palette)

    logger.debug(
        "%s classification produced %d groups, %d points",
        settings.processing_mode.value,
        len(groups),
        sum(len(group.points) for group in groups.values()),
    )
    return groups
