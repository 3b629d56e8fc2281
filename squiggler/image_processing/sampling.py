"""Grid sampling of source images.

AIDEV-NOTE: The source image is area-averaged down to one pixel per grid
cell. Fully transparent cells never produce a sample, so transparent
regions stay empty in every mode.
"""

import logging
from typing import Sequence

import numpy as np
from PIL import Image

from squiggler.models import PixelSample, ProcessingMode

from .quantization import map_to_palette

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def resample_to_grid(
    image: Image.Image,
    columns_count: int,
    rows_count: int,
) -> np.ndarray:
    """Downsample an image to columns x rows RGBA cells.

    Returns:
        uint8 array of shape (rows, columns, 4)
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    grid = image.resize((columns_count, rows_count), Image.Resampling.BOX)
    return np.asarray(grid, dtype=np.uint8)


def cell_brightness(cells: np.ndarray) -> np.ndarray:
    """Alpha-weighted luminance, rounded half-up to 0-255 integers."""
    rgb = cells[..., :3].astype(np.float64)
    alpha = cells[..., 3].astype(np.float64) / 255.0
    return np.floor(rgb @ LUMA_WEIGHTS * alpha + 0.5).astype(np.int64)


def sample_pixels(
    image: Image.Image,
    columns_count: int,
    rows_count: int,
    brightness_threshold: int,
    processing_mode: ProcessingMode,
    palette: "Sequence[tuple[int, int, int]] | None" = None,
) -> "list[PixelSample]":
    """Sample one PixelSample per opaque grid cell.

    Args:
        image: Source image (converted to RGBA if needed)
        columns_count: Grid columns
        rows_count: Grid rows
        brightness_threshold: Cells brighter than this are dropped,
            except in CMYK mode where every opaque cell is kept
        processing_mode: Active classification mode
        palette: Posterize palette; sample colors are snapped to it

    Returns:
        Samples in row-major order
    """
    cells = resample_to_grid(image, columns_count, rows_count)
    brightness = cell_brightness(cells)

    keep = cells[..., 3] > 0
    if processing_mode is not ProcessingMode.CMYK:
        keep &= brightness <= brightness_threshold

    ys, xs = np.nonzero(keep)
    rgb = cells[ys, xs, :3]
    if processing_mode is ProcessingMode.POSTERIZE and palette:
        rgb = map_to_palette(rgb, palette)

    samples = [
        PixelSample(
            x=int(x),
            y=int(y),
            brightness=int(brightness[y, x]),
            r=int(r),
            g=int(g),
            b=int(b),
            a=int(cells[y, x, 3]),
        )
        for x, y, (r, g, b) in zip(xs, ys, rgb)
    ]

    logger.debug(
        "Sampled %d of %d cells (%dx%d grid)",
        len(samples),
        columns_count * rows_count,
        columns_count,
        rows_count,
    )
    return samples
