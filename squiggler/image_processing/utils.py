"""Utility functions for sizing, rounding and path measurements.

AIDEV-NOTE: This module contains helper functions for canvas planning,
density mapping and path statistics used throughout the pipeline.
"""

import math
from typing import Sequence

from squiggler.models import MAX_DIMENSION, PX_PER_MM, DimensionPlan


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 always going up.

    AIDEV-NOTE: Python's round() uses banker's rounding which would move
    density and quantization boundaries on exact halves.
    """
    return math.floor(value + 0.5)


def plan_dimensions(
    original_width: int,
    original_height: int,
    columns_count: int,
    rows_count: int,
) -> DimensionPlan:
    """Compute the output canvas and tile size for a grid.

    Args:
        original_width: Source image width in pixels
        original_height: Source image height in pixels
        columns_count: Grid columns
        rows_count: Grid rows

    Returns:
        DimensionPlan with output size in pixels and real-valued tile size

    AIDEV-NOTE: The longer side is pinned to MAX_DIMENSION and the shorter
    side scales with the aspect ratio.
    """
    aspect_ratio = original_width / original_height

    if aspect_ratio < 1:
        # Portrait: height fixed
        output_height = MAX_DIMENSION
        output_width = round_half_up(MAX_DIMENSION * aspect_ratio)
    elif aspect_ratio > 1:
        # Landscape: width fixed
        output_width = MAX_DIMENSION
        output_height = round_half_up(MAX_DIMENSION / aspect_ratio)
    else:
        output_width = MAX_DIMENSION
        output_height = MAX_DIMENSION

    return DimensionPlan(
        output_width=output_width,
        output_height=output_height,
        tile_width=output_width / columns_count,
        tile_height=output_height / rows_count,
    )


def px_to_mm(px: float) -> int:
    """Convert output pixels to whole millimeters."""
    return round_half_up(px / PX_PER_MM)


def calculate_density(
    normalized_value: float,
    min_density: int,
    max_density: int,
) -> int:
    """Map a 0-1 ink value to a zigzag segment count.

    AIDEV-NOTE: Result is always clamped to [0, max_density], which also
    absorbs a max_density smaller than min_density.
    """
    density = round_half_up(min_density + normalized_value * (max_density - min_density))
    return max(0, min(max_density, density))


def calculate_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def calculate_total_length(runs: "Sequence[Sequence[tuple[float, float]]]") -> float:
    """Calculate total drawn length of vertex runs in output pixels."""
    total = 0.0
    for run in runs:
        for i in range(1, len(run)):
            x1, y1 = run[i - 1]
            x2, y2 = run[i]
            total += calculate_distance(x1, y1, x2, y2)
    return total


def count_vertices(runs: "Sequence[Sequence[tuple[float, float]]]") -> int:
    """Count total number of vertices across vertex runs."""
    return sum(len(run) for run in runs)
