"""Zigzag vertex generation and path stitching.

AIDEV-NOTE: A tile becomes a zigzag between an upper rail (the tile top)
and a lower rail (top + scaled height). In continuous mode the tiles of a
color group are walked in serpentine order and joined into as few runs as
the distance threshold allows, which keeps pen lifts to a minimum.
"""

import math
import random
from typing import Iterator

from squiggler.models import ColorGroup, CurveControls, PathPoint, Settings

from .quantization import RandomSource
from .utils import calculate_distance


class TileGeometry:
    """Per-vertex perturbations for one tile.

    AIDEV-NOTE: The wave offsets are deterministic functions of position.
    Only the disorganize jitter draws fresh randomness on every call.
    """

    def __init__(
        self,
        point: PathPoint,
        height: float,
        controls: CurveControls,
        rng: RandomSource,
    ):
        self.point = point
        self.controls = controls
        self.rng = rng
        self.wave_sign = 1 if point.row % 2 == 0 else -1
        self.max_jitter = min(point.width, height) * 0.25

    def wave_offset(self, x: float, y: float) -> "tuple[float, float]":
        controls = self.controls
        frequency = controls.wave_shift_frequency
        dx = dy = 0.0

        if controls.row_wave_shift and self.point.width:
            dy = (
                controls.row_wave_shift
                * self.point.height
                / 2
                * self.wave_sign
                * math.sin(frequency * x / self.point.width)
            )
        if controls.column_wave_shift and self.point.height:
            dx = (
                controls.column_wave_shift
                * self.point.width
                / 2
                * self.wave_sign
                * math.sin(frequency * y / self.point.height)
            )
        return dx, dy

    def place(self, x: float, y: float) -> "tuple[float, float]":
        dx, dy = self.wave_offset(x, y)
        x += dx
        y += dy

        factor = self.controls.disorganize_factor
        if factor > 0:
            x += (self.rng.random() - 0.5) * 2 * self.max_jitter * factor
            y += (self.rng.random() - 0.5) * 2 * self.max_jitter * factor
        return x, y


def create_tile_vertices(
    point: PathPoint,
    controls: CurveControls,
    rng: RandomSource | None = None,
) -> "list[tuple[float, float]]":
    """Generate the zigzag vertices of one tile.

    Args:
        point: Tile to draw
        controls: Curve controls (knot shifts, waves, jitter, height scale)
        rng: Random source for the disorganize jitter

    Returns:
        Vertices in drawing order, empty for density 0
    """
    density = point.density
    if density <= 0:
        return []

    rng = rng or random
    height = point.height * controls.tile_height_scale
    geometry = TileGeometry(point, height, controls, rng)

    x, y, direction = point.x, point.y, point.direction
    step = point.width / density
    lower_y = y + height
    lower_shift = controls.lower_knot_x_shift
    upper_dx = point.random_upper_knot_shift_x * controls.upper_knot_shift_factor
    upper_dy = point.random_upper_knot_shift_y * controls.upper_knot_shift_factor
    upper_y = y + upper_dy

    vertices = [geometry.place(x + upper_dx, upper_y)]

    for i in range(density):
        current_x = x + i * step * direction
        next_x = x + (i + 1) * step * direction
        last = i == density - 1

        if i % 2 == 0:
            # Down to the lower rail, then along it
            vertices.append(geometry.place(current_x + lower_shift, lower_y))
            if not last or density % 2 == 1:
                vertices.append(geometry.place(next_x + lower_shift, lower_y))
        else:
            # Up to the upper rail, then along it
            vertices.append(geometry.place(current_x + upper_dx, upper_y))
            if not last or density % 2 == 0:
                vertices.append(geometry.place(next_x + upper_dx, upper_y))

    return vertices


def serpentine_order(points: "list[PathPoint]") -> "list[PathPoint]":
    """Sort by row, then left-to-right on even rows and right-to-left on odd."""
    return sorted(points, key=lambda p: (p.row, p.x if p.row % 2 == 0 else -p.x))


def continuous_runs(
    group: ColorGroup,
    settings: Settings,
    rng: RandomSource | None = None,
) -> "Iterator[list[tuple[float, float]]]":
    """Stitch a group's tiles into continuous vertex runs.

    AIDEV-NOTE: A run is flushed whenever the next tile starts further than
    path_distance_threshold from the last vertex. Otherwise the previous
    tile's last vertex is dropped so the tiles join without a duplicate.
    """
    controls = settings.curve_controls
    run: "list[tuple[float, float]]" = []

    for point in serpentine_order(group.points):
        if point.density <= 0:
            continue

        tile = create_tile_vertices(point, controls, rng)

        if run:
            last_x, last_y = run[-1]
            first_x, first_y = tile[0]
            gap = calculate_distance(last_x, last_y, first_x, first_y)
            if gap > settings.path_distance_threshold:
                yield run
                run = []
            else:
                run.pop()

        run.extend(tile)

    if run:
        yield run


def individual_runs(
    group: ColorGroup,
    settings: Settings,
    rng: RandomSource | None = None,
) -> "Iterator[list[tuple[float, float]]]":
    """One vertex run per tile."""
    for point in group.points:
        if point.density <= 0:
            continue
        yield create_tile_vertices(point, settings.curve_controls, rng)


def group_runs(
    group: ColorGroup,
    settings: Settings,
    rng: RandomSource | None = None,
) -> "list[list[tuple[float, float]]]":
    """Vertex runs for a group in the configured stitching mode."""
    if settings.continuous_paths:
        return list(continuous_runs(group, settings, rng))
    return list(individual_runs(group, settings, rng))
