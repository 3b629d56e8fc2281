"""Vertex runs to SVG path data.

AIDEV-NOTE: Curved mode draws a tangent-continuous cubic Bezier spline
through the original vertices. The tangent at a vertex comes from its two
neighbours; the open ends use themselves as the missing neighbour.
"""

import math
from typing import Sequence

import svg

from squiggler.models import CurveControls

COORD_PRECISION = 3


def _r(value: float) -> float:
    # Keep integral coordinates as ints so they serialise without ".0"
    rounded = round(value, COORD_PRECISION)
    return int(rounded) if rounded == int(rounded) else rounded


def line_path_data(points: "Sequence[tuple[float, float]]") -> "list[svg.PathData]":
    """M x0 y0 L x1 y1 L x2 y2 ..."""
    if not points:
        return []
    (x0, y0), rest = points[0], points[1:]
    return [svg.M(_r(x0), _r(y0))] + [svg.L(_r(x), _r(y)) for x, y in rest]


def _handle(dx: float, dy: float, smoothness: float) -> "tuple[float, float]":
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0, 0.0
    distance = min(length * smoothness, length / 2)
    return dx / length * distance, dy / length * distance


def curve_path_data(
    points: "Sequence[tuple[float, float]]",
    smoothness: float = 0.1,
    handle_rotation_angle: float = 0.0,
) -> "list[svg.PathData]":
    """Smooth cubic Bezier path through every point.

    Args:
        points: Vertices to pass through
        smoothness: Handle length as a fraction of the tangent span,
            capped at half of it
        handle_rotation_angle: Degrees to rotate both handles of every
            segment by

    Returns:
        svg.py path commands
    """
    if len(points) < 2:
        return line_path_data(points)

    rotation = math.radians(handle_rotation_angle)
    cos_a = math.cos(rotation)
    sin_a = math.sin(rotation)

    commands: "list[svg.PathData]" = [svg.M(_r(points[0][0]), _r(points[0][1]))]

    for i in range(len(points) - 1):
        current = points[i]
        following = points[i + 1]
        previous = points[i - 1] if i > 0 else current
        after = points[i + 2] if i < len(points) - 2 else following

        h1x, h1y = _handle(
            following[0] - previous[0], following[1] - previous[1], smoothness
        )
        h2x, h2y = _handle(after[0] - current[0], after[1] - current[1], smoothness)
        # Second handle points back from the segment end
        h2x, h2y = -h2x, -h2y

        if handle_rotation_angle:
            h1x, h1y = h1x * cos_a - h1y * sin_a, h1x * sin_a + h1y * cos_a
            h2x, h2y = h2x * cos_a - h2y * sin_a, h2x * sin_a + h2y * cos_a

        commands.append(
            svg.C(
                _r(current[0] + h1x),
                _r(current[1] + h1y),
                _r(following[0] + h2x),
                _r(following[1] + h2y),
                _r(following[0]),
                _r(following[1]),
            )
        )

    return commands


def path_data(
    points: "Sequence[tuple[float, float]]",
    curved: bool,
    controls: CurveControls,
) -> "list[svg.PathData]":
    if curved:
        return curve_path_data(
            points,
            controls.junction_continuity_factor,
            controls.handle_rotation_angle,
        )
    return line_path_data(points)


def path_element(
    points: "Sequence[tuple[float, float]]",
    color: str,
    curved: bool,
    controls: CurveControls,
) -> svg.Path:
    """One stroke-only <path> for a vertex run."""
    return svg.Path(
        d=path_data(points, curved, controls),
        stroke=color,
        fill="none",
        stroke_width=_r(controls.stroke_width),
        stroke_linejoin="round",
        stroke_linecap="round",
        extra={"vector-effect": "non-scaling-stroke"},
    )
