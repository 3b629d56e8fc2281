import svg

from squiggler.image_processing.curves import (
    curve_path_data,
    line_path_data,
    path_element,
)
from squiggler.models import CurveControls

ZIGZAG = [(0, 0), (0, 10), (10, 10), (10, 0), (20, 0)]


def test_line_path_data():
    commands = line_path_data([(0, 0), (10.5, 5), (1 / 3, 2)])

    assert isinstance(commands[0], svg.M)
    assert all(isinstance(c, svg.L) for c in commands[1:])
    assert (commands[1].x, commands[1].y) == (10.5, 5)
    assert commands[2].x == 0.333


def test_empty_path():
    assert line_path_data([]) == []
    assert curve_path_data([]) == []


def test_curve_passes_through_every_vertex():
    commands = curve_path_data(ZIGZAG, smoothness=0.2)

    assert isinstance(commands[0], svg.M)
    assert len(commands) == len(ZIGZAG)
    ends = [(c.x, c.y) for c in commands[1:]]
    assert ends == ZIGZAG[1:]


def test_zero_smoothness_collapses_handles():
    commands = curve_path_data(ZIGZAG, smoothness=0)
    for previous, command in zip(ZIGZAG, commands[1:]):
        assert (command.x1, command.y1) == previous
        assert (command.x2, command.y2) == (command.x, command.y)


def test_handles_are_capped():
    commands = curve_path_data([(0, 0), (10, 0)], smoothness=5)
    # First handle is at most half the span away from its knot
    assert commands[1].x1 == 5


def test_handle_rotation():
    straight = curve_path_data([(0, 0), (10, 0)], smoothness=0.1)
    rotated = curve_path_data([(0, 0), (10, 0)], smoothness=0.1, handle_rotation_angle=90)

    assert (straight[1].x1, straight[1].y1) == (1, 0)
    assert (rotated[1].x1, rotated[1].y1) == (0, 1)


def test_path_element_attributes():
    element = path_element(ZIGZAG, "#ff0000", True, CurveControls(stroke_width=2))
    text = element.as_str()

    assert text.startswith("<path")
    assert 'stroke="#ff0000"' in text
    assert 'fill="none"' in text
    assert 'vector-effect="non-scaling-stroke"' in text
    assert element.stroke_width == 2


def test_integral_stroke_width_has_no_decimal():
    text = path_element(ZIGZAG, "#000000", False, CurveControls()).as_str()
    assert 'stroke-width="1"' in text
    assert 'stroke-width="1.0"' not in text
