import pytest

from squiggler.image_processing.colors import (
    calculate_brightness,
    calculate_hue,
    hex_to_rgb,
    hue_and_brightness,
    parse_color,
    rgb_to_cmyk,
    rgb_to_hex,
)


def test_hex_conversions():
    assert rgb_to_hex(255, 0, 128) == "#ff0080"
    assert rgb_to_hex(0.4, 15.5, 254.6) == "#0010ff"
    assert hex_to_rgb("#ff0080") == (255, 0, 128)


@pytest.mark.parametrize(
    "color, expected",
    [
        ("#102030", (16, 32, 48)),
        ("rgb(10,20,30)", (10, 20, 30)),
        ("rgb( 1, 2, 3 )", (1, 2, 3)),
        ("red", (255, 0, 0)),
        ("#fff", (255, 255, 255)),
    ],
)
def test_parse_color(color, expected):
    assert parse_color(color) == expected


def test_parse_color_rejects_garbage():
    with pytest.raises(ValueError):
        parse_color("not-a-color")


@pytest.mark.parametrize(
    "rgb, hue",
    [((255, 0, 0), 0), ((0, 255, 0), 120), ((0, 0, 255), 240), ((255, 0, 255), 300)],
)
def test_calculate_hue(rgb, hue):
    assert calculate_hue(*rgb) == pytest.approx(hue)


def test_gray_has_zero_hue():
    hue, brightness = hue_and_brightness("rgb(128,128,128)")
    assert hue == 0
    assert brightness == pytest.approx(128)


def test_brightness_weights():
    assert calculate_brightness(255, 255, 255) == pytest.approx(255)
    assert calculate_brightness(0, 255, 0) == pytest.approx(0.587 * 255)


def test_cmyk_black_avoids_division_by_zero():
    assert rgb_to_cmyk(0, 0, 0) == {"cyan": 0, "magenta": 0, "yellow": 0, "black": 255}


def test_cmyk_primaries():
    assert rgb_to_cmyk(255, 0, 0) == {"cyan": 0, "magenta": 255, "yellow": 255, "black": 0}
    assert rgb_to_cmyk(255, 255, 255) == {"cyan": 0, "magenta": 0, "yellow": 0, "black": 0}
    assert list(rgb_to_cmyk(10, 20, 30)) == ["cyan", "magenta", "yellow", "black"]


@pytest.mark.parametrize(
    "color",
    ['rgb(0, 0, 0)" onload="x', "rgb(1,2,3) trailing", '#00000"', 'red" onload="x'],
)
def test_parse_color_rejects_trailing_text(color):
    with pytest.raises(ValueError):
        parse_color(color)


def test_parse_color_accepts_rgba():
    assert parse_color("rgba(1, 2, 3, 0.5)") == (1, 2, 3)
