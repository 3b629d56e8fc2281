import pytest

from squiggler.image_processing.classifiers import (
    classify,
    classify_monochrome,
    create_path_point,
    quantize_gray_level,
)
from squiggler.image_processing.sampling import sample_pixels
from squiggler.image_processing.utils import plan_dimensions
from squiggler.models import PixelSample, ProcessedImage, ProcessingMode


def processed_from(image, settings, palette=None):
    plan = plan_dimensions(
        image.width, image.height, settings.columns_count, settings.rows_count
    )
    pixels = sample_pixels(
        image,
        settings.columns_count,
        settings.rows_count,
        settings.brightness_threshold,
        settings.processing_mode,
        palette,
    )
    return ProcessedImage(
        width=settings.columns_count,
        height=settings.rows_count,
        pixels=pixels,
        output_width=plan.output_width,
        output_height=plan.output_height,
        tile_width=plan.tile_width,
        tile_height=plan.tile_height,
    )


def point_count(groups):
    return sum(len(group.points) for group in groups.values())


def test_black_monochrome_is_max_density(solid_image, make_settings, rng):
    settings = make_settings(min_density=1, max_density=5)
    processed = processed_from(solid_image(4, 4), settings)

    groups = classify(processed, settings, rng)

    assert list(groups) == ["monochrome"]
    points = groups["monochrome"].points
    assert len(points) == 16
    assert all(p.density == 5 for p in points)


def test_monochrome_uses_chosen_color(solid_image, make_settings, rng):
    settings = make_settings(monochrome_color="#ff0000")
    groups = classify(processed_from(solid_image(), settings), settings, rng)
    assert groups["monochrome"].color == "#ff0000"
    assert groups["monochrome"].hue == 0


@pytest.mark.parametrize(
    "mode", [ProcessingMode.MONOCHROME, ProcessingMode.GRAYSCALE, ProcessingMode.POSTERIZE]
)
def test_coverage_is_preserved(mode, two_color_image, make_settings, rng):
    settings = make_settings(mode, min_density=1, max_density=5)
    palette = [(255, 0, 0), (0, 0, 255)] if mode is ProcessingMode.POSTERIZE else None
    processed = processed_from(two_color_image, settings, palette)

    groups = classify(processed, settings, rng, palette)

    assert point_count(groups) == len(processed.pixels)


def test_cmyk_has_four_fixed_groups(two_color_image, make_settings, rng):
    settings = make_settings(ProcessingMode.CMYK)
    processed = processed_from(two_color_image, settings)

    groups = classify(processed, settings, rng)

    assert list(groups) == ["cyan", "magenta", "yellow", "black"]
    assert point_count(groups) <= 4 * len(processed.pixels)
    # Red needs magenta + yellow, blue needs cyan + magenta
    assert len(groups["magenta"].points) == 16
    assert len(groups["yellow"].points) == 8
    assert len(groups["cyan"].points) == 8
    assert groups["black"].points == []


@pytest.mark.parametrize(
    "brightness, levels, expected",
    [(100, 2, 0), (200, 2, 255), (17, 1, 128), (128, 3, 128), (255, 5, 255), (0, 5, 0)],
)
def test_quantize_gray_level(brightness, levels, expected):
    assert quantize_gray_level(brightness, levels) == expected


def test_grayscale_groups(solid_image, make_settings, rng):
    settings = make_settings(ProcessingMode.GRAYSCALE, colors_amt=3)
    groups = classify(processed_from(solid_image(color=(40, 40, 40, 255)), settings), settings, rng)

    assert list(groups) == ["rgb(0,0,0)"]
    assert groups["rgb(0,0,0)"].display_name == "Gray 0%"


def test_grayscale_keeps_group_for_zero_density(solid_image, make_settings, rng):
    settings = make_settings(ProcessingMode.GRAYSCALE, min_density=0, max_density=5)
    groups = classify(
        processed_from(solid_image(color=(255, 255, 255, 255)), settings), settings, rng
    )
    assert list(groups) == ["rgb(255,255,255)"]
    assert groups["rgb(255,255,255)"].points == []


def test_posterize_groups_follow_palette(two_color_image, make_settings, rng):
    settings = make_settings(ProcessingMode.POSTERIZE)
    palette = [(0, 0, 255), (255, 0, 0), (0, 255, 0)]
    groups = classify(processed_from(two_color_image, settings, palette), settings, rng, palette)

    assert list(groups) == ["#0000ff", "#ff0000", "#00ff00"]
    assert [g.display_name for g in groups.values()] == ["Color 1", "Color 2", "Color 3"]
    assert groups["#00ff00"].points == []


def test_path_point_layout(rng):
    even = create_path_point(PixelSample(2, 0, 0, 0, 0, 0, 255), 10, 20, 3, rng)
    odd = create_path_point(PixelSample(2, 1, 0, 0, 0, 0, 255), 10, 20, 3, rng)

    assert (even.x, even.y, even.direction) == (20, 0, 1)
    assert (odd.x, odd.y, odd.direction) == (30, 20, -1)
    for point in (even, odd):
        assert abs(point.random_upper_knot_shift_x) <= 15
        assert abs(point.random_upper_knot_shift_y) <= 15


def test_unparseable_monochrome_color_falls_back(solid_image, make_settings, rng):
    settings = make_settings(monochrome_color="not-a-color")
    groups = classify_monochrome(processed_from(solid_image(), settings), settings, rng)

    assert (groups["monochrome"].hue, groups["monochrome"].brightness) == (0.0, 255.0)
