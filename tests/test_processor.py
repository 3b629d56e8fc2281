import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from squiggler.errors import (
    ImageLoadError,
    ImageProcessingError,
    ProcessingCancelled,
    SettingsValidationError,
)
from squiggler.image_processing import (
    CancelToken,
    ImageProcessor,
    render_svg,
    render_svg_progressively,
    run_in_background,
    sample_and_classify,
)
from squiggler.image_processing.quantization import PaletteCache
from squiggler.models import ImageFile, ImagePixels, ProcessingMode


def test_posterize_palette_degenerates_to_unique_colors(two_color_image, make_settings):
    settings = make_settings(ProcessingMode.POSTERIZE, colors_amt=3)
    processor = ImageProcessor(settings, random.Random(5))

    processed = processor.sample_and_classify(ImagePixels(two_color_image))

    assert sorted(processed.color_groups) == ["#0000ff", "#ff0000"]
    assert processed.original_width == 8
    assert (processed.columns_count, processed.rows_count) == (4, 4)
    assert (processed.output_width, processed.output_height) == (560, 560)
    assert processed.tile_width == 140


def test_process_from_file(tmp_path, two_color_image, make_settings):
    path = tmp_path / "input.png"
    two_color_image.save(path)
    milestones = []

    processor = ImageProcessor(make_settings(), random.Random(0))
    processed, svg_text = processor.process(
        str(path), progress=lambda p, status: milestones.append(status)
    )

    assert list(processed.color_groups) == ["monochrome"]
    assert svg_text.startswith("<svg")
    assert svg_text.endswith("</svg>")
    assert milestones[0] == "Image loaded"
    assert milestones[-1] == "SVG complete"


def test_non_rgba_source_is_converted(two_color_image, make_settings):
    processor = ImageProcessor(make_settings(), random.Random(0))
    processed = processor.sample_and_classify(ImagePixels(two_color_image.convert("RGB")))
    assert len(processed.pixels) == 16


def test_progress_callback_can_cancel(two_color_image, make_settings):
    processor = ImageProcessor(make_settings())
    with pytest.raises(ProcessingCancelled):
        processor.process(ImagePixels(two_color_image), progress=lambda p, status: True)


def test_cancel_token(two_color_image, make_settings):
    token = CancelToken()
    token.cancel()
    with pytest.raises(ProcessingCancelled):
        ImageProcessor(make_settings()).process(ImagePixels(two_color_image), cancel_token=token)


def test_cancel_during_svg_generation(two_color_image, make_settings):
    settings = make_settings(ProcessingMode.CMYK)

    def stop_on_first_group(progress, status):
        return status.startswith("Rendered")

    with pytest.raises(ProcessingCancelled):
        ImageProcessor(settings).process(ImagePixels(two_color_image), progress=stop_on_first_group)


@pytest.mark.parametrize(
    "overrides",
    [
        {"rows_count": 3},
        {"columns_count": 201},
        {"min_density": 6, "max_density": 5},
        {"processing_mode": ProcessingMode.POSTERIZE, "colors_amt": 1},
        {"processing_mode": ProcessingMode.POSTERIZE, "colors_amt": 17},
    ],
)
def test_invalid_settings_are_rejected(overrides, two_color_image, make_settings):
    processor = ImageProcessor(make_settings(**overrides))
    with pytest.raises(SettingsValidationError) as info:
        processor.sample_and_classify(ImagePixels(two_color_image))
    assert info.value.code == "INVALID_SETTINGS"


def test_missing_file_is_load_error(tmp_path, make_settings):
    with pytest.raises(ImageLoadError) as info:
        ImageProcessor(make_settings()).process(ImageFile(tmp_path / "missing.png"))
    assert info.value.code == "IMAGE_LOAD_ERROR"
    assert info.value.recoverable


def test_garbage_file_is_load_error(tmp_path, make_settings):
    path = tmp_path / "garbage.png"
    path.write_bytes(b"definitely not an image")
    with pytest.raises(ImageLoadError):
        ImageProcessor(make_settings()).process(path)


def test_unexpected_failures_are_wrapped(monkeypatch, two_color_image, make_settings):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("squiggler.image_processing.processor.classify", explode)

    with pytest.raises(ImageProcessingError) as info:
        ImageProcessor(make_settings()).sample_and_classify(ImagePixels(two_color_image))
    assert isinstance(info.value.__cause__, RuntimeError)


def test_palette_cache_is_used(two_color_image, make_settings):
    cache = PaletteCache()
    settings = make_settings(ProcessingMode.POSTERIZE, colors_amt=2)

    ImageProcessor(settings, random.Random(1), cache).sample_and_classify(
        ImagePixels(two_color_image)
    )
    ImageProcessor(settings, random.Random(2), cache).sample_and_classify(
        ImagePixels(two_color_image)
    )

    assert len(cache) == 1


def test_run_in_background(two_color_image, make_settings):
    processor = ImageProcessor(make_settings(ProcessingMode.GRAYSCALE), random.Random(0))
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = run_in_background(executor, processor, ImagePixels(two_color_image))
        processed, svg_text = future.result(timeout=30)

    assert processed.color_groups
    assert "color-group-rgb(" in svg_text


def test_functional_entry_points(two_color_image, make_settings):
    settings = make_settings(ProcessingMode.CMYK)
    processed = sample_and_classify(ImagePixels(two_color_image), settings, random.Random(0))

    chunks = []
    progressive = render_svg_progressively(processed, settings, chunks.append)

    assert progressive == render_svg(processed, settings)
    assert len(chunks) == 2 + len(processed.color_groups)


def test_path_statistics(two_color_image, make_settings):
    settings = make_settings(continuous_paths=False)
    processor = ImageProcessor(settings, random.Random(0))
    processed = processor.sample_and_classify(ImagePixels(two_color_image))

    stats = processor.path_statistics(processed)

    paths, vertices, length = stats["monochrome"]
    assert paths == 16
    assert vertices == sum(2 * p.density + 1 for p in processed.color_groups["monochrome"].points)
    assert length > 0


def test_injected_color_is_rejected_before_processing(two_color_image, make_settings):
    processor = ImageProcessor(make_settings(monochrome_color='#000000" onload="x'))
    with pytest.raises(SettingsValidationError):
        processor.sample_and_classify(ImagePixels(two_color_image))
