import pytest

from squiggler.errors import (
    ImageLoadError,
    ImageProcessingError,
    ProcessingCancelled,
    SquigglerError,
    SVGGenerationError,
    classify_error,
    is_cancellation,
)


def test_error_codes():
    assert ImageLoadError("x").code == "IMAGE_LOAD_ERROR"
    assert ImageProcessingError("x").code == "IMAGE_PROCESSING_ERROR"
    assert SVGGenerationError("x").code == "SVG_GENERATION_ERROR"
    assert ProcessingCancelled().code == "CANCELLED"


def test_user_message_defaults_and_overrides():
    assert "load image" in ImageLoadError("x").user_message
    assert ImageLoadError("x", "Pick another file").user_message == "Pick another file"
    assert str(ImageLoadError("decoder exploded")) == "decoder exploded"


def test_cancellation_is_distinguishable():
    assert is_cancellation(ProcessingCancelled())
    assert not is_cancellation(ImageProcessingError("x"))
    assert not is_cancellation(KeyboardInterrupt())


@pytest.mark.parametrize(
    "error, expected",
    [
        (FileNotFoundError("no such file"), ImageLoadError),
        (MemoryError(), ImageProcessingError),
        (ValueError("cannot identify image file"), ImageLoadError),
        (ValueError("bad svg output"), SVGGenerationError),
    ],
)
def test_classify_error(error, expected):
    assert isinstance(classify_error(error), expected)


def test_classify_error_fallback():
    classified = classify_error(RuntimeError("boom"))
    assert type(classified) is SquigglerError
    assert classified.code == "UNKNOWN_ERROR"
    assert classified.message == "boom"


def test_classify_error_passes_through():
    original = SVGGenerationError("x")
    assert classify_error(original) is original
