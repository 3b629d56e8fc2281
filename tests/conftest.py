"""Shared fixtures for the squiggler test suite."""

import random

import pytest
from PIL import Image

from squiggler.models import ProcessingMode, Settings


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def solid_image():
    """Factory for single-color RGBA images."""

    def make(width=8, height=8, color=(0, 0, 0, 255)):
        return Image.new("RGBA", (width, height), color)

    return make


@pytest.fixture
def two_color_image():
    """8x8 image, left half red and right half blue."""
    image = Image.new("RGBA", (8, 8), (255, 0, 0, 255))
    image.paste((0, 0, 255, 255), (4, 0, 8, 8))
    return image


@pytest.fixture
def make_settings():
    def make(mode=ProcessingMode.MONOCHROME, **overrides):
        values = {"rows_count": 4, "columns_count": 4, "processing_mode": mode}
        values.update(overrides)
        return Settings(**values)

    return make
