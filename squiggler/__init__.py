"""Squiggler - turn raster images into plotter-ready squiggle SVGs."""

import logging

from .errors import (
    ImageLoadError,
    ImageProcessingError,
    ProcessingCancelled,
    SettingsValidationError,
    SquigglerError,
    SVGGenerationError,
)
from .models import (
    ColorGroup,
    CurveControls,
    ImageFile,
    ImagePixels,
    PathPoint,
    PixelSample,
    ProcessedImage,
    ProcessingMode,
    Settings,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ColorGroup",
    "CurveControls",
    "ImageFile",
    "ImageLoadError",
    "ImagePixels",
    "ImageProcessingError",
    "PathPoint",
    "PixelSample",
    "ProcessedImage",
    "ProcessingCancelled",
    "ProcessingMode",
    "Settings",
    "SettingsValidationError",
    "SquigglerError",
    "SVGGenerationError",
]
