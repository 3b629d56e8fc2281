"""Exception hierarchy for the squiggle pipeline.

Every pipeline failure surfaces as a SquigglerError carrying a stable
machine-readable code and a message suitable for showing to a user.
Cancellation is modelled as its own subclass so callers can tell it apart
from real failures.
"""

import logging

logger = logging.getLogger(__name__)


class SquigglerError(Exception):
    """Base class for all errors raised by the pipeline."""

    def __init__(
        self,
        message: str,
        code: str,
        user_message: str,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.user_message = user_message
        self.recoverable = recoverable


class ImageLoadError(SquigglerError):
    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(
            message,
            "IMAGE_LOAD_ERROR",
            user_message
            or "Failed to load image. Please check the file and try again.",
        )


class ImageProcessingError(SquigglerError):
    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(
            message,
            "IMAGE_PROCESSING_ERROR",
            user_message
            or "Failed to process image. Please try a different image or settings.",
        )


class SVGGenerationError(SquigglerError):
    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(
            message,
            "SVG_GENERATION_ERROR",
            user_message or "Failed to generate SVG. Please try different settings.",
        )


class SettingsValidationError(SquigglerError):
    """Settings rejected before processing starts."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_SETTINGS", message)


class ProcessingCancelled(SquigglerError):
    """Raised at a progress milestone when the caller asked to stop."""

    def __init__(self, message: str = "Processing cancelled"):
        super().__init__(message, "CANCELLED", "Processing was cancelled.")


def is_cancellation(error: BaseException) -> bool:
    return isinstance(error, ProcessingCancelled)


def classify_error(error: BaseException) -> SquigglerError:
    """Map an arbitrary exception onto the SquigglerError hierarchy.

    Args:
        error: Any exception raised while loading or processing

    Returns:
        The error itself if it is already a SquigglerError, otherwise a
        new SquigglerError describing it
    """
    if isinstance(error, SquigglerError):
        return error

    logger.debug("Classifying unexpected error", exc_info=error)
    message = str(error) or type(error).__name__

    if isinstance(error, (FileNotFoundError, IsADirectoryError, PermissionError)):
        return ImageLoadError(message)
    if isinstance(error, MemoryError):
        return ImageProcessingError(
            message, "Ran out of memory. Try a smaller grid or image."
        )

    lowered = message.lower()
    if "load" in lowered or "decode" in lowered or "identify" in lowered:
        return ImageLoadError(message)
    if "svg" in lowered or "path" in lowered:
        return SVGGenerationError(message)

    return SquigglerError(
        message,
        "UNKNOWN_ERROR",
        "An unexpected error occurred. Please try again.",
    )
