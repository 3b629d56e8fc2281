"""Progress reporting and cancellation checks.

AIDEV-NOTE: Progress is an observer only. The pipeline calls report() at
coarse milestones, and report() is also where cancellation is noticed.
"""

import logging
import threading
from typing import Callable

from squiggler.errors import ProcessingCancelled

logger = logging.getLogger(__name__)

# Returning True from the callback asks the pipeline to stop
ProgressCallback = Callable[[float, str], "bool | None"]


class CancelToken:
    """Thread-safe cancellation flag shared with a worker."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressReporter:
    """Forwards milestones to a callback and enforces cancellation."""

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        cancel_token: CancelToken | None = None,
    ):
        self.callback = callback
        self.cancel_token = cancel_token

    def check_cancelled(self) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            raise ProcessingCancelled()

    def report(self, progress: float, status: str) -> None:
        """Publish a milestone.

        Raises:
            ProcessingCancelled: If the token is set or the callback
                returned True
        """
        self.check_cancelled()
        logger.debug("%3.0f%% %s", progress * 100, status)
        if self.callback is not None and self.callback(progress, status):
            raise ProcessingCancelled()


SILENT = ProgressReporter()
