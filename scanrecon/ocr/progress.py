"""Page progress events and a publish/subscribe channel for them.

Events are fire-and-forget: publishing never waits on a consumer and a
failing subscriber never interrupts the pipeline.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)

STAGE_RASTER = "raster"
STAGE_OCR = "ocr"


@dataclass(frozen=True)
class PageProgressEvent:
    """Progress notification for one step of one page.

    Attributes:
        stage: ``"raster"`` or ``"ocr"``.
        page_index: 1-based page number.
        total_pages: Number of pages in the document.
        pass_number: Recognition pass (1-based) for ``"ocr"`` events.
        segmentation_mode: Page segmentation mode used by the pass.
    """

    stage: str
    page_index: int
    total_pages: int
    pass_number: int | None = None
    segmentation_mode: str | None = None

    def describe(self) -> str:
        """Short human-readable summary, e.g. ``"ocr page 2/5 (pass 1, psm 6)"``."""
        text = f"{self.stage} page {self.page_index}/{self.total_pages}"
        if self.pass_number is not None:
            text += f" (pass {self.pass_number}, psm {self.segmentation_mode})"
        return text


ProgressCallback = Callable[[PageProgressEvent], None]


class ProgressChannel:
    """Broadcasts :class:`PageProgressEvent` objects to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[ProgressCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            callback: Called synchronously with every published event.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: PageProgressEvent) -> None:
        """Deliver an event to every subscriber."""
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.warning("Progress subscriber failed on %s", event.describe())


def log_progress(event: PageProgressEvent) -> None:
    """Subscriber that reports progress through the module logger."""
    logger.info("Progress: %s", event.describe())
