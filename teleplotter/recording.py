"""Film a block of work with the webcam."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from .errors import RecordingError
from .webcam import MediaPaths, iso_timestamp

logger = logging.getLogger(__name__)


class RecordingSession:
    """Start a Motion event, run the body, always stop the event.

    After the body returns or raises, ``settle_s`` seconds of trailing footage
    are captured before a snapshot is taken and the event is closed.
    """

    def __init__(
        self,
        webcam: Any,
        media_dir: Path,
        *,
        settle_s: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.webcam = webcam
        self.media_dir = Path(media_dir)
        self.settle_s = settle_s
        self._sleep = sleep

    @contextmanager
    def session(self, label: Optional[str] = None) -> Iterator[MediaPaths]:
        label = self.webcam.start_recording(label or iso_timestamp())
        media = MediaPaths.for_label(self.media_dir, label)
        try:
            yield media
        finally:
            self._finish(label)

    def _finish(self, label: str) -> None:
        if self.settle_s > 0:
            self._sleep(self.settle_s)
        try:
            self.webcam.snapshot()
        except RecordingError:
            logger.exception("Snapshot for %s failed", label)
        try:
            self.webcam.stop_recording()
        except RecordingError:
            logger.exception("Stopping recording %s failed", label)


__all__ = ["RecordingSession"]
