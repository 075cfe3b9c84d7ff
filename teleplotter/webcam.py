"""HTTP client for the Motion daemon filming the plotter."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .errors import RecordingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaPaths:
    """Files Motion writes for one recording event."""

    label: str
    video: Path
    snapshot: Path

    @classmethod
    def for_label(cls, media_dir: Path, label: str) -> "MediaPaths":
        media_dir = Path(media_dir)
        return cls(
            label=label,
            video=media_dir / f"{label}.mkv",
            snapshot=media_dir / f"{label}.jpg",
        )


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC timestamp such as ``2024-05-01T12:30:00.123Z``."""

    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class MotionWebcam:
    """Enumerated Motion webcontrol operations.

    ``base_url`` points at one camera, e.g. ``http://localhost:8080/0``.
    """

    def __init__(self, base_url: str, *, timeout_s: float = 5.0, session: Optional[Any] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.recording: Optional[str] = None

    def _command(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        url = self.base_url + path
        logger.debug("Motion command %s %s", url, params or "")
        try:
            res = self.session.get(url, params=params, timeout=self.timeout_s)
            res.raise_for_status()
        except requests.RequestException as exc:
            raise RecordingError(f"Webcam command {path} failed: {exc}") from exc
        return res.text

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def connect(self) -> str:
        """Check that Motion sees the camera."""
        return self._command("/detection/connection")

    def start_recording(self, label: str) -> str:
        self._command("/config/set", {"movie_filename": label})
        self._command("/config/set", {"snapshot_filename": label})
        self._command("/action/eventstart")
        self.recording = label
        logger.info("Recording %s started", label)
        return label

    def snapshot(self) -> None:
        self._command("/action/snapshot")

    def stop_recording(self) -> None:
        self._command("/action/eventend")
        if self.recording:
            logger.info("Recording %s stopped", self.recording)
        self.recording = None

    def close(self) -> None:
        self.session.close()


__all__ = ["MediaPaths", "MotionWebcam", "iso_timestamp"]
