from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from teleplotter.controller import JobPipeline, JobRequest, Messages
from teleplotter.errors import DeliveryError, RecordingError
from teleplotter.geometry import PathSet
from teleplotter.hardware import ORIGIN_PATH, HardwareSession
from teleplotter.normalize import DeviceRange
from teleplotter.recording import RecordingSession


class FakeFrontend:
    def __init__(self) -> None:
        self.sources: Dict[str, str] = {}
        self.messages: List[Tuple[str, str]] = []
        self.delivered: List[Tuple[str, str]] = []
        self.fail_delivery_for: set = set()
        self.restarts = 0
        self.stopped = False

    def restart(self) -> None:
        self.restarts += 1

    def stop(self) -> None:
        self.stopped = True

    def fetch_attachment(self, url: str) -> str:
        return self.sources[url]

    def post_message(self, channel: str, text: str) -> None:
        self.messages.append((channel, text))

    def deliver_file(self, channel: str, path: Path, name: str = "", comment: str = "") -> None:
        try:
            if Path(name).suffix in self.fail_delivery_for:
                raise DeliveryError(f"upload of {name} failed")
            self.delivered.append((channel, name))
        finally:
            os.remove(path)

    def texts(self, channel: str) -> List[str]:
        return [text for ch, text in self.messages if ch == channel]


class FakeExecutor:
    def __init__(self) -> None:
        self.programs: Dict[str, object] = {}
        self.calls: List[str] = []

    def execute(self, code: str) -> PathSet:
        self.calls.append(code)
        result = self.programs[code]
        if isinstance(result, Exception):
            raise result
        return result


class FakePlotter:
    def __init__(self) -> None:
        self.driven: List[PathSet] = []
        self.fail_drawing: Optional[Exception] = None
        self.fail_reset: Optional[Exception] = None
        self.block: Optional[threading.Event] = None
        self.drawing = threading.Event()
        self.closed = False
        self.connected = False

    def connect(self) -> "FakePlotter":
        self.connected = True
        return self

    def drive(self, path_set: PathSet) -> None:
        self.driven.append(path_set)
        if path_set == ORIGIN_PATH:
            if self.fail_reset is not None:
                raise self.fail_reset
            return
        self.drawing.set()
        if self.block is not None:
            assert self.block.wait(5), "draw was never released"
        if self.fail_drawing is not None:
            raise self.fail_drawing

    def close(self) -> None:
        self.closed = True

    @property
    def drawings(self) -> List[PathSet]:
        return [p for p in self.driven if p != ORIGIN_PATH]

    @property
    def resets(self) -> int:
        return sum(1 for p in self.driven if p == ORIGIN_PATH)


class FakeClearSignal:
    def __init__(self) -> None:
        self.pulses = 0
        self.fail: Optional[Exception] = None
        self.released = False

    def open(self) -> "FakeClearSignal":
        return self

    def close(self) -> None:
        self.released = True

    def pulse(self) -> None:
        self.pulses += 1
        if self.fail is not None:
            raise self.fail


class FakeWebcam:
    """Writes the media files Motion would produce when an event ends."""

    def __init__(self, media_dir: Path) -> None:
        self.media_dir = media_dir
        self.calls: List[str] = []
        self.recording: Optional[str] = None
        self.fail_start = False
        self.fail_stop = False

    def connect(self) -> str:
        self.calls.append("connect")
        return "Camera 0 Connection OK"

    def start_recording(self, label: str) -> str:
        self.calls.append("start")
        if self.fail_start:
            raise RecordingError("webcam unreachable")
        self.recording = label
        return label

    def snapshot(self) -> None:
        self.calls.append("snapshot")

    def stop_recording(self) -> None:
        self.calls.append("stop")
        if self.fail_stop:
            raise RecordingError("eventend failed")
        if self.recording:
            (self.media_dir / f"{self.recording}.mkv").write_bytes(b"video")
            (self.media_dir / f"{self.recording}.jpg").write_bytes(b"image")
        self.recording = None


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    path = tmp_path / "motion"
    path.mkdir()
    return path


@pytest.fixture
def frontend() -> FakeFrontend:
    return FakeFrontend()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def plotter() -> FakePlotter:
    return FakePlotter()


@pytest.fixture
def clear_signal() -> FakeClearSignal:
    return FakeClearSignal()


@pytest.fixture
def webcam(media_dir: Path) -> FakeWebcam:
    return FakeWebcam(media_dir)


@pytest.fixture
def pipeline(frontend, executor, plotter, clear_signal, webcam, media_dir) -> JobPipeline:
    pipe = JobPipeline(
        frontend=frontend,
        executor=executor,
        hardware=HardwareSession(plotter, clear_signal),
        recorder=RecordingSession(webcam, media_dir, settle_s=0),
        webcam=webcam,
        device_range=DeviceRange(0, 120),
        messages=Messages(public_url="plotter.example.org"),
    )
    pipe.startup()
    return pipe


@pytest.fixture
def submit_code(frontend, executor):
    """Register ``code`` as the attachment of a new request and return it."""

    counter = {"n": 0}

    def make(code: str, result, channel: str = "C1") -> JobRequest:
        counter["n"] += 1
        url = f"https://chat.example.org/files/{counter['n']}/draw.js"
        frontend.sources[url] = code
        executor.programs[code] = result
        return JobRequest(channel=channel, attachment_url=url, attachment_name="draw.js")

    return make

