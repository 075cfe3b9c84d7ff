"""Wire the collaborators together and own their process lifetime."""
from __future__ import annotations

import atexit
import logging
import os
import sys
import threading
from dataclasses import dataclass
from typing import Any

from .config import Settings
from .controller import JobPipeline, Messages
from .device import GRBL, Config, GPIOClearSignal, MockPlotter, NullClearSignal
from .executor import SubprocessExecutor
from .frontend import HttpChatFrontend
from .hardware import HardwareSession
from .recording import RecordingSession
from .webcam import MotionWebcam

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Process-wide resources and the pipeline that uses them."""

    settings: Settings
    plotter: Any
    clear_signal: Any
    webcam: Any
    frontend: Any
    pipeline: JobPipeline

    def __post_init__(self) -> None:
        self._closed = False
        self._close_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Runtime":
        if settings.serial.mock:
            plotter: Any = MockPlotter()
        else:
            plotter = GRBL(
                Config(
                    port=settings.serial.path or "",
                    baudrate=settings.serial.baudrate,
                    read_timeout_s=settings.serial.read_timeout,
                )
            )
        if settings.clear_signal.enabled:
            clear_signal: Any = GPIOClearSignal(settings.clear_signal.pin, settings.clear_signal.pulse_s)
        else:
            clear_signal = NullClearSignal()

        webcam = MotionWebcam(settings.webcam.base_url, timeout_s=settings.webcam.timeout_s)
        frontend = HttpChatFrontend(settings.chat.api_url, settings.chat.token, timeout_s=settings.chat.timeout_s)
        pipeline = JobPipeline(
            frontend=frontend,
            executor=SubprocessExecutor(settings.executor.command, timeout_s=settings.executor.timeout_s),
            hardware=HardwareSession(plotter, clear_signal),
            recorder=RecordingSession(webcam, settings.webcam.media_dir, settle_s=settings.webcam.settle_s),
            webcam=webcam,
            device_range=settings.device_range,
            messages=Messages(public_url=settings.chat.public_url),
            notice_timeout_s=settings.chat.timeout_s,
        )
        return cls(
            settings=settings,
            plotter=plotter,
            clear_signal=clear_signal,
            webcam=webcam,
            frontend=frontend,
            pipeline=pipeline,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self.plotter.connect()
        self.clear_signal.open()
        self.pipeline.startup()

    def shutdown(self) -> None:
        """Release hardware and stop recording; safe to call more than once."""

        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        logger.info("Stopping server...")
        for name, action in (
            ("stop recording", self.webcam.stop_recording),
            ("close plotter", self.plotter.close),
            ("release clear signal", self.clear_signal.close),
            ("stop front end", self.frontend.stop),
        ):
            try:
                action()
            except Exception:
                logger.exception("Could not %s during shutdown", name)

    def install_exit_handlers(self) -> None:
        """Release resources at exit and stop the process on any uncaught error."""

        atexit.register(self.shutdown)
        sys.excepthook = self._log_and_exit
        threading.excepthook = self._log_and_exit_thread

    def _log_and_exit(self, exc_type, exc, tb) -> None:
        # The interpreter exits with status 1 afterwards and runs the atexit shutdown
        logger.critical("Uncaught exception, exiting", exc_info=(exc_type, exc, tb))

    def _log_and_exit_thread(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        thread = args.thread.name if args.thread else "?"
        logger.critical(
            "Uncaught exception in thread %s, exiting",
            thread,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        self.shutdown()
        os._exit(1)


__all__ = ["Runtime"]
