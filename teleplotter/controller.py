"""Job pipeline: one drawing request at a time, from chat message to video."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import FrontendError, TeleplotterError
from .geometry import PathSet, summarize
from .hardware import HardwareSession
from .normalize import DeviceRange, normalize
from .recording import RecordingSession
from .webcam import MediaPaths

logger = logging.getLogger(__name__)


class JobState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS = {
    JobState.IDLE: {JobState.RUNNING},
    JobState.RUNNING: {JobState.SUCCEEDED, JobState.FAILED, JobState.IDLE},
    JobState.SUCCEEDED: {JobState.IDLE},
    JobState.FAILED: {JobState.IDLE},
}


@dataclass
class Messages:
    """Replies posted to the requester."""

    public_url: str = ""

    @property
    def where(self) -> str:
        return f" at {self.public_url}" if self.public_url else ""

    def drawing(self) -> str:
        return f"I'm drawing your code{self.where}, I'll send you a clip when it's done!"

    def busy(self) -> str:
        return (
            f"Sorry I could not run your code because I'm currently drawing{self.where}, "
            "please try again later."
        )

    def starting(self) -> str:
        return "Sorry I'm still getting the plotter ready, please try again in a minute."

    def failed(self, error: BaseException) -> str:
        return f'Sorry I could not run your code: "{error}"'


@dataclass
class JobRequest:
    """Inbound chat message carrying drawing code as an attachment."""

    channel: str
    attachment_url: str
    attachment_name: str = ""

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> Optional["JobRequest"]:
        """Build a request from a chat message; messages without files are ignored."""

        files = message.get("files") or []
        if not files:
            return None
        first = files[0]
        url = first.get("url_private") or first.get("url")
        if not url:
            raise ValueError("Attachment has no URL")
        channel = message.get("channel")
        if not channel:
            raise ValueError("Message has no channel")
        return cls(channel=str(channel), attachment_url=str(url), attachment_name=str(first.get("name", "")))


@dataclass
class Job:
    request: JobRequest
    source: str = ""
    session_id: Optional[str] = None
    media: Optional[MediaPaths] = None
    state: JobState = JobState.RUNNING
    error: Optional[str] = None
    notice: Optional[threading.Thread] = None


@dataclass
class JobPipeline:
    """Coordinate execution, hardware, recording and delivery."""

    frontend: Any
    executor: Any
    hardware: HardwareSession
    recorder: RecordingSession
    webcam: Any
    device_range: DeviceRange = field(default_factory=DeviceRange)
    messages: Messages = field(default_factory=Messages)
    notice_timeout_s: float = 30.0

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._state = JobState.IDLE
        self._ready = threading.Event()
        self._job: Optional[Job] = None
        self._last_job: Optional[Job] = None
        self._job_thread: Optional[threading.Thread] = None
        self.jobs_run = 0

    # ------------------------------------------------------------------
    # State register
    # ------------------------------------------------------------------
    @property
    def state(self) -> JobState:
        with self._lock:
            return self._state

    @property
    def is_busy(self) -> bool:
        return self.state is JobState.RUNNING

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def _transition(self, expected: JobState, new: JobState) -> None:
        with self._lock:
            self._transition_locked(expected, new)

    def _transition_locked(self, expected: JobState, new: JobState) -> None:
        if self._state is not expected or new not in _TRANSITIONS[expected]:
            raise RuntimeError(f"Illegal job transition {self._state.value} -> {new.value}")
        self._state = new

    def _try_acquire(self) -> bool:
        with self._lock:
            if self._state is not JobState.IDLE:
                return False
            self._transition_locked(JobState.IDLE, JobState.RUNNING)
            return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def startup(self) -> None:
        """Bring every collaborator to a known state before the first job."""

        logger.info("Starting up")
        self.frontend.restart()
        self.webcam.connect()
        self.webcam.stop_recording()
        self.hardware.reset_to_origin()
        self.hardware.pulse_clear()
        self._ready.set()
        logger.info("Ready for jobs")

    # ------------------------------------------------------------------
    # Job control
    # ------------------------------------------------------------------
    def submit(self, request: JobRequest, *, background: bool = True) -> bool:
        """Start ``request`` if nothing else is drawing.

        Returns ``False`` after telling the requester when the job was
        rejected.  Rejected requests are dropped, not queued.
        """

        if not self._ready.is_set():
            logger.warning("Rejected job from %s: not ready", request.channel)
            self._notify(request.channel, self.messages.starting())
            return False
        if not self._try_acquire():
            logger.info("Rejected job from %s: busy", request.channel)
            self._notify(request.channel, self.messages.busy())
            return False

        job = Job(request=request)
        with self._lock:
            self._job = job
        if not background:
            self._run(job)
            return True

        try:
            thread = threading.Thread(target=self._run, args=(job,), name="job", daemon=True)
            self._job_thread = thread
            thread.start()
        except BaseException:
            self._release(job)
            raise
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._job_thread
        if thread is not None:
            thread.join(timeout)

    def job_status(self) -> Dict[str, Any]:
        with self._lock:
            job = self._job or self._last_job
            return {
                "job_state": self._state.value,
                "ready": self._ready.is_set(),
                "jobs_run": self.jobs_run,
                "channel": job.request.channel if job else None,
                "session_id": job.session_id if job else None,
                "last_state": job.state.value if job else None,
                "last_error": job.error if job else None,
            }

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _run(self, job: Job) -> None:
        try:
            self._execute(job)
            job.state = JobState.SUCCEEDED
            self._transition(JobState.RUNNING, JobState.SUCCEEDED)
            logger.info("Job %s finished", job.session_id)
        except Exception as exc:
            job.state = JobState.FAILED
            job.error = str(exc)
            self._transition(JobState.RUNNING, JobState.FAILED)
            logger.error("Job from %s failed: %s", job.request.channel, exc, exc_info=not isinstance(exc, TeleplotterError))
            self._await_notice(job)
            self._notify(job.request.channel, self.messages.failed(exc))
            self._discard(job)
        finally:
            self._release(job)

    def _release(self, job: Job) -> None:
        with self._lock:
            self._transition_locked(self._state, JobState.IDLE)
            self._last_job = job
            self._job = None
            self.jobs_run += 1

    def _execute(self, job: Job) -> None:
        request = job.request
        logger.info("Job from %s: %s", request.channel, request.attachment_name or request.attachment_url)

        job.source = self.frontend.fetch_attachment(request.attachment_url)
        path_set: PathSet = self.executor.execute(job.source)
        normalized = normalize(path_set, self.device_range)
        if normalized is not path_set:
            logger.info("Rescaled %s into [%g, %g]", summarize(path_set), self.device_range.min, self.device_range.max)

        # The drawing notice never delays the draw
        job.notice = threading.Thread(
            target=self._notify,
            args=(request.channel, self.messages.drawing()),
            name="notice",
            daemon=True,
        )
        job.notice.start()
        self.hardware.pulse_clear()

        with self.recorder.session() as media:
            job.session_id = media.label
            job.media = media
            self.hardware.draw(normalized)

        self._await_notice(job)
        self._deliver(job)

    def _await_notice(self, job: Job) -> None:
        if job.notice is not None:
            job.notice.join(self.notice_timeout_s)

    def _deliver(self, job: Job) -> None:
        if job.media is None:
            return
        for path in (job.media.video, job.media.snapshot):
            if not path.exists():
                logger.warning("Media file %s was not written", path)
                continue
            try:
                self.frontend.deliver_file(job.request.channel, path, path.name)
            except Exception:
                logger.exception("Delivering %s failed", path.name)

    def _discard(self, job: Job) -> None:
        if job.media is None:
            return
        for path in (job.media.video, job.media.snapshot):
            _unlink(path)

    def _notify(self, channel: str, text: str) -> None:
        try:
            self.frontend.post_message(channel, text)
        except FrontendError:
            logger.exception("Could not notify %s", channel)


def _unlink(path: Path) -> None:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Could not remove %s", path)


__all__ = ["JobState", "JobRequest", "Job", "JobPipeline", "Messages"]
