"""Exception hierarchy shared by the job pipeline and its collaborators."""
from __future__ import annotations


class TeleplotterError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(TeleplotterError):
    """Raised when the environment does not describe a usable setup."""


class ExecutionError(TeleplotterError):
    """The submitted drawing code could not be turned into a path set."""


class HardwareError(TeleplotterError):
    """The plotter failed while moving or did not answer in time."""


class RecordingError(TeleplotterError):
    """A webcam control command failed."""


class FrontendError(TeleplotterError):
    """The chat front end could not be reached."""


class DeliveryError(FrontendError):
    """A media file could not be uploaded to the requester."""


__all__ = [
    "TeleplotterError",
    "ConfigError",
    "ExecutionError",
    "HardwareError",
    "RecordingError",
    "FrontendError",
    "DeliveryError",
]
