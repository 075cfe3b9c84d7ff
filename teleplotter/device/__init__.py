"""Device abstractions used by the job pipeline."""

from .grbl import Config, GRBL
from .mock import MockPlotter
from .clear_signal import GPIOClearSignal, NullClearSignal

__all__ = ["Config", "GRBL", "MockPlotter", "GPIOClearSignal", "NullClearSignal"]
