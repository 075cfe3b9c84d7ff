"""Top-level package for the remote plotting service.

This package runs untrusted drawing code on a pen plotter one job at a time,
films the draw and sends the clip back to the chat channel that asked for it.
"""

from .geometry import PathSet, Turtle
from .normalize import DeviceRange, normalize
from .controller import JobPipeline, JobRequest, JobState

__all__ = [
    "PathSet",
    "Turtle",
    "DeviceRange",
    "normalize",
    "JobPipeline",
    "JobRequest",
    "JobState",
]
