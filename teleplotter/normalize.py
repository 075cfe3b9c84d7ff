"""Fit a path set into the plotter's safe coordinate range."""
from __future__ import annotations

from dataclasses import dataclass

from .geometry import PathSet


@dataclass(frozen=True)
class DeviceRange:
    """Safe physical bound, shared by every axis."""

    min: float = 0.0
    max: float = 120.0

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.min + self.max)

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


def rescale(value: float, low: float, high: float, out_low: float, out_high: float) -> float:
    """Map ``value`` from ``[low, high]`` onto ``[out_low, out_high]``.

    A collapsed input range maps everything to the middle of the output range.
    """

    if high == low:
        return 0.5 * (out_low + out_high)
    return out_low + (out_high - out_low) * (value - low) / (high - low)


def normalize(path_set: PathSet, device_range: DeviceRange) -> PathSet:
    """Rescale ``path_set`` so every coordinate lies inside ``device_range``.

    The range bounds take part in the min/max scan, so a drawing that already
    fits is returned as is.  One affine map is applied to every axis, which
    keeps the aspect ratio of the drawing.
    """

    low, high = device_range.min, device_range.max
    for v in path_set.values():
        if v < low:
            low = v
        if v > high:
            high = v

    if low == device_range.min and high == device_range.max:
        return path_set

    return path_set.map_values(
        lambda v: rescale(v, low, high, device_range.min, device_range.max)
    )


__all__ = ["DeviceRange", "normalize", "rescale"]
