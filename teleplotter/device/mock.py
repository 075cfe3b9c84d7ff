"""In-memory mock plotter used for development and unit tests."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from ..errors import HardwareError
from ..geometry import PathSet, summarize

logger = logging.getLogger(__name__)

XY = Tuple[float, float]


@dataclass
class MockPlotter:
    """Small simulation that mimics the :class:`GRBL` API."""

    driven: List[PathSet] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.position: XY = (0.0, 0.0)
        self.connected = False

    # Connection ---------------------------------------------------------
    def connect(self) -> "MockPlotter":
        self.connected = True
        return self

    def close(self) -> None:
        self.connected = False

    # Motion -------------------------------------------------------------
    def drive(self, path_set: PathSet) -> None:
        if not self.connected:
            raise HardwareError("Plotter is not connected")
        self.driven.append(path_set)
        for point in path_set.points():
            self.position = (point[0], point[1] if len(point) > 1 else 0.0)
        logger.info("[SIM] Drew %s, head at %s", summarize(path_set), self.position)
