"""Ordered access to the plotter and the tablet clear line.

The head must be parked at the origin before a job is accepted and after one
finishes, whatever the outcome.  :meth:`HardwareSession.draw` owns that closing
bracket.
"""
from __future__ import annotations

import logging
from typing import Any

from .errors import HardwareError
from .geometry import PathSet, summarize

logger = logging.getLogger(__name__)

ORIGIN_PATH = PathSet.from_data([[[[0, 0]]]])


class HardwareSession:
    """Clear, reset and draw against the plotter collaborator."""

    def __init__(self, plotter: Any, clear_signal: Any) -> None:
        self.plotter = plotter
        self.clear_signal = clear_signal

    def pulse_clear(self) -> None:
        try:
            self.clear_signal.pulse()
        except Exception:
            logger.exception("Clearing the board failed")

    def reset_to_origin(self) -> None:
        self._drive(ORIGIN_PATH)
        logger.info("Plotter parked at origin")

    def draw(self, path_set: PathSet) -> None:
        logger.info("Drawing %s", summarize(path_set))
        try:
            self._drive(path_set)
        except HardwareError:
            try:
                self.reset_to_origin()
            except HardwareError:
                logger.exception("Could not park the plotter after a failed draw")
            raise
        self.reset_to_origin()

    def _drive(self, path_set: PathSet) -> None:
        try:
            self.plotter.drive(path_set)
        except HardwareError:
            raise
        except Exception as exc:
            raise HardwareError(str(exc) or type(exc).__name__) from exc


__all__ = ["HardwareSession", "ORIGIN_PATH"]
