"""GRBL serial driver.

Streams a :class:`~teleplotter.geometry.PathSet` to a GRBL compatible pen
plotter: travel moves with the pen up, ``G1`` moves with the pen down.  Every
fault on the link is reported as :class:`~teleplotter.errors.HardwareError`.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import serial

from ..errors import HardwareError
from ..geometry import PathSet, Point

logger = logging.getLogger(__name__)

_STATUS_STATE = re.compile(r"^<\s*([A-Za-z]+)(?=[|,>])")
_STATUS_WPOS = re.compile(r"WPos:([^|>]+)")
_STATUS_MPOS = re.compile(r"MPos:([^|>]+)")


@dataclass
class Config:
    # Serial
    port: str = "/dev/ttyACM0"
    baudrate: int = 9600
    read_timeout_s: float = 1.0

    # Feeds (mm/min)
    feed_travel: int = 3000
    feed_draw: int = 2000

    # Servo PWM values
    s_down: int = 90
    s_up: int = 40
    pen_settle_s: float = 0.1

    # Seconds to wait for the machine to report Idle after a path
    idle_timeout_s: float = 600.0


class GRBL:
    """Minimal GRBL wrapper used by the hardware session."""

    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self.ser: Optional[serial.Serial] = None

    # -------- Connection / basic I/O --------
    def connect(self) -> "GRBL":
        try:
            self.ser = serial.Serial(
                self.cfg.port, baudrate=self.cfg.baudrate, timeout=self.cfg.read_timeout_s
            )
        except serial.SerialException as exc:
            raise HardwareError(f"Could not open {self.cfg.port}: {exc}") from exc
        time.sleep(2.0)
        self._writeln("\r\n")  # wake
        self.flush_input()
        self.cmd("G90")  # absolute coordinates
        self.cmd("G21")  # millimeters
        logger.info("Connected to plotter on %s at %d baud", self.cfg.port, self.cfg.baudrate)
        return self

    def close(self) -> None:
        if self.ser and self.ser.is_open:
            self.ser.close()
            logger.info("Closed plotter connection")

    @property
    def is_connected(self) -> bool:
        return bool(self.ser and self.ser.is_open)

    def _require_connection(self) -> serial.Serial:
        if not self.ser or not self.ser.is_open:
            raise HardwareError("Plotter is not connected")
        return self.ser

    def _writeln(self, s: str) -> None:
        if not s.endswith("\n"):
            s += "\n"
        ser = self._require_connection()
        try:
            ser.write(s.encode("ascii"))
            ser.flush()
        except serial.SerialException as exc:
            raise HardwareError(f"Serial write failed: {exc}") from exc

    def _readlines_until_timeout(self) -> List[str]:
        ser = self._require_connection()
        lines: List[str] = []
        t0 = time.monotonic()
        while True:
            try:
                line = ser.readline().decode(errors="ignore").strip()
            except serial.SerialException as exc:
                raise HardwareError(f"Serial read failed: {exc}") from exc
            if line:
                lines.append(line)
                low = line.lower()
                if low.startswith("ok"):
                    break
                if low.startswith("error") or low.startswith("alarm"):
                    raise HardwareError(f"Plotter rejected command: {line}")
            elif time.monotonic() - t0 > self.cfg.read_timeout_s:
                break
        return lines

    def cmd(self, gcode: str, wait_ok: bool = True) -> List[str]:
        self._writeln(gcode)
        return self._readlines_until_timeout() if wait_ok else []

    def flush_input(self) -> None:
        if self.ser:
            self.ser.reset_input_buffer()

    # -------- Status / idle waiting --------
    def status(self) -> Dict[str, Optional[object]]:
        ser = self._require_connection()
        try:
            ser.write(b"?")
            ser.flush()
            line = ser.readline().decode(errors="ignore").strip()
        except serial.SerialException as exc:
            raise HardwareError(f"Status query failed: {exc}") from exc

        state = None
        wpos = None
        m = _STATUS_STATE.search(line)
        if m:
            state = m.group(1)
        m_pos = _STATUS_WPOS.search(line) or _STATUS_MPOS.search(line)
        if m_pos:
            wpos = tuple(float(v) for v in m_pos.group(1).split(",")[:3])
        return {"raw": line, "state": state, "wpos": wpos}

    def is_idle(self) -> bool:
        s = self.status().get("state", None)
        return (s or "").upper() == "IDLE"

    def wait_idle(self, timeout: Optional[float] = None, poll: float = 0.05) -> None:
        timeout = self.cfg.idle_timeout_s if timeout is None else timeout
        t0 = time.monotonic()
        while time.monotonic() - t0 < timeout:
            if self.is_idle():
                return
            time.sleep(poll)
        raise HardwareError("Plotter did not become idle in time")

    # -------- Movement --------
    def move_xy(self, x: float, y: float) -> List[str]:
        return self.cmd(f"G0 X{x:.3f} Y{y:.3f} F{self.cfg.feed_travel}")

    def draw_xy(self, x: float, y: float) -> List[str]:
        """Move in drawing mode."""

        return self.cmd(f"G1 X{x:.3f} Y{y:.3f} F{self.cfg.feed_draw}")

    def pen_up(self) -> None:
        self.cmd(f"M3 S{self.cfg.s_up}")
        time.sleep(self.cfg.pen_settle_s)

    def pen_down(self) -> None:
        self.cmd(f"M3 S{self.cfg.s_down}")
        time.sleep(self.cfg.pen_settle_s)

    # -------- Path execution --------
    def drive(self, path_set: PathSet) -> None:
        """Draw every stroke of ``path_set`` and wait until motion has stopped.

        A single-point stroke is a pure travel move.
        """

        for stroke in path_set.strokes():
            if not stroke:
                continue
            self.pen_up()
            self.move_xy(*_xy(stroke[0]))
            if len(stroke) < 2:
                continue
            self.pen_down()
            for point in stroke[1:]:
                self.draw_xy(*_xy(point))
        self.pen_up()
        self.wait_idle()


def _xy(point: Point) -> tuple:
    if len(point) >= 2:
        return point[0], point[1]
    return point[0], 0.0


__all__ = ["Config", "GRBL"]
