"""Configuration models for the remote plotting service.

Settings come from the process environment (optionally seeded from a ``.env``
file) and are validated once at start-up.
"""
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .normalize import DeviceRange

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class SerialSettings:
    """Serial link to the plotter."""

    path: Optional[str] = None
    baudrate: int = 9600
    read_timeout: float = 1.0
    mock: bool = False


@dataclass
class ClearSignalSettings:
    """Digital line wired to the writing tablet's clear button."""

    pin: int = 4
    pulse_s: float = 0.2
    enabled: bool = True


@dataclass
class WebcamSettings:
    """Motion daemon control and the directory it writes media to."""

    base_url: str = ""
    media_dir: Path = Path("/var/lib/motion")
    settle_s: float = 5.0
    timeout_s: float = 5.0


@dataclass
class ChatSettings:
    api_url: str = ""
    token: str = ""
    public_url: str = ""
    timeout_s: float = 30.0


@dataclass
class ExecutorSettings:
    command: List[str] = field(default_factory=list)
    timeout_s: float = 30.0


@dataclass
class Settings:
    """Aggregate settings for the service."""

    device_range: DeviceRange = field(default_factory=DeviceRange)
    serial: SerialSettings = field(default_factory=SerialSettings)
    clear_signal: ClearSignalSettings = field(default_factory=ClearSignalSettings)
    webcam: WebcamSettings = field(default_factory=WebcamSettings)
    chat: ChatSettings = field(default_factory=ChatSettings)
    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from ``env`` (defaults to ``os.environ`` plus ``.env``)."""

        if env is None:
            load_dotenv()
            env = os.environ
        reader = _EnvReader(env)
        settings = cls(
            device_range=DeviceRange(
                min=reader.float("CLAMP_MIN", 0.0),
                max=reader.float("CLAMP_MAX", 120.0),
            ),
            serial=SerialSettings(
                path=env.get("SERIAL_PATH") or None,
                baudrate=reader.int("SERIAL_BAUD", 9600),
                read_timeout=reader.float("SERIAL_TIMEOUT", 1.0),
                mock=reader.bool("MOCK_SERIAL", False),
            ),
            clear_signal=ClearSignalSettings(
                pin=reader.int("BOARD_PIN", 4),
                pulse_s=reader.float("BOARD_PULSE_S", 0.2),
                enabled=reader.bool("BOARD_ENABLED", True),
            ),
            webcam=WebcamSettings(
                base_url=env.get("MOTION_URL", "").rstrip("/"),
                media_dir=Path(env.get("MOTION_FILEPATH", "/var/lib/motion")),
                settle_s=reader.float("MOTION_SETTLE_S", 5.0),
                timeout_s=reader.float("MOTION_TIMEOUT_S", 5.0),
            ),
            chat=ChatSettings(
                api_url=env.get("CHAT_API_URL", "").rstrip("/"),
                token=env.get("CHAT_TOKEN", ""),
                public_url=env.get("PUBLIC_URL", ""),
                timeout_s=reader.float("CHAT_TIMEOUT_S", 30.0),
            ),
            executor=ExecutorSettings(
                command=shlex.split(env.get("EXECUTOR_COMMAND", "")),
                timeout_s=reader.float("EXECUTOR_TIMEOUT_S", 30.0),
            ),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_file=env.get("LOG_FILE") or None,
            host=env.get("HOST", "0.0.0.0"),
            port=reader.int("PORT", 8000),
        )
        settings.validate()
        return settings

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> None:
        problems: List[str] = []
        if not self.device_range.min < self.device_range.max:
            problems.append("CLAMP_MIN must be lower than CLAMP_MAX")
        if self.serial.baudrate <= 0:
            problems.append("SERIAL_BAUD must be positive")
        if not self.serial.mock and not self.serial.path:
            problems.append("SERIAL_PATH is required unless MOCK_SERIAL is set")
        if self.clear_signal.pulse_s <= 0:
            problems.append("BOARD_PULSE_S must be positive")
        if not self.webcam.base_url:
            problems.append("MOTION_URL is required")
        if self.webcam.settle_s < 0:
            problems.append("MOTION_SETTLE_S must not be negative")
        if not self.chat.api_url:
            problems.append("CHAT_API_URL is required")
        if not self.executor.command:
            problems.append("EXECUTOR_COMMAND is required")
        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems))


class _EnvReader:
    """Typed access to string variables, reporting the offending name."""

    def __init__(self, env: Mapping[str, str]) -> None:
        self.env = env

    def _raw(self, name: str) -> Optional[str]:
        value = self.env.get(name)
        if value is None or value.strip() == "":
            return None
        return value.strip()

    def int(self, name: str, default: int) -> int:
        raw = self._raw(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc

    def float(self, name: str, default: float) -> float:
        raw = self._raw(name)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be a number, got {raw!r}") from exc

    def bool(self, name: str, default: bool) -> bool:
        raw = self._raw(name)
        if raw is None:
            return default
        return raw.lower() in _TRUE


__all__ = [
    "SerialSettings",
    "ClearSignalSettings",
    "WebcamSettings",
    "ChatSettings",
    "ExecutorSettings",
    "Settings",
]
