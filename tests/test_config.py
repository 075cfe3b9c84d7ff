from __future__ import annotations

from pathlib import Path

import pytest

from teleplotter.config import Settings
from teleplotter.errors import ConfigError

BASE_ENV = {
    "SERIAL_PATH": "/dev/ttyUSB0",
    "MOTION_URL": "http://localhost:8080/0/",
    "CHAT_API_URL": "https://relay.example.org/api",
    "EXECUTOR_COMMAND": "node run-turtles.js --strict",
}


def env(**overrides):
    values = dict(BASE_ENV)
    values.update(overrides)
    return {k: v for k, v in values.items() if v is not None}


def test_defaults():
    settings = Settings.from_env(env())
    assert settings.device_range.min == 0.0
    assert settings.device_range.max == 120.0
    assert settings.serial.baudrate == 9600
    assert settings.clear_signal.pin == 4
    assert settings.clear_signal.pulse_s == 0.2
    assert settings.webcam.settle_s == 5.0
    assert settings.webcam.media_dir == Path("/var/lib/motion")
    assert settings.webcam.base_url == "http://localhost:8080/0"
    assert settings.executor.command == ["node", "run-turtles.js", "--strict"]
    assert settings.log_level == "INFO"
    assert settings.port == 8000


def test_overrides():
    settings = Settings.from_env(
        env(
            SERIAL_PATH=None,
            MOCK_SERIAL="yes",
            CLAMP_MIN="10",
            CLAMP_MAX="200.5",
            BOARD_ENABLED="0",
            MOTION_FILEPATH="/tmp/motion",
            LOG_LEVEL="debug",
            PORT="9000",
        )
    )
    assert settings.serial.mock is True
    assert settings.serial.path is None
    assert (settings.device_range.min, settings.device_range.max) == (10.0, 200.5)
    assert settings.clear_signal.enabled is False
    assert settings.webcam.media_dir == Path("/tmp/motion")
    assert settings.log_level == "DEBUG"
    assert settings.port == 9000


def test_blank_values_fall_back_to_defaults():
    assert Settings.from_env(env(SERIAL_BAUD="  ")).serial.baudrate == 9600


@pytest.mark.parametrize(
    "overrides, problem",
    [
        ({"CLAMP_MIN": "120", "CLAMP_MAX": "120"}, "CLAMP_MIN must be lower"),
        ({"SERIAL_PATH": None}, "SERIAL_PATH is required"),
        ({"SERIAL_BAUD": "0"}, "SERIAL_BAUD must be positive"),
        ({"BOARD_PULSE_S": "0"}, "BOARD_PULSE_S"),
        ({"MOTION_URL": None}, "MOTION_URL is required"),
        ({"MOTION_SETTLE_S": "-1"}, "MOTION_SETTLE_S"),
        ({"CHAT_API_URL": None}, "CHAT_API_URL is required"),
        ({"EXECUTOR_COMMAND": ""}, "EXECUTOR_COMMAND is required"),
    ],
)
def test_invalid_settings(overrides, problem):
    with pytest.raises(ConfigError, match=problem):
        Settings.from_env(env(**overrides))


def test_all_problems_are_reported_together():
    with pytest.raises(ConfigError) as info:
        Settings.from_env({})
    message = str(info.value)
    assert "MOTION_URL" in message and "CHAT_API_URL" in message and "EXECUTOR_COMMAND" in message


@pytest.mark.parametrize("name", ["SERIAL_BAUD", "PORT", "BOARD_PIN"])
def test_non_integer_values_name_the_variable(name):
    with pytest.raises(ConfigError, match=name):
        Settings.from_env(env(**{name: "fast"}))


def test_non_numeric_clamp():
    with pytest.raises(ConfigError, match="CLAMP_MAX must be a number"):
        Settings.from_env(env(CLAMP_MAX="wide"))
