from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

from teleplotter.config import Settings
from teleplotter.device import GRBL, MockPlotter, NullClearSignal
from teleplotter.runtime import Runtime

ROOT = Path(__file__).resolve().parents[1]

ENV = {
    "MOCK_SERIAL": "1",
    "BOARD_ENABLED": "false",
    "MOTION_URL": "http://localhost:8080/0",
    "CHAT_API_URL": "https://relay.example.org/api",
    "EXECUTOR_COMMAND": "node run.js",
    "CLAMP_MAX": "200",
}


def test_mock_serial_and_disabled_board():
    runtime = Runtime.from_settings(Settings.from_env(ENV))
    assert isinstance(runtime.plotter, MockPlotter)
    assert isinstance(runtime.clear_signal, NullClearSignal)
    assert runtime.pipeline.device_range.max == 200.0
    assert runtime.pipeline.executor.command == ["node", "run.js"]


def test_real_serial_is_configured_from_settings():
    env = dict(ENV, MOCK_SERIAL="0", SERIAL_PATH="/dev/ttyACM0", SERIAL_BAUD="115200")
    runtime = Runtime.from_settings(Settings.from_env(env))
    assert isinstance(runtime.plotter, GRBL)
    assert runtime.plotter.cfg.port == "/dev/ttyACM0"
    assert runtime.plotter.cfg.baudrate == 115200
    assert not runtime.plotter.is_connected


def test_shutdown_runs_once_and_survives_failures(pipeline, plotter, clear_signal, webcam, frontend):
    runtime = Runtime(
        settings=Settings(),
        plotter=plotter,
        clear_signal=clear_signal,
        webcam=webcam,
        frontend=frontend,
        pipeline=pipeline,
    )
    webcam.fail_stop = True
    runtime.shutdown()
    runtime.shutdown()
    assert plotter.closed and clear_signal.released and frontend.stopped
    assert webcam.calls.count("stop") == 2


CRASHING_SERVICE = """
import logging
import sys
import threading
import time
from pathlib import Path

from teleplotter.config import Settings
from teleplotter.runtime import Runtime

marker = Path(sys.argv[1])


class Part:
    def stop_recording(self):
        pass

    def close(self):
        pass

    def stop(self):
        with marker.open("a") as fh:
            fh.write("released\\n")


def fail():
    raise RuntimeError("boom")


logging.basicConfig()
runtime = Runtime(
    settings=Settings(),
    plotter=Part(),
    clear_signal=Part(),
    webcam=Part(),
    frontend=Part(),
    pipeline=None,
)
runtime.install_exit_handlers()
if sys.argv[2] == "thread":
    worker = threading.Thread(target=fail, name="job")
    worker.start()
    worker.join()
    time.sleep(10)
else:
    fail()
"""


def crash(tmp_path, where: str) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-c", CRASHING_SERVICE, str(tmp_path / "marker"), where],
        capture_output=True,
        text=True,
        timeout=30,
        env=env,
    )


@pytest.mark.parametrize(
    "where, logged",
    [
        ("main", "Uncaught exception, exiting"),
        ("thread", "Uncaught exception in thread job, exiting"),
    ],
)
def test_uncaught_error_releases_hardware_and_exits(tmp_path, where, logged):
    result = crash(tmp_path, where)
    assert result.returncode == 1, result.stderr
    assert logged in result.stderr
    assert "RuntimeError: boom" in result.stderr
    assert (tmp_path / "marker").read_text() == "released\n"
