"""Run submitted drawing code in the external drawing runtime."""
from __future__ import annotations

import json
import logging
import subprocess
from typing import List, Sequence

from .errors import ExecutionError
from .geometry import PathSet, summarize

logger = logging.getLogger(__name__)


class SubprocessExecutor:
    """Turn source code into a :class:`PathSet` using a separate process.

    The command receives the code on stdin and prints the turtles it produced
    as JSON on stdout.  Untrusted code therefore never runs inside this
    process.
    """

    def __init__(self, command: Sequence[str], *, timeout_s: float = 30.0) -> None:
        if not command:
            raise ValueError("An executor command is required")
        self.command: List[str] = list(command)
        self.timeout_s = timeout_s

    def execute(self, code: str) -> PathSet:
        logger.info("Executing %d bytes of drawing code", len(code))
        try:
            result = subprocess.run(
                self.command,
                input=code,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExecutionError(f"Code took longer than {self.timeout_s:g} seconds to run") from exc
        except OSError as exc:
            raise ExecutionError(f"Drawing runtime could not be started: {exc}") from exc

        if result.returncode != 0:
            message = _last_line(result.stderr) or f"exited with status {result.returncode}"
            raise ExecutionError(message)

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise ExecutionError(f"Drawing runtime returned invalid output: {exc}") from exc
        try:
            path_set = PathSet.from_data(data)
        except ValueError as exc:
            raise ExecutionError(str(exc)) from exc

        logger.info("Execution produced %s", summarize(path_set))
        return path_set


def _last_line(text: str) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""


__all__ = ["SubprocessExecutor"]
