"""Stand-in drawing runtime that answers any code with a spiral.

Useful for bench testing without the real runtime::

    EXECUTOR_COMMAND="python examples/spiral.py" MOCK_SERIAL=1 teleplotter
"""
from __future__ import annotations

import json
import math
import sys

from teleplotter.geometry import PathSet, Turtle


def build_spiral(turns: int = 10, radius: float = 100.0, steps: int = 800) -> PathSet:
    pts = []
    for i in range(steps):
        t = i / (steps - 1)
        angle = turns * 2 * math.pi * t
        r = radius * t
        pts.append((r * math.cos(angle) + radius, r * math.sin(angle) + radius))
    return PathSet((Turtle((tuple(pts),)),))


def main() -> None:
    sys.stdin.read()
    json.dump(build_spiral().to_data(), sys.stdout)


if __name__ == "__main__":
    main()
