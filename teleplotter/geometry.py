"""Path primitives produced by the drawing runtime.

A drawing is a :class:`PathSet`: an ordered collection of turtles, each turtle
owning strokes (pen-down poly-lines) made of points.  All containers are
immutable so a path set can be handed between pipeline stages without copies;
coordinate rewrites go through :meth:`PathSet.map_values` which rebuilds a set
of identical shape.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

Point = Tuple[float, ...]
Stroke = Tuple[Point, ...]


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Turtle:
    """One drawing pass made of connected strokes."""

    strokes: Tuple[Stroke, ...] = ()

    def points(self) -> Iterator[Point]:
        for stroke in self.strokes:
            yield from stroke


# ---------------------------------------------------------------------------
# PathSet container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathSet:
    """Ordered turtles whose points all share the same arity."""

    turtles: Tuple[Turtle, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        arities = {len(p) for t in self.turtles for p in t.points()}
        if len(arities) > 1:
            raise ValueError(f"Points of mixed arity: {sorted(arities)}")

    # ----------------------------- high level info ---------------------------
    def __iter__(self) -> Iterator[Turtle]:
        return iter(self.turtles)

    def __len__(self) -> int:
        return len(self.turtles)

    @property
    def arity(self) -> Optional[int]:
        for point in self.points():
            return len(point)
        return None

    def points(self) -> Iterator[Point]:
        for turtle in self.turtles:
            yield from turtle.points()

    def values(self) -> Iterator[float]:
        for point in self.points():
            yield from point

    def strokes(self) -> Iterator[Stroke]:
        for turtle in self.turtles:
            yield from turtle.strokes

    def shape(self) -> List[List[int]]:
        """Point count of every stroke, grouped per turtle."""
        return [[len(stroke) for stroke in t.strokes] for t in self.turtles]

    # --------------------------- transformation ----------------------------
    def map_values(self, fn: Callable[[float], float]) -> "PathSet":
        return PathSet(
            turtles=tuple(
                Turtle(
                    strokes=tuple(
                        tuple(tuple(fn(v) for v in point) for point in stroke)
                        for stroke in turtle.strokes
                    )
                )
                for turtle in self.turtles
            )
        )

    # ------------------------------- serialisation ---------------------------
    def to_data(self) -> List[List[List[List[float]]]]:
        return [
            [[list(point) for point in stroke] for stroke in turtle.strokes]
            for turtle in self.turtles
        ]

    @staticmethod
    def from_data(data: Any) -> "PathSet":
        """Build a path set from nested lists.

        Each turtle is either a list of strokes or a mapping carrying the
        strokes under ``path``, which is what the drawing runtime emits.
        """

        if not isinstance(data, (list, tuple)):
            raise ValueError(f"Expected a list of turtles, got {type(data).__name__}")
        turtles = []
        for raw in data:
            if isinstance(raw, dict):
                raw = raw.get("path", [])
            turtles.append(Turtle(strokes=tuple(_stroke(s) for s in _sequence(raw, "turtle"))))
        return PathSet(turtles=tuple(turtles))


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _sequence(value: Any, what: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid {what}: expected a list, got {type(value).__name__}")
    return value


def _stroke(raw: Any) -> Stroke:
    return tuple(_point(p) for p in _sequence(raw, "stroke"))


def _point(raw: Any) -> Point:
    values = _sequence(raw, "point")
    if not values:
        raise ValueError("Invalid point: no coordinates")
    point = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"Invalid coordinate: {v!r}")
        if not math.isfinite(v):
            raise ValueError(f"Coordinate is not finite: {v!r}")
        point.append(float(v))
    return tuple(point)


def summarize(path_set: PathSet) -> Dict[str, int]:
    shape = path_set.shape()
    return {
        "turtles": len(shape),
        "strokes": sum(len(t) for t in shape),
        "points": sum(sum(t) for t in shape),
    }


__all__ = ["Point", "Stroke", "Turtle", "PathSet", "summarize"]
