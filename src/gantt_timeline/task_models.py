from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskType(str, Enum):
    """Bar variants; project and tag bars are envelopes over their dependents."""

    PLAIN = "plain"
    PROJECT = "project"
    TAG = "tag"

    @property
    def is_envelope(self) -> bool:
        return self in (TaskType.PROJECT, TaskType.TAG)

    @classmethod
    def coerce(cls, value: Any) -> "TaskType":
        if isinstance(value, TaskType):
            return value
        if value in (None, ""):
            return cls.PLAIN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.PLAIN


@dataclass
class Task:
    """
    One row of the chart.

    `start`/`end` hold the values as supplied; `start_at`/`end_at` are the
    normalized instants (end exclusive) filled in by the normalizer.
    """

    name: str
    start: Any = None
    end: Any = None
    id: str | None = None
    progress: float = 0
    dependencies: list[str] = field(default_factory=list)
    type: TaskType = TaskType.PLAIN
    visible: bool | None = True
    collapsed: bool = False
    custom_class: str = ""
    color: str | None = None
    start_at: dt.datetime | None = None
    end_at: dt.datetime | None = None
    invalid: bool = False
    index: int | None = None

    @property
    def is_visible(self) -> bool:
        return self.visible is None or bool(self.visible)

    @property
    def is_envelope(self) -> bool:
        return self.type.is_envelope


@dataclass
class BarGeometry:
    """Pixel rectangle of a bar. Derived from task dates; never stored on the task."""

    x: float
    y: float
    width: float
    height: float

    @property
    def end_x(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class DateRange:
    """Visible chart window: `start` and `end` are the padded gantt bounds."""

    start: dt.datetime
    end: dt.datetime


@dataclass(frozen=True)
class AxisTick:
    """One header column: its instant plus upper/lower label text and placement."""

    date: dt.datetime
    lower_text: str
    upper_text: str
    lower_x: float
    upper_x: float
    lower_y: float
    upper_y: float


@dataclass(frozen=True)
class GridTick:
    """Vertical grid line position; thick lines mark month/quarter boundaries."""

    date: dt.datetime
    x: float
    thick: bool = False


@dataclass(frozen=True)
class PathCommand:
    """
    One absolute drawing step of an arrow path.

    `op` is "M" (move), "L" (line), "A" (quarter arc of `radius` ending at
    x, y, swept clockwise when `sweep` is 1).
    """

    op: str
    x: float
    y: float
    radius: float = 0.0
    sweep: int = 0


@dataclass
class ArrowPath:
    """Routed dependency arrow between two bars."""

    from_id: str
    to_id: str
    commands: list[PathCommand] = field(default_factory=list)
    detour: bool = False

    @property
    def d(self) -> str:
        """SVG path data for the route."""
        parts: list[str] = []
        for cmd in self.commands:
            if cmd.op == "A":
                parts.append(f"A {_num(cmd.radius)} {_num(cmd.radius)} 0 0 {cmd.sweep} {_num(cmd.x)} {_num(cmd.y)}")
            else:
                parts.append(f"{cmd.op} {_num(cmd.x)} {_num(cmd.y)}")
        return " ".join(parts)

    @property
    def points(self) -> list[tuple[float, float]]:
        return [(cmd.x, cmd.y) for cmd in self.commands]


def _num(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip("0").rstrip(".")
