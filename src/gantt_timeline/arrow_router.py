from __future__ import annotations

from typing import Protocol

from .config import ChartOptions
from .task_models import ArrowPath, PathCommand

START_SLIDE_STEP = 10
CHEVRON_SIZE = 5


class Rect(Protocol):
    x: float
    y: float
    width: float
    height: float


def route(
    from_rect: Rect,
    to_rect: Rect,
    options: ChartOptions,
    from_id: str = "",
    to_id: str = "",
) -> ArrowPath:
    """
    Route a dependency arrow from `from_rect` (dependency) to `to_rect` (dependent).

    The arrow drops from the bottom of the dependency, bends with a quarter arc
    of radius `arrow_curve` and runs horizontally into the dependent's left
    edge. When the dependent starts before the dependency (within `padding`),
    it detours: drop, bend left, run past the dependent's left edge, bend,
    run vertically to the dependent's row, bend back and run in.
    """

    padding = options.padding
    curve = options.arrow_curve

    start_x = from_rect.x + from_rect.width / 2
    # Slide the start point left while the dependent would start under it.
    while to_rect.x < start_x + padding and start_x > from_rect.x + padding:
        start_x -= START_SLIDE_STEP

    start_y = from_rect.y + options.bar_height
    end_x = to_rect.x - padding / 2
    end_y = to_rect.y + options.bar_height / 2

    from_is_below_to = from_rect.y > to_rect.y
    clockwise = 1 if from_is_below_to else 0
    curve_y = -curve if from_is_below_to else curve

    if to_rect.x < from_rect.x + padding:
        commands = _detour(start_x, start_y, end_x, end_y, to_rect, padding, curve, curve_y, clockwise)
        detour = True
    else:
        offset = end_y + curve if from_is_below_to else end_y - curve
        commands = [
            PathCommand("M", start_x, start_y),
            PathCommand("L", start_x, offset),
            PathCommand("A", start_x + curve, offset + curve_y, radius=curve, sweep=clockwise),
            PathCommand("L", end_x, end_y),
        ]
        detour = False

    commands.extend(_chevron(end_x, end_y))
    return ArrowPath(from_id=from_id, to_id=to_id, commands=commands, detour=detour)


def _detour(
    start_x: float,
    start_y: float,
    end_x: float,
    end_y: float,
    to_rect: Rect,
    padding: float,
    curve: float,
    curve_y: float,
    clockwise: int,
) -> list[PathCommand]:
    down_1 = padding / 2 - curve
    down_2 = to_rect.y + to_rect.height / 2 - curve_y
    left = to_rect.x - padding

    y = start_y + down_1
    commands = [
        PathCommand("M", start_x, start_y),
        PathCommand("L", start_x, y),
        PathCommand("A", start_x - curve, y + curve, radius=curve, sweep=1),
    ]
    y += curve
    commands.append(PathCommand("L", left, y))
    x = left - curve
    y += curve_y
    commands.append(PathCommand("A", x, y, radius=curve, sweep=clockwise))
    commands.append(PathCommand("L", x, down_2))
    commands.append(PathCommand("A", x + curve, down_2 + curve_y, radius=curve, sweep=clockwise))
    commands.append(PathCommand("L", end_x, end_y))
    return commands


def _chevron(end_x: float, end_y: float) -> list[PathCommand]:
    return [
        PathCommand("M", end_x - CHEVRON_SIZE, end_y - CHEVRON_SIZE),
        PathCommand("L", end_x, end_y),
        PathCommand("L", end_x - CHEVRON_SIZE, end_y + CHEVRON_SIZE),
    ]
