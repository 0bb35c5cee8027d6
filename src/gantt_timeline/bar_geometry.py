from __future__ import annotations

import datetime as dt
import math

from . import date_utils
from .config import ChartOptions
from .task_models import BarGeometry, Task
from .time_scale import TimeScale, ViewMode

HANDLE_WIDTH = 8
HANDLE_INSET = 1
RIGHT_HANDLE_OFFSET = 9
CARET_WIDTH = 12
CARET_HEIGHT = 6
CARET_RIGHT_OFFSET = 20
CARET_MIN_FREE_WIDTH = 40
PROGRESS_HANDLE_HALF_WIDTH = 5
PROGRESS_HANDLE_HEIGHT = 8.66
LABEL_GAP = 5


def compute_x(start: dt.datetime, gantt_start: dt.datetime, scale: TimeScale) -> float:
    if scale.mode is ViewMode.MONTH:
        days = date_utils.diff(start, gantt_start, date_utils.DAY)
        return days * scale.column_width / 30
    hours = date_utils.diff(start, gantt_start, date_utils.HOUR)
    return hours / scale.step * scale.column_width


def compute_y(row_index: int, options: ChartOptions) -> float:
    return options.header_height + options.padding + row_index * (options.bar_height + options.padding)


def compute_width(start: dt.datetime, end: dt.datetime, scale: TimeScale) -> float:
    duration = date_utils.diff(end, start, date_utils.HOUR) / scale.step
    return duration * scale.column_width


def to_geometry(
    task: Task,
    row_index: int | None,
    scale: TimeScale,
    gantt_start: dt.datetime,
    options: ChartOptions,
) -> BarGeometry:
    """Pixel rectangle for `task` on row `row_index` (hidden tasks use row 0)."""
    return BarGeometry(
        x=compute_x(task.start_at, gantt_start, scale),
        y=compute_y(row_index or 0, options),
        width=compute_width(task.start_at, task.end_at, scale),
        height=options.bar_height,
    )


def from_geometry(
    x: float,
    width: float,
    scale: TimeScale,
    gantt_start: dt.datetime,
) -> tuple[dt.datetime, dt.datetime]:
    """Inverse of the x/width mapping: pixels to column units to hours from the range start."""
    # add() truncates to whole hours; strip float noise first.
    x_in_units = x / scale.column_width
    start = date_utils.add(gantt_start, round(x_in_units * scale.step, 6), date_utils.HOUR)
    width_in_units = width / scale.column_width
    end = date_utils.add(start, round(width_in_units * scale.step, 6), date_utils.HOUR)
    return start, end


def snap(dx: float, scale: TimeScale) -> float:
    """
    Quantize a pixel delta to the view's snap unit.

    The magnitude is rounded to the nearest unit, an exact half rounding up,
    and the sign of `dx` is kept so left and right drags behave alike.
    """

    unit = scale.snap_unit
    magnitude = abs(dx)
    rem = math.fmod(magnitude, unit)
    snapped = magnitude - rem + (0 if rem < unit / 2 else unit)
    return math.copysign(snapped, dx) if snapped else 0.0


def progress_width(geometry: BarGeometry, progress: float) -> float:
    return geometry.width * (progress / 100) if progress else 0.0


def compute_progress(bar_progress_width: float, bar_width: float) -> int:
    if bar_width <= 0:
        return 0
    return int(bar_progress_width / bar_width * 100)


def accepts_width(width: float | None, scale: TimeScale) -> bool:
    """Resizes that would leave less than one grid column are rejected."""
    return width is not None and width >= scale.column_width


def left_handle_position(geometry: BarGeometry) -> tuple[float, float]:
    return geometry.x + HANDLE_INSET, geometry.y + HANDLE_INSET


def right_handle_position(geometry: BarGeometry) -> tuple[float, float]:
    return geometry.end_x - RIGHT_HANDLE_OFFSET, geometry.y + HANDLE_INSET


def progress_handle_points(geometry: BarGeometry, bar_progress_width: float) -> list[float]:
    """Triangle under the progress edge: two base corners then the tip."""
    end_x = geometry.x + bar_progress_width
    bottom = geometry.y + geometry.height
    return [
        end_x - PROGRESS_HANDLE_HALF_WIDTH,
        bottom,
        end_x + PROGRESS_HANDLE_HALF_WIDTH,
        bottom,
        end_x,
        bottom - PROGRESS_HANDLE_HEIGHT,
    ]


def caret_points(geometry: BarGeometry) -> list[tuple[float, float]]:
    """Down-pointing chevron near the right end of a collapsible bar."""
    caret_x = geometry.end_x - CARET_RIGHT_OFFSET
    caret_y = geometry.y + geometry.height / 2
    return [
        (caret_x - CARET_WIDTH / 2, caret_y - CARET_HEIGHT / 2),
        (caret_x, caret_y + CARET_HEIGHT / 2),
        (caret_x + CARET_WIDTH / 2, caret_y - CARET_HEIGHT / 2),
    ]


def has_room_for_caret(geometry: BarGeometry, label_width: float) -> bool:
    return geometry.width - label_width > CARET_MIN_FREE_WIDTH


def label_position(geometry: BarGeometry, label_width: float) -> tuple[float, float, bool]:
    """(x, y, outside): labels wider than the bar sit just past its right end."""
    y = geometry.y + geometry.height / 2
    if label_width > geometry.width:
        return geometry.end_x + LABEL_GAP, y, True
    return geometry.x + geometry.width / 2, y, False
