from __future__ import annotations

import datetime as dt
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Sequence

from . import date_utils
from .task_models import AxisTick, DateRange, GridTick, Task


class ViewMode(str, Enum):
    QUARTER_DAY = "Quarter Day"
    HALF_DAY = "Half Day"
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"

    @classmethod
    def coerce(cls, value: Any) -> "ViewMode":
        if isinstance(value, ViewMode):
            return value
        text = str(value).strip()
        for mode in cls:
            if text.lower() in (mode.value.lower(), mode.name.lower()):
                return mode
        raise ValueError(f"unknown view mode {value!r}")


VIEW_MODES: tuple[ViewMode, ...] = tuple(ViewMode)

# (step in hours, column width in px) per view mode.
SCALE_TABLE: dict[ViewMode, tuple[int, int]] = {
    ViewMode.QUARTER_DAY: (24 // 4, 38),
    ViewMode.HALF_DAY: (24 // 2, 38),
    ViewMode.DAY: (24, 38),
    ViewMode.WEEK: (24 * 7, 140),
    ViewMode.MONTH: (24 * 30, 120),
    ViewMode.YEAR: (24 * 365, 120),
}

UPPER_TEXT_OFFSET = 25
MIN_ZOOM_OUT_COLUMN_WIDTH = 15


@dataclass(frozen=True)
class TimeScale:
    mode: ViewMode
    step: int
    column_width: int

    def is_mode(self, *modes: ViewMode) -> bool:
        return self.mode in modes

    @property
    def snap_unit(self) -> float:
        """Pixel quantum that drag deltas snap to."""
        if self.mode is ViewMode.WEEK:
            return self.column_width / 7
        if self.mode is ViewMode.MONTH:
            return self.column_width / 30
        return self.column_width


def apply_scale(mode: ViewMode | str) -> TimeScale:
    mode = ViewMode.coerce(mode)
    step, column_width = SCALE_TABLE[mode]
    return TimeScale(mode=mode, step=step, column_width=column_width)


def compute_range(tasks: Iterable[Task], mode: ViewMode | str) -> DateRange:
    """
    Padded visible window over all tasks.

    Bounds are floored to the day, then padded by two months (Day, Week and
    sub-day modes), eight months (Month) or six years (Year, with the start
    also floored to 1 January).
    """

    mode = ViewMode.coerce(mode)
    start: dt.datetime | None = None
    end: dt.datetime | None = None
    for task in tasks:
        if task.start_at is not None and (start is None or task.start_at < start):
            start = task.start_at
        if task.end_at is not None and (end is None or task.end_at > end):
            end = task.end_at

    if start is None or end is None:
        start = end = date_utils.today()

    start = date_utils.start_of(start, date_utils.DAY)
    end = date_utils.start_of(end, date_utils.DAY)

    if mode is ViewMode.YEAR:
        start = date_utils.start_of(date_utils.add(start, -6, date_utils.YEAR), date_utils.YEAR)
        end = date_utils.add(end, 6, date_utils.YEAR)
    elif mode is ViewMode.MONTH:
        start = date_utils.add(start, -8, date_utils.MONTH)
        end = date_utils.add(end, 8, date_utils.MONTH)
    else:
        start = date_utils.add(start, -2, date_utils.MONTH)
        end = date_utils.add(end, 2, date_utils.MONTH)

    return DateRange(start=start, end=end)


def next_tick(current: dt.datetime, scale: TimeScale) -> dt.datetime:
    if scale.mode is ViewMode.YEAR:
        return date_utils.add(current, 1, date_utils.YEAR)
    if scale.mode is ViewMode.MONTH:
        return date_utils.add(current, 1, date_utils.MONTH)
    return date_utils.add(current, scale.step, date_utils.HOUR)


def iter_dates(date_range: DateRange, scale: TimeScale) -> Iterator[dt.datetime]:
    """Column instants from the range start, one scale unit apart, until the range end is reached."""
    current = date_range.start
    yield current
    while current < date_range.end:
        current = next_tick(current, scale)
        yield current


def axis_dates(date_range: DateRange, scale: TimeScale) -> list[dt.datetime]:
    return list(iter_dates(date_range, scale))


def _tick_texts(
    mode: ViewMode,
    date: dt.datetime,
    last: dt.datetime | None,
    i: int,
    language: str,
) -> tuple[str, str]:
    first = last is None

    def fmt(pattern: str) -> str:
        return date_utils.format(date, pattern, language)

    day_changed = first or date.day != last.day
    month_changed = first or date.month != last.month
    year_changed = first or date.year != last.year

    if mode is ViewMode.QUARTER_DAY:
        return fmt("HH"), fmt("D MMM") if day_changed else ""
    if mode is ViewMode.HALF_DAY:
        upper = ""
        if day_changed:
            upper = fmt("D MMM") if month_changed else fmt("D")
        return fmt("HH"), upper
    if mode is ViewMode.DAY:
        return fmt("D") if day_changed else "", fmt("MMMM") if month_changed else ""
    if mode is ViewMode.WEEK:
        lower = fmt("D MMM") if month_changed else fmt("D")
        upper = ""
        if month_changed:
            upper = fmt("MMMM YYYY" if i < 5 or date.month == 1 else "MMMM")
        return lower, upper
    if mode is ViewMode.MONTH:
        return fmt("MMMM"), fmt("YYYY") if year_changed else ""
    return fmt("YYYY"), fmt("YYYY") if year_changed else ""


def _tick_offsets(mode: ViewMode, column_width: float, months_in_year: int) -> tuple[float, float]:
    """(lower, upper) x offsets from the column's left edge."""
    cw = column_width
    return {
        ViewMode.QUARTER_DAY: (0, cw * 4 / 2),
        ViewMode.HALF_DAY: (0, cw * 2 / 2),
        ViewMode.DAY: (cw / 2, cw * 30 / 2),
        ViewMode.WEEK: (0, cw * 4 / 2),
        ViewMode.MONTH: (cw / 2, cw * months_in_year / 2),
        ViewMode.YEAR: (cw / 2, cw * 30 / 2),
    }[mode]


def axis_ticks(
    date_range: DateRange,
    scale: TimeScale,
    header_height: float = 50,
    language: str = "en",
    dates: Sequence[dt.datetime] | None = None,
) -> list[AxisTick]:
    """Header labels for every column, de-duplicated against the previous column."""

    if dates is None:
        dates = axis_dates(date_range, scale)
    months_per_year = Counter(d.year for d in dates) if scale.mode is ViewMode.MONTH else Counter()

    ticks: list[AxisTick] = []
    last: dt.datetime | None = None
    for i, date in enumerate(dates):
        lower_text, upper_text = _tick_texts(scale.mode, date, last, i, language)
        lower_off, upper_off = _tick_offsets(scale.mode, scale.column_width, months_per_year[date.year])
        base_x = i * scale.column_width
        ticks.append(
            AxisTick(
                date=date,
                lower_text=lower_text,
                upper_text=upper_text,
                lower_x=base_x + lower_off,
                upper_x=base_x + upper_off,
                lower_y=header_height,
                upper_y=header_height - UPPER_TEXT_OFFSET,
            )
        )
        last = date
    return ticks


def grid_ticks(dates: Sequence[dt.datetime], scale: TimeScale) -> list[GridTick]:
    """Vertical grid lines; Month columns are as wide as their month."""

    ticks: list[GridTick] = []
    x = 0.0
    for date in dates:
        thick = (
            (scale.mode is ViewMode.DAY and date.day == 1)
            or (scale.mode is ViewMode.WEEK and 1 <= date.day < 8)
            or (scale.mode is ViewMode.MONTH and (date.month - 1) % 3 == 0)
        )
        ticks.append(GridTick(date=date, x=x, thick=thick))
        if scale.mode is ViewMode.MONTH:
            x += date_utils.days_in_month(date) * scale.column_width / 30
        else:
            x += scale.column_width
    return ticks


def grid_width(dates: Sequence[dt.datetime], scale: TimeScale) -> float:
    return len(dates) * scale.column_width


def today_highlight_x(date_range: DateRange, scale: TimeScale, today: dt.datetime | None = None) -> float | None:
    """x of today's column in Day view; None in every other mode."""
    if scale.mode is not ViewMode.DAY:
        return None
    today = today or date_utils.today()
    return date_utils.diff(today, date_range.start, date_utils.HOUR) / scale.step * scale.column_width


def zoom(
    current: ViewMode,
    view_modes: Sequence[ViewMode],
    direction: float,
    column_width: float,
) -> ViewMode | None:
    """
    Neighbouring view mode for a zoom gesture.

    Positive `direction` zooms in (previous entry of `view_modes`), negative
    zooms out (next entry) while columns are still wider than the minimum.
    Returns None when there is nowhere to go.
    """

    if current not in view_modes:
        return None
    index = list(view_modes).index(current)
    if direction > 0 and index > 0:
        return view_modes[index - 1]
    if direction < 0 and column_width > MIN_ZOOM_OUT_COLUMN_WIDTH and index + 1 < len(view_modes):
        return view_modes[index + 1]
    return None
