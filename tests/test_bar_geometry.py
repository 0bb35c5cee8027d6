import datetime as dt

import pytest

from gantt_timeline import bar_geometry
from gantt_timeline.config import ChartOptions
from gantt_timeline.task_models import BarGeometry, Task
from gantt_timeline.time_scale import ViewMode, apply_scale

GANTT_START = dt.datetime(2023, 11, 10)


def _task(start, end):
    return Task(name="t", id="t", start_at=start, end_at=end)


def test_day_view_geometry():
    task = _task(dt.datetime(2024, 1, 10), dt.datetime(2024, 1, 13))

    geo = bar_geometry.to_geometry(task, 2, apply_scale(ViewMode.DAY), GANTT_START, ChartOptions())

    assert geo.x == 61 * 38
    assert geo.width == 114
    assert geo.y == 50 + 18 + 2 * 38
    assert geo.height == 20


def test_month_view_x_uses_days():
    task = _task(dt.datetime(2023, 12, 10), dt.datetime(2024, 1, 9))
    scale = apply_scale(ViewMode.MONTH)

    assert bar_geometry.compute_x(task.start_at, GANTT_START, scale) == 30 * 120 / 30
    assert bar_geometry.compute_width(task.start_at, task.end_at, scale) == 120


def test_from_geometry_inverts_to_geometry():
    scale = apply_scale(ViewMode.DAY)
    task = _task(dt.datetime(2024, 1, 10), dt.datetime(2024, 1, 13))
    geo = bar_geometry.to_geometry(task, 0, scale, GANTT_START, ChartOptions())

    start, end = bar_geometry.from_geometry(geo.x, geo.width, scale, GANTT_START)

    assert (start, end) == (task.start_at, task.end_at)


@pytest.mark.parametrize("mode", list(ViewMode))
def test_round_trip_stays_within_one_snap_unit(mode):
    scale = apply_scale(mode)
    task = _task(dt.datetime(2024, 1, 10, 6), dt.datetime(2024, 2, 3, 18))
    geo = bar_geometry.to_geometry(task, 0, scale, GANTT_START, ChartOptions())

    start, end = bar_geometry.from_geometry(geo.x, geo.width, scale, GANTT_START)

    unit_hours = scale.snap_unit / scale.column_width * scale.step
    assert abs((start - task.start_at).total_seconds()) / 3600 <= unit_hours
    assert abs((end - task.end_at).total_seconds()) / 3600 <= 2 * unit_hours


@pytest.mark.parametrize(
    "mode, dx, expected",
    [
        (ViewMode.DAY, 19, 38),
        (ViewMode.DAY, 18, 0),
        (ViewMode.DAY, 40, 38),
        (ViewMode.DAY, -19, -38),
        (ViewMode.DAY, -60, -76),
        (ViewMode.WEEK, 25, 20),
        (ViewMode.WEEK, 31, 40),
        (ViewMode.MONTH, 5, 4),
        (ViewMode.MONTH, 7, 8),
    ],
)
def test_snap(mode, dx, expected):
    assert bar_geometry.snap(dx, apply_scale(mode)) == pytest.approx(expected)


def test_progress_helpers():
    geo = BarGeometry(x=10, y=68, width=114, height=20)

    assert bar_geometry.progress_width(geo, 50) == 57
    assert bar_geometry.progress_width(geo, 0) == 0
    assert bar_geometry.compute_progress(57, 114) == 50
    assert bar_geometry.compute_progress(200, 114) == 175
    assert bar_geometry.compute_progress(10, 0) == 0


def test_sub_column_widths_are_rejected():
    scale = apply_scale(ViewMode.DAY)

    assert not bar_geometry.accepts_width(37, scale)
    assert bar_geometry.accepts_width(38, scale)
    assert not bar_geometry.accepts_width(None, scale)


def test_handle_and_caret_positions():
    geo = BarGeometry(x=100, y=68, width=114, height=20)

    assert bar_geometry.left_handle_position(geo) == (101, 69)
    assert bar_geometry.right_handle_position(geo) == (205, 69)
    assert bar_geometry.progress_handle_points(geo, 57) == [152, 88, 162, 88, 157, 88 - 8.66]
    assert bar_geometry.caret_points(geo)[1] == (194, 81)
    assert bar_geometry.has_room_for_caret(geo, 50)
    assert not bar_geometry.has_room_for_caret(geo, 80)


def test_label_moves_outside_narrow_bars():
    geo = BarGeometry(x=100, y=68, width=50, height=20)

    assert bar_geometry.label_position(geo, 30) == (125, 78, False)
    assert bar_geometry.label_position(geo, 70) == (155, 78, True)
