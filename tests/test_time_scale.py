import datetime as dt

import pytest

from gantt_timeline import time_scale
from gantt_timeline.task_models import DateRange, Task
from gantt_timeline.time_scale import VIEW_MODES, ViewMode


def _task(start, end):
    return Task(name="t", id="t", start_at=start, end_at=end)


TASKS = [_task(dt.datetime(2024, 1, 10), dt.datetime(2024, 1, 13))]


@pytest.mark.parametrize(
    "mode, step, column_width",
    [
        ("Quarter Day", 6, 38),
        ("Half Day", 12, 38),
        ("Day", 24, 38),
        ("Week", 168, 140),
        ("Month", 720, 120),
        ("Year", 8760, 120),
    ],
)
def test_scale_table(mode, step, column_width):
    scale = time_scale.apply_scale(mode)

    assert (scale.step, scale.column_width) == (step, column_width)


def test_view_mode_coerce_rejects_unknown_names():
    assert ViewMode.coerce("week") is ViewMode.WEEK
    assert ViewMode.coerce("HALF_DAY") is ViewMode.HALF_DAY
    with pytest.raises(ValueError):
        ViewMode.coerce("Fortnight")


def test_range_padding_per_mode():
    day = time_scale.compute_range(TASKS, ViewMode.DAY)
    month = time_scale.compute_range(TASKS, ViewMode.MONTH)
    year = time_scale.compute_range(TASKS, ViewMode.YEAR)

    assert day == DateRange(dt.datetime(2023, 11, 10), dt.datetime(2024, 3, 13))
    assert month == DateRange(dt.datetime(2023, 5, 10), dt.datetime(2024, 9, 13))
    assert year == DateRange(dt.datetime(2018, 1, 1), dt.datetime(2030, 1, 13))


def test_range_floors_to_day():
    tasks = [_task(dt.datetime(2024, 1, 10, 15), dt.datetime(2024, 1, 12, 9))]

    date_range = time_scale.compute_range(tasks, ViewMode.WEEK)

    assert date_range.start == dt.datetime(2023, 11, 10)
    assert date_range.end == dt.datetime(2024, 3, 12)


def test_iter_dates_is_restartable_and_reaches_the_end():
    scale = time_scale.apply_scale(ViewMode.MONTH)
    date_range = time_scale.compute_range(TASKS, ViewMode.MONTH)

    first = list(time_scale.iter_dates(date_range, scale))
    second = list(time_scale.iter_dates(date_range, scale))

    assert first == second
    assert first[0] == date_range.start
    assert first[1] == dt.datetime(2023, 6, 10)
    assert first[-1] >= date_range.end
    assert first[-2] < date_range.end


def test_day_axis_labels():
    scale = time_scale.apply_scale(ViewMode.DAY)
    date_range = time_scale.compute_range(TASKS, ViewMode.DAY)

    ticks = time_scale.axis_ticks(date_range, scale, header_height=50)

    assert (ticks[0].lower_text, ticks[0].upper_text) == ("10", "November")
    assert (ticks[1].lower_text, ticks[1].upper_text) == ("11", "")
    assert ticks[0].lower_x == 19
    assert ticks[0].upper_x == 570
    assert (ticks[0].lower_y, ticks[0].upper_y) == (50, 25)
    december = next(t for t in ticks if t.date == dt.datetime(2023, 12, 1))
    assert december.upper_text == "December"


def test_month_axis_labels_and_year_offset():
    scale = time_scale.apply_scale(ViewMode.MONTH)
    date_range = time_scale.compute_range(TASKS, ViewMode.MONTH)

    ticks = time_scale.axis_ticks(date_range, scale, language="fr")

    assert ticks[0].lower_text == "Mai"
    assert ticks[0].upper_text == "2023"
    assert ticks[1].upper_text == ""
    # Eight columns fall in 2023.
    assert ticks[0].upper_x == 120 * 8 / 2
    january = next(t for t in ticks if t.date.year == 2024)
    assert january.upper_text == "2024"


def test_week_axis_labels():
    scale = time_scale.apply_scale(ViewMode.WEEK)
    date_range = time_scale.compute_range(TASKS, ViewMode.WEEK)

    ticks = time_scale.axis_ticks(date_range, scale)

    assert ticks[0].lower_text == "10 November"
    assert ticks[0].upper_text == "November 2023"
    assert ticks[1].lower_text == "17"
    assert ticks[1].upper_text == ""


def test_quarter_day_axis_labels():
    scale = time_scale.apply_scale(ViewMode.QUARTER_DAY)
    date_range = time_scale.compute_range(TASKS, ViewMode.QUARTER_DAY)

    ticks = time_scale.axis_ticks(date_range, scale)

    assert [t.lower_text for t in ticks[:5]] == ["00", "06", "12", "18", "00"]
    assert ticks[0].upper_text == "10 November"
    assert ticks[1].upper_text == ""
    assert ticks[4].upper_text == "11 November"


def test_grid_ticks_mark_month_starts_in_day_view():
    scale = time_scale.apply_scale(ViewMode.DAY)
    dates = time_scale.axis_dates(time_scale.compute_range(TASKS, ViewMode.DAY), scale)

    ticks = time_scale.grid_ticks(dates, scale)

    thick = [t.date for t in ticks if t.thick]
    assert dt.datetime(2023, 12, 1) in thick
    assert all(d.day == 1 for d in thick)
    assert ticks[1].x == 38


def test_grid_ticks_in_month_view_follow_month_lengths():
    scale = time_scale.apply_scale(ViewMode.MONTH)
    dates = [dt.datetime(2024, 1, 1), dt.datetime(2024, 2, 1), dt.datetime(2024, 3, 1), dt.datetime(2024, 4, 1)]

    ticks = time_scale.grid_ticks(dates, scale)

    assert [t.x for t in ticks] == [0, 124, 240, 364]
    assert [t.thick for t in ticks] == [True, False, False, True]


def test_today_highlight_only_in_day_view():
    date_range = DateRange(dt.datetime(2024, 1, 1), dt.datetime(2024, 3, 1))

    assert time_scale.today_highlight_x(date_range, time_scale.apply_scale("Day"), dt.datetime(2024, 1, 3)) == 76
    assert time_scale.today_highlight_x(date_range, time_scale.apply_scale("Week")) is None


def test_zoom_steps_through_view_modes():
    assert time_scale.zoom(ViewMode.DAY, VIEW_MODES, 1, 38) is ViewMode.HALF_DAY
    assert time_scale.zoom(ViewMode.DAY, VIEW_MODES, -1, 38) is ViewMode.WEEK
    assert time_scale.zoom(ViewMode.QUARTER_DAY, VIEW_MODES, 1, 38) is None
    assert time_scale.zoom(ViewMode.YEAR, VIEW_MODES, -1, 120) is None
    assert time_scale.zoom(ViewMode.DAY, VIEW_MODES, -1, 15) is None
