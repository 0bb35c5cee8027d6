import datetime as dt

from gantt_timeline import date_utils
from gantt_timeline.normalize import coerce_progress, generate_id, normalize_tasks, parse_dependencies
from gantt_timeline.task_models import Task, TaskType


def _one(**record):
    record.setdefault("name", "Task")
    return normalize_tasks([record]).tasks[0]


def test_explicit_date_end_covers_the_whole_day():
    task = _one(id="a", start="2024-01-10", end="2024-01-12")

    assert task.start_at == dt.datetime(2024, 1, 10)
    assert task.end_at == dt.datetime(2024, 1, 13)
    assert not task.invalid


def test_end_with_time_of_day_is_kept():
    task = _one(id="a", start="2024-01-10", end="2024-01-12 12:00")

    assert task.end_at == dt.datetime(2024, 1, 12, 12)


def test_start_only_gets_two_day_span_and_is_invalid():
    task = _one(id="a", start="2024-01-10")

    assert task.start_at == dt.datetime(2024, 1, 10)
    assert task.end_at == dt.datetime(2024, 1, 12)
    assert task.invalid


def test_end_only_derives_start_two_days_before_given_end():
    task = _one(id="a", end="2024-01-12")

    assert task.end_at == dt.datetime(2024, 1, 13)
    assert task.start_at == dt.datetime(2024, 1, 10)
    assert task.invalid


def test_missing_dates_default_to_today():
    task = _one(id="a")

    assert task.start_at == date_utils.today()
    assert task.end_at == date_utils.add(date_utils.today(), 2, "day")
    assert task.invalid


def test_malformed_dates_never_raise():
    task = _one(id="a", start="garbage", end="2024-01-12")

    assert task.invalid
    assert task.end_at == dt.datetime(2024, 1, 13)
    assert task.start_at == dt.datetime(2024, 1, 10)


def test_span_over_ten_years_discards_end():
    task = _one(id="a", start="2000-01-01", end="2020-01-01")

    assert task.end is None
    assert task.end_at == dt.datetime(2000, 1, 3)
    assert task.invalid


def test_end_before_start_is_replaced():
    task = _one(id="a", start="2024-01-10", end="2024-01-05")

    assert task.end_at == dt.datetime(2024, 1, 12)
    assert task.end_at > task.start_at
    assert task.invalid


def test_visible_subset_gets_row_indices():
    result = normalize_tasks(
        [
            {"id": "a", "name": "A", "start": "2024-01-01", "end": "2024-01-02"},
            {"id": "b", "name": "B", "start": "2024-01-01", "end": "2024-01-02", "visible": False},
            {"id": "c", "name": "C", "start": "2024-01-01", "end": "2024-01-02", "visible": None},
        ]
    )

    assert [t.id for t in result.visible_tasks] == ["a", "c"]
    assert [t.index for t in result.tasks] == [0, None, 1]


def test_normalizing_twice_is_stable():
    first = normalize_tasks([{"name": "A", "start": "2024-01-10", "end": "2024-01-12"}]).tasks
    before = [(t.id, t.start_at, t.end_at) for t in first]

    second = normalize_tasks(first).tasks

    assert [(t.id, t.start_at, t.end_at) for t in second] == before
    assert second[0] is first[0]


def test_task_objects_are_accepted():
    task = Task(name="Build", start=dt.date(2024, 5, 1), end=dt.date(2024, 5, 3), type="project")

    result = normalize_tasks([task])

    assert result.tasks[0].type is TaskType.PROJECT
    assert result.tasks[0].end_at == dt.datetime(2024, 5, 4)
    assert result.tasks[0].id.startswith("Build_")


def test_parse_dependencies_trims_and_deduplicates():
    assert parse_dependencies("a, b,,a ") == ["a", "b"]
    assert parse_dependencies(["x", " y ", "x"]) == ["x", "y"]
    assert parse_dependencies(None) == []


def test_coerce_progress_clamps():
    assert coerce_progress(150) == 100
    assert coerce_progress(-5) == 0
    assert coerce_progress("42") == 42
    assert coerce_progress("abc") == 0
    assert coerce_progress(12.5) == 12.5


def test_generate_id_shape():
    task_id = generate_id("Design")
    prefix, suffix = task_id.rsplit("_", 1)

    assert prefix == "Design"
    assert len(suffix) == 10
    assert suffix.isalnum() and suffix == suffix.lower()
