import datetime as dt

import pytest

from gantt_timeline.parse_tasks import TaskFileError, load_task_file, parse_task_file


def _write(tmp_path, text):
    path = tmp_path / "tasks.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_task_file_reads_tasks_and_options(tmp_path):
    path = _write(
        tmp_path,
        """
options:
  view_mode: Week
  language: de
tasks:
  - id: design
    name: Design
    start: 2024-01-10
    end: "2024-01-12"
    progress: 40
  - id: 7
    name: Build
    start: 2024-01-13
    dependencies: design, review
    type: Project
""",
    )

    task_file = load_task_file(path)

    assert task_file.options == {"view_mode": "Week", "language": "de"}
    first, second = task_file.tasks
    assert first["start"] == dt.date(2024, 1, 10)
    assert first["end"] == "2024-01-12"
    assert first["progress"] == 40
    assert second["id"] == "7"
    assert second["dependencies"] == "design, review"
    assert second["type"] == "project"
    assert "end" not in second


def test_dependencies_list_is_stringified():
    task_file = parse_task_file({"tasks": [{"name": "A", "dependencies": ["x", 3]}]})

    assert task_file.tasks[0]["dependencies"] == ["x", "3"]


@pytest.mark.parametrize(
    "data, message",
    [
        ([], "root: expected mapping"),
        ({"options": {}}, "missing required field 'tasks'"),
        ({"tasks": [], "extra": 1}, "unexpected fields ['extra']"),
        ({"tasks": [{"id": "a"}]}, "tasks[0]: missing required field 'name'"),
        ({"tasks": [{"name": "A", "owner": "me"}]}, "tasks[0]: unexpected fields ['owner']"),
        ({"tasks": [{"name": "A", "progress": "half"}]}, "tasks[0].progress: expected number"),
        ({"tasks": [{"name": "A", "type": "milestone"}]}, "tasks[0].type"),
        ({"tasks": [{"name": "A", "visible": "yes"}]}, "tasks[0].visible: expected boolean"),
        ({"tasks": [{"name": "A", "start": 20240110}]}, "tasks[0].start"),
        ({"tasks": [{"name": "A", "dependencies": ["b", None]}]}, "tasks[0].dependencies[1]"),
        ({"tasks": [], "options": {"theme": "dark"}}, "options: unexpected fields ['theme']"),
    ],
)
def test_invalid_task_files_report_the_offending_path(data, message):
    with pytest.raises(TaskFileError) as excinfo:
        parse_task_file(data)

    assert message in str(excinfo.value)


def test_duplicate_ids_are_rejected():
    data = {"tasks": [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}]}

    with pytest.raises(TaskFileError, match="tasks\\[1\\].id: duplicate id 'a'"):
        parse_task_file(data)


def test_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_task_file(str(tmp_path / "nope.yaml"))
