from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any

import yaml

TASK_KEYS = {
    "id",
    "name",
    "start",
    "end",
    "progress",
    "dependencies",
    "type",
    "visible",
    "collapsed",
    "custom_class",
    "color",
}

OPTION_KEYS = {
    "view_mode",
    "view_modes",
    "bar_height",
    "bar_corner_radius",
    "arrow_curve",
    "padding",
    "header_height",
    "column_width",
    "step",
    "language",
    "sortable",
    "popup_trigger",
    "date_format",
}

TASK_TYPES = {"plain", "project", "tag"}


class TaskFileError(ValueError):
    """Raised when a task file does not have the expected shape."""


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable YAML path strings like tasks[0].dependencies."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


@dataclass
class TaskFile:
    """Raw task records and chart option overrides read from one file."""

    tasks: list[dict[str, Any]] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)


def load_task_file(path: str) -> TaskFile:
    """Load raw task records from a YAML file (dates are left for the normalizer)."""

    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    return parse_task_file(raw)


def parse_task_file(data: Any) -> TaskFile:
    path = _Path()
    if not isinstance(data, dict):
        raise TaskFileError(f"{path}: expected mapping at top level")
    _assert_allowed_keys(data, {"options", "tasks"}, path)

    options = _parse_options(data.get("options"), path.child("options"))

    tasks_raw = data.get("tasks")
    if tasks_raw is None:
        raise TaskFileError(f"{path}: missing required field 'tasks'")
    if not isinstance(tasks_raw, list):
        raise TaskFileError("tasks: expected list")

    ids: set[str] = set()
    tasks = [_parse_task(item, path.child(f"tasks[{idx}]"), ids) for idx, item in enumerate(tasks_raw)]
    return TaskFile(tasks=tasks, options=options)


def _parse_options(data: Any, path: _Path) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TaskFileError(f"{path}: expected mapping")
    _assert_allowed_keys(data, OPTION_KEYS, path)
    return dict(data)


def _parse_task(data: Any, path: _Path, ids: set[str]) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TaskFileError(f"{path}: expected mapping for task")
    _assert_allowed_keys(data, TASK_KEYS, path)

    record: dict[str, Any] = {"name": _require_str(data, "name", path)}

    if data.get("id") is not None:
        task_id = data["id"]
        if isinstance(task_id, bool) or not isinstance(task_id, (str, int)):
            raise TaskFileError(f"{path.child('id')}: expected string id")
        task_id = str(task_id).strip()
        if not task_id:
            raise TaskFileError(f"{path.child('id')}: expected non-empty string")
        if task_id in ids:
            raise TaskFileError(f"{path.child('id')}: duplicate id '{task_id}'")
        ids.add(task_id)
        record["id"] = task_id

    for key in ("start", "end"):
        if key in data:
            record[key] = _parse_date_value(data[key], path.child(key))

    if "progress" in data and data["progress"] is not None:
        progress = data["progress"]
        if isinstance(progress, bool) or not isinstance(progress, (int, float)):
            raise TaskFileError(f"{path.child('progress')}: expected number")
        record["progress"] = progress

    if "dependencies" in data:
        record["dependencies"] = _parse_dependencies(data["dependencies"], path.child("dependencies"))

    if data.get("type") is not None:
        task_type = data["type"]
        if not isinstance(task_type, str) or task_type.strip().lower() not in TASK_TYPES:
            raise TaskFileError(f"{path.child('type')}: expected one of {sorted(TASK_TYPES)}")
        record["type"] = task_type.strip().lower()

    for key in ("visible", "collapsed"):
        if key in data and data[key] is not None:
            if not isinstance(data[key], bool):
                raise TaskFileError(f"{path.child(key)}: expected boolean")
            record[key] = data[key]

    for key in ("custom_class", "color"):
        if key in data and data[key] is not None:
            if not isinstance(data[key], str):
                raise TaskFileError(f"{path.child(key)}: expected string")
            record[key] = data[key]

    return record


def _parse_date_value(value: Any, path: _Path) -> Any:
    # YAML may already have produced a date/datetime; strings are parsed later.
    if value is None or isinstance(value, (str, _dt.date)):
        return value
    raise TaskFileError(f"{path}: expected date string like YYYY-MM-DD")


def _parse_dependencies(value: Any, path: _Path) -> list[str] | str:
    if value is None:
        return []
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        raise TaskFileError(f"{path}: expected list of task ids or comma-separated string")
    deps: list[str] = []
    for idx, dep in enumerate(value):
        if isinstance(dep, bool) or not isinstance(dep, (str, int)):
            raise TaskFileError(f"{path}[{idx}]: expected string task id")
        deps.append(str(dep))
    return deps


def _assert_allowed_keys(data: dict[str, Any], allowed: set[str], path: _Path) -> None:
    extras = sorted(set(data.keys()) - allowed)
    if extras:
        raise TaskFileError(f"{path}: unexpected fields {extras}")


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    if key not in data:
        raise TaskFileError(f"{path}: missing required field '{key}'")
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise TaskFileError(f"{path.child(key)}: expected non-empty string")
    return value
