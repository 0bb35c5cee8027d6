from __future__ import annotations

import datetime as dt
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from . import date_utils
from .task_models import Task, TaskType

logger = logging.getLogger(__name__)

MAX_SPAN_YEARS = 10
DEFAULT_SPAN_DAYS = 2

_ID_ALPHABET = string.digits + string.ascii_lowercase

_TASK_FIELDS = (
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
)


@dataclass
class NormalizedTasks:
    """Canonical task list plus the subset drawn as rows, in display order."""

    tasks: list[Task] = field(default_factory=list)
    visible_tasks: list[Task] = field(default_factory=list)


def normalize_tasks(records: Iterable[Mapping[str, Any] | Task]) -> NormalizedTasks:
    """
    Convert raw task records into canonical tasks.

    Records may be mappings or Task objects from a previous pass; Task objects
    are normalized in place so callers keep their references. Row indices are
    assigned by position among visible tasks; hidden tasks get `index=None`.
    Malformed dates never raise, they mark the task invalid instead.
    """

    tasks = [_to_task(record) for record in records]
    visible: list[Task] = []
    for task in tasks:
        _resolve_dates(task)
        task.dependencies = parse_dependencies(task.dependencies)
        task.progress = coerce_progress(task.progress)
        task.type = TaskType.coerce(task.type)
        if not task.id:
            task.id = generate_id(task.name)
        if task.is_visible:
            task.index = len(visible)
            visible.append(task)
        else:
            task.index = None
        if task.invalid:
            logger.debug("Task %s has missing or malformed dates; using defaults", task.id)

    return NormalizedTasks(tasks=tasks, visible_tasks=visible)


def _to_task(record: Mapping[str, Any] | Task) -> Task:
    if isinstance(record, Task):
        return record
    values = {key: record[key] for key in _TASK_FIELDS if key in record}
    values["name"] = str(values.get("name") or "")
    if values.get("id") is not None:
        values["id"] = str(values["id"]).strip() or None
    return Task(**values)


def _safe_parse(value: Any) -> tuple[dt.datetime | None, bool]:
    """Return (instant, malformed)."""
    try:
        return date_utils.parse(value), False
    except ValueError:
        return None, True


def _resolve_dates(task: Task) -> None:
    start, bad_start = _safe_parse(task.start)
    end, bad_end = _safe_parse(task.end)

    if start is not None and end is not None and date_utils.diff(end, start, date_utils.YEAR) > MAX_SPAN_YEARS:
        task.end = None
        end = None

    explicit_end = end is not None
    if start is None and end is None:
        start = date_utils.today()
        end = date_utils.add(start, DEFAULT_SPAN_DAYS, date_utils.DAY)
    elif start is None:
        start = date_utils.add(end, -DEFAULT_SPAN_DAYS, date_utils.DAY)
    elif end is None:
        end = date_utils.add(start, DEFAULT_SPAN_DAYS, date_utils.DAY)

    # An explicit end without a time of day covers that whole day.
    if explicit_end and not date_utils.has_time_of_day(end):
        end = date_utils.add(end, 24, date_utils.HOUR)

    if end <= start:
        end = date_utils.add(start, DEFAULT_SPAN_DAYS, date_utils.DAY)
        bad_end = True

    task.start_at = start
    task.end_at = end
    task.invalid = bad_start or bad_end or _is_unset(task.start) or _is_unset(task.end)


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_dependencies(value: Any) -> list[str]:
    """Accept a comma-separated string or an iterable of ids; trim, drop blanks, de-duplicate."""

    if not value:
        return []
    if isinstance(value, str):
        raw: Iterable[Any] = value.split(",")
    else:
        raw = value
    deps: list[str] = []
    for item in raw:
        dep = str(item).strip()
        if dep and dep not in deps:
            deps.append(dep)
    return deps


def coerce_progress(value: Any) -> float:
    try:
        progress = float(value or 0)
    except (TypeError, ValueError):
        return 0
    if progress != progress:  # NaN
        return 0
    progress = min(max(progress, 0.0), 100.0)
    return int(progress) if progress.is_integer() else progress


def generate_id(name: str) -> str:
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(10))
    return f"{name}_{suffix}"

