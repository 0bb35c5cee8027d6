from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path

import yaml

from .chart import GanttChart
from .config import ConfigError
from .parse_tasks import TaskFileError, load_task_file
from .render_svg import render_svg
from .surface import Canvas
from .time_scale import VIEW_MODES

logger = logging.getLogger("gantt_timeline")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gantt_timeline",
        description="Timeline (Gantt) chart renderer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("tasks", help="Path to tasks YAML")
    parser.add_argument("--out", default="output/timeline.svg", help="Output SVG path")
    parser.add_argument(
        "--view-mode",
        choices=[mode.value for mode in VIEW_MODES],
        help="Override the view mode from the task file",
    )
    parser.add_argument("--language", help="Month-name language for header labels")
    parser.add_argument("--sortable", action="store_true", default=None, help="Allow reordering rows by dragging")
    parser.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=True,
        help="Best-effort open the output file after rendering",
    )
    parser.add_argument(
        "--no-view",
        dest="view",
        action="store_false",
        help="Do not open the output file after rendering",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    tasks_path = Path(args.tasks)

    try:
        task_file = load_task_file(str(tasks_path))
    except (yaml.YAMLError, TaskFileError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: tasks file not found: {tasks_path}", file=sys.stderr)
        return 1
    except Exception as exc:  # Unexpected
        print(f"Unexpected error while loading tasks: {exc}", file=sys.stderr)
        return 1

    options = dict(task_file.options)
    if args.view_mode:
        options["view_mode"] = args.view_mode
    if args.language:
        options["language"] = args.language
    if args.sortable:
        options["sortable"] = True

    canvas = Canvas()
    try:
        chart = GanttChart(canvas, task_file.tasks, options)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"Unexpected error while building chart: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "Laid out %d tasks in %s view (%s to %s)",
        len(chart.tasks),
        chart.options.view_mode.value,
        chart.gantt_start.date(),
        chart.gantt_end.date(),
    )

    try:
        render_svg(canvas, args.out, width=chart.width, height=chart.height)
    except Exception as exc:
        print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
        return 1

    if args.view:
        try:
            webbrowser.open(Path(args.out).resolve().as_uri())
        except Exception:
            logger.debug("Could not open %s in a browser", args.out)

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
