from __future__ import annotations

import datetime as dt
import logging
import threading
import time
from collections import defaultdict
from typing import Any, Callable, Iterable, Mapping

from . import date_utils, time_scale
from .bars import Arrow, Bar
from .config import ChartOptions, ConfigError, build_options
from .debounce import Debouncer
from .dependency_graph import DependencyGraph
from .interaction import InteractionController
from .normalize import normalize_tasks
from .surface import REQUIRED_CAPABILITIES, PointerEvent, is_renderer
from .task_models import DateRange, Task
from .time_scale import TimeScale, ViewMode

logger = logging.getLogger(__name__)

LAYERS = ("grid", "arrow", "progress", "bar", "details", "date")
EVENTS = ("date_change", "progress_change", "view_change", "click")

HEADER_EXTRA = 10
SVG_BOTTOM_MARGIN = 100
GRID_PAN_FACTOR = 1.5
SCROLL_DEBOUNCE_SECONDS = 0.05


class ChartSetupError(TypeError):
    """Raised when the drawing target cannot serve as a renderer."""


class GanttChart:
    """
    Timeline chart bound to one renderer.

    The chart owns the normalized tasks, the dependency graph, the active
    time scale, the bar views and their arrows. Everything is rebuilt by
    `refresh`; pointer gestures reach the chart through the renderer's
    `listen` capability and are handled by an InteractionController.
    """

    def __init__(
        self,
        target: Any,
        tasks: Iterable[Mapping[str, Any] | Task],
        options: Mapping[str, Any] | ChartOptions | None = None,
        *,
        viewport_width: float = 0,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        if not is_renderer(target):
            missing = [name for name in REQUIRED_CAPABILITIES if not callable(getattr(target, name, None))]
            raise ChartSetupError(f"target cannot be used as a renderer; missing {missing}")

        self.renderer = target
        self.options = options if isinstance(options, ChartOptions) else build_options(options)
        self.clock = clock
        self.viewport_width = viewport_width
        self.scroll_left = 0.0
        self.current_location: dt.datetime | None = None

        self._handlers: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        for name in EVENTS:
            callback = getattr(self.options, f"on_{name}", None)
            if callback is not None:
                self.on(name, callback)

        self.graph = DependencyGraph()
        self.tasks: list[Task] = []
        self.visible_tasks: list[Task] = []
        self.bars: list[Bar] = []
        self.arrows: list[Arrow] = []
        self._bars_by_id: dict[str, Bar] = {}
        self._targets: dict[int, tuple[str, Bar | None, str]] = {}
        self.layers: dict[str, Any] = {}
        self.container: Any = None
        self.popup_task: Task | None = None
        self._grid_pan_origin: float | None = None

        self.scale: TimeScale = time_scale.apply_scale(self.options.view_mode)
        self.gantt_start: dt.datetime = date_utils.today()
        self.gantt_end: dt.datetime = self.gantt_start
        self.dates: list[dt.datetime] = []

        self.interaction = InteractionController(self)
        self._scroll_debouncer = Debouncer(self.handle_scroll, SCROLL_DEBOUNCE_SECONDS, timer_factory)

        self.setup_tasks(tasks)
        self.change_view_mode()
        self.bind_events()

    # Events

    def on(self, name: str, handler: Callable[..., Any]) -> None:
        if name not in EVENTS:
            raise ConfigError(f"unknown event {name!r}; expected one of {list(EVENTS)}")
        self._handlers[name].append(handler)

    def trigger_event(self, name: str, *args: Any) -> None:
        logger.debug("Event %s %s", name, args)
        for handler in list(self._handlers.get(name, [])):
            handler(*args)

    # Tasks

    def setup_tasks(self, tasks: Iterable[Mapping[str, Any] | Task]) -> None:
        normalized = normalize_tasks(tasks)
        self.tasks = normalized.tasks
        self.visible_tasks = normalized.visible_tasks
        self.graph.build(self.tasks)
        logger.debug("Loaded %d tasks (%d visible)", len(self.tasks), len(self.visible_tasks))

    def refresh(self, tasks: Iterable[Mapping[str, Any] | Task] | None = None) -> None:
        self.setup_tasks(self.tasks if tasks is None else list(tasks))
        self.change_view_mode()

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_bar(self, task_id: str) -> Bar | None:
        return self._bars_by_id.get(task_id)

    # View mode

    def change_view_mode(self, mode: ViewMode | str | None = None) -> None:
        if mode is not None:
            try:
                mode = ViewMode.coerce(mode)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc
            self.options.view_mode = mode
        self.update_view_scale(self.options.view_mode)
        self.setup_dates()
        self.render()
        self.trigger_event("view_change", self.options.view_mode)

    def update_view_scale(self, mode: ViewMode) -> None:
        self.scale = time_scale.apply_scale(mode)
        self.options.step = self.scale.step
        self.options.column_width = self.scale.column_width

    def scale_view_mode(self, direction: float) -> ViewMode | None:
        """Zoom in (direction > 0) or out (direction < 0) one step through `view_modes`."""
        target = time_scale.zoom(
            self.options.view_mode, self.options.view_modes, direction, self.options.column_width
        )
        if target is not None:
            self.change_view_mode(target)
        return target

    def view_is(self, *modes: ViewMode) -> bool:
        return self.scale.is_mode(*modes)

    def setup_dates(self) -> None:
        date_range = time_scale.compute_range(self.tasks, self.scale.mode)
        self.gantt_start = date_range.start
        self.gantt_end = date_range.end
        self.dates = time_scale.axis_dates(date_range, self.scale)

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.gantt_start, end=self.gantt_end)

    # Rendering

    @property
    def grid_width(self) -> float:
        return time_scale.grid_width(self.dates, self.scale)

    @property
    def grid_height(self) -> float:
        o = self.options
        return o.header_height + o.padding + o.row_height * len(self.visible_tasks)

    @property
    def width(self) -> float:
        return max(self.grid_width, self.viewport_width)

    @property
    def height(self) -> float:
        return self.grid_height + self.options.padding + SVG_BOTTOM_MARGIN

    def row_bounds(self) -> tuple[float, float]:
        o = self.options
        return o.header_height, o.header_height + len(self.visible_tasks) * o.row_height

    def render(self) -> None:
        self.clear()
        self.setup_layers()
        self.make_grid()
        self.make_dates()
        self.make_bars()
        self.make_arrows()
        self.map_arrows_on_bars()
        self.set_width()
        self.set_scroll_position()

    def clear(self) -> None:
        remove = getattr(self.renderer, "remove", None)
        if self.container is not None and callable(remove):
            remove(self.container)
        self.container = None
        self.layers = {}
        self.bars = []
        self.arrows = []
        self._bars_by_id = {}
        self._targets = {}

    def setup_layers(self) -> None:
        self.container = self.renderer.create_shape("g", {"class": "gantt-content"})
        for layer in LAYERS:
            self.layers[layer] = self.renderer.create_shape("g", {"class": layer, "append_to": self.container})

    def register_target(self, handle: Any, bar: Bar | None, part: str) -> None:
        self._targets[id(handle)] = ("bar" if bar is not None else "grid", bar, part)

    def resolve_target(self, handle: Any) -> tuple[str, Bar | None, str] | None:
        return self._targets.get(id(handle)) if handle is not None else None

    def make_grid(self) -> None:
        create = self.renderer.create_shape
        o = self.options
        grid_layer = self.layers["grid"]
        width = self.grid_width

        create("rect", {"x": 0, "y": 0, "width": width, "height": self.grid_height,
                        "class": "grid-background", "append_to": grid_layer})

        rows_layer = create("g", {"append_to": grid_layer})
        lines_layer = create("g", {"append_to": grid_layer})
        row_y = o.header_height + o.padding / 2
        for task in self.visible_tasks:
            row = create("rect", {"x": 0, "y": row_y, "width": width, "height": o.row_height,
                                  "data-row": task.id, "class": "grid-row", "append_to": rows_layer})
            self.register_target(row, None, "row")
            create("line", {"x1": 0, "y1": row_y + o.row_height, "x2": width, "y2": row_y + o.row_height,
                            "class": "row-line", "append_to": lines_layer})
            row_y += o.row_height

        header = create("rect", {"x": 0, "y": 0, "width": width, "height": o.header_height + HEADER_EXTRA,
                                 "class": "grid-header", "append_to": self.layers["date"]})
        self.register_target(header, None, "header")

        tick_y = o.header_height + o.padding / 2
        tick_height = o.row_height * len(self.visible_tasks)
        for tick in time_scale.grid_ticks(self.dates, self.scale):
            create("path", {"d": f"M {tick.x} {tick_y} v {tick_height}",
                            "class": "tick thick" if tick.thick else "tick", "append_to": grid_layer})

        highlight_x = time_scale.today_highlight_x(self.date_range, self.scale)
        if highlight_x is not None:
            highlight = create("rect", {
                "x": highlight_x,
                "y": 0,
                "width": self.scale.column_width,
                "height": o.row_height * len(self.visible_tasks) + o.header_height + o.padding / 2,
                "class": "today-highlight",
                "append_to": grid_layer,
            })
            self.register_target(highlight, None, "today")

    def make_dates(self) -> None:
        create = self.renderer.create_shape
        date_layer = self.layers["date"]
        width = self.grid_width
        ticks = time_scale.axis_ticks(
            self.date_range, self.scale, self.options.header_height, self.options.language, dates=self.dates
        )
        for tick in ticks:
            create("text", {"x": tick.lower_x, "y": tick.lower_y, "text": tick.lower_text,
                            "class": "lower-text", "append_to": date_layer})
            if tick.upper_text:
                upper = create("text", {"x": tick.upper_x, "y": tick.upper_y, "text": tick.upper_text,
                                        "class": "upper-text", "append_to": date_layer})
                box = self.renderer.get_bounding_box(upper)
                # Upper labels running past the grid are dropped.
                if box["x"] + box["width"] > width:
                    self.renderer.set_attribute(upper, "display", "none")

    def make_bars(self) -> None:
        for task in self.tasks:
            bar = Bar(self, task, draw=task.is_visible)
            self._bars_by_id[task.id] = bar
            if bar.drawn:
                self.bars.append(bar)

    def make_arrows(self) -> None:
        for task in self.visible_tasks:
            to_bar = self._bars_by_id[task.id]
            for dep_id in task.dependencies:
                from_bar = self._bars_by_id.get(dep_id)
                if from_bar is None or not from_bar.drawn:
                    continue
                self.arrows.append(Arrow(self, from_bar, to_bar))

    def map_arrows_on_bars(self) -> None:
        for bar in self.bars:
            bar.arrows = [a for a in self.arrows if a.from_bar is bar or a.to_bar is bar]

    def set_width(self) -> None:
        self.renderer.set_attribute(self.container, "width", self.width)
        self.renderer.set_attribute(self.container, "height", self.height)

    # Ordering and collapse

    def sort_bars(self) -> list[Bar]:
        """Re-order drawn bars by their current y; returns the bars whose row changed."""
        changed: list[Bar] = []
        self.bars = sorted(self.bars, key=lambda b: b.geometry.y)
        for index, bar in enumerate(self.bars):
            if bar.task.index != index:
                changed.append(bar)
            bar.task.index = index
        self.visible_tasks = [bar.task for bar in self.bars]

        ordered = iter(self.visible_tasks)
        self.tasks = [next(ordered) if task.is_visible else task for task in self.tasks]
        return changed

    def toggle_collapse(self, task_id: str) -> None:
        """
        Collapse or expand `task_id`.

        Collapsing hides every descendant. Expanding shows a descendant unless
        some collapsed task sits between it and `task_id` on a dependency
        chain.
        """

        task = self.get_task(task_id)
        if task is None:
            return
        self.hide_popup()
        task.collapsed = not task.collapsed
        descendants = self.graph.ordered_descendants(task_id)
        below = set(descendants)
        for child_id in descendants:
            child = self.get_task(child_id)
            if child is None:
                continue
            if task.collapsed:
                child.visible = False
                continue
            blocked = False
            for ancestor_id in self.graph.ancestors(child_id):
                ancestor = self.get_task(ancestor_id) if ancestor_id in below else None
                if ancestor is not None and ancestor.collapsed:
                    blocked = True
                    break
            child.visible = not blocked
        logger.info("%s %s", "Collapsed" if task.collapsed else "Expanded", task_id)
        self.refresh()

    def unselect_all(self) -> None:
        for bar in self.bars:
            bar.set_active(False)

    def hide_popup(self) -> None:
        self.popup_task = None

    # Scrolling

    def scroll_to(self, scroll_left: float) -> None:
        self.scroll_left = max(0.0, scroll_left)
        self._scroll_debouncer()

    def handle_scroll(self) -> None:
        """
        Record the instant at the middle of the viewport.

        With the default `threading.Timer` factory this runs on the timer's
        worker thread; it only rebinds `current_location`. Hosts with their own
        event loop pass a `timer_factory` that schedules on that loop instead.
        """

        content_width = self.width
        if not content_width:
            return
        fraction = (self.scroll_left + self.viewport_width / 2) / content_width
        span = self.gantt_end - self.gantt_start
        self.current_location = self.gantt_start + span * fraction

    def set_scroll_position(self) -> None:
        if self.current_location is None:
            oldest = min((t.start_at for t in self.tasks), default=self.gantt_start)
            hours = date_utils.diff(oldest, self.gantt_start, date_utils.HOUR)
            self.scroll_left = max(0.0, hours / self.scale.step * self.scale.column_width - self.scale.column_width)
            return
        span = (self.gantt_end - self.gantt_start).total_seconds()
        offset = (self.current_location - self.gantt_start).total_seconds()
        fraction = offset / span if span else 0
        self.scroll_left = max(0.0, round(self.width * fraction) - self.viewport_width / 2)

    # Pointer wiring

    def bind_events(self) -> None:
        listen = self.renderer.listen
        listen(None, "mousedown", self._on_mousedown)
        listen(None, "mousemove", self._on_mousemove)
        listen(None, "mouseup", self._on_mouseup)
        listen(None, self.options.popup_trigger, self._on_popup_trigger)
        listen(None, "dblclick", self._on_dblclick)

    def _on_mousedown(self, event: PointerEvent) -> None:
        resolved = self.resolve_target(event.target)
        if resolved is None:
            return
        kind, bar, part = resolved
        if kind == "bar":
            self.interaction.press(event.x, event.y, bar, part)
        elif part in ("row", "today"):
            self._grid_pan_origin = event.x

    def _on_mousemove(self, event: PointerEvent) -> None:
        if self.interaction.active:
            self.interaction.move(event.x, event.y)
        elif self._grid_pan_origin is not None:
            dx = event.x - self._grid_pan_origin
            self.scroll_to(self.scroll_left - dx * GRID_PAN_FACTOR)
            self._grid_pan_origin = event.x

    def _on_mouseup(self, event: PointerEvent) -> None:
        self._grid_pan_origin = None
        self.interaction.release(event.x, event.y)

    def _on_popup_trigger(self, event: PointerEvent) -> None:
        resolved = self.resolve_target(event.target)
        if resolved is None:
            return
        kind, bar, part = resolved
        if kind == "grid":
            if part in ("row", "header"):
                self.unselect_all()
                self.hide_popup()
            return
        if bar.invalid or bar.action_completed:
            return
        self.unselect_all()
        bar.set_active(True)
        self.popup_task = bar.task

    def _on_dblclick(self, event: PointerEvent) -> None:
        resolved = self.resolve_target(event.target)
        if resolved is None or resolved[0] != "bar":
            return
        bar = resolved[1]
        if bar.invalid or bar.action_completed:
            return
        self.trigger_event("click", bar.task)
