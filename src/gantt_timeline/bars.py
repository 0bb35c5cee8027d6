from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import arrow_router, bar_geometry, date_utils
from .surface import ShapeGeometry
from .task_models import ArrowPath, BarGeometry, Task

if TYPE_CHECKING:
    from .chart import GanttChart

logger = logging.getLogger(__name__)

ACTION_COOLDOWN_SECONDS = 1.0


class Bar:
    """
    One task drawn as a bar, or tracked off-screen while its task is hidden.

    Geometry for drawn bars lives on the renderer and is read through a
    ShapeGeometry accessor; hidden bars keep a plain BarGeometry so a drag on
    a collapsed parent can still carry them along.
    """

    def __init__(self, chart: "GanttChart", task: Task, draw: bool = True) -> None:
        self.chart = chart
        self.task = task
        self.invalid = task.invalid
        self.height = chart.options.bar_height
        self.arrows: list[Arrow] = []
        self.active = False
        self.cooldown_until = 0.0

        # Gesture bookkeeping, reset on every press.
        self.ox = 0.0
        self.oy = 0.0
        self.owidth = 0.0
        self.final_dx = 0.0
        self.final_dy = 0.0

        initial = bar_geometry.to_geometry(task, task.index, chart.scale, chart.gantt_start, chart.options)
        self.progress_width = bar_geometry.progress_width(initial, task.progress)

        self.group = None
        self.bar_group = None
        self.handle_group = None
        self.bar_shape = None
        self.progress_shape = None
        self.label = None
        self.handles: dict[str, Any] = {}
        self.caret = None

        if draw:
            self._draw(initial)
            self.geometry: ShapeGeometry | BarGeometry = ShapeGeometry(chart.renderer, self.bar_shape)
        else:
            self.geometry = initial

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def drawn(self) -> bool:
        return self.bar_shape is not None

    @property
    def collapsible(self) -> bool:
        return self.chart.graph.has_dependents(self.task.id)

    # Drawing

    def _draw(self, geo: BarGeometry) -> None:
        renderer = self.chart.renderer
        options = self.chart.options
        radius = options.bar_corner_radius

        self.group = renderer.create_shape(
            "g",
            {
                "class": self._wrapper_class(),
                "data-id": self.task.id,
                "append_to": self.chart.layers["bar"],
            },
        )
        self.bar_group = renderer.create_shape("g", {"class": "bar-group", "append_to": self.group})
        self.handle_group = renderer.create_shape("g", {"class": "handle-group", "append_to": self.group})

        bar_class = "bar bar-invalid" if self.invalid else "bar"
        self.bar_shape = renderer.create_shape(
            "rect",
            {
                "x": geo.x,
                "y": geo.y,
                "width": geo.width,
                "height": geo.height,
                "rx": radius,
                "ry": radius,
                "class": bar_class,
                "fill": self.task.color,
                "append_to": self.bar_group,
            },
        )
        if not self.invalid:
            self.progress_shape = renderer.create_shape(
                "rect",
                {
                    "x": geo.x,
                    "y": geo.y,
                    "width": self.progress_width,
                    "height": geo.height,
                    "rx": radius,
                    "ry": radius,
                    "class": "bar-progress",
                    "fill": self.task.color,
                    "append_to": self.bar_group,
                },
            )
        self.label = renderer.create_shape(
            "text",
            {
                "x": geo.x + geo.width / 2,
                "y": geo.y + geo.height / 2,
                "text": self.task.name,
                "class": "bar-label",
                "append_to": self.bar_group,
            },
        )
        self._draw_carets(geo)
        self._draw_resize_handles(geo)
        self._update_label(geo)

        for shape in (self.group, self.bar_group, self.bar_shape, self.progress_shape, self.label):
            if shape is not None:
                self.chart.register_target(shape, self, "body")
        if self.caret is not None:
            self.chart.register_target(self.caret, self, "caret")
        for side, handle in self.handles.items():
            self.chart.register_target(handle, self, side)

    def _wrapper_class(self) -> str:
        parts = ["bar-wrapper"]
        if self.task.custom_class:
            parts.append(self.task.custom_class)
        if self.active:
            parts.append("active")
        return " ".join(parts)

    def set_active(self, active: bool) -> None:
        self.active = active
        if self.group is not None:
            self.chart.renderer.set_attribute(self.group, "class", self._wrapper_class())

    def _draw_resize_handles(self, geo: BarGeometry) -> None:
        if self.invalid:
            return
        renderer = self.chart.renderer
        radius = self.chart.options.bar_corner_radius
        for side, (hx, hy) in (
            ("right", bar_geometry.right_handle_position(geo)),
            ("left", bar_geometry.left_handle_position(geo)),
        ):
            self.handles[side] = renderer.create_shape(
                "rect",
                {
                    "x": hx,
                    "y": hy,
                    "width": bar_geometry.HANDLE_WIDTH,
                    "height": self.height - 2,
                    "rx": radius,
                    "ry": radius,
                    "class": f"handle {side}",
                    "append_to": self.handle_group,
                },
            )
        if self.task.progress and self.task.progress < 100:
            self.handles["progress"] = renderer.create_shape(
                "polygon",
                {
                    "points": bar_geometry.progress_handle_points(geo, self.progress_width),
                    "class": "handle progress",
                    "append_to": self.handle_group,
                },
            )

    def _draw_carets(self, geo: BarGeometry) -> None:
        if not self.collapsible:
            return
        renderer = self.chart.renderer
        renderer.set_attribute(self.bar_group, "class", "bar-group collapsible")
        label_width = renderer.get_bounding_box(self.label)["width"]
        if bar_geometry.has_room_for_caret(geo, label_width):
            self.caret = renderer.create_shape(
                "polygon",
                {
                    "points": bar_geometry.caret_points(geo),
                    "class": "caret",
                    "append_to": self.handle_group,
                },
            )

    # Geometry updates

    def snapshot(self) -> BarGeometry:
        g = self.geometry
        return BarGeometry(x=g.x, y=g.y, width=g.width, height=g.height)

    def start_gesture(self) -> None:
        g = self.snapshot()
        self.ox = g.x
        self.oy = g.y
        self.owidth = g.width
        self.final_dx = 0.0
        self.final_dy = 0.0

    def update_bar_position(self, x: float | None = None, width: float | None = None, y: float | None = None) -> None:
        """Move/resize the bar; widths narrower than one column are ignored."""
        if x is not None:
            self.geometry.x = x
        if width is not None and bar_geometry.accepts_width(width, self.chart.scale):
            self.geometry.width = width
        if y is not None:
            self.geometry.y = y
        if not self.drawn:
            return
        geo = self.snapshot()
        self._update_label(geo)
        self._update_handles(geo)
        self._update_progress(geo)
        self.update_arrow_position()

    def _update_label(self, geo: BarGeometry) -> None:
        renderer = self.chart.renderer
        label_width = renderer.get_bounding_box(self.label)["width"]
        x, y, outside = bar_geometry.label_position(geo, label_width)
        renderer.set_attribute(self.label, "class", "bar-label big" if outside else "bar-label")
        renderer.set_attribute(self.label, "x", x)
        renderer.set_attribute(self.label, "y", y)

    def _update_handles(self, geo: BarGeometry) -> None:
        renderer = self.chart.renderer
        if not self.invalid:
            for side, position in (
                ("left", bar_geometry.left_handle_position(geo)),
                ("right", bar_geometry.right_handle_position(geo)),
            ):
                renderer.set_attribute(self.handles[side], "x", position[0])
                renderer.set_attribute(self.handles[side], "y", position[1])
        if self.caret is not None:
            renderer.set_attribute(self.caret, "points", bar_geometry.caret_points(geo))
        if "progress" in self.handles:
            renderer.set_attribute(
                self.handles["progress"], "points", bar_geometry.progress_handle_points(geo, self.progress_width)
            )

    def _update_progress(self, geo: BarGeometry) -> None:
        if self.invalid or self.progress_shape is None:
            return
        self.progress_width = bar_geometry.progress_width(geo, self.task.progress)
        renderer = self.chart.renderer
        renderer.set_attribute(self.progress_shape, "x", geo.x)
        renderer.set_attribute(self.progress_shape, "y", geo.y)
        renderer.set_attribute(self.progress_shape, "width", self.progress_width)
        if "progress" in self.handles:
            renderer.set_attribute(
                self.handles["progress"], "points", bar_geometry.progress_handle_points(geo, self.progress_width)
            )

    def set_progress_width(self, width: float) -> None:
        self.progress_width = width
        if self.progress_shape is None:
            return
        self.chart.renderer.set_attribute(self.progress_shape, "width", width)
        if "progress" in self.handles:
            self.chart.renderer.set_attribute(
                self.handles["progress"], "points", bar_geometry.progress_handle_points(self.snapshot(), width)
            )

    def update_arrow_position(self) -> None:
        for arrow in self.arrows:
            arrow.update()

    def compute_y(self) -> float:
        return bar_geometry.compute_y(self.task.index or 0, self.chart.options)

    # Commit

    def date_changed(self) -> bool:
        """Write the bar's geometry back to task dates; fire date_change when they differ."""
        geo = self.snapshot()
        new_start, new_end = bar_geometry.from_geometry(geo.x, geo.width, self.chart.scale, self.chart.gantt_start)

        changed = False
        if self.task.start_at != new_start:
            self.task.start_at = new_start
            changed = True
        if self.task.end_at != new_end:
            self.task.end_at = new_end
            changed = True
        if not changed:
            return False

        self._store_raw_dates(new_start, new_end)
        logger.debug("Task %s moved to %s - %s", self.task.id, new_start, new_end)
        self.chart.trigger_event(
            "date_change",
            self.task,
            new_start,
            date_utils.add(new_end, -1, date_utils.SECOND),
        )
        return True

    def _store_raw_dates(self, start, end) -> None:
        # Raw values chosen so a later refresh normalizes back to the same instants.
        self.task.start = start
        if date_utils.has_time_of_day(end):
            self.task.end = end
        else:
            self.task.end = date_utils.add(end, -24, date_utils.HOUR)

    def progress_changed(self) -> int:
        width = self.snapshot().width
        new_progress = bar_geometry.compute_progress(self.progress_width, width)
        self.task.progress = new_progress
        self.chart.trigger_event("progress_change", self.task, new_progress)
        return new_progress

    def set_action_completed(self) -> None:
        self.cooldown_until = self.chart.clock() + ACTION_COOLDOWN_SECONDS

    @property
    def action_completed(self) -> bool:
        return self.chart.clock() < self.cooldown_until


class Arrow:
    """Dependency arrow between two drawn bars; re-routed whenever either bar moves."""

    def __init__(self, chart: "GanttChart", from_bar: Bar, to_bar: Bar) -> None:
        self.chart = chart
        self.from_bar = from_bar
        self.to_bar = to_bar
        self.path = self._route()
        self.shape = chart.renderer.create_shape(
            "path",
            {
                "d": self.path.d,
                "class": "arrow",
                "data-from": from_bar.id,
                "data-to": to_bar.id,
                "append_to": chart.layers["arrow"],
            },
        )

    def _route(self) -> ArrowPath:
        return arrow_router.route(
            self.from_bar.snapshot(),
            self.to_bar.snapshot(),
            self.chart.options,
            from_id=self.from_bar.id,
            to_id=self.to_bar.id,
        )

    def update(self) -> None:
        self.path = self._route()
        self.chart.renderer.set_attribute(self.shape, "d", self.path.d)
