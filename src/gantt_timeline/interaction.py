from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from . import bar_geometry

if TYPE_CHECKING:
    from .bars import Bar
    from .chart import GanttChart

logger = logging.getLogger(__name__)

# Pointer travel (px, either axis) that turns a press on a collapsible bar into a drag.
CLICK_SLOP = 5


class InteractionState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING_LEFT = "resizing_left"
    RESIZING_RIGHT = "resizing_right"
    RESIZING_PROGRESS = "resizing_progress"
    SORTING = "sorting"


_PRESS_STATES = {
    "body": InteractionState.DRAGGING,
    "caret": InteractionState.DRAGGING,
    "left": InteractionState.RESIZING_LEFT,
    "right": InteractionState.RESIZING_RIGHT,
    "progress": InteractionState.RESIZING_PROGRESS,
}


class InteractionController:
    """
    Pointer gesture state machine for one chart.

    A press picks the gesture from the part of the bar under the pointer,
    moves update geometry live (snapped, cascaded to descendants and
    reflected in envelope ancestors) and a release commits geometry back to
    task dates. Only a release returns to IDLE.
    """

    def __init__(self, chart: "GanttChart") -> None:
        self.chart = chart
        self.state = InteractionState.IDLE
        self._reset()

    def _reset(self) -> None:
        self.x_on_start = 0.0
        self.y_on_start = 0.0
        self.primary: Bar | None = None
        self.bars: list[Bar] = []
        self.parent_bars: list[Bar] = []
        self.collapse_candidate: Bar | None = None
        self.collapse_dragged = False
        self.progress_origin = 0.0
        self.progress_dx = 0.0
        self.progress_bounds = (0.0, 0.0)

    @property
    def active(self) -> bool:
        return self.state is not InteractionState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.state in (InteractionState.DRAGGING, InteractionState.SORTING)

    # Press

    def press(self, x: float, y: float, bar: "Bar", part: str = "body") -> InteractionState:
        if self.active:
            return self.state
        self._reset()
        self.x_on_start = x
        self.y_on_start = y
        state = _PRESS_STATES.get(part, InteractionState.DRAGGING)
        if bar.invalid and state in (InteractionState.RESIZING_LEFT, InteractionState.RESIZING_RIGHT):
            state = InteractionState.DRAGGING

        if part in ("body", "caret") and bar.collapsible:
            self.collapse_candidate = bar
            self.collapse_dragged = False

        if state is InteractionState.RESIZING_PROGRESS:
            self._press_progress(bar)
        else:
            self._press_bar(bar)
        self.state = state
        logger.debug("Press on %s (%s) -> %s", bar.id, part, state.name)
        return state

    def _press_bar(self, bar: "Bar") -> None:
        chart = self.chart
        self.primary = bar
        bar.set_active(True)
        ids = [bar.id, *chart.graph.ordered_descendants(bar.id)]
        self.bars = [b for b in (chart.get_bar(i) for i in ids) if b is not None]
        self.parent_bars = [b for b in (chart.get_bar(i) for i in chart.graph.ancestors(bar.id)) if b is not None]
        for b in self.bars + self.parent_bars:
            b.start_gesture()

    def _press_progress(self, bar: "Bar") -> None:
        self.primary = bar
        width = bar.snapshot().width
        self.progress_origin = bar.progress_width
        self.progress_dx = 0.0
        self.progress_bounds = (-bar.progress_width, width - bar.progress_width)

    # Move

    def move(self, x: float, y: float) -> None:
        if not self.active:
            return
        dx = x - self.x_on_start
        dy = y - self.y_on_start

        if self.collapse_candidate is not None and (abs(dx) > CLICK_SLOP or abs(dy) > CLICK_SLOP):
            self.collapse_dragged = True

        if self.state is InteractionState.RESIZING_PROGRESS:
            self._move_progress(dx)
            return

        self.chart.hide_popup()
        self._move_primary(dx, dy)
        self._move_descendants(dx)
        self._update_envelopes()
        if self.chart.options.sortable and self.is_dragging:
            self._maybe_sort(dy)

    def _move_primary(self, dx: float, dy: float) -> None:
        scale = self.chart.scale
        bar = self.primary
        bar.final_dx = bar_geometry.snap(dx, scale)

        if self.state is InteractionState.RESIZING_LEFT:
            width = bar.owidth - bar.final_dx
            if bar_geometry.accepts_width(width, scale):
                bar.update_bar_position(x=bar.ox + bar.final_dx, width=width)
        elif self.state is InteractionState.RESIZING_RIGHT:
            bar.update_bar_position(width=bar.owidth + bar.final_dx)
        else:
            new_y = None
            if self.chart.options.sortable:
                min_y, max_y = self.chart.row_bounds()
                new_y = min(max(bar.oy + dy, min_y), max_y)
            bar.update_bar_position(x=bar.ox + bar.final_dx, y=new_y)

    def _move_descendants(self, dx: float) -> None:
        if self.state is InteractionState.RESIZING_RIGHT:
            return
        snapped = bar_geometry.snap(dx, self.chart.scale)
        if self.state is InteractionState.RESIZING_LEFT and not bar_geometry.accepts_width(
            self.primary.owidth - snapped, self.chart.scale
        ):
            return
        for bar in self.bars:
            if bar is self.primary:
                continue
            bar.final_dx = snapped
            bar.update_bar_position(x=bar.ox + snapped)

    def _update_envelopes(self) -> None:
        """Stretch project/tag ancestors to cover the current extent of their descendants."""
        chart = self.chart
        for ancestor in self.parent_bars:
            if not ancestor.task.is_envelope:
                continue
            extents = [
                b.snapshot()
                for b in (chart.get_bar(i) for i in chart.graph.ordered_descendants(ancestor.id))
                if b is not None
            ]
            if not extents:
                continue
            min_x = min(g.x for g in extents)
            max_x = max(g.end_x for g in extents)
            x = min_x if min_x != ancestor.ox else None
            width = max_x - min_x
            # A box narrower than one column would keep its old width but move.
            if not bar_geometry.accepts_width(width, chart.scale):
                continue
            ancestor.update_bar_position(x=x, width=width)

    def _maybe_sort(self, dy: float) -> None:
        bar = self.primary
        if abs(dy - bar.final_dy) <= bar.height:
            return
        self.state = InteractionState.SORTING
        for changed in self.chart.sort_bars():
            slot_y = changed.compute_y()
            if changed is bar:
                bar.final_dy = slot_y - bar.oy
                continue
            changed.update_bar_position(y=slot_y)

    def _move_progress(self, dx: float) -> None:
        low, high = self.progress_bounds
        dx = min(max(dx, low), high)
        self.progress_dx = dx
        self.primary.set_progress_width(self.progress_origin + dx)

    # Release

    def release(self, x: float, y: float) -> list["Bar"]:
        """End the gesture; returns the bars whose dates were committed."""
        if not self.active:
            return []
        state = self.state
        candidate = None if self.collapse_dragged else self.collapse_candidate
        committed: list[Bar] = []

        if state is InteractionState.RESIZING_PROGRESS:
            if self.progress_dx:
                self.primary.progress_changed()
                self.primary.set_action_completed()
                committed.append(self.primary)
        else:
            committed = self._commit(y - self.y_on_start)

        self.state = InteractionState.IDLE
        self._reset()

        if candidate is not None:
            self.chart.toggle_collapse(candidate.id)
        return committed

    def _commit(self, dy: float) -> list["Bar"]:
        committed: list[Bar] = []
        for bar in self.bars:
            bar.set_active(False)
            if bar.final_dx:
                bar.date_changed()
                bar.set_action_completed()
                committed.append(bar)

        moved = bool(committed)
        for ancestor in self.parent_bars:
            if not ancestor.task.is_envelope:
                continue
            if not moved:
                # Nothing was committed; drop any live re-fit.
                ancestor.geometry.width = ancestor.owidth
                ancestor.update_bar_position(x=ancestor.ox)
            elif ancestor.date_changed():
                ancestor.set_action_completed()
                committed.append(ancestor)

        primary = self.primary
        if self.chart.options.sortable and self.is_dragging and dy != primary.final_dy:
            primary.update_bar_position(y=primary.oy + primary.final_dy)
        return committed
