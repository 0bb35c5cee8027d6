import pytest

from gantt_timeline.chart import GanttChart
from gantt_timeline.surface import Canvas, PointerEvent


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ManualTimer:
    created = []

    def __init__(self, wait, callback):
        self.wait = wait
        self.callback = callback
        self.started = False
        self.cancelled = False
        ManualTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    ManualTimer.created = []
    return ManualTimer.created


@pytest.fixture
def make_chart(clock, timers):
    def _make(tasks, **options):
        canvas = Canvas()
        chart = GanttChart(canvas, tasks, options or None, clock=clock, timer_factory=ManualTimer)
        return canvas, chart

    return _make


def press(canvas, target, x, y):
    return canvas.dispatch("mousedown", PointerEvent(x=x, y=y, target=target))


def move(canvas, x, y):
    return canvas.dispatch("mousemove", PointerEvent(x=x, y=y))


def release(canvas, x, y):
    return canvas.dispatch("mouseup", PointerEvent(x=x, y=y))


def drag(canvas, target, start, end):
    press(canvas, target, *start)
    move(canvas, *end)
    release(canvas, *end)
