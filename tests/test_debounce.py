import threading

from conftest import ManualTimer
from gantt_timeline.debounce import Debouncer


def test_only_the_last_call_runs(timers):
    calls = []
    debounced = Debouncer(calls.append, wait=0.05, timer_factory=ManualTimer)

    debounced(1)
    debounced(2)
    debounced(3)

    assert [t.cancelled for t in timers] == [True, True, False]
    assert all(t.started for t in timers)
    assert timers[-1].wait == 0.05

    for timer in timers:
        timer.fire()
    assert calls == [3]
    assert not debounced.pending


def test_cancel_drops_pending_call(timers):
    calls = []
    debounced = Debouncer(lambda: calls.append("ran"), timer_factory=ManualTimer)

    debounced()
    assert debounced.pending
    debounced.cancel()

    timers[0].fire()
    assert calls == []
    assert not debounced.pending


def test_real_timer_runs_in_background():
    done = threading.Event()
    debounced = Debouncer(done.set, wait=0.01)

    debounced()

    assert done.wait(2)
