from __future__ import annotations

import threading
from typing import Any, Callable


class Debouncer:
    """
    Run `func` once `wait` seconds have passed without another call.

    Every call cancels the pending timer and schedules a new one with the
    latest arguments. `timer_factory` must build an object with `start()` and
    `cancel()` from `(wait, callback)`; tests pass a manual timer.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float = 0.05,
        timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
    ) -> None:
        self.func = func
        self.wait = wait
        self.timer_factory = timer_factory
        self._timer: Any = None
        self._lock = threading.Lock()

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        def fire() -> None:
            with self._lock:
                self._timer = None
            self.func(*args, **kwargs)

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self.timer_factory(self.wait, fire)
            if hasattr(self._timer, "daemon"):
                self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
