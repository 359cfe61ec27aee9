import threading
from typing import Any, Callable, Optional

from ..config import settings


class Debouncer:
    """
    Collapse bursts of calls (e.g. keystrokes in a search box) into one.

    call() (re)starts a timer; the wrapped function runs with the latest
    arguments once `wait` seconds pass without another call. flush() runs
    a pending call immediately, for callers that need the result now.
    """

    def __init__(self, fn: Callable[..., Any], wait: Optional[float] = None):
        self.fn = fn
        self.wait = settings.search_debounce_seconds if wait is None else wait
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None

    def call(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            if self.wait <= 0:
                self._timer = None
            else:
                self._timer = threading.Timer(self.wait, self._fire)
                self._timer.daemon = True
                self._timer.start()
        if self.wait <= 0:
            self.flush()

    def _fire(self) -> None:
        self.flush()

    def flush(self) -> bool:
        """Run the pending call now. Returns False when nothing was pending."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending, self._pending = self._pending, None
        if pending is None:
            return False
        args, kwargs = pending
        self.fn(*args, **kwargs)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None
