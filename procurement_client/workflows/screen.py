# procurement_client/workflows/screen.py
"""
Base class for screen controllers.

A screen holds the state of one page (rows, selection, error message)
and calls the service layer. Errors from the backend are caught here and
stored on `error`; callers render it instead of handling exceptions.
"""

import logging
from typing import Any, Callable, List, Optional

from ..client import ApiClient, ApiError
from ..events import Handler
from ..utils.debounce import Debouncer

logger = logging.getLogger(__name__)


class Screen:
    """
    Args:
        client: API client bound to the user's session; the screen owns it
            after construction and closes it on dispose()
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.error: Optional[str] = None
        self.loading = False
        self.disposed = False
        self._unsubscribes: List[Callable[[], None]] = []
        self._debouncers: List[Debouncer] = []

    @property
    def session(self):
        return self.client.session

    def _call(self, fn: Callable[..., Any], *args, failure: Optional[str] = None, **kwargs) -> Any:
        """
        Run one service call.

        Returns None when the call failed (the message lands in `error`,
        `failure` replacing it when given; "{}" in `failure` is filled with
        the original message) or when the screen was disposed meanwhile.
        """
        if self.disposed:
            return None
        self.loading = True
        try:
            result = fn(*args, **kwargs)
        except ApiError as e:
            if self.disposed:
                return None
            self.error = failure.format(e) if failure else str(e)
            logger.debug("%s: %s", type(self).__name__, e)
            return None
        finally:
            self.loading = False
        if self.disposed:
            logger.debug("%s disposed; discarding result of %s", type(self).__name__, fn.__name__)
            return None
        return result

    def debounce(self, fn: Callable[..., Any], wait: Optional[float] = None) -> Debouncer:
        """A Debouncer around `fn` that dispose() cancels."""
        debouncer = Debouncer(fn, wait=wait)
        self._debouncers.append(debouncer)
        return debouncer

    def subscribe(self, pattern: str, handler: Handler) -> None:
        """Listen on the client's event bus until dispose()."""
        self._unsubscribes.append(self.client.bus.subscribe(pattern, handler))

    def dispose(self) -> None:
        """Cancel pending searches and subscriptions, then close the client.

        Results of calls still in flight are discarded.
        """
        if self.disposed:
            return
        self.disposed = True
        for debouncer in self._debouncers:
            debouncer.cancel()
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()
        self.client.close()
