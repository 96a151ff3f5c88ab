# ============================================================================
# QUERY CANCELLATION AND DEBOUNCE
# ============================================================================
# STATUS: Service - cooperative cancellation for interactive queries
# PURPOSE: Cancel superseded queries; run only the latest after a quiet period
# EXPORTS: CancellationToken, QueryDebouncer
# DEPENDENCIES: threading
# ============================================================================
"""
Query Cancellation and Debounce.

Interactive callers (a map that re-queries as the user drags a polygon or a
slider) submit far more queries than they need answers to. Two pieces keep
that cheap:

    CancellationToken
        Wraps a threading.Event. The query service checks it at every I/O
        boundary and raises QueryCancelledError once it is set.

    QueryDebouncer
        Each submit() cancels the previous query's token and pending timer,
        then schedules the new query after the debounce delay. Only the
        latest submission's result reaches the callback.

Usage:
    debouncer = QueryDebouncer(
        run=lambda request, token: service.query(request, token=token),
        on_result=render,
    )
    debouncer.submit(request)
"""

import threading
from typing import Any, Callable, Optional

from config import get_config
from exceptions import QueryCancelledError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "QueryDebouncer")


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a query."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "") -> None:
        """
        Raises:
            QueryCancelledError: Token has been cancelled
        """
        if self._event.is_set():
            raise QueryCancelledError(f"Query cancelled{' ' + where if where else ''}")


class QueryDebouncer:
    """
    Runs only the most recent of a burst of query submissions.

    Args:
        run: Callable(request, token) -> result, executed on a timer thread
        on_result: Called with the result of the latest submission
        delay_seconds: Quiet period before a submission runs
            (defaults to ServingConfig.debounce_seconds)
        on_error: Called with any exception other than cancellation
    """

    def __init__(
        self,
        run: Callable[[Any, CancellationToken], Any],
        on_result: Callable[[Any], None],
        delay_seconds: Optional[float] = None,
        on_error: Optional[Callable[[Exception], None]] = None
    ):
        self.run = run
        self.on_result = on_result
        if delay_seconds is None:
            delay_seconds = get_config().serving.debounce_seconds
        self.delay_seconds = delay_seconds
        self.on_error = on_error
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._token: Optional[CancellationToken] = None

    def submit(self, request: Any) -> CancellationToken:
        """
        Schedule a query, superseding any pending or running one.

        Returns:
            The new submission's token
        """
        token = CancellationToken()
        with self._lock:
            self._cancel_locked()
            self._token = token
            self._timer = threading.Timer(self.delay_seconds, self._fire, args=(request, token))
            self._timer.daemon = True
            self._timer.start()
        return token

    def cancel(self) -> None:
        """Cancel the pending or running submission, if any."""
        with self._lock:
            self._cancel_locked()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the current timer thread has finished."""
        with self._lock:
            timer = self._timer
        if timer is not None:
            timer.join(timeout)

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        if self._token is not None:
            self._token.cancel()
        self._timer = None
        self._token = None

    def _is_current(self, token: CancellationToken) -> bool:
        with self._lock:
            return self._token is token and not token.cancelled

    def _fire(self, request: Any, token: CancellationToken) -> None:
        if not self._is_current(token):
            return
        try:
            result = self.run(request, token)
        except QueryCancelledError:
            logger.debug("Superseded query cancelled")
            return
        except Exception as e:
            logger.error(f"❌ Debounced query failed: {e}", exc_info=True)
            if self.on_error is not None:
                self.on_error(e)
            return

        if self._is_current(token):
            self.on_result(result)
