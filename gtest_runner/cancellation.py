"""Shared cancellation signal for all workers of a test run."""

import logging
import threading
from collections.abc import Callable

log = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe, one-shot cancellation signal.

    Runners poll ``is_cancelled`` at batch boundaries. Launchers register
    callbacks to terminate in-flight processes; callbacks run on the thread
    calling ``cancel()``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_id = 0

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation and notify registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()

        log.info("Cancellation requested")
        for callback in callbacks:
            self._invoke(callback)

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback invoked on cancellation.

        If cancellation was already requested, the callback runs immediately.

        Returns:
            Function removing the registration

        """
        with self._lock:
            if not self._event.is_set():
                callback_id = self._next_id
                self._next_id += 1
                self._callbacks[callback_id] = callback

                def unregister() -> None:
                    with self._lock:
                        self._callbacks.pop(callback_id, None)

                return unregister

        self._invoke(callback)
        return lambda: None

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            log.exception("Cancellation callback failed")
