# This file is part of cloudboot. See LICENSE file for license information.

"""Cancellable execution context shared by every blocking bootstrap step.

A Context is created by the caller and threaded through each operation that
may block (HTTP requests, the network readiness wait, the channel send).
Cancelling it wakes any of those immediately; the interrupted operation
raises CancellationError carrying the cancellation reason.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, List, Optional

from cloudboot.exceptions import CloudbootError

LOG = logging.getLogger(__name__)

CANCELED = "context canceled"
DEADLINE_EXCEEDED = "context deadline exceeded"


class CancellationError(CloudbootError):
    """Raised when the execution context is cancelled during a wait."""

    def __init__(self, reason: str = CANCELED):
        super().__init__(reason)
        self.reason = reason


class Context:
    def __init__(self, parent: Optional["Context"] = None):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[["Context"], None]] = []
        self._timer: Optional[threading.Timer] = None
        self._parent = parent
        if parent is not None:
            parent.add_done_callback(self._cancel_from_parent)

    @classmethod
    def with_timeout(
        cls, seconds: float, parent: Optional["Context"] = None
    ) -> "Context":
        """Return a context cancelled automatically after seconds."""
        ctx = cls(parent)
        timer = threading.Timer(
            seconds, ctx.cancel, args=(DEADLINE_EXCEEDED,)
        )
        timer.daemon = True
        with ctx._lock:
            if ctx._done.is_set():
                return ctx
            ctx._timer = timer
        timer.start()
        return ctx

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cancel()

    def _cancel_from_parent(self, parent: "Context"):
        self.cancel(parent.reason or CANCELED)

    def cancel(self, reason: str = CANCELED):
        """Cancel the context, waking every operation waiting on it.

        Only the first call has any effect.
        """
        with self._lock:
            if self._done.is_set():
                return
            self._reason = reason
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None
        if timer:
            timer.cancel()
        if self._parent is not None:
            self._parent.remove_done_callback(self._cancel_from_parent)
        LOG.debug("Execution context cancelled: %s", reason)
        for callback in callbacks:
            callback(self)

    def cancelled(self) -> bool:
        return self._done.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def err(self) -> Optional[CancellationError]:
        if not self._done.is_set():
            return None
        return CancellationError(self._reason or CANCELED)

    def raise_if_cancelled(self):
        err = self.err()
        if err:
            raise err

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; return True if cancelled."""
        return self._done.wait(timeout)

    def add_done_callback(self, callback: Callable[["Context"], None]):
        """Call callback(ctx) on cancellation, or now if already cancelled."""
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def remove_done_callback(self, callback: Callable[["Context"], None]):
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def run(
        self, func, *args, on_cancel: Optional[Callable] = None, **kwargs
    ):
        """Run blocking func in a worker thread, racing it with cancellation.

        Whichever finishes first decides the outcome: the return value (or
        exception) of func, or CancellationError. on_cancel is invoked when
        cancellation wins so the caller can abort the in-flight work.
        """
        self.raise_if_cancelled()
        cancelled: Future = Future()

        def signal(ctx):
            cancelled.set_result(ctx.reason)

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            work = executor.submit(func, *args, **kwargs)
            self.add_done_callback(signal)
            done, _ = wait_futures(
                [work, cancelled], return_when=FIRST_COMPLETED
            )
            if work in done:
                return work.result()
            if on_cancel:
                on_cancel()
            work.cancel()
            raise CancellationError(self._reason or CANCELED)
        finally:
            self.remove_done_callback(signal)
            executor.shutdown(wait=False)


def background() -> Context:
    """Return a fresh root context that is never cancelled implicitly."""
    return Context()
