# This file is part of cloudboot. See LICENSE file for license information.

import collections
import threading
import time
from typing import Any, Deque, Optional

from cloudboot.context import Context


class Channel:
    """Bounded hand-off between a platform and the boot orchestrator.

    send() blocks while the channel is full and receive() while it is
    empty. Both wait on a single condition that is also notified when the
    caller's context is cancelled, so whichever event happens first decides
    the outcome of the wait.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self.capacity = capacity
        self._items: Deque[Any] = collections.deque()
        self._cond = threading.Condition()

    def __len__(self):
        with self._cond:
            return len(self._items)

    def _wake(self, _ctx):
        with self._cond:
            self._cond.notify_all()

    def send(self, ctx: Context, value):
        """Put value on the channel unless ctx is cancelled first.

        @raises: CancellationError if ctx is cancelled before the value is
            accepted; the value is then dropped.
        """
        ctx.add_done_callback(self._wake)
        try:
            with self._cond:
                while True:
                    ctx.raise_if_cancelled()
                    if len(self._items) < self.capacity:
                        self._items.append(value)
                        self._cond.notify_all()
                        return
                    self._cond.wait()
        finally:
            ctx.remove_done_callback(self._wake)

    def receive(
        self, ctx: Optional[Context] = None, timeout: Optional[float] = None
    ):
        """Take the oldest value off the channel.

        @raises: CancellationError if ctx is cancelled while waiting,
            TimeoutError if nothing arrived within timeout seconds.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        if ctx is not None:
            ctx.add_done_callback(self._wake)
        try:
            with self._cond:
                while True:
                    if ctx is not None:
                        ctx.raise_if_cancelled()
                    if self._items:
                        value = self._items.popleft()
                        self._cond.notify_all()
                        return value
                    if deadline is None:
                        self._cond.wait()
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise TimeoutError(
                            "no value received in %ss" % timeout
                        )
                    self._cond.wait(remaining)
        finally:
            if ctx is not None:
                ctx.remove_done_callback(self._wake)
