r"""Cancellation contexts for retry runs.

A ``Context`` is a cancellation token with an optional deadline. The
retry engine and the attempt iterator wait on the run context between
attempts, so cancelling it (or letting its deadline pass) stops the
run at the next suspension point.

Contexts form a tree: cancelling a parent cancels all its children,
and a child never outlives the deadline of its parent.

Example:
    ```pycon
    >>> from arecur.context import background, with_timeout
    >>> ctx = with_timeout(background(), 60.0)
    >>> ctx.done()
    False
    >>> ctx.cancel()
    >>> ctx.done(), ctx.reason
    (True, 'cancelled')

    ```
"""

from __future__ import annotations

__all__ = [
    "CANCELLED",
    "DEADLINE_EXCEEDED",
    "Context",
    "background",
    "with_cancel",
    "with_timeout",
]

import logging
import threading
import time

logger: logging.Logger = logging.getLogger(__name__)

CANCELLED = "cancelled"
DEADLINE_EXCEEDED = "deadline exceeded"


class Context:
    """Cancellation token with an optional deadline.

    Instances are usually created with ``background``, ``with_cancel``
    or ``with_timeout`` rather than directly.

    Args:
        parent: Optional parent context. The new context is cancelled
            when the parent is.
        deadline: Optional absolute deadline, as a ``time.monotonic()``
            value. It is capped at the parent deadline.
    """

    def __init__(self, parent: Context | None = None, deadline: float | None = None) -> None:
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._parent = parent
        self._deadline = deadline
        self._event = threading.Event()
        self._reason: str | None = None
        self._children: list[Context] = []
        self._lock = threading.Lock()
        if parent is not None:
            parent._attach(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(deadline={self._deadline}, reason={self.reason!r})"

    @property
    def deadline(self) -> float | None:
        """The absolute deadline (``time.monotonic()`` based), if any."""
        return self._deadline

    @property
    def reason(self) -> str | None:
        """Why the context ended, or ``None`` if it is still active.

        The value is ``CANCELLED`` or ``DEADLINE_EXCEEDED``.
        """
        self._check_deadline()
        return self._reason

    def done(self) -> bool:
        """Indicate if the context was cancelled or its deadline passed.

        Returns:
            ``True`` if the context ended, otherwise ``False``.
        """
        self._check_deadline()
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel the context and all its children.

        Cancelling an already ended context has no effect.
        """
        self._end(CANCELLED)

    def remaining(self) -> float | None:
        """Return the number of seconds until the deadline.

        Returns:
            The remaining time in seconds (never negative), or ``None``
                if the context has no deadline.
        """
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def wait(self, seconds: float) -> bool:
        """Block until the delay elapses or the context ends.

        Args:
            seconds: The delay to wait, in seconds.

        Returns:
            ``True`` if the context ended before the delay elapsed,
                ``False`` if the full delay elapsed.
        """
        remaining = self.remaining()
        if remaining is not None and remaining <= seconds:
            if self._event.wait(remaining):
                return True
            self._end(DEADLINE_EXCEEDED)
            return True
        return self._event.wait(max(seconds, 0.0))

    def _attach(self, child: Context) -> None:
        with self._lock:
            ended = self._event.is_set()
            if not ended:
                self._children.append(child)
        if ended:
            child._end(self._reason or CANCELLED)

    def _check_deadline(self) -> None:
        if (
            self._deadline is not None
            and not self._event.is_set()
            and time.monotonic() >= self._deadline
        ):
            self._end(DEADLINE_EXCEEDED)

    def _end(self, reason: str) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            children, self._children = self._children, []
        logger.debug(f"Context ended ({reason})")
        for child in children:
            child._end(reason)
        if self._parent is not None:
            self._parent._detach(self)

    def _detach(self, child: Context) -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)


def background() -> Context:
    """Create a root context that is never cancelled on its own.

    Returns:
        A new root context without deadline.
    """
    return Context()


def with_cancel(parent: Context) -> Context:
    """Create a cancellable child context.

    Args:
        parent: The parent context.

    Returns:
        A child context ended by ``cancel()`` or by its parent.
    """
    return Context(parent=parent)


def with_timeout(parent: Context, seconds: float) -> Context:
    """Create a child context that ends after a timeout.

    Args:
        parent: The parent context.
        seconds: The timeout in seconds, measured from now.

    Returns:
        A child context with a deadline ``seconds`` from now (or the
            parent deadline, if earlier).
    """
    return Context(parent=parent, deadline=time.monotonic() + seconds)
