r"""Function-call retry surface.

This module provides the fluent ``Retrier`` returned by ``do`` and the
``retry`` decorator. Both translate their settings into policies and
delegate to ``arecur.engine.execute``.

Example:
    ```pycon
    >>> from arecur.backoff import NoDelay
    >>> from arecur.retrier import do
    >>> attempts = []
    >>> def fetch():
    ...     attempts.append(1)
    ...     if len(attempts) < 2:
    ...         raise TimeoutError
    ...     return {"id": 1}
    ...
    >>> do(fetch).with_max_attempts(3).with_backoff(NoDelay()).run()
    {'id': 1}

    ```
"""

from __future__ import annotations

__all__ = ["Retrier", "do", "retry"]

import functools
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from arecur import policy
from arecur.backoff import ConstantBackoff
from arecur.config import DEFAULT_DELAY, DEFAULT_MAX_ATTEMPTS, DEFAULT_TIMEOUT
from arecur.engine import execute
from arecur.matcher import match_any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from arecur.backoff import BaseBackoff
    from arecur.context import Context
    from arecur.engine import Hook
    from arecur.matcher import ErrorMatcher

T = TypeVar("T")


class Retrier(Generic[T]):
    """Fluent retrier for a single operation.

    Args:
        operation: The operation to run. It takes no argument and
            signals failure by raising an ``Exception``.
    """

    def __init__(self, operation: Callable[[], T]) -> None:
        self._operation = operation
        self._max_attempts = DEFAULT_MAX_ATTEMPTS
        self._backoff: BaseBackoff = ConstantBackoff(DEFAULT_DELAY)
        self._matcher: ErrorMatcher = match_any
        self._timeout = DEFAULT_TIMEOUT
        self._hooks: list[Hook] = []

    def with_max_attempts(self, n: int) -> Retrier[T]:
        """Set the maximum number of attempts."""
        self._max_attempts = n
        return self

    def with_backoff(self, backoff: BaseBackoff) -> Retrier[T]:
        """Set the backoff strategy."""
        self._backoff = backoff
        return self

    def with_timeout(self, seconds: float) -> Retrier[T]:
        """Set the overall timeout in seconds (0 means no timeout)."""
        self._timeout = seconds
        return self

    def retry_if(self, matcher: ErrorMatcher) -> Retrier[T]:
        """Set the error matcher."""
        self._matcher = matcher
        return self

    def on_retry(self, hook: Hook) -> Retrier[T]:
        """Register a hook called before each attempt.

        Hooks are called in registration order with ``(context, attempt,
        previous_error, elapsed)``.
        """
        self._hooks.append(hook)
        return self

    def policies(self) -> list[policy.Policy]:
        """Return the policies equivalent to the current settings."""
        policies = [
            policy.max_attempts(self._max_attempts),
            policy.with_backoff(self._backoff),
            policy.only_retry_if(self._matcher),
        ]
        if self._timeout > 0:
            policies.append(policy.timeout(self._timeout))
        return policies

    def run(self, context: Context | None = None) -> T:
        """Run the operation with retries.

        Args:
            context: Optional context to cancel the run.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            Exception: The non-retryable error raised by the operation.
            RetryCancelledError: If the run was cancelled or timed out.
            MaxAttemptsExceededError: If all the attempts failed.
        """
        return execute(self._operation, self.policies(), self._hooks, context=context)


def do(operation: Callable[[], T]) -> Retrier[T]:
    """Create a fluent retrier for an operation.

    The defaults are 3 attempts, a constant backoff of 0.1 seconds,
    every error retried and no timeout.

    Args:
        operation: The operation to run.

    Returns:
        The retrier.
    """
    return Retrier(operation)


def retry(
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff: BaseBackoff | None = None,
    matcher: ErrorMatcher = match_any,
    timeout: float = DEFAULT_TIMEOUT,
    hooks: Iterable[Hook] = (),
    policies: Iterable[policy.Policy] = (),
    context: Context | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorate a function to run it with retries.

    Each call of the decorated function is an independent run. The
    keyword settings are applied first, then ``policies`` in order, so
    the policies override the settings.

    Args:
        max_attempts: The maximum number of attempts.
        backoff: The backoff strategy. Defaults to a constant backoff
            of 0.1 seconds.
        matcher: The error matcher.
        timeout: The overall timeout in seconds (0 means no timeout).
        hooks: The hooks called before each attempt.
        policies: Extra policies applied after the settings.
        context: Optional context shared by every call. Cancelling it
            stops the runs in progress and makes later calls raise
            ``RetryCancelledError`` without calling the function.

    Returns:
        The decorator.

    Example:
        ```pycon
        >>> from arecur.backoff import NoDelay
        >>> from arecur.matcher import match_types
        >>> from arecur.retrier import retry
        >>> @retry(max_attempts=2, backoff=NoDelay(), matcher=match_types(KeyError))
        ... def lookup(mapping, key):
        ...     return mapping[key]
        ...
        >>> lookup({"a": 1}, "a")
        1

        ```
    """
    base = [
        policy.max_attempts(max_attempts),
        policy.with_backoff(ConstantBackoff(DEFAULT_DELAY) if backoff is None else backoff),
        policy.only_retry_if(matcher),
        policy.timeout(timeout),
        *policies,
    ]
    hooks = tuple(hooks)
    # Fail at decoration time on invalid settings
    policy.resolve_config(base)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return execute(
                functools.partial(func, *args, **kwargs), base, hooks, context=context
            )

        return wrapper

    return decorator
