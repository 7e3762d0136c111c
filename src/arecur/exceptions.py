r"""Terminal errors raised by the retry engine.

Two terminal causes share the same base class so that callers can
always recover the number of attempts made and the last operation
error:

- ``MaxAttemptsExceededError``: the attempt ceiling was reached.
- ``RetryCancelledError``: the run context was cancelled or its
  timeout expired before the ceiling was reached.

A non-retryable error (rejected by the matcher) is never wrapped: it
is re-raised as is.
"""

from __future__ import annotations

__all__ = [
    "MaxAttemptsExceededError",
    "RetryCancelledError",
    "is_max_attempts_exceeded",
    "iter_error_chain",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator


class MaxAttemptsExceededError(RuntimeError):
    """Exception raised when all retry attempts have been exhausted.

    The last operation error is available as ``last_error`` and is
    also chained as ``__cause__`` when raised by the engine.

    Args:
        attempts: The number of attempts actually made.
        last_error: The last error raised by the operation, if any.

    Example:
        ```pycon
        >>> from arecur.exceptions import MaxAttemptsExceededError
        >>> error = MaxAttemptsExceededError(attempts=3, last_error=ValueError("boom"))
        >>> error.attempts
        3
        >>> str(error)
        'max attempts (3) exceeded: boom'

        ```
    """

    def __init__(self, attempts: int, last_error: BaseException | None = None) -> None:
        super().__init__(self._format_message(attempts, last_error))
        self.attempts = attempts
        self.last_error = last_error

    def __reduce__(self) -> tuple[Any, ...]:
        return (self.__class__, (self.attempts, self.last_error))

    def _format_message(self, attempts: int, last_error: BaseException | None) -> str:
        return f"max attempts ({attempts}) exceeded: {last_error}"


class RetryCancelledError(MaxAttemptsExceededError):
    """Exception raised when a run stops because its context ended.

    Args:
        attempts: The number of attempts made before the context ended.
        last_error: The last error raised by the operation, if any.
        reason: Why the context ended (``"cancelled"`` or
            ``"deadline exceeded"``).

    Example:
        ```pycon
        >>> from arecur.exceptions import RetryCancelledError
        >>> error = RetryCancelledError(attempts=1, reason="deadline exceeded")
        >>> str(error)
        'retry stopped after 1 attempt(s) (deadline exceeded): None'

        ```
    """

    def __init__(
        self,
        attempts: int,
        last_error: BaseException | None = None,
        reason: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(attempts, last_error)

    def __reduce__(self) -> tuple[Any, ...]:
        return (self.__class__, (self.attempts, self.last_error, self.reason))

    def _format_message(self, attempts: int, last_error: BaseException | None) -> str:
        return f"retry stopped after {attempts} attempt(s) ({self.reason}): {last_error}"


def is_max_attempts_exceeded(error: BaseException | None) -> bool:
    """Indicate if an error is, or is caused by, a terminal retry
    error.

    Args:
        error: The error to inspect.

    Returns:
        ``True`` if ``error`` or any exception on its cause/context
            chain is a ``MaxAttemptsExceededError``.

    Example:
        ```pycon
        >>> from arecur.exceptions import MaxAttemptsExceededError, is_max_attempts_exceeded
        >>> is_max_attempts_exceeded(MaxAttemptsExceededError(attempts=2))
        True
        >>> is_max_attempts_exceeded(ValueError("boom"))
        False

        ```
    """
    return any(isinstance(exc, MaxAttemptsExceededError) for exc in iter_error_chain(error))


def iter_error_chain(error: BaseException | None) -> Iterator[BaseException]:
    """Iterate over an error and the errors it was raised from.

    The chain follows ``__cause__`` first, then ``__context__`` unless
    it was suppressed with ``raise ... from None``. Cycles are
    detected and stop the iteration.

    Args:
        error: The first error of the chain. ``None`` yields nothing.

    Yields:
        The errors of the chain, starting with ``error``.

    Example:
        ```pycon
        >>> from arecur.exceptions import iter_error_chain
        >>> try:
        ...     try:
        ...         raise KeyError("key")
        ...     except KeyError as exc:
        ...         raise ValueError("value") from exc
        ... except ValueError as exc:
        ...     [type(e).__name__ for e in iter_error_chain(exc)]
        ...
        ['ValueError', 'KeyError']

        ```
    """
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        yield error
        seen.add(id(error))
        if error.__cause__ is not None:
            error = error.__cause__
        elif not error.__suppress_context__:
            error = error.__context__
        else:
            error = None
