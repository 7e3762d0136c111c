r"""Synchronous retry engine.

This module implements the loop that runs an operation to completion
under an ``ExecutionConfig`` resolved from policies. The operation is
called on the caller's thread; the only blocking point is the backoff
wait, which races against the run context.
"""

from __future__ import annotations

__all__ = ["Hook", "execute", "metrics_hook"]

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeAlias, TypeVar

from arecur.context import Context, background, with_timeout
from arecur.exceptions import MaxAttemptsExceededError, RetryCancelledError
from arecur.policy import resolve_config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from arecur.config import ExecutionConfig
    from arecur.metrics import MetricsCollector
    from arecur.policy import Policy

T = TypeVar("T")

Hook: TypeAlias = Callable[[Context, int, BaseException | None, float], None]

logger: logging.Logger = logging.getLogger(__name__)


def execute(
    operation: Callable[[], T],
    policies: Iterable[Policy] = (),
    hooks: Iterable[Hook] = (),
    context: Context | None = None,
) -> T:
    """Run an operation with retries.

    The configuration is resolved by applying the policies, in order,
    to the default configuration. Before each attempt, every hook is
    called in registration order with ``(context, attempt,
    previous_error, elapsed)``. Exceptions raised by hooks are not
    caught and abort the run.

    Args:
        operation: The operation to run. It takes no argument and
            signals failure by raising an ``Exception``.
        policies: The policies configuring the run.
        hooks: The hooks to call before each attempt.
        context: Optional context to cancel the run. If the resolved
            configuration has a timeout, a child context with that
            timeout is used and released when the run ends.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        Exception: The error raised by the operation, unchanged, if the
            matcher does not consider it retryable.
        RetryCancelledError: If the context was cancelled or the
            timeout expired before a successful attempt.
        MaxAttemptsExceededError: If all the attempts failed.

    Example:
        ```pycon
        >>> from arecur.backoff import NoDelay
        >>> from arecur.engine import execute
        >>> from arecur.policy import max_attempts, with_backoff
        >>> calls = []
        >>> def flaky():
        ...     calls.append(1)
        ...     if len(calls) < 3:
        ...         raise ConnectionError("temporary")
        ...     return "ok"
        ...
        >>> execute(flaky, policies=[max_attempts(5), with_backoff(NoDelay())])
        'ok'
        >>> len(calls)
        3

        ```
    """
    config = resolve_config(policies)
    hooks = tuple(hooks)

    parent = background() if context is None else context
    ctx = with_timeout(parent, config.timeout) if config.timeout > 0 else parent
    try:
        return _run_attempts(operation, config, hooks, ctx)
    finally:
        if ctx is not parent:
            # Release the timeout context from its parent
            ctx.cancel()


def _run_attempts(
    operation: Callable[[], T],
    config: ExecutionConfig,
    hooks: tuple[Hook, ...],
    ctx: Context,
) -> T:
    last_error: Exception | None = None
    start_time = time.monotonic()

    for attempt in range(1, config.max_attempts + 1):
        if ctx.done():
            logger.debug(f"Retry stopped before attempt {attempt} ({ctx.reason})")
            raise RetryCancelledError(
                attempts=attempt - 1, last_error=last_error, reason=ctx.reason
            ) from last_error

        elapsed = time.monotonic() - start_time
        for hook in hooks:
            hook(ctx, attempt, last_error, elapsed)

        logger.debug(f"Starting attempt {attempt}/{config.max_attempts}")
        try:
            return operation()
        except Exception as exc:
            last_error = exc
            if not config.matcher(exc):
                logger.debug(f"Attempt {attempt} failed with non-retryable error: {exc!r}")
                raise

        if attempt >= config.max_attempts:
            break

        delay = config.backoff.calculate(attempt)
        logger.debug(
            f"Attempt {attempt}/{config.max_attempts} failed with {last_error!r}, "
            f"waiting {delay:.2f}s before retry"
        )
        if ctx.wait(delay):
            logger.debug(f"Retry stopped while waiting after attempt {attempt} ({ctx.reason})")
            raise RetryCancelledError(
                attempts=attempt, last_error=last_error, reason=ctx.reason
            ) from last_error

    logger.debug(f"All {config.max_attempts} attempts failed, last error: {last_error!r}")
    raise MaxAttemptsExceededError(
        attempts=config.max_attempts, last_error=last_error
    ) from last_error


def metrics_hook(collector: MetricsCollector) -> Hook:
    """Create a hook feeding a metrics collector from the engine.

    The hook follows the accounting of the attempt iterator: it counts
    one run in ``total_attempts`` when the first attempt starts, and one
    retry in ``total_retries`` for every later attempt. Outcomes are not
    visible to hooks, so success and failure counters are left to the
    caller.

    Args:
        collector: The collector to update.

    Returns:
        The hook.

    Example:
        ```pycon
        >>> from arecur.engine import execute, metrics_hook
        >>> from arecur.metrics import MetricsCollector
        >>> collector = MetricsCollector("fetch")
        >>> execute(lambda: 42, hooks=[metrics_hook(collector)])
        42
        >>> collector.total_attempts.load(), collector.total_retries.load()
        (1, 0)

        ```
    """

    def hook(
        ctx: Context,  # noqa: ARG001
        attempt: int,
        error: BaseException | None,  # noqa: ARG001
        elapsed: float,  # noqa: ARG001
    ) -> None:
        if attempt == 1:
            collector.total_attempts.add()
        else:
            collector.total_retries.add()

    return hook
