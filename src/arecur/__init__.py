r"""arecur - Retry execution engine for arbitrary fallible operations.

This package re-runs an operation under a configurable policy until it
succeeds, exhausts its attempts, raises a non-retryable error, or is
cancelled. It gives the same retry semantics to heterogeneous
operations (network calls, database queries, plain callables) without
hand-written loops.

Key Features:
    - Function-call surface: ``do(operation)`` fluent retrier and ``retry`` decorator
    - Step-driven surface: ``iterate()`` yields one ``Attempt`` per step
    - Backoff strategies: Constant, Exponential, Fibonacci, Linear and NoDelay
    - Composable error matchers (``and_``, ``or_``, ``not_``) and httpx matchers
    - Reusable, named policies applied in order
    - Overall timeout and cancellation through ``Context``
    - Thread-safe metrics collectors

Example:
    ```pycon
    >>> from arecur import ExponentialBackoff, MaxAttemptsExceededError, do
    >>> def always_down():
    ...     raise ConnectionError("service down")
    ...
    >>> try:
    ...     do(always_down).with_max_attempts(2).with_backoff(
    ...         ExponentialBackoff(initial=0.001)
    ...     ).run()
    ... except MaxAttemptsExceededError as exc:
    ...     print(exc.attempts)
    ...
    2

    ```
"""

from __future__ import annotations

__all__ = [
    "Attempt",
    "AttemptIteratorBuilder",
    "AttemptSequence",
    "BaseBackoff",
    "ConstantBackoff",
    "Context",
    "ErrorMatcher",
    "ExecutionConfig",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "Hook",
    "LinearBackoff",
    "MaxAttemptsExceededError",
    "MetricsCollector",
    "NoDelay",
    "Outcome",
    "Policy",
    "Retrier",
    "RetryCancelledError",
    "StopReason",
    "__version__",
    "and_",
    "background",
    "combine_policies",
    "do",
    "execute",
    "is_max_attempts_exceeded",
    "iterate",
    "match_any",
    "match_errors",
    "match_func",
    "match_none",
    "match_types",
    "max_attempts",
    "metrics_hook",
    "not_",
    "only_retry_if",
    "or_",
    "resolve_config",
    "retry",
    "timeout",
    "with_backoff",
    "with_cancel",
    "with_timeout",
]

from importlib.metadata import PackageNotFoundError, version

from arecur.backoff import (
    BaseBackoff,
    ConstantBackoff,
    ExponentialBackoff,
    FibonacciBackoff,
    LinearBackoff,
    NoDelay,
)
from arecur.config import ExecutionConfig
from arecur.context import Context, background, with_cancel, with_timeout
from arecur.engine import Hook, execute, metrics_hook
from arecur.exceptions import (
    MaxAttemptsExceededError,
    RetryCancelledError,
    is_max_attempts_exceeded,
)
from arecur.iterator import (
    Attempt,
    AttemptIteratorBuilder,
    AttemptSequence,
    Outcome,
    StopReason,
    iterate,
)
from arecur.matcher import (
    ErrorMatcher,
    and_,
    match_any,
    match_errors,
    match_func,
    match_none,
    match_types,
    not_,
    or_,
)
from arecur.metrics import MetricsCollector
from arecur.policy import (
    Policy,
    combine_policies,
    max_attempts,
    only_retry_if,
    resolve_config,
    timeout,
    with_backoff,
)
from arecur.retrier import Retrier, do, retry

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
