r"""Step-driven retry surface.

Instead of handing an operation to the engine, the caller iterates
over attempts, runs its own code for each one, and reports the outcome
back. The sequence decides whether another attempt is allowed and
waits for the backoff delay before producing it.

Example:
    ```pycon
    >>> from arecur.backoff import NoDelay
    >>> from arecur.iterator import iterate
    >>> results = iter([ConnectionError("down"), ConnectionError("down"), None])
    >>> with iterate().with_max_attempts(5).with_backoff(NoDelay()).seq() as attempts:
    ...     for attempt in attempts:
    ...         error = next(results)
    ...         attempt.report(error)
    ...         if error is None:
    ...             break
    ...
    >>> attempt.number
    3

    ```

The sequence is an explicit state machine. Besides the iterator
protocol it exposes a cursor API (``has_next``, ``next_attempt``,
``close``). Iterating with ``for`` closes the sequence when the loop
ends, including on ``break``. When driving it with the cursor API, use
it as a context manager (or call ``close``) to end the run and record
its metrics.
"""

from __future__ import annotations

__all__ = [
    "Attempt",
    "AttemptIteratorBuilder",
    "AttemptSequence",
    "Outcome",
    "SequenceState",
    "StopReason",
    "iterate",
]

import logging
from enum import Enum
from typing import TYPE_CHECKING

from arecur.config import ExecutionConfig
from arecur.context import background, with_timeout
from arecur.metrics import MetricsCollector

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    from arecur.backoff import BaseBackoff
    from arecur.context import Context
    from arecur.matcher import ErrorMatcher

logger: logging.Logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Outcome reported for an attempt.

    Attributes:
        UNKNOWN: No outcome was reported.
        SUCCEEDED: The attempt was reported without error.
        FAILED: The attempt was reported with an error.
    """

    UNKNOWN = "unknown"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SequenceState(Enum):
    """States of an attempt sequence.

    Attributes:
        PENDING_DELAY: The next attempt must be decided (and its delay
            waited) before it can be produced.
        READY: The next attempt is allowed and can be produced
            immediately.
        AWAITING_REPORT: An attempt was produced and the caller is
            running it.
        TERMINATED: The sequence ended and will not produce attempts.
    """

    PENDING_DELAY = "pending_delay"
    READY = "ready"
    AWAITING_REPORT = "awaiting_report"
    TERMINATED = "terminated"


class StopReason(Enum):
    """Why an attempt sequence terminated.

    Attributes:
        EXHAUSTED: The maximum number of attempts was produced.
        NON_RETRYABLE: The last reported error was rejected by the matcher.
        CANCELLED: The context was cancelled or the timeout expired.
        CLOSED: The caller closed the sequence.
    """

    EXHAUSTED = "exhausted"
    NON_RETRYABLE = "non_retryable"
    CANCELLED = "cancelled"
    CLOSED = "closed"


class Attempt:
    """Single step of an attempt sequence.

    Attempts are created by ``AttemptSequence``. The caller runs its
    operation, then reports the outcome with ``report``.

    Args:
        number: The attempt number (1-indexed).
        delay: The delay in seconds waited before this attempt.
        last_error: The error reported for the previous attempt, if any.
        context: The context of the run.
        matcher: The matcher of the run.
        max_attempts: The maximum number of attempts of the run.
        on_report: Optional callback invoked after each report.
    """

    def __init__(
        self,
        *,
        number: int,
        delay: float,
        last_error: BaseException | None,
        context: Context,
        matcher: ErrorMatcher,
        max_attempts: int,
        on_report: Callable[[Attempt], None] | None = None,
    ) -> None:
        self.number = number
        self.delay = delay
        self.last_error = last_error
        self._context = context
        self._matcher = matcher
        self._max_attempts = max_attempts
        self._on_report = on_report
        self._outcome = Outcome.UNKNOWN
        self._error: BaseException | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(number={self.number}, delay={self.delay}, "
            f"outcome={self._outcome.value})"
        )

    @property
    def context(self) -> Context:
        """The context of the run."""
        return self._context

    @property
    def outcome(self) -> Outcome:
        """The reported outcome, ``Outcome.UNKNOWN`` until reported."""
        return self._outcome

    @property
    def error(self) -> BaseException | None:
        """The reported error, or ``None``."""
        return self._error

    def report(self, error: BaseException | None = None) -> None:
        """Report the outcome of the attempt.

        Reporting a non-retryable error stops the sequence before the
        next attempt. Reporting again overwrites the previous outcome.

        Args:
            error: The error raised by the operation, or ``None`` if it
                succeeded.
        """
        self._error = error
        self._outcome = Outcome.SUCCEEDED if error is None else Outcome.FAILED
        if self._on_report is not None:
            self._on_report(self)

    def should_retry(self, error: BaseException | None) -> bool:
        """Indicate if an error should be retried.

        This lets the caller drive the loop without reporting outcomes.

        Args:
            error: The error raised by the operation, or ``None``.

        Returns:
            ``True`` if ``error`` is not ``None``, this is not the last
                allowed attempt, and the matcher accepts the error.
        """
        if error is None:
            return False
        if self.number >= self._max_attempts:
            return False
        return self._matcher(error)


class AttemptSequence:
    """Single-use sequence of attempts.

    Args:
        config: The configuration of the run.
        context: The context of the run. If the configuration has a
            timeout, a child context with that timeout is created when
            the sequence starts.
        metrics: Optional collector updated by the sequence.

    Example:
        ```pycon
        >>> from arecur.backoff import NoDelay
        >>> from arecur.config import ExecutionConfig
        >>> from arecur.context import background
        >>> from arecur.iterator import AttemptSequence
        >>> seq = AttemptSequence(ExecutionConfig(max_attempts=2, backoff=NoDelay()), background())
        >>> seq.has_next()
        True
        >>> seq.next_attempt().number
        1
        >>> seq.next_attempt().number
        2
        >>> seq.has_next()
        False
        >>> seq.stop_reason
        <StopReason.EXHAUSTED: 'exhausted'>

        ```
    """

    def __init__(
        self,
        config: ExecutionConfig,
        context: Context,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config
        self._parent_context = context
        self._context: Context | None = None
        self._metrics = metrics
        self._state = SequenceState.PENDING_DELAY
        self._stop_reason: StopReason | None = None
        self._number = 0
        self._next_delay = 0.0
        self._last_attempt: Attempt | None = None
        self._final_error: BaseException | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(state={self._state.value}, "
            f"number={self._number}, max_attempts={self._config.max_attempts})"
        )

    def __iter__(self) -> Iterator[Attempt]:
        try:
            while self.has_next():
                yield self.next_attempt()
        finally:
            # Reached on exhaustion and when the loop is left early
            self.close()

    def __next__(self) -> Attempt:
        return self.next_attempt()

    def __enter__(self) -> AttemptSequence:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def state(self) -> SequenceState:
        """The current state of the sequence."""
        return self._state

    @property
    def stop_reason(self) -> StopReason | None:
        """Why the sequence terminated, or ``None`` while it is active."""
        return self._stop_reason

    @property
    def context(self) -> Context:
        """The context of the run."""
        return self._parent_context if self._context is None else self._context

    def has_next(self) -> bool:
        """Decide whether another attempt is allowed.

        When called after an attempt was produced, this checks the
        reported outcome and the context, then blocks for the backoff
        delay. Calling it again before ``next_attempt`` does not wait
        again.

        Returns:
            ``True`` if ``next_attempt`` will produce an attempt.
        """
        if self._state is SequenceState.AWAITING_REPORT:
            self._state = SequenceState.PENDING_DELAY
        if self._state is SequenceState.PENDING_DELAY:
            self._advance()
        return self._state is SequenceState.READY

    def next_attempt(self) -> Attempt:
        """Produce the next attempt.

        Returns:
            The next attempt.

        Raises:
            StopIteration: If the sequence terminated.
        """
        if not self.has_next():
            raise StopIteration

        self._number += 1
        previous = self._last_attempt
        attempt = Attempt(
            number=self._number,
            delay=self._next_delay,
            last_error=None if previous is None else previous.error,
            context=self.context,
            matcher=self._config.matcher,
            max_attempts=self._config.max_attempts,
            on_report=self._on_report,
        )
        self._last_attempt = attempt
        self._state = SequenceState.AWAITING_REPORT
        logger.debug(f"Starting attempt {self._number}/{self._config.max_attempts}")
        return attempt

    def close(self) -> None:
        """Terminate the sequence.

        Closing an already terminated sequence has no effect.
        """
        if self._state is not SequenceState.TERMINATED:
            self._terminate(StopReason.CLOSED)

    def _advance(self) -> None:
        if self._context is None:
            self._context = self._parent_context
            if self._config.timeout > 0:
                self._context = with_timeout(self._parent_context, self._config.timeout)

        number = self._number + 1
        if number > self._config.max_attempts:
            self._terminate(StopReason.EXHAUSTED)
            return

        delay = 0.0
        if number > 1:
            previous = self._last_attempt
            if (
                previous is not None
                and previous.error is not None
                and not self._config.matcher(previous.error)
            ):
                logger.debug(
                    f"Attempt {previous.number} failed with non-retryable error: "
                    f"{previous.error!r}"
                )
                self._terminate(StopReason.NON_RETRYABLE)
                return
            if self._metrics is not None:
                self._metrics.total_retries.add()
            delay = self._config.backoff.calculate(number - 1)

        if self._context.done():
            self._terminate(StopReason.CANCELLED)
            return
        if delay > 0:
            logger.debug(f"Waiting {delay:.2f}s before attempt {number}")
            if self._context.wait(delay):
                self._terminate(StopReason.CANCELLED)
                return

        self._next_delay = delay
        self._state = SequenceState.READY

    def _on_report(self, attempt: Attempt) -> None:
        self._final_error = attempt.error

    def _terminate(self, reason: StopReason) -> None:
        self._state = SequenceState.TERMINATED
        self._stop_reason = reason
        logger.debug(f"Attempt sequence stopped after {self._number} attempt(s) ({reason.value})")
        if self._metrics is not None and self._number > 0:
            if reason in (StopReason.NON_RETRYABLE, StopReason.CANCELLED):
                succeeded = False
            else:
                succeeded = self._final_error is None
            self._metrics.record_run(succeeded)
        if self._context is not None and self._context is not self._parent_context:
            # Release the timeout context from its parent
            self._context.cancel()


class AttemptIteratorBuilder:
    """Configure a step-driven retrier.

    Use ``iterate()`` to create a builder. Each call to ``seq()``
    starts a new, independent run with the current settings.

    Example:
        ```pycon
        >>> from arecur.backoff import ExponentialBackoff
        >>> from arecur.iterator import iterate
        >>> builder = (
        ...     iterate()
        ...     .with_max_attempts(5)
        ...     .with_backoff(ExponentialBackoff(initial=0.1))
        ...     .with_metrics("fetch")
        ... )
        >>> builder.metrics().name
        'fetch'

        ```
    """

    def __init__(self) -> None:
        self._config = ExecutionConfig()
        self._context: Context = background()
        self._metrics: MetricsCollector | None = None

    @property
    def config(self) -> ExecutionConfig:
        """The current configuration."""
        return self._config

    def with_max_attempts(self, n: int) -> AttemptIteratorBuilder:
        """Set the maximum number of attempts."""
        self._config = self._config.merge(max_attempts=n)
        return self

    def with_backoff(self, backoff: BaseBackoff) -> AttemptIteratorBuilder:
        """Set the backoff strategy."""
        self._config = self._config.merge(backoff=backoff)
        return self

    def with_timeout(self, seconds: float) -> AttemptIteratorBuilder:
        """Set the overall timeout in seconds (0 means no timeout)."""
        self._config = self._config.merge(timeout=seconds)
        return self

    def retry_if(self, matcher: ErrorMatcher) -> AttemptIteratorBuilder:
        """Set the error matcher."""
        self._config = self._config.merge(matcher=matcher)
        return self

    def with_context(self, context: Context) -> AttemptIteratorBuilder:
        """Set the context used to cancel the runs."""
        self._context = context
        return self

    def with_metrics(self, name: str) -> AttemptIteratorBuilder:
        """Enable metrics collection with a new collector."""
        self._metrics = MetricsCollector(name)
        return self

    def with_metrics_collector(self, collector: MetricsCollector) -> AttemptIteratorBuilder:
        """Enable metrics collection with an existing collector."""
        self._metrics = collector
        return self

    def metrics(self) -> MetricsCollector | None:
        """Return the metrics collector, or ``None`` if disabled."""
        return self._metrics

    def seq(self) -> AttemptSequence:
        """Start a new run.

        Returns:
            A single-use sequence of attempts.
        """
        return AttemptSequence(self._config, self._context, self._metrics)


def iterate() -> AttemptIteratorBuilder:
    """Create a step-driven retrier with the default configuration.

    The defaults are 3 attempts, a constant backoff of 0.1 seconds,
    every error retried, no timeout and no metrics.

    Returns:
        The builder.
    """
    return AttemptIteratorBuilder()
