r"""Unit tests for the synchronous retry engine."""

from __future__ import annotations

import time
from unittest.mock import ANY, Mock, call

import pytest

from arecur.backoff import ConstantBackoff, ExponentialBackoff, NoDelay
from arecur.context import CANCELLED, DEADLINE_EXCEEDED, Context, background
from arecur.engine import execute, metrics_hook
from arecur.exceptions import MaxAttemptsExceededError, RetryCancelledError
from arecur.matcher import match_errors, match_types
from arecur.metrics import MetricsCollector
from arecur.policy import max_attempts, only_retry_if, timeout, with_backoff

ERR_TEMPORARY = ConnectionError("temporary error")
ERR_FATAL = ValueError("fatal error")


#######################################
#     Tests for successful runs       #
#######################################


def test_execute_success_first_attempt(mock_operation: Mock, mock_wait: Mock) -> None:
    """Test that a successful operation is called once."""
    assert execute(mock_operation) == "ok"
    mock_operation.assert_called_once_with()
    mock_wait.assert_not_called()


@pytest.mark.parametrize(("max_attempts_", "success_at"), [(1, 1), (3, 2), (3, 3), (5, 4)])
def test_execute_success_after_failures(
    max_attempts_: int, success_at: int, mock_wait: Mock
) -> None:
    """Test that an operation succeeding on attempt K is called K
    times."""
    operation = Mock(side_effect=[ERR_TEMPORARY] * (success_at - 1) + ["ok"])
    assert execute(operation, policies=[max_attempts(max_attempts_)]) == "ok"
    assert operation.call_count == success_at
    assert mock_wait.call_count == success_at - 1


#######################################
#     Tests for exhausted runs        #
#######################################


@pytest.mark.parametrize("max_attempts_", [1, 2, 3, 5])
def test_execute_exhausted(max_attempts_: int, mock_wait: Mock) -> None:
    """Test that an always failing operation is called max_attempts
    times."""
    operation = Mock(side_effect=ERR_TEMPORARY)
    with pytest.raises(MaxAttemptsExceededError) as exc_info:
        execute(operation, policies=[max_attempts(max_attempts_)])

    assert operation.call_count == max_attempts_
    assert exc_info.value.attempts == max_attempts_
    assert exc_info.value.last_error is ERR_TEMPORARY
    assert exc_info.value.__cause__ is ERR_TEMPORARY
    assert not isinstance(exc_info.value, RetryCancelledError)
    # No wait after the last attempt
    assert mock_wait.call_count == max_attempts_ - 1


def test_execute_default_max_attempts(mock_wait: Mock) -> None:
    """Test the default number of attempts."""
    operation = Mock(side_effect=ERR_TEMPORARY)
    with pytest.raises(MaxAttemptsExceededError, match=r"max attempts \(3\) exceeded"):
        execute(operation)
    assert operation.call_count == 3


def test_execute_last_error_is_latest(mock_wait: Mock) -> None:
    """Test that the terminal error carries the latest operation
    error."""
    errors = [ConnectionError("first"), ConnectionError("second")]
    with pytest.raises(MaxAttemptsExceededError) as exc_info:
        execute(Mock(side_effect=errors), policies=[max_attempts(2)])
    assert exc_info.value.last_error is errors[1]


#######################################
#     Tests for non-retryable errors  #
#######################################


def test_execute_non_retryable_error_not_wrapped(mock_wait: Mock) -> None:
    """Test that an error rejected by the matcher is raised
    unchanged."""
    operation = Mock(side_effect=ERR_FATAL)
    with pytest.raises(ValueError, match=r"fatal error") as exc_info:
        execute(operation, policies=[only_retry_if(match_errors(ERR_TEMPORARY))])

    assert exc_info.value is ERR_FATAL
    operation.assert_called_once_with()
    mock_wait.assert_not_called()


def test_execute_non_retryable_after_retries(mock_wait: Mock) -> None:
    """Test a non-retryable error raised after retryable ones."""
    operation = Mock(side_effect=[ERR_TEMPORARY, ERR_FATAL])
    with pytest.raises(ValueError) as exc_info:
        execute(
            operation,
            policies=[max_attempts(5), only_retry_if(match_types(ConnectionError))],
        )
    assert exc_info.value is ERR_FATAL
    assert operation.call_count == 2


def test_execute_base_exception_not_retried(mock_wait: Mock) -> None:
    """Test that exceptions outside Exception are never retried."""
    operation = Mock(side_effect=KeyboardInterrupt)
    with pytest.raises(KeyboardInterrupt):
        execute(operation)
    operation.assert_called_once_with()


#######################################
#     Tests for backoff               #
#######################################


def test_execute_backoff_delays(mock_wait: Mock) -> None:
    """Test that the backoff is applied between attempts only."""
    operation = Mock(side_effect=ERR_TEMPORARY)
    with pytest.raises(MaxAttemptsExceededError):
        execute(
            operation,
            policies=[max_attempts(4), with_backoff(ExponentialBackoff(initial=0.1))],
        )
    assert mock_wait.call_args_list == [call(ANY, 0.2), call(ANY, 0.4), call(ANY, 0.8)]


def test_execute_real_constant_backoff() -> None:
    """Test that the engine actually waits between attempts."""
    operation = Mock(side_effect=[ERR_TEMPORARY, ERR_TEMPORARY, "ok"])
    start = time.monotonic()
    assert execute(operation, policies=[with_backoff(ConstantBackoff(0.02))]) == "ok"
    assert time.monotonic() - start >= 0.03


#######################################
#     Tests for hooks                 #
#######################################


def test_execute_hook_called_before_each_attempt(mock_hook: Mock, mock_wait: Mock) -> None:
    """Test that hooks receive the attempt number and previous
    error."""
    operation = Mock(side_effect=[ERR_TEMPORARY, ERR_FATAL, "ok"])
    assert execute(operation, hooks=[mock_hook]) == "ok"
    assert mock_hook.call_args_list == [
        call(ANY, 1, None, ANY),
        call(ANY, 2, ERR_TEMPORARY, ANY),
        call(ANY, 3, ERR_FATAL, ANY),
    ]
    ctx, _, _, elapsed = mock_hook.call_args_list[0].args
    assert isinstance(ctx, Context)
    assert elapsed >= 0.0


def test_execute_hooks_registration_order(mock_wait: Mock) -> None:
    """Test that hooks are called in registration order."""
    calls = []
    first = Mock(side_effect=lambda *args: calls.append(("first", args[1])))
    second = Mock(side_effect=lambda *args: calls.append(("second", args[1])))
    operation = Mock(side_effect=[ERR_TEMPORARY, "ok"])
    execute(operation, hooks=[first, second])
    assert calls == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]


def test_execute_hook_not_called_after_success(mock_hook: Mock, mock_operation: Mock) -> None:
    """Test that no hook is called after a successful attempt."""
    execute(mock_operation, hooks=[mock_hook])
    mock_hook.assert_called_once()


def test_execute_hook_error_aborts_run(mock_operation: Mock) -> None:
    """Test that an error raised by a hook aborts the run."""
    hook = Mock(side_effect=RuntimeError("hook failed"))
    with pytest.raises(RuntimeError, match=r"hook failed"):
        execute(mock_operation, hooks=[hook])
    mock_operation.assert_not_called()


def test_execute_hook_receives_run_context(mock_hook: Mock, mock_operation: Mock) -> None:
    """Test that hooks receive the context of the run."""
    ctx = background()
    execute(mock_operation, hooks=[mock_hook], context=ctx)
    assert mock_hook.call_args.args[0] is ctx


#######################################
#     Tests for cancellation          #
#######################################


def test_execute_cancelled_before_first_attempt(mock_operation: Mock) -> None:
    """Test that a cancelled context prevents any attempt."""
    ctx = background()
    ctx.cancel()
    with pytest.raises(RetryCancelledError) as exc_info:
        execute(mock_operation, context=ctx)
    assert exc_info.value.attempts == 0
    assert exc_info.value.last_error is None
    assert exc_info.value.reason == CANCELLED
    mock_operation.assert_not_called()


def test_execute_cancelled_during_wait() -> None:
    """Test that cancelling the context during the backoff stops the
    run."""
    ctx = background()

    def operation() -> None:
        ctx.cancel()
        raise ERR_TEMPORARY

    with pytest.raises(RetryCancelledError) as exc_info:
        execute(
            operation,
            policies=[max_attempts(5), with_backoff(ConstantBackoff(60.0))],
            context=ctx,
        )
    assert exc_info.value.attempts == 1
    assert exc_info.value.last_error is ERR_TEMPORARY
    assert exc_info.value.reason == CANCELLED


def test_execute_timeout_during_wait() -> None:
    """Test that the timeout bounds the total time of the run."""
    operation = Mock(side_effect=ERR_TEMPORARY)
    start = time.monotonic()
    with pytest.raises(RetryCancelledError) as exc_info:
        execute(
            operation,
            policies=[max_attempts(5), with_backoff(ConstantBackoff(60.0)), timeout(0.05)],
        )
    assert time.monotonic() - start < 30.0
    assert exc_info.value.attempts == 1
    assert exc_info.value.reason == DEADLINE_EXCEEDED
    operation.assert_called_once_with()


def test_execute_timeout_before_next_attempt() -> None:
    """Test that the timeout is checked before each attempt."""

    def operation() -> None:
        time.sleep(0.05)
        raise ERR_TEMPORARY

    with pytest.raises(RetryCancelledError) as exc_info:
        execute(operation, policies=[with_backoff(NoDelay()), timeout(0.01)])
    assert exc_info.value.attempts == 1


def test_execute_timeout_does_not_cancel_parent(mock_operation: Mock) -> None:
    """Test that the timeout context does not affect the caller's
    context."""
    ctx = background()
    execute(mock_operation, policies=[timeout(10.0)], context=ctx)
    assert not ctx.done()


#######################################
#     Tests for metrics_hook          #
#######################################


def test_metrics_hook(mock_wait: Mock) -> None:
    """Test that metrics_hook counts runs and retries."""
    collector = MetricsCollector("engine")
    operation = Mock(side_effect=[ERR_TEMPORARY, ERR_TEMPORARY, "ok"])
    execute(operation, hooks=[metrics_hook(collector)])
    assert collector.total_attempts.load() == 1
    assert collector.total_retries.load() == 2
    assert collector.success_count.load() == 0
    assert collector.failure_count.load() == 0


def test_execute_timeout_context_released_after_success(mock_operation: Mock) -> None:
    """Test that the timeout context is detached from the caller's
    context when the run ends."""
    ctx = background()
    for _ in range(10):
        execute(mock_operation, policies=[timeout(60.0)], context=ctx)
    assert ctx._children == []
    assert not ctx.done()


def test_execute_timeout_context_released_after_failure(mock_wait: Mock) -> None:
    ctx = background()
    with pytest.raises(MaxAttemptsExceededError):
        execute(Mock(side_effect=ERR_TEMPORARY), policies=[timeout(60.0)], context=ctx)
    with pytest.raises(ValueError):
        execute(Mock(side_effect=ERR_FATAL), policies=[timeout(60.0)], context=ctx)
    assert ctx._children == []


def test_execute_timeout_context_cancelled_after_run(mock_operation: Mock) -> None:
    contexts = []
    hook = Mock(side_effect=lambda ctx, *args: contexts.append(ctx))
    parent = background()
    execute(mock_operation, policies=[timeout(60.0)], hooks=[hook], context=parent)
    assert contexts[0] is not parent
    assert contexts[0].done()
