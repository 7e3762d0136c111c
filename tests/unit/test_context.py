r"""Unit tests for cancellation contexts."""

from __future__ import annotations

import threading
import time

from arecur.context import (
    CANCELLED,
    DEADLINE_EXCEEDED,
    Context,
    background,
    with_cancel,
    with_timeout,
)


def test_background_context() -> None:
    """Test that a background context is active and has no
    deadline."""
    ctx = background()
    assert not ctx.done()
    assert ctx.reason is None
    assert ctx.deadline is None
    assert ctx.remaining() is None


def test_cancel() -> None:
    """Test cancelling a context."""
    ctx = background()
    ctx.cancel()
    assert ctx.done()
    assert ctx.reason == CANCELLED


def test_cancel_twice_keeps_first_reason() -> None:
    """Test that ending a context twice keeps the first reason."""
    ctx = with_timeout(background(), 0.0)
    assert ctx.done()
    ctx.cancel()
    assert ctx.reason == DEADLINE_EXCEEDED


def test_cancel_parent_cancels_children() -> None:
    """Test that cancelling a parent cancels its children."""
    parent = background()
    child = with_cancel(parent)
    grandchild = with_cancel(child)
    parent.cancel()
    assert child.done()
    assert grandchild.done()
    assert grandchild.reason == CANCELLED


def test_cancel_child_does_not_cancel_parent() -> None:
    """Test that cancelling a child leaves its parent active."""
    parent = background()
    child = with_cancel(parent)
    child.cancel()
    assert child.done()
    assert not parent.done()


def test_child_of_cancelled_parent() -> None:
    """Test that a child of an ended parent is ended immediately."""
    parent = background()
    parent.cancel()
    assert with_cancel(parent).done()


def test_with_timeout_deadline() -> None:
    """Test the deadline of a timeout context."""
    ctx = with_timeout(background(), 60.0)
    assert not ctx.done()
    assert 0.0 < ctx.remaining() <= 60.0


def test_with_timeout_capped_by_parent() -> None:
    """Test that a child deadline never exceeds its parent's."""
    parent = with_timeout(background(), 1.0)
    child = with_timeout(parent, 60.0)
    assert child.deadline == parent.deadline


def test_with_timeout_expires() -> None:
    """Test that a timeout context ends after its deadline."""
    ctx = with_timeout(background(), 0.01)
    time.sleep(0.02)
    assert ctx.done()
    assert ctx.reason == DEADLINE_EXCEEDED
    assert ctx.remaining() == 0.0


def test_wait_full_delay() -> None:
    """Test that wait returns False when the delay elapses."""
    ctx = background()
    start = time.monotonic()
    assert not ctx.wait(0.01)
    assert time.monotonic() - start >= 0.01


def test_wait_zero_delay() -> None:
    """Test that wait with zero delay returns immediately."""
    assert not background().wait(0.0)


def test_wait_cancelled_context() -> None:
    """Test that wait returns True on an ended context."""
    ctx = background()
    ctx.cancel()
    assert ctx.wait(10.0)


def test_wait_interrupted_by_deadline() -> None:
    """Test that wait stops at the deadline."""
    ctx = with_timeout(background(), 0.02)
    start = time.monotonic()
    assert ctx.wait(10.0)
    assert time.monotonic() - start < 5.0
    assert ctx.reason == DEADLINE_EXCEEDED


def test_wait_interrupted_by_cancel_from_other_thread() -> None:
    """Test that wait stops when another thread cancels the
    context."""
    parent = background()
    ctx = with_cancel(parent)
    timer = threading.Timer(0.02, parent.cancel)
    timer.start()
    try:
        start = time.monotonic()
        assert ctx.wait(10.0)
        assert time.monotonic() - start < 5.0
    finally:
        timer.cancel()
    assert ctx.reason == CANCELLED


def test_context_repr() -> None:
    """Test the string representation."""
    assert repr(Context()) == "Context(deadline=None, reason=None)"
