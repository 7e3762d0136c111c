r"""Backoff strategies for retry delays.

This package provides the strategies used to compute the wait between
two attempts: constant, exponential, Fibonacci, linear and no delay.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_DELAY",
    "BaseBackoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "LinearBackoff",
    "NoDelay",
]

from arecur.backoff.base import DEFAULT_MAX_DELAY, BaseBackoff
from arecur.backoff.constant import ConstantBackoff
from arecur.backoff.exponential import ExponentialBackoff
from arecur.backoff.fibonacci import FibonacciBackoff
from arecur.backoff.linear import LinearBackoff
from arecur.backoff.no_delay import NoDelay
