r"""Fibonacci backoff strategy."""

from __future__ import annotations

__all__ = ["FibonacciBackoff"]

from arecur.backoff.base import (
    DEFAULT_MAX_DELAY,
    BaseBackoff,
    validate_delay,
    validate_max_delay,
)


class FibonacciBackoff(BaseBackoff):
    """Fibonacci backoff strategy.

    Calculates delay as: initial * fibonacci(attempt + 1), capped at
    max_delay, where the sequence starts with fibonacci(0) = fibonacci(1) = 1
    (1, 1, 2, 3, 5, 8, 13, ...).

    Args:
        initial: The initial delay in seconds.
        max_delay: The maximum delay in seconds (default: 30 minutes).

    Example:
        ```pycon
        >>> from arecur.backoff import FibonacciBackoff
        >>> backoff = FibonacciBackoff(initial=1.0)
        >>> backoff.calculate(1)  # 1.0 * fib(2) = 2.0
        2.0
        >>> backoff.calculate(2)  # 1.0 * fib(3) = 3.0
        3.0
        >>> backoff.calculate(3)  # 1.0 * fib(4) = 5.0
        5.0
        >>> backoff = FibonacciBackoff(initial=1.0, max_delay=10.0)
        >>> backoff.calculate(10)  # fib(11) = 144, but capped
        10.0

        ```
    """

    def __init__(self, initial: float, max_delay: float = DEFAULT_MAX_DELAY) -> None:
        validate_delay("initial", initial)
        validate_max_delay(max_delay)

        self.initial = initial
        self.max_delay = max_delay

    def calculate(self, attempt: int) -> float:
        """Calculate Fibonacci backoff delay.

        Args:
            attempt: The attempt number (1-indexed).

        Returns:
            The calculated delay: initial * fibonacci(attempt + 1),
                capped at max_delay.
        """
        if self.initial == 0:
            return 0.0
        a, b = 1, 1
        for _ in range(attempt):
            # Stop growing once the cap is reached
            if self.initial * b >= self.max_delay:
                return self.max_delay
            a, b = b, a + b
        return min(self.initial * b, self.max_delay)
