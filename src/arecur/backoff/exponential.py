r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from arecur.backoff.base import (
    DEFAULT_MAX_DELAY,
    BaseBackoff,
    validate_delay,
    validate_max_delay,
)


class ExponentialBackoff(BaseBackoff):
    """Exponential backoff strategy.

    Calculates delay as: initial * (factor ** attempt), capped at
    max_delay.

    Args:
        initial: The initial delay in seconds.
        factor: The growth factor (default: 2.0). Must be > 0.
        max_delay: The maximum delay in seconds (default: 30 minutes).

    Example:
        ```pycon
        >>> from arecur.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(initial=0.1)
        >>> backoff.calculate(1)
        0.2
        >>> backoff.calculate(2)
        0.4
        >>> backoff.calculate(3)
        0.8
        >>> backoff = ExponentialBackoff(initial=1.0, max_delay=5.0)
        >>> backoff.calculate(10)  # Would be 1024.0, but capped
        5.0

        ```
    """

    def __init__(
        self, initial: float, factor: float = 2.0, max_delay: float = DEFAULT_MAX_DELAY
    ) -> None:
        validate_delay("initial", initial)
        if factor <= 0:
            msg = f"factor must be positive, got {factor}"
            raise ValueError(msg)
        validate_max_delay(max_delay)

        self.initial = initial
        self.factor = factor
        self.max_delay = max_delay

    def calculate(self, attempt: int) -> float:
        """Calculate exponential backoff delay.

        Args:
            attempt: The attempt number (1-indexed).

        Returns:
            The calculated delay: initial * (factor ** attempt),
                capped at max_delay.
        """
        try:
            delay = self.initial * (self.factor**attempt)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)
