r"""Linear backoff strategy."""

from __future__ import annotations

__all__ = ["LinearBackoff"]

from arecur.backoff.base import (
    DEFAULT_MAX_DELAY,
    BaseBackoff,
    validate_delay,
    validate_max_delay,
)


class LinearBackoff(BaseBackoff):
    """Linear backoff strategy.

    Calculates delay as: initial + increment * attempt, capped at
    max_delay.

    Args:
        initial: The initial delay in seconds.
        increment: The delay added after each attempt, in seconds.
        max_delay: The maximum delay in seconds (default: 30 minutes).

    Example:
        ```pycon
        >>> from arecur.backoff import LinearBackoff
        >>> backoff = LinearBackoff(initial=1.0, increment=0.5)
        >>> backoff.calculate(1)
        1.5
        >>> backoff.calculate(2)
        2.0
        >>> backoff.calculate(3)
        2.5
        >>> backoff = LinearBackoff(initial=2.0, increment=2.0, max_delay=5.0)
        >>> backoff.calculate(5)  # Would be 12.0, but capped
        5.0

        ```
    """

    def __init__(
        self, initial: float, increment: float, max_delay: float = DEFAULT_MAX_DELAY
    ) -> None:
        validate_delay("initial", initial)
        validate_delay("increment", increment)
        validate_max_delay(max_delay)

        self.initial = initial
        self.increment = increment
        self.max_delay = max_delay

    def calculate(self, attempt: int) -> float:
        """Calculate linear backoff delay.

        Args:
            attempt: The attempt number (1-indexed).

        Returns:
            The calculated delay: initial + increment * attempt,
                capped at max_delay.
        """
        return min(self.initial + self.increment * attempt, self.max_delay)
