r"""Constant backoff strategy."""

from __future__ import annotations

__all__ = ["ConstantBackoff"]

from arecur.backoff.base import BaseBackoff, validate_delay


class ConstantBackoff(BaseBackoff):
    """Constant/fixed backoff strategy.

    Returns the same delay after every attempt, regardless of the attempt
    number.

    Args:
        delay: The fixed delay in seconds (default: 0.1).

    Example:
        ```pycon
        >>> from arecur.backoff import ConstantBackoff
        >>> backoff = ConstantBackoff(delay=2.5)
        >>> backoff.calculate(1)
        2.5
        >>> backoff.calculate(10)
        2.5

        ```
    """

    def __init__(self, delay: float = 0.1) -> None:
        validate_delay("delay", delay)
        self.delay = delay

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        """Calculate constant backoff delay.

        Args:
            attempt: The attempt number (1-indexed, unused).

        Returns:
            The fixed delay value.
        """
        return self.delay
