r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["DEFAULT_MAX_DELAY", "BaseBackoff", "validate_delay", "validate_max_delay"]

from abc import ABC, abstractmethod

# Default upper bound of the growing strategies, in seconds (30 minutes)
DEFAULT_MAX_DELAY = 1800.0


class BaseBackoff(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy maps an attempt number to the delay to wait
    before the next attempt. Implementations are pure: calling
    ``calculate`` has no side effect.
    """

    @abstractmethod
    def calculate(self, attempt: int) -> float:
        """Calculate the delay after a given attempt.

        Args:
            attempt: The number of the attempt that just failed
                (1-indexed). For example, attempt=1 is the delay between
                the first and the second attempt.

        Returns:
            The delay in seconds to wait before the next attempt.
        """

    def __repr__(self) -> str:
        args = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"{self.__class__.__qualname__}({args})"


def validate_delay(name: str, value: float) -> None:
    """Validate that a delay parameter is non-negative.

    Args:
        name: The parameter name, used in the error message.
        value: The value to validate.

    Raises:
        ValueError: If the value is negative.
    """
    if value < 0:
        msg = f"{name} must be non-negative, got {value}"
        raise ValueError(msg)


def validate_max_delay(value: float) -> None:
    """Validate the ``max_delay`` parameter.

    Args:
        value: The value to validate.

    Raises:
        ValueError: If the value is not positive.
    """
    if value <= 0:
        msg = f"max_delay must be positive, got {value}"
        raise ValueError(msg)
