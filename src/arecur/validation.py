r"""Parameter validation utilities for retry configuration.

This module provides validation functions for retry parameters to
ensure they meet the required constraints before a run starts.
"""

from __future__ import annotations

__all__ = ["validate_max_attempts", "validate_retry_params", "validate_timeout"]


def validate_max_attempts(max_attempts: int) -> None:
    """Validate the maximum number of attempts.

    Args:
        max_attempts: Maximum number of attempts, including the first
            one. Must be >= 1.

    Raises:
        ValueError: If max_attempts is not a positive integer.

    Example:
        ```pycon
        >>> from arecur.validation import validate_max_attempts
        >>> validate_max_attempts(3)
        >>> validate_max_attempts(0)
        Traceback (most recent call last):
        ...
        ValueError: max_attempts must be >= 1, got 0

        ```
    """
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        msg = f"max_attempts must be an integer, got {max_attempts!r}"
        raise TypeError(msg)
    if max_attempts < 1:
        msg = f"max_attempts must be >= 1, got {max_attempts}"
        raise ValueError(msg)


def validate_timeout(timeout: float) -> None:
    """Validate the overall timeout of a run.

    Args:
        timeout: Timeout in seconds across all attempts and waits.
            Must be >= 0, where 0 means no timeout.

    Raises:
        ValueError: If timeout is negative.

    Example:
        ```pycon
        >>> from arecur.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(0)
        >>> validate_timeout(-1)
        Traceback (most recent call last):
        ...
        ValueError: timeout must be >= 0, got -1

        ```
    """
    if timeout < 0:
        msg = f"timeout must be >= 0, got {timeout}"
        raise ValueError(msg)


def validate_retry_params(max_attempts: int, timeout: float = 0.0) -> None:
    """Validate retry parameters.

    Args:
        max_attempts: Maximum number of attempts. Must be >= 1.
        timeout: Timeout in seconds across all attempts. Must be >= 0.

    Raises:
        TypeError: If max_attempts is not an integer.
        ValueError: If a parameter is out of range.
    """
    validate_max_attempts(max_attempts)
    validate_timeout(timeout)
