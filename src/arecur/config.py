r"""Execution configuration and defaults for retry runs.

This module provides the configuration constants and the dataclass
holding the resolved settings of one retry run.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_DELAY",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_TIMEOUT",
    "ExecutionConfig",
]

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from arecur.backoff import BaseBackoff, ConstantBackoff
from arecur.matcher import match_any
from arecur.validation import validate_retry_params

if TYPE_CHECKING:
    from arecur.matcher import ErrorMatcher

# Default maximum number of attempts, including the first one
DEFAULT_MAX_ATTEMPTS = 3

# Default constant delay between two attempts, in seconds
DEFAULT_DELAY = 0.1

# Default overall timeout in seconds (0 means no timeout)
DEFAULT_TIMEOUT = 0.0


@dataclass
class ExecutionConfig:
    """Resolved configuration of a retry run.

    Args:
        max_attempts: Maximum number of operation invocations. Must be >= 1.
        backoff: Strategy computing the delay between two attempts.
        matcher: Predicate deciding whether an error is retried.
        timeout: Overall timeout in seconds, across all attempts and
            waits. 0 means no timeout.

    Example:
        ```pycon
        >>> from arecur.config import ExecutionConfig
        >>> config = ExecutionConfig()
        >>> config.max_attempts
        3
        >>> config.merge(max_attempts=5).max_attempts
        5
        >>> config.max_attempts  # Original unchanged
        3

        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: BaseBackoff = field(default_factory=lambda: ConstantBackoff(DEFAULT_DELAY))
    matcher: ErrorMatcher = match_any
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        validate_retry_params(max_attempts=self.max_attempts, timeout=self.timeout)

    def merge(self, **overrides: Any) -> ExecutionConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new validated ExecutionConfig instance.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)
