r"""Composable retry policies.

A policy is a named, ordered list of configuration changes. Policies
are stateless and reusable: applying a policy returns a new
``ExecutionConfig`` and never mutates its input. When several policies
are applied, they are applied in order and later changes override
earlier ones.

Example:
    ```pycon
    >>> from arecur.backoff import ExponentialBackoff
    >>> from arecur.policy import combine_policies, max_attempts, resolve_config, with_backoff
    >>> resilient = combine_policies(
    ...     max_attempts(5), with_backoff(ExponentialBackoff(initial=0.1)), name="resilient"
    ... )
    >>> resilient.name
    'resilient'
    >>> config = resolve_config([resilient, max_attempts(2)])
    >>> config.max_attempts
    2

    ```
"""

from __future__ import annotations

__all__ = [
    "Policy",
    "combine_policies",
    "max_attempts",
    "only_retry_if",
    "resolve_config",
    "timeout",
    "with_backoff",
]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from arecur.config import ExecutionConfig

if TYPE_CHECKING:
    from collections.abc import Iterable

    from arecur.backoff import BaseBackoff
    from arecur.matcher import ErrorMatcher


@dataclass(frozen=True)
class Policy:
    """Named sequence of configuration changes.

    Args:
        name: The policy name, used for inspection and logging.
        changes: The ``(field, value)`` changes, applied in order.
    """

    name: str
    changes: tuple[tuple[str, Any], ...] = ()

    def __post_init__(self) -> None:
        valid_fields = set(ExecutionConfig.__dataclass_fields__)
        for key, _ in self.changes:
            if key not in valid_fields:
                msg = f"unknown configuration field {key!r} in policy {self.name!r}"
                raise ValueError(msg)

    def apply(self, config: ExecutionConfig) -> ExecutionConfig:
        """Apply the policy to a configuration.

        Args:
            config: The configuration to start from. It is not modified.

        Returns:
            A new configuration with the changes applied.

        Raises:
            ValueError: If a change produces an invalid configuration.
        """
        if not self.changes:
            return config
        return replace(config, **dict(self.changes))


def max_attempts(n: int) -> Policy:
    """Create a policy setting the maximum number of attempts.

    Args:
        n: The maximum number of attempts, including the first one.

    Returns:
        The policy.
    """
    return Policy(name=f"max_attempts({n})", changes=(("max_attempts", n),))


def timeout(seconds: float) -> Policy:
    """Create a policy setting the overall timeout of a run.

    Args:
        seconds: The timeout in seconds across all attempts and waits.
            0 means no timeout.

    Returns:
        The policy.
    """
    return Policy(name=f"timeout({seconds})", changes=(("timeout", seconds),))


def with_backoff(backoff: BaseBackoff) -> Policy:
    """Create a policy setting the backoff strategy.

    Args:
        backoff: The backoff strategy.

    Returns:
        The policy.
    """
    return Policy(name=f"with_backoff({backoff!r})", changes=(("backoff", backoff),))


def only_retry_if(matcher: ErrorMatcher) -> Policy:
    """Create a policy setting the error matcher.

    Args:
        matcher: The matcher deciding which errors are retried.

    Returns:
        The policy.
    """
    name = getattr(matcher, "__name__", type(matcher).__name__)
    return Policy(name=f"only_retry_if({name})", changes=(("matcher", matcher),))


def combine_policies(*policies: Policy, name: str | None = None) -> Policy:
    """Merge several policies into one.

    Args:
        *policies: The policies to merge, in application order.
        name: Optional name of the merged policy. By default, the names
            of the merged policies are joined with ``+``.

    Returns:
        A policy applying the changes of all the policies in order.
    """
    changes = tuple(change for policy in policies for change in policy.changes)
    if name is None:
        name = "+".join(policy.name for policy in policies)
    return Policy(name=name, changes=changes)


def resolve_config(
    policies: Iterable[Policy] = (), base: ExecutionConfig | None = None
) -> ExecutionConfig:
    """Resolve the configuration of a run.

    Args:
        policies: The policies to apply, in order.
        base: The configuration to start from. Defaults to
            ``ExecutionConfig()``.

    Returns:
        The resolved configuration.
    """
    config = ExecutionConfig() if base is None else base
    for policy in policies:
        config = policy.apply(config)
    return config
