r"""Backoff strategy without any delay."""

from __future__ import annotations

__all__ = ["NoDelay"]

from arecur.backoff.base import BaseBackoff


class NoDelay(BaseBackoff):
    """Backoff strategy that never waits between attempts.

    Example:
        ```pycon
        >>> from arecur.backoff import NoDelay
        >>> NoDelay().calculate(5)
        0.0

        ```
    """

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        return 0.0
