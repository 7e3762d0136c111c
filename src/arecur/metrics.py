r"""Thread-safe metrics for retry runs.

A ``MetricsCollector`` holds four independent counters. A single
collector can be shared by many concurrent runs; there is no global
registry, so collectors are passed explicitly to the runs that should
update them.
"""

from __future__ import annotations

__all__ = ["AtomicCounter", "MetricsCollector"]

import threading


class AtomicCounter:
    """Integer counter safe to update from several threads.

    Example:
        ```pycon
        >>> from arecur.metrics import AtomicCounter
        >>> counter = AtomicCounter()
        >>> counter.add()
        1
        >>> counter.add(2)
        3
        >>> counter.load()
        3

        ```
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self.load()})"

    def add(self, delta: int = 1) -> int:
        """Add a value to the counter.

        Args:
            delta: The value to add.

        Returns:
            The new value of the counter.
        """
        with self._lock:
            self._value += delta
            return self._value

    def load(self) -> int:
        """Return the current value of the counter."""
        with self._lock:
            return self._value


class MetricsCollector:
    """Collect retry metrics.

    The counters are updated independently, so a snapshot taken while
    runs are in flight may mix values from different instants.

    Args:
        name: The label of the collector, used when exporting metrics.
            Several collectors can share the same name.

    Attributes:
        total_attempts: Number of finished runs that produced at least
            one attempt.
        success_count: Number of runs classified as successful.
        failure_count: Number of runs classified as failed.
        total_retries: Number of attempts beyond the first one.

    Example:
        ```pycon
        >>> from arecur.metrics import MetricsCollector
        >>> metrics = MetricsCollector("fetch_user")
        >>> metrics.name
        'fetch_user'
        >>> metrics.total_retries.add()
        1
        >>> metrics.snapshot()
        {'name': 'fetch_user', 'total_attempts': 0, 'success_count': 0, 'failure_count': 0, 'total_retries': 1}

        ```
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self.total_attempts = AtomicCounter()
        self.success_count = AtomicCounter()
        self.failure_count = AtomicCounter()
        self.total_retries = AtomicCounter()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(name={self._name!r})"

    @property
    def name(self) -> str:
        """The label of the collector."""
        return self._name

    def record_run(self, succeeded: bool) -> None:
        """Record a finished run.

        Args:
            succeeded: Whether the run is classified as successful.
        """
        self.total_attempts.add()
        if succeeded:
            self.success_count.add()
        else:
            self.failure_count.add()

    def snapshot(self) -> dict[str, int | str]:
        """Return the current values of the counters.

        Returns:
            A dictionary with the collector name and the four counters.
        """
        return {
            "name": self._name,
            "total_attempts": self.total_attempts.load(),
            "success_count": self.success_count.load(),
            "failure_count": self.failure_count.load(),
            "total_retries": self.total_retries.load(),
        }
