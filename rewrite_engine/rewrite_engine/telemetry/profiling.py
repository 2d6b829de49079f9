"""Lightweight timing for rewrite hot paths.

``@profile_operation(name)`` times a function with ``perf_counter_ns``,
logs the duration at DEBUG and records it in the process-wide
:class:`ProfileCollector`::

    @profile_operation("sql.rewrite")
    def rewrite(sql):
        ...

    ProfileCollector.get_instance().get_stats("sql.rewrite").p95_ms
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ProfileResult:
    """One timed call."""

    operation: str
    duration_ms: float
    succeeded: bool = True


@dataclass(frozen=True)
class ProfileStats:
    """Aggregates over the retained results of one operation."""

    operation: str
    count: int
    failures: int
    mean_ms: float
    p50_ms: float
    p95_ms: float
    max_ms: float


def _percentile(ordered: list[float], p: float) -> float:
    # Linear interpolation between closest ranks.
    rank = (p / 100.0) * (len(ordered) - 1)
    low = int(rank)
    high = min(low + 1, len(ordered) - 1)
    return ordered[low] + (rank - low) * (ordered[high] - ordered[low])


class ProfileCollector:
    """Thread-safe store of the most recent results per operation.

    Parameters
    ----------
    max_results:
        Results retained per operation; older ones are discarded.
    """

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_results: int = 100) -> None:
        self._max_results = max_results
        self._results: dict[str, deque[ProfileResult]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, result: ProfileResult) -> None:
        with self._lock:
            bucket = self._results.setdefault(result.operation, deque(maxlen=self._max_results))
            bucket.append(result)

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._results)

    def get_stats(self, operation: str) -> ProfileStats | None:
        """Aggregate *operation*'s retained results, or ``None`` if there are none."""
        with self._lock:
            results = list(self._results.get(operation, ()))
        if not results:
            return None
        durations = sorted(r.duration_ms for r in results)
        return ProfileStats(
            operation=operation,
            count=len(durations),
            failures=sum(1 for r in results if not r.succeeded),
            mean_ms=round(sum(durations) / len(durations), 3),
            p50_ms=round(_percentile(durations, 50), 3),
            p95_ms=round(_percentile(durations, 95), 3),
            max_ms=round(durations[-1], 3),
        )

    def clear(self) -> None:
        with self._lock:
            self._results.clear()


@contextmanager
def profiled(name: str) -> Iterator[None]:
    """Time the enclosed block and record it under *name*."""
    start_ns = time.perf_counter_ns()
    succeeded = False
    try:
        yield
        succeeded = True
    finally:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        ProfileCollector.get_instance().record(ProfileResult(name, round(duration_ms, 3), succeeded))
        logger.debug("PROFILE %s: %.3f ms", name, duration_ms)


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator form of :func:`profiled`."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with profiled(name):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
