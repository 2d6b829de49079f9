"""Unit tests for rewrite_engine.telemetry.profiling."""

from __future__ import annotations

import logging

import pytest
from rewrite_engine.telemetry.profiling import (
    ProfileCollector,
    ProfileResult,
    profile_operation,
    profiled,
)


@pytest.fixture(autouse=True)
def _reset_collector():
    ProfileCollector.reset()
    yield
    ProfileCollector.reset()


class TestProfileOperation:
    def test_records_call(self) -> None:
        @profile_operation("test.add")
        def add(a: int, b: int) -> int:
            return a + b

        assert add(1, 2) == 3
        stats = ProfileCollector.get_instance().get_stats("test.add")
        assert stats is not None
        assert stats.count == 1
        assert stats.failures == 0

    def test_failure_counted_and_reraised(self) -> None:
        @profile_operation("test.fail")
        def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            fail()
        stats = ProfileCollector.get_instance().get_stats("test.fail")
        assert stats is not None
        assert stats.failures == 1

    def test_preserves_metadata(self) -> None:
        @profile_operation("test.meta")
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_logs_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="rewrite_engine.telemetry.profiling"):
            with profiled("test.block"):
                pass
        assert any("PROFILE test.block" in r.getMessage() for r in caplog.records)


class TestCollector:
    def test_stats(self) -> None:
        collector = ProfileCollector.get_instance()
        for ms in (1.0, 2.0, 3.0, 4.0, 10.0):
            collector.record(ProfileResult("op", ms))
        stats = collector.get_stats("op")
        assert stats is not None
        assert stats.count == 5
        assert stats.mean_ms == 4.0
        assert stats.p50_ms == 3.0
        assert stats.max_ms == 10.0
        assert stats.p95_ms == pytest.approx(8.8)

    def test_unknown_operation(self) -> None:
        assert ProfileCollector.get_instance().get_stats("missing") is None

    def test_bounded_retention(self) -> None:
        collector = ProfileCollector(max_results=3)
        for ms in range(10):
            collector.record(ProfileResult("op", float(ms)))
        stats = collector.get_stats("op")
        assert stats is not None
        assert stats.count == 3
        assert stats.max_ms == 9.0

    def test_operations_and_clear(self) -> None:
        collector = ProfileCollector.get_instance()
        collector.record(ProfileResult("b", 1.0))
        collector.record(ProfileResult("a", 1.0))
        assert collector.operations() == ["a", "b"]
        collector.clear()
        assert collector.operations() == []

    def test_singleton_and_reset(self) -> None:
        first = ProfileCollector.get_instance()
        assert ProfileCollector.get_instance() is first
        ProfileCollector.reset()
        assert ProfileCollector.get_instance() is not first
