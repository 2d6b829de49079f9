"""Timing instrumentation for the rewrite engine."""

from __future__ import annotations

from rewrite_engine.telemetry.profiling import (
    ProfileCollector,
    ProfileResult,
    ProfileStats,
    profile_operation,
    profiled,
)

__all__ = [
    "ProfileCollector",
    "ProfileResult",
    "ProfileStats",
    "profile_operation",
    "profiled",
]
