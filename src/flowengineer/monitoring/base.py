"""Metrics sink interfaces."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Protocol for metrics sinks used by the pipeline."""

    def observe_record(self, packets_sampled: int) -> None:
        """Record an augmented flow record and its sampled packet count."""

    def observe_error(self, stage: str, error: Exception | None = None) -> None:
        """Record an error from a pipeline stage."""

    def observe_processing_time(self, mode: str, seconds: float) -> None:
        """Record total processing time for a run."""
