#!/usr/bin/env python3
"""Benchmark for the feature engine and the record pipeline."""

import time
from typing import Callable

import numpy as np

from flowengineer.core.config import Config
from flowengineer.core.engine import compute_features
from flowengineer.core.pipeline import Pipeline
from flowengineer.core.record import FlowScalars, PacketSeries


def benchmark(func: Callable, data, iterations: int = 1000) -> float:
    """Benchmark a function, return average time in microseconds."""
    # Warmup
    for _ in range(10):
        func(data)

    start = time.perf_counter()
    for _ in range(iterations):
        func(data)
    elapsed = time.perf_counter() - start

    return (elapsed / iterations) * 1_000_000  # microseconds


def _series(size: int, rng: np.random.Generator) -> PacketSeries:
    return PacketSeries(
        directions=tuple(rng.choice([1, -1], size=size).tolist()),
        lengths=tuple(rng.integers(40, 1501, size=size).tolist()),
        timestamps=tuple(np.cumsum(rng.integers(0, 10**7, size=size)).tolist()),
        flags=(0,) * size,
    )


def _record(series: PacketSeries) -> dict:
    return {
        "DST_IP": "10.0.0.1",
        "SRC_IP": "10.0.0.2",
        "BYTES": 123456,
        "BYTES_REV": 7890,
        "TIME_FIRST": 0,
        "TIME_LAST": series.timestamps[-1] if len(series) else 0,
        "PACKETS": 100,
        "PACKETS_REV": 80,
        "PPI_PKT_DIRECTIONS": list(series.directions),
        "PPI_PKT_LENGTHS": list(series.lengths),
        "PPI_PKT_TIMES": list(series.timestamps),
        "PPI_PKT_FLAGS": list(series.flags),
    }


def run_benchmarks():
    """Time compute_features and full record processing per packet-series size."""
    print("=" * 70)
    print("flowengineer Engine Benchmark")
    print("=" * 70)

    rng = np.random.default_rng(0)
    scalars = FlowScalars(123456, 7890, 100, 80, 0, 10**9)
    pipeline = Pipeline(Config(time_format="ns"))

    print(f"{'Packets':>8} {'Engine (μs)':>15} {'Record (μs)':>15}")
    print("-" * 70)

    for size in [0, 10, 30, 100, 1000]:
        series = _series(size, rng)
        record = _record(series)

        engine_time = benchmark(lambda s: compute_features(scalars, s), series)
        record_time = benchmark(pipeline.process_record, record)

        print(f"{size:>8} {engine_time:>15.2f} {record_time:>15.2f}")


if __name__ == "__main__":
    run_benchmarks()
