"""Pytest fixtures and configuration for flowengineer tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from flowengineer.core.config import Config
from flowengineer.core.record import FlowScalars, PacketSeries

BASE_MS = 1_700_000_000_000


def make_record(**overrides: Any) -> dict[str, Any]:
    """Build a raw input record with millisecond timestamps."""
    record: dict[str, Any] = {
        "DST_IP": "10.0.0.1",
        "SRC_IP": "192.168.1.100",
        "BYTES": 1000,
        "BYTES_REV": 500,
        "TIME_FIRST": BASE_MS,
        "TIME_LAST": BASE_MS + 100,
        "PACKETS": 10,
        "PACKETS_REV": 5,
        "PPI_PKT_DIRECTIONS": [1, 1, -1],
        "PPI_PKT_LENGTHS": [100, 200, 300],
        "PPI_PKT_TIMES": [BASE_MS, BASE_MS + 10, BASE_MS + 30],
        "PPI_PKT_FLAGS": [2, 18, 16],
    }
    record.update(overrides)
    return record


@pytest.fixture
def record_factory() -> Callable[..., dict[str, Any]]:
    """Factory for raw input records (timestamps in milliseconds)."""
    return make_record


@pytest.fixture
def sample_record() -> dict[str, Any]:
    """A three-packet TCP-like flow lasting 100 ms."""
    return make_record()


@pytest.fixture
def ms_config() -> Config:
    """Configuration for records with millisecond timestamps."""
    return Config(time_format="ms")


@pytest.fixture
def sample_scalars() -> FlowScalars:
    """Counters for a 100 ms flow."""
    return FlowScalars(
        bytes=1000,
        bytes_rev=500,
        packets=10,
        packets_rev=5,
        time_first=0,
        time_last=100_000_000,
    )


@pytest.fixture
def sample_series() -> PacketSeries:
    """Three sampled packets: two forward, one backward."""
    return PacketSeries(
        directions=(1, 1, -1),
        lengths=(100, 200, 300),
        timestamps=(0, 10_000_000, 30_000_000),
        flags=(2, 18, 16),
    )
