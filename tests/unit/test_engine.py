"""Tests for the per-flow feature engine."""

from __future__ import annotations

import tracemalloc

import numpy as np
import pytest

from flowengineer.core.engine import compute_features
from flowengineer.core.record import FlowScalars, PacketSeries

MS = 1_000_000


def _scalars(**overrides: int) -> FlowScalars:
    values = {
        "bytes": 0,
        "bytes_rev": 0,
        "packets": 0,
        "packets_rev": 0,
        "time_first": 0,
        "time_last": 0,
    }
    values.update(overrides)
    return FlowScalars(**values)


class _CountingTuple(tuple):
    """Tuple that counts how often it is iterated or indexed."""

    def __new__(cls, values):
        instance = super().__new__(cls, values)
        instance.iterations = 0
        instance.lookups = 0
        return instance

    def __iter__(self):
        self.iterations += 1
        return super().__iter__()

    def __getitem__(self, key):
        self.lookups += 1
        return super().__getitem__(key)


def _series(directions, lengths, times_ms) -> PacketSeries:
    return PacketSeries(
        directions=tuple(directions),
        lengths=tuple(lengths),
        timestamps=tuple(t * MS for t in times_ms),
        flags=tuple(0 for _ in lengths),
    )


class TestCounterFeatures:
    """Tests for features derived from the flow counters."""

    def test_ratios_totals_and_rates(self, sample_scalars: FlowScalars) -> None:
        """Test the ratio, total and rate features of a 100 ms flow."""
        features = compute_features(sample_scalars, PacketSeries())

        assert features.bytes_ratio == 2.0
        assert features.packets_ratio == 2.0
        assert features.bytes_total == 1500
        assert features.packets_total == 15
        assert features.duration_ms == 100.0
        assert features.bytes_per_ms == pytest.approx(15.0)
        assert features.packets_per_ms == pytest.approx(0.15)

    def test_zero_backward_counters(self) -> None:
        """Test that ratios are 0 when the backward counters are 0."""
        features = compute_features(_scalars(bytes=500, packets=3, time_last=MS), PacketSeries())

        assert features.bytes_ratio == 0.0
        assert features.packets_ratio == 0.0
        assert features.bytes_total == 500

    def test_zero_duration(self) -> None:
        """Test that per-ms rates are 0 for an instantaneous flow."""
        features = compute_features(
            _scalars(bytes=100, bytes_rev=100, packets=1, packets_rev=1, time_first=5 * MS, time_last=5 * MS),
            PacketSeries(),
        )

        assert features.duration_ms == 0.0
        assert features.bytes_per_ms == 0.0
        assert features.packets_per_ms == 0.0

    def test_sub_millisecond_duration(self) -> None:
        """Test that duration keeps sub-millisecond resolution."""
        features = compute_features(_scalars(bytes=10, time_last=250_000), PacketSeries())

        assert features.duration_ms == 0.25
        assert features.bytes_per_ms == 40.0

    def test_large_counters_are_exact(self) -> None:
        """Test that totals do not wrap for counters at the top of uint64."""
        big = (1 << 64) - 1
        features = compute_features(
            _scalars(bytes=big, bytes_rev=big, packets=(1 << 32) - 1, packets_rev=(1 << 32) - 1),
            PacketSeries(),
        )

        assert features.bytes_total == 2 * big
        assert features.packets_total == 2 * ((1 << 32) - 1)
        assert features.bytes_ratio == 1.0


class TestPacketSeriesFeatures:
    """Tests for features derived from the sampled packet arrays."""

    def test_three_packet_flow(self, sample_scalars: FlowScalars, sample_series: PacketSeries) -> None:
        """Test length statistics, direction shares and inter-arrival time."""
        features = compute_features(sample_scalars, sample_series)

        assert features.min_len == 100
        assert features.max_len == 300
        assert features.mean_len == 200.0
        assert features.var_len == pytest.approx(6666.6667, rel=1e-6)
        assert features.mean_inter_arrival_ms == 15.0
        assert features.sent_percentage == pytest.approx(2 / 3)
        assert features.recv_percentage == pytest.approx(1 / 3)
        assert features.sent_count == 2
        assert features.recv_count == 1

    def test_empty_series(self, sample_scalars: FlowScalars) -> None:
        """Test that every packet feature is 0 without sampled packets."""
        features = compute_features(sample_scalars, PacketSeries())

        assert features.min_len == 0
        assert features.max_len == 0
        assert features.mean_len == 0.0
        assert features.var_len == 0.0
        assert features.mean_inter_arrival_ms == 0.0
        assert features.sent_percentage == 0.0
        assert features.recv_percentage == 0.0

    def test_single_packet(self) -> None:
        """Test a series of one packet."""
        features = compute_features(_scalars(), _series([-1], [60], [7]))

        assert features.min_len == 60
        assert features.max_len == 60
        assert features.mean_len == 60.0
        assert features.var_len == 0.0
        assert features.mean_inter_arrival_ms == 0.0
        assert features.sent_percentage == 0.0
        assert features.recv_percentage == 1.0

    def test_all_zero_lengths(self) -> None:
        """Test that zero-length packets give zero mean and variance."""
        features = compute_features(_scalars(), _series([1, 1, 1], [0, 0, 0], [0, 1, 2]))

        assert features.mean_len == 0.0
        assert features.var_len == 0.0
        assert features.min_len == 0
        assert features.sent_percentage == 1.0

    def test_equal_lengths_have_exactly_zero_variance(self) -> None:
        """Test that constant lengths give a variance of exactly 0."""
        features = compute_features(_scalars(), _series([1] * 30, [1500] * 30, range(30)))

        assert features.var_len == 0.0

    def test_unknown_direction_counts_as_received(self) -> None:
        """Test that any direction other than 1 counts as received."""
        features = compute_features(_scalars(), _series([1, 0, 2, -1], [1, 1, 1, 1], [0, 0, 0, 0]))

        assert features.sent_count == 1
        assert features.recv_count == 3
        assert features.sent_percentage == 0.25

    def test_equal_timestamps(self) -> None:
        """Test that simultaneous packets give a zero inter-arrival time."""
        features = compute_features(_scalars(), _series([1, -1], [40, 40], [3, 3]))

        assert features.mean_inter_arrival_ms == 0.0

    def test_variance_matches_numpy(self) -> None:
        """Test the variance against numpy's population variance."""
        lengths = [52, 1500, 40, 576, 1500, 64, 1200, 88]
        features = compute_features(_scalars(), _series([1] * len(lengths), lengths, range(len(lengths))))

        assert features.mean_len == pytest.approx(np.mean(lengths))
        assert features.var_len == pytest.approx(np.var(lengths))

    def test_deterministic(self, sample_scalars: FlowScalars, sample_series: PacketSeries) -> None:
        """Test that repeated calls produce identical results."""
        assert compute_features(sample_scalars, sample_series) == compute_features(sample_scalars, sample_series)


class TestFeatureSetRecord:
    """Tests for FeatureSet output mapping."""

    def test_to_record_field_names(self, sample_scalars: FlowScalars, sample_series: PacketSeries) -> None:
        """Test that to_record emits the 14 output fields in order."""
        record = compute_features(sample_scalars, sample_series).to_record()

        assert list(record) == [
            "BYTES_RATIO",
            "PACKETS_RATIO",
            "BYTES_TOTAL",
            "PACKETS_TOTAL",
            "TIME_DUR_MS",
            "BYTES_PER_MS",
            "PACKETS_PER_MS",
            "SENT_PERCENTAGE",
            "RECV_PERCENTAGE",
            "MIN_PKT_LEN",
            "MAX_PKT_LEN",
            "MEAN_PKT_LENGTH",
            "VAR_PKT_LENGTH",
            "MEAN_TIME_BETWEEN_PKTS",
        ]
        assert record["MIN_PKT_LEN"] == 100
        assert record["MAX_PKT_LEN"] == 300

    def test_to_dict_includes_counts(self, sample_scalars: FlowScalars, sample_series: PacketSeries) -> None:
        """Test that to_dict carries the direction counts."""
        data = compute_features(sample_scalars, sample_series).to_dict()

        assert data["sent_count"] == 2
        assert data["recv_count"] == 1
        assert data["bytes_total"] == 1500


class TestNumpyInput:
    """Tests for numpy-typed counters and packet arrays."""

    def test_uint16_lengths_do_not_wrap(self) -> None:
        """Test that squared uint16 lengths are summed without overflow."""
        lengths = np.array([1500] * 50 + [40] * 50, dtype=np.uint16)
        series = PacketSeries(
            directions=np.ones(100, dtype=np.int8),
            lengths=lengths,
            timestamps=np.arange(100, dtype=np.uint64) * MS,
            flags=np.zeros(100, dtype=np.uint8),
        )

        features = compute_features(_scalars(), series)

        assert features.mean_len == 770.0
        assert features.var_len == 532900.0
        assert features.mean_inter_arrival_ms == 1.0

    def test_uint64_counters_do_not_wrap(self) -> None:
        """Test that the byte total of two maximal uint64 counters is exact."""
        top = np.uint64(2**64 - 1)
        scalars = FlowScalars(top, top, np.uint32(7), np.uint32(9), np.uint64(0), np.uint64(MS))

        features = compute_features(scalars, PacketSeries())

        assert features.bytes_total == 2 * (2**64 - 1)
        assert type(features.bytes_total) is int
        assert features.packets_total == 16
        assert features.bytes_ratio == 1.0


class TestSinglePass:
    """Tests that the engine walks each packet array once in constant memory."""

    def test_each_array_iterated_once(self) -> None:
        """Test that every array is traversed exactly once and never indexed."""
        series = _series([1, -1, 1, 1], [60, 1500, 40, 576], [0, 2, 5, 9])
        counted = {}
        for name in ("directions", "lengths", "timestamps"):
            counted[name] = _CountingTuple(getattr(series, name))
            object.__setattr__(series, name, counted[name])

        features = compute_features(_scalars(), series)

        assert features.max_len == 1500
        for name, values in counted.items():
            assert values.iterations == 1, name
            assert values.lookups == 0, name

    def test_memory_does_not_grow_with_packet_count(self) -> None:
        """Test that peak extra memory is independent of the series length."""

        def peak_extra(count: int) -> int:
            series = _series(
                [1 if i % 3 else -1 for i in range(count)],
                [40 + (i * 37) % 1460 for i in range(count)],
                range(count),
            )
            scalars = _scalars(bytes=count, time_last=count * MS)
            tracemalloc.start()
            try:
                baseline = tracemalloc.get_traced_memory()[0]
                compute_features(scalars, series)
                return tracemalloc.get_traced_memory()[1] - baseline
            finally:
                tracemalloc.stop()

        small = peak_extra(100)
        large = peak_extra(10_000)

        assert large - small < 4096
