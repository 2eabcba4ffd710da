"""Property-based tests for the feature engine."""

from __future__ import annotations

import math

from hypothesis import given, settings, strategies as st

from flowengineer.core.engine import compute_features
from flowengineer.core.record import FlowScalars, PacketSeries

uint64 = st.integers(min_value=0, max_value=(1 << 64) - 1)
uint32 = st.integers(min_value=0, max_value=(1 << 32) - 1)


@st.composite
def packet_series(draw: st.DrawFn) -> PacketSeries:
    size = draw(st.integers(min_value=0, max_value=60))
    directions = draw(st.lists(st.sampled_from([1, -1, 0]), min_size=size, max_size=size))
    lengths = draw(st.lists(st.integers(min_value=0, max_value=65535), min_size=size, max_size=size))
    gaps = draw(st.lists(st.integers(min_value=0, max_value=10**9), min_size=size, max_size=size))
    timestamps: list[int] = []
    current = draw(st.integers(min_value=0, max_value=10**18))
    for gap in gaps:
        current += gap
        timestamps.append(current)
    return PacketSeries(
        directions=tuple(directions),
        lengths=tuple(lengths),
        timestamps=tuple(timestamps),
        flags=tuple(0 for _ in range(size)),
    )


@st.composite
def flow_scalars(draw: st.DrawFn) -> FlowScalars:
    time_first = draw(st.integers(min_value=0, max_value=10**18))
    duration = draw(st.integers(min_value=0, max_value=10**13))
    return FlowScalars(
        bytes=draw(uint64),
        bytes_rev=draw(uint64),
        packets=draw(uint32),
        packets_rev=draw(uint32),
        time_first=time_first,
        time_last=time_first + duration,
    )


@given(flow_scalars(), packet_series())
@settings(max_examples=100)
def test_feature_invariants(scalars: FlowScalars, series: PacketSeries) -> None:
    features = compute_features(scalars, series)
    count = len(series)

    assert features.bytes_total == scalars.bytes + scalars.bytes_rev
    assert features.packets_total == scalars.packets + scalars.packets_rev
    assert features.duration_ms >= 0.0
    assert features.bytes_per_ms >= 0.0
    assert features.packets_per_ms >= 0.0
    assert features.var_len >= 0.0
    assert features.mean_inter_arrival_ms >= 0.0
    assert features.sent_count + features.recv_count == count

    for value in (
        features.bytes_ratio,
        features.packets_ratio,
        features.bytes_per_ms,
        features.packets_per_ms,
        features.mean_len,
        features.var_len,
        features.mean_inter_arrival_ms,
        features.sent_percentage,
        features.recv_percentage,
    ):
        assert math.isfinite(value)

    if count == 0:
        assert features.sent_percentage == 0.0
        assert features.recv_percentage == 0.0
        assert features.mean_len == 0.0
    else:
        assert math.isclose(features.sent_percentage + features.recv_percentage, 1.0)
        assert features.min_len == min(series.lengths)
        assert features.max_len == max(series.lengths)
        assert features.min_len <= features.mean_len <= features.max_len


@given(
    flow_scalars(),
    st.integers(min_value=1, max_value=40),
    st.integers(min_value=0, max_value=65535),
)
@settings(max_examples=50)
def test_constant_lengths_have_zero_variance(scalars: FlowScalars, size: int, length: int) -> None:
    series = PacketSeries(
        directions=(1,) * size,
        lengths=(length,) * size,
        timestamps=tuple(range(size)),
        flags=(0,) * size,
    )
    features = compute_features(scalars, series)

    assert features.var_len == 0.0
    assert features.mean_len == float(length)


@given(flow_scalars(), packet_series())
@settings(max_examples=50)
def test_reversing_directions_swaps_percentages(scalars: FlowScalars, series: PacketSeries) -> None:
    flipped = PacketSeries(
        directions=tuple(1 if d != 1 else -1 for d in series.directions),
        lengths=series.lengths,
        timestamps=series.timestamps,
        flags=series.flags,
    )
    original = compute_features(scalars, series)
    reversed_ = compute_features(scalars, flipped)

    assert reversed_.sent_percentage == original.recv_percentage
    assert reversed_.recv_percentage == original.sent_percentage
    assert reversed_.var_len == original.var_len
