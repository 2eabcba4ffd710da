"""Per-flow feature computation.

``compute_features`` is a pure function: it reads only its arguments, keeps
no state between calls and never raises for a well-formed ``PacketSeries``
(the series constructor already rejects mismatched array lengths).

The packet arrays are walked exactly once. Length statistics use the
sum / sum-of-squares identity, so no buffer proportional to the number of
packets is allocated.
"""

from __future__ import annotations

from .record import FORWARD, FeatureSet, FlowScalars, PacketSeries
from .timestamps import ns_to_ms


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def compute_features(scalars: FlowScalars, series: PacketSeries) -> FeatureSet:
    """Compute the derived features of a single flow.

    Args:
        scalars: Aggregate counters and time span of the flow.
        series: Per-packet arrays for the sampled packets.

    Returns:
        Fully populated FeatureSet. Every zero denominator yields 0.0.
    """
    count = len(series)
    sent_count = 0
    recv_count = 0
    length_sum = 0
    length_sum_squares = 0
    min_len = 0
    max_len = 0
    inter_arrival_sum = 0
    previous_timestamp = 0

    for index, (direction, length, timestamp) in enumerate(
        zip(series.directions, series.lengths, series.timestamps)
    ):
        if direction == FORWARD:
            sent_count += 1
        else:
            recv_count += 1

        length_sum += length
        length_sum_squares += length * length
        if index == 0:
            min_len = max_len = length
        else:
            if length < min_len:
                min_len = length
            if length > max_len:
                max_len = length
            inter_arrival_sum += timestamp - previous_timestamp
        previous_timestamp = timestamp

    duration_ms = ns_to_ms(scalars.time_last - scalars.time_first)
    bytes_total = scalars.bytes + scalars.bytes_rev
    packets_total = scalars.packets + scalars.packets_rev

    if count == 0:
        mean_len = 0.0
        var_len = 0.0
    else:
        mean_len = length_sum / count
        # E[x^2] - E[x]^2 over a common denominator keeps the numerator an
        # exact integer, so equal lengths give exactly 0.
        var_len = (count * length_sum_squares - length_sum * length_sum) / (count * count)

    if count <= 1:
        mean_inter_arrival_ms = 0.0
    else:
        mean_inter_arrival_ms = ns_to_ms(inter_arrival_sum) / (count - 1)

    sampled = sent_count + recv_count
    return FeatureSet(
        bytes_ratio=_ratio(scalars.bytes, scalars.bytes_rev),
        packets_ratio=_ratio(scalars.packets, scalars.packets_rev),
        bytes_total=bytes_total,
        packets_total=packets_total,
        duration_ms=duration_ms,
        bytes_per_ms=_ratio(bytes_total, duration_ms),
        packets_per_ms=_ratio(packets_total, duration_ms),
        sent_percentage=_ratio(sent_count, sampled),
        recv_percentage=_ratio(recv_count, sampled),
        min_len=min_len,
        max_len=max_len,
        mean_len=mean_len,
        var_len=var_len,
        mean_inter_arrival_ms=mean_inter_arrival_ms,
        sent_count=sent_count,
        recv_count=recv_count,
    )
