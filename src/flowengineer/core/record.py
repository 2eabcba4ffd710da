"""Flow data structures consumed and produced by the feature engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

FORWARD = 1
BACKWARD = -1


class SeriesLengthError(ValueError):
    """Raised when the packet arrays of a flow differ in length."""


@dataclass(slots=True, frozen=True)
class FlowScalars:
    """Aggregate counters and time span of one bidirectional flow.

    Attributes:
        bytes: Bytes sent in the forward direction.
        bytes_rev: Bytes sent in the backward direction.
        packets: Packets sent in the forward direction.
        packets_rev: Packets sent in the backward direction.
        time_first: Flow start in nanoseconds since the Unix epoch.
        time_last: Flow end in nanoseconds since the Unix epoch.
    """

    bytes: int
    bytes_rev: int
    packets: int
    packets_rev: int
    time_first: int
    time_last: int

    def __post_init__(self) -> None:
        # Counters may arrive as fixed-width numpy scalars.
        for name in ("bytes", "bytes_rev", "packets", "packets_rev", "time_first", "time_last"):
            object.__setattr__(self, name, int(getattr(self, name)))


@dataclass(slots=True, frozen=True)
class PacketSeries:
    """Per-packet arrays describing the first N packets of a flow.

    The four sequences are index-aligned: element ``i`` of each one
    describes the same packet.

    Attributes:
        directions: Direction marker per packet (``FORWARD`` for sent,
            anything else counts as received).
        lengths: Packet length in bytes.
        timestamps: Capture time in nanoseconds since the Unix epoch.
        flags: Opaque per-packet flag bits.
    """

    directions: tuple[int, ...] = ()
    lengths: tuple[int, ...] = ()
    timestamps: tuple[int, ...] = ()
    flags: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for name in ("directions", "lengths", "timestamps", "flags"):
            object.__setattr__(self, name, tuple(int(v) for v in getattr(self, name)))
        sizes = {
            "directions": len(self.directions),
            "lengths": len(self.lengths),
            "timestamps": len(self.timestamps),
            "flags": len(self.flags),
        }
        if len(set(sizes.values())) > 1:
            detail = ", ".join(f"{name}={size}" for name, size in sizes.items())
            raise SeriesLengthError(f"Packet arrays differ in length: {detail}")

    def __len__(self) -> int:
        return len(self.lengths)


@dataclass(slots=True, frozen=True)
class FeatureSet:
    """Derived features of one flow.

    ``sent_count`` and ``recv_count`` are carried for inspection; they are
    not part of the output record.
    """

    bytes_ratio: float
    packets_ratio: float
    bytes_total: int
    packets_total: int
    duration_ms: float
    bytes_per_ms: float
    packets_per_ms: float
    sent_percentage: float
    recv_percentage: float
    min_len: int
    max_len: int
    mean_len: float
    var_len: float
    mean_inter_arrival_ms: float
    sent_count: int = 0
    recv_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return all attributes keyed by attribute name."""
        return asdict(self)

    def to_record(self) -> dict[str, Any]:
        """Return the output fields keyed by record field name."""
        return {field_name: getattr(self, attr) for attr, field_name in OUTPUT_FIELD_NAMES.items()}


# Attribute name -> output record field name, in output order.
OUTPUT_FIELD_NAMES: dict[str, str] = {
    "bytes_ratio": "BYTES_RATIO",
    "packets_ratio": "PACKETS_RATIO",
    "bytes_total": "BYTES_TOTAL",
    "packets_total": "PACKETS_TOTAL",
    "duration_ms": "TIME_DUR_MS",
    "bytes_per_ms": "BYTES_PER_MS",
    "packets_per_ms": "PACKETS_PER_MS",
    "sent_percentage": "SENT_PERCENTAGE",
    "recv_percentage": "RECV_PERCENTAGE",
    "min_len": "MIN_PKT_LEN",
    "max_len": "MAX_PKT_LEN",
    "mean_len": "MEAN_PKT_LENGTH",
    "var_len": "VAR_PKT_LENGTH",
    "mean_inter_arrival_ms": "MEAN_TIME_BETWEEN_PKTS",
}
