"""Flow counter and per-packet statistics extractor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.engine import compute_features
from ..core.record import OUTPUT_FIELD_NAMES
from .base import FeatureExtractor

if TYPE_CHECKING:
    from ..records.codec import DecodedFlow
    from ..schema.registry import FeatureMeta

# Features derived from the flow counters rather than the packet arrays.
_COUNTER_FEATURES = {
    "BYTES_RATIO",
    "PACKETS_RATIO",
    "BYTES_TOTAL",
    "PACKETS_TOTAL",
    "TIME_DUR_MS",
    "BYTES_PER_MS",
    "PACKETS_PER_MS",
}

_DIRECTION = {
    "BYTES_RATIO": "both",
    "PACKETS_RATIO": "both",
    "SENT_PERCENTAGE": "src_to_dst",
    "RECV_PERCENTAGE": "dst_to_src",
}

_DTYPES = {
    "double": "float64",
    "uint16": "int64",
    "uint64": "int64",
    "uint": "int64",
}


class PacketSeriesExtractor(FeatureExtractor):
    """Extracts ratio, rate and packet statistics features.

    Features include:
    - Byte and packet totals and forward/backward ratios
    - Duration and per-millisecond rates
    - Share of sampled packets per direction
    - Sampled packet length min/max/mean/variance
    - Mean inter-arrival time of the sampled packets
    """

    def extract(self, flow: DecodedFlow) -> dict[str, Any]:
        """Compute the features of one flow.

        Args:
            flow: The decoded flow.

        Returns:
            Dictionary of features keyed by output field name.
        """
        return compute_features(flow.scalars, flow.series).to_record()

    @property
    def feature_names(self) -> list[str]:
        """Get feature names produced by this extractor."""
        return list(OUTPUT_FIELD_NAMES.values())

    @property
    def extractor_id(self) -> str:
        """Return the unique identifier for this extractor."""
        return "ppi"

    def feature_meta(self) -> dict[str, FeatureMeta]:
        """Return metadata for all features produced by this extractor.

        Returns:
            Dictionary mapping feature IDs to FeatureMeta objects.
        """
        from ..schema.registry import FeatureMeta

        meta: dict[str, FeatureMeta] = {}
        for field_def in self.output_fields():
            name = field_def.name
            feature_id = self.feature_id(name)
            meta[feature_id] = FeatureMeta(
                id=feature_id,
                dtype=_DTYPES[field_def.type.name],
                field_type=field_def.type.name,
                units=field_def.unit,
                source="flow" if name in _COUNTER_FEATURES else "packet_series",
                direction=_DIRECTION.get(name, "bidir"),
                missing_policy="zero",
                description=field_def.description,
            )
        return meta
