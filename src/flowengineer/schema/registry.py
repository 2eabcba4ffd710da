"""Feature registry - single source of truth for all features."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from ..extractors.base import FeatureExtractor

DType = Literal["float64", "int64"]
Source = Literal["flow", "packet_series"]
DirectionLabel = Literal["bidir", "src_to_dst", "dst_to_src", "both"]


@dataclass(frozen=True)
class FeatureMeta:
    """Metadata for a single feature.

    Attributes:
        id: Stable feature identifier (e.g., "ppi.BYTES_RATIO").
        dtype: Data type of the feature in a DataFrame.
        field_type: Record field type the feature is encoded with.
        units: Unit of measurement (e.g., "ms", "bytes", "").
        source: Whether the feature is derived from the flow counters or
            from the sampled packet arrays.
        direction: Direction semantics (bidir, src_to_dst, dst_to_src, both).
        missing_policy: Value used when the feature is undefined.
        description: Human-readable description of the feature.
    """

    id: str
    dtype: DType
    field_type: str
    units: str
    source: Source
    direction: DirectionLabel
    missing_policy: Literal["zero"]
    description: str


def get_extractors() -> list[FeatureExtractor]:
    """Return instantiated extractor objects in deterministic order.

    Returns:
        List of extractor instances in stable order.
    """
    from ..extractors import PacketSeriesExtractor

    return [PacketSeriesExtractor()]


def all_feature_ids() -> set[str]:
    """Get all feature IDs from all extractors.

    Returns:
        Set of all feature IDs.

    Raises:
        ValueError: If duplicate feature IDs are found.
    """
    ids: set[str] = set()
    for ex in get_extractors():
        for fid in ex.feature_ids():
            if fid in ids:
                raise ValueError(f"Duplicate feature id: {fid}")
            ids.add(fid)
    return ids


def all_feature_meta() -> dict[str, FeatureMeta]:
    """Get metadata for all features from all extractors.

    Returns:
        Dictionary mapping feature ID to FeatureMeta.

    Raises:
        ValueError: If duplicate feature IDs or missing metadata.
    """
    meta: dict[str, FeatureMeta] = {}
    for ex in get_extractors():
        for fid, fmeta in ex.feature_meta().items():
            if fid in meta:
                raise ValueError(f"Duplicate feature meta id: {fid}")
            meta[fid] = fmeta

    missing = all_feature_ids() - set(meta.keys())
    if missing:
        raise ValueError(f"Missing meta for feature ids: {sorted(missing)}")

    return meta


def get_feature_ids_ordered() -> list[str]:
    """Get all feature IDs in deterministic order.

    Returns:
        List of feature IDs ordered by extractor, then by feature within extractor.
    """
    ids: list[str] = []
    for ex in get_extractors():
        ids.extend(ex.feature_ids())
    return ids
