"""Feature registry and output schema generation."""

from __future__ import annotations

from .generate import generate_schema, write_schema
from .registry import (
    DType,
    FeatureMeta,
    all_feature_ids,
    all_feature_meta,
    get_extractors,
    get_feature_ids_ordered,
)

__all__ = [
    # Registry
    "DType",
    "FeatureMeta",
    "all_feature_ids",
    "all_feature_meta",
    "get_extractors",
    "get_feature_ids_ordered",
    # Schema generation
    "generate_schema",
    "write_schema",
]
