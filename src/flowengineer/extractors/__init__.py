"""Feature extractors for flow records."""

from __future__ import annotations

from .base import FeatureExtractor
from .packet_series import PacketSeriesExtractor

__all__ = [
    "FeatureExtractor",
    "PacketSeriesExtractor",
]
