"""Core data structures, configuration and the feature engine."""

from __future__ import annotations

from .config import Config
from .engine import compute_features
from .record import BACKWARD, FORWARD, FeatureSet, FlowScalars, PacketSeries, SeriesLengthError
from .timestamps import TIME_FORMATS, TimeFormat, ns_to_ms, to_nanoseconds

__all__ = [
    "BACKWARD",
    "Config",
    "FORWARD",
    "FeatureSet",
    "FlowScalars",
    "PacketSeries",
    "SeriesLengthError",
    "TIME_FORMATS",
    "TimeFormat",
    "compute_features",
    "ns_to_ms",
    "to_nanoseconds",
]
