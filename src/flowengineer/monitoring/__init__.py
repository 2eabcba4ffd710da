"""Monitoring and metrics integrations."""

from __future__ import annotations

from .base import MetricsSink
from .prometheus import PrometheusMetrics, start_prometheus_server

__all__ = [
    "MetricsSink",
    "PrometheusMetrics",
    "start_prometheus_server",
]
