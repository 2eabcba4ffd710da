"""Prometheus metrics for flowengineer processing."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry

from .base import MetricsSink


class PrometheusMetrics(MetricsSink):
    """Prometheus-backed metrics sink."""

    def __init__(
        self,
        namespace: str = "flowengineer",
        registry: "CollectorRegistry | None" = None,
    ) -> None:
        """Initialize Prometheus metrics.

        Args:
            namespace: Metric namespace prefix.
            registry: Optional CollectorRegistry for isolated metrics.
        """
        try:
            from prometheus_client import CollectorRegistry, Counter, Histogram
        except ImportError as exc:
            raise ImportError(
                "Prometheus metrics require prometheus-client. "
                "Install with: pip install prometheus-client"
            ) from exc

        self.registry = registry or CollectorRegistry()

        self.records_total = Counter(
            "records_total",
            "Total flow records augmented",
            namespace=namespace,
            registry=self.registry,
        )
        self.sampled_packets_total = Counter(
            "sampled_packets_total",
            "Total sampled packets across augmented records",
            namespace=namespace,
            registry=self.registry,
        )
        self.errors_total = Counter(
            "errors_total",
            "Total errors by stage",
            ["stage"],
            namespace=namespace,
            registry=self.registry,
        )
        self.processing_seconds = Histogram(
            "processing_duration_seconds",
            "Processing duration in seconds",
            ["mode"],
            namespace=namespace,
            registry=self.registry,
        )

    def observe_record(self, packets_sampled: int) -> None:
        self.records_total.inc()
        self.sampled_packets_total.inc(packets_sampled)

    def observe_error(self, stage: str, error: Exception | None = None) -> None:
        self.errors_total.labels(stage=stage).inc()

    def observe_processing_time(self, mode: str, seconds: float) -> None:
        self.processing_seconds.labels(mode=mode).observe(seconds)


def start_prometheus_server(
    port: int,
    addr: str = "0.0.0.0",
    registry: "CollectorRegistry | None" = None,
) -> None:
    """Start a Prometheus HTTP metrics server."""
    try:
        from prometheus_client import start_http_server
    except ImportError as exc:
        raise ImportError(
            "Prometheus metrics require prometheus-client. "
            "Install with: pip install prometheus-client"
        ) from exc

    if registry is None:
        start_http_server(port, addr=addr)
    else:
        start_http_server(port, addr=addr, registry=registry)
