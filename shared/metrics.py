"""
Shared metrics configuration for the PTS allowance access layer.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        if self.service_name == "allowance":
            self._setup_allowance_metrics()

    def _setup_allowance_metrics(self):
        """Set up allowance-specific metrics."""
        self._metrics["allowance_classifications_total"] = Counter(
            "allowance_classifications_total",
            "Total allowance classifications",
            ["result"],
            registry=self.registry
        )

        self._metrics["allowance_classification_duration_seconds"] = Histogram(
            "allowance_classification_duration_seconds",
            "Allowance classification duration in seconds",
            registry=self.registry
        )

        self._metrics["workflow_decisions_total"] = Counter(
            "workflow_decisions_total",
            "Total workflow authorization decisions",
            ["check", "decision"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_classification(self, matched: bool, duration: float):
        """Record the result and latency of an allowance classification."""
        self._metrics["allowance_classifications_total"].labels(
            result="matched" if matched else "unmatched"
        ).inc()
        self._metrics["allowance_classification_duration_seconds"].observe(duration)

    def record_workflow_decision(self, check: str, allowed: bool):
        """Record a transition or visibility decision."""
        self._metrics["workflow_decisions_total"].labels(
            check=check,
            decision="allow" if allowed else "deny"
        ).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
