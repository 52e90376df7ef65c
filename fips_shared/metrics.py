"""
Shared metrics configuration for the FIPS frontend.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry unless one is supplied, so several
    service instances (tests, workers) can coexist in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

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

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_cms_metrics()

    def _setup_cms_metrics(self):
        """Set up CMS resilience metrics."""
        self._metrics["cms_requests_total"] = Counter(
            "cms_requests_total",
            "Total outbound CMS requests",
            ["method", "outcome"],
            registry=self.registry
        )

        self._metrics["cms_request_duration_seconds"] = Histogram(
            "cms_request_duration_seconds",
            "Outbound CMS request duration in seconds",
            ["method"],
            registry=self.registry
        )

        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total cache hits",
            ["cache_type"],
            registry=self.registry
        )

        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total cache misses",
            ["cache_type"],
            registry=self.registry
        )

        self._metrics["health_probes_total"] = Counter(
            "cms_health_probes_total",
            "Total CMS health probes",
            ["result"],
            registry=self.registry
        )

        self._metrics["cms_available"] = Gauge(
            "cms_available",
            "1 when the last CMS health probe succeeded",
            registry=self.registry
        )

        self._metrics["maintenance_responses_total"] = Counter(
            "maintenance_responses_total",
            "Requests short-circuited by the maintenance gate",
            ["reason"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

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

    def record_cms_request(self, method: str, outcome: str, duration: float):
        """Record an outbound CMS call."""
        self._metrics["cms_requests_total"].labels(method=method, outcome=outcome).inc()
        self._metrics["cms_request_duration_seconds"].labels(method=method).observe(duration)

    def record_health_probe(self, available: bool):
        """Record a CMS health probe result."""
        self._metrics["health_probes_total"].labels(result="up" if available else "down").inc()
        self._metrics["cms_available"].set(1 if available else 0)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
