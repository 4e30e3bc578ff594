"""Prometheus metrics for the storage layer and its HTTP front.

The metric objects are module-level so they register with the default
registry once per process, however many apps or backends get created.
"""

from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest

STORAGE_OPERATIONS = Counter(
    "storage_operations",
    "Storage contract calls by backend, operation and outcome",
    ["backend", "operation", "status"],
)

# Upper buckets cover the 20s collection-listing deadline
STORAGE_LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage contract call latency in seconds",
    ["backend", "operation"],
    buckets=(0.001, 0.005, 0.025, 0.1, 0.5, 2.0, 5.0, 20.0),
)

HTTP_REQUESTS = Counter(
    "http_requests",
    "HTTP requests served, by route template and status",
    ["method", "endpoint", "status_code"],
)

HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
)


class MetricsCollector:
    """Facade over the module metrics, shared by backends and middleware.

    Attributes:
        registry: Registry rendered by ``generate_metrics``
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

    def record_storage_operation(
        self, backend: str, operation: str, status: str, duration_seconds: float
    ) -> None:
        """Count one storage call and observe its latency.

        Args:
            backend: Backend name (``mongo`` or ``sqlite``)
            operation: Contract operation, e.g. ``create``
            status: ``"success"`` or the code of the error the call raised
            duration_seconds: Wall time spent in the call
        """
        STORAGE_OPERATIONS.labels(backend, operation, status).inc()
        STORAGE_LATENCY.labels(backend, operation).observe(duration_seconds)

    def record_http_request(
        self, method: str, endpoint: str, status_code: int, duration_seconds: float
    ) -> None:
        HTTP_REQUESTS.labels(method, endpoint, str(status_code)).inc()
        HTTP_LATENCY.labels(method, endpoint).observe(duration_seconds)

    def generate_metrics(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)


_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector
