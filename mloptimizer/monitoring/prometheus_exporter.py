"""
Prometheus metrics exporter for monitoring integration.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from .metric_sample import MetricSample


class PrometheusExporter:
    """Prometheus metrics exporter with a private registry"""

    def __init__(self, enabled: bool = True, namespace: str = "mloptimizer"):
        self.enabled = enabled
        self.namespace = namespace

        if self.enabled:
            self.registry = CollectorRegistry()
            self._setup_metrics()

    def _setup_metrics(self):
        """Setup Prometheus metrics"""
        ns = self.namespace

        # Request metrics
        self.request_counter = Counter(
            f"{ns}_requests_total",
            "Total number of observed requests",
            ["endpoint", "status"],
            registry=self.registry,
        )

        self.response_time_histogram = Histogram(
            f"{ns}_request_duration_seconds",
            "Observed request duration in seconds",
            ["endpoint"],
            registry=self.registry,
        )

        # Optimizer decisions
        self.anomaly_counter = Counter(
            f"{ns}_anomalies_total",
            "Anomaly alerts raised",
            ["type", "severity"],
            registry=self.registry,
        )

        self.optimization_counter = Counter(
            f"{ns}_optimizations_total",
            "Predictive optimizations applied",
            ["action"],
            registry=self.registry,
        )

        # Load metrics
        self.current_load_gauge = Gauge(
            f"{ns}_current_load",
            "Requests observed in the trailing load window",
            registry=self.registry,
        )

        self.endpoint_health_gauge = Gauge(
            f"{ns}_endpoint_health",
            "Adaptive load balancer health score",
            ["endpoint"],
            registry=self.registry,
        )

    def record_request(self, sample: MetricSample):
        """Record request metrics"""
        if not self.enabled:
            return

        status = "error" if sample.error or sample.is_server_error else "success"
        self.request_counter.labels(endpoint=sample.endpoint_key, status=status).inc()
        self.response_time_histogram.labels(endpoint=sample.endpoint_key).observe(
            sample.duration / 1000
        )

    def record_anomaly(self, alert_type: str, severity: str):
        if not self.enabled:
            return
        self.anomaly_counter.labels(type=alert_type, severity=severity).inc()

    def record_optimization(self, action: str):
        if not self.enabled:
            return
        self.optimization_counter.labels(action=action).inc()

    def update_load(self, current_load: int):
        if not self.enabled:
            return
        self.current_load_gauge.set(current_load)

    def update_endpoint_health(self, endpoint: str, score: float):
        if not self.enabled:
            return
        self.endpoint_health_gauge.labels(endpoint=endpoint).set(score)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus format"""
        if not self.enabled:
            return ""

        return generate_latest(self.registry).decode("utf-8")
