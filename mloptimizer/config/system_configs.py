"""
System configuration classes
"""

from dataclasses import dataclass


@dataclass
class MetricsConfig:
    """Sample store configuration"""

    retention_period: float = 24  # hours
    sweep_interval: float = 60  # seconds
    max_samples: int = 100000
    load_window: float = 60  # seconds
    track_process_resources: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration"""

    log_level: str = "INFO"
    json_format: bool = False
    enable_console: bool = True


@dataclass
class PrometheusConfig:
    """Prometheus export configuration"""

    enabled: bool = True
    namespace: str = "mloptimizer"


@dataclass
class ScalingConfig:
    """Scaling advisor configuration"""

    capacity_per_replica: float = 10.0  # req/s one replica can absorb
    window_seconds: float = 300.0
    scale_up_latency_factor: float = 1.5
    scale_down_latency_factor: float = 0.5
    history_size: int = 100
