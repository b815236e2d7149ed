"""
Configuration management and loading utilities
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import ConfigurationError
from .core_configs import (
    AllocatorSettings,
    AnomalySettings,
    FeatureFlags,
    LoadBalancerSettings,
    OptimizationThresholds,
    PredictorSettings,
    QuerySettings,
    TrainingSettings,
)
from .system_configs import (
    LoggingConfig,
    MetricsConfig,
    PrometheusConfig,
    ScalingConfig,
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _to_snake(key: str) -> str:
    """Normalise camelCase keys (``trainingInterval``) to snake_case"""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _normalise_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_to_snake(str(k)): _normalise_keys(v) for k, v in value.items()}
    return value


@dataclass
class OptimizerConfig:
    """Configuration for the adaptive performance optimizer"""

    enabled: bool = True
    training_interval: float = 30  # minutes
    prediction_threshold: float = 0.7

    features: FeatureFlags = field(default_factory=FeatureFlags)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    optimization: OptimizationThresholds = field(
        default_factory=OptimizationThresholds
    )

    # Algorithm constants
    predictor: PredictorSettings = field(default_factory=PredictorSettings)
    anomaly: AnomalySettings = field(default_factory=AnomalySettings)
    allocator: AllocatorSettings = field(default_factory=AllocatorSettings)
    load_balancer: LoadBalancerSettings = field(default_factory=LoadBalancerSettings)
    query: QuerySettings = field(default_factory=QuerySettings)
    training: TrainingSettings = field(default_factory=TrainingSettings)

    # System configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    prometheus: PrometheusConfig = field(default_factory=PrometheusConfig)
    scaling: ScalingConfig = field(default_factory=ScalingConfig)

    optimization_history_size: int = 1000

    def __post_init__(self) -> None:
        """Post-initialization validation"""
        self._load_from_environment()
        self.validate()

    def _load_from_environment(self) -> None:
        """Load overrides from environment variables"""
        if os.getenv("MLOPTIMIZER_ENABLED"):
            self.enabled = os.getenv("MLOPTIMIZER_ENABLED", "true").lower() in (
                "1",
                "true",
                "yes",
            )

        if os.getenv("MLOPTIMIZER_TRAINING_INTERVAL"):
            try:
                self.training_interval = float(
                    os.getenv("MLOPTIMIZER_TRAINING_INTERVAL", self.training_interval)
                )
            except ValueError as e:
                raise ConfigurationError(
                    "training_interval", f"not a number in environment: {e}"
                ) from e

        if os.getenv("MLOPTIMIZER_LOG_LEVEL"):
            self.logging.log_level = os.getenv(
                "MLOPTIMIZER_LOG_LEVEL", self.logging.log_level
            ).upper()

    def validate(self) -> None:
        """Fail fast on invalid settings"""
        if self.training_interval <= 0:
            raise ConfigurationError("training_interval", "must be positive")

        if not 0 <= self.prediction_threshold <= 1:
            raise ConfigurationError(
                "prediction_threshold", "must be between 0 and 1"
            )

        if self.optimization_history_size <= 0:
            raise ConfigurationError("optimization_history_size", "must be positive")

        self._validate_metrics()
        self._validate_thresholds()
        self._validate_algorithms()

        if self.logging.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                "logging.log_level", f"unknown level {self.logging.log_level!r}"
            )

    def _validate_metrics(self) -> None:
        if self.metrics.retention_period <= 0:
            raise ConfigurationError("metrics.retention_period", "must be positive")
        if self.metrics.sweep_interval <= 0:
            raise ConfigurationError("metrics.sweep_interval", "must be positive")
        if self.metrics.max_samples <= 0:
            raise ConfigurationError("metrics.max_samples", "must be positive")
        if self.metrics.load_window <= 0:
            raise ConfigurationError("metrics.load_window", "must be positive")

    def _validate_thresholds(self) -> None:
        for name in ("target_latency", "max_memory", "throughput_target"):
            value = getattr(self.optimization, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"optimization.{name}", "must be positive")

        cpu = self.optimization.cpu_threshold
        if cpu is not None and not 0 < cpu <= 100:
            raise ConfigurationError(
                "optimization.cpu_threshold", "must be between 0 and 100"
            )

    def _validate_algorithms(self) -> None:
        if not 0 < self.predictor.smoothing_alpha <= 1:
            raise ConfigurationError("predictor.smoothing_alpha", "must be in (0, 1]")
        if self.predictor.min_history < 1:
            raise ConfigurationError("predictor.min_history", "must be at least 1")
        if self.predictor.variance_scale <= 0:
            raise ConfigurationError("predictor.variance_scale", "must be positive")

        if not 0 < self.anomaly.z_high <= self.anomaly.z_critical:
            raise ConfigurationError(
                "anomaly.z_high", "must be positive and not exceed z_critical"
            )
        if self.anomaly.error_count_threshold < 0:
            raise ConfigurationError(
                "anomaly.error_count_threshold", "must not be negative"
            )
        if self.anomaly.error_window_seconds <= 0:
            raise ConfigurationError(
                "anomaly.error_window_seconds", "must be positive"
            )
        if self.anomaly.baseline_refresh_seconds < 0:
            raise ConfigurationError(
                "anomaly.baseline_refresh_seconds", "must not be negative"
            )
        if self.anomaly.memory_critical_factor < 1:
            raise ConfigurationError(
                "anomaly.memory_critical_factor", "must be at least 1"
            )

        if not 0 <= self.allocator.epsilon <= 1:
            raise ConfigurationError("allocator.epsilon", "must be between 0 and 1")
        if not 0 < self.allocator.learning_rate <= 1:
            raise ConfigurationError("allocator.learning_rate", "must be in (0, 1]")
        if not 0 <= self.allocator.discount_factor <= 1:
            raise ConfigurationError(
                "allocator.discount_factor", "must be between 0 and 1"
            )
        for name in ("load_thresholds", "memory_thresholds"):
            low, high = getattr(self.allocator, name)
            if low > high:
                raise ConfigurationError(
                    f"allocator.{name}", "lower bound exceeds upper bound"
                )

        if not 0 < self.load_balancer.smoothing_alpha <= 1:
            raise ConfigurationError(
                "load_balancer.smoothing_alpha", "must be in (0, 1]"
            )
        if not 0 <= self.load_balancer.success_weight <= 1:
            raise ConfigurationError(
                "load_balancer.success_weight", "must be between 0 and 1"
            )

        if self.training.batch_size <= 0:
            raise ConfigurationError("training.batch_size", "must be positive")

    @property
    def training_interval_seconds(self) -> float:
        return self.training_interval * 60

    @property
    def retention_seconds(self) -> float:
        return self.metrics.retention_period * 3600

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "OptimizerConfig":
        """Load configuration from file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif config_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported configuration file format: {config_path.suffix}"
                )

        data = data or {}
        # Allow the optimizer section to live inside a larger app config
        if "ml_optimizer" in data and isinstance(data["ml_optimizer"], dict):
            data = data["ml_optimizer"]

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OptimizerConfig":
        """Create configuration from dictionary"""
        data = _normalise_keys(data or {})
        config_data: Dict[str, Any] = {}

        # Short "enable" alias for the top-level flag
        if "enable" in data and "enabled" not in data:
            data["enabled"] = data.pop("enable")

        section_types = {
            "features": FeatureFlags,
            "metrics": MetricsConfig,
            "optimization": OptimizationThresholds,
            "predictor": PredictorSettings,
            "anomaly": AnomalySettings,
            "allocator": AllocatorSettings,
            "load_balancer": LoadBalancerSettings,
            "query": QuerySettings,
            "training": TrainingSettings,
            "logging": LoggingConfig,
            "prometheus": PrometheusConfig,
            "scaling": ScalingConfig,
        }
        top_level = {f.name for f in fields(cls)} - set(section_types)

        for key, value in data.items():
            if key in section_types:
                if not isinstance(value, dict):
                    raise ConfigurationError(key, "section must be a mapping")
                config_data[key] = cls._build_section(key, section_types[key], value)
            elif key in top_level:
                config_data[key] = value
            else:
                logging.getLogger(__name__).warning(
                    f"Ignoring unknown optimizer config key: {key}"
                )

        return cls(**config_data)

    @staticmethod
    def _build_section(name: str, section_type: type, value: Dict[str, Any]) -> Any:
        known = {f.name: f for f in fields(section_type)}
        unknown = set(value) - set(known)
        if unknown:
            raise ConfigurationError(
                name, f"unknown keys: {', '.join(sorted(unknown))}"
            )

        kwargs = {}
        for key, item in value.items():
            # YAML has no tuples
            if isinstance(item, list) and isinstance(
                getattr(section_type(), key), tuple
            ):
                item = tuple(item)
            kwargs[key] = item

        return section_type(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self)

    def to_file(self, config_path: Union[str, Path], format: str = "yaml") -> None:
        """Save configuration to file"""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()

        with open(config_path, "w", encoding="utf-8") as f:
            if format.lower() in ["yaml", "yml"]:
                yaml.safe_dump(
                    json.loads(json.dumps(data)), f, default_flow_style=False, indent=2
                )
            elif format.lower() == "json":
                json.dump(data, f, indent=2, default=str)
            else:
                raise ValueError(f"Unsupported format: {format}")

    def __str__(self) -> str:
        enabled = [name for name, on in asdict(self.features).items() if on]
        return (
            f"OptimizerConfig(enabled={self.enabled}, "
            f"training_interval={self.training_interval}m, "
            f"prediction_threshold={self.prediction_threshold}, "
            f"features={enabled})"
        )


def load_config(config_path: Optional[Union[str, Path]] = None) -> OptimizerConfig:
    """Load configuration from file or create default"""
    if config_path:
        return OptimizerConfig.from_file(config_path)

    default_paths = ["mloptimizer.yaml", "mloptimizer.yml", "mloptimizer.json"]

    for path in default_paths:
        if Path(path).exists():
            return OptimizerConfig.from_file(path)

    return OptimizerConfig()


def create_sample_config(output_path: Union[str, Path] = "mloptimizer.yaml") -> None:
    """Create a sample configuration file"""
    config = OptimizerConfig()
    config.to_file(output_path, "yaml")
    logging.getLogger(__name__).info(f"Sample configuration created at: {output_path}")
