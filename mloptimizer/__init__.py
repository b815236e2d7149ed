"""
mloptimizer - adaptive performance optimizer for web request pipelines.

Learns from per-request telemetry to forecast latency, flag anomalies,
budget resources and suggest query indexes.
"""

__version__ = "1.0.0"

from .config import OptimizerConfig, load_config
from .exceptions import (
    ConfigurationError,
    InvalidSampleError,
    OptimizerError,
    ServiceNotRunningError,
    TrainingError,
)
from .middleware import OptimizerMiddleware
from .service import OptimizerService

__all__ = [
    "__version__",
    "OptimizerConfig",
    "load_config",
    "OptimizerService",
    "OptimizerMiddleware",
    "OptimizerError",
    "ConfigurationError",
    "InvalidSampleError",
    "TrainingError",
    "ServiceNotRunningError",
]
