"""
Monitoring package: sample ledger, baselines, resource probes and exporters.
"""

from .baseline_tracker import Baseline, BaselineTracker, compute_baseline
from .metric_sample import MetricSample, endpoint_key
from .optimizer_monitor import OptimizerMonitor, OptimizerStats
from .prometheus_exporter import PrometheusExporter
from .resource_metrics import (
    ProcessSnapshot,
    SystemResources,
    get_system_resources,
    take_process_snapshot,
)
from .sample_store import MetricSampleStore

__all__ = [
    "Baseline",
    "BaselineTracker",
    "compute_baseline",
    "MetricSample",
    "endpoint_key",
    "OptimizerMonitor",
    "OptimizerStats",
    "PrometheusExporter",
    "ProcessSnapshot",
    "SystemResources",
    "get_system_resources",
    "take_process_snapshot",
    "MetricSampleStore",
]
