"""Pytest configuration and fixtures for the optimizer tests."""

import random
import time

import pytest

from mloptimizer.config import LoggingConfig, OptimizerConfig
from mloptimizer.monitoring import MetricSample, ProcessSnapshot, SystemResources

NOW = 1_700_000_000.0


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host environment overrides out of config construction."""
    for name in (
        "MLOPTIMIZER_ENABLED",
        "MLOPTIMIZER_TRAINING_INTERVAL",
        "MLOPTIMIZER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_sample():
    """Factory for metric samples with sensible defaults."""

    def _make(duration=10.0, method="GET", path="/users", timestamp=None, **kwargs):
        return MetricSample(
            method=method,
            path=path,
            duration=duration,
            timestamp=time.time() if timestamp is None else timestamp,
            **kwargs,
        )

    return _make


@pytest.fixture
def config() -> OptimizerConfig:
    return OptimizerConfig(logging=LoggingConfig(log_level="WARNING"))


@pytest.fixture
def fixed_resources() -> SystemResources:
    return SystemResources(memory=8000.0, cpu=80.0, available_workers=4)


@pytest.fixture
def service_kwargs(fixed_resources):
    """Deterministic probes and random source for OptimizerService."""
    return {
        "rng": random.Random(7),
        "resource_probe": lambda: fixed_resources,
        "process_probe": lambda: ProcessSnapshot(rss=0, cpu_time=0.0),
    }
