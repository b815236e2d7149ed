"""Tests for optimizer configuration loading and validation."""

import json

import pytest
import yaml

from mloptimizer.config import OptimizerConfig, load_config
from mloptimizer.exceptions import ConfigurationError


class TestDefaults:
    def test_documented_defaults(self):
        config = OptimizerConfig()

        assert config.enabled is True
        assert config.training_interval == 30
        assert config.training_interval_seconds == 1800
        assert config.prediction_threshold == 0.7
        assert config.metrics.retention_period == 24
        assert config.retention_seconds == 86400
        assert config.optimization.target_latency is None
        assert config.predictor.smoothing_alpha == 0.3
        assert config.allocator.epsilon == 0.1
        assert config.anomaly.z_high == 3.0
        assert config.anomaly.z_critical == 5.0


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"training_interval": 0},
            {"prediction_threshold": 1.5},
            {"optimization_history_size": 0},
        ],
    )
    def test_invalid_top_level_values_fail_fast(self, kwargs):
        with pytest.raises(ConfigurationError):
            OptimizerConfig(**kwargs)

    @pytest.mark.parametrize(
        "data, field",
        [
            ({"optimization": {"target_latency": -1}}, "optimization.target_latency"),
            ({"optimization": {"cpu_threshold": 150}}, "optimization.cpu_threshold"),
            ({"anomaly": {"z_high": 6, "z_critical": 5}}, "anomaly.z_high"),
            ({"allocator": {"epsilon": 2}}, "allocator.epsilon"),
            ({"allocator": {"load_thresholds": [80, 50]}}, "allocator.load_thresholds"),
            ({"metrics": {"retention_period": 0}}, "metrics.retention_period"),
            ({"logging": {"log_level": "LOUD"}}, "logging.log_level"),
        ],
    )
    def test_invalid_sections_name_the_field(self, data, field):
        with pytest.raises(ConfigurationError) as exc_info:
            OptimizerConfig.from_dict(data)

        assert exc_info.value.field_name == field

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            OptimizerConfig(prediction_threshold=-0.1)

    def test_unknown_section_keys_are_rejected(self):
        with pytest.raises(ConfigurationError):
            OptimizerConfig.from_dict({"features": {"teleportation": True}})


class TestLoading:
    def test_camel_case_keys_are_accepted(self):
        config = OptimizerConfig.from_dict(
            {
                "enable": False,
                "trainingInterval": 5,
                "predictionThreshold": 0.9,
                "features": {"performancePrediction": False, "autoScaling": False},
                "metrics": {"retentionPeriod": 2},
                "optimization": {"targetLatency": 250, "maxMemory": 512},
            }
        )

        assert config.enabled is False
        assert config.training_interval == 5
        assert config.prediction_threshold == 0.9
        assert config.features.performance_prediction is False
        assert config.features.auto_scaling is False
        assert config.features.anomaly_detection is True
        assert config.metrics.retention_period == 2
        assert config.optimization.target_latency == 250
        assert config.optimization.max_memory == 512

    def test_lists_become_tuples(self):
        config = OptimizerConfig.from_dict({"allocator": {"load_thresholds": [10, 20]}})

        assert config.allocator.load_thresholds == (10, 20)

    def test_from_yaml_file_with_nested_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            yaml.safe_dump({"ml_optimizer": {"prediction_threshold": 0.5}}),
            encoding="utf-8",
        )

        assert OptimizerConfig.from_file(path).prediction_threshold == 0.5

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "optimizer.json"
        path.write_text(json.dumps({"training_interval": 10}), encoding="utf-8")

        assert OptimizerConfig.from_file(path).training_interval == 10

    def test_missing_and_unsupported_files(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            OptimizerConfig.from_file(tmp_path / "missing.yaml")

        bad = tmp_path / "optimizer.toml"
        bad.write_text("x = 1", encoding="utf-8")
        with pytest.raises(ValueError):
            OptimizerConfig.from_file(bad)

    def test_round_trip_through_yaml(self, tmp_path):
        saved = OptimizerConfig(prediction_threshold=0.8)
        path = tmp_path / "out.yaml"

        saved.to_file(path)

        assert OptimizerConfig.from_file(path) == saved

    def test_load_config_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_config() == OptimizerConfig()


class TestEnvironmentOverrides:
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MLOPTIMIZER_ENABLED", "false")
        monkeypatch.setenv("MLOPTIMIZER_TRAINING_INTERVAL", "15")
        monkeypatch.setenv("MLOPTIMIZER_LOG_LEVEL", "debug")

        config = OptimizerConfig()

        assert config.enabled is False
        assert config.training_interval == 15
        assert config.logging.log_level == "DEBUG"

    def test_non_numeric_interval_is_a_configuration_error(self, monkeypatch):
        monkeypatch.setenv("MLOPTIMIZER_TRAINING_INTERVAL", "soon")

        with pytest.raises(ConfigurationError):
            OptimizerConfig()
