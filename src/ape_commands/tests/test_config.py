"""
Tests for configuration models and the YAML/environment loader.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ape_commands.config import (
    ApeCommandsConfig,
    ConfigLoader,
    ConfigurationError,
    DomainThresholds,
    ExecutorConfig,
    NaturalLanguageConfig,
    PluginsConfig,
    validate_config_file,
)
from ape_commands.config.models import LogLevel


class TestModels:

    def test_defaults(self):
        config = ApeCommandsConfig()

        assert config.nlp.accept_threshold == 0.8
        assert config.nlp.heuristic_discount == 0.8
        assert config.executor.history_limit == 50
        assert config.parser.max_suggestions == 5
        assert config.logging.level == LogLevel.INFO

    def test_domain_overrides(self):
        nlp = NaturalLanguageConfig(
            domain_overrides={"jira": DomainThresholds(accept_threshold=0.4)},
        )

        assert nlp.thresholds_for("jira") == (0.4, 0.8)
        assert nlp.thresholds_for("git") == (0.8, 0.8)

    def test_fallback_confidence_bounds(self):
        with pytest.raises(ValidationError):
            NaturalLanguageConfig(fallback_confidence=0.9)

    def test_default_agent_prefix_stripped(self):
        assert ExecutorConfig(default_agent="@Jira").default_agent == "jira"

    def test_plugin_entries_validated(self):
        with pytest.raises(ValidationError):
            PluginsConfig(external_plugins=["no_class_here"])

    def test_low_confidence_threshold_must_not_exceed_error_confidence(self):
        with pytest.raises(ValidationError):
            ApeCommandsConfig(executor={"low_confidence_threshold": 0.9})

    def test_log_level_case_insensitive(self):
        assert ApeCommandsConfig(logging={"level": "debug"}).logging.level == LogLevel.DEBUG


class TestConfigLoader:

    def write_config(self, directory, name, content):
        configs = directory / "configs"
        configs.mkdir(exist_ok=True)
        path = configs / name
        path.write_text(content)
        return path

    def test_built_in_defaults_without_files(self, tmp_path):
        config = ConfigLoader(search_dir=tmp_path).load_config()
        assert config.nlp.accept_threshold == 0.8

    def test_default_file_then_cli_file(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "nlp:\n  accept_threshold: 0.6\n  enable_llm: false\n")
        local = tmp_path / "local.yaml"
        local.write_text("nlp:\n  accept_threshold: 0.7\n")

        config = ConfigLoader(search_dir=tmp_path).load_config(local)

        assert config.nlp.accept_threshold == 0.7
        assert config.nlp.enable_llm is False

    def test_environment_specific_file(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "executor:\n  history_limit: 10\n")
        self.write_config(tmp_path, "test.yaml", "executor:\n  history_limit: 20\n")

        with patch.dict(os.environ, {"APE_ENV": "test"}):
            config = ConfigLoader(search_dir=tmp_path).load_config()

        assert config.executor.history_limit == 20

    def test_environment_variables_win(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "nlp:\n  accept_threshold: 0.6\n")

        with patch.dict(os.environ, {
            "APE_NLP_ACCEPT_THRESHOLD": "0.9",
            "APE_EXECUTOR_DEFAULT_AGENT": "@git",
            "APE_PLUGINS_DISABLED": "jira, swdp",
            "APE_UNKNOWN_THING": "ignored",
        }):
            config = ConfigLoader(search_dir=tmp_path).load_config()

        assert config.nlp.accept_threshold == 0.9
        assert config.executor.default_agent == "git"
        assert config.plugins.disabled == ["jira", "swdp"]

    def test_env_value_conversion(self, tmp_path):
        loader = ConfigLoader(search_dir=tmp_path)

        assert loader._convert_env_value("yes") is True
        assert loader._convert_env_value("off") is False
        assert loader._convert_env_value("42") == 42
        assert loader._convert_env_value("0.5") == 0.5
        assert loader._convert_env_value("a,b") == ["a", "b"]
        assert loader._convert_env_value("qwen3:8b") == "qwen3:8b"

    def test_missing_cli_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(search_dir=tmp_path).load_config(tmp_path / "absent.yaml")

        assert "not found" in exc_info.value.message

    def test_malformed_yaml(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "nlp: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader(search_dir=tmp_path).load_config()

    def test_non_mapping_yaml(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader(search_dir=tmp_path).load_config()

    def test_validation_errors_are_reported(self, tmp_path):
        self.write_config(tmp_path, "default.yaml", "executor:\n  history_limit: 0\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(search_dir=tmp_path).load_config()

        assert "executor -> history_limit" in exc_info.value.message

    def test_get_config_caches(self, tmp_path):
        loader = ConfigLoader(search_dir=tmp_path)
        assert loader.get_config() is loader.get_config()
        assert loader.reload_config() is not None

    def test_validate_config_file(self, tmp_path):
        good = tmp_path / "good.yaml"
        good.write_text("parser:\n  max_suggestions: 3\n")
        bad = tmp_path / "bad.yaml"
        bad.write_text("parser:\n  max_suggestions: 0\n")

        assert validate_config_file(good) == (True, None)
        valid, message = validate_config_file(bad)
        assert not valid
        assert "max_suggestions" in message
