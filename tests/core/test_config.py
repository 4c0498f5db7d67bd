"""Tests for configuration management module.

Tests cover:
- RetryPolicyConfig and HTTPClientConfig validation
- LoggingConfig validation
- AutomationConfig paths
- BotConfig loading from YAML/JSON
- Environment variable expansion and overrides
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from streamweave_bot.core.config import (
    AutomationConfig,
    BotConfig,
    GeneralConfig,
    HTTPClientConfig,
    LoggingConfig,
    RetryPolicyConfig,
)

# ==============================================================================
# RetryPolicyConfig / HTTPClientConfig Tests
# ==============================================================================


class TestRetryPolicyConfig:
    """Tests for RetryPolicyConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = RetryPolicyConfig()

        assert config.max_attempts == 1
        assert config.backoff_seconds == 1.0
        assert config.backoff_multiplier == 2.0
        assert config.max_backoff_seconds == 30.0

    def test_max_attempts_validation(self):
        """Test max_attempts must be at least 1."""
        with pytest.raises(ValidationError):
            RetryPolicyConfig(max_attempts=0)

    def test_backoff_multiplier_validation(self):
        """Test backoff multiplier must not shrink the delay."""
        with pytest.raises(ValidationError):
            RetryPolicyConfig(backoff_multiplier=0.5)


class TestHTTPClientConfig:
    """Tests for HTTPClientConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = HTTPClientConfig()

        assert config.timeout == 10.0
        assert config.retry.max_attempts == 1
        assert config.user_agent == "streamweave-bot"

    def test_timeout_must_be_positive(self):
        """Test timeout validation."""
        with pytest.raises(ValidationError):
            HTTPClientConfig(timeout=0)


# ==============================================================================
# LoggingConfig Tests
# ==============================================================================


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.log_file is None
        assert config.backup_count == 5
        assert config.component_levels == {}

    def test_level_is_normalised(self):
        """Test lower-case levels are accepted."""
        assert LoggingConfig(level=" warning ").level == "WARNING"

    def test_invalid_level(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


# ==============================================================================
# AutomationConfig Tests
# ==============================================================================


class TestAutomationConfig:
    """Tests for AutomationConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = AutomationConfig()

        assert config.data_path == Path("data/automation")
        assert config.commands_path == Path("data/automation/commands.json")
        assert config.actions_path == Path("data/automation/actions.json")
        assert config.hot_reload is False
        assert config.reload_delay == 0.4

    def test_custom_file_names(self):
        """Test document names follow the settings."""
        config = AutomationConfig(data_dir="bot", commands_file="cmds.json")

        assert config.commands_path == Path("bot/cmds.json")

    def test_reload_delay_validation(self):
        """Test negative reload delays are rejected."""
        with pytest.raises(ValidationError):
            AutomationConfig(reload_delay=-1)


# ==============================================================================
# BotConfig Tests
# ==============================================================================


class TestBotConfig:
    """Tests for BotConfig loading."""

    def test_default_values(self):
        """Test default configuration values."""
        config = BotConfig()

        assert isinstance(config.general, GeneralConfig)
        assert config.general.name == "Streamweave"
        assert config.automation.data_dir == "data/automation"

    def test_from_yaml(self, tmp_path):
        """Test loading configuration from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "general": {"name": "My Bot"},
                    "logging": {"level": "debug"},
                    "http": {"timeout": 3, "retry": {"max_attempts": 2}},
                    "automation": {"data_dir": "custom", "hot_reload": True},
                }
            ),
            encoding="utf-8",
        )

        config = BotConfig.from_yaml(path)

        assert config.general.name == "My Bot"
        assert config.logging.level == "DEBUG"
        assert config.http.retry.max_attempts == 2
        assert config.automation.hot_reload is True

    def test_from_yaml_empty_file(self, tmp_path):
        """Test an empty YAML file yields defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        assert BotConfig.from_yaml(path).general.name == "Streamweave"

    def test_from_yaml_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            BotConfig.from_yaml(tmp_path / "nope.yaml")

    def test_from_yaml_invalid_syntax(self, tmp_path):
        """Test malformed YAML raises ValueError."""
        path = tmp_path / "config.yaml"
        path.write_text("general: [unclosed", encoding="utf-8")

        with pytest.raises(ValueError):
            BotConfig.from_yaml(path)

    def test_load_dispatches_on_suffix(self, tmp_path):
        """Test load() reads JSON files as JSON."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"general": {"name": "Json Bot"}}), encoding="utf-8")

        assert BotConfig.load(path).general.name == "Json Bot"

    def test_env_var_expansion(self, tmp_path, monkeypatch):
        """Test ${VAR} references are expanded."""
        monkeypatch.setenv("STREAM_DATA", "/srv/stream")
        path = tmp_path / "config.yaml"
        path.write_text("automation:\n  data_dir: ${STREAM_DATA}/automation\n", encoding="utf-8")

        config = BotConfig.from_yaml(path)

        assert config.automation.data_dir == "/srv/stream/automation"

    def test_environment_overrides(self, monkeypatch):
        """Test STREAMWEAVE_ prefixed variables override defaults."""
        monkeypatch.setenv("STREAMWEAVE_AUTOMATION__DATA_DIR", "from-env")

        assert BotConfig().automation.data_dir == "from-env"

    def test_to_dict(self):
        """Test to_dict returns nested plain data."""
        data = BotConfig().to_dict()

        assert data["http"]["timeout"] == 10.0
        assert data["automation"]["commands_file"] == "commands.json"
