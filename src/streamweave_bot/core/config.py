"""Configuration management for the Streamweave automation runtime.

This module provides configuration models and loading functionality using Pydantic
for validation and type safety.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DOTENV_LOADED = False


def _load_env_once() -> None:
    """Load environment variables from a .env file exactly once."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data."""

    if isinstance(data, str):
        return os.path.expandvars(data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


class RetryPolicyConfig(BaseModel):
    """Configuration for HTTP retry behaviour."""

    max_attempts: int = Field(
        default=1,
        ge=1,
        description="Maximum number of attempts (including the first request)",
    )
    backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial delay in seconds before retrying",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Multiplier applied to the backoff delay after each failure",
    )
    max_backoff_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Maximum delay cap between retries",
    )


class HTTPClientConfig(BaseModel):
    """Defaults for HTTP request steps."""

    timeout: float = Field(default=10.0, gt=0.0, description="Default HTTP timeout in seconds")
    retry: RetryPolicyConfig = Field(
        default_factory=RetryPolicyConfig,
        description="Retry policy applied to HTTP request steps",
    )
    user_agent: str = Field(
        default="streamweave-bot", description="User-Agent header sent with requests"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format used by the file handler",
    )
    log_file: str | None = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup files")
    show_path: bool = Field(default=False, description="Show source path in console logs")
    component_levels: dict[str, Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        default_factory=dict,
        description="Per-component level overrides, e.g. {'automation.handlers': 'DEBUG'}",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalise_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("component_levels", mode="before")
    @classmethod
    def normalise_component_levels(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                str(name).strip(): level.strip().upper() if isinstance(level, str) else level
                for name, level in value.items()
            }
        return value


class GeneralConfig(BaseModel):
    """General bot configuration."""

    name: str = Field(default="Streamweave", description="Bot name")
    description: str = Field(
        default="Chat automation runtime for live streams.", description="Bot description"
    )


class AutomationConfig(BaseModel):
    """Where the automation documents live and how they are reloaded."""

    data_dir: str = Field(
        default="data/automation",
        description="Directory holding the commands and actions documents",
    )
    commands_file: str = Field(default="commands.json", description="Commands document name")
    actions_file: str = Field(default="actions.json", description="Actions document name")
    variables_file: str | None = Field(
        default="data/automation/variables.json",
        description="JSON file backing persisted global and user variables",
    )
    hot_reload: bool = Field(
        default=False, description="Reload the documents when they change on disk"
    )
    reload_delay: float = Field(
        default=0.4, ge=0.0, description="Debounce delay in seconds for hot reload"
    )

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def commands_path(self) -> Path:
        return self.data_path / self.commands_file

    @property
    def actions_path(self) -> Path:
        return self.data_path / self.actions_file


class BotConfig(BaseSettings):
    """Main configuration for the Streamweave runtime."""

    model_config = SettingsConfigDict(
        env_prefix="STREAMWEAVE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    general: GeneralConfig = Field(
        default_factory=GeneralConfig, description="General configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    http: HTTPClientConfig = Field(
        default_factory=HTTPClientConfig, description="Default HTTP client settings"
    )
    automation: AutomationConfig = Field(
        default_factory=AutomationConfig, description="Automation document settings"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> BotConfig:
        """Load configuration from a YAML file."""

        _load_env_once()
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, encoding="utf-8") as handle:
            try:
                config_data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in config file: {exc}") from exc

        if not config_data:
            config_data = {}

        config_data = _expand_env_vars(config_data)
        return cls(**config_data)

    @classmethod
    def from_json(cls, path: str | Path) -> BotConfig:
        """Load configuration from a JSON file."""

        _load_env_once()
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, encoding="utf-8") as handle:
            try:
                config_data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in config file: {exc}") from exc

        config_data = _expand_env_vars(config_data)
        return cls(**config_data)

    @classmethod
    def load(cls, path: str | Path) -> BotConfig:
        """Load configuration from a YAML or JSON file based on its suffix."""

        if Path(path).suffix.lower() == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""

        return self.model_dump()
