"""Core modules for the Streamweave automation runtime.

This package contains:
- Configuration management
- Logging utilities
- Configuration and automation document validation
"""

from .config import (
    AutomationConfig,
    BotConfig,
    GeneralConfig,
    HTTPClientConfig,
    LoggingConfig,
    RetryPolicyConfig,
)
from .logger import action_logger, get_logger, log_exception, setup_logging
from .validation import (
    generate_json_schema,
    validate_automation_documents,
    validate_yaml_config,
)

__all__ = [
    # Configuration
    "AutomationConfig",
    "BotConfig",
    "GeneralConfig",
    "HTTPClientConfig",
    "LoggingConfig",
    "RetryPolicyConfig",
    # Logging
    "action_logger",
    "get_logger",
    "log_exception",
    "setup_logging",
    # Validation
    "generate_json_schema",
    "validate_automation_documents",
    "validate_yaml_config",
]
