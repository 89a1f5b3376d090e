"""Configuration module for the PR orchestrator.

This module provides configuration loading, validation, and schema definitions
for the labeler rules and event bindings.

Usage:
    from pr_orchestrator.config import load_config, Config

    config = load_config()  # Auto-discovers config file
    config = load_config("/path/to/turbo-orchestrator.yml")  # Explicit path
"""

from pr_orchestrator.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    discover_config_path,
    load_config,
    parse_config,
)
from pr_orchestrator.config.schema import (
    DEFAULT_CODEOWNERS_PATH,
    Condition,
    Config,
    LabelerConfig,
    LabelerSettings,
    LabelRule,
    WorkflowAction,
)

__all__ = [
    "DEFAULT_CODEOWNERS_PATH",
    "Condition",
    "Config",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "LabelRule",
    "LabelerConfig",
    "LabelerSettings",
    "WorkflowAction",
    "discover_config_path",
    "load_config",
    "parse_config",
]
