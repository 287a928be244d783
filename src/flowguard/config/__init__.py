"""Compiler configuration."""

from flowguard.config.app import (
    FlowguardConfig,
    LoggingSettings,
    generate_default_config,
    load_config,
    save_config,
)

__all__ = [
    "FlowguardConfig",
    "LoggingSettings",
    "generate_default_config",
    "load_config",
    "save_config",
]
