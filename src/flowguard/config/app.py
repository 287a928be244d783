"""
Configuration management for the flowguard compiler.

Provides YAML-based configuration with CLI overrides,
configuration hierarchy (CLI > YAML > Defaults), and validation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_FILE = "~/.flowguard/config.yaml"

DEFAULT_FIREWALL_ENGINES = ["copilot", "codex", "claude"]


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Log level",
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path (rotated)",
    )
    max_size_mb: int = Field(
        default=10,
        description="Maximum log file size in MB",
    )
    backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep",
    )

    @field_validator("max_size_mb", "backup_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class FlowguardConfig(BaseModel):
    """
    Compiler-wide settings.

    Frontmatter keys (e.g. ``strict``) take precedence over these defaults
    for the workflow that sets them.
    """

    strict: bool = Field(
        default=False,
        description="Compile in strict mode unless the workflow sets 'strict'",
    )
    trial_mode: bool = Field(
        default=False,
        description="Trial mode: safe outputs target the trial repository and are never staged",
    )
    trial_repo: str | None = Field(
        default=None,
        description="Repository (owner/name) that trial runs write to",
    )
    firewall_engines: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FIREWALL_ENGINES),
        description="Engines to which the firewall default applies",
    )
    firewall_engine_support: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FIREWALL_ENGINES),
        description="Engines that can enforce network restrictions",
    )
    default_firewall_version: str = Field(
        default="v0.13.0",
        description="AWF version used when the workflow pins none",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @field_validator("trial_repo")
    @classmethod
    def validate_trial_repo(cls, v: str | None) -> str | None:
        """Validate trial repository is owner/name."""
        if v is not None and v.count("/") != 1:
            raise ValueError("trial_repo must be in owner/name form")
        return v


def load_yaml(config_file: str) -> dict[str, Any]:
    """
    Load YAML or JSON configuration file.

    Args:
        config_file: Path to YAML or JSON configuration file

    Returns:
        Dictionary with parsed YAML/JSON content

    Raises:
        ValueError: If YAML/JSON is invalid or file format is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml", ".json"]:
        raise ValueError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        content = config_path.read_text()

        if file_ext == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content)

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data


def apply_cli_overrides(
    config_dict: dict[str, Any],
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply CLI argument overrides to config dictionary.

    Nested keys use dots (``logging.level``). None values are skipped so
    unset CLI options leave the file value alone.
    """
    if cli_overrides is None:
        return config_dict

    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        current = config_dict
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    return config_dict


def _write_config(config: FlowguardConfig, config_path: Path) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_dict = config.model_dump(mode="python", exclude_none=True)

    with open(config_path, "w") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    # Owner read/write only
    config_path.chmod(0o600)


def generate_default_config(config_file: str) -> None:
    """
    Generate default configuration file from model defaults.

    Args:
        config_file: Path where to create the config file
    """
    _write_config(FlowguardConfig(), Path(config_file).expanduser())


def load_config(
    config_file: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
    create_default: bool = False,
) -> FlowguardConfig:
    """
    Load configuration with hierarchy: CLI > YAML > Defaults.

    Args:
        config_file: Path to YAML config file (default: ~/.flowguard/config.yaml)
        cli_overrides: Dictionary of CLI argument overrides
        create_default: Create default config file if it doesn't exist

    Returns:
        Validated FlowguardConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_path = Path(config_file).expanduser()

    if create_default and not config_path.exists():
        generate_default_config(config_file)

    config_dict = load_yaml(config_file)
    config_dict = apply_cli_overrides(config_dict, cli_overrides)

    try:
        return FlowguardConfig(**config_dict)
    except Exception as e:
        raise ValueError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def save_config(config: FlowguardConfig, config_file: str | None = None) -> None:
    """
    Save configuration to YAML file.

    Raises:
        OSError: If file operations fail
    """
    _write_config(config, Path(config_file or DEFAULT_CONFIG_FILE).expanduser())
