"""
Shared utilities for CLI commands.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click
import yaml

from flowguard.config.app import FlowguardConfig

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
MARKDOWN_SUFFIXES = (".md", ".markdown")


def split_frontmatter(text: str) -> str:
    """
    Return the frontmatter block of a markdown workflow.

    The block sits between the first two ``---`` lines. Only the delimiter
    split is done; the markdown body is ignored.

    Raises:
        ValueError: If the file does not start with a frontmatter block
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise ValueError("Markdown workflow must start with a '---' frontmatter block")

    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:index])

    raise ValueError("Unterminated frontmatter block: missing closing '---'")


def load_frontmatter(path: str | Path) -> dict[str, Any]:
    """
    Load the frontmatter mapping of a workflow file.

    YAML files are read whole; markdown files contribute their leading
    ``---`` block. A bare ``on`` key, which YAML 1.1 reads as True, is
    restored to ``"on"``.

    Raises:
        ValueError: If the file cannot be parsed or is not a mapping
    """
    path = Path(path)
    text = path.read_text()

    if path.suffix.lower() in MARKDOWN_SUFFIXES:
        text = split_frontmatter(text)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Frontmatter in {path} must be a mapping, got {type(data).__name__}")

    if True in data and "on" not in data:
        data["on"] = data.pop(True)

    logger.debug(f"Loaded frontmatter from {path}: {', '.join(str(k) for k in data)}")
    return data


def get_config(ctx: click.Context) -> FlowguardConfig:
    """Return the config loaded by the root group, or defaults."""
    if ctx.obj and isinstance(ctx.obj.get("config"), FlowguardConfig):
        return ctx.obj["config"]
    return FlowguardConfig()


def load_frontmatter_or_exit(path: str) -> dict[str, Any]:
    try:
        return load_frontmatter(path)
    except (OSError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
