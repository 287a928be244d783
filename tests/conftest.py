"""Pytest configuration and shared fixtures for flowguard tests."""

import logging
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml

from flowguard.compiler import WorkflowCompiler
from flowguard.config.app import FlowguardConfig

DEFAULT_BODY = "# Task\n\nDo the thing.\n"


@pytest.fixture(autouse=True)
def reset_flowguard_logger() -> Iterator[None]:
    """Drop handlers the CLI attaches so they never outlive a test."""
    yield
    logger = logging.getLogger("flowguard")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def default_config() -> FlowguardConfig:
    """Create a default FlowguardConfig for testing."""
    return FlowguardConfig()


@pytest.fixture
def compiler(default_config: FlowguardConfig) -> WorkflowCompiler:
    """Create a compiler with default settings."""
    return WorkflowCompiler(default_config)


@pytest.fixture
def write_workflow(temp_dir: Path) -> Callable[..., Path]:
    """Write a markdown workflow whose frontmatter is the given mapping."""

    def _write(frontmatter: dict[str, Any], name: str = "workflow.md", body: str = "") -> Path:
        path = temp_dir / name
        block = yaml.safe_dump(frontmatter, sort_keys=False)
        path.write_text(f"---\n{block}---\n{body or DEFAULT_BODY}")
        return path

    return _write
