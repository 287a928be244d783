"""
Extraction of the ``safe-outputs`` frontmatter block.

Each action key maps to ``null`` (defaults only), an array (the action's
shorthand form, where it has one) or an options mapping. A wildcard
``target-repo`` always fails closed: the action is dropped and reported in
``SafeOutputsExtraction.rejected`` so the compiler can abort.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from flowguard.safe_outputs.models import (
    ACTION_REGISTRY,
    BaseSafeOutputConfig,
    SafeOutputMessages,
    SafeOutputsConfig,
)
from flowguard.utils.values import bool_value, string_map, string_value

logger = logging.getLogger(__name__)

WILDCARD_TARGET_REPO = "*"

# Keys of the safe-outputs block that are not output actions
GLOBAL_KEYS = frozenset({"staged", "env", "github-token", "messages"})


@dataclass
class SafeOutputsExtraction:
    """Result of extracting the safe-outputs block."""

    config: SafeOutputsConfig | None
    rejected: dict[str, str] = field(default_factory=dict)


def has_wildcard_target_repo(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("target-repo") == WILDCARD_TARGET_REPO


def extract_safe_output_action(kind: str, value: Any) -> BaseSafeOutputConfig | None:
    """
    Extract one safe-output action.

    Args:
        kind: Kebab-case action name (e.g. ``create-issue``)
        value: Raw frontmatter value for the action

    Returns:
        The action config, or None when unknown, malformed or targeting ``*``
    """
    action_type = ACTION_REGISTRY.get(kind)
    if action_type is None:
        logger.debug(f"Unknown safe-output action: {kind}")
        return None

    if value is None:
        options: Mapping[str, Any] = {}
    elif isinstance(value, list):
        if action_type.SHORTHAND_FIELD is None:
            logger.debug(f"{kind} does not accept the array shorthand")
            return None
        options = {action_type.SHORTHAND_FIELD: value}
    elif isinstance(value, Mapping):
        options = value
    else:
        logger.debug(f"Ignoring {kind} value of type {type(value).__name__}")
        return None

    if has_wildcard_target_repo(options):
        logger.warning(f"{kind}: target-repo '*' is not allowed, rejecting configuration")
        return None

    try:
        return action_type.model_validate(options)
    except PydanticValidationError as e:
        logger.warning(f"Ignoring invalid {kind} configuration: {e}")
        return None


def extract_safe_outputs_config(frontmatter: Mapping[str, Any]) -> SafeOutputsExtraction:
    """
    Extract the ``safe-outputs`` block.

    Returns:
        SafeOutputsExtraction whose ``config`` is None when the block is
        missing or not a mapping
    """
    block = frontmatter.get("safe-outputs")
    if not isinstance(block, Mapping):
        if block is not None:
            logger.debug(f"Ignoring safe-outputs of type {type(block).__name__}")
        return SafeOutputsExtraction(config=None)

    actions: dict[str, BaseSafeOutputConfig] = {}
    rejected: dict[str, str] = {}

    for kind in ACTION_REGISTRY:
        if kind not in block:
            continue
        raw = block[kind]
        action = extract_safe_output_action(kind, raw)
        if action is not None:
            actions[kind] = action
        elif has_wildcard_target_repo(raw):
            rejected[kind] = "target-repo cannot be the wildcard '*'"

    for key in block:
        if key not in ACTION_REGISTRY and key not in GLOBAL_KEYS:
            logger.debug(f"Ignoring unsupported safe-outputs key: {key}")

    messages = None
    if isinstance(block.get("messages"), Mapping):
        messages = SafeOutputMessages.model_validate(block["messages"])

    config = SafeOutputsConfig(
        actions=actions,
        staged=bool_value(block.get("staged")) or False,
        env=string_map(block.get("env")) or {},
        github_token=string_value(block.get("github-token")),
        messages=messages,
    )
    logger.debug(
        f"Extracted {len(actions)} safe-output actions"
        + (f", rejected: {', '.join(rejected)}" if rejected else "")
    )
    return SafeOutputsExtraction(config=config, rejected=rejected)


__all__ = [
    "SafeOutputsExtraction",
    "extract_safe_output_action",
    "extract_safe_outputs_config",
    "has_wildcard_target_repo",
]
