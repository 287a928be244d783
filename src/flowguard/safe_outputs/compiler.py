"""
Safe-outputs compiler.

Consolidates every configured output action into one execution plan: the
handler configuration payloads read by the post-execution job, and the small
set of environment variables that carry cross-cutting signals.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from flowguard.safe_outputs.models import (
    BaseSafeOutputConfig,
    CreateIssueConfig,
    SafeOutputsConfig,
    TargetedSafeOutputConfig,
)

logger = logging.getLogger(__name__)

STAGED_ENV = "GH_AW_SAFE_OUTPUTS_STAGED"
ASSIGN_COPILOT_ENV = "GH_AW_ASSIGN_COPILOT"
HANDLER_CONFIG_ENV = "GH_AW_SAFE_OUTPUTS_HANDLER_CONFIG"
PROJECT_HANDLER_CONFIG_ENV = "GH_AW_SAFE_OUTPUTS_PROJECT_HANDLER_CONFIG"
MESSAGES_ENV = "GH_AW_SAFE_OUTPUT_MESSAGES"

COPILOT_ASSIGNEE = "copilot"


@dataclass
class SafeOutputsPlan:
    """Consolidated safe-outputs execution plan."""

    env: dict[str, str] = field(default_factory=dict)
    handler_config: dict[str, dict[str, Any]] = field(default_factory=dict)
    project_handler_config: dict[str, dict[str, Any]] = field(default_factory=dict)
    staged: bool = False
    assign_copilot: bool = False

    def render_env_lines(self, indent: int = 10) -> list[str]:
        """Render the env block as ``KEY: "value"`` lines for the job step."""
        prefix = " " * indent
        return [f"{prefix}{key}: {json.dumps(value)}" for key, value in self.env.items()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "env": dict(self.env),
            "handler_config": self.handler_config,
            "project_handler_config": self.project_handler_config,
            "staged": self.staged,
            "assign_copilot": self.assign_copilot,
        }


def target_repo_of(action: BaseSafeOutputConfig) -> str | None:
    if isinstance(action, TargetedSafeOutputConfig):
        return action.target_repo
    return None


def has_copilot_assignee(assignees: list[str] | None) -> bool:
    return any(assignee == COPILOT_ASSIGNEE for assignee in assignees or [])


class SafeOutputsCompiler:
    """
    Builds the consolidated safe-outputs plan for one workflow.

    Staged mode is effective for an action when the global or the action's
    own ``staged`` flag is set. It is never signalled in trial mode, nor for
    actions that write to another repository, and the staged environment
    variable is emitted at most once per plan.
    """

    def __init__(self, trial_mode: bool = False):
        self.trial_mode = trial_mode

    def is_action_staged(self, config: SafeOutputsConfig, action: BaseSafeOutputConfig) -> bool:
        if self.trial_mode:
            return False
        if target_repo_of(action):
            return False
        return config.staged or action.staged

    def compile(self, config: SafeOutputsConfig | None) -> SafeOutputsPlan:
        """
        Compile the configured actions into a plan.

        Args:
            config: Extracted safe-outputs configuration (None = no safe outputs)

        Returns:
            SafeOutputsPlan, empty when nothing is configured
        """
        plan = SafeOutputsPlan()
        if config is None:
            logger.debug("No safe outputs configured")
            return plan

        plan.env.update(config.env)

        for kind, action in config.actions.items():
            if not plan.staged and self.is_action_staged(config, action):
                plan.staged = True
                logger.debug(f"Staged mode enabled by {kind}")

            if isinstance(action, CreateIssueConfig) and has_copilot_assignee(action.assignees):
                plan.assign_copilot = True
                logger.debug("Copilot assignment requested for created issues")

            entry = action.handler_config()
            if action.PROJECT_HANDLER:
                plan.project_handler_config[action.handler_name()] = entry
            else:
                plan.handler_config[action.handler_name()] = entry

        if plan.staged:
            plan.env[STAGED_ENV] = "true"
        if plan.assign_copilot:
            plan.env[ASSIGN_COPILOT_ENV] = "true"
        if plan.handler_config:
            plan.env[HANDLER_CONFIG_ENV] = json.dumps(plan.handler_config, sort_keys=True)
        if plan.project_handler_config:
            plan.env[PROJECT_HANDLER_CONFIG_ENV] = json.dumps(
                plan.project_handler_config, sort_keys=True
            )
        if config.messages is not None:
            messages = config.messages.to_json_dict()
            if messages:
                plan.env[MESSAGES_ENV] = json.dumps(messages, sort_keys=True)

        logger.info(
            f"Compiled safe outputs: {len(plan.handler_config)} handlers, "
            f"{len(plan.project_handler_config)} project handlers, staged={plan.staged}"
        )
        return plan


__all__ = [
    "ASSIGN_COPILOT_ENV",
    "HANDLER_CONFIG_ENV",
    "MESSAGES_ENV",
    "PROJECT_HANDLER_CONFIG_ENV",
    "STAGED_ENV",
    "SafeOutputsCompiler",
    "SafeOutputsPlan",
    "has_copilot_assignee",
]
