"""
Concurrency-group synthesis.

Maps a workflow's trigger shape to a GitHub Actions concurrency group so
overlapping runs of the same workflow serialize instead of racing on shared
state. Pull-request workflows cancel superseded runs; command-style workflows
never do.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from flowguard.workflow import trigger_events

if TYPE_CHECKING:
    from flowguard.workflow import WorkflowData

logger = logging.getLogger(__name__)

GROUP_PREFIX = "gh-aw"
WORKFLOW_KEY = "${{ github.workflow }}"
ENTITY_NUMBER_KEY = "${{ github.event.issue.number || github.event.pull_request.number }}"


@dataclass(frozen=True)
class ConcurrencyGroup:
    """
    A concurrency group description.

    ``raw`` holds an author-supplied block verbatim; when set, ``to_dict``
    returns it unchanged.
    """

    group: str
    cancel_in_progress: bool = False
    raw: Mapping[str, Any] | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        if self.raw is not None:
            return dict(self.raw)
        return {"group": self.group, "cancel-in-progress": self.cancel_in_progress}

    def render(self) -> str:
        """Render as a ``concurrency:`` YAML block."""
        block: dict[str, Any] = {"group": self.group}
        if self.raw is not None:
            block = dict(self.raw)
        elif self.cancel_in_progress:
            block["cancel-in-progress"] = True
        return yaml.safe_dump({"concurrency": block}, sort_keys=False, default_flow_style=False)


def is_pull_request_workflow(on: Any) -> bool:
    return any(event.startswith("pull_request") for event in trigger_events(on))


def is_issue_workflow(on: Any) -> bool:
    return any(event in ("issues", "issue_comment") for event in trigger_events(on))


def is_discussion_workflow(on: Any) -> bool:
    return any(event.startswith("discussion") for event in trigger_events(on))


def is_push_workflow(on: Any) -> bool:
    return "push" in trigger_events(on)


def has_special_triggers(on: Any) -> bool:
    """True for triggers bound to an issue, PR, discussion or push."""
    return (
        is_issue_workflow(on)
        or is_pull_request_workflow(on)
        or is_discussion_workflow(on)
        or is_push_workflow(on)
    )


def explicit_concurrency(value: Any) -> ConcurrencyGroup | None:
    """Wrap an author-supplied concurrency block, or None when absent."""
    if isinstance(value, str) and value:
        return ConcurrencyGroup(group=value, raw={"group": value})
    if isinstance(value, Mapping) and value:
        group = value.get("group")
        return ConcurrencyGroup(
            group=str(group) if group is not None else "",
            cancel_in_progress=value.get("cancel-in-progress") is True,
            raw=dict(value),
        )
    return None


def build_group_keys(is_command: bool) -> list[str]:
    keys = [GROUP_PREFIX, WORKFLOW_KEY]
    if is_command:
        keys.append(ENTITY_NUMBER_KEY)
    return keys


def synthesize_concurrency(
    on: Any,
    *,
    is_command: bool = False,
    explicit: Any = None,
) -> ConcurrencyGroup:
    """
    Synthesize the workflow-level concurrency group.

    Args:
        on: Trigger description (string, list or mapping of events)
        is_command: Whether the workflow is dispatched by a command/alias trigger
        explicit: Author-supplied ``concurrency`` block, passed through unchanged

    Returns:
        ConcurrencyGroup for the workflow
    """
    supplied = explicit_concurrency(explicit)
    if supplied is not None:
        logger.debug("Using explicit concurrency configuration")
        return supplied

    group = "-".join(build_group_keys(is_command))
    cancel = not is_command and is_pull_request_workflow(on)
    logger.debug(f"Synthesized concurrency group {group} (cancel-in-progress={cancel})")
    return ConcurrencyGroup(group=group, cancel_in_progress=cancel)


def synthesize_job_concurrency(data: WorkflowData) -> ConcurrencyGroup | None:
    """
    Synthesize the agent job's concurrency group.

    Engine-level concurrency passes through. Workflows bound to an issue, PR,
    discussion, push or command get none, as do workflows with no engine.
    Everything else serializes per engine.
    """
    supplied = explicit_concurrency(data.engine_concurrency)
    if supplied is not None:
        logger.debug("Using engine-configured job concurrency")
        return supplied

    if data.is_command_trigger or has_special_triggers(data.on):
        logger.debug("Workflow has entity-bound triggers, no default job concurrency")
        return None

    if not data.engine_id:
        return None

    return ConcurrencyGroup(group=f"{GROUP_PREFIX}-{data.engine_id}-{WORKFLOW_KEY}")


__all__ = [
    "ConcurrencyGroup",
    "ENTITY_NUMBER_KEY",
    "explicit_concurrency",
    "has_special_triggers",
    "is_discussion_workflow",
    "is_issue_workflow",
    "is_pull_request_workflow",
    "is_push_workflow",
    "synthesize_concurrency",
    "synthesize_job_concurrency",
]
