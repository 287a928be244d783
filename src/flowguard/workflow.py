"""
WorkflowData: the record one compile call builds and owns.

Constructed from the decoded frontmatter at the start of compilation and
handed through every policy pass. It is never shared between compilations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from flowguard.policy.models import NetworkPermissions, SandboxConfig
from flowguard.policy.permissions import Permissions
from flowguard.safe_outputs.models import SafeOutputsConfig

# Trigger keys that bind a run to one issue or pull request
COMMAND_TRIGGER_KEYS = ("command", "slash_command")


class WorkflowData(BaseModel):
    """Central record consumed by the policy passes."""

    name: str = ""
    on: Any = Field(default=None, description="Trigger description (string, list or mapping)")
    permissions: Permissions | None = None
    network: NetworkPermissions | None = None
    sandbox: SandboxConfig | None = None
    safe_outputs: SafeOutputsConfig | None = None
    engine_id: str | None = None
    engine_concurrency: Any = None
    concurrency: Any = Field(default=None, description="Explicit concurrency block")
    tools: dict[str, Any] = Field(default_factory=dict)
    mcp_servers: dict[str, Any] = Field(default_factory=dict)
    strict: bool = False
    trial_mode: bool = False
    trial_repo: str | None = None
    command: list[str] = Field(default_factory=list, description="Command/alias trigger names")

    @property
    def is_command_trigger(self) -> bool:
        return bool(self.command)


def trigger_events(on: Any) -> list[str]:
    """List the event names of a trigger description."""
    if isinstance(on, str):
        return [on]
    if isinstance(on, list):
        return [event for event in on if isinstance(event, str)]
    if isinstance(on, Mapping):
        return [str(event) for event in on]
    return []


def command_names(on: Any) -> list[str]:
    """Extract command/alias trigger names (``on: {command: {name: ...}}``).

    A present ``command``/``slash_command`` key always yields at least one
    entry; an unnamed command is recorded as ``""``.
    """
    if not isinstance(on, Mapping):
        return []

    names: list[str] = []
    for key in COMMAND_TRIGGER_KEYS:
        if key not in on:
            continue
        value = on[key]
        if isinstance(value, Mapping):
            value = value.get("name")

        if isinstance(value, str):
            found = [value]
        elif isinstance(value, list):
            found = [name for name in value if isinstance(name, str)]
        else:
            found = []
        names.extend(found or [""])
    return names


__all__ = [
    "COMMAND_TRIGGER_KEYS",
    "WorkflowData",
    "command_names",
    "trigger_events",
]
