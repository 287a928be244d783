"""
Sandbox configuration extraction and defaults.

``sandbox: true`` is treated as unconfigured while ``sandbox: false`` (and
``sandbox.agent: false``) produce a disabled-agent marker that validation
rejects. Disabling the sandbox is being retired in one direction only, so the
asymmetry is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flowguard.errors import ValidationError
from flowguard.policy.models import (
    DISABLED_AGENT,
    LEGACY_SANDBOX_TYPES,
    SUPPORTED_SANDBOX_TYPES,
    AgentSandboxConfig,
    MCPGatewayConfig,
    SandboxConfig,
)
from flowguard.utils.values import int_value, string_list, string_map, string_value

logger = logging.getLogger(__name__)

DEFAULT_SANDBOX_TYPE = "awf"


def extract_sandbox_config(frontmatter: Mapping[str, Any]) -> SandboxConfig | None:
    """
    Extract the ``sandbox`` key.

    Returns:
        SandboxConfig, or None when missing, ``true`` or malformed
    """
    if "sandbox" not in frontmatter:
        return None

    sandbox = frontmatter["sandbox"]

    if isinstance(sandbox, bool):
        if sandbox:
            logger.debug("sandbox: true is treated as unconfigured")
            return None
        return SandboxConfig(agent=DISABLED_AGENT)

    if isinstance(sandbox, str):
        if sandbox in SUPPORTED_SANDBOX_TYPES:
            return SandboxConfig(type=sandbox)
        logger.debug(f"Unsupported sandbox type string: {sandbox}")
        return None

    if not isinstance(sandbox, Mapping):
        return None

    agent = None
    if "agent" in sandbox:
        if sandbox["agent"] is False:
            # The disabled marker wins over any other sandbox settings
            return SandboxConfig(agent=DISABLED_AGENT)
        agent = extract_agent_sandbox_config(sandbox["agent"])

    mcp = extract_mcp_gateway_config(sandbox["mcp"]) if "mcp" in sandbox else None

    if agent is not None:
        return SandboxConfig(agent=agent, mcp=mcp)

    legacy_type = string_value(sandbox.get("type")) or ""
    legacy_config = sandbox.get("config")
    return SandboxConfig(
        mcp=mcp,
        type=legacy_type,
        config=dict(legacy_config) if isinstance(legacy_config, Mapping) else None,
    )


def extract_agent_sandbox_config(value: Any) -> AgentSandboxConfig | None:
    """Extract ``sandbox.agent`` given as a type string or an options mapping."""
    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        if value in SUPPORTED_SANDBOX_TYPES:
            return AgentSandboxConfig(type=value)
        return None

    if not isinstance(value, Mapping):
        return None

    config = value.get("config")
    return AgentSandboxConfig(
        id=string_value(value.get("id")) or "",
        type=string_value(value.get("type")) or "",
        command=string_value(value.get("command")) or "",
        args=string_list(value.get("args")) or [],
        env=string_map(value.get("env")) or {},
        mounts=string_list(value.get("mounts")) or [],
        config=dict(config) if isinstance(config, Mapping) else None,
    )


def extract_mcp_gateway_config(value: Any) -> MCPGatewayConfig | None:
    """Extract ``sandbox.mcp``; ``null``, ``false`` and non-mappings are ignored."""
    if not isinstance(value, Mapping):
        return None

    return MCPGatewayConfig(
        container=string_value(value.get("container")) or "",
        version=string_value(value.get("version")) or "",
        entrypoint=string_value(value.get("entrypoint")) or "",
        port=int_value(value.get("port")),
        api_key=string_value(value.get("api-key")) or "",
        domain=string_value(value.get("domain")) or "",
        args=string_list(value.get("args")) or [],
        entrypoint_args=string_list(value.get("entrypointArgs")) or [],
        env=string_map(value.get("env")) or {},
        mounts=string_list(value.get("mounts")) or [],
        payload_dir=string_value(value.get("payloadDir")) or "",
    )


def migrate_sandbox_types(sandbox: SandboxConfig | None) -> SandboxConfig | None:
    """Rewrite retired sandbox runtime types to AWF."""
    if sandbox is None:
        return None

    updates: dict[str, Any] = {}
    if sandbox.type in LEGACY_SANDBOX_TYPES:
        logger.info(f"Migrating legacy sandbox type from {sandbox.type} to awf")
        updates["type"] = DEFAULT_SANDBOX_TYPE

    agent = sandbox.agent
    if agent is not None and not agent.disabled:
        agent_updates: dict[str, Any] = {}
        if agent.type in LEGACY_SANDBOX_TYPES:
            logger.info(f"Migrating agent type from {agent.type} to awf")
            agent_updates["type"] = DEFAULT_SANDBOX_TYPE
        if agent.id in LEGACY_SANDBOX_TYPES:
            logger.info(f"Migrating agent id from {agent.id} to awf")
            agent_updates["id"] = DEFAULT_SANDBOX_TYPE
        if agent_updates:
            updates["agent"] = agent.model_copy(update=agent_updates)

    return sandbox.model_copy(update=updates) if updates else sandbox


def apply_sandbox_defaults(sandbox: SandboxConfig | None) -> SandboxConfig:
    """
    Fill in the default AWF agent sandbox.

    A disabled agent and a legacy ``type`` are explicit choices and are kept.
    """
    sandbox = migrate_sandbox_types(sandbox)

    if sandbox is None:
        logger.debug("No sandbox config found, creating default with agent: awf")
        return SandboxConfig(agent=AgentSandboxConfig(type=DEFAULT_SANDBOX_TYPE))

    if sandbox.agent_disabled:
        return sandbox

    if sandbox.type:
        logger.debug(f"Sandbox config uses legacy type {sandbox.type}, preserving it")
        return sandbox

    if sandbox.agent is None:
        return sandbox.model_copy(update={"agent": AgentSandboxConfig(type=DEFAULT_SANDBOX_TYPE)})

    return sandbox


def validate_sandbox_config(sandbox: SandboxConfig | None) -> None:
    """
    Validate the sandbox configuration.

    Raises:
        ValidationError: If the agent sandbox is disabled or uses an unknown type
    """
    if sandbox is None:
        return

    if sandbox.agent_disabled:
        raise ValidationError(
            "sandbox.agent",
            "false",
            "disabling the sandbox is no longer supported. The agent always runs "
            "inside the AWF sandbox",
            "Remove 'sandbox: false' / 'sandbox.agent: false' and restrict egress "
            "with the top-level 'network' field instead.",
        )

    agent = sandbox.agent
    if agent is not None and agent.agent_type and agent.agent_type not in SUPPORTED_SANDBOX_TYPES:
        raise ValidationError(
            "sandbox.agent",
            agent.agent_type,
            f"unsupported sandbox type '{agent.agent_type}'",
            "Use 'awf' (or 'default').",
        )

    if sandbox.type and sandbox.type not in SUPPORTED_SANDBOX_TYPES:
        raise ValidationError(
            "sandbox.type",
            sandbox.type,
            f"unsupported sandbox type '{sandbox.type}'",
            "Use 'awf' (or 'default').",
        )


__all__ = [
    "DEFAULT_SANDBOX_TYPE",
    "apply_sandbox_defaults",
    "extract_agent_sandbox_config",
    "extract_mcp_gateway_config",
    "extract_sandbox_config",
    "migrate_sandbox_types",
    "validate_sandbox_config",
]
