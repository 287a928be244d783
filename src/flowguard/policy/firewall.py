"""
Firewall default engine.

Network restrictions imply sandboxing: when an author declares network
permissions but no agent sandbox, an AWF agent is synthesized for the engines
listed in ``FIREWALL_DEFAULT_ENGINES``. Explicit author choices (a configured
agent, a disabled agent, or unrestricted ``"*"`` egress) are never overridden.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from flowguard.policy.models import AgentSandboxConfig, FirewallConfig, NetworkPermissions, SandboxConfig

if TYPE_CHECKING:
    from flowguard.workflow import WorkflowData

logger = logging.getLogger(__name__)

# engine id -> whether the firewall default applies
FIREWALL_DEFAULT_ENGINES: Mapping[str, bool] = MappingProxyType(
    {
        "copilot": True,
        "codex": True,
        "claude": True,
    }
)


def apply_firewall_default(
    engine_id: str | None,
    network: NetworkPermissions | None,
    sandbox: SandboxConfig | None,
    engines: Mapping[str, bool] = FIREWALL_DEFAULT_ENGINES,
) -> SandboxConfig | None:
    """
    Synthesize an AWF agent sandbox when network restrictions call for one.

    Args:
        engine_id: Identity of the execution engine
        network: Declared network permissions
        sandbox: Extracted sandbox configuration
        engines: Engine id -> applicable table

    Returns:
        The sandbox configuration to use. This is the input unchanged when the
        default does not apply, otherwise a copy with ``agent`` set.
    """
    if not engines.get(engine_id or "", False):
        return sandbox

    if network is None:
        return sandbox

    if sandbox is not None and sandbox.agent is not None:
        if sandbox.agent.disabled:
            logger.debug("sandbox.agent: false is set, skipping AWF auto-enablement")
        else:
            logger.debug("sandbox.agent already configured, skipping default enablement")
        return sandbox

    if network.allows_everything:
        logger.debug("Wildcard '*' in allowed domains, skipping AWF auto-enablement")
        return sandbox

    if sandbox is None:
        logger.debug(f"Cannot enable firewall by default for {engine_id} engine: no sandbox config")
        return sandbox

    logger.info(f"Enabled firewall by default for {engine_id} engine via sandbox.agent")
    return sandbox.model_copy(update={"agent": AgentSandboxConfig(type="awf")})


def is_firewall_enabled(data: WorkflowData) -> bool:
    """The firewall is on when an agent sandbox is configured and not disabled."""
    sandbox = data.sandbox
    if sandbox is None or sandbox.agent is None:
        return False
    return not sandbox.agent.disabled


def firewall_config(data: WorkflowData) -> FirewallConfig | None:
    """Return the firewall settings that apply to the agent, if the firewall is on."""
    if not is_firewall_enabled(data):
        return None
    if data.network is not None and data.network.firewall is not None:
        return data.network.firewall
    return FirewallConfig()


__all__ = [
    "FIREWALL_DEFAULT_ENGINES",
    "apply_firewall_default",
    "firewall_config",
    "is_firewall_enabled",
]
