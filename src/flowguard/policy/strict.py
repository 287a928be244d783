"""
Strict-mode validation.

A read-only, deny-by-default review of already-extracted permissions, network
and tool configuration. It only runs when strict mode is on and stops at the
first violation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flowguard.errors import StrictModeError
from flowguard.policy.models import NetworkPermissions
from flowguard.policy.permissions import Permissions
from flowguard.workflow import WorkflowData

logger = logging.getLogger(__name__)

# Write-by-necessity scopes that grant no write access to repository content
STRICT_WRITE_ALLOWED_SCOPES = frozenset({"id-token", "attestations", "actions", "checks"})

SAFE_OUTPUT_ALTERNATIVES = (
    "Use 'safe-outputs.create-issue', 'safe-outputs.create-pull-request', "
    "'safe-outputs.add-comment', or 'safe-outputs.update-issue' to perform write "
    "operations safely"
)


class StrictModeValidator:
    """Deny-by-default checks applied when a workflow compiles in strict mode."""

    def validate(self, data: WorkflowData) -> None:
        """
        Run all strict-mode checks.

        Raises:
            StrictModeError: On the first disallowed configuration found
        """
        if not data.strict:
            logger.debug("Strict mode disabled, skipping validation")
            return

        logger.debug("Running strict mode validation")
        self.validate_permissions(data.permissions)
        self.validate_network(data.network)
        self.validate_tools(data.tools, data.mcp_servers)
        logger.debug("Strict mode validation passed")

    def validate_permissions(self, permissions: Permissions | None) -> None:
        """Refuse write access outside the write-by-necessity scopes.

        ``write-all`` resolves to every scope at write, so it fails on
        ``contents: write``. Omitted permissions and ``read-all`` pass.
        """
        if permissions is None:
            return

        for scope in permissions.write_scopes():
            if scope in STRICT_WRITE_ALLOWED_SCOPES:
                continue
            logger.debug(f"Strict mode: refusing {scope}: write")
            raise StrictModeError(
                f"permissions.{scope}",
                "write",
                f"strict mode: write permission '{scope}: write' is not allowed for "
                f"security reasons. {SAFE_OUTPUT_ALTERNATIVES}",
                "Declare read permissions and route writes through safe-outputs.",
            )

    def validate_network(self, network: NetworkPermissions | None) -> None:
        """Refuse the bare ``*`` wildcard; subdomain globs are a narrowing and pass."""
        if network is None:
            raise StrictModeError(
                "network",
                None,
                "internal error: network permissions not initialized",
            )

        if "*" in network.allowed:
            raise StrictModeError(
                "network.allowed",
                "*",
                "strict mode: wildcard '*' is not allowed in network.allowed domains to "
                "prevent unrestricted internet access",
                "List the domains the workflow needs, e.g. 'defaults' or '*.example.com'.",
            )

    def validate_tools(self, tools: Mapping[str, Any], mcp_servers: Mapping[str, Any]) -> None:
        """Refuse repo-scoped cache memory and containerized MCP servers without a network block."""
        for instance in _cache_memory_instances(tools.get("cache-memory")):
            if instance.get("scope") == "repo":
                raise StrictModeError(
                    "tools.cache-memory.scope",
                    "repo",
                    "strict mode: cache-memory with 'scope: repo' is not allowed for "
                    "security reasons",
                    "Use 'scope: workflow' (the default).",
                )

        for name, server in mcp_servers.items():
            if not isinstance(server, Mapping):
                continue
            if "container" in server and "network" not in server:
                raise StrictModeError(
                    f"mcp-servers.{name}.network",
                    None,
                    f"strict mode: custom MCP server '{name}' with container must have "
                    "top-level network configuration for security",
                    f"Add 'network: {{allowed: [...]}}' to mcp-servers.{name}.",
                )


def _cache_memory_instances(value: Any) -> list[Mapping[str, Any]]:
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, Mapping)]
    return []


__all__ = [
    "STRICT_WRITE_ALLOWED_SCOPES",
    "StrictModeValidator",
]
