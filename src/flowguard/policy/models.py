"""
Network, firewall and sandbox policy models.

Values are frozen once extracted; the only later change is the firewall
default pass, which builds a new ``SandboxConfig`` instead of mutating one.
Every model can render itself back to its canonical frontmatter shape with
``to_frontmatter()``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Retired sandbox runtimes that are rewritten to AWF
LEGACY_SANDBOX_TYPES = frozenset({"srt", "sandbox-runtime"})
SUPPORTED_SANDBOX_TYPES = frozenset({"awf", "default"})

FIREWALL_LOG_LEVELS = ("debug", "info", "warn", "error")
DEFAULT_FIREWALL_LOG_LEVEL = "info"


class FirewallConfig(BaseModel):
    """AWF egress firewall settings.

    The firewall is enabled when this object is present on
    ``NetworkPermissions.firewall`` and disabled when it is absent.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="", description="AWF version (empty = default)")
    args: list[str] = Field(default_factory=list, description="Extra AWF arguments")
    log_level: str = Field(default="", description="debug, info, warn or error")
    ssl_bump: bool = Field(default=False, description="Enable HTTPS content inspection")
    allow_urls: list[str] = Field(
        default_factory=list,
        description="URL patterns allowed over HTTPS (requires ssl_bump)",
    )

    @property
    def effective_log_level(self) -> str:
        return self.log_level or DEFAULT_FIREWALL_LOG_LEVEL

    def to_frontmatter(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.args:
            data["args"] = list(self.args)
        if self.version:
            data["version"] = self.version
        if self.log_level:
            data["log-level"] = self.log_level
        if self.ssl_bump:
            data["ssl-bump"] = True
        if self.allow_urls:
            data["allow-urls"] = list(self.allow_urls)
        return data


class NetworkPermissions(BaseModel):
    """Declared network egress policy.

    ``explicitly_defined`` separates "no network key" from ``network: {}``;
    the latter combined with an empty ``allowed`` list means zero egress.
    """

    model_config = ConfigDict(frozen=True)

    allowed: list[str] = Field(default_factory=list)
    blocked: list[str] = Field(default_factory=list)
    firewall: FirewallConfig | None = None
    explicitly_defined: bool = False

    @property
    def is_deny_all(self) -> bool:
        return self.explicitly_defined and not self.allowed

    @property
    def allows_everything(self) -> bool:
        return "*" in self.allowed

    @property
    def uses_defaults_only(self) -> bool:
        return self.allowed == ["defaults"]

    def to_frontmatter(self) -> dict[str, Any]:
        data: dict[str, Any] = {"allowed": list(self.allowed)}
        if self.blocked:
            data["blocked"] = list(self.blocked)
        if self.firewall is not None:
            data["firewall"] = self.firewall.to_frontmatter()
        return data


class AgentSandboxConfig(BaseModel):
    """Sandbox wrapped around the agent process.

    ``disabled`` marks an explicit ``agent: false``. It only exists at
    compile time, is never serialized, and excludes every other setting.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    type: str = ""
    disabled: bool = Field(default=False, exclude=True)
    command: str = ""
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    mounts: list[str] = Field(default_factory=list)
    config: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_disabled_is_bare(self) -> AgentSandboxConfig:
        """A disabled agent cannot also carry sandbox settings."""
        if self.disabled and (
            self.id or self.type or self.command or self.args or self.env or self.mounts
        ):
            raise ValueError("a disabled agent sandbox cannot carry sandbox settings")
        return self

    @property
    def agent_type(self) -> str:
        """Effective sandbox type, preferring ``id`` over the legacy ``type``."""
        return self.id or self.type

    def to_frontmatter(self) -> Any:
        if self.disabled:
            return False
        data: dict[str, Any] = {}
        for key in ("id", "type", "command"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.args:
            data["args"] = list(self.args)
        if self.env:
            data["env"] = dict(self.env)
        if self.mounts:
            data["mounts"] = list(self.mounts)
        if self.config is not None:
            data["config"] = dict(self.config)
        return data


class MCPGatewayConfig(BaseModel):
    """Runtime settings for the MCP gateway container."""

    model_config = ConfigDict(frozen=True)

    container: str = ""
    version: str = ""
    entrypoint: str = ""
    port: int | None = None
    api_key: str = ""
    domain: str = ""
    args: list[str] = Field(default_factory=list)
    entrypoint_args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    mounts: list[str] = Field(default_factory=list)
    payload_dir: str = ""

    def to_frontmatter(self) -> dict[str, Any]:
        keys = {
            "container": "container",
            "version": "version",
            "entrypoint": "entrypoint",
            "port": "port",
            "api_key": "api-key",
            "domain": "domain",
            "args": "args",
            "entrypoint_args": "entrypointArgs",
            "env": "env",
            "mounts": "mounts",
            "payload_dir": "payloadDir",
        }
        data: dict[str, Any] = {}
        for attr, key in keys.items():
            value = getattr(self, attr)
            if value or (attr == "port" and value is not None):
                data[key] = value
        return data


class SandboxConfig(BaseModel):
    """Top-level ``sandbox`` configuration.

    New format: ``{agent: ..., mcp: ...}``. Legacy format: a bare type string
    or ``{type, config}``.
    """

    model_config = ConfigDict(frozen=True)

    agent: AgentSandboxConfig | None = None
    mcp: MCPGatewayConfig | None = None
    type: str = ""
    config: dict[str, Any] | None = None

    @property
    def agent_disabled(self) -> bool:
        return self.agent is not None and self.agent.disabled

    def to_frontmatter(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.agent is not None:
            data["agent"] = self.agent.to_frontmatter()
        if self.mcp is not None:
            data["mcp"] = self.mcp.to_frontmatter()
        if self.type:
            data["type"] = self.type
        if self.config is not None:
            data["config"] = dict(self.config)
        return data


DISABLED_AGENT = AgentSandboxConfig(disabled=True)


__all__ = [
    "DEFAULT_FIREWALL_LOG_LEVEL",
    "DISABLED_AGENT",
    "FIREWALL_LOG_LEVELS",
    "LEGACY_SANDBOX_TYPES",
    "SUPPORTED_SANDBOX_TYPES",
    "AgentSandboxConfig",
    "FirewallConfig",
    "MCPGatewayConfig",
    "NetworkPermissions",
    "SandboxConfig",
]
