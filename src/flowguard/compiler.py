"""
Workflow security policy compiler.

Runs the policy passes over one decoded frontmatter mapping, in order:
extraction, sandbox and firewall validation, the firewall default, the
network support check, strict mode, the safe-outputs plan and concurrency.
A compiler instance holds only settings; every call builds its own
WorkflowData, so one instance can compile any number of workflows.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flowguard.config.app import FlowguardConfig
from flowguard.errors import SafeOutputConfigError
from flowguard.policy.concurrency import (
    ConcurrencyGroup,
    synthesize_concurrency,
    synthesize_job_concurrency,
)
from flowguard.policy.firewall import apply_firewall_default, firewall_config, is_firewall_enabled
from flowguard.policy.models import SandboxConfig
from flowguard.policy.network import (
    awf_image_tag,
    check_network_support,
    default_network_permissions,
    extract_network_permissions,
    ssl_bump_args,
    validate_firewall_log_level,
    validate_network_firewall_config,
)
from flowguard.policy.permissions import parse_permissions
from flowguard.policy.sandbox import (
    apply_sandbox_defaults,
    extract_sandbox_config,
    migrate_sandbox_types,
    validate_sandbox_config,
)
from flowguard.policy.strict import StrictModeValidator
from flowguard.policy.toolsets import infer_compatible_toolsets
from flowguard.safe_outputs.compiler import SafeOutputsCompiler, SafeOutputsPlan
from flowguard.safe_outputs.parser import extract_safe_outputs_config
from flowguard.utils.values import bool_value, string_value
from flowguard.workflow import WorkflowData, command_names

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "copilot"


@dataclass
class CompiledPolicy:
    """Everything the job emission layer needs from the policy passes."""

    workflow: WorkflowData
    safe_outputs: SafeOutputsPlan
    concurrency: ConcurrencyGroup
    job_concurrency: ConcurrencyGroup | None = None
    firewall_enabled: bool = False
    ssl_bump_args: list[str] | None = None
    awf_image_tag: str = ""
    toolsets: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.workflow
        return {
            "name": data.name,
            "engine": data.engine_id,
            "strict": data.strict,
            "trial_mode": data.trial_mode,
            "permissions": data.permissions.to_frontmatter() if data.permissions else None,
            "network": data.network.to_frontmatter() if data.network else None,
            "sandbox": data.sandbox.to_frontmatter() if data.sandbox else None,
            "safe_outputs_config": (
                data.safe_outputs.to_frontmatter() if data.safe_outputs else None
            ),
            "firewall": {
                "enabled": self.firewall_enabled,
                "image_tag": self.awf_image_tag,
                "ssl_bump_args": self.ssl_bump_args,
            },
            "safe_outputs": self.safe_outputs.to_dict(),
            "concurrency": self.concurrency.to_dict(),
            "job_concurrency": self.job_concurrency.to_dict() if self.job_concurrency else None,
            "toolsets": list(self.toolsets),
        }


def frontmatter_on(frontmatter: Mapping[str, Any]) -> Any:
    """Return the trigger block. YAML 1.1 parses a bare ``on`` key as True."""
    if "on" in frontmatter:
        return frontmatter["on"]
    return frontmatter.get(True)  # type: ignore[call-overload]


def extract_engine(value: Any) -> tuple[str | None, Any]:
    """Return (engine id, engine-level concurrency) from the ``engine`` field."""
    if value is None:
        return DEFAULT_ENGINE, None
    if isinstance(value, str):
        return value, None
    if isinstance(value, Mapping):
        return string_value(value.get("id")) or DEFAULT_ENGINE, value.get("concurrency")
    return None, None


def github_read_only(tools: Mapping[str, Any]) -> bool:
    github = tools.get("github")
    if isinstance(github, Mapping):
        return bool_value(github.get("read-only")) or False
    return False


class WorkflowCompiler:
    """
    Compiles a workflow's frontmatter into its security policy.

    Example:
        compiler = WorkflowCompiler()
        policy = compiler.compile(yaml.safe_load(text))
        print(policy.safe_outputs.env)
    """

    def __init__(self, config: FlowguardConfig | None = None):
        self.config = config or FlowguardConfig()
        self.strict_validator = StrictModeValidator()

    def build_workflow_data(
        self,
        frontmatter: Mapping[str, Any],
        strict: bool | None = None,
    ) -> WorkflowData:
        """
        Extract the policy-relevant fields of the frontmatter.

        Raises:
            SafeOutputConfigError: If a safe-output action targets the wildcard repository
        """
        on = frontmatter_on(frontmatter)
        engine_id, engine_concurrency = extract_engine(frontmatter.get("engine"))

        if strict is None:
            strict = bool_value(frontmatter.get("strict"))
        if strict is None:
            strict = self.config.strict

        network = extract_network_permissions(frontmatter)
        if network is None:
            logger.debug("No network block, applying default network permissions")
            network = default_network_permissions()

        extraction = extract_safe_outputs_config(frontmatter)
        if extraction.rejected:
            action, reason = next(iter(extraction.rejected.items()))
            raise SafeOutputConfigError(action, reason)

        tools = frontmatter.get("tools")
        mcp_servers = frontmatter.get("mcp-servers")

        return WorkflowData(
            name=string_value(frontmatter.get("name")) or "",
            on=on,
            permissions=parse_permissions(frontmatter.get("permissions")),
            network=network,
            sandbox=migrate_sandbox_types(extract_sandbox_config(frontmatter)),
            safe_outputs=extraction.config,
            engine_id=engine_id,
            engine_concurrency=engine_concurrency,
            concurrency=frontmatter.get("concurrency"),
            tools=dict(tools) if isinstance(tools, Mapping) else {},
            mcp_servers=dict(mcp_servers) if isinstance(mcp_servers, Mapping) else {},
            strict=strict,
            trial_mode=self.config.trial_mode,
            trial_repo=self.config.trial_repo,
            command=command_names(on),
        )

    def validate(self, frontmatter: Mapping[str, Any], strict: bool | None = None) -> WorkflowData:
        """
        Run extraction and every validation pass.

        Returns:
            The WorkflowData with the firewall and sandbox defaults applied

        Raises:
            PolicyError: On the first policy violation
        """
        data = self.build_workflow_data(frontmatter, strict=strict)

        validate_sandbox_config(data.sandbox)

        firewall = data.network.firewall if data.network else None
        validate_network_firewall_config(firewall)
        if firewall is not None:
            validate_firewall_log_level(firewall.log_level)

        engines = {engine: True for engine in self.config.firewall_engines}
        data.sandbox = apply_firewall_default(
            data.engine_id, data.network, data.sandbox or SandboxConfig(), engines=engines
        )
        data.sandbox = apply_sandbox_defaults(data.sandbox)

        check_network_support(
            data.engine_id,
            data.network,
            strict=data.strict,
            supported_engines=self.config.firewall_engine_support,
        )

        self.strict_validator.validate(data)
        return data

    def compile(self, frontmatter: Mapping[str, Any], strict: bool | None = None) -> CompiledPolicy:
        """
        Compile a workflow's frontmatter into its security policy.

        Args:
            frontmatter: Decoded frontmatter mapping
            strict: Force strict mode on or off (None: frontmatter, then config)

        Returns:
            CompiledPolicy

        Raises:
            PolicyError: On the first policy violation
        """
        data = self.validate(frontmatter, strict=strict)

        safe_outputs = SafeOutputsCompiler(trial_mode=data.trial_mode).compile(data.safe_outputs)
        concurrency = synthesize_concurrency(
            data.on,
            is_command=data.is_command_trigger,
            explicit=data.concurrency,
        )

        firewall = firewall_config(data)
        policy = CompiledPolicy(
            workflow=data,
            safe_outputs=safe_outputs,
            concurrency=concurrency,
            job_concurrency=synthesize_job_concurrency(data),
            firewall_enabled=is_firewall_enabled(data),
            ssl_bump_args=ssl_bump_args(firewall),
            awf_image_tag=awf_image_tag(firewall, self.config.default_firewall_version),
            toolsets=infer_compatible_toolsets(data.permissions, github_read_only(data.tools)),
        )
        logger.info(
            f"Compiled workflow '{data.name or '<unnamed>'}' "
            f"(engine={data.engine_id}, strict={data.strict}, firewall={policy.firewall_enabled})"
        )
        return policy


__all__ = [
    "CompiledPolicy",
    "DEFAULT_ENGINE",
    "WorkflowCompiler",
    "extract_engine",
    "frontmatter_on",
]
