"""
Network egress and firewall policy.

Extraction turns the ``network`` frontmatter key into ``NetworkPermissions``;
validation checks the firewall settings that have hard dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from flowguard.errors import NetworkSupportError, ValidationError
from flowguard.policy.models import FIREWALL_LOG_LEVELS, FirewallConfig, NetworkPermissions
from flowguard.utils.values import bool_value, string_list

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_SENTINEL = "defaults"
DOCS_NETWORK_URL = "https://github.github.com/gh-aw/reference/network/"


def extract_network_permissions(frontmatter: Mapping[str, Any]) -> NetworkPermissions | None:
    """
    Extract network permissions from the frontmatter.

    Accepted shapes:
        - ``network: defaults`` - the default domain set
        - ``network: {allowed: [...], blocked: [...], firewall: ...}``
        - ``network: {}`` - no egress at all

    Args:
        frontmatter: Decoded workflow frontmatter

    Returns:
        NetworkPermissions, or None when the key is missing or malformed
    """
    if "network" not in frontmatter:
        logger.debug("No network permissions found in frontmatter")
        return None

    network = frontmatter["network"]

    if isinstance(network, str):
        if network == DEFAULT_NETWORK_SENTINEL:
            return NetworkPermissions(allowed=[DEFAULT_NETWORK_SENTINEL], explicitly_defined=True)
        logger.debug(f"Unknown network string format: {network}")
        return None

    if not isinstance(network, Mapping):
        logger.debug(f"Ignoring network value of type {type(network).__name__}")
        return None

    allowed = string_list(network.get("allowed")) or []
    blocked = string_list(network.get("blocked")) or []
    firewall = extract_firewall_config(network["firewall"]) if "firewall" in network else None

    logger.debug(
        f"Extracted network permissions: {len(allowed)} allowed, {len(blocked)} blocked, "
        f"firewall={'on' if firewall else 'off'}"
    )
    return NetworkPermissions(
        allowed=allowed,
        blocked=blocked,
        firewall=firewall,
        explicitly_defined=True,
    )


def extract_firewall_config(value: Any) -> FirewallConfig | None:
    """
    Extract the firewall setting from ``network.firewall``.

    ``null``, ``{}`` and ``true`` enable the firewall with default settings;
    ``false`` and ``"disable"`` turn it off. Any other string is ignored.
    """
    if value is None or value is True:
        return FirewallConfig()
    if value is False:
        return None

    if isinstance(value, str):
        if value != "disable":
            logger.debug(f"Unknown firewall string format: {value}")
        return None

    if not isinstance(value, Mapping):
        return None

    version = value.get("version")
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        version = str(version)

    log_level = value.get("log-level")

    return FirewallConfig(
        args=string_list(value.get("args")) or [],
        version=version if isinstance(version, str) else "",
        log_level=log_level if isinstance(log_level, str) else "",
        ssl_bump=bool_value(value.get("ssl-bump")) or False,
        allow_urls=string_list(value.get("allow-urls")) or [],
    )


def default_network_permissions() -> NetworkPermissions:
    """Network policy applied when the workflow declares none."""
    return NetworkPermissions(allowed=[DEFAULT_NETWORK_SENTINEL])


def has_network_restrictions(network: NetworkPermissions | None) -> bool:
    """Check whether the policy narrows egress beyond the default domain set."""
    if network is None:
        return False
    if network.allowed and not network.uses_defaults_only:
        return True
    return network.is_deny_all


def validate_network_firewall_config(firewall: FirewallConfig | None) -> None:
    """
    Validate firewall settings that depend on each other.

    Raises:
        ValidationError: If allow-urls is set without ssl-bump
    """
    if firewall is None:
        return

    if firewall.allow_urls and not firewall.ssl_bump:
        logger.warning(
            f"allow-urls specified without ssl-bump ({len(firewall.allow_urls)} URLs)"
        )
        raise ValidationError(
            "network.firewall.allow-urls",
            "requires ssl-bump: true",
            "allow-urls requires ssl-bump: true to function. SSL Bump enables HTTPS "
            "content inspection, which is necessary for URL path filtering",
            "Enable SSL Bump in your firewall configuration:\n\n"
            "network:\n"
            "  firewall:\n"
            "    ssl-bump: true\n"
            "    allow-urls:\n"
            '      - "https://github.com/githubnext/*"\n\n'
            f"See: {DOCS_NETWORK_URL}",
        )


def validate_firewall_log_level(log_level: str) -> None:
    """
    Validate the AWF log level. Empty means the default (``info``).

    Raises:
        ValidationError: If the level is not one of debug, info, warn, error
    """
    if not log_level or log_level in FIREWALL_LOG_LEVELS:
        return
    options = ", ".join(FIREWALL_LOG_LEVELS)
    raise ValidationError(
        "network.firewall.log-level",
        log_level,
        f"invalid log-level '{log_level}', must be one of: {options}",
    )


def ssl_bump_args(firewall: FirewallConfig | None) -> list[str] | None:
    """Build the AWF arguments enabling SSL Bump and URL allowlisting."""
    if firewall is None or not firewall.ssl_bump:
        return None

    args = ["--ssl-bump"]
    if firewall.allow_urls:
        allow_urls = ",".join(firewall.allow_urls)
        args.extend(["--allow-urls", allow_urls])
        logger.debug(f"Added --allow-urls: {allow_urls}")
    return args


def awf_image_tag(firewall: FirewallConfig | None, default_version: str) -> str:
    """Return the AWF image tag: the pinned version without its ``v`` prefix."""
    version = firewall.version if firewall is not None and firewall.version else default_version
    return version.removeprefix("v")


def check_network_support(
    engine_id: str | None,
    network: NetworkPermissions | None,
    *,
    strict: bool,
    supported_engines: Iterable[str],
) -> None:
    """
    Check that the engine can enforce declared network restrictions.

    In strict mode an unsupported engine is an error; otherwise a warning is
    logged and compilation continues.

    Raises:
        NetworkSupportError: In strict mode when the engine lacks firewall support
    """
    if not has_network_restrictions(network):
        return
    if engine_id in set(supported_engines):
        return

    if strict:
        raise NetworkSupportError(
            engine_id or "",
            "strict mode: engine must support firewall when network restrictions "
            "(network.allowed) are set",
        )
    logger.warning(
        f"Selected engine '{engine_id}' does not support network firewalling; "
        "network restrictions will not be enforced"
    )


__all__ = [
    "DEFAULT_NETWORK_SENTINEL",
    "awf_image_tag",
    "check_network_support",
    "default_network_permissions",
    "extract_firewall_config",
    "extract_network_permissions",
    "has_network_restrictions",
    "ssl_bump_args",
    "validate_firewall_log_level",
    "validate_network_firewall_config",
]
