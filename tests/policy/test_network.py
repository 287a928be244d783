"""Tests for network permission extraction and firewall validation."""

import logging

import pytest

from flowguard.errors import NetworkSupportError, ValidationError
from flowguard.policy.models import FirewallConfig, NetworkPermissions
from flowguard.policy.network import (
    awf_image_tag,
    check_network_support,
    default_network_permissions,
    extract_firewall_config,
    extract_network_permissions,
    has_network_restrictions,
    ssl_bump_args,
    validate_firewall_log_level,
    validate_network_firewall_config,
)

pytestmark = pytest.mark.unit


class TestExtractNetworkPermissions:
    """Tests for extract_network_permissions."""

    def test_missing_key_is_absent(self):
        assert extract_network_permissions({"name": "x"}) is None

    def test_defaults_string(self):
        network = extract_network_permissions({"network": "defaults"})
        assert network is not None
        assert network.allowed == ["defaults"]
        assert network.explicitly_defined is True
        assert not network.is_deny_all

    def test_unknown_string_is_absent(self):
        assert extract_network_permissions({"network": "everything"}) is None

    def test_non_mapping_is_absent(self):
        assert extract_network_permissions({"network": 42}) is None
        assert extract_network_permissions({"network": ["example.com"]}) is None

    def test_empty_mapping_is_deny_all(self):
        """network: {} allows no egress at all."""
        network = extract_network_permissions({"network": {}})
        assert network is not None
        assert network.allowed == []
        assert network.is_deny_all

    def test_allowed_and_blocked_keep_string_items(self):
        network = extract_network_permissions(
            {"network": {"allowed": ["example.com", 7, "*.github.com"], "blocked": ["evil.com"]}}
        )
        assert network.allowed == ["example.com", "*.github.com"]
        assert network.blocked == ["evil.com"]
        assert network.firewall is None

    def test_firewall_block_is_extracted(self):
        network = extract_network_permissions(
            {"network": {"allowed": ["defaults"], "firewall": {"version": "v1.0.0"}}}
        )
        assert network.firewall == FirewallConfig(version="v1.0.0")

    def test_default_network_permissions_not_explicit(self):
        network = default_network_permissions()
        assert network.allowed == ["defaults"]
        assert network.explicitly_defined is False
        assert not network.is_deny_all

    @pytest.mark.parametrize(
        "frontmatter",
        [
            {"network": "defaults"},
            {"network": {}},
            {"network": {"allowed": ["example.com"], "blocked": ["bad.example.com"]}},
            {
                "network": {
                    "allowed": ["defaults", "python"],
                    "firewall": {"ssl-bump": True, "allow-urls": ["https://github.com/*"]},
                }
            },
        ],
    )
    def test_round_trip_is_idempotent(self, frontmatter):
        first = extract_network_permissions(frontmatter)
        second = extract_network_permissions({"network": first.to_frontmatter()})
        assert second == first


class TestExtractFirewallConfig:
    """Tests for extract_firewall_config."""

    @pytest.mark.parametrize("value", [None, True, {}])
    def test_enabled_with_defaults(self, value):
        assert extract_firewall_config(value) == FirewallConfig()

    @pytest.mark.parametrize("value", [False, "disable", "something-else", 3])
    def test_disabled_or_ignored(self, value):
        assert extract_firewall_config(value) is None

    def test_full_mapping(self):
        firewall = extract_firewall_config(
            {
                "args": ["--verbose", 1],
                "version": "v0.14.0",
                "log-level": "debug",
                "ssl-bump": True,
                "allow-urls": ["https://github.com/org/*"],
            }
        )
        assert firewall.args == ["--verbose"]
        assert firewall.version == "v0.14.0"
        assert firewall.log_level == "debug"
        assert firewall.ssl_bump is True
        assert firewall.allow_urls == ["https://github.com/org/*"]

    def test_numeric_version_is_coerced(self):
        assert extract_firewall_config({"version": 1.5}).version == "1.5"

    def test_non_bool_ssl_bump_and_non_list_urls_ignored(self):
        firewall = extract_firewall_config({"ssl-bump": "yes", "allow-urls": "https://x"})
        assert firewall.ssl_bump is False
        assert firewall.allow_urls == []

    def test_effective_log_level_defaults_to_info(self):
        assert FirewallConfig().effective_log_level == "info"
        assert FirewallConfig(log_level="warn").effective_log_level == "warn"


class TestValidateNetworkFirewallConfig:
    """Tests for validate_network_firewall_config."""

    def test_allow_urls_without_ssl_bump_fails(self):
        firewall = FirewallConfig(allow_urls=["https://github.com/githubnext/*"])
        with pytest.raises(ValidationError) as exc_info:
            validate_network_firewall_config(firewall)

        error = exc_info.value
        assert error.field == "network.firewall.allow-urls"
        assert error.value == "requires ssl-bump: true"
        assert "ssl-bump: true" in error.suggestion
        assert "allow-urls requires ssl-bump" in str(error)

    def test_allow_urls_with_ssl_bump_passes(self):
        validate_network_firewall_config(
            FirewallConfig(ssl_bump=True, allow_urls=["https://github.com/*"])
        )

    def test_ssl_bump_without_allow_urls_passes(self):
        validate_network_firewall_config(FirewallConfig(ssl_bump=True))

    def test_none_passes(self):
        validate_network_firewall_config(None)


class TestValidateFirewallLogLevel:
    """Tests for validate_firewall_log_level."""

    @pytest.mark.parametrize("level", ["", "debug", "info", "warn", "error"])
    def test_valid_levels(self, level):
        validate_firewall_log_level(level)

    def test_invalid_level(self):
        with pytest.raises(ValidationError, match="invalid log-level 'verbose'") as exc_info:
            validate_firewall_log_level("verbose")
        assert "debug, info, warn, error" in str(exc_info.value)


class TestFirewallArguments:
    """Tests for ssl_bump_args and awf_image_tag."""

    def test_no_args_without_ssl_bump(self):
        assert ssl_bump_args(None) is None
        assert ssl_bump_args(FirewallConfig()) is None

    def test_ssl_bump_only(self):
        assert ssl_bump_args(FirewallConfig(ssl_bump=True)) == ["--ssl-bump"]

    def test_ssl_bump_with_allow_urls(self):
        firewall = FirewallConfig(ssl_bump=True, allow_urls=["https://a/*", "https://b/*"])
        assert ssl_bump_args(firewall) == ["--ssl-bump", "--allow-urls", "https://a/*,https://b/*"]

    def test_image_tag_uses_default(self):
        assert awf_image_tag(None, "v0.13.0") == "0.13.0"
        assert awf_image_tag(FirewallConfig(), "v0.13.0") == "0.13.0"

    def test_image_tag_uses_pinned_version(self):
        assert awf_image_tag(FirewallConfig(version="v0.15.2"), "v0.13.0") == "0.15.2"


class TestNetworkRestrictions:
    """Tests for has_network_restrictions and check_network_support."""

    def test_no_network_no_restrictions(self):
        assert not has_network_restrictions(None)

    def test_defaults_only_is_not_restricted(self):
        assert not has_network_restrictions(NetworkPermissions(allowed=["defaults"]))

    def test_custom_domains_are_restricted(self):
        assert has_network_restrictions(NetworkPermissions(allowed=["example.com"]))

    def test_deny_all_is_restricted(self):
        assert has_network_restrictions(NetworkPermissions(explicitly_defined=True))

    def test_supported_engine_passes(self):
        check_network_support(
            "copilot",
            NetworkPermissions(allowed=["example.com"]),
            strict=True,
            supported_engines=["copilot"],
        )

    def test_unsupported_engine_in_strict_mode_fails(self):
        with pytest.raises(NetworkSupportError, match="engine must support firewall") as exc_info:
            check_network_support(
                "custom",
                NetworkPermissions(allowed=["example.com"]),
                strict=True,
                supported_engines=["copilot"],
            )
        assert str(exc_info.value).startswith("strict mode:")
        assert exc_info.value.engine_id == "custom"

    def test_unsupported_engine_warns_otherwise(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flowguard.policy.network"):
            check_network_support(
                "custom",
                NetworkPermissions(allowed=["example.com"]),
                strict=False,
                supported_engines=["copilot"],
            )
        assert "does not support network firewalling" in caplog.text

    def test_unrestricted_network_never_checked(self):
        check_network_support(
            "custom",
            NetworkPermissions(allowed=["defaults"]),
            strict=True,
            supported_engines=[],
        )
