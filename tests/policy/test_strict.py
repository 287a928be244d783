"""Tests for the strict-mode validator."""

import pytest

from flowguard.errors import StrictModeError, ValidationError
from flowguard.policy.models import NetworkPermissions
from flowguard.policy.permissions import parse_permissions
from flowguard.policy.strict import StrictModeValidator
from flowguard.workflow import WorkflowData

pytestmark = pytest.mark.unit

DEFAULT_NETWORK = NetworkPermissions(allowed=["defaults"])


def strict_data(**kwargs) -> WorkflowData:
    kwargs.setdefault("network", DEFAULT_NETWORK)
    return WorkflowData(strict=True, **kwargs)


@pytest.fixture
def validator() -> StrictModeValidator:
    return StrictModeValidator()


class TestStrictModeToggle:
    """Strict checks only run when strict mode is on."""

    def test_non_strict_skips_everything(self, validator):
        validator.validate(
            WorkflowData(
                strict=False,
                permissions=parse_permissions("write-all"),
                network=NetworkPermissions(allowed=["*"]),
            )
        )

    def test_errors_are_validation_errors(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(strict_data(permissions=parse_permissions({"contents": "write"})))


class TestPermissions:
    """Strict permission checks."""

    @pytest.mark.parametrize("scope", ["contents", "issues", "pull-requests", "discussions"])
    def test_write_refused(self, validator, scope):
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(permissions=parse_permissions({scope: "write"})))

        message = str(exc_info.value)
        assert message.startswith(f"strict mode: write permission '{scope}: write' is not allowed")
        assert "safe-outputs.create-issue" in message
        assert exc_info.value.field == f"permissions.{scope}"

    @pytest.mark.parametrize("scope", ["id-token", "attestations", "actions", "checks"])
    def test_write_by_necessity_scopes_allowed(self, validator, scope):
        validator.validate(strict_data(permissions=parse_permissions({scope: "write"})))

    def test_write_all_fails_on_contents(self, validator):
        with pytest.raises(StrictModeError, match="'contents: write'"):
            validator.validate(strict_data(permissions=parse_permissions("write-all")))

    def test_read_all_passes(self, validator):
        validator.validate(strict_data(permissions=parse_permissions("read-all")))

    def test_omitted_permissions_pass(self, validator):
        validator.validate(strict_data())

    def test_first_write_scope_is_reported(self, validator):
        permissions = parse_permissions({"issues": "write", "contents": "write"})
        with pytest.raises(StrictModeError, match="'contents: write'"):
            validator.validate(strict_data(permissions=permissions))

    def test_allowed_write_scope_does_not_mask_contents(self, validator):
        permissions = parse_permissions({"id-token": "write", "contents": "write"})
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(permissions=permissions))
        assert "'contents: write'" in str(exc_info.value)
        assert exc_info.value.field == "permissions.contents"


class TestNetwork:
    """Strict network checks."""

    def test_uninitialized_network_is_internal_error(self, validator):
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(WorkflowData(strict=True, network=None))
        assert str(exc_info.value) == "internal error: network permissions not initialized"

    def test_wildcard_refused(self, validator):
        network = NetworkPermissions(allowed=["defaults", "*"], explicitly_defined=True)
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(network=network))
        assert str(exc_info.value) == (
            "strict mode: wildcard '*' is not allowed in network.allowed domains to "
            "prevent unrestricted internet access"
        )

    def test_wildcard_between_domains_refused(self, validator):
        network = NetworkPermissions(allowed=["a.com", "*", "b.com"], explicitly_defined=True)
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(network=network))
        assert str(exc_info.value) == (
            "strict mode: wildcard '*' is not allowed in network.allowed domains to "
            "prevent unrestricted internet access"
        )
        assert exc_info.value.field == "network.allowed"

    def test_subdomain_wildcard_allowed(self, validator):
        network = NetworkPermissions(allowed=["*.example.com"], explicitly_defined=True)
        validator.validate(strict_data(network=network))

    def test_deny_all_allowed(self, validator):
        validator.validate(strict_data(network=NetworkPermissions(explicitly_defined=True)))


class TestTools:
    """Strict tool checks."""

    def test_repo_scoped_cache_memory_refused(self, validator):
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(tools={"cache-memory": {"scope": "repo"}}))
        assert str(exc_info.value) == (
            "strict mode: cache-memory with 'scope: repo' is not allowed for security reasons"
        )

    def test_repo_scope_in_list_refused(self, validator):
        tools = {"cache-memory": [{"id": "a"}, {"id": "b", "scope": "repo"}]}
        with pytest.raises(StrictModeError, match="scope: repo"):
            validator.validate(strict_data(tools=tools))

    @pytest.mark.parametrize(
        "cache_memory",
        [True, {"scope": "workflow"}, {"key": "memo"}, [{"id": "a", "scope": "workflow"}]],
    )
    def test_other_cache_memory_allowed(self, validator, cache_memory):
        validator.validate(strict_data(tools={"cache-memory": cache_memory}))

    def test_container_mcp_server_without_network_refused(self, validator):
        servers = {"scanner": {"container": "ghcr.io/example/scanner:1.0"}}
        with pytest.raises(StrictModeError) as exc_info:
            validator.validate(strict_data(mcp_servers=servers))
        assert str(exc_info.value) == (
            "strict mode: custom MCP server 'scanner' with container must have top-level "
            "network configuration for security"
        )

    def test_container_mcp_server_with_network_allowed(self, validator):
        servers = {
            "scanner": {
                "container": "ghcr.io/example/scanner:1.0",
                "network": {"allowed": ["api.example.com"]},
            }
        }
        validator.validate(strict_data(mcp_servers=servers))

    def test_command_mcp_server_allowed(self, validator):
        validator.validate(strict_data(mcp_servers={"local": {"command": "npx", "args": ["srv"]}}))


class TestCheckOrder:
    """Permissions are checked before network, network before tools."""

    def test_permissions_reported_first(self, validator):
        data = strict_data(
            permissions=parse_permissions({"issues": "write"}),
            network=NetworkPermissions(allowed=["*"]),
            tools={"cache-memory": {"scope": "repo"}},
        )
        with pytest.raises(StrictModeError, match="write permission"):
            validator.validate(data)

    def test_network_reported_before_tools(self, validator):
        data = strict_data(
            network=NetworkPermissions(allowed=["*"]),
            tools={"cache-memory": {"scope": "repo"}},
        )
        with pytest.raises(StrictModeError, match="wildcard"):
            validator.validate(data)
