"""Tests for WorkflowData and trigger helpers."""

import pytest

from flowguard.errors import StrictModeError, ValidationError
from flowguard.workflow import WorkflowData, command_names, trigger_events

pytestmark = pytest.mark.unit


class TestTriggerEvents:
    """Tests for trigger_events."""

    def test_shapes(self):
        assert trigger_events("push") == ["push"]
        assert trigger_events(["push", 3, "issues"]) == ["push", "issues"]
        assert trigger_events({"issues": None, "schedule": []}) == ["issues", "schedule"]
        assert trigger_events(None) == []


class TestCommandNames:
    """Tests for command_names."""

    def test_string(self):
        assert command_names({"command": "fix"}) == ["fix"]

    def test_mapping_with_name_list(self):
        assert command_names({"slash_command": {"name": ["fix", "repair"]}}) == ["fix", "repair"]

    def test_bare_command(self):
        assert command_names({"command": None}) == [""]

    def test_list_of_names(self):
        assert command_names({"command": ["fix", 3, "repair"]}) == ["fix", "repair"]

    @pytest.mark.parametrize("value", [True, [], 7, {"events": ["issues"]}])
    def test_any_present_key_is_a_command(self, value):
        assert command_names({"slash_command": value}) == [""]

    def test_no_command(self):
        assert command_names({"issues": None}) == []
        assert command_names("push") == []

    def test_is_command_trigger(self):
        assert WorkflowData(command=["fix"]).is_command_trigger
        assert not WorkflowData().is_command_trigger


class TestErrors:
    """Tests for error rendering."""

    def test_validation_error_message(self):
        error = ValidationError("sandbox.type", "gvisor", "unsupported", "Use awf.")
        assert str(error) == "invalid sandbox.type: gvisor. unsupported\n\nUse awf."
        assert error.to_dict()["suggestion"] == "Use awf."

    def test_strict_error_renders_reason(self):
        error = StrictModeError("network.allowed", "*", "strict mode: no", "hint")
        assert str(error) == "strict mode: no"
        assert error.suggestion == "hint"
