"""Tests for concurrency-group synthesis."""

import pytest
import yaml

from flowguard.policy.concurrency import (
    ConcurrencyGroup,
    has_special_triggers,
    is_pull_request_workflow,
    synthesize_concurrency,
    synthesize_job_concurrency,
)
from flowguard.workflow import WorkflowData

pytestmark = pytest.mark.unit

WORKFLOW_GROUP = "gh-aw-${{ github.workflow }}"
COMMAND_GROUP = (
    "gh-aw-${{ github.workflow }}-"
    "${{ github.event.issue.number || github.event.pull_request.number }}"
)


class TestSynthesizeConcurrency:
    """Tests for synthesize_concurrency."""

    def test_pull_request_cancels(self):
        group = synthesize_concurrency({"pull_request": {"types": ["opened"]}})
        assert group == ConcurrencyGroup(group=WORKFLOW_GROUP, cancel_in_progress=True)

    def test_issues_does_not_cancel(self):
        group = synthesize_concurrency({"issues": {"types": ["opened"]}})
        assert group == ConcurrencyGroup(group=WORKFLOW_GROUP, cancel_in_progress=False)

    def test_mixed_issues_and_pull_request_cancels(self):
        group = synthesize_concurrency({"issues": None, "pull_request": None})
        assert group.cancel_in_progress is True

    def test_pull_request_review_comment_counts_as_pull_request(self):
        assert synthesize_concurrency(["pull_request_review_comment"]).cancel_in_progress

    def test_string_and_list_triggers(self):
        assert synthesize_concurrency("pull_request").cancel_in_progress
        assert not synthesize_concurrency(["push", "workflow_dispatch"]).cancel_in_progress

    def test_command_trigger_keys_by_entity_and_never_cancels(self):
        group = synthesize_concurrency({"issues": None, "pull_request": None}, is_command=True)
        assert group.group == COMMAND_GROUP
        assert "issue.number" in group.group
        assert group.cancel_in_progress is False

    def test_explicit_block_passes_through(self):
        explicit = {"group": "custom-${{ github.ref }}", "cancel-in-progress": False, "extra": 1}
        group = synthesize_concurrency({"pull_request": None}, explicit=explicit)
        assert group.to_dict() == explicit

    def test_explicit_string_is_bare_group(self):
        group = synthesize_concurrency({"pull_request": None}, explicit="lane-1")
        assert group.group == "lane-1"
        assert group.to_dict() == {"group": "lane-1"}

    def test_to_dict(self):
        assert synthesize_concurrency({"pull_request": None}).to_dict() == {
            "group": WORKFLOW_GROUP,
            "cancel-in-progress": True,
        }

    def test_render(self):
        rendered = yaml.safe_load(synthesize_concurrency({"pull_request": None}).render())
        assert rendered == {"concurrency": {"group": WORKFLOW_GROUP, "cancel-in-progress": True}}
        rendered = yaml.safe_load(synthesize_concurrency({"issues": None}).render())
        assert rendered == {"concurrency": {"group": WORKFLOW_GROUP}}


class TestTriggerHelpers:
    """Tests for trigger classification."""

    def test_is_pull_request_workflow(self):
        assert is_pull_request_workflow({"pull_request_target": None})
        assert not is_pull_request_workflow({"issues": None})
        assert not is_pull_request_workflow(None)

    @pytest.mark.parametrize(
        "on",
        ["push", {"issues": None}, {"issue_comment": None}, ["discussion"], {"discussion_comment": None}],
    )
    def test_special_triggers(self, on):
        assert has_special_triggers(on)

    @pytest.mark.parametrize("on", ["workflow_dispatch", {"schedule": [{"cron": "0 0 * * *"}]}])
    def test_generic_triggers(self, on):
        assert not has_special_triggers(on)


class TestSynthesizeJobConcurrency:
    """Tests for synthesize_job_concurrency."""

    def test_generic_trigger_serializes_per_engine(self):
        data = WorkflowData(on={"workflow_dispatch": None}, engine_id="claude")
        group = synthesize_job_concurrency(data)
        assert group.group == "gh-aw-claude-${{ github.workflow }}"
        assert group.cancel_in_progress is False

    def test_special_triggers_get_none(self):
        data = WorkflowData(on={"issues": None}, engine_id="copilot")
        assert synthesize_job_concurrency(data) is None

    def test_command_trigger_gets_none(self):
        data = WorkflowData(on={"command": {"name": "fix"}}, engine_id="copilot", command=["fix"])
        assert synthesize_job_concurrency(data) is None

    def test_no_engine_gets_none(self):
        assert synthesize_job_concurrency(WorkflowData(on="workflow_dispatch")) is None

    def test_engine_concurrency_passes_through(self):
        data = WorkflowData(
            on={"issues": None},
            engine_id="copilot",
            engine_concurrency={"group": "engine-lane", "cancel-in-progress": True},
        )
        group = synthesize_job_concurrency(data)
        assert group.to_dict() == {"group": "engine-lane", "cancel-in-progress": True}
