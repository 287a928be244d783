"""
Safe-output action configurations.

Each output action kind is one variant of the ``SafeOutputAction`` tagged
union, discriminated on ``kind``. All variants share the base fields (``max``,
``staged``, ``github-token``); actions that can write to another repository
also carry the target fields (``target``, ``target-repo``, ``allowed-repos``).

Raw frontmatter options are normalized by ``normalize_input`` before field
validation: every field has a coercer, and a value of the wrong shape is
dropped so the field keeps its default. ``max`` falls back to the action's
``DEFAULT_MAX`` and is clamped to ``MAX_CEILING`` when one is set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flowguard.utils.values import (
    bool_value,
    int_value,
    literal_int,
    participants,
    string_list,
    string_value,
    templatable_bool,
    templatable_bool_json,
    templatable_int,
    templatable_int_frontmatter,
    templatable_int_json,
)

logger = logging.getLogger(__name__)

Coercer = Callable[[Any], Any]


def enabled_by_key(value: Any) -> bool:
    """Fields like ``title:`` are switched on by their presence, even with a null value."""
    return value is not False


def target_value(value: Any) -> str | None:
    """Read ``target``: ``triggering``, ``*`` or an explicit issue/PR number."""
    number = int_value(value)
    if number is not None:
        return str(number)
    return string_value(value)


def name_or_number(value: Any) -> str | None:
    number = int_value(value)
    if number is not None:
        return str(number)
    return string_value(value)


def one_of(*options: str) -> Coercer:
    def coerce(value: Any) -> str | None:
        return value if value in options else None

    return coerce


class BaseSafeOutputConfig(BaseModel):
    """Fields shared by every safe-output action."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Default for ``max`` when not configured; None means unlimited
    DEFAULT_MAX: ClassVar[int | None] = 1
    # Hard upper bound for ``max``; larger values are clamped
    MAX_CEILING: ClassVar[int | None] = None
    # Handled by the project handler manager instead of the main one
    PROJECT_HANDLER: ClassVar[bool] = False
    # Field populated by the array shorthand (``add-labels: [bug]``)
    SHORTHAND_FIELD: ClassVar[str | None] = None
    # Templatable boolean fields (stored as "true"/"false"/expression)
    TEMPLATABLE_BOOLS: ClassVar[tuple[str, ...]] = ()
    COERCE: ClassVar[dict[str, Coercer]] = {
        "staged": bool_value,
        "github_token": string_value,
    }

    kind: str
    max: str | None = Field(default=None, description="Templatable int: literal or ${{ }} expression")
    staged: bool = False
    github_token: str | None = Field(default=None, alias="github-token")

    @classmethod
    def kind_name(cls) -> str:
        return cls.model_fields["kind"].default

    @classmethod
    def handler_name(cls) -> str:
        return cls.kind_name().replace("-", "_")

    @classmethod
    def coercers(cls) -> dict[str, Coercer]:
        merged: dict[str, Coercer] = {}
        for klass in reversed(cls.__mro__):
            merged.update(klass.__dict__.get("COERCE", {}))
        return merged

    @classmethod
    def prepare_input(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Hook for action-specific rewrites of the raw options."""
        return data

    @classmethod
    def resolve_max(cls, raw: Any) -> str | None:
        value = templatable_int(raw) if raw is not None else None
        if value is None:
            return None if cls.DEFAULT_MAX is None else str(cls.DEFAULT_MAX)

        number = literal_int(value)
        if number is not None and cls.MAX_CEILING is not None and number > cls.MAX_CEILING:
            logger.warning(
                f"{cls.kind_name()}: max {number} exceeds the limit of {cls.MAX_CEILING}, "
                f"using {cls.MAX_CEILING}"
            )
            return str(cls.MAX_CEILING)
        return value

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        """Coerce raw options into field values, dropping malformed ones."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            return data

        data = cls.prepare_input(dict(data))
        coercers = cls.coercers()
        normalized: dict[str, Any] = {}

        for name, field in cls.model_fields.items():
            coerce = coercers.get(name)
            if coerce is None:
                continue
            key = field.alias or name
            if key in data:
                raw = data[key]
            elif name in data:
                raw = data[name]
            else:
                continue
            value = coerce(raw)
            if value is not None:
                normalized[name] = value

        normalized["max"] = cls.resolve_max(data.get("max"))
        return normalized

    def to_frontmatter(self) -> dict[str, Any]:
        """Render the canonical frontmatter options for this action."""
        data = self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"kind", "max", "staged"},
        )
        if self.max is not None:
            data = {"max": templatable_int_frontmatter(self.max), **data}
        if self.staged:
            data["staged"] = True
        for name in self.TEMPLATABLE_BOOLS:
            key = type(self).model_fields[name].alias or name
            if key in data:
                data[key] = templatable_bool_json(data[key])
        return data

    def handler_config(self) -> dict[str, Any]:
        """Render the entry for this action in the handler configuration payload."""
        data = self.to_frontmatter()
        data.pop("max", None)
        max_value = templatable_int_json(self.max)
        if max_value is not None:
            data = {"max": max_value, **data}
        return data


class TargetedSafeOutputConfig(BaseSafeOutputConfig):
    """Actions that act on an issue/PR and may target another repository."""

    COERCE = {
        "target": target_value,
        "target_repo": string_value,
        "allowed_repos": string_list,
    }

    target: str | None = None
    target_repo: str | None = Field(default=None, alias="target-repo")
    allowed_repos: list[str] | None = Field(default=None, alias="allowed-repos")

    @model_validator(mode="after")
    def check_target_repo(self) -> TargetedSafeOutputConfig:
        """Reject the wildcard target repository."""
        if self.target_repo == "*":
            raise ValueError("target-repo cannot be the wildcard '*'")
        return self


# --- Issues and discussions ---


class CreateIssueConfig(TargetedSafeOutputConfig):
    COERCE = {
        "title_prefix": string_value,
        "labels": string_list,
        "allowed_labels": string_list,
        "assignees": participants,
        "close_older_issues": bool_value,
        "expires": int_value,
    }

    kind: Literal["create-issue"] = "create-issue"
    title_prefix: str | None = Field(default=None, alias="title-prefix")
    labels: list[str] | None = None
    allowed_labels: list[str] | None = Field(default=None, alias="allowed-labels")
    assignees: list[str] | None = None
    close_older_issues: bool | None = Field(default=None, alias="close-older-issues")
    expires: int | None = None


class CreateDiscussionConfig(TargetedSafeOutputConfig):
    COERCE = {
        "title_prefix": string_value,
        "category": name_or_number,
        "labels": string_list,
        "allowed_labels": string_list,
        "close_older_discussions": bool_value,
        "expires": int_value,
    }

    kind: Literal["create-discussion"] = "create-discussion"
    title_prefix: str | None = Field(default=None, alias="title-prefix")
    category: str | None = None
    labels: list[str] | None = None
    allowed_labels: list[str] | None = Field(default=None, alias="allowed-labels")
    close_older_discussions: bool | None = Field(default=None, alias="close-older-discussions")
    expires: int | None = None


class AddCommentConfig(TargetedSafeOutputConfig):
    COERCE = {
        "discussion": bool_value,
        "hide_older_comments": bool_value,
        "allowed_reasons": string_list,
    }

    kind: Literal["add-comment"] = "add-comment"
    discussion: bool | None = None
    hide_older_comments: bool | None = Field(default=None, alias="hide-older-comments")
    allowed_reasons: list[str] | None = Field(default=None, alias="allowed-reasons")


class AddLabelsConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 3
    SHORTHAND_FIELD = "allowed"
    COERCE = {"allowed": string_list}

    kind: Literal["add-labels"] = "add-labels"
    allowed: list[str] | None = None


class RemoveLabelsConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 3
    SHORTHAND_FIELD = "allowed"
    COERCE = {"allowed": string_list}

    kind: Literal["remove-labels"] = "remove-labels"
    allowed: list[str] | None = None


class AssignToAgentConfig(TargetedSafeOutputConfig):
    COERCE = {"name": string_value}

    kind: Literal["assign-to-agent"] = "assign-to-agent"
    name: str | None = Field(default=None, description="Agent to assign (runtime default: copilot)")


class AssignToUserConfig(TargetedSafeOutputConfig):
    SHORTHAND_FIELD = "allowed"
    COERCE = {"allowed": string_list}

    kind: Literal["assign-to-user"] = "assign-to-user"
    allowed: list[str] | None = None


class UpdateIssueConfig(TargetedSafeOutputConfig):
    COERCE = {
        "status": enabled_by_key,
        "title": enabled_by_key,
        "body": enabled_by_key,
    }

    kind: Literal["update-issue"] = "update-issue"
    status: bool = False
    title: bool = False
    body: bool = False


class UpdateDiscussionConfig(TargetedSafeOutputConfig):
    COERCE = {
        "title": enabled_by_key,
        "body": enabled_by_key,
        "labels": enabled_by_key,
        "allowed_labels": string_list,
    }

    kind: Literal["update-discussion"] = "update-discussion"
    title: bool = False
    body: bool = False
    labels: bool = False
    allowed_labels: list[str] | None = Field(default=None, alias="allowed-labels")

    @classmethod
    def prepare_input(cls, data: dict[str, Any]) -> dict[str, Any]:
        # allowed-labels implies label updates
        if string_list(data.get("allowed-labels")) and "labels" not in data:
            data["labels"] = True
        return data


class CloseIssueConfig(TargetedSafeOutputConfig):
    COERCE = {
        "required_labels": string_list,
        "required_title_prefix": string_value,
    }

    kind: Literal["close-issue"] = "close-issue"
    required_labels: list[str] | None = Field(default=None, alias="required-labels")
    required_title_prefix: str | None = Field(default=None, alias="required-title-prefix")


class CloseDiscussionConfig(TargetedSafeOutputConfig):
    COERCE = {
        "required_labels": string_list,
        "required_title_prefix": string_value,
        "required_category": string_value,
    }

    kind: Literal["close-discussion"] = "close-discussion"
    required_labels: list[str] | None = Field(default=None, alias="required-labels")
    required_title_prefix: str | None = Field(default=None, alias="required-title-prefix")
    required_category: str | None = Field(default=None, alias="required-category")


class HideCommentConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 5
    COERCE = {
        "discussion": bool_value,
        "allowed_reasons": string_list,
    }

    kind: Literal["hide-comment"] = "hide-comment"
    discussion: bool | None = Field(default=None, description="Discussion comment support (runtime default: true)")
    allowed_reasons: list[str] | None = Field(default=None, alias="allowed-reasons")


class LinkSubIssueConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 5
    COERCE = {
        "parent_required_labels": string_list,
        "parent_title_prefix": string_value,
        "sub_required_labels": string_list,
        "sub_title_prefix": string_value,
    }

    kind: Literal["link-sub-issue"] = "link-sub-issue"
    parent_required_labels: list[str] | None = Field(default=None, alias="parent-required-labels")
    parent_title_prefix: str | None = Field(default=None, alias="parent-title-prefix")
    sub_required_labels: list[str] | None = Field(default=None, alias="sub-required-labels")
    sub_title_prefix: str | None = Field(default=None, alias="sub-title-prefix")


# --- Pull requests ---


class CreatePullRequestConfig(TargetedSafeOutputConfig):
    TEMPLATABLE_BOOLS = ("draft",)
    COERCE = {
        "title_prefix": string_value,
        "labels": string_list,
        "reviewers": participants,
        "draft": templatable_bool,
        "if_no_changes": one_of("warn", "error", "ignore"),
        "base_branch": string_value,
        "max_patch_size": int_value,
        "allow_empty": bool_value,
    }

    kind: Literal["create-pull-request"] = "create-pull-request"
    title_prefix: str | None = Field(default=None, alias="title-prefix")
    labels: list[str] | None = None
    reviewers: list[str] | None = None
    draft: str | None = None
    if_no_changes: str | None = Field(default=None, alias="if-no-changes")
    base_branch: str | None = Field(default=None, alias="base-branch")
    max_patch_size: int | None = Field(default=None, alias="max-patch-size", description="KB")
    allow_empty: bool | None = Field(default=None, alias="allow-empty")


class AddReviewerConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 3
    SHORTHAND_FIELD = "reviewers"
    COERCE = {"reviewers": participants}

    kind: Literal["add-reviewer"] = "add-reviewer"
    reviewers: list[str] | None = None


class UpdatePullRequestConfig(TargetedSafeOutputConfig):
    TEMPLATABLE_BOOLS = ("title", "body")
    COERCE = {
        "title": templatable_bool,
        "body": templatable_bool,
    }

    kind: Literal["update-pull-request"] = "update-pull-request"
    title: str | None = Field(default=None, description="Allow title updates (runtime default: true)")
    body: str | None = Field(default=None, description="Allow body updates (runtime default: true)")


class ClosePullRequestConfig(TargetedSafeOutputConfig):
    COERCE = {
        "required_labels": string_list,
        "required_title_prefix": string_value,
    }

    kind: Literal["close-pull-request"] = "close-pull-request"
    required_labels: list[str] | None = Field(default=None, alias="required-labels")
    required_title_prefix: str | None = Field(default=None, alias="required-title-prefix")


class CreatePullRequestReviewCommentConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 10
    COERCE = {"side": one_of("LEFT", "RIGHT")}

    kind: Literal["create-pull-request-review-comment"] = "create-pull-request-review-comment"
    side: str | None = None


class SubmitPullRequestReviewConfig(TargetedSafeOutputConfig):
    kind: Literal["submit-pull-request-review"] = "submit-pull-request-review"


# --- Workflows, assets and code scanning ---


class DispatchWorkflowConfig(TargetedSafeOutputConfig):
    MAX_CEILING = 50
    SHORTHAND_FIELD = "workflows"
    COERCE = {"workflows": string_list}

    kind: Literal["dispatch-workflow"] = "dispatch-workflow"
    workflows: list[str] | None = None


class UploadAssetConfig(BaseSafeOutputConfig):
    DEFAULT_MAX = 10
    COERCE = {
        "branch": string_value,
        "max_size": int_value,
        "allowed_exts": string_list,
    }

    kind: Literal["upload-asset"] = "upload-asset"
    branch: str = "assets/${{ github.workflow }}"
    max_size: int = Field(default=10240, alias="max-size", description="KB")
    allowed_exts: list[str] = Field(
        default_factory=lambda: [".png", ".jpg", ".jpeg"],
        alias="allowed-exts",
    )


class CreateCodeScanningAlertConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = None
    COERCE = {"driver": string_value}

    kind: Literal["create-code-scanning-alert"] = "create-code-scanning-alert"
    driver: str | None = None


class AutofixCodeScanningAlertConfig(TargetedSafeOutputConfig):
    DEFAULT_MAX = 10

    kind: Literal["autofix-code-scanning-alert"] = "autofix-code-scanning-alert"


# --- Projects ---


class CreateProjectConfig(BaseSafeOutputConfig):
    PROJECT_HANDLER = True
    COERCE = {
        "target_owner": string_value,
        "title_prefix": string_value,
    }

    kind: Literal["create-project"] = "create-project"
    target_owner: str | None = Field(default=None, alias="target-owner")
    title_prefix: str | None = Field(default=None, alias="title-prefix")


class UpdateProjectConfig(BaseSafeOutputConfig):
    DEFAULT_MAX = 10
    PROJECT_HANDLER = True
    COERCE = {"project": string_value}

    kind: Literal["update-project"] = "update-project"
    project: str | None = Field(default=None, description="Project URL")


# --- Reporting ---


class MissingToolConfig(BaseSafeOutputConfig):
    DEFAULT_MAX = None
    COERCE = {
        "create_issue": bool_value,
        "title_prefix": string_value,
        "labels": string_list,
    }

    kind: Literal["missing-tool"] = "missing-tool"
    create_issue: bool = Field(default=True, alias="create-issue")
    title_prefix: str = Field(default="[missing tool]", alias="title-prefix")
    labels: list[str] = Field(default_factory=list)


class MissingDataConfig(BaseSafeOutputConfig):
    DEFAULT_MAX = None
    COERCE = {
        "create_issue": bool_value,
        "title_prefix": string_value,
        "labels": string_list,
    }

    kind: Literal["missing-data"] = "missing-data"
    create_issue: bool = Field(default=True, alias="create-issue")
    title_prefix: str = Field(default="[missing data]", alias="title-prefix")
    labels: list[str] = Field(default_factory=list)


class NoopConfig(BaseSafeOutputConfig):
    COERCE = {"report_as_issue": bool_value}

    kind: Literal["noop"] = "noop"
    report_as_issue: bool = Field(default=True, alias="report-as-issue")


SafeOutputAction = Annotated[
    Union[
        CreateIssueConfig,
        CreateDiscussionConfig,
        CreatePullRequestConfig,
        AddCommentConfig,
        AddLabelsConfig,
        RemoveLabelsConfig,
        AddReviewerConfig,
        AssignToAgentConfig,
        AssignToUserConfig,
        UpdateIssueConfig,
        UpdateDiscussionConfig,
        UpdatePullRequestConfig,
        CloseIssueConfig,
        ClosePullRequestConfig,
        CloseDiscussionConfig,
        HideCommentConfig,
        LinkSubIssueConfig,
        DispatchWorkflowConfig,
        UploadAssetConfig,
        CreateCodeScanningAlertConfig,
        AutofixCodeScanningAlertConfig,
        CreatePullRequestReviewCommentConfig,
        SubmitPullRequestReviewConfig,
        CreateProjectConfig,
        UpdateProjectConfig,
        MissingToolConfig,
        MissingDataConfig,
        NoopConfig,
    ],
    Field(discriminator="kind"),
]

# Canonical action order, also the order of the consolidated plan
ACTION_TYPES: tuple[type[BaseSafeOutputConfig], ...] = (
    CreateIssueConfig,
    CreateDiscussionConfig,
    CreatePullRequestConfig,
    AddCommentConfig,
    AddLabelsConfig,
    RemoveLabelsConfig,
    AddReviewerConfig,
    AssignToAgentConfig,
    AssignToUserConfig,
    UpdateIssueConfig,
    UpdateDiscussionConfig,
    UpdatePullRequestConfig,
    CloseIssueConfig,
    ClosePullRequestConfig,
    CloseDiscussionConfig,
    HideCommentConfig,
    LinkSubIssueConfig,
    DispatchWorkflowConfig,
    UploadAssetConfig,
    CreateCodeScanningAlertConfig,
    AutofixCodeScanningAlertConfig,
    CreatePullRequestReviewCommentConfig,
    SubmitPullRequestReviewConfig,
    CreateProjectConfig,
    UpdateProjectConfig,
    MissingToolConfig,
    MissingDataConfig,
    NoopConfig,
)

ACTION_REGISTRY: dict[str, type[BaseSafeOutputConfig]] = {
    action_type.kind_name(): action_type for action_type in ACTION_TYPES
}


class SafeOutputMessages(BaseModel):
    """Custom message templates for safe-output jobs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    footer: str | None = None
    footer_install: str | None = Field(default=None, alias="footer-install")
    staged_title: str | None = Field(default=None, alias="staged-title")
    staged_description: str | None = Field(default=None, alias="staged-description")
    run_started: str | None = Field(default=None, alias="run-started")
    run_success: str | None = Field(default=None, alias="run-success")
    run_failure: str | None = Field(default=None, alias="run-failure")

    @model_validator(mode="before")
    @classmethod
    def drop_non_strings(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if isinstance(v, str)}
        return data

    def to_frontmatter(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json_dict(self) -> dict[str, str]:
        """Message templates keyed the way the runtime scripts read them (camelCase)."""
        data = self.model_dump(exclude_none=True)
        return {_camel_case(key): value for key, value in data.items()}


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class SafeOutputsConfig(BaseModel):
    """All configured safe-output actions plus the global settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    actions: dict[str, SafeOutputAction] = Field(default_factory=dict)
    staged: bool = False
    env: dict[str, str] = Field(default_factory=dict)
    github_token: str | None = Field(default=None, alias="github-token")
    messages: SafeOutputMessages | None = None

    @model_validator(mode="after")
    def check_action_keys(self) -> SafeOutputsConfig:
        for key, action in self.actions.items():
            if key != action.kind:
                raise ValueError(f"action keyed as '{key}' has kind '{action.kind}'")
        return self

    def get(self, kind: str) -> BaseSafeOutputConfig | None:
        return self.actions.get(kind)

    def has(self, kind: str) -> bool:
        return kind in self.actions

    @property
    def is_empty(self) -> bool:
        return not self.actions

    def to_frontmatter(self) -> dict[str, Any]:
        data: dict[str, Any] = {kind: action.to_frontmatter() for kind, action in self.actions.items()}
        if self.staged:
            data["staged"] = True
        if self.env:
            data["env"] = dict(self.env)
        if self.github_token:
            data["github-token"] = self.github_token
        if self.messages is not None:
            data["messages"] = self.messages.to_frontmatter()
        return data


__all__ = [
    "ACTION_REGISTRY",
    "ACTION_TYPES",
    "AddCommentConfig",
    "AddLabelsConfig",
    "AddReviewerConfig",
    "AssignToAgentConfig",
    "AssignToUserConfig",
    "AutofixCodeScanningAlertConfig",
    "BaseSafeOutputConfig",
    "CloseDiscussionConfig",
    "CloseIssueConfig",
    "ClosePullRequestConfig",
    "CreateCodeScanningAlertConfig",
    "CreateDiscussionConfig",
    "CreateIssueConfig",
    "CreateProjectConfig",
    "CreatePullRequestConfig",
    "CreatePullRequestReviewCommentConfig",
    "DispatchWorkflowConfig",
    "HideCommentConfig",
    "LinkSubIssueConfig",
    "MissingDataConfig",
    "MissingToolConfig",
    "NoopConfig",
    "RemoveLabelsConfig",
    "SafeOutputAction",
    "SafeOutputMessages",
    "SafeOutputsConfig",
    "SubmitPullRequestReviewConfig",
    "TargetedSafeOutputConfig",
    "UpdateDiscussionConfig",
    "UpdateIssueConfig",
    "UpdateProjectConfig",
    "UpdatePullRequestConfig",
    "UploadAssetConfig",
]
