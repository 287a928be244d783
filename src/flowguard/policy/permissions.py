"""
GitHub token permissions declared by a workflow.

Permissions come either as a shorthand string (``read-all``, ``write-all``,
``none``) or as a scope -> level mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

PermissionLevel = Literal["read", "write", "none"]

PERMISSION_SCOPES: tuple[str, ...] = (
    "actions",
    "attestations",
    "checks",
    "contents",
    "deployments",
    "discussions",
    "id-token",
    "issues",
    "metadata",
    "models",
    "packages",
    "pages",
    "pull-requests",
    "repository-projects",
    "organization-projects",
    "security-events",
    "statuses",
)
PERMISSION_LEVELS: tuple[str, ...] = ("read", "write", "none")

SHORTHAND_LEVELS: dict[str, PermissionLevel] = {
    "read-all": "read",
    "write-all": "write",
    "none": "none",
}


class Permissions(BaseModel):
    """Resolved permission set.

    ``shorthand`` holds the level applied to every scope when the workflow
    used ``read-all`` / ``write-all`` / ``none``; explicit ``scopes`` win over
    it.
    """

    model_config = ConfigDict(frozen=True)

    shorthand: PermissionLevel | None = None
    scopes: dict[str, PermissionLevel] = Field(default_factory=dict)

    def get(self, scope: str) -> PermissionLevel | None:
        """Return the level granted to a scope, or None when not granted at all."""
        if scope in self.scopes:
            return self.scopes[scope]
        return self.shorthand

    def has(self, scope: str, level: PermissionLevel) -> bool:
        granted = self.get(scope)
        if granted is None or granted == "none":
            return False
        if level == "read":
            return True
        return granted == "write"

    def write_scopes(self) -> list[str]:
        """Scopes granted write access, in canonical scope order."""
        if self.shorthand == "write":
            return [
                scope for scope in PERMISSION_SCOPES if self.scopes.get(scope, "write") == "write"
            ]
        return [scope for scope in PERMISSION_SCOPES if self.scopes.get(scope) == "write"]

    def to_frontmatter(self) -> str | dict[str, str]:
        if self.shorthand is not None and not self.scopes:
            return next(k for k, v in SHORTHAND_LEVELS.items() if v == self.shorthand)
        return dict(self.scopes)


def parse_permissions(value: Any) -> Permissions | None:
    """
    Parse the ``permissions`` frontmatter value.

    Unknown scopes and levels are dropped with a debug log; non-string,
    non-mapping values yield None.
    """
    if value is None:
        return None

    if isinstance(value, str):
        level = SHORTHAND_LEVELS.get(value)
        if level is None:
            logger.debug(f"Unknown permissions shorthand: {value}")
            return None
        return Permissions(shorthand=level)

    if not isinstance(value, Mapping):
        logger.debug(f"Ignoring permissions of type {type(value).__name__}")
        return None

    scopes: dict[str, PermissionLevel] = {}
    for scope, level in value.items():
        if scope not in PERMISSION_SCOPES:
            logger.debug(f"Ignoring unknown permission scope: {scope}")
            continue
        if level not in PERMISSION_LEVELS:
            logger.debug(f"Ignoring unknown permission level {level!r} for {scope}")
            continue
        scopes[scope] = level
    return Permissions(scopes=scopes)


__all__ = [
    "PERMISSION_LEVELS",
    "PERMISSION_SCOPES",
    "PermissionLevel",
    "Permissions",
    "parse_permissions",
]
