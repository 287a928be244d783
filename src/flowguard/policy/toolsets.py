"""
GitHub MCP toolset permission table and toolset inference.

The table is read from ``data/github_toolsets_permissions.yaml`` once, when
this module is imported, and exposed as a read-only mapping for the lifetime
of the process.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

import yaml

from flowguard.policy.permissions import Permissions

logger = logging.getLogger(__name__)

TOOLSET_DATA_FILE = Path(__file__).parent.parent / "data" / "github_toolsets_permissions.yaml"


@dataclass(frozen=True)
class ToolsetPermissions:
    """Permission scopes a toolset needs."""

    name: str
    description: str
    read: tuple[str, ...]
    write: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "read": list(self.read),
            "write": list(self.write),
        }


def load_toolset_table(
    path: Path = TOOLSET_DATA_FILE,
) -> tuple[Mapping[str, ToolsetPermissions], tuple[str, ...]]:
    """
    Load the toolset permission table.

    Returns:
        Tuple of (read-only toolset mapping, default toolset names)

    Raises:
        ValueError: If the data file is malformed
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    raw_toolsets = data.get("toolsets")
    if not isinstance(raw_toolsets, dict):
        raise ValueError(f"Toolset table {path} has no 'toolsets' mapping")

    table: dict[str, ToolsetPermissions] = {}
    for name, entry in raw_toolsets.items():
        entry = entry or {}
        table[name] = ToolsetPermissions(
            name=name,
            description=entry.get("description", ""),
            read=tuple(entry.get("read") or ()),
            write=tuple(entry.get("write") or ()),
        )

    defaults = tuple(data.get("default_toolsets") or ())
    unknown = [name for name in defaults if name not in table]
    if unknown:
        raise ValueError(f"Default toolsets not defined in {path}: {', '.join(unknown)}")

    logger.debug(f"Loaded {len(table)} toolsets from {path}")
    return MappingProxyType(table), defaults


TOOLSET_PERMISSIONS, DEFAULT_TOOLSETS = load_toolset_table()


def is_toolset_compatible(toolset: str, permissions: Permissions, read_only: bool) -> bool:
    """Check whether a toolset's scopes are covered by the granted permissions.

    Write access satisfies a read requirement. Write requirements are only
    checked when the GitHub MCP server is not read-only.
    """
    required = TOOLSET_PERMISSIONS.get(toolset)
    if required is None:
        logger.debug(f"Toolset {toolset} not found in permissions table, skipping")
        return False

    for scope in required.read:
        if not permissions.has(scope, "read"):
            logger.debug(f"Toolset {toolset} incompatible: missing read permission {scope}")
            return False

    if not read_only:
        for scope in required.write:
            if not permissions.has(scope, "write"):
                logger.debug(f"Toolset {toolset} incompatible: missing write permission {scope}")
                return False

    return True


def infer_compatible_toolsets(
    permissions: Permissions | None,
    read_only: bool,
    toolsets: Iterable[str] | None = None,
) -> list[str]:
    """
    Infer the toolsets that can be enabled with the granted permissions.

    Args:
        permissions: Declared workflow permissions
        read_only: Whether the GitHub MCP server runs read-only
        toolsets: Candidate toolsets (default: the default toolsets)

    Returns:
        Compatible toolset names, in candidate order
    """
    if permissions is None:
        return []

    candidates = list(DEFAULT_TOOLSETS if toolsets is None else toolsets)
    compatible = [name for name in candidates if is_toolset_compatible(name, permissions, read_only)]
    logger.debug(f"Inferred {len(compatible)} compatible toolsets from {len(candidates)} candidates")
    return compatible


__all__ = [
    "DEFAULT_TOOLSETS",
    "TOOLSET_PERMISSIONS",
    "ToolsetPermissions",
    "infer_compatible_toolsets",
    "is_toolset_compatible",
    "load_toolset_table",
]
